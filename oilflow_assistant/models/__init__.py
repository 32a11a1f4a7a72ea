"""Data models for the OilFlow Assistant."""
from .chat import (
    ChatRequest,
    ChatResponse,
    ChatContext,
    ConversationStage,
    Intent,
    IntentMatch,
    Language,
    Message,
    MessageMetadata,
    Role,
    SessionContext,
)
from .escalation import (
    EscalationChannel,
    EscalationPriority,
    EscalationRule,
    EscalationTrigger,
    TurnContext,
)
from .analytics import (
    AnalyticsReport,
    ConversationMetrics,
    ConversionEvent,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatContext",
    "ConversationStage",
    "Intent",
    "IntentMatch",
    "Language",
    "Message",
    "MessageMetadata",
    "Role",
    "SessionContext",
    "EscalationChannel",
    "EscalationPriority",
    "EscalationRule",
    "EscalationTrigger",
    "TurnContext",
    "AnalyticsReport",
    "ConversationMetrics",
    "ConversionEvent",
]
