"""
Conversation models: messages, chat requests/responses and per-turn context.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_MESSAGE_LENGTH = 2000
MAX_SUGGESTIONS = 4


class Language(str, Enum):
    EN = "en"
    FR = "fr"
    AR = "ar"
    SW = "sw"
    HA = "ha"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Intent(str, Enum):
    """Recognised intents, in tie-break order (first declared wins)."""
    DEMO_REQUEST = "demo_request"
    PRICING_INQUIRY = "pricing_inquiry"
    PRODUCT_INQUIRY = "product_inquiry"
    INTEGRATION_INQUIRY = "integration_inquiry"
    TECHNICAL_INQUIRY = "technical_inquiry"
    SUPPORT_INQUIRY = "support_inquiry"
    COMPLAINT = "complaint"
    GREETING = "greeting"
    GENERAL_INQUIRY = "general_inquiry"


class ConversationStage(str, Enum):
    GREETING = "greeting"
    INFORMATION = "information"
    QUALIFICATION = "qualification"
    ESCALATION = "escalation"
    CLOSING = "closing"


class ApiModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageMetadata(ApiModel):
    """Classification details attached to a message."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow"
    )

    intent: Optional[Intent] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    entities: Optional[Dict[str, Any]] = None
    lead_score: Optional[int] = Field(None, ge=0, le=100)
    stage: Optional[ConversationStage] = None


class Message(ApiModel):
    """A single conversation message. Immutable once created."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    role: Role
    content: str
    timestamp: datetime
    language: Optional[Language] = None
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


class Geolocation(ApiModel):
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None


class UserProfile(ApiModel):
    name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    interests: List[str] = Field(default_factory=list)


class RequestContext(ApiModel):
    """Optional client context sent by the chat widget."""
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    timestamp: Optional[str] = None
    geolocation: Optional[Geolocation] = None
    user_profile: Optional[UserProfile] = None


class ChatRequest(ApiModel):
    """Inbound chat turn. Validation happens before the pipeline runs."""
    session_id: str = Field(..., min_length=1, description="Opaque session key from the widget")
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    language: Optional[Language] = Field(None, description="Detected from the message when omitted")
    context: Optional[RequestContext] = None
    conversation_history: List[Message] = Field(default_factory=list)
    previous_lead_score: int = Field(default=0, ge=0, le=100)


class IntentMatch(ApiModel):
    """Classifier output for one message."""
    intent: Intent
    confidence: float = Field(..., ge=0.0, le=1.0)
    entities: Dict[str, Any] = Field(default_factory=dict)
    context_note: Dict[str, Any] = Field(default_factory=dict)


class SessionContext(ApiModel):
    """Per-session state rebuilt for every turn."""
    session_id: str
    language: Language = Language.EN
    lead_score: int = Field(default=0, ge=0, le=100)
    stage: ConversationStage = ConversationStage.GREETING
    conversation_history: List[Message] = Field(default_factory=list)
    consecutive_failures: int = Field(default=0, ge=0)

    @property
    def recent_intents(self) -> List[Intent]:
        """Intents from history metadata, oldest first, last 3 only."""
        intents = [m.metadata.intent for m in self.conversation_history if m.metadata.intent]
        return intents[-3:]


class ChatContext(ApiModel):
    session_id: str
    lead_score: int = Field(..., ge=0, le=100)
    language: Language
    intent: Intent
    confidence: float
    entities: Dict[str, Any] = Field(default_factory=dict)
    sentiment: float = Field(..., ge=-1.0, le=1.0)
    stage: ConversationStage


class EscalationTriggerSummary(ApiModel):
    trigger: str
    priority: str
    channel: str


class ChatResponse(ApiModel):
    """Structured reply for one chat turn."""
    success: bool = True
    message: Message
    context: ChatContext
    suggestions: List[str] = Field(default_factory=list, max_length=MAX_SUGGESTIONS)
    should_escalate: bool = False
    escalation_message: Optional[str] = None
    escalation_triggers: List[EscalationTriggerSummary] = Field(default_factory=list)
