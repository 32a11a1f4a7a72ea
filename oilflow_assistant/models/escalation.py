"""
Escalation rule, fallback and handoff models.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .chat import ApiModel, Intent, Language, Message, UserProfile


class EscalationTrigger(str, Enum):
    HIGH_LEAD_SCORE = "high_lead_score"
    REPEATED_QUESTIONS = "repeated_questions"
    COMPLEX_TECHNICAL_QUERY = "complex_technical_query"
    PRICING_DISCUSSION = "pricing_discussion"
    COMPLAINT_DETECTED = "complaint_detected"
    DEMO_REQUEST = "demo_request"
    INTEGRATION_DETAILS = "integration_details"
    MANUAL_REQUEST = "manual_request"
    CONFUSION_DETECTED = "confusion_detected"
    NEGATIVE_SENTIMENT = "negative_sentiment"


class EscalationChannel(str, Enum):
    LIVE_CHAT = "live_chat"
    PHONE_CALL = "phone_call"
    EMAIL = "email"
    DEMO_BOOKING = "demo_booking"
    TECHNICAL_SUPPORT = "technical_support"
    SALES_TEAM = "sales_team"


class EscalationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class FallbackTrigger(str, Enum):
    LOW_CONFIDENCE = "low_confidence"
    NO_MATCH = "no_match"
    ERROR = "error"
    TIMEOUT = "timeout"


_FROZEN = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class EscalationConditions(ApiModel):
    model_config = _FROZEN

    lead_score_threshold: Optional[int] = None
    message_count_threshold: Optional[int] = None
    sentiment_threshold: Optional[float] = None
    keyword_patterns: Tuple[str, ...] = ()
    intents: Tuple[Intent, ...] = ()
    time_threshold: Optional[int] = Field(None, description="Minutes")
    repeat_threshold: Optional[int] = None


class EscalationAction(ApiModel):
    model_config = _FROZEN

    channel: EscalationChannel
    priority: EscalationPriority
    message: Dict[str, str] = Field(..., description="Localized text keyed by language code; 'en' required")
    data: Dict[str, Any] = Field(default_factory=dict)


class EscalationRule(ApiModel):
    """Static escalation configuration; evaluated in declaration order."""
    model_config = _FROZEN

    id: str
    trigger: EscalationTrigger
    conditions: EscalationConditions = Field(default_factory=EscalationConditions)
    action: EscalationAction
    active: bool = True


class TurnContext(ApiModel):
    """Everything an escalation rule may look at for the current turn."""
    model_config = _FROZEN

    session_id: str
    lead_score: int = Field(..., ge=0, le=100)
    message_count: int = Field(..., ge=0)
    last_message: str
    sentiment: float = Field(0.0, ge=-1.0, le=1.0)
    consecutive_failures: int = Field(0, ge=0)
    recent_intents: Tuple[Intent, ...] = ()


class FallbackResponse(ApiModel):
    model_config = _FROZEN

    id: str
    trigger: FallbackTrigger
    confidence_threshold: Optional[float] = None
    consecutive_failures: Optional[int] = None
    responses: Dict[str, List[str]]
    suggestions: Dict[str, List[str]]
    escalation_prompt: bool = False


class HandoffMetrics(ApiModel):
    duration: float = Field(0.0, description="Seconds since the first message")
    message_count: int = 0
    lead_score: int = Field(0, ge=0, le=100)
    intents: List[Intent] = Field(default_factory=list)
    sentiment: float = 0.0


class EscalationHandoff(ApiModel):
    """Context handed to a human agent when a conversation is escalated."""
    session_id: str
    user_id: Optional[str] = None
    conversation_summary: str
    user_profile: Optional[UserProfile] = None
    conversation_metrics: HandoffMetrics
    triggered_rules: List[EscalationRule] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    language: Language = Language.EN


class EscalationResult(ApiModel):
    success: bool
    escalation_id: str
    channel: EscalationChannel
    estimated_wait_time: Optional[int] = Field(None, description="Minutes")
    message: str
    alert_sent: bool = False


class EscalationRequest(ApiModel):
    """Manual handoff request from the widget or an admin tool."""
    session_id: str = Field(..., min_length=1)
    language: Language = Language.EN
    conversation_history: List[Message] = Field(default_factory=list)
    user_profile: Optional[UserProfile] = None
    lead_score: int = Field(default=0, ge=0, le=100)
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    rule_ids: List[str] = Field(default_factory=list, description="Triggered rule ids; evaluated when empty")
    preferred_channel: Optional[EscalationChannel] = None
