"""
Analytics models for conversation tracking and reporting.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import Field

from .chat import ApiModel, ConversationStage, Geolocation, Intent


class ConversionEvent(str, Enum):
    DEMO_REQUESTED = "demo_requested"
    CONTACT_PROVIDED = "contact_provided"
    ESCALATED = "escalated"
    NONE = "none"


class AnalyticsEventType(str, Enum):
    MESSAGE_SENT = "message_sent"
    MESSAGE_RECEIVED = "message_received"
    INTENT_RECOGNIZED = "intent_recognized"
    ESCALATION_TRIGGERED = "escalation_triggered"
    DEMO_REQUESTED = "demo_requested"
    CONVERSATION_STARTED = "conversation_started"
    CONVERSATION_ENDED = "conversation_ended"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsEvent(ApiModel):
    event_type: AnalyticsEventType
    session_id: str
    timestamp: datetime = Field(default_factory=utc_now)
    payload: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None


class ConversationMetrics(ApiModel):
    """One record per session, updated every turn."""
    session_id: str
    user_id: Optional[str] = None
    start_time: datetime = Field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    duration: Optional[float] = Field(None, description="Seconds")
    message_count: int = 0
    user_message_count: int = 0
    assistant_message_count: int = 0
    language: str = "en"
    lead_score: int = Field(0, ge=0, le=100)
    final_stage: ConversationStage = ConversationStage.GREETING
    intents: List[Intent] = Field(default_factory=list)
    entities: List[Dict[str, Any]] = Field(default_factory=list)
    satisfaction_score: Optional[float] = None
    conversion_event: ConversionEvent = ConversionEvent.NONE
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    geolocation: Optional[Geolocation] = None


class TimeRange(ApiModel):
    start: datetime
    end: datetime


class ConversionMetrics(ApiModel):
    demo_requests: int = 0
    contacts_collected: int = 0
    escalations: int = 0
    conversion_rate: float = Field(0.0, description="Percent of sessions with a conversion")


class LeadScoreDistribution(ApiModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class UserFlow(ApiModel):
    common_paths: List[str] = Field(default_factory=list)
    drop_off_points: List[str] = Field(default_factory=list)
    average_conversation_depth: float = 0.0


class RegionalInsight(ApiModel):
    sessions: int = 0
    average_lead_score: float = 0.0
    top_intents: List[str] = Field(default_factory=list)


class AnalyticsReport(ApiModel):
    time_range: TimeRange
    total_sessions: int = 0
    total_messages: int = 0
    average_session_length: float = 0.0
    average_messages_per_session: float = 0.0
    language_distribution: Dict[str, int] = Field(default_factory=dict)
    intent_distribution: Dict[str, int] = Field(default_factory=dict)
    conversion_metrics: ConversionMetrics = Field(default_factory=ConversionMetrics)
    lead_score_distribution: LeadScoreDistribution = Field(default_factory=LeadScoreDistribution)
    user_flow: UserFlow = Field(default_factory=UserFlow)
    satisfaction_score: float = 0.0
    regional_insights: Dict[str, RegionalInsight] = Field(default_factory=dict)


class RealTimeMetrics(ApiModel):
    active_sessions: int = 0
    messages_per_minute: int = 0
    current_conversion_rate: float = 0.0
    average_lead_score: float = 0.0


class SessionEndRequest(ApiModel):
    satisfaction_score: Optional[float] = Field(None, ge=0.0, le=5.0)


class ConversionRequest(ApiModel):
    conversion_type: ConversionEvent
