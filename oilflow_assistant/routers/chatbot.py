"""
Chatbot Router - public chat endpoints and admin analytics/escalation endpoints.
"""
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request, Response, status

from oilflow_assistant.core.config import get_settings, Settings
from oilflow_assistant.models.analytics import (
    AnalyticsReport,
    ConversionRequest,
    RealTimeMetrics,
    SessionEndRequest,
)
from oilflow_assistant.models.chat import (
    ChatRequest,
    ChatResponse,
    ConversationStage,
    Language,
    Message,
    MessageMetadata,
    Role,
)
from oilflow_assistant.models.escalation import (
    EscalationPriority,
    EscalationRequest,
    EscalationResult,
    EscalationRule,
    TurnContext,
)
from oilflow_assistant.services.alert_service import send_escalation_alert
from oilflow_assistant.services.analytics import InMemoryAnalyticsSink
from oilflow_assistant.services.conversation_store import ConversationStore
from oilflow_assistant.services.language_service import (
    SUPPORTED_LANGUAGES,
    UI_TEXT,
    get_region_for_language,
    is_rtl_language,
)
from oilflow_assistant.services.pipeline import ChatPipeline, ChatServiceUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["chatbot"])

ALERT_PRIORITIES = (EscalationPriority.HIGH.value, EscalationPriority.URGENT.value)


def get_pipeline(request: Request) -> ChatPipeline:
    """Dependency to get the application's chat pipeline."""
    return request.app.state.pipeline


def get_conversation_store(request: Request) -> Optional[ConversationStore]:
    """Dependency to get the MongoDB archive, None when MONGO_URL is unset."""
    return getattr(request.app.state, "conversation_store", None)


def require_admin(
    x_admin_key: str = Header(...),
    settings: Settings = Depends(get_settings),
) -> None:
    """Validate the admin key header. An unset key disables admin endpoints."""
    if not settings.admin_api_key or x_admin_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key"
        )


async def archive_turn(
    store: ConversationStore,
    analytics: InMemoryAnalyticsSink,
    user_message: Message,
    assistant_message: Message,
    session_id: str,
) -> None:
    """Background task: copy the turn and session metrics to MongoDB."""
    try:
        await store.save_turn(session_id, user_message, assistant_message)
        metrics = analytics.get_session(session_id)
        if metrics:
            await store.save_metrics(metrics)
    except Exception as e:
        logger.error(f"Failed to archive turn for {session_id}: {e}", exc_info=True)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    pipeline: ChatPipeline = Depends(get_pipeline),
    store: Optional[ConversationStore] = Depends(get_conversation_store),
):
    """
    Run one chat turn.

    Classifies the message, updates the lead score, evaluates escalation rules
    and returns the assistant reply with suggestions. High and urgent
    escalations notify the sales desk webhook in the background.
    """
    logger.info(f"Chat turn for session: {request.session_id}")

    try:
        response = pipeline.process(request)
    except ChatServiceUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Chatbot service temporarily unavailable"
        )

    if response.should_escalate and response.escalation_triggers[0].priority in ALERT_PRIORITIES:
        first = response.escalation_triggers[0]
        profile = request.context.user_profile if request.context else None
        background_tasks.add_task(
            send_escalation_alert,
            session_id=request.session_id,
            lead_score=response.context.lead_score,
            triggers=[t.trigger for t in response.escalation_triggers],
            channel=first.channel,
            priority=first.priority,
            settings=settings,
            user_profile=profile,
        )

    if store:
        user_message = Message(
            id=f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
            role=Role.USER,
            content=request.message,
            timestamp=datetime.now(timezone.utc),
            language=response.context.language,
            metadata=MessageMetadata(),
        )
        background_tasks.add_task(
            archive_turn, store, pipeline.analytics, user_message, response.message, request.session_id
        )

    return response


@router.get("/chat")
async def chat_info(
    language: Optional[Language] = Query(None),
    settings: Settings = Depends(get_settings),
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """Service description with live counters and the widget texts for a language."""
    language = language or Language(settings.default_language)
    translations = pipeline.responder.translations
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "operational",
        "languages": [lang.code.value for lang in SUPPORTED_LANGUAGES],
        "maxMessageLength": settings.max_message_length,
        "localization": {
            "language": language.value,
            "rtl": is_rtl_language(language),
            "region": get_region_for_language(language),
            "ui": {key: translations.get_ui_text(key, language) for key in UI_TEXT["en"]},
            "quickActions": translations.get_quick_actions(language),
        },
        "metrics": pipeline.analytics.realtime_metrics().model_dump(by_alias=True),
    }


@router.get("/chat/{session_id}/history", response_model=List[Message])
async def chat_history(
    session_id: str,
    store: Optional[ConversationStore] = Depends(get_conversation_store),
):
    """Archived transcript for a session."""
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation archive is not configured"
        )

    history = await store.get_history(session_id)
    if not history:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No archived conversation for session {session_id}"
        )
    return history


@router.post("/chat/{session_id}/end")
async def end_chat(
    session_id: str,
    body: Optional[SessionEndRequest] = None,
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Close a session, optionally with a satisfaction score (0-5)."""
    analytics = pipeline.analytics
    if not analytics.has_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown session {session_id}"
        )

    analytics.update_session(session_id, final_stage=ConversationStage.CLOSING)
    analytics.end_session(session_id, body.satisfaction_score if body else None)
    return {"success": True, "sessionId": session_id}


@router.post("/chat/{session_id}/conversion")
async def record_conversion(
    session_id: str,
    body: ConversionRequest,
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Record a conversion reported by the widget (e.g. demo form submitted)."""
    if not pipeline.analytics.has_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown session {session_id}"
        )

    pipeline.analytics.track_conversion(session_id, body.conversion_type)
    return {"success": True, "sessionId": session_id, "conversionType": body.conversion_type.value}


@router.get("/analytics/report", response_model=AnalyticsReport, dependencies=[Depends(require_admin)])
async def analytics_report(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    settings: Settings = Depends(get_settings),
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """Aggregated report; defaults to the configured report window."""
    end = end or datetime.now(timezone.utc)
    start = start or end - timedelta(days=settings.report_window_days)
    return pipeline.analytics.report(start, end)


@router.get("/analytics/realtime", response_model=RealTimeMetrics, dependencies=[Depends(require_admin)])
async def analytics_realtime(pipeline: ChatPipeline = Depends(get_pipeline)):
    return pipeline.analytics.realtime_metrics()


@router.get("/analytics/export", dependencies=[Depends(require_admin)])
async def analytics_export(
    fmt: str = Query("json", alias="format", pattern="^(json|csv)$"),
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """Raw sessions for offline analysis."""
    media_type = "application/json" if fmt == "json" else "text/csv"
    return Response(content=pipeline.analytics.export(fmt), media_type=media_type)


@router.post("/analytics/cleanup", dependencies=[Depends(require_admin)])
async def analytics_cleanup(
    retention_days: Optional[int] = Query(None, ge=1),
    settings: Settings = Depends(get_settings),
    pipeline: ChatPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Drop in-memory analytics older than the retention window."""
    days = retention_days or settings.analytics_retention_days
    removed = pipeline.analytics.cleanup(days)
    return {"success": True, "removedSessions": removed, "retentionDays": days}


@router.get("/escalations/rules", response_model=List[EscalationRule], dependencies=[Depends(require_admin)])
async def escalation_rules(pipeline: ChatPipeline = Depends(get_pipeline)):
    return pipeline.escalation.active_rules()


@router.post("/escalations", response_model=EscalationResult, dependencies=[Depends(require_admin)])
async def create_escalation(
    request: EscalationRequest,
    settings: Settings = Depends(get_settings),
    pipeline: ChatPipeline = Depends(get_pipeline),
):
    """
    Hand a conversation to a human.

    Uses the listed rule ids, or evaluates the rules against the supplied
    history when none are given. The sales desk webhook is notified.
    """
    engine = pipeline.escalation
    history = request.conversation_history

    if request.rule_ids:
        rules = engine.get_rules(request.rule_ids)
    else:
        user_messages = [m.content for m in history if m.role == Role.USER]
        intents = [m.metadata.intent for m in history if m.metadata.intent]
        rules = engine.evaluate(
            TurnContext(
                session_id=request.session_id,
                lead_score=request.lead_score,
                message_count=len(history),
                last_message=user_messages[-1] if user_messages else "",
                sentiment=request.sentiment,
                recent_intents=tuple(intents[-3:]),
            )
        )

    handoff = engine.create_handoff(
        request.session_id,
        history,
        request.user_profile,
        rules,
        language=request.language,
        lead_score=request.lead_score,
        sentiment=request.sentiment,
    )
    result = engine.process_handoff(handoff, request.preferred_channel)

    priority = rules[0].action.priority.value if rules else EscalationPriority.HIGH.value
    alert_sent = await send_escalation_alert(
        session_id=request.session_id,
        lead_score=request.lead_score,
        triggers=[r.trigger.value for r in rules],
        channel=result.channel.value,
        priority=priority,
        settings=settings,
        summary=handoff.conversation_summary,
        user_profile=request.user_profile,
    )

    if pipeline.analytics.has_session(request.session_id):
        pipeline.analytics.update_session(request.session_id, final_stage=ConversationStage.ESCALATION)

    return result.model_copy(update={"alert_sent": alert_sent})
