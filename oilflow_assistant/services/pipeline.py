"""
Chat Pipeline - runs one conversation turn end to end.

intent -> entities -> sentiment -> lead score -> escalation rules ->
response -> analytics
"""
import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from oilflow_assistant.core.config import Settings
from oilflow_assistant.models.analytics import ConversionEvent
from oilflow_assistant.models.chat import (
    ChatContext,
    ChatRequest,
    ChatResponse,
    ConversationStage,
    EscalationTriggerSummary,
    Intent,
    Language,
    Message,
    MessageMetadata,
    Role,
    SessionContext,
)
from oilflow_assistant.models.escalation import EscalationRule, TurnContext
from oilflow_assistant.services.analytics import AnalyticsSink, InMemoryAnalyticsSink
from oilflow_assistant.services.escalation import EscalationEngine, localized
from oilflow_assistant.services.intent_classifier import IntentClassifier
from oilflow_assistant.services.language_service import LanguageDetector
from oilflow_assistant.services.lead_scoring import LeadScoreAccumulator
from oilflow_assistant.services.response_generator import LOW_CONFIDENCE_THRESHOLD, ResponseGenerator
from oilflow_assistant.services.sentiment import SentimentScorer

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
PHONE_PATTERN = re.compile(r"\+?\d[\d\s().-]{7,}\d")


class InvalidChatInput(ValueError):
    """Raised when a chat payload fails validation. Carries field-level errors."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) for e in errors)
        super().__init__(f"Invalid chat input: {fields}")


class ChatServiceUnavailable(RuntimeError):
    """Raised when a turn fails for reasons other than bad input."""


def parse_request(payload: Dict[str, Any]) -> ChatRequest:
    """Validate a raw payload into a ChatRequest."""
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidChatInput(e.errors(include_url=False)) from e


def _assistant_message_id() -> str:
    return f"assistant_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class ChatPipeline:
    """
    Orchestrates a single chat turn.

    Collaborators are injected; only the analytics sink holds state across
    turns. Session state itself travels with the request.
    """

    def __init__(
        self,
        analytics: Optional[AnalyticsSink] = None,
        classifier: Optional[IntentClassifier] = None,
        detector: Optional[LanguageDetector] = None,
        sentiment: Optional[SentimentScorer] = None,
        scoring: Optional[LeadScoreAccumulator] = None,
        escalation: Optional[EscalationEngine] = None,
        responder: Optional[ResponseGenerator] = None,
        low_confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD,
    ):
        self.analytics = analytics if analytics is not None else InMemoryAnalyticsSink()
        self.classifier = classifier or IntentClassifier()
        self.detector = detector or LanguageDetector()
        self.sentiment = sentiment or SentimentScorer()
        self.scoring = scoring or LeadScoreAccumulator()
        self.escalation = escalation or EscalationEngine()
        self.responder = responder or ResponseGenerator(escalation=self.escalation)
        self.low_confidence_threshold = low_confidence_threshold

    def _is_failure(self, intent: Optional[Intent], confidence: Optional[float]) -> bool:
        if intent == Intent.GENERAL_INQUIRY:
            return True
        return confidence is not None and confidence < self.low_confidence_threshold

    def _trailing_failures(self, history: List[Message]) -> int:
        """Consecutive failed assistant turns at the end of the history."""
        count = 0
        for message in reversed(history):
            # one turn is one assistant reply, whatever the client tagged on the visitor side
            if message.role != Role.ASSISTANT or message.metadata.intent is None:
                continue
            if not self._is_failure(message.metadata.intent, message.metadata.confidence):
                break
            count += 1
        return count

    @staticmethod
    def _previous_stage(history: List[Message]) -> ConversationStage:
        for message in reversed(history):
            if message.metadata.stage:
                return message.metadata.stage
        return ConversationStage.GREETING

    @staticmethod
    def _conversion_for(message: str, intent: Intent, escalated: bool) -> Optional[ConversionEvent]:
        if escalated:
            return ConversionEvent.ESCALATED
        if intent == Intent.DEMO_REQUEST:
            return ConversionEvent.DEMO_REQUESTED
        if EMAIL_PATTERN.search(message) or PHONE_PATTERN.search(message):
            return ConversionEvent.CONTACT_PROVIDED
        return None

    def process(self, request: ChatRequest) -> ChatResponse:
        """
        Run one turn.

        Raises:
            ChatServiceUnavailable: on any unexpected internal failure
        """
        try:
            return self._process(request)
        except Exception as e:
            logger.error(f"Chat turn failed for session {request.session_id}: {e}", exc_info=True)
            raise ChatServiceUnavailable("Chatbot service temporarily unavailable") from e

    def _process(self, request: ChatRequest) -> ChatResponse:
        history = list(request.conversation_history)
        language = request.language or self.detector.detect(request.message)
        session = SessionContext(
            session_id=request.session_id,
            language=language,
            lead_score=request.previous_lead_score,
            stage=self._previous_stage(history),
            conversation_history=history,
            consecutive_failures=self._trailing_failures(history),
        )
        context = request.context

        if not self.analytics.has_session(session.session_id):
            self.analytics.start_session(
                session.session_id,
                language.value,
                user_agent=context.user_agent if context else None,
                referrer=context.referrer if context else None,
                geolocation=context.geolocation if context else None,
            )

        match = self.classifier.classify(
            request.message,
            language,
            session.recent_intents,
            is_first_turn=not history,
        )
        sentiment = self.sentiment.score(request.message, language)
        delta = self.scoring.increment(match.intent, match.entities, match.confidence)
        lead_score = self.scoring.apply(session.lead_score, delta)

        failures = session.consecutive_failures
        if self._is_failure(match.intent, match.confidence):
            failures += 1

        message_count = len(history) + 1
        triggered: List[EscalationRule] = self.escalation.evaluate(
            TurnContext(
                session_id=session.session_id,
                lead_score=lead_score,
                message_count=message_count,
                last_message=request.message,
                sentiment=sentiment,
                consecutive_failures=failures,
                recent_intents=tuple(session.recent_intents + [match.intent]),
            )
        )
        should_escalate = bool(triggered)

        reply = self.responder.generate(
            match.intent, match.entities, language, history, lead_score, match.confidence,
            query=request.message,
        )
        suggestions = self.responder.suggestions(
            match.intent, match.entities, language, lead_score, match.confidence
        )
        stage = self.responder.next_stage(
            session.stage, match.intent, lead_score, should_escalate, message_count
        )

        assistant_message = Message(
            id=_assistant_message_id(),
            role=Role.ASSISTANT,
            content=reply,
            timestamp=datetime.now(timezone.utc),
            language=language,
            metadata=MessageMetadata(
                intent=match.intent,
                confidence=match.confidence,
                entities=match.entities,
                lead_score=lead_score,
                stage=stage,
            ),
        )

        self._record(session.session_id, request.message, assistant_message, match, lead_score, stage)
        conversion = self._conversion_for(request.message, match.intent, should_escalate)
        if conversion:
            self.analytics.track_conversion(session.session_id, conversion)

        logger.info(
            f"Turn {session.session_id}: intent={match.intent.value} "
            f"confidence={match.confidence:.2f} lead_score={lead_score} escalate={should_escalate}"
        )

        return ChatResponse(
            success=True,
            message=assistant_message,
            context=ChatContext(
                session_id=session.session_id,
                lead_score=lead_score,
                language=language,
                intent=match.intent,
                confidence=match.confidence,
                entities=match.entities,
                sentiment=sentiment,
                stage=stage,
            ),
            suggestions=suggestions,
            should_escalate=should_escalate,
            escalation_message=localized(triggered[0].action.message, language) if triggered else None,
            escalation_triggers=[
                EscalationTriggerSummary(
                    trigger=rule.trigger.value,
                    priority=rule.action.priority.value,
                    channel=rule.action.channel.value,
                )
                for rule in triggered
            ],
        )

    def _record(self, session_id, user_text, assistant_message, match, lead_score, stage) -> None:
        self.analytics.record_turn(session_id, Role.USER, user_text)
        self.analytics.record_turn(
            session_id,
            Role.ASSISTANT,
            assistant_message.content,
            {"intent": match.intent.value, "confidence": match.confidence},
        )
        self.analytics.record_intent(session_id, match.intent, match.confidence, match.entities)
        self.analytics.update_session(session_id, lead_score=lead_score, final_stage=stage)


def build_pipeline(settings: Settings) -> ChatPipeline:
    """Pipeline wired from application settings, with a fresh in-memory analytics sink."""
    threshold = settings.low_confidence_threshold
    escalation = EscalationEngine()
    return ChatPipeline(
        analytics=InMemoryAnalyticsSink(),
        detector=LanguageDetector(default=Language(settings.default_language)),
        escalation=escalation,
        responder=ResponseGenerator(escalation=escalation, low_confidence_threshold=threshold),
        low_confidence_threshold=threshold,
    )
