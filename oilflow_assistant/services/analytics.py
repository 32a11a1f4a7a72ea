"""
Conversation Analytics - per-session metrics, event log and aggregated reports.
"""
import csv
import io
import json
import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol

from oilflow_assistant.models.analytics import (
    AnalyticsEvent,
    AnalyticsEventType,
    AnalyticsReport,
    ConversationMetrics,
    ConversionEvent,
    ConversionMetrics,
    LeadScoreDistribution,
    RealTimeMetrics,
    RegionalInsight,
    TimeRange,
    UserFlow,
    utc_now,
)
from oilflow_assistant.models.chat import Geolocation, Intent, Role

logger = logging.getLogger(__name__)

DEFAULT_REPORT_DAYS = 30
DEFAULT_RETENTION_DAYS = 90
COMMON_PATH_LIMIT = 10
DROP_OFF_LIMIT = 5
SHORT_CONVERSATION = 5
PATH_SEPARATOR = " → "

CSV_HEADERS = [
    "sessionId", "startTime", "endTime", "duration", "messageCount",
    "language", "leadScore", "finalStage", "conversionEvent",
]


class AnalyticsSink(Protocol):
    """What the chat pipeline needs from an analytics backend."""

    def has_session(self, session_id: str) -> bool: ...

    def start_session(
        self,
        session_id: str,
        language: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        geolocation: Optional[Geolocation] = None,
    ) -> None: ...

    def record_turn(self, session_id: str, role: Role, content: str, metadata: Optional[Dict[str, Any]] = None) -> None: ...

    def record_intent(self, session_id: str, intent: Intent, confidence: float, entities: Dict[str, Any]) -> None: ...

    def update_session(self, session_id: str, **updates: Any) -> None: ...

    def end_session(self, session_id: str, satisfaction_score: Optional[float] = None) -> None: ...

    def track_conversion(self, session_id: str, conversion: ConversionEvent) -> None: ...

    def report(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> AnalyticsReport: ...


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class InMemoryAnalyticsSink:
    """
    Thread-safe in-process analytics store.

    One ConversationMetrics record per session plus an append-only event log.
    Every public method takes the same re-entrant lock.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._sessions: Dict[str, ConversationMetrics] = {}
        self._events: List[AnalyticsEvent] = []

    def _track(self, event_type: AnalyticsEventType, session_id: str, payload: Dict[str, Any]) -> None:
        self._events.append(AnalyticsEvent(event_type=event_type, session_id=session_id, payload=payload))

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_session(self, session_id: str) -> Optional[ConversationMetrics]:
        with self._lock:
            metrics = self._sessions.get(session_id)
            return metrics.model_copy(deep=True) if metrics else None

    def start_session(
        self,
        session_id: str,
        language: str,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
        geolocation: Optional[Geolocation] = None,
        start_time: Optional[datetime] = None,
    ) -> None:
        with self._lock:
            self._sessions[session_id] = ConversationMetrics(
                session_id=session_id,
                start_time=start_time or utc_now(),
                language=language,
                user_agent=user_agent,
                referrer=referrer,
                geolocation=geolocation,
            )
            self._track(
                AnalyticsEventType.CONVERSATION_STARTED,
                session_id,
                {"language": language, "userAgent": user_agent, "referrer": referrer},
            )
        logger.info(f"Analytics session started: {session_id} ({language})")

    def record_turn(
        self,
        session_id: str,
        role: Role,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a message event and bump the session counters."""
        event_type = AnalyticsEventType.MESSAGE_SENT if role == Role.USER else AnalyticsEventType.MESSAGE_RECEIVED
        with self._lock:
            self._track(
                event_type,
                session_id,
                {"messageType": role.value, "contentLength": len(content), **(metadata or {})},
            )
            metrics = self._sessions.get(session_id)
            if metrics:
                metrics.message_count += 1
                if role == Role.USER:
                    metrics.user_message_count += 1
                else:
                    metrics.assistant_message_count += 1

    def record_intent(self, session_id: str, intent: Intent, confidence: float, entities: Dict[str, Any]) -> None:
        with self._lock:
            self._track(
                AnalyticsEventType.INTENT_RECOGNIZED,
                session_id,
                {"intent": intent.value, "confidence": confidence, "entities": entities},
            )
            metrics = self._sessions.get(session_id)
            if metrics:
                metrics.intents.append(intent)
                if entities:
                    metrics.entities.append(dict(entities))

    def update_session(self, session_id: str, **updates: Any) -> None:
        """Overwrite metric fields by name; unknown sessions are ignored."""
        with self._lock:
            metrics = self._sessions.get(session_id)
            if metrics:
                self._sessions[session_id] = metrics.model_copy(update=updates)

    def end_session(self, session_id: str, satisfaction_score: Optional[float] = None) -> None:
        with self._lock:
            metrics = self._sessions.get(session_id)
            if not metrics:
                logger.warning(f"end_session for unknown session {session_id}")
                return
            end_time = utc_now()
            duration = (end_time - _as_utc(metrics.start_time)).total_seconds()
            metrics.end_time = end_time
            metrics.duration = duration
            metrics.satisfaction_score = satisfaction_score
            self._track(
                AnalyticsEventType.CONVERSATION_ENDED,
                session_id,
                {
                    "duration": duration,
                    "messageCount": metrics.message_count,
                    "leadScore": metrics.lead_score,
                    "conversionEvent": metrics.conversion_event.value,
                    "satisfactionScore": satisfaction_score,
                },
            )
        logger.info(f"Analytics session ended: {session_id} after {duration:.1f}s")

    def track_conversion(self, session_id: str, conversion: ConversionEvent) -> None:
        event_type = (
            AnalyticsEventType.DEMO_REQUESTED
            if conversion == ConversionEvent.DEMO_REQUESTED
            else AnalyticsEventType.ESCALATION_TRIGGERED
        )
        with self._lock:
            metrics = self._sessions.get(session_id)
            if metrics:
                metrics.conversion_event = conversion
            self._track(event_type, session_id, {"conversionType": conversion.value})

    def _sessions_between(self, start: datetime, end: datetime) -> List[ConversationMetrics]:
        return [m for m in self._sessions.values() if start <= _as_utc(m.start_time) <= end]

    def report(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> AnalyticsReport:
        """Aggregate sessions started in [start, end]; defaults to the last 30 days."""
        end = _as_utc(end) if end else utc_now()
        start = _as_utc(start) if start else end - timedelta(days=DEFAULT_REPORT_DAYS)

        with self._lock:
            sessions = [m.model_copy(deep=True) for m in self._sessions_between(start, end)]

        total_sessions = len(sessions)
        total_messages = sum(m.message_count for m in sessions)

        language_distribution = Counter(m.language for m in sessions)
        intent_distribution = Counter(i.value for m in sessions for i in m.intents)

        conversions = Counter(m.conversion_event for m in sessions)
        converted = sum(n for event, n in conversions.items() if event != ConversionEvent.NONE)

        buckets = LeadScoreDistribution()
        for m in sessions:
            if m.lead_score <= 30:
                buckets.low += 1
            elif m.lead_score <= 60:
                buckets.medium += 1
            else:
                buckets.high += 1

        completed = [m for m in sessions if m.end_time]
        average_length = sum(m.duration or 0 for m in completed) / len(completed) if completed else 0.0
        average_messages = total_messages / total_sessions if total_sessions else 0.0
        satisfaction = [m.satisfaction_score for m in completed if m.satisfaction_score is not None]

        return AnalyticsReport(
            time_range=TimeRange(start=start, end=end),
            total_sessions=total_sessions,
            total_messages=total_messages,
            average_session_length=average_length,
            average_messages_per_session=average_messages,
            language_distribution=dict(language_distribution),
            intent_distribution=dict(intent_distribution),
            conversion_metrics=ConversionMetrics(
                demo_requests=conversions[ConversionEvent.DEMO_REQUESTED],
                contacts_collected=conversions[ConversionEvent.CONTACT_PROVIDED],
                escalations=conversions[ConversionEvent.ESCALATED],
                conversion_rate=converted / total_sessions * 100 if total_sessions else 0.0,
            ),
            lead_score_distribution=buckets,
            user_flow=UserFlow(
                common_paths=self._common_paths(sessions),
                drop_off_points=self._drop_off_points(sessions),
                average_conversation_depth=average_messages,
            ),
            satisfaction_score=sum(satisfaction) / len(satisfaction) if satisfaction else 0.0,
            regional_insights=self._regional_insights(sessions),
        )

    @staticmethod
    def _common_paths(sessions: List[ConversationMetrics]) -> List[str]:
        paths = Counter(PATH_SEPARATOR.join(i.value for i in m.intents) for m in sessions)
        return [path for path, _ in paths.most_common(COMMON_PATH_LIMIT)]

    @staticmethod
    def _drop_off_points(sessions: List[ConversationMetrics]) -> List[str]:
        last_intents = Counter(
            (m.intents[-1].value if m.intents else Intent.GREETING.value)
            for m in sessions
            if m.message_count < SHORT_CONVERSATION
        )
        return [intent for intent, _ in last_intents.most_common(DROP_OFF_LIMIT)]

    @staticmethod
    def _regional_insights(sessions: List[ConversationMetrics]) -> Dict[str, RegionalInsight]:
        grouped: Dict[str, List[ConversationMetrics]] = {}
        for m in sessions:
            country = (m.geolocation.country if m.geolocation else None) or "unknown"
            grouped.setdefault(country, []).append(m)

        insights = {}
        for country, members in grouped.items():
            intents = Counter(i.value for m in members for i in m.intents)
            insights[country] = RegionalInsight(
                sessions=len(members),
                average_lead_score=sum(m.lead_score for m in members) / len(members),
                top_intents=[intent for intent, _ in intents.most_common(3)],
            )
        return insights

    def realtime_metrics(self) -> RealTimeMetrics:
        """Dashboard numbers: sessions started in the last hour, messages in the last minute."""
        now = utc_now()
        hour_ago = now - timedelta(hours=1)
        minute_ago = now - timedelta(minutes=1)

        with self._lock:
            recent = [m for m in self._sessions.values() if _as_utc(m.start_time) > hour_ago]
            messages = sum(
                1 for e in self._events
                if e.timestamp > minute_ago
                and e.event_type in (AnalyticsEventType.MESSAGE_SENT, AnalyticsEventType.MESSAGE_RECEIVED)
            )
            active = sum(1 for m in recent if not m.end_time)
            converted = sum(1 for m in recent if m.conversion_event != ConversionEvent.NONE)
            average_score = sum(m.lead_score for m in recent) / len(recent) if recent else 0.0

        return RealTimeMetrics(
            active_sessions=active,
            messages_per_minute=messages,
            current_conversion_rate=converted / len(recent) * 100 if recent else 0.0,
            average_lead_score=average_score,
        )

    def export(self, fmt: str = "json") -> str:
        """Dump sessions (and, for json, events plus the default report)."""
        if fmt not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {fmt}")

        with self._lock:
            sessions = [m.model_copy(deep=True) for m in self._sessions.values()]
            events = list(self._events)

        if fmt == "json":
            return json.dumps(
                {
                    "conversations": [m.model_dump(mode="json", by_alias=True) for m in sessions],
                    "events": [e.model_dump(mode="json", by_alias=True) for e in events],
                    "analytics": self.report().model_dump(mode="json", by_alias=True),
                },
                indent=2,
                ensure_ascii=False,
            )

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for m in sessions:
            writer.writerow([
                m.session_id,
                m.start_time.isoformat(),
                m.end_time.isoformat() if m.end_time else "",
                m.duration or 0,
                m.message_count,
                m.language,
                m.lead_score,
                m.final_stage.value,
                m.conversion_event.value,
            ])
        return buffer.getvalue()

    def cleanup(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """Drop sessions and events older than the retention window. Returns sessions removed."""
        cutoff = utc_now() - timedelta(days=retention_days)
        with self._lock:
            before = len(self._sessions)
            self._sessions = {
                sid: m for sid, m in self._sessions.items() if _as_utc(m.start_time) > cutoff
            }
            self._events = [e for e in self._events if _as_utc(e.timestamp) > cutoff]
            removed = before - len(self._sessions)
        logger.info(f"Analytics cleanup removed {removed} sessions older than {retention_days} days")
        return removed
