import json
import threading
from datetime import timedelta

import pytest

from oilflow_assistant.models.analytics import ConversionEvent, utc_now
from oilflow_assistant.models.chat import ConversationStage, Geolocation, Intent, Role
from oilflow_assistant.services.analytics import InMemoryAnalyticsSink


def run_session(sink, session_id, language, intents, lead_score, country=None, turns=1):
    sink.start_session(
        session_id,
        language,
        geolocation=Geolocation(country=country) if country else None,
    )
    for _ in range(turns):
        sink.record_turn(session_id, Role.USER, "hello")
        sink.record_turn(session_id, Role.ASSISTANT, "welcome")
    for intent in intents:
        sink.record_intent(session_id, intent, 0.9, {})
    sink.update_session(session_id, lead_score=lead_score, final_stage=ConversationStage.INFORMATION)


@pytest.fixture
def sink():
    sink = InMemoryAnalyticsSink()
    run_session(sink, "s1", "en", [Intent.GREETING, Intent.PRICING_INQUIRY], 75, country="NG")
    run_session(sink, "s2", "en", [Intent.GREETING, Intent.PRICING_INQUIRY], 40, country="NG", turns=3)
    run_session(sink, "s3", "fr", [Intent.DEMO_REQUEST], 10)
    return sink


def test_turns_update_message_counts(sink):
    metrics = sink.get_session("s2")
    assert metrics.message_count == 6
    assert metrics.user_message_count == 3
    assert metrics.assistant_message_count == 3
    assert metrics.intents == [Intent.GREETING, Intent.PRICING_INQUIRY]
    assert metrics.lead_score == 40
    assert metrics.final_stage == ConversationStage.INFORMATION


def test_get_session_returns_a_copy(sink):
    sink.get_session("s1").intents.clear()
    assert len(sink.get_session("s1").intents) == 2
    assert sink.get_session("missing") is None


def test_entities_are_recorded_when_present(sink):
    sink.record_intent("s3", Intent.PRODUCT_INQUIRY, 0.85, {"segment": "upstream"})
    assert sink.get_session("s3").entities == [{"segment": "upstream"}]


def test_report_distributions(sink):
    report = sink.report()
    assert report.total_sessions == 3
    assert report.total_messages == 10
    assert report.language_distribution == {"en": 2, "fr": 1}
    assert report.intent_distribution == {"greeting": 2, "pricing_inquiry": 2, "demo_request": 1}
    assert report.lead_score_distribution.low == 1
    assert report.lead_score_distribution.medium == 1
    assert report.lead_score_distribution.high == 1
    assert report.average_messages_per_session == pytest.approx(10 / 3)


def test_report_user_flow(sink):
    flow = sink.report().user_flow
    assert flow.common_paths[0] == "greeting → pricing_inquiry"
    # s2 has six messages so only s1 and s3 count as drop-offs
    assert sorted(flow.drop_off_points) == ["demo_request", "pricing_inquiry"]


def test_regional_insights(sink):
    insights = sink.report().regional_insights
    assert insights["NG"].sessions == 2
    assert insights["NG"].average_lead_score == pytest.approx(57.5)
    assert insights["NG"].top_intents[:2] == ["greeting", "pricing_inquiry"]
    assert insights["unknown"].sessions == 1


def test_conversion_metrics(sink):
    sink.track_conversion("s1", ConversionEvent.DEMO_REQUESTED)
    sink.track_conversion("s3", ConversionEvent.ESCALATED)
    metrics = sink.report().conversion_metrics
    assert metrics.demo_requests == 1
    assert metrics.escalations == 1
    assert metrics.contacts_collected == 0
    assert metrics.conversion_rate == pytest.approx(200 / 3)


def test_report_window_excludes_old_sessions(sink):
    sink.start_session("old", "en", start_time=utc_now() - timedelta(days=40))
    assert sink.report().total_sessions == 3
    assert sink.report(start=utc_now() - timedelta(days=50)).total_sessions == 4


def test_end_session_records_duration_and_satisfaction(sink):
    sink.end_session("s1", satisfaction_score=4.5)
    metrics = sink.get_session("s1")
    assert metrics.end_time is not None
    assert metrics.duration >= 0

    report = sink.report()
    assert report.satisfaction_score == 4.5


def test_end_unknown_session_is_ignored(sink):
    sink.end_session("missing")
    assert not sink.has_session("missing")


def test_realtime_metrics(sink):
    sink.end_session("s3")
    realtime = sink.realtime_metrics()
    assert realtime.active_sessions == 2
    assert realtime.messages_per_minute == 10
    assert realtime.average_lead_score == pytest.approx(125 / 3)


def test_csv_export(sink):
    lines = sink.export("csv").strip().split("\n")
    assert lines[0].startswith("sessionId,startTime,endTime")
    assert len(lines) == 4
    assert lines[1].startswith("s1,")


def test_json_export(sink):
    data = json.loads(sink.export("json"))
    assert {c["sessionId"] for c in data["conversations"]} == {"s1", "s2", "s3"}
    assert data["analytics"]["totalSessions"] == 3
    assert data["events"][0]["eventType"] == "conversation_started"


def test_unknown_export_format(sink):
    with pytest.raises(ValueError):
        sink.export("xml")


def test_cleanup_removes_expired_sessions(sink):
    sink.start_session("old", "en", start_time=utc_now() - timedelta(days=120))
    assert sink.cleanup(90) == 1
    assert not sink.has_session("old")
    assert sink.has_session("s1")


def test_concurrent_turns_are_all_counted():
    sink = InMemoryAnalyticsSink()
    sink.start_session("busy", "en")

    def worker():
        for _ in range(100):
            sink.record_turn("busy", Role.USER, "ping")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sink.get_session("busy").message_count == 800
