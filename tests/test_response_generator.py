import pytest

from conftest import make_history
from oilflow_assistant.models.chat import ConversationStage, Intent, Language
from oilflow_assistant.services.escalation import DEFAULT_FALLBACKS
from oilflow_assistant.services.knowledge_base import REGIONAL_CONTENT, KnowledgeStore
from oilflow_assistant.services.language_service import GREETINGS, QUICK_ACTIONS, RESPONSES
from oilflow_assistant.services.response_generator import SEGMENT_RESPONSES, ResponseGenerator


@pytest.fixture
def generator(rng):
    return ResponseGenerator(rng=rng)


def test_pricing_reply_comes_from_the_knowledge_base(generator, product_history):
    knowledge = KnowledgeStore()
    reply = generator.generate(Intent.PRICING_INQUIRY, {}, Language.EN, product_history, 20, 0.9)
    assert reply == knowledge.get("pricing_roi").text(Language.EN)

    french = generator.generate(Intent.PRICING_INQUIRY, {}, Language.FR, product_history, 20, 0.9)
    assert french.startswith("Notre modèle de tarification")


def test_knowledge_text_falls_back_to_english(generator, product_history):
    reply = generator.generate(Intent.SUPPORT_INQUIRY, {}, Language.SW, product_history, 0, 0.85)
    assert reply == KnowledgeStore().get("support").text(Language.EN)


def test_demo_request_uses_the_demo_template(generator, product_history):
    reply = generator.generate(Intent.DEMO_REQUEST, {}, Language.EN, product_history, 30, 0.95)
    assert reply == RESPONSES["en"]["demoOffer"]


def test_complaint_template_is_localized(generator, product_history):
    reply = generator.generate(Intent.COMPLAINT, {}, Language.FR, product_history, 0, 0.9)
    assert reply == RESPONSES["fr"]["complaintAcknowledgement"]

    swahili = generator.generate(Intent.COMPLAINT, {}, Language.SW, product_history, 0, 0.9)
    assert swahili == RESPONSES["en"]["complaintAcknowledgement"]


def test_greeting_picks_a_localized_greeting(generator):
    reply = generator.generate(Intent.GREETING, {}, Language.FR, [], 0, 1.0)
    assert reply in GREETINGS["fr"]


def test_segment_paragraph_for_product_questions(generator, product_history):
    reply = generator.generate(
        Intent.PRODUCT_INQUIRY, {"segment": "refining"}, Language.EN, product_history, 10, 0.85
    )
    assert reply == SEGMENT_RESPONSES["en"]["downstream"]


def test_product_question_without_segment_gets_the_overview(generator):
    overview = KnowledgeStore().get("product_overview")
    reply = generator.generate(Intent.PRODUCT_INQUIRY, {}, Language.EN, [], 10, 0.85)
    assert reply == overview.text(Language.EN)

    french = generator.generate(Intent.PRODUCT_INQUIRY, {}, Language.FR, [], 10, 0.85)
    assert french == overview.text(Language.FR)


def test_segment_paragraph_wins_over_the_overview_on_the_first_turn(generator):
    reply = generator.generate(Intent.PRODUCT_INQUIRY, {"segment": "upstream"}, Language.FR, [], 10, 0.85)
    assert reply == SEGMENT_RESPONSES["fr"]["upstream"]


def test_keyword_lookup_when_the_intent_item_is_out_of_reach(generator, product_history):
    knowledge = KnowledgeStore()
    reply = generator.generate(
        Intent.TECHNICAL_INQUIRY, {}, Language.EN, product_history, 0, 0.8,
        query="Is the platform ISO certified for security audits?",
    )
    assert reply == knowledge.get("security_compliance").text(Language.EN)

    unmatched = generator.generate(
        Intent.TECHNICAL_INQUIRY, {}, Language.EN, product_history, 0, 0.8, query="hmm, tell me more",
    )
    assert unmatched == RESPONSES["en"]["needMoreInfo"]


def test_regional_greeting_on_the_first_turn(generator):
    reply = generator.generate(Intent.GREETING, {"region": "nigeria"}, Language.EN, [], 0, 1.0)
    assert reply == REGIONAL_CONTENT["africa"]["en"]["greeting"]

    french = generator.generate(Intent.GREETING, {"region": "north africa"}, Language.FR, [], 0, 1.0)
    assert french == REGIONAL_CONTENT["africa"]["fr"]["greeting"]


def test_regional_greeting_needs_a_first_turn_and_localized_content(generator, product_history):
    later = generator.generate(Intent.GREETING, {"region": "ghana"}, Language.EN, product_history, 0, 1.0)
    assert later in GREETINGS["en"]

    swahili = generator.generate(Intent.GREETING, {"region": "angola"}, Language.SW, [], 0, 1.0)
    assert swahili in GREETINGS["sw"]

    elsewhere = generator.generate(Intent.GREETING, {"region": "middle east"}, Language.EN, [], 0, 1.0)
    assert elsewhere in GREETINGS["en"]


def test_first_turn_fallback_uses_the_regional_greeting(generator):
    reply = generator.generate(Intent.GENERAL_INQUIRY, {"region": "africa"}, Language.EN, [], 0, 0.3)
    assert reply == REGIONAL_CONTENT["africa"]["en"]["greeting"]


def test_high_score_pricing_override(rng, product_history):
    generator = ResponseGenerator(knowledge=KnowledgeStore(items=[]), rng=rng)
    hot = generator.generate(Intent.PRICING_INQUIRY, {}, Language.EN, product_history, 61, 0.9)
    assert hot == RESPONSES["en"]["highScorePricing"]

    warm = generator.generate(Intent.PRICING_INQUIRY, {}, Language.EN, product_history, 60, 0.9)
    assert warm == RESPONSES["en"]["needMoreInfo"]


def test_pricing_below_knowledge_threshold_uses_the_override(generator, product_history):
    reply = generator.generate(Intent.PRICING_INQUIRY, {}, Language.EN, product_history, 80, 0.85)
    assert reply == RESPONSES["en"]["highScorePricing"]


def test_lowest_confidence_uses_fallback_catalog(generator, product_history):
    reply = generator.generate(Intent.GENERAL_INQUIRY, {}, Language.EN, product_history, 0, 0.3)
    assert reply in DEFAULT_FALLBACKS[0].responses["en"]


def test_low_confidence_above_fallback_threshold_asks_for_more(generator, product_history):
    reply = generator.generate(Intent.PRODUCT_INQUIRY, {}, Language.EN, product_history, 0, 0.35)
    assert reply == RESPONSES["en"]["needMoreInfo"]


def test_low_confidence_first_turn_greets(generator):
    reply = generator.generate(Intent.GENERAL_INQUIRY, {}, Language.EN, [], 0, 0.3)
    assert reply in GREETINGS["en"]


@pytest.mark.parametrize("language", list(Language))
@pytest.mark.parametrize("confidence", [0.3, 0.5, 0.9, 1.0])
def test_reply_is_never_empty(generator, language, confidence):
    history = make_history(("hello", Intent.GREETING, 0.95))
    for intent in Intent:
        for entities in ({}, {"segment": "upstream"}):
            assert generator.generate(intent, entities, language, history, 70, confidence).strip()


def test_contextual_suggestions(generator):
    assert generator.suggestions(Intent.PRICING_INQUIRY, {}, Language.EN, 0) == [
        "Get a custom quote", "See ROI calculator", "Schedule pricing call", "Compare packages",
    ]
    assert generator.suggestions(Intent.PRODUCT_INQUIRY, {}, Language.FR, 60) == [
        "Planifier une démo personnalisée",
        "Discuter des options tarifaires",
        "Voir les capacités d'intégration",
        "Parler à un spécialiste",
    ]
    # other languages get the English list
    assert generator.suggestions(Intent.PRICING_INQUIRY, {}, Language.HA, 0)[3] == "Compare packages"


def test_product_suggestions_need_a_warm_lead(generator):
    overview = KnowledgeStore().get("product_overview")
    assert generator.suggestions(Intent.PRODUCT_INQUIRY, {}, Language.EN, 50, 0.85) == overview.follow_ups(Language.EN)


def test_knowledge_follow_ups_as_suggestions(generator):
    knowledge = KnowledgeStore()
    assert generator.suggestions(Intent.INTEGRATION_INQUIRY, {}, Language.FR, 0, 0.8) == \
        knowledge.get("integration").follow_up_questions["fr"]
    assert generator.suggestions(Intent.SUPPORT_INQUIRY, {}, Language.AR, 0, 0.9) == \
        knowledge.get("support").follow_up_questions["en"]

    # below the item threshold the quick actions are offered instead
    assert generator.suggestions(Intent.TECHNICAL_INQUIRY, {}, Language.EN, 0, 0.8) == QUICK_ACTIONS["en"][:4]
    assert generator.suggestions(Intent.GREETING, {}, Language.EN, 0, 1.0) == QUICK_ACTIONS["en"][:4]


def test_low_confidence_suggestions(generator):
    low = generator.suggestions(Intent.GENERAL_INQUIRY, {}, Language.EN, 0, 0.3)
    assert low == DEFAULT_FALLBACKS[0].suggestions["en"]

    unmatched = generator.suggestions(Intent.GENERAL_INQUIRY, {}, Language.FR, 0, 0.35)
    assert unmatched == DEFAULT_FALLBACKS[1].suggestions["fr"]


@pytest.mark.parametrize("language", list(Language))
def test_at_most_four_suggestions(generator, language):
    for intent in Intent:
        assert 0 < len(generator.suggestions(intent, {}, language, 90, 0.9)) <= 4


@pytest.mark.parametrize(
    "previous,intent,lead_score,escalated,count,expected",
    [
        (ConversationStage.GREETING, Intent.GREETING, 0, False, 1, ConversationStage.GREETING),
        (ConversationStage.GREETING, Intent.PRODUCT_INQUIRY, 0, False, 3, ConversationStage.INFORMATION),
        (ConversationStage.INFORMATION, Intent.PRICING_INQUIRY, 20, False, 5, ConversationStage.QUALIFICATION),
        (ConversationStage.INFORMATION, Intent.SUPPORT_INQUIRY, 55, False, 5, ConversationStage.QUALIFICATION),
        (ConversationStage.QUALIFICATION, Intent.GREETING, 10, False, 7, ConversationStage.QUALIFICATION),
        (ConversationStage.INFORMATION, Intent.COMPLAINT, 10, True, 7, ConversationStage.ESCALATION),
        (ConversationStage.ESCALATION, Intent.GREETING, 0, False, 9, ConversationStage.ESCALATION),
        (ConversationStage.CLOSING, Intent.DEMO_REQUEST, 90, True, 9, ConversationStage.CLOSING),
    ],
)
def test_next_stage(previous, intent, lead_score, escalated, count, expected):
    assert ResponseGenerator.next_stage(previous, intent, lead_score, escalated, count) == expected
