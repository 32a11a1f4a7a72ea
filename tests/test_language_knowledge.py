import pytest

from oilflow_assistant.models.chat import Intent, Language
from oilflow_assistant.services.knowledge_base import KnowledgeStore, get_regional_content
from oilflow_assistant.services.language_service import (
    RESPONSES,
    LanguageDetector,
    TranslationService,
    get_region_for_language,
    is_rtl_language,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("مرحبا، أريد عرض توضيحي", Language.AR),
        ("Bonjour, je voudrais une démo", Language.FR),
        ("Habari yako", Language.SW),
        ("na gode sosai", Language.HA),
        ("Sannu", Language.HA),
        ("I'd like a demo", Language.EN),
        ("Can we talk about pricing?", Language.EN),
        ("I have a comment about pricing", Language.EN),
        ("Do you support non-profit companies?", Language.EN),
        ("Comment ça marche, parlez-moi du prix", Language.FR),
    ],
)
def test_language_detection(text, expected):
    assert LanguageDetector().detect(text) == expected


def test_detection_falls_back_to_the_default():
    assert LanguageDetector(Language.FR).detect("xyz") == Language.FR


def test_ui_text_lookup(rng):
    translations = TranslationService(rng)
    assert translations.get_ui_text("send", Language.HA) == "Aika"
    assert translations.get_ui_text("nope") == "[ui.nope]"


def test_response_lookup_falls_back_to_english(rng):
    translations = TranslationService(rng)
    assert translations.get_response("complaintAcknowledgement", Language.AR) == RESPONSES["en"]["complaintAcknowledgement"]
    assert translations.get_response("missing") == "[responses.missing]"
    assert translations.has_response("demoOffer", Language.SW)
    assert not translations.has_response("missing")


def test_quick_actions_are_copies(rng):
    translations = TranslationService(rng)
    actions = translations.get_quick_actions(Language.EN)
    actions.clear()
    assert len(translations.get_quick_actions(Language.EN)) == 6


def test_language_configuration():
    assert is_rtl_language(Language.AR)
    assert not is_rtl_language(Language.EN)
    assert get_region_for_language(Language.HA) == "west_africa"
    assert get_region_for_language(Language.FR) == "africa"


def test_find_item_prefers_the_highest_threshold():
    store = KnowledgeStore()
    assert store.find_item("tell me about refinery quality").id == "downstream_solutions"
    assert store.find_item("what does it cost and how about the api").id == "pricing_roi"
    assert store.find_item("hello") is None


def test_find_item_ties_go_to_the_first_item():
    assert KnowledgeStore().find_item("upstream pipeline").id == "upstream_solutions"


def test_find_for_intent_respects_thresholds():
    store = KnowledgeStore()
    assert store.find_for_intent(Intent.PRICING_INQUIRY, 0.89) is None
    assert store.find_for_intent(Intent.PRICING_INQUIRY, 0.9).id == "pricing_roi"
    assert store.find_for_intent(Intent.GREETING, 1.0) is None


def test_product_overview_answers_product_questions():
    store = KnowledgeStore()
    assert store.find_for_intent(Intent.PRODUCT_INQUIRY, 0.85).id == "product_overview"
    assert store.find_for_intent(Intent.PRODUCT_INQUIRY, 0.79) is None


def test_follow_ups_fall_back_to_english():
    item = KnowledgeStore().get("pricing_roi")
    assert item.follow_ups(Language.FR) == item.follow_up_questions["fr"]
    assert item.follow_ups(Language.SW) == item.follow_up_questions["en"]


def test_regional_content():
    assert get_regional_content("africa", "greeting", Language.FR).startswith("Bienvenue")
    assert get_regional_content("nigeria", "greeting").startswith("Welcome!")
    assert get_regional_content("north africa", "greeting") == get_regional_content("africa", "greeting")
    assert get_regional_content("africa", "greeting", Language.SW) is None
    assert get_regional_content("middle east", "greeting") is None
    assert get_regional_content(None, "greeting") is None
    assert get_regional_content("africa", "unknown") is None
