import pytest

from oilflow_assistant.models.chat import Intent, Language
from oilflow_assistant.services.intent_classifier import IntentClassifier


@pytest.fixture
def classifier():
    return IntentClassifier()


def test_hello_is_a_confident_greeting(classifier):
    match = classifier.classify("hello", Language.EN, [])
    assert match.intent == Intent.GREETING
    assert match.confidence >= 0.9


def test_pricing_question(classifier):
    match = classifier.classify("what is your pricing?", Language.EN, [])
    assert match.intent == Intent.PRICING_INQUIRY
    assert match.confidence >= 0.85
    assert match.context_note["matchedPatterns"] == ["pricing"]


@pytest.mark.parametrize("message", ["xqzv blorf", "   ", ""])
def test_unmatched_messages_fall_back_to_general_inquiry(classifier, message):
    match = classifier.classify(message, Language.EN, [])
    assert match.intent == Intent.GENERAL_INQUIRY
    assert match.confidence == 0.3


def test_each_extra_pattern_adds_five_points(classifier):
    match = classifier.classify("price and cost", Language.EN, [Intent.GREETING])
    assert match.intent == Intent.PRICING_INQUIRY
    assert match.confidence == pytest.approx(0.95)


def test_confidence_is_capped_at_one(classifier):
    match = classifier.classify("demo trial preview", Language.EN, [])
    assert match.intent == Intent.DEMO_REQUEST
    assert match.confidence == 1.0


def test_product_context_boosts_pricing(classifier):
    match = classifier.classify("the price", Language.EN, [Intent.PRODUCT_INQUIRY])
    assert match.intent == Intent.PRICING_INQUIRY
    assert match.confidence == pytest.approx(1.0)


def test_technical_context_boosts_integration(classifier):
    match = classifier.classify("integration", Language.EN, [Intent.TECHNICAL_INQUIRY])
    assert match.confidence == pytest.approx(0.9)


def test_greeting_is_penalised_after_the_first_turn(classifier):
    match = classifier.classify("hello", Language.EN, [Intent.PRODUCT_INQUIRY])
    assert match.intent == Intent.GREETING
    assert match.confidence == pytest.approx(0.75)

    explicit = classifier.classify("hello", Language.EN, [], is_first_turn=False)
    assert explicit.confidence == pytest.approx(0.75)


def test_only_last_three_recent_intents_count(classifier):
    recent = [Intent.PRODUCT_INQUIRY, Intent.GREETING, Intent.GREETING, Intent.GREETING]
    match = classifier.classify("price", Language.EN, recent)
    assert match.confidence == pytest.approx(0.9)


def test_ties_go_to_the_intent_declared_first(classifier):
    # product_inquiry and support_inquiry both score 0.85
    match = classifier.classify("product support", Language.EN, [Intent.GREETING])
    assert match.intent == Intent.PRODUCT_INQUIRY


def test_french_greeting_beats_french_quote_request(classifier):
    match = classifier.classify("Bonjour, je veux un devis", Language.FR, [])
    assert match.intent == Intent.GREETING
    assert match.confidence == pytest.approx(1.0)


def test_language_tables_are_only_used_for_their_language(classifier):
    french = classifier.classify("je voudrais un devis", Language.FR, [])
    assert french.intent == Intent.PRICING_INQUIRY
    assert french.confidence == pytest.approx(0.9)
    assert french.context_note["patternLanguage"] == "fr"

    english = classifier.classify("je voudrais un devis", Language.EN, [])
    assert english.intent == Intent.GENERAL_INQUIRY


def test_swahili_greeting(classifier):
    match = classifier.classify("Habari, nataka kujua bei gani", Language.SW, [])
    assert match.intent == Intent.GREETING


def test_entities_are_extracted_even_without_an_intent(classifier):
    match = classifier.classify("We are a large upstream operator in Nigeria", Language.EN, [])
    assert match.intent == Intent.GENERAL_INQUIRY
    assert match.entities == {"companySize": "large", "segment": "upstream", "region": "nigeria"}


def test_substring_matching_is_preserved(classifier):
    # "latest" contains "test"
    match = classifier.classify("your latest release", Language.EN, [Intent.GREETING])
    assert match.intent == Intent.DEMO_REQUEST
