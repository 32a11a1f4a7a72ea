import random

import pytest

from oilflow_assistant.models.chat import Intent, Language
from oilflow_assistant.services.entity_extractor import EntityExtractor
from oilflow_assistant.services.lead_scoring import LeadScoreAccumulator
from oilflow_assistant.services.sentiment import NEGATIVE_WORDS, SentimentScorer


@pytest.mark.parametrize(
    "message,expected",
    [
        ("We are a large enterprise", {"companySize": "large"}),
        ("Fortune 500 refiner", {"companySize": "large"}),
        ("small startup in north africa", {"companySize": "small", "region": "north africa"}),
        ("growing midstream and refining business", {"companySize": "medium", "segment": "midstream"}),
        ("we need this ASAP", {"urgency": "high"}),
        ("operations in the Middle East", {"region": "middle east"}),
        ("nothing useful here", {}),
    ],
)
def test_entity_extraction(message, expected):
    assert EntityExtractor().extract(message) == expected


def test_entities_do_not_depend_on_intent():
    extractor = EntityExtractor()
    message = "urgent exploration project in Ghana"
    assert extractor.extract(message, Intent.GREETING) == extractor.extract(message, Intent.PRICING_INQUIRY)


def test_sentiment_counts_keywords():
    scorer = SentimentScorer()
    assert scorer.score("great, helpful, thanks") == pytest.approx(1.0)
    assert scorer.score("terrible") == pytest.approx(-1 / 3)
    assert scorer.score("the weather") == 0.0


def test_sentiment_is_clamped():
    scorer = SentimentScorer()
    assert scorer.score("good great excellent amazing perfect") == 1.0
    assert scorer.score("bad terrible awful hate useless") == -1.0


def test_sentiment_uses_language_lists():
    scorer = SentimentScorer()
    assert scorer.score("merci", Language.FR) == pytest.approx(1 / 3)
    assert scorer.score("good", Language.FR) == 0.0
    assert scorer.score("asante sana", Language.SW) == pytest.approx(1 / 3)


def test_sentiment_is_monotonic_in_positive_words():
    scorer = SentimentScorer()
    base = "the demo was bad"
    better = base + " but the team was helpful"
    best = better + " and fantastic"
    assert scorer.score(base) <= scorer.score(better) <= scorer.score(best)


@pytest.mark.parametrize(
    "language,base",
    [
        (Language.EN, "thanks, the team was great"),
        (Language.FR, "merci, c'est parfait"),
        (Language.AR, "شكرا، ممتاز"),
        (Language.SW, "asante, nzuri"),
        (Language.HA, "na gode, mai kyau"),
        # unknown codes score against the English lists
        ("pt", "obrigado, great support"),
    ],
)
def test_sentiment_never_rises_when_negative_words_are_added(language, base):
    scorer = SentimentScorer()
    negatives = NEGATIVE_WORDS.get(language, NEGATIVE_WORDS[Language.EN])

    message = base
    previous = scorer.score(message, language)
    for word in negatives:
        message = f"{message} {word}"
        current = scorer.score(message, language)
        assert current <= previous
        previous = current

    assert previous < scorer.score(base, language)


def test_increment_scales_base_points_by_confidence():
    scoring = LeadScoreAccumulator()
    assert scoring.increment(Intent.DEMO_REQUEST, {}, 0.95) == 24
    assert scoring.increment(Intent.PRICING_INQUIRY, {}, 0.9) == 18
    assert scoring.increment(Intent.GENERAL_INQUIRY, {}, 0.3) == 0


def test_increment_adds_entity_bonuses():
    entities = {"companySize": "large", "urgency": "high", "segment": "upstream"}
    assert LeadScoreAccumulator().increment(Intent.PRICING_INQUIRY, entities, 0.9) == 28


def test_increment_rounds_half_up():
    assert LeadScoreAccumulator().increment(Intent.GREETING, {}, 0.75) == 2


def test_apply_clamps():
    assert LeadScoreAccumulator.apply(95, 20) == 100
    assert LeadScoreAccumulator.apply(0, 0) == 0
    assert LeadScoreAccumulator.apply(10, -50) == 0


def test_score_stays_in_bounds_over_many_turns():
    rnd = random.Random(7)
    scoring = LeadScoreAccumulator()
    entity_options = [{}, {"companySize": "large"}, {"urgency": "high", "segment": "refining"}]
    score = 0
    for _ in range(200):
        intent = rnd.choice(list(Intent))
        delta = scoring.increment(intent, rnd.choice(entity_options), rnd.random())
        assert delta >= 0
        score = scoring.apply(score, delta)
        assert 0 <= score <= 100
    assert score == 100


def test_categorize():
    assert LeadScoreAccumulator.categorize(85)["category"] == "HOT"
    assert LeadScoreAccumulator.categorize(50)["category"] == "WARM"
    assert LeadScoreAccumulator.categorize(10)["category"] == "COLD"
