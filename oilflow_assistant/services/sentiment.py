"""
Sentiment scoring from per-language keyword lists.
"""
from oilflow_assistant.models.chat import Language

POSITIVE_WORDS = {
    Language.EN: ["good", "great", "excellent", "amazing", "helpful", "thanks", "perfect", "love", "awesome", "fantastic"],
    Language.FR: ["bon", "bien", "excellent", "magnifique", "merci", "parfait", "fantastique", "super"],
    Language.AR: ["جيد", "ممتاز", "رائع", "شكرا", "مثالي"],
    Language.SW: ["nzuri", "bora", "mzuri", "vizuri", "asante"],
    Language.HA: ["mai kyau", "kyakkyawa", "nagari", "na gode"],
}

NEGATIVE_WORDS = {
    Language.EN: ["bad", "terrible", "awful", "hate", "disappointed", "frustrated", "annoying", "useless", "poor"],
    Language.FR: ["mauvais", "terrible", "nul", "frustré", "déçu", "ennuyeux"],
    Language.AR: ["سيء", "فظيع", "محبط", "غاضب"],
    Language.SW: ["mbaya", "vibaya", "uchungu", "hasira"],
    Language.HA: ["mugu", "mummuna", "ba kyau", "bacin rai"],
}

# Hits needed to saturate the score
SATURATION = 3


class SentimentScorer:
    """Scores messages in [-1, 1]: +1 per positive word, -1 per negative word, / 3."""

    def score(self, message: str, language: Language = Language.EN) -> float:
        content = message.lower()
        positive = POSITIVE_WORDS.get(language, POSITIVE_WORDS[Language.EN])
        negative = NEGATIVE_WORDS.get(language, NEGATIVE_WORDS[Language.EN])

        raw = sum(1 for word in positive if word in content)
        raw -= sum(1 for word in negative if word in content)

        return max(-1.0, min(1.0, raw / SATURATION))
