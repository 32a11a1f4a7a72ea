"""
Intent Classification Service - keyword scoring with conversational context.
Transforms a raw visitor message into an intent, a confidence and entities.
"""
import logging
from typing import Dict, List, Optional, Sequence

from oilflow_assistant.models.chat import Intent, IntentMatch, Language
from oilflow_assistant.services.entity_extractor import EntityExtractor

logger = logging.getLogger(__name__)

NO_MATCH_CONFIDENCE = 0.3
EXTRA_MATCH_STEP = 0.05
RECENT_INTENT_WINDOW = 3

BASE_CONFIDENCE: Dict[Intent, float] = {
    Intent.DEMO_REQUEST: 0.95,
    Intent.PRICING_INQUIRY: 0.90,
    Intent.PRODUCT_INQUIRY: 0.85,
    Intent.INTEGRATION_INQUIRY: 0.80,
    Intent.TECHNICAL_INQUIRY: 0.80,
    Intent.SUPPORT_INQUIRY: 0.85,
    Intent.COMPLAINT: 0.85,
    Intent.GREETING: 0.95,
}

INTENT_PATTERNS: Dict[Language, Dict[Intent, List[str]]] = {
    Language.EN: {
        Intent.DEMO_REQUEST: ["demo", "demonstration", "show me", "see how", "trial", "test", "preview"],
        Intent.PRICING_INQUIRY: ["price", "cost", "pricing", "expensive", "cheap", "budget", "roi", "investment", "value"],
        Intent.PRODUCT_INQUIRY: ["product", "feature", "capability", "solution", "what does", "how does", "tell me about"],
        Intent.INTEGRATION_INQUIRY: ["integration", "api", "connect", "interface", "compatibility", "integrate with"],
        Intent.TECHNICAL_INQUIRY: ["technical", "architecture", "security", "implementation", "deployment", "infrastructure"],
        Intent.SUPPORT_INQUIRY: ["support", "help", "assistance", "training", "service", "maintenance"],
        Intent.COMPLAINT: ["problem", "issue", "bug", "error", "not working", "disappointed", "frustrated"],
        Intent.GREETING: ["hello", "hi", "hey", "good morning", "good afternoon", "bonjour", "salut"],
    },
    Language.FR: {
        Intent.DEMO_REQUEST: ["démonstration", "démo", "montrer", "voir comment", "essai", "test"],
        Intent.PRICING_INQUIRY: ["prix", "coût", "tarification", "cher", "budget", "investissement", "devis"],
        Intent.PRODUCT_INQUIRY: ["produit", "fonctionnalité", "capacité", "solution", "que fait", "comment fait"],
        Intent.GREETING: ["bonjour", "salut", "bonsoir"],
    },
    Language.AR: {
        Intent.DEMO_REQUEST: ["عرض توضيحي"],
        Intent.PRICING_INQUIRY: ["سعر", "تكلفة"],
        Intent.PRODUCT_INQUIRY: ["منتج"],
        Intent.GREETING: ["مرحبا", "السلام عليكم"],
    },
    Language.SW: {
        Intent.DEMO_REQUEST: ["onyesho"],
        Intent.PRICING_INQUIRY: ["bei gani", "gharama"],
        Intent.PRODUCT_INQUIRY: ["bidhaa"],
        Intent.GREETING: ["habari", "jambo", "karibu"],
    },
    Language.HA: {
        Intent.DEMO_REQUEST: ["zanga-zanga"],
        Intent.PRICING_INQUIRY: ["farashi"],
        Intent.PRODUCT_INQUIRY: ["samfur"],
        Intent.GREETING: ["sannu", "barka"],
    },
}


class IntentClassifier:
    """
    Classifies a message into one of the known intents.

    Each pattern table is scored on its own: for every intent with at least
    one pattern in the lower-cased message,
    confidence = min(base + (matches - 1) * 0.05 + context boost, 1.0).
    The English table is always scored, plus the table for the message
    language. The highest confidence wins; ties go to the intent declared
    first in ``Intent``.
    """

    def __init__(self, entity_extractor: Optional[EntityExtractor] = None):
        self.entity_extractor = entity_extractor or EntityExtractor()

    @staticmethod
    def _context_boost(intent: Intent, recent_intents: Sequence[Intent], is_first_turn: bool) -> float:
        if intent == Intent.DEMO_REQUEST and Intent.PRODUCT_INQUIRY in recent_intents:
            return 0.1
        if intent == Intent.PRICING_INQUIRY and Intent.PRODUCT_INQUIRY in recent_intents:
            return 0.15
        if intent == Intent.INTEGRATION_INQUIRY and Intent.TECHNICAL_INQUIRY in recent_intents:
            return 0.1
        if intent == Intent.GREETING:
            return 0.1 if is_first_turn else -0.2
        return 0.0

    def classify(
        self,
        message: str,
        language: Language = Language.EN,
        recent_intents: Optional[Sequence[Intent]] = None,
        is_first_turn: Optional[bool] = None,
    ) -> IntentMatch:
        """
        Classify a single message.

        Args:
            message: Visitor message text
            language: Message language; selects the extra pattern table
            recent_intents: Intents of earlier turns, oldest first
            is_first_turn: Defaults to "no recent intents"

        Returns:
            IntentMatch with entities filled in
        """
        recent = list(recent_intents or [])[-RECENT_INTENT_WINDOW:]
        if is_first_turn is None:
            is_first_turn = not recent

        text = message.strip().lower()
        if not text:
            return IntentMatch(intent=Intent.GENERAL_INQUIRY, confidence=NO_MATCH_CONFIDENCE)

        tables = [Language.EN] if language == Language.EN else [Language.EN, language]

        # intent -> (confidence, table language, matched patterns), best table per intent
        scored: Dict[Intent, tuple] = {}
        for table_language in tables:
            for intent, patterns in INTENT_PATTERNS.get(table_language, {}).items():
                matched = [p for p in patterns if p in text]
                if not matched:
                    continue
                confidence = min(
                    BASE_CONFIDENCE[intent]
                    + (len(matched) - 1) * EXTRA_MATCH_STEP
                    + self._context_boost(intent, recent, is_first_turn),
                    1.0,
                )
                if intent not in scored or confidence > scored[intent][0]:
                    scored[intent] = (confidence, table_language, matched)

        best_intent = None
        for intent in Intent:
            if intent in scored and (best_intent is None or scored[intent][0] > scored[best_intent][0]):
                best_intent = intent

        if best_intent is None or scored[best_intent][0] <= NO_MATCH_CONFIDENCE:
            logger.debug(f"No intent matched: {text[:50]}")
            return IntentMatch(
                intent=Intent.GENERAL_INQUIRY,
                confidence=NO_MATCH_CONFIDENCE,
                entities=self.entity_extractor.extract(message),
            )

        confidence, table_language, matched = scored[best_intent]
        logger.info(f"Intent: {best_intent.value} ({confidence:.2f}) via {table_language.value} patterns")

        return IntentMatch(
            intent=best_intent,
            confidence=max(0.0, confidence),
            entities=self.entity_extractor.extract(message, best_intent),
            context_note={"matchedPatterns": matched, "patternLanguage": table_language.value},
        )
