"""
Response Generator - picks the assistant reply, quick replies and stage for a turn.
"""
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from oilflow_assistant.models.chat import (
    MAX_SUGGESTIONS,
    ConversationStage,
    Intent,
    Language,
    Message,
)
from oilflow_assistant.models.escalation import FallbackTrigger
from oilflow_assistant.services.escalation import EscalationEngine
from oilflow_assistant.services.knowledge_base import KnowledgeStore, get_regional_content
from oilflow_assistant.services.language_service import TranslationService

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_THRESHOLD = 0.4
FALLBACK_CONFIDENCE = 0.3
HIGH_SCORE_PRICING_THRESHOLD = 60
CONTEXTUAL_SUGGESTION_SCORE = 50

# Intent -> response key for template replies
TEMPLATE_RESPONSES = {
    Intent.DEMO_REQUEST: "demoOffer",
    Intent.COMPLAINT: "complaintAcknowledgement",
}

SEGMENT_FAMILY = {
    "upstream": "upstream",
    "exploration": "upstream",
    "production": "upstream",
    "midstream": "midstream",
    "downstream": "downstream",
    "refining": "downstream",
}

SEGMENT_RESPONSES = {
    "en": {
        "upstream": "For upstream operations, OilFlow BIDEC ERP provides comprehensive exploration data management, drilling optimization, and production forecasting capabilities that have helped companies reduce operational costs by up to 30%.",
        "midstream": "Our midstream solutions optimize pipeline operations, storage management, and transportation logistics, typically improving efficiency by 20-25% while maintaining strict safety standards.",
        "downstream": "In downstream operations, our platform enhances refinery optimization, product quality control, and distribution management, with clients seeing 15-20% improvement in operational margins.",
    },
    "fr": {
        "upstream": "Pour les opérations amont, OilFlow BIDEC ERP fournit une gestion complète des données d'exploration, l'optimisation du forage et des capacités de prévision de production qui ont aidé les entreprises à réduire les coûts opérationnels jusqu'à 30%.",
        "midstream": "Nos solutions midstream optimisent les opérations de pipeline, la gestion du stockage et la logistique de transport, améliorant généralement l'efficacité de 20-25% tout en maintenant des normes de sécurité strictes.",
        "downstream": "Dans les opérations aval, notre plateforme améliore l'optimisation des raffineries, le contrôle qualité des produits et la gestion de distribution, avec des clients voyant une amélioration de 15-20% des marges opérationnelles.",
    },
}

CONTEXTUAL_SUGGESTIONS = {
    Intent.PRODUCT_INQUIRY: {
        "en": ["Schedule a personalized demo", "Discuss pricing options", "See integration capabilities", "Talk to a specialist"],
        "fr": ["Planifier une démo personnalisée", "Discuter des options tarifaires", "Voir les capacités d'intégration", "Parler à un spécialiste"],
    },
    Intent.PRICING_INQUIRY: {
        "en": ["Get a custom quote", "See ROI calculator", "Schedule pricing call", "Compare packages"],
        "fr": ["Obtenir un devis personnalisé", "Voir le calculateur de ROI", "Planifier un appel tarifaire", "Comparer les packages"],
    },
}

STAGE_ORDER = [
    ConversationStage.GREETING,
    ConversationStage.INFORMATION,
    ConversationStage.QUALIFICATION,
    ConversationStage.ESCALATION,
    ConversationStage.CLOSING,
]
TERMINAL_STAGES = (ConversationStage.ESCALATION, ConversationStage.CLOSING)
QUALIFYING_INTENTS = (Intent.DEMO_REQUEST, Intent.PRICING_INQUIRY)


class ResponseGenerator:
    """
    Resolves the assistant reply in order: knowledge item, intent template,
    entity-specific paragraph, lead-score override, keyword lookup, fallback.
    A product question that names a segment gets the segment paragraph ahead
    of the product overview.
    """

    def __init__(
        self,
        knowledge: Optional[KnowledgeStore] = None,
        translations: Optional[TranslationService] = None,
        escalation: Optional[EscalationEngine] = None,
        rng: Optional[random.Random] = None,
        low_confidence_threshold: float = LOW_CONFIDENCE_THRESHOLD,
    ):
        self.rng = rng or random.Random()
        self.knowledge = knowledge or KnowledgeStore()
        self.translations = translations or TranslationService(self.rng)
        self.escalation = escalation or EscalationEngine()
        self.low_confidence_threshold = low_confidence_threshold

    def generate(
        self,
        intent: Intent,
        entities: Dict[str, Any],
        language: Language,
        history: Sequence[Message],
        lead_score: int,
        confidence: float = 1.0,
        query: str = "",
    ) -> str:
        """
        Reply text for a classified turn. Never empty.

        `query` is the visitor's message; when nothing else resolves it is
        matched against the knowledge base keywords.
        """
        if confidence >= self.low_confidence_threshold:
            reply = self._resolve(intent, entities, language, history, lead_score, confidence, query)
            if reply:
                return reply

        return self._fallback(language, entities, history, confidence)

    def _resolve(
        self,
        intent: Intent,
        entities: Dict[str, Any],
        language: Language,
        history: Sequence[Message],
        lead_score: int,
        confidence: float,
        query: str,
    ) -> Optional[str]:
        segment = SEGMENT_FAMILY.get(entities.get("segment", ""))
        if intent == Intent.PRODUCT_INQUIRY and segment:
            paragraphs = SEGMENT_RESPONSES.get(language.value, SEGMENT_RESPONSES["en"])
            return paragraphs[segment]

        item = self.knowledge.find_for_intent(intent, confidence)
        if item:
            logger.debug(f"Reply from knowledge item {item.id}")
            return item.text(language)

        if intent == Intent.GREETING:
            return self._greeting(language, entities, history)
        key = TEMPLATE_RESPONSES.get(intent)
        if key and self.translations.has_response(key, language):
            return self.translations.get_response(key, language)

        if lead_score > HIGH_SCORE_PRICING_THRESHOLD and intent == Intent.PRICING_INQUIRY:
            return self.translations.get_response("highScorePricing", language)

        item = self.knowledge.find_item(query) if query else None
        if item:
            logger.debug(f"Reply from keyword match on knowledge item {item.id}")
            return item.text(language)

        return None

    def _greeting(self, language: Language, entities: Dict[str, Any], history: Sequence[Message]) -> str:
        if not history:
            regional = get_regional_content(entities.get("region"), "greeting", language)
            if regional:
                return regional
        return self.translations.get_random_greeting(language)

    def _fallback(
        self,
        language: Language,
        entities: Dict[str, Any],
        history: Sequence[Message],
        confidence: float,
    ) -> str:
        if not history:
            return self._greeting(language, entities, history)

        if confidence <= FALLBACK_CONFIDENCE:
            fallback = self.escalation.fallback_for(FallbackTrigger.LOW_CONFIDENCE, confidence)
            if fallback:
                options = fallback.responses.get(language.value) or fallback.responses["en"]
                return self.rng.choice(options)

        return self.translations.get_response("needMoreInfo", language)

    def suggestions(
        self,
        intent: Intent,
        entities: Dict[str, Any],
        language: Language,
        lead_score: int,
        confidence: float = 1.0,
    ) -> List[str]:
        """
        Up to four quick replies for the widget.

        Contextual lists first, then the follow-up questions of the intent's
        knowledge item, then fallback suggestions for low confidence, then the
        language's quick actions.
        """
        contextual = CONTEXTUAL_SUGGESTIONS.get(intent)
        if intent == Intent.PRODUCT_INQUIRY and lead_score <= CONTEXTUAL_SUGGESTION_SCORE:
            contextual = None
        item = self.knowledge.find_for_intent(intent, confidence)

        if contextual:
            options = contextual.get(language.value) or contextual["en"]
        elif item and item.follow_up_questions:
            options = item.follow_ups(language)
        elif confidence < self.low_confidence_threshold:
            fallback = self.escalation.fallback_for(FallbackTrigger.LOW_CONFIDENCE, confidence) \
                or self.escalation.fallback_for(FallbackTrigger.NO_MATCH)
            options = (fallback.suggestions.get(language.value) or fallback.suggestions["en"]) if fallback \
                else self.translations.get_quick_actions(language)
        else:
            options = self.translations.get_quick_actions(language)

        return list(options)[:MAX_SUGGESTIONS]

    @staticmethod
    def next_stage(
        previous: ConversationStage,
        intent: Intent,
        lead_score: int,
        escalated: bool,
        message_count: int,
    ) -> ConversationStage:
        """Advisory stage; moves forward only and stops at escalation or closing."""
        if previous in TERMINAL_STAGES:
            return previous

        if escalated:
            candidate = ConversationStage.ESCALATION
        elif intent in QUALIFYING_INTENTS or lead_score >= CONTEXTUAL_SUGGESTION_SCORE:
            candidate = ConversationStage.QUALIFICATION
        elif intent == Intent.GREETING and message_count <= 1:
            candidate = ConversationStage.GREETING
        else:
            candidate = ConversationStage.INFORMATION

        if STAGE_ORDER.index(candidate) < STAGE_ORDER.index(previous):
            return previous
        return candidate
