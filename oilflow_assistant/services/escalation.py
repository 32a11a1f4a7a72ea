"""
Escalation Engine - rule evaluation, fallback catalog and human handoff.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from oilflow_assistant.models.chat import Intent, Language, Message, Role, UserProfile
from oilflow_assistant.models.escalation import (
    EscalationAction,
    EscalationChannel,
    EscalationConditions,
    EscalationHandoff,
    EscalationPriority,
    EscalationResult,
    EscalationRule,
    EscalationTrigger,
    FallbackResponse,
    FallbackTrigger,
    HandoffMetrics,
    TurnContext,
)

logger = logging.getLogger(__name__)

DEFAULT_RULES: List[EscalationRule] = [
    EscalationRule(
        id="high_value_lead",
        trigger=EscalationTrigger.HIGH_LEAD_SCORE,
        conditions=EscalationConditions(lead_score_threshold=70, message_count_threshold=3),
        action=EscalationAction(
            channel=EscalationChannel.LIVE_CHAT,
            priority=EscalationPriority.HIGH,
            message={
                "en": "I can see you're very interested in our solutions! I'd like to connect you with one of our petroleum ERP specialists who can provide more detailed information and answer any specific questions you might have. Would you prefer a live chat or a phone call?",
                "fr": "Je vois que vous êtes très intéressé par nos solutions ! J'aimerais vous mettre en contact avec l'un de nos spécialistes ERP pétrolier qui peut fournir des informations plus détaillées et répondre à vos questions spécifiques. Préféreriez-vous un chat en direct ou un appel téléphonique ?",
                "ar": "أرى أنك مهتم جداً بحلولنا! أود أن أربطك بأحد متخصصي تخطيط الموارد البترولية لدينا الذي يمكنه تقديم معلومات أكثر تفصيلاً والإجابة على أي أسئلة محددة قد تكون لديك. هل تفضل الدردشة المباشرة أم المكالمة الهاتفية؟",
                "sw": "Naona una nia kubwa katika suluhisho zetu! Ningependa kukuunganisha na mmoja wa wataalamu wetu wa ERP ya petroli ambaye anaweza kutoa maelezo ya kina zaidi na kujibu maswali yoyote maalum unayoweza kuwa nayo. Je, ungependa mazungumzo ya moja kwa moja au simu?",
                "ha": "Ina ganin kuna sha'awar sosai ga bayar da shawarwarinmu! Ina so in haɗa ku da ɗaya daga cikin kwararrun ERP na mai da gas wanda zai iya ba da cikakkun bayanai da amsa duk wasu tambayoyi na musamman da kuke da su. Za ku fi son tattaunawa kai tsaye ko kiran waya?",
            },
        ),
    ),
    EscalationRule(
        id="demo_request_immediate",
        trigger=EscalationTrigger.DEMO_REQUEST,
        conditions=EscalationConditions(
            keyword_patterns=("demo", "demonstration", "show me", "see how", "trial", "test"),
        ),
        action=EscalationAction(
            channel=EscalationChannel.DEMO_BOOKING,
            priority=EscalationPriority.HIGH,
            message={
                "en": "Excellent! I'll help you schedule a personalized demonstration of OilFlow BIDEC ERP. A demo is the best way to see exactly how our solution can benefit your petroleum operations. Let me collect a few details to ensure we show you the most relevant features.",
                "fr": "Excellent ! Je vais vous aider à planifier une démonstration personnalisée d'OilFlow BIDEC ERP. Une démonstration est la meilleure façon de voir exactement comment notre solution peut bénéficier à vos opérations pétrolières. Permettez-moi de recueillir quelques détails pour m'assurer que nous vous montrons les fonctionnalités les plus pertinentes.",
            },
        ),
    ),
    EscalationRule(
        id="pricing_escalation",
        trigger=EscalationTrigger.PRICING_DISCUSSION,
        conditions=EscalationConditions(
            keyword_patterns=("price", "cost", "pricing", "budget", "expensive", "cheap", "roi", "investment"),
            intents=(Intent.PRICING_INQUIRY,),
            message_count_threshold=2,
        ),
        action=EscalationAction(
            channel=EscalationChannel.SALES_TEAM,
            priority=EscalationPriority.HIGH,
            message={
                "en": "I understand pricing is an important consideration for your decision. While I can provide general information about our value proposition, I'd like to connect you with our sales specialist who can discuss customized pricing based on your specific needs and provide detailed ROI calculations.",
                "fr": "Je comprends que le prix est une considération importante pour votre décision. Bien que je puisse fournir des informations générales sur notre proposition de valeur, j'aimerais vous mettre en contact avec notre spécialiste des ventes qui peut discuter de la tarification personnalisée basée sur vos besoins spécifiques.",
            },
        ),
    ),
    EscalationRule(
        id="technical_complexity",
        trigger=EscalationTrigger.COMPLEX_TECHNICAL_QUERY,
        conditions=EscalationConditions(
            keyword_patterns=("integration", "api", "architecture", "security", "compliance", "implementation", "migration"),
            message_count_threshold=3,
        ),
        action=EscalationAction(
            channel=EscalationChannel.TECHNICAL_SUPPORT,
            priority=EscalationPriority.MEDIUM,
            message={
                "en": "You're asking some great technical questions! I can provide high-level information, but for detailed technical discussions about integration, architecture, and implementation, I'd recommend connecting with our technical solutions architect who can dive deep into the specifics.",
                "fr": "Vous posez d'excellentes questions techniques ! Je peux fournir des informations de haut niveau, mais pour des discussions techniques détaillées sur l'intégration, l'architecture et l'implémentation, je recommande de vous connecter avec notre architecte de solutions techniques.",
            },
        ),
    ),
    EscalationRule(
        id="negative_sentiment",
        trigger=EscalationTrigger.NEGATIVE_SENTIMENT,
        conditions=EscalationConditions(sentiment_threshold=-0.5, message_count_threshold=2),
        action=EscalationAction(
            channel=EscalationChannel.LIVE_CHAT,
            priority=EscalationPriority.URGENT,
            message={
                "en": "I sense some concerns in our conversation. I want to ensure we address any issues or questions you might have. Would you like to speak with one of our senior customer success managers who can better assist with your specific situation?",
                "fr": "Je sens quelques préoccupations dans notre conversation. Je veux m'assurer que nous répondons à toutes les questions ou préoccupations que vous pourriez avoir. Souhaitez-vous parler avec l'un de nos gestionnaires de succès client senior qui peut mieux vous aider ?",
            },
        ),
    ),
    EscalationRule(
        id="repeated_confusion",
        trigger=EscalationTrigger.CONFUSION_DETECTED,
        conditions=EscalationConditions(repeat_threshold=3, time_threshold=10),
        action=EscalationAction(
            channel=EscalationChannel.LIVE_CHAT,
            priority=EscalationPriority.MEDIUM,
            message={
                "en": "I notice we might not be connecting well on this topic. Sometimes it's easier to clarify things with a quick conversation. Would you like to chat with one of our specialists who can provide more personalized assistance?",
                "fr": "Je remarque que nous ne nous connectons peut-être pas bien sur ce sujet. Parfois, il est plus facile de clarifier les choses avec une conversation rapide. Souhaitez-vous discuter avec l'un de nos spécialistes qui peut fournir une assistance plus personnalisée ?",
            },
        ),
    ),
]

DEFAULT_FALLBACKS: List[FallbackResponse] = [
    FallbackResponse(
        id="low_confidence_general",
        trigger=FallbackTrigger.LOW_CONFIDENCE,
        confidence_threshold=0.3,
        responses={
            "en": [
                "I want to make sure I give you the most accurate information. Could you help me understand what you're looking for by asking your question in a different way?",
                "I'm not entirely sure about that specific aspect. To provide you with the best answer, could you rephrase your question or provide more details?",
                "That's an interesting question! To give you the most relevant information, could you tell me a bit more about what you're trying to accomplish?",
            ],
            "fr": [
                "Je veux m'assurer de vous donner les informations les plus précises. Pourriez-vous m'aider à comprendre ce que vous cherchez en posant votre question différemment ?",
                "Je ne suis pas entièrement sûr de cet aspect spécifique. Pour vous fournir la meilleure réponse, pourriez-vous reformuler votre question ou fournir plus de détails ?",
                "C'est une question intéressante ! Pour vous donner les informations les plus pertinentes, pourriez-vous me dire un peu plus sur ce que vous essayez d'accomplir ?",
            ],
        },
        suggestions={
            "en": [
                "Tell me about your petroleum operations",
                "What challenges are you facing?",
                "How can we help optimize your business?",
                "Would you like to see a demo?",
            ],
            "fr": [
                "Parlez-moi de vos opérations pétrolières",
                "Quels défis rencontrez-vous ?",
                "Comment pouvons-nous aider à optimiser votre entreprise ?",
                "Souhaiteriez-vous voir une démonstration ?",
            ],
        },
    ),
    FallbackResponse(
        id="no_match_found",
        trigger=FallbackTrigger.NO_MATCH,
        responses={
            "en": [
                "I don't have specific information about that topic in my current knowledge base. However, I can connect you with one of our experts who can provide detailed answers to your question.",
                "That's outside my area of expertise, but I know someone who can help! Would you like me to arrange for you to speak with one of our petroleum industry specialists?",
                "I want to ensure you get the most comprehensive answer to that question. Let me connect you with someone who specializes in that area.",
            ],
            "fr": [
                "Je n'ai pas d'informations spécifiques sur ce sujet dans ma base de connaissances actuelle. Cependant, je peux vous mettre en contact avec l'un de nos experts qui peut fournir des réponses détaillées à votre question.",
                "C'est en dehors de mon domaine d'expertise, mais je connais quelqu'un qui peut aider ! Souhaitez-vous que j'organise pour vous de parler avec l'un de nos spécialistes de l'industrie pétrolière ?",
                "Je veux m'assurer que vous obtenez la réponse la plus complète à cette question. Permettez-moi de vous mettre en contact avec quelqu'un qui se spécialise dans ce domaine.",
            ],
        },
        suggestions={
            "en": ["Speak with an expert", "Schedule a consultation", "Get technical details", "Request more information"],
            "fr": ["Parler avec un expert", "Planifier une consultation", "Obtenir des détails techniques", "Demander plus d'informations"],
        },
        escalation_prompt=True,
    ),
]

# Minutes
WAIT_TIMES: Dict[EscalationChannel, int] = {
    EscalationChannel.LIVE_CHAT: 2,
    EscalationChannel.PHONE_CALL: 5,
    EscalationChannel.EMAIL: 60,
    EscalationChannel.DEMO_BOOKING: 1440,
    EscalationChannel.TECHNICAL_SUPPORT: 30,
    EscalationChannel.SALES_TEAM: 15,
}

CHANNEL_MESSAGES: Dict[EscalationChannel, Dict[str, str]] = {
    EscalationChannel.LIVE_CHAT: {
        "en": "I'm connecting you with one of our specialists now. They'll be with you shortly!",
        "fr": "Je vous mets en contact avec l'un de nos spécialistes maintenant. Ils seront avec vous sous peu !",
    },
    EscalationChannel.PHONE_CALL: {
        "en": "I'll arrange for one of our experts to call you within the next few minutes. Please ensure your phone is available.",
        "fr": "Je vais organiser pour qu'un de nos experts vous appelle dans les prochaines minutes. Assurez-vous que votre téléphone est disponible.",
    },
    EscalationChannel.EMAIL: {
        "en": "One of our specialists will follow up by email within the hour.",
        "fr": "L'un de nos spécialistes vous répondra par e-mail dans l'heure.",
    },
    EscalationChannel.DEMO_BOOKING: {
        "en": "Perfect! I'm redirecting you to our demo booking system where you can choose a convenient time.",
        "fr": "Parfait ! Je vous redirige vers notre système de réservation de démonstration où vous pouvez choisir un moment convenable.",
    },
    EscalationChannel.SALES_TEAM: {
        "en": "I'm connecting you with our sales team who can provide detailed pricing and ROI information.",
        "fr": "Je vous mets en contact avec notre équipe de vente qui peut fournir des informations détaillées sur les prix et le ROI.",
    },
    EscalationChannel.TECHNICAL_SUPPORT: {
        "en": "I'm escalating you to our technical team who can dive deep into the implementation details.",
        "fr": "Je vous transfère à notre équipe technique qui peut approfondir les détails d'implémentation.",
    },
}
DEFAULT_CHANNEL_MESSAGE = "I'm connecting you with the right specialist."

TOPIC_KEYWORDS = {
    "Product Information": ["product", "feature", "capability", "solution"],
    "Pricing": ["price", "cost", "pricing", "budget", "roi"],
    "Integration": ["integration", "api", "connect", "interface"],
    "Demo": ["demo", "demonstration", "show", "trial"],
    "Support": ["support", "help", "assistance", "training"],
    "Technical": ["technical", "architecture", "security", "implementation"],
}
TECHNICAL_TOPICS = ("Integration", "Technical")

SUMMARY_TEMPLATES = {
    "en": (
        "User conversation summary:\n"
        "- Main topics discussed: {topics}\n"
        "- Key questions asked: {questions}\n"
        "- User interest level: {interest}\n"
        "- Technical focus areas: {technical}"
    ),
    "fr": (
        "Résumé de la conversation utilisateur:\n"
        "- Principaux sujets discutés: {topics}\n"
        "- Questions clés posées: {questions}\n"
        "- Niveau d'intérêt de l'utilisateur: {interest}\n"
        "- Domaines techniques de focus: {technical}"
    ),
}


def localized(messages: Dict[str, str], language: Language) -> str:
    return messages.get(language.value) or messages["en"]


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class EscalationEngine:
    """
    Decides when a conversation should be handed to a human.

    Rules are evaluated in declaration order; every condition a rule sets must
    hold for it to match. Evaluation is pure: same context, same result.
    """

    def __init__(
        self,
        rules: Optional[Sequence[EscalationRule]] = None,
        fallbacks: Optional[Sequence[FallbackResponse]] = None,
    ):
        self.rules: List[EscalationRule] = list(DEFAULT_RULES if rules is None else rules)
        self.fallbacks: List[FallbackResponse] = list(DEFAULT_FALLBACKS if fallbacks is None else fallbacks)

    @staticmethod
    def _matches(rule: EscalationRule, context: TurnContext) -> bool:
        conditions = rule.conditions
        checked = False

        if conditions.lead_score_threshold is not None:
            if context.lead_score < conditions.lead_score_threshold:
                return False
            checked = True

        if conditions.sentiment_threshold is not None:
            if context.sentiment > conditions.sentiment_threshold:
                return False
            checked = True

        if conditions.repeat_threshold is not None:
            if context.consecutive_failures < conditions.repeat_threshold:
                return False
            checked = True

        if conditions.keyword_patterns or conditions.intents:
            text = context.last_message.lower()
            keyword_hit = any(pattern.lower() in text for pattern in conditions.keyword_patterns)
            # The current turn's intent is the last entry of recent_intents
            intent_hit = bool(context.recent_intents) and context.recent_intents[-1] in conditions.intents
            if not (keyword_hit or intent_hit):
                return False
            checked = True

        if conditions.message_count_threshold is not None:
            if context.message_count < conditions.message_count_threshold:
                return False

        return checked

    def evaluate(self, context: TurnContext) -> List[EscalationRule]:
        """Active rules matching the turn, in declaration order."""
        triggered = [rule for rule in self.rules if rule.active and self._matches(rule, context)]
        if triggered:
            logger.info(
                f"Escalation rules matched for {context.session_id}: {[r.id for r in triggered]}"
            )
        return triggered

    def fallback_for(self, trigger: FallbackTrigger, confidence: float = 0.0) -> Optional[FallbackResponse]:
        """First fallback for the trigger; low-confidence entries also need confidence <= threshold."""
        for fallback in self.fallbacks:
            if fallback.trigger != trigger:
                continue
            if trigger == FallbackTrigger.LOW_CONFIDENCE and fallback.confidence_threshold is not None:
                if confidence > fallback.confidence_threshold:
                    continue
            return fallback
        return None

    def add_rule(self, rule: EscalationRule) -> None:
        self.rules.append(rule)
        logger.info(f"Escalation rule added: {rule.id}")

    def active_rules(self) -> List[EscalationRule]:
        return [rule for rule in self.rules if rule.active]

    def get_rules(self, rule_ids: Sequence[str]) -> List[EscalationRule]:
        """Rules by id, in declaration order; unknown ids are ignored."""
        wanted = set(rule_ids)
        return [rule for rule in self.rules if rule.id in wanted]

    @staticmethod
    def _extract_topics(messages: List[str]) -> List[str]:
        text = " ".join(messages).lower()
        topics = [
            topic for topic, keywords in TOPIC_KEYWORDS.items()
            if any(keyword in text for keyword in keywords)
        ]
        return topics or ["General Inquiry"]

    def summarize(self, history: Sequence[Message], language: Language, lead_score: int = 0) -> str:
        """Agent-facing summary of the last five user messages."""
        user_messages = [m.content for m in history if m.role == Role.USER][-5:]
        topics = self._extract_topics(user_messages)
        questions = [m for m in user_messages if "?" in m][:3]
        technical = [t for t in topics if t in TECHNICAL_TOPICS]

        if lead_score >= 70:
            interest = "High"
        elif lead_score >= 40:
            interest = "Medium"
        else:
            interest = "Low"

        template = SUMMARY_TEMPLATES.get(language.value, SUMMARY_TEMPLATES["en"])
        return template.format(
            topics=", ".join(topics),
            questions=" | ".join(questions) or "-",
            interest=interest,
            technical=", ".join(technical) or "-",
        )

    def create_handoff(
        self,
        session_id: str,
        history: Sequence[Message],
        user_profile: Optional[UserProfile],
        triggered_rules: Sequence[EscalationRule],
        language: Language = Language.EN,
        lead_score: int = 0,
        sentiment: float = 0.0,
    ) -> EscalationHandoff:
        """Bundle conversation context for the human agent."""
        now = datetime.now(timezone.utc)
        duration = (now - _as_utc(history[0].timestamp)).total_seconds() if history else 0.0

        intents: List[Intent] = []
        for message in history:
            intent = message.metadata.intent
            if intent and intent not in intents:
                intents.append(intent)

        return EscalationHandoff(
            session_id=session_id,
            conversation_summary=self.summarize(history, language, lead_score),
            user_profile=user_profile,
            conversation_metrics=HandoffMetrics(
                duration=max(0.0, duration),
                message_count=len(history),
                lead_score=lead_score,
                intents=intents,
                sentiment=sentiment,
            ),
            triggered_rules=list(triggered_rules),
            timestamp=now,
            language=language,
        )

    @staticmethod
    def best_channel(handoff: EscalationHandoff) -> EscalationChannel:
        for priority in (EscalationPriority.URGENT, EscalationPriority.HIGH):
            for rule in handoff.triggered_rules:
                if rule.action.priority == priority:
                    return rule.action.channel
        if handoff.conversation_metrics.lead_score > 75:
            return EscalationChannel.SALES_TEAM
        return EscalationChannel.LIVE_CHAT

    def process_handoff(
        self,
        handoff: EscalationHandoff,
        preferred_channel: Optional[EscalationChannel] = None,
    ) -> EscalationResult:
        """Route a handoff to a channel and return the visitor-facing confirmation."""
        escalation_id = f"escalation_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
        channel = preferred_channel or self.best_channel(handoff)

        messages = CHANNEL_MESSAGES.get(channel)
        message = localized(messages, handoff.language) if messages else DEFAULT_CHANNEL_MESSAGE

        logger.info(
            f"Escalation {escalation_id} for session {handoff.session_id}: "
            f"channel={channel.value}, lead_score={handoff.conversation_metrics.lead_score}, "
            f"rules={[r.id for r in handoff.triggered_rules]}"
        )

        return EscalationResult(
            success=True,
            escalation_id=escalation_id,
            channel=channel,
            estimated_wait_time=WAIT_TIMES.get(channel),
            message=message,
        )
