"""
Language Service - language detection and localized chatbot strings.
Supports English, French, Arabic, Swahili and Hausa.
"""
import logging
import random
import re
from typing import Dict, List, Optional
from pydantic import BaseModel

from oilflow_assistant.models.chat import Language

logger = logging.getLogger(__name__)


class LanguageConfig(BaseModel):
    code: Language
    name: str
    native_name: str
    rtl: bool = False
    region: str = "global"


SUPPORTED_LANGUAGES: List[LanguageConfig] = [
    LanguageConfig(code=Language.EN, name="English", native_name="English", region="global"),
    LanguageConfig(code=Language.FR, name="French", native_name="Français", region="africa"),
    LanguageConfig(code=Language.AR, name="Arabic", native_name="العربية", rtl=True, region="mena"),
    LanguageConfig(code=Language.SW, name="Swahili", native_name="Kiswahili", region="east_africa"),
    LanguageConfig(code=Language.HA, name="Hausa", native_name="Harshen Hausa", region="west_africa"),
]

UI_TEXT: Dict[str, Dict[str, str]] = {
    "en": {
        "chatTitle": "OilFlow BIDEC ERP Assistant",
        "chatSubtitle": "Alex - Petroleum ERP Specialist",
        "placeholder": "Type your message...",
        "send": "Send",
        "typing": "Alex is typing...",
        "escalateToHuman": "Talk to Expert",
        "quickActions": "Quick Actions",
        "suggestions": "Suggestions",
        "error": "Something went wrong",
        "retry": "Retry",
    },
    "fr": {
        "chatTitle": "Assistant OilFlow BIDEC ERP",
        "chatSubtitle": "Alex - Spécialiste ERP Pétrolier",
        "placeholder": "Tapez votre message...",
        "send": "Envoyer",
        "typing": "Alex tape...",
        "escalateToHuman": "Parler à un Expert",
        "quickActions": "Actions Rapides",
        "suggestions": "Suggestions",
        "error": "Quelque chose a mal tourné",
        "retry": "Réessayer",
    },
    "ar": {
        "chatTitle": "مساعد OilFlow BIDEC ERP",
        "chatSubtitle": "أليكس - متخصص أنظمة تخطيط الموارد البترولية",
        "placeholder": "اكتب رسالتك...",
        "send": "إرسال",
        "typing": "أليكس يكتب...",
        "escalateToHuman": "التحدث مع خبير",
        "quickActions": "إجراءات سريعة",
        "suggestions": "اقتراحات",
        "error": "حدث خطأ ما",
        "retry": "إعادة المحاولة",
    },
    "sw": {
        "chatTitle": "Msaidizi wa OilFlow BIDEC ERP",
        "chatSubtitle": "Alex - Mtaalamu wa ERP ya Petroli",
        "placeholder": "Andika ujumbe wako...",
        "send": "Tuma",
        "typing": "Alex anaandika...",
        "escalateToHuman": "Ongea na Mtaalamu",
        "quickActions": "Vitendo vya Haraka",
        "suggestions": "Mapendekezo",
        "error": "Kuna tatizo",
        "retry": "Jaribu Tena",
    },
    "ha": {
        "chatTitle": "Mai Taimako na OilFlow BIDEC ERP",
        "chatSubtitle": "Alex - Kwararren ERP na Mai",
        "placeholder": "Rubuta sakonka...",
        "send": "Aika",
        "typing": "Alex yana rubuta...",
        "escalateToHuman": "Yi magana da Kwararre",
        "quickActions": "Ayyukan Gaggawa",
        "suggestions": "Shawarwari",
        "error": "Wani abu bai yi ba",
        "retry": "Sake gwadawa",
    },
}

GREETINGS: Dict[str, List[str]] = {
    "en": [
        "Hello! I'm Alex, your OilFlow BIDEC ERP assistant. I'm here to help you discover how our comprehensive ERP solution can transform your petroleum operations. What specific challenges are you facing in your business?",
        "Welcome to OilFlow BIDEC ERP! I'm Alex, and I specialize in helping petroleum companies optimize their operations. What brings you here today?",
        "Hi there! I'm Alex from OilFlow BIDEC ERP. I'm excited to help you learn about our industry-leading petroleum ERP solutions. What would you like to know?",
    ],
    "fr": [
        "Bonjour ! Je suis Alex, votre assistant OilFlow BIDEC ERP. Je suis là pour vous aider à découvrir comment notre solution ERP complète peut transformer vos opérations pétrolières. Quels défis spécifiques rencontrez-vous dans votre entreprise ?",
        "Bienvenue chez OilFlow BIDEC ERP ! Je suis Alex, et je me spécialise dans l'aide aux compagnies pétrolières pour optimiser leurs opérations. Qu'est-ce qui vous amène ici aujourd'hui ?",
        "Salut ! Je suis Alex d'OilFlow BIDEC ERP. Je suis ravi de vous aider à découvrir nos solutions ERP pétrolières leader sur le marché. Que souhaitez-vous savoir ?",
    ],
    "ar": [
        "مرحباً! أنا أليكس، مساعدك في OilFlow BIDEC ERP. أنا هنا لمساعدتك في اكتشاف كيف يمكن لحلول تخطيط الموارد الشاملة أن تحول عملياتك البترولية. ما هي التحديات المحددة التي تواجهها في عملك؟",
        "أهلاً وسهلاً بكم في OilFlow BIDEC ERP! أنا أليكس، وأتخصص في مساعدة شركات البترول على تحسين عملياتها. ما الذي جلبك هنا اليوم؟",
    ],
    "sw": [
        "Habari! Mimi ni Alex, msaidizi wako wa OilFlow BIDEC ERP. Nipo hapa kukusaidia kugundua jinsi suluhisho letu kamili la ERP linavyoweza kubadilisha shughuli zako za petroli. Ni changamoto gani maalum unazokabiliana nazo katika biashara yako?",
        "Karibu kwenye OilFlow BIDEC ERP! Mimi ni Alex, na ninafanya kazi ya kusaidia makampuni ya petroli kuboresha shughuli zao. Ni nini kimekuja hapa leo?",
    ],
    "ha": [
        "Sannu! Ni Alex ne, mai taimako na OilFlow BIDEC ERP. Ina nan don in taimaka maka gane yadda cikakken tsarin ERP namu zai iya canza ayyukan mai da gas naku. Wane matsaloli ke damun ku a kasuwancin ku?",
        "Maraba da zuwa OilFlow BIDEC ERP! Ni Alex ne, kuma na kware a taimaka wa kamfanoni na mai da gas don inganta ayyukansu. Me ya kawo ku nan yau?",
    ],
}

RESPONSES: Dict[str, Dict[str, str]] = {
    "en": {
        "productOverview": "OilFlow BIDEC ERP is a comprehensive enterprise resource planning solution specifically designed for the petroleum industry. We integrate upstream exploration, midstream logistics, and downstream operations into one powerful platform.",
        "pricingInfo": "Our pricing is based on your specific needs and company size. We offer flexible subscription models with typical ROI ranging from 300-500% within 18 months. Would you like me to connect you with our sales team for a customized quote?",
        "demoOffer": "Excellent! A personalized demonstration is the best way to see how OilFlow BIDEC ERP can benefit your company. Can you tell me your name and company so I can arrange that?",
        "complaintAcknowledgement": "I'm sorry to hear you're running into trouble. Could you describe what's happening in a bit more detail? If it's easier, I can also put you in touch with our support team right away.",
        "needMoreInfo": "That's a great question! Can you be more specific about what interests you? I can help with product information, pricing, integrations, or schedule a demonstration.",
        "errorMessage": "I apologize, but I'm having trouble understanding your request. Could you please rephrase your question or try asking about our products, pricing, or services?",
        "escalationMessage": "It looks like you're very interested in our solutions! Would you like to speak directly with one of our petroleum ERP experts?",
        "highScorePricing": "Given your strong interest in our solutions, I'd like to connect you directly with our sales team to discuss a customized proposal that perfectly fits your needs and budget.",
    },
    "fr": {
        "productOverview": "OilFlow BIDEC ERP est une solution complète de planification des ressources d'entreprise spécialement conçue pour l'industrie pétrolière. Nous intégrons l'exploration amont, la logistique midstream et les opérations aval en une plateforme puissante.",
        "pricingInfo": "Notre tarification est basée sur vos besoins spécifiques et la taille de votre entreprise. Nous offrons des modèles d'abonnement flexibles avec un ROI typique allant de 300-500% dans les 18 mois. Souhaitez-vous que je vous mette en contact avec notre équipe de vente?",
        "demoOffer": "Excellente idée ! Une démonstration personnalisée est le meilleur moyen de voir comment OilFlow BIDEC ERP peut bénéficier à votre entreprise. Pouvez-vous me dire votre nom et le nom de votre entreprise?",
        "complaintAcknowledgement": "Je suis désolé d'apprendre que vous rencontrez des difficultés. Pourriez-vous décrire le problème plus en détail ? Je peux aussi vous mettre en contact avec notre équipe de support immédiatement.",
        "needMoreInfo": "C'est une excellente question ! Pouvez-vous être plus spécifique sur ce qui vous intéresse ? Je peux vous aider avec des informations sur les produits, les prix, les intégrations, ou organiser une démonstration.",
        "errorMessage": "Je m'excuse, mais j'ai du mal à comprendre votre demande. Pourriez-vous reformuler votre question ou demander des informations sur nos produits, prix, ou services?",
        "escalationMessage": "Il semble que vous soyez très intéressé par nos solutions ! Souhaiteriez-vous parler directement avec un de nos experts ERP pétrolier?",
        "highScorePricing": "Étant donné votre fort intérêt pour nos solutions, j'aimerais vous mettre en contact directement avec notre équipe de vente pour discuter d'une proposition personnalisée qui correspond parfaitement à vos besoins et à votre budget.",
    },
    "ar": {
        "productOverview": "OilFlow BIDEC ERP هو حل شامل لتخطيط موارد المؤسسة مصمم خصيصاً لصناعة البترول. نحن ندمج استكشاف المنبع، والخدمات اللوجستية المتوسطة، وعمليات المصب في منصة واحدة قوية.",
        "pricingInfo": "تعتمد أسعارنا على احتياجاتك المحددة وحجم شركتك. نحن نقدم نماذج اشتراك مرنة مع عائد استثمار نموذجي يتراوح من 300-500% خلال 18 شهراً. هل تريد مني أن أربطك بفريق المبيعات؟",
        "demoOffer": "ممتاز! العرض التوضيحي الشخصي هو أفضل طريقة لرؤية كيف يمكن لـ OilFlow BIDEC ERP أن يفيد شركتك. هل يمكنك إخباري باسمك وشركتك؟",
        "needMoreInfo": "هذا سؤال رائع! هل يمكنك أن تكون أكثر تحديداً حول ما يهمك؟ يمكنني المساعدة في معلومات المنتج، الأسعار، التكاملات، أو جدولة عرض توضيحي.",
        "errorMessage": "أعتذر، لكنني أواجه صعوبة في فهم طلبك. هل يمكنك إعادة صياغة سؤالك أو السؤال عن منتجاتنا أو أسعارنا أو خدماتنا؟",
        "escalationMessage": "يبدو أنك مهتم جداً بحلولنا! هل تود التحدث مباشرة مع أحد خبراء تخطيط الموارد البترولية لدينا؟",
    },
    "sw": {
        "productOverview": "OilFlow BIDEC ERP ni suluhisho kamili la kupanga rasilimali za mradi lililobuniwa maalum kwa sekta ya petroli. Tunachanganya uchunguzi wa juu, usafirishaji wa kati, na shughuli za chini katika jukwaa moja lenye nguvu.",
        "pricingInfo": "Bei yetu inategemea mahitaji yako maalum na ukubwa wa kampuni yako. Tunatoa mifumo ya ujiuzaji inayonyumbulika na mapato ya kawaida ya uwekezaji kutoka 300-500% ndani ya miezi 18. Je, ungependa nikusanishe na timu yetu ya mauzo?",
        "demoOffer": "Bora sana! Maonyesho ya kibinafsi ni njia bora ya kuona jinsi OilFlow BIDEC ERP inavyoweza kufaidisha kampuni yako. Je, unaweza kuniambia jina lako na kampuni yako?",
        "needMoreInfo": "Hilo ni swali zuri! Je, unaweza kuwa maalum zaidi kuhusu kinachokuvutia? Ninaweza kusaidia na maelezo ya bidhaa, bei, miunganisho, au kupanga maonyesho.",
        "errorMessage": "Naomba radhi, lakini nina tatizo la kuelewa ombi lako. Je, unaweza kuuliza tena swali lako au kuuliza kuhusu bidhaa, bei, au huduma zetu?",
        "escalationMessage": "Inaonekana una nia kubwa katika suluhisho zetu! Je, ungependa kuzungumza moja kwa moja na mmoja wa wataalamu wetu wa ERP ya petroli?",
    },
    "ha": {
        "productOverview": "OilFlow BIDEC ERP tsarin tsara albarkatun kasuwanci ne da aka tsara musamman don masana'antar mai da gas. Muna hada binciken sama, jigilar tsaka-tsaki, da ayyukan kasa a cikin dandamali guda daya mai karfi.",
        "pricingInfo": "Farashinmu ya danganta da bukatunku na musamman da girman kamfaninku. Muna ba da tsarin biyan kuɗi masu sassauƙa da yawan ribar saka jari daga 300-500% cikin watanni 18. Kina son in hada ku da tawagar siyarwa?",
        "demoOffer": "Kyakkyawa! Nunin keɓaɓɓe shine hanya mafi kyau ta ganin yadda OilFlow BIDEC ERP zai iya amfanar kamfaninku. Za ku iya gaya mini sunanku da kamfaninku?",
        "needMoreInfo": "Wannan tambaya ce mai kyau! Za ku iya ƙara fayyace abin da ke damun ku? Zan iya taimakawa da bayanin samfur, farashi, haɗuwa, ko shirya zanga-zanga.",
        "errorMessage": "Yashi gafara, amma ina da matsalar fahimtar bukatarku. Za ku iya sake tambayar tambayarku ko tambaya game da samfuranmu, farashi, ko ayyukanmu?",
        "escalationMessage": "Da alama kuna da sha'awar sosai ga bayar da shawarwarinmu! Kuna son yin magana kai tsaye da ɗaya daga cikin masana ERP na mai da gas?",
    },
}

QUICK_ACTIONS: Dict[str, List[str]] = {
    "en": [
        "Learn about our products",
        "See pricing information",
        "Schedule a demo",
        "Talk to an expert",
        "View success stories",
        "Integration options",
    ],
    "fr": [
        "En savoir plus sur nos produits",
        "Voir les informations tarifaires",
        "Planifier une démonstration",
        "Parler à un expert",
        "Voir les histoires de succès",
        "Options d'intégration",
    ],
    "ar": [
        "تعرف على منتجاتنا",
        "اطلع على معلومات الأسعار",
        "جدولة عرض توضيحي",
        "تحدث مع خبير",
        "اطلع على قصص النجاح",
        "خيارات التكامل",
    ],
    "sw": [
        "Jifunze kuhusu bidhaa zetu",
        "Ona maelezo ya bei",
        "Panga onyesho",
        "Zungumza na mtaalamu",
        "Ona hadithi za mafanikio",
        "Chaguo za miunganisho",
    ],
    "ha": [
        "Koyi game da samfuranmu",
        "Dubi bayanan farashi",
        "Shirya zanga-zanga",
        "Yi magana da kwararre",
        "Dubi labarun nasara",
        "Zaɓuɓɓukan haɗuwa",
    ],
}

# Checked in this order; the first language with a hint wins.
LANGUAGE_HINTS = [
    (Language.FR, ["bonjour", "merci", "oui", "pourquoi", "parlez", "français"]),
    (Language.SW, ["habari", "karibu", "asante", "jambo", "ninyi", "mimi", "kiswahili"]),
    (Language.HA, ["sannu", "na gode", "yaya", "kai", "ke", "mu", "harshen hausa"]),
]

ARABIC_SCRIPT = re.compile(r"[؀-ۿ]")
WORD = re.compile(r"\w+")


class LanguageDetector:
    """Detects message language from character sets and keyword hints."""

    def __init__(self, default: Language = Language.EN):
        self.default = default

    def detect(self, text: str) -> Language:
        """
        Detect the language of a message.

        Arabic script wins outright. Otherwise hint words are matched as whole
        words (multi-word hints as substrings) so short Hausa hints such as
        "ke" do not fire inside English words like "like".
        """
        if ARABIC_SCRIPT.search(text):
            return Language.AR

        clean = text.lower().strip()
        words = set(WORD.findall(clean))

        for language, hints in LANGUAGE_HINTS:
            for hint in hints:
                if (" " in hint and hint in clean) or hint in words:
                    logger.debug(f"Language hint '{hint}' -> {language.value}")
                    return language

        return self.default


class TranslationService:
    """Localized UI text, responses, greetings and quick actions."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def _lookup(table: Dict[str, Dict[str, str]], category: str, key: str, language: Language) -> str:
        value = table.get(language.value, {}).get(key) or table["en"].get(key)
        return value or f"[{category}.{key}]"

    def get_ui_text(self, key: str, language: Language = Language.EN) -> str:
        return self._lookup(UI_TEXT, "ui", key, language)

    def get_response(self, key: str, language: Language = Language.EN) -> str:
        """Localized response text; English fallback, then a visible placeholder."""
        return self._lookup(RESPONSES, "responses", key, language)

    def has_response(self, key: str, language: Language = Language.EN) -> bool:
        return key in RESPONSES.get(language.value, {}) or key in RESPONSES["en"]

    def get_random_greeting(self, language: Language = Language.EN) -> str:
        greetings = GREETINGS.get(language.value) or GREETINGS["en"]
        return self.rng.choice(greetings)

    def get_quick_actions(self, language: Language = Language.EN) -> List[str]:
        return list(QUICK_ACTIONS.get(language.value) or QUICK_ACTIONS["en"])


def get_language_config(code: Language) -> Optional[LanguageConfig]:
    return next((config for config in SUPPORTED_LANGUAGES if config.code == code), None)


def is_rtl_language(language: Language) -> bool:
    config = get_language_config(language)
    return bool(config and config.rtl)


def get_region_for_language(language: Language) -> str:
    config = get_language_config(language)
    return config.region if config else "global"
