"""
Knowledge Base - static product, pricing and services content for the assistant.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, ConfigDict, Field

from oilflow_assistant.models.chat import Intent, Language

logger = logging.getLogger(__name__)


class KnowledgeItem(BaseModel):
    """One topic with localized content. Content must carry an 'en' entry."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    subcategory: Optional[str] = None
    keywords: Tuple[str, ...]
    content: Dict[str, str]
    follow_up_questions: Dict[str, List[str]] = Field(default_factory=dict)
    intents: Tuple[Intent, ...] = ()
    confidence_threshold: float = Field(..., ge=0.0, le=1.0)

    def text(self, language: Language) -> str:
        return self.content.get(language.value) or self.content["en"]

    def follow_ups(self, language: Language) -> List[str]:
        return list(self.follow_up_questions.get(language.value) or self.follow_up_questions.get("en", []))


DEFAULT_ITEMS: List[KnowledgeItem] = [
    KnowledgeItem(
        id="product_overview",
        category="product",
        subcategory="overview",
        keywords=("oilflow", "bidec", "erp", "overview", "about", "what is", "solution"),
        content={
            "en": "OilFlow BIDEC ERP is a comprehensive enterprise resource planning solution specifically designed for the petroleum industry. We integrate upstream exploration, midstream logistics, and downstream operations into one powerful platform. Our solution helps companies significantly increase operational efficiency while reducing costs and ensuring regulatory compliance across all petroleum operations.",
            "fr": "OilFlow BIDEC ERP est une solution complète de planification des ressources d'entreprise spécialement conçue pour l'industrie pétrolière. Nous intégrons l'exploration amont, la logistique midstream et les opérations aval en une plateforme puissante. Notre solution aide les entreprises à augmenter l'efficacité opérationnelle tout en réduisant les coûts et en assurant la conformité réglementaire.",
        },
        follow_up_questions={
            "en": ["Tell me about upstream capabilities", "What about midstream features?", "Show me downstream solutions", "How does implementation work?"],
            "fr": ["Parlez-moi des capacités amont", "Qu'en est-il des fonctionnalités midstream?", "Montrez-moi les solutions aval", "Comment fonctionne l'implémentation?"],
        },
        intents=(Intent.PRODUCT_INQUIRY,),
        confidence_threshold=0.8,
    ),
    KnowledgeItem(
        id="upstream_solutions",
        category="product",
        subcategory="upstream",
        keywords=("upstream", "exploration", "drilling", "production", "reservoir", "field", "wells"),
        content={
            "en": "Our upstream solutions revolutionize exploration and production operations. We offer seismic data management, advanced optimization tools, production forecasting models, and reservoir simulation capabilities. Companies using our upstream module report significantly faster drilling times, improved production efficiency, and substantial reduction in exploration costs.",
            "fr": "Nos solutions amont révolutionnent les opérations d'exploration et de production. Nous offrons la gestion des données sismiques, l'optimisation du forage, les modèles de prévision de production et les outils de simulation de réservoir.",
        },
        follow_up_questions={
            "en": ["How does drilling optimization work?", "Tell me about seismic data management", "What about production forecasting?", "Show me ROI examples"],
            "fr": ["Comment fonctionne l'optimisation du forage?", "Parlez-moi de la gestion des données sismiques", "Qu'en est-il des prévisions de production?", "Montrez-moi des exemples de ROI"],
        },
        confidence_threshold=0.85,
    ),
    KnowledgeItem(
        id="midstream_solutions",
        category="product",
        subcategory="midstream",
        keywords=("midstream", "pipeline", "transportation", "storage", "logistics", "distribution"),
        content={
            "en": "Our midstream capabilities optimize the entire transportation and storage value chain. We provide real-time pipeline monitoring, automated storage optimization, intelligent route planning, and predictive maintenance for infrastructure. Our smart scheduling system maximizes throughput while minimizing operational risks.",
            "fr": "Nos capacités midstream optimisent toute la chaîne de valeur de transport et de stockage. Nous fournissons la surveillance de pipeline en temps réel, l'optimisation automatisée du stockage, la planification d'itinéraires et la maintenance prédictive pour l'infrastructure.",
        },
        follow_up_questions={
            "en": ["How does pipeline monitoring work?", "Tell me about storage optimization", "What about route planning?", "Show me safety features"],
            "fr": ["Comment fonctionne la surveillance des pipelines?", "Parlez-moi de l'optimisation du stockage", "Qu'en est-il de la planification d'itinéraires?", "Montrez-moi les fonctionnalités de sécurité"],
        },
        confidence_threshold=0.85,
    ),
    KnowledgeItem(
        id="downstream_solutions",
        category="product",
        subcategory="downstream",
        keywords=("downstream", "refinery", "refining", "retail", "fuel", "products", "quality"),
        content={
            "en": "Our downstream platform transforms refinery operations and retail management. We deliver advanced process optimization, product quality control, inventory management, and retail analytics. Our demand forecasting helps predict market trends and optimize product mix for maximum profitability.",
            "fr": "Notre plateforme aval transforme les opérations de raffinerie et la gestion du commerce de détail. Nous offrons l'optimisation avancée des processus, le contrôle de qualité des produits, la gestion des stocks et l'analyse du commerce de détail.",
        },
        follow_up_questions={
            "en": ["How does refinery optimization work?", "Tell me about quality control", "What about inventory management?", "Show me retail analytics"],
            "fr": ["Comment fonctionne l'optimisation de la raffinerie?", "Parlez-moi du contrôle qualité", "Qu'en est-il de la gestion des stocks?", "Montrez-moi l'analyse du commerce de détail"],
        },
        confidence_threshold=0.85,
    ),
    KnowledgeItem(
        id="pricing_roi",
        category="pricing",
        keywords=("price", "cost", "pricing", "roi", "investment", "budget", "expenses", "value"),
        content={
            "en": "Our pricing model is designed to deliver exceptional value with flexible options for companies of all sizes. We offer subscription-based licensing with enterprise packages, and pricing based on operational scale and module selection. Most clients see rapid ROI. I'd be happy to connect you with our sales team for a customized quote based on your specific needs.",
            "fr": "Notre modèle de tarification est conçu pour offrir une valeur exceptionnelle avec des options flexibles pour les entreprises de toutes tailles. Nous offrons des licences basées sur l'abonnement, avec des prix basés sur l'échelle opérationnelle et la sélection de modules. Je serais ravi de vous mettre en contact avec notre équipe de vente pour un devis personnalisé.",
        },
        follow_up_questions={
            "en": ["What factors affect pricing?", "Can you show ROI calculations?", "Do you offer free trials?", "Schedule a pricing consultation"],
            "fr": ["Quels facteurs affectent les prix?", "Pouvez-vous montrer les calculs de ROI?", "Offrez-vous des essais gratuits?", "Planifier une consultation tarifaire"],
        },
        intents=(Intent.PRICING_INQUIRY,),
        confidence_threshold=0.9,
    ),
    KnowledgeItem(
        id="integration",
        category="technical",
        subcategory="integration",
        keywords=("integration", "api", "connect", "interface", "compatibility", "scada", "sap", "oracle"),
        content={
            "en": "OilFlow BIDEC ERP features robust integration capabilities with an API-first architecture. We seamlessly connect with major petroleum industry systems including SCADA systems, enterprise resource planning platforms, manufacturing execution systems, and various IoT platforms. Our REST APIs and real-time data connectors ensure smooth data flow across your entire technology ecosystem.",
            "fr": "OilFlow BIDEC ERP dispose de capacités d'intégration robustes avec une architecture API-first. Nous nous connectons avec les principaux systèmes de l'industrie pétrolière incluant les systèmes SCADA, SAP, Oracle et diverses plateformes IoT. Nos API REST et connecteurs de données en temps réel assurent un flux de données fluide.",
        },
        follow_up_questions={
            "en": ["What systems do you integrate with?", "How long does integration take?", "Do you provide integration support?", "Show me API documentation"],
            "fr": ["Avec quels systèmes vous intégrez-vous?", "Combien de temps prend l'intégration?", "Fournissez-vous un support d'intégration?", "Montrez-moi la documentation API"],
        },
        intents=(Intent.INTEGRATION_INQUIRY,),
        confidence_threshold=0.8,
    ),
    KnowledgeItem(
        id="support",
        category="services",
        subcategory="support",
        keywords=("support", "help", "assistance", "training", "maintenance", "service"),
        content={
            "en": "We provide comprehensive 24/7 technical support with dedicated account managers for enterprise clients. Our support ecosystem includes implementation assistance, user training programs, ongoing optimization consulting, and proactive system monitoring. We maintain an average response time of under 2 hours for critical issues.",
            "fr": "Nous fournissons un support technique complet 24/7 avec des gestionnaires de compte dédiés pour les clients entreprise. Notre écosystème de support inclut l'assistance à l'implémentation, les programmes de formation des utilisateurs et la surveillance proactive du système.",
        },
        follow_up_questions={
            "en": ["What training do you provide?", "How does implementation work?", "What are your SLA guarantees?", "Show me support options"],
            "fr": ["Quelle formation fournissez-vous?", "Comment fonctionne l'implémentation?", "Quelles sont vos garanties SLA?", "Montrez-moi les options de support"],
        },
        intents=(Intent.SUPPORT_INQUIRY,),
        confidence_threshold=0.8,
    ),
    KnowledgeItem(
        id="security_compliance",
        category="technical",
        subcategory="security",
        keywords=("security", "compliance", "privacy", "regulations", "audit", "gdpr", "iso"),
        content={
            "en": "Security and compliance are fundamental to our platform design. We maintain SOC 2 Type II certification, ISO 27001 compliance, and adhere to industry-specific regulations. Our platform features end-to-end encryption, role-based access controls, comprehensive audit trails, and automated compliance reporting.",
            "fr": "La sécurité et la conformité sont fondamentales à la conception de notre plateforme. Nous maintenons la certification SOC 2 Type II et la conformité ISO 27001. Notre plateforme dispose de chiffrement de bout en bout, de contrôles d'accès basés sur les rôles et de rapports de conformité automatisés.",
        },
        follow_up_questions={
            "en": ["What certifications do you have?", "How do you handle data privacy?", "What about environmental compliance?", "Show me security features"],
            "fr": ["Quelles certifications avez-vous?", "Comment gérez-vous la confidentialité des données?", "Qu'en est-il de la conformité environnementale?", "Montrez-moi les fonctionnalités de sécurité"],
        },
        intents=(Intent.TECHNICAL_INQUIRY,),
        confidence_threshold=0.85,
    ),
]

REGIONAL_CONTENT = {
    "africa": {
        "en": {
            "greeting": "Welcome! I understand the unique challenges of petroleum operations in Africa. How can OilFlow BIDEC ERP help optimize your operations?",
        },
        "fr": {
            "greeting": "Bienvenue ! Je comprends les défis uniques des opérations pétrolières en Afrique. Comment OilFlow BIDEC ERP peut-il aider à optimiser vos opérations ?",
        },
    },
}

# Extracted region entity -> regional content key
REGION_GROUPS = {
    "africa": "africa",
    "north africa": "africa",
    "nigeria": "africa",
    "ghana": "africa",
    "angola": "africa",
}


class KnowledgeStore:
    """Read-only lookup over knowledge items."""

    def __init__(self, items: Optional[Sequence[KnowledgeItem]] = None):
        self.items: Tuple[KnowledgeItem, ...] = tuple(DEFAULT_ITEMS if items is None else items)
        self._by_id = {item.id: item for item in self.items}

    def get(self, item_id: str) -> Optional[KnowledgeItem]:
        return self._by_id.get(item_id)

    def find_item(self, query: str) -> Optional[KnowledgeItem]:
        """Keyword lookup. Among matching items, the highest threshold wins (first on ties)."""
        query_lower = query.lower()
        best = None
        for item in self.items:
            if any(keyword in query_lower for keyword in item.keywords):
                if best is None or item.confidence_threshold > best.confidence_threshold:
                    best = item
        return best

    def find_for_intent(self, intent: Intent, confidence: float) -> Optional[KnowledgeItem]:
        """First item registered for the intent whose threshold the confidence meets."""
        for item in self.items:
            if intent in item.intents and item.confidence_threshold <= confidence:
                return item
        return None


def get_regional_content(region: Optional[str], key: str, language: Language = Language.EN) -> Optional[str]:
    """
    Region-specific text for an extracted region entity.

    Returns None when the region has no content, or none in the requested
    language, so callers keep their generic localized text.
    """
    content = REGIONAL_CONTENT.get(REGION_GROUPS.get(region or "", ""))
    if not content:
        return None
    return content.get(language.value, {}).get(key)
