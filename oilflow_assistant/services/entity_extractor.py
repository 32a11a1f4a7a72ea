"""
Entity Extraction Service - keyword lookup of lead qualification facts.
Extracts company size, industry segment, region and urgency from a message.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from oilflow_assistant.models.chat import Intent

logger = logging.getLogger(__name__)

# (value, indicators); the first family entry with a hit wins
COMPANY_SIZE_INDICATORS: List[Tuple[str, List[str]]] = [
    ("small", ["small", "startup", "few employees", "independent"]),
    ("medium", ["medium", "growing", "50-200", "regional"]),
    ("large", ["large", "enterprise", "multinational", "global", "500+", "fortune"]),
]

SEGMENTS = ["upstream", "midstream", "downstream", "exploration", "production", "refining"]

# Most specific first so "north africa" is not reported as "africa"
REGIONS = ["north africa", "middle east", "nigeria", "ghana", "angola", "africa"]

URGENCY_WORDS = ["urgent", "asap", "immediately", "soon", "quickly"]


class EntityExtractor:
    """Extracts structured qualification entities from a message."""

    def extract(self, message: str, intent: Optional[Intent] = None) -> Dict[str, Any]:
        """
        Extract entities from a single message.

        Args:
            message: Customer message text
            intent: Classified intent; families are evaluated regardless

        Returns:
            Dictionary with any of companySize, segment, region, urgency
        """
        text = message.lower()
        entities: Dict[str, Any] = {}

        for size, indicators in COMPANY_SIZE_INDICATORS:
            if any(indicator in text for indicator in indicators):
                entities["companySize"] = size
                break

        segment = next((s for s in SEGMENTS if s in text), None)
        if segment:
            entities["segment"] = segment

        region = next((r for r in REGIONS if r in text), None)
        if region:
            entities["region"] = region

        if any(word in text for word in URGENCY_WORDS):
            entities["urgency"] = "high"

        if entities:
            logger.debug(f"Extracted entities: {entities}")
        return entities
