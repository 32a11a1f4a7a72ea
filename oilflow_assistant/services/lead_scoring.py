"""
Lead Scoring - per-turn increments and bounded accumulation.
"""
import math
from typing import Any, Dict

from oilflow_assistant.models.chat import Intent

MIN_SCORE = 0
MAX_SCORE = 100

INTENT_POINTS: Dict[Intent, int] = {
    Intent.DEMO_REQUEST: 25,
    Intent.PRICING_INQUIRY: 20,
    Intent.INTEGRATION_INQUIRY: 15,
    Intent.TECHNICAL_INQUIRY: 12,
    Intent.PRODUCT_INQUIRY: 10,
    Intent.SUPPORT_INQUIRY: 5,
    Intent.GREETING: 2,
}

LARGE_COMPANY_BONUS = 5
URGENCY_BONUS = 3
SEGMENT_BONUS = 2


class LeadScoreAccumulator:
    """Turns a classified message into lead score points."""

    def increment(self, intent: Intent, entities: Dict[str, Any], confidence: float) -> int:
        """
        Points earned by one message: intent base scaled by confidence plus entity bonuses.

        Rounded half up; never negative.
        """
        points = INTENT_POINTS.get(intent, 0) * confidence

        if entities.get("companySize") == "large":
            points += LARGE_COMPANY_BONUS
        if entities.get("urgency") == "high":
            points += URGENCY_BONUS
        if entities.get("segment"):
            points += SEGMENT_BONUS

        return max(0, math.floor(points + 0.5))

    @staticmethod
    def apply(previous: int, delta: int) -> int:
        """Add points to a running score, clamped to [0, 100]."""
        return max(MIN_SCORE, min(MAX_SCORE, previous + delta))

    @staticmethod
    def categorize(score: int) -> Dict[str, str]:
        """Agent-facing label for a score."""
        if score >= 80:
            return {"category": "HOT", "priority": "Immediate follow-up"}
        if score >= 50:
            return {"category": "WARM", "priority": "Follow up within 24 hours"}
        return {"category": "COLD", "priority": "Nurture"}
