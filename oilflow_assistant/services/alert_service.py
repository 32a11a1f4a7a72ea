"""
Escalation alert service - notifies the sales desk webhook about handoffs.
"""
import httpx
import logging
from typing import List, Optional

from oilflow_assistant.core.config import Settings
from oilflow_assistant.models.chat import UserProfile
from oilflow_assistant.services.lead_scoring import LeadScoreAccumulator

logger = logging.getLogger(__name__)


def build_alert_text(
    session_id: str,
    lead_score: int,
    triggers: List[str],
    channel: str,
    priority: str,
    summary: Optional[str] = None,
    user_profile: Optional[UserProfile] = None,
) -> str:
    """Plain-text alert body."""
    label = LeadScoreAccumulator.categorize(lead_score)
    profile = user_profile or UserProfile()
    trigger_lines = "\n".join(f"- {t}" for t in triggers) if triggers else "- manual request"

    message = f"""
[{priority.upper()}] CHAT ESCALATION

Session: {session_id}
Lead Score: {lead_score}/100
Category: {label["category"]} ({label["priority"]})
Channel: {channel}

CONTACT INFORMATION
Name: {profile.name or "Not provided"}
Email: {profile.email or "Not provided"}
Company: {profile.company or "Not provided"}

TRIGGERS
{trigger_lines}
"""
    if summary:
        message += f"\nCONVERSATION\n{summary}\n"
    return message.strip()


async def send_escalation_alert(
    session_id: str,
    lead_score: int,
    triggers: List[str],
    channel: str,
    priority: str,
    settings: Settings,
    summary: Optional[str] = None,
    user_profile: Optional[UserProfile] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """
    Post an escalation alert to the configured webhook.

    Args:
        session_id: Chat session being escalated
        lead_score: Score 0-100
        triggers: Escalation trigger names, first match first
        channel: Handoff channel
        priority: low/medium/high/urgent
        settings: Application settings
        summary: Optional agent-facing conversation summary
        user_profile: Optional visitor contact details
        transport: Optional httpx transport (tests)

    Returns:
        bool: True if the webhook accepted the alert, False otherwise
    """
    if not settings.escalation_webhook_url:
        logger.warning("Escalation webhook not configured - skipping alert")
        return False

    headers = {}
    if settings.escalation_webhook_token:
        headers["Authorization"] = f"Bearer {settings.escalation_webhook_token}"

    payload = {
        "text": build_alert_text(session_id, lead_score, triggers, channel, priority, summary, user_profile)
    }

    try:
        async with httpx.AsyncClient(timeout=settings.alert_timeout_seconds, transport=transport) as client:
            response = await client.post(settings.escalation_webhook_url, json=payload, headers=headers)

            if response.is_success:
                logger.info(f"Escalation alert sent for session {session_id}")
                return True
            else:
                logger.error(f"Escalation alert failed: {response.status_code} - {response.text}")
                return False

    except httpx.HTTPError as e:
        logger.error(f"Error sending escalation alert: {e}")
        return False
