"""
Conversation Store - optional MongoDB archive of transcripts and session metrics.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClient

from oilflow_assistant.core.config import get_settings
from oilflow_assistant.models.analytics import ConversationMetrics
from oilflow_assistant.models.chat import Message

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Archives chat turns in MongoDB.

    One document per session in the conversations collection, holding the
    transcript; one document per session in the metrics collection.
    """

    def __init__(self, mongo_client: AsyncIOMotorClient):
        settings = get_settings()
        self.db = mongo_client[settings.mongo_db_name]
        self.conversations = self.db[settings.mongo_conversations_collection]
        self.metrics = self.db[settings.mongo_metrics_collection]

    async def save_turn(self, session_id: str, user_message: Message, assistant_message: Message) -> None:
        """Append a user/assistant pair to the session transcript."""
        now = datetime.now(timezone.utc)
        await self.conversations.update_one(
            {"session_id": session_id},
            {
                "$push": {
                    "messages": {
                        "$each": [
                            user_message.model_dump(mode="json", by_alias=True),
                            assistant_message.model_dump(mode="json", by_alias=True),
                        ]
                    }
                },
                "$set": {"updated_at": now},
                "$setOnInsert": {"session_id": session_id, "created_at": now},
            },
            upsert=True,
        )
        logger.info(f"Archived turn for session {session_id}")

    async def save_metrics(self, metrics: ConversationMetrics) -> None:
        """Replace the session metrics document, stamping it for retention."""
        await self.metrics.replace_one(
            {"session_id": metrics.session_id},
            {
                "session_id": metrics.session_id,
                "updated_at": datetime.now(timezone.utc),
                **metrics.model_dump(mode="json", by_alias=True),
            },
            upsert=True,
        )

    async def get_history(self, session_id: str) -> List[Message]:
        """Archived transcript, oldest first. Empty when the session is unknown."""
        document: Optional[Dict[str, Any]] = await self.conversations.find_one({"session_id": session_id})
        if not document:
            return []
        return [Message.model_validate(m) for m in document.get("messages", [])]

    async def purge_older_than(self, retention_days: int) -> int:
        """Delete transcripts and metrics not updated within the retention window."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
        result = await self.conversations.delete_many({"updated_at": {"$lt": cutoff}})
        await self.metrics.delete_many({"updated_at": {"$lt": cutoff}})
        logger.info(f"Purged {result.deleted_count} archived conversations older than {retention_days} days")
        return result.deleted_count
