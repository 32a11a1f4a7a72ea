import argparse
import asyncio
import os
import sys
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv

from oilflow_assistant.services.conversation_store import ConversationStore

# Load environment variables
load_dotenv()

MONGO_URL = os.getenv("MONGO_URL")
DEFAULT_RETENTION_DAYS = int(os.getenv("ANALYTICS_RETENTION_DAYS", "90"))


async def purge_conversations(retention_days: int, assume_yes: bool = False):
    print("OilFlow Assistant - Conversation Archive Purge")
    print("==============================================")

    # Connect to MongoDB
    try:
        client = AsyncIOMotorClient(MONGO_URL)
        # Test connection
        await client.admin.command('ping')
        print("Connected to MongoDB")
    except Exception as e:
        print(f"Connection failed: {e}")
        sys.exit(1)

    store = ConversationStore(client)
    print(f"Target Database: {store.db.name}")
    print(f"Retention window: {retention_days} days")

    print("\nWARNING: Archived conversations older than the retention window will be PERMANENTLY DELETED.")

    if not assume_yes:
        confirm = input("\nAre you sure you want to proceed? (type 'yes' to confirm): ")
        if confirm.lower() != 'yes':
            print("Operation cancelled.")
            return

    removed = await store.purge_older_than(retention_days)
    print(f"\nRemoved {removed} archived conversations.")
    client.close()


if __name__ == "__main__":
    if not MONGO_URL:
        print("Error: MONGO_URL not found in .env file")
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Purge archived chat transcripts past the retention window.")
    parser.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS)
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    # Run async main
    try:
        asyncio.run(purge_conversations(args.days, args.yes))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
