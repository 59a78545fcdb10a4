"""
app/services/push_service.py

Purpose: Push subscription storage

- Saves browser subscriptions (endpoint + keys) and keeps a WEB_PUSH
  channel link in step with them
- Lookup by endpoint and by user
- Disables subscriptions reported as gone
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from app.core.logging import get_logger, LogContext
from app.db.mongo import MongoDatabase
from app.models.channel import ChannelKind
from app.models.push_subscription import PushSubscription

logger = get_logger(__name__)


class PushService:
    """Service for managing Web Push subscriptions."""

    def __init__(self, database: MongoDatabase):
        self.database = database

    async def save_subscription(
        self,
        user_id: str,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: Optional[str] = None
    ) -> PushSubscription:
        """
        Creates or refreshes a subscription and enables its channel link.
        """
        with LogContext(user_id=user_id, channel=ChannelKind.WEB_PUSH.value):
            now = datetime.utcnow()
            await self.database.push_subscriptions.update_one(
                {"user_id": user_id, "endpoint": endpoint},
                {
                    "$set": {
                        "p256dh": p256dh,
                        "auth": auth,
                        "user_agent": user_agent,
                        "enabled": True,
                        "updated_at": now,
                    },
                    "$setOnInsert": {"_id": uuid4().hex, "created_at": now},
                },
                upsert=True
            )

            await self.database.channel_links.update_one(
                {"kind": ChannelKind.WEB_PUSH.value, "native_id": endpoint},
                {
                    "$set": {"user_id": user_id, "enabled": True},
                    "$setOnInsert": {"_id": uuid4().hex, "created_at": now},
                },
                upsert=True
            )

            logger.info("Push subscription saved")
            document = await self.database.push_subscriptions.find_one(
                {"user_id": user_id, "endpoint": endpoint}
            )
            return PushSubscription.from_document(document)

    async def delete_subscription(self, user_id: str, endpoint: str) -> bool:
        result = await self.database.push_subscriptions.delete_many(
            {"user_id": user_id, "endpoint": endpoint}
        )
        await self.database.channel_links.update_one(
            {"kind": ChannelKind.WEB_PUSH.value, "native_id": endpoint, "user_id": user_id},
            {"$set": {"enabled": False}}
        )
        logger.info("Push subscription deleted", extra={"user_id": user_id})
        return result.deleted_count > 0

    async def get_by_endpoint(self, endpoint: str) -> Optional[PushSubscription]:
        document = await self.database.push_subscriptions.find_one({"endpoint": endpoint})
        return PushSubscription.from_document(document) if document else None

    async def list_for_user(self, user_id: str) -> List[PushSubscription]:
        cursor = self.database.push_subscriptions.find({"user_id": user_id, "enabled": True})
        return [PushSubscription.from_document(document) for document in await cursor.to_list(length=None)]

    async def disable_subscription(self, endpoint: str) -> None:
        """
        Called when the push service answers 404/410 for `endpoint`.
        """
        await self.database.push_subscriptions.update_many(
            {"endpoint": endpoint},
            {"$set": {"enabled": False, "updated_at": datetime.utcnow()}}
        )
        await self.database.channel_links.update_one(
            {"kind": ChannelKind.WEB_PUSH.value, "native_id": endpoint},
            {"$set": {"enabled": False}}
        )
        logger.warning(f"Push subscription disabled: {endpoint[:60]}")
