"""
app/services/user_service.py

Purpose: User and channel link management

- Resolves a channel-native identity to a user, creating both on first contact
- Loads active users and their enabled channel links for the broadcast
- User retrieval
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.logging import get_logger, LogContext
from app.db.mongo import MongoDatabase
from app.models.channel import ChannelKind, ChannelLink
from app.models.user import User

logger = get_logger(__name__)

PROFILE_FIELDS = ("username", "first_name", "last_name", "display_name")


def _display_name(profile: Dict[str, Any], fallback: str) -> str:
    if profile.get("display_name"):
        return profile["display_name"]
    name = " ".join(part for part in (profile.get("first_name"), profile.get("last_name")) if part)
    return name or profile.get("username") or fallback


class UserService:
    """Service for users and the channels they are reachable on."""

    def __init__(self, database: MongoDatabase):
        self.database = database

    async def get_user(self, user_id: str) -> Optional[User]:
        document = await self.database.users.find_one({"_id": user_id})
        return User.from_document(document) if document else None

    async def find_or_create_user_by_channel(
        self,
        kind: ChannelKind,
        native_id: str,
        profile: Optional[Dict[str, Any]] = None
    ) -> User:
        """
        Returns the user bound to (kind, native_id), creating the user and
        the link on first contact.

        The link is claimed with an upsert on the unique (kind, native_id)
        index, so two concurrent first messages end up with the same user.
        """
        profile = {key: value for key, value in (profile or {}).items() if key in PROFILE_FIELDS and value}
        kind = ChannelKind(kind)

        with LogContext(channel=kind.value):
            now = datetime.utcnow()
            candidate_id = uuid4().hex

            try:
                link = await self.database.channel_links.find_one_and_update(
                    {"kind": kind.value, "native_id": str(native_id)},
                    {
                        "$setOnInsert": {
                            "_id": uuid4().hex,
                            "user_id": candidate_id,
                            "enabled": True,
                            "created_at": now,
                        }
                    },
                    upsert=True,
                    return_document=ReturnDocument.AFTER
                )
            except DuplicateKeyError:
                # Another request inserted the link first
                link = await self.database.channel_links.find_one(
                    {"kind": kind.value, "native_id": str(native_id)}
                )

            user_id = link["user_id"]

            if user_id == candidate_id:
                await self.database.users.update_one(
                    {"_id": user_id},
                    {
                        "$setOnInsert": {
                            "active": True,
                            "state": None,
                            "created_at": now,
                            "display_name": _display_name(profile, str(native_id)),
                        },
                        "$set": {
                            **{key: value for key, value in profile.items() if key != "display_name"},
                            "updated_at": now,
                        },
                    },
                    upsert=True
                )
                logger.info(f"✅ Created new user for {kind.value} identity", extra={"user_id": user_id})
            elif profile:
                await self.database.users.update_one(
                    {"_id": user_id},
                    {"$set": {**profile, "updated_at": now}}
                )

            document = await self.database.users.find_one({"_id": user_id})
            if document is None:
                # Link exists but its user was never written (crash between the two writes)
                document = {
                    "active": True,
                    "state": None,
                    "created_at": now,
                    "updated_at": now,
                    "display_name": _display_name(profile, str(native_id)),
                }
                await self.database.users.update_one(
                    {"_id": user_id}, {"$setOnInsert": document}, upsert=True
                )
                document = {"_id": user_id, **document}

            return User.from_document(document)

    async def get_enabled_channel_links(self, user_id: str) -> List[ChannelLink]:
        cursor = self.database.channel_links.find({"user_id": user_id, "enabled": True})
        documents = await cursor.to_list(length=None)
        return [ChannelLink.from_document(document) for document in documents]

    async def list_active_users(self) -> List[User]:
        cursor = self.database.users.find({"active": True}).sort("created_at", 1)
        documents = await cursor.to_list(length=None)
        return [User.from_document(document) for document in documents]
