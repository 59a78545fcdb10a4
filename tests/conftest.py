"""
Shared fixtures: settings, an in-memory MongoDB, recording transports and
the wired service container.

mongomock is synchronous; the thin facade below gives it the awaitable
surface Motor exposes (awaitable collection methods, cursors with to_list).
"""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import mongomock
import pytest
import pytest_asyncio

from app.core.config import Settings
from app.core.container import build_container
from app.db.indexes import create_indexes
from app.db.mongo import MongoDatabase
from app.models.channel import ChannelKind
from app.transports.base import ChannelTransport, StartOfDayMode, send_result
from app.transports.registry import TransportRegistry

TODAY = "2024-05-01"
BASE_TIME = datetime(2024, 1, 1, 9, 0)


class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length=None):
        documents = list(self._cursor)
        return documents if length is None else documents[:length]


class AsyncCollection:
    def __init__(self, collection):
        self._collection = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self._collection.find(*args, **kwargs))

    def __getattr__(self, name):
        method = getattr(self._collection, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)

        return call


class AsyncDatabase:
    def __init__(self, database):
        self._database = database

    def __getitem__(self, name):
        return AsyncCollection(self._database[name])

    async def command(self, *args, **kwargs):
        return self._database.command(*args, **kwargs)


class RecordingTransport(ChannelTransport):
    """Transport double that records every send and answers success (or failure)."""

    def __init__(self, settings, kind, mode, has_reply_channel=True, fail=False):
        super().__init__(settings)
        self.kind = kind
        self.start_of_day_mode = mode
        self.has_reply_channel = has_reply_channel
        self.fail = fail
        self.calls = []

    def is_configured(self) -> bool:
        return True

    def _record(self, *call):
        self.calls.append(call)
        if self.fail:
            return send_result(False, error="platform rejected the message")
        return send_result(True, message_id=f"msg-{len(self.calls)}")

    def calls_to(self, method: str):
        return [call for call in self.calls if call[0] == method]

    async def send_text(self, native_id, text):
        return self._record("send_text", native_id, text)

    async def send_question(self, native_id, question):
        return self._record("send_question", native_id, question.text, list(question.options))

    async def send_start_of_day(self, native_id, context):
        return self._record("send_start_of_day", native_id, context.pending_count)


class Seeder:
    """Writes fixture documents straight into the collections."""

    def __init__(self, database: MongoDatabase):
        self.database = database

    async def question(
        self,
        question_id: str,
        text: str,
        options: List[str],
        minute: int = 0,
        active: bool = True
    ):
        await self.database.questions.insert_one({
            "_id": question_id,
            "text": text,
            "options": options,
            "active": active,
            "created_at": BASE_TIME + timedelta(minutes=minute),
        })

    async def preference(self, user_id: str, question_id: str, enabled: bool = True):
        await self.database.question_preferences.insert_one({
            "_id": f"{user_id}-{question_id}",
            "user_id": user_id,
            "question_id": question_id,
            "enabled": enabled,
            "created_at": BASE_TIME,
        })

    async def user(
        self,
        user_id: str,
        links: Optional[List[Tuple[ChannelKind, str]]] = None,
        state: Optional[str] = None,
        active: bool = True,
        minute: int = 0
    ):
        await self.database.users.insert_one({
            "_id": user_id,
            "display_name": user_id.title(),
            "active": active,
            "state": state,
            "created_at": BASE_TIME + timedelta(minutes=minute),
            "updated_at": BASE_TIME,
        })
        for index, (kind, native_id) in enumerate(links or []):
            await self.database.channel_links.insert_one({
                "_id": f"{user_id}-link-{index}",
                "user_id": user_id,
                "kind": kind.value,
                "native_id": native_id,
                "enabled": True,
                "created_at": BASE_TIME,
            })

    async def sent(self, user_id: str, question_id: str, day: str = TODAY):
        await self.database.daily_sequence_entries.insert_one({
            "_id": f"{user_id}-{question_id}-{day}",
            "user_id": user_id,
            "question_id": question_id,
            "day": day,
            "sent_at": BASE_TIME,
            "created_at": BASE_TIME,
        })

    async def feelings(self, user_id: str):
        """The canonical two-question subscription used across the flow tests."""
        await self.question("q1", "How are you feeling today?", ["Great", "Good", "Okay", "Not great"], minute=1)
        await self.question("q2", "Did you exercise?", ["Great", "Good", "Okay", "Not great"], minute=2)
        await self.preference(user_id, "q1")
        await self.preference(user_id, "q2")


@pytest.fixture
def settings():
    return Settings(
        ENVIRONMENT="development",
        TELEGRAM_BOT_TOKEN="123:abc",
        WHATSAPP_ACCESS_TOKEN="wa-token",
        WHATSAPP_PHONE_NUMBER_ID="1055",
        FACEBOOK_APP_SECRET="app-secret",
        VAPID_PUBLIC_KEY="BPublicKey",
        VAPID_PRIVATE_KEY="private-key",
        VAPID_CONTACT="ops@example.com",
        APP_URL="https://notimon.example.com",
    )


@pytest_asyncio.fixture
async def database(settings):
    database = MongoDatabase(settings, database=AsyncDatabase(mongomock.MongoClient()["notimon_test"]))
    await create_indexes(database)
    return database


@pytest.fixture
def seed(database):
    return Seeder(database)


@pytest.fixture
def telegram(settings):
    return RecordingTransport(settings, ChannelKind.TELEGRAM, StartOfDayMode.QUESTION)


@pytest.fixture
def whatsapp(settings):
    return RecordingTransport(settings, ChannelKind.WHATSAPP, StartOfDayMode.TEMPLATE)


@pytest.fixture
def web_push(settings):
    return RecordingTransport(settings, ChannelKind.WEB_PUSH, StartOfDayMode.NOTIFICATION, has_reply_channel=False)


@pytest.fixture
def transports(telegram, whatsapp, web_push):
    return TransportRegistry([telegram, whatsapp, web_push])


@pytest.fixture
def container(database, settings, transports):
    return build_container(database, settings, transports=transports, today=lambda: TODAY)


@pytest.fixture
def today():
    return TODAY
