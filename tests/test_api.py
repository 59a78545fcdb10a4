import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.core.container import build_container
from app.main import app
from app.models.channel import ChannelKind
from app.services.push_service import PushService
from app.transports import web_push as web_push_module
from app.transports.registry import TransportRegistry
from app.transports.web_push import WebPushTransport


@pytest.fixture
def client(container):
    app.state.container = container
    return TestClient(app)


# ==============================================
# BROADCAST TRIGGER
# ==============================================

@pytest.mark.asyncio
async def test_broadcast_trigger_requires_cron_secret(client, settings, seed, telegram):
    settings.CRON_SECRET = "cron"
    await seed.user("alice", [(ChannelKind.TELEGRAM, "1001")])
    await seed.feelings("alice")

    rejected = client.post("/api/v1/broadcast/daily")
    assert rejected.status_code == 401
    assert rejected.json()["code"] == "AUTHENTICATION_FAILED"
    assert telegram.calls == []

    response = client.post("/api/v1/broadcast/daily", headers={"X-Cron-Secret": "cron"})
    assert response.status_code == 200
    assert response.json()["users_started"] == 1
    assert response.json()["sent"] == 1


# ==============================================
# PUSH SUBSCRIPTIONS
# ==============================================

@pytest.mark.asyncio
async def test_push_subscribe_creates_channel_link(client, seed, database):
    await seed.user("alice")
    body = {
        "user_id": "alice",
        "subscription": {
            "endpoint": "https://push.example/abc",
            "keys": {"p256dh": "p256", "auth": "auth-secret"},
        },
    }

    response = client.post("/api/v1/push/subscribe", json=body, headers={"User-Agent": "Firefox"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    link = await database.channel_links.find_one({"kind": "WEB_PUSH", "native_id": "https://push.example/abc"})
    assert link["user_id"] == "alice"
    assert link["enabled"] is True
    subscription = await database.push_subscriptions.find_one({"endpoint": "https://push.example/abc"})
    assert subscription["user_agent"] == "Firefox"

    response = client.post(
        "/api/v1/push/unsubscribe",
        json={"user_id": "alice", "endpoint": "https://push.example/abc"},
    )
    assert response.json() == {"success": True, "deleted": True}
    link = await database.channel_links.find_one({"kind": "WEB_PUSH", "native_id": "https://push.example/abc"})
    assert link["enabled"] is False


def test_push_subscribe_unknown_user(client):
    body = {
        "user_id": "ghost",
        "subscription": {"endpoint": "https://push.example/abc", "keys": {"p256dh": "p", "auth": "a"}},
    }

    response = client.post("/api/v1/push/subscribe", json=body)

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_push_subscribe_validates_body(client):
    response = client.post("/api/v1/push/subscribe", json={"user_id": "alice"})

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_vapid_key(client):
    response = client.get("/api/v1/push/vapid-key")

    assert response.status_code == 200
    assert response.json() == {"public_key": "BPublicKey"}


# ==============================================
# QUESTION SUBSCRIPTIONS
# ==============================================

@pytest.mark.asyncio
async def test_subscribe_and_unsubscribe(client, seed, container, today):
    await seed.user("alice")
    await seed.question("q1", "How are you feeling today?", ["Great", "Good"], minute=1)

    response = client.post("/api/v1/users/alice/questions/q1/subscribe")
    assert response.status_code == 200
    assert (await container.ledger.find_next_pending("alice", today)).id == "q1"

    listed = client.get("/api/v1/users/alice/subscriptions").json()
    assert [question["id"] for question in listed["questions"]] == ["q1"]

    client.post("/api/v1/users/alice/questions/q1/unsubscribe")
    assert await container.ledger.find_next_pending("alice", today) is None


@pytest.mark.asyncio
async def test_subscribe_to_inactive_question(client, seed):
    await seed.user("alice")
    await seed.question("old", "Retired", ["x"], active=False)

    response = client.post("/api/v1/users/alice/questions/old/subscribe")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_questions_for_a_day(client, seed, today):
    await seed.user("alice")
    await seed.feelings("alice")
    await seed.sent("alice", "q1")

    response = client.get(f"/api/v1/users/alice/questions/{today}")

    assert response.status_code == 200
    questions = response.json()["questions"]
    assert [question["id"] for question in questions] == ["q1", "q2"]
    assert questions[0]["sent_at"] is not None
    assert questions[1]["sent_at"] is None
    assert questions[0]["current_answer"] is None

    invalid = client.get("/api/v1/users/alice/questions/yesterday")
    assert invalid.status_code == 422


# ==============================================
# HEALTH
# ==============================================

def test_health_reports_database_and_channels(client):
    response = client.get("/health")

    assert response.status_code == 200
    checks = response.json()["checks"]
    assert checks["database"] == "healthy"
    assert checks["telegram"] == "configured"


def test_liveness(client):
    assert client.get("/live").json() == {"status": "alive"}


# ==============================================
# PUSH BROADCAST
# ==============================================

@pytest.fixture
def push_client(database, settings, telegram, whatsapp, today, monkeypatch):
    delivered = []

    def fake_webpush(**kwargs):
        delivered.append(kwargs)
        return SimpleNamespace(status_code=201)

    monkeypatch.setattr(web_push_module, "webpush", fake_webpush)
    push = PushService(database)
    transports = TransportRegistry([telegram, whatsapp, WebPushTransport(settings, push)])
    app.state.container = build_container(database, settings, transports=transports, today=lambda: today)
    return TestClient(app), push, delivered


@pytest.mark.asyncio
async def test_push_broadcast_reaches_every_active_subscriber(push_client, seed, settings):
    client, push, delivered = push_client
    settings.CRON_SECRET = "cron"
    await seed.user("alice")
    await seed.user("bob")
    await seed.user("carol", active=False)
    await push.save_subscription("alice", "https://push.example/a1", "p", "a")
    await push.save_subscription("alice", "https://push.example/a2", "p", "a")
    await push.save_subscription("carol", "https://push.example/c1", "p", "a")

    rejected = client.post("/api/v1/broadcast/push", json={"body": "New questions are live"})
    assert rejected.status_code == 401
    assert delivered == []

    response = client.post(
        "/api/v1/broadcast/push",
        json={"body": "New questions are live"},
        headers={"X-Cron-Secret": "cron"},
    )

    assert response.status_code == 200
    assert response.json() == {"users_total": 2, "users_sent": 1, "sent": 2, "failed": 0}
    payload = json.loads(delivered[0]["data"])
    assert payload["body"] == "New questions are live"
    assert payload["url"] == "https://notimon.example.com/questions"


@pytest.mark.asyncio
async def test_push_broadcast_to_selected_users(push_client, seed):
    client, push, delivered = push_client
    await seed.user("carol", active=False)
    await push.save_subscription("carol", "https://push.example/c1", "p", "a")

    response = client.post(
        "/api/v1/broadcast/push",
        json={"title": "Hi", "body": "Welcome back", "url": "/topics", "user_ids": ["carol", "nobody"]},
    )

    assert response.json() == {"users_total": 2, "users_sent": 1, "sent": 1, "failed": 0}
    assert [call["subscription_info"]["endpoint"] for call in delivered] == ["https://push.example/c1"]
    assert json.loads(delivered[0]["data"])["url"] == "/topics"
