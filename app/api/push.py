"""
app/api/push.py

Purpose: Web Push subscription endpoints

- Browser registers / removes its PushSubscription
- Public VAPID key for the service worker
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_container
from app.core.container import ServiceContainer
from app.core.exceptions import ConfigurationError, ResourceNotFoundError
from app.core.logging import get_logger
from app.schemas.response import PushSubscribeRequest, PushUnsubscribeRequest

logger = get_logger(__name__)
router = APIRouter()


@router.post("/push/subscribe")
async def subscribe(
    body: PushSubscribeRequest,
    container: ServiceContainer = Depends(get_container),
    user_agent: Optional[str] = Header(None),
):
    user = await container.users.get_user(body.user_id)
    if user is None:
        raise ResourceNotFoundError("User not found", details={"user_id": body.user_id})

    subscription = await container.push.save_subscription(
        user_id=user.id,
        endpoint=body.subscription.endpoint,
        p256dh=body.subscription.keys.p256dh,
        auth=body.subscription.keys.auth,
        user_agent=user_agent,
    )
    logger.info(f"Push subscription registered for user {user.id}")
    return {"success": True, "subscription_id": subscription.id}


@router.post("/push/unsubscribe")
async def unsubscribe(
    body: PushUnsubscribeRequest,
    container: ServiceContainer = Depends(get_container),
):
    deleted = await container.push.delete_subscription(body.user_id, body.endpoint)
    return {"success": True, "deleted": deleted}


@router.get("/push/vapid-key")
async def vapid_key(container: ServiceContainer = Depends(get_container)):
    public_key = container.settings.VAPID_PUBLIC_KEY
    if not public_key:
        raise ConfigurationError("VAPID_PUBLIC_KEY is not configured")
    return {"public_key": public_key}
