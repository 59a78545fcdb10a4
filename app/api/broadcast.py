"""
app/api/broadcast.py

Purpose: HTTP triggers for operator broadcasts (external cron)

- Daily question broadcast
- Free-form Web Push announcement to selected or all active users
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_container
from app.core.container import ServiceContainer
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger
from app.models.channel import ChannelKind
from app.schemas.response import BroadcastSummary, PushBroadcastRequest, PushBroadcastSummary
from app.transports.web_push import build_notification_payload

logger = get_logger(__name__)
router = APIRouter()


def _check_cron_secret(container: ServiceContainer, provided: Optional[str]):
    expected = container.settings.CRON_SECRET
    if expected and not hmac.compare_digest(provided or "", expected):
        raise AuthenticationError("Invalid cron secret")


@router.post("/broadcast/daily", response_model=BroadcastSummary)
async def run_daily_broadcast(
    container: ServiceContainer = Depends(get_container),
    x_cron_secret: Optional[str] = Header(None),
):
    """
    Starts today's sequence for every eligible user.
    Requires X-Cron-Secret when CRON_SECRET is set.
    """
    _check_cron_secret(container, x_cron_secret)

    logger.info("⏰ Daily broadcast triggered over HTTP")
    summary = await container.scheduler.run_daily_broadcast()
    return BroadcastSummary(**summary)


@router.post("/broadcast/push", response_model=PushBroadcastSummary)
async def run_push_broadcast(
    body: PushBroadcastRequest,
    container: ServiceContainer = Depends(get_container),
    x_cron_secret: Optional[str] = Header(None),
):
    """
    Sends one notification to every enabled push subscription of the
    given users (all active users when none are listed).
    """
    _check_cron_secret(container, x_cron_secret)

    if body.user_ids is None:
        user_ids = [user.id for user in await container.users.list_active_users()]
    else:
        user_ids = body.user_ids

    transport = container.transports.get(ChannelKind.WEB_PUSH)
    payload = build_notification_payload(body.title, body.body, url=body.url or transport.questions_url())

    logger.info(f"📣 Push broadcast to {len(user_ids)} users")
    result = await transport.send_to_users(user_ids, payload)
    logger.info(
        f"Push broadcast finished: sent={result['sent']} failed={result['failed']} users_sent={result['users_sent']}"
    )
    return PushBroadcastSummary(users_total=len(user_ids), **result)
