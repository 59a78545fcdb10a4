"""
app/transports/web_push.py

Purpose: Browser/OS push notifications (VAPID web push)

- Fire-and-forget notifications, no reply channel
- Start-of-day nudge pointing at the questions page
- Per-user fan-out over stored subscriptions
- Disables subscriptions the push service reports as gone
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from pywebpush import webpush, WebPushException

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.core.logging import get_logger, LogContext
from app.models.channel import ChannelKind
from app.models.push_subscription import PushSubscription
from app.services.push_service import PushService
from app.transports.base import ChannelTransport, StartOfDayContext, StartOfDayMode, send_result
from utils.constants import (
    PUSH_ACTION_TITLE,
    PUSH_BODY,
    PUSH_ICON,
    PUSH_QUESTIONS_PATH,
    PUSH_TAG,
    PUSH_TITLE,
)

logger = get_logger(__name__)

# Push service answers meaning the subscription no longer exists
GONE_STATUS_CODES = {404, 410}


def build_notification_payload(
    title: str,
    body: str,
    url: str = "/",
    icon: Optional[str] = None,
    badge: Optional[str] = None,
    tag: Optional[str] = None
) -> Dict[str, Any]:
    """
    Builds the JSON document the service worker renders.
    """
    return {
        "title": title,
        "body": body,
        "icon": icon or PUSH_ICON,
        "badge": badge or icon or PUSH_ICON,
        "url": url,
        "tag": tag or PUSH_TAG,
        "requireInteraction": True,
        "actions": [
            {"action": "view", "title": PUSH_ACTION_TITLE, "icon": icon or PUSH_ICON}
        ],
    }


class WebPushTransport(ChannelTransport):
    """
    Channel-native id is the subscription endpoint; keys are looked up
    from the stored subscription.
    """

    kind = ChannelKind.WEB_PUSH
    start_of_day_mode = StartOfDayMode.NOTIFICATION
    has_reply_channel = False

    def __init__(self, settings: Settings, push_service: PushService):
        super().__init__(settings)
        self.push_service = push_service

    def is_configured(self) -> bool:
        return bool(self.settings.VAPID_PUBLIC_KEY and self.settings.VAPID_PRIVATE_KEY)

    def questions_url(self) -> str:
        return f"{self.settings.APP_URL.rstrip('/')}{PUSH_QUESTIONS_PATH}"

    def _vapid_claims(self) -> Dict[str, str]:
        # pywebpush adds aud/exp to the dict it is given
        return {"sub": f"mailto:{self.settings.VAPID_CONTACT}"}

    def _deliver(self, subscription: PushSubscription, data: str):
        return webpush(
            subscription_info=subscription.subscription_info(),
            data=data,
            vapid_private_key=self.settings.VAPID_PRIVATE_KEY,
            vapid_claims=self._vapid_claims(),
            timeout=self.timeout,
        )

    async def send_notification(self, subscription: PushSubscription, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Pushes one notification to one subscription.
        A 404/410 answer disables the subscription and its channel link.
        """
        if not self.is_configured():
            raise ConfigurationError("VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY must be set")

        with LogContext(user_id=subscription.user_id, channel=self.kind.value):
            try:
                await asyncio.to_thread(self._deliver, subscription, json.dumps(payload))
            except WebPushException as e:
                status_code = e.response.status_code if e.response is not None else None
                logger.error(f"Web push rejected ({status_code}): {e}")
                if status_code in GONE_STATUS_CODES:
                    await self.push_service.disable_subscription(subscription.endpoint)
                return send_result(False, error=str(e), status_code=status_code)
            except Exception as e:
                logger.error(f"Error sending web push notification: {e}", exc_info=True)
                return send_result(False, error=str(e))

            logger.info("🔔 Push notification delivered")
            return send_result(True)

    async def _send_to_endpoint(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        subscription = await self.push_service.get_by_endpoint(endpoint)
        if subscription is None or not subscription.enabled:
            return send_result(False, error="No enabled push subscription for endpoint")
        return await self.send_notification(subscription, payload)

    async def send_text(self, native_id: str, text: str) -> Dict[str, Any]:
        payload = build_notification_payload(PUSH_TITLE, text, url=self.questions_url())
        return await self._send_to_endpoint(native_id, payload)

    async def send_start_of_day(self, native_id: str, context: StartOfDayContext) -> Dict[str, Any]:
        payload = build_notification_payload(
            PUSH_TITLE,
            PUSH_BODY.format(count=context.pending_count),
            url=self.questions_url(),
        )
        return await self._send_to_endpoint(native_id, payload)

    async def send_to_user(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, int]:
        """
        Sends `payload` to every enabled subscription of a user.

        Returns:
            {"sent": int, "failed": int}
        """
        sent = 0
        failed = 0
        for subscription in await self.push_service.list_for_user(user_id):
            result = await self.send_notification(subscription, payload)
            if result["success"]:
                sent += 1
            else:
                failed += 1
        return {"sent": sent, "failed": failed}

    async def send_to_users(self, user_ids: List[str], payload: Dict[str, Any]) -> Dict[str, int]:
        """
        Fan-out over several users; one user's failure never stops the rest.

        Returns:
            {"sent": int, "failed": int, "users_sent": int}
        """
        total_sent = 0
        total_failed = 0
        users_sent = 0

        for user_id in user_ids:
            try:
                result = await self.send_to_user(user_id, payload)
            except ConfigurationError:
                raise
            except Exception as e:
                logger.error(f"Failed to send push notification to user {user_id}: {e}", exc_info=True)
                total_failed += 1
                continue

            total_sent += result["sent"]
            total_failed += result["failed"]
            if result["sent"] > 0:
                users_sent += 1

        return {"sent": total_sent, "failed": total_failed, "users_sent": users_sent}
