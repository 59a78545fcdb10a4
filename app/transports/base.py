"""
app/transports/base.py

Purpose: Uniform interface over the messaging back-ends

- Capability flags per channel (plain text, keyboard, template, choice list)
- How the channel takes part in the start-of-day broadcast
- Shared HTTP plumbing with timeouts and success/failure results
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import UnsupportedChannelError
from app.core.logging import get_logger
from app.flow.rendering import format_question_text
from app.models.channel import ChannelKind
from app.models.question import Question

logger = get_logger(__name__)


class StartOfDayMode(str, Enum):
    """What a channel sends when the daily broadcast reaches it."""

    QUESTION = "question"  # deliver the first pending question right away
    TEMPLATE = "template"  # re-open the session with an approved template
    NOTIFICATION = "notification"  # attention-getter only, no ledger entry


@dataclass
class StartOfDayContext:
    user_id: str
    day: str
    pending_count: int


def send_result(success: bool, message_id: Optional[str] = None, error: Optional[str] = None, **extra) -> Dict[str, Any]:
    """
    Result of one platform call.

    {"success": bool, "message_id": str | None, "error": str | None, ...}
    """
    return {"success": success, "message_id": message_id, "error": error, **extra}


class ChannelTransport(ABC):
    """
    One messaging platform. Subclasses declare their capabilities and
    implement the sends they support; the rest raise UnsupportedChannelError.
    """

    kind: ChannelKind
    start_of_day_mode: StartOfDayMode

    supports_plain_text: bool = True
    supports_choice_keyboard: bool = False
    supports_template: bool = False
    supports_choice_list: bool = False
    has_reply_channel: bool = True

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.timeout = settings.TRANSPORT_TIMEOUT_SECONDS
        self._client = client

    @property
    def can_send_questions(self) -> bool:
        """Whether answers can come back over this channel."""
        return self.has_reply_channel

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def send_text(self, native_id: str, text: str) -> Dict[str, Any]:
        ...

    async def send_question(self, native_id: str, question: Question) -> Dict[str, Any]:
        """
        Default rendering for channels without an inline choice widget:
        numbered options and a reply-with-number instruction.
        """
        if not self.has_reply_channel:
            raise UnsupportedChannelError(
                f"{self.kind.value} cannot deliver questions",
                details={"channel": self.kind.value}
            )
        return await self.send_text(native_id, format_question_text(question))

    async def send_start_of_day(self, native_id: str, context: StartOfDayContext) -> Dict[str, Any]:
        raise UnsupportedChannelError(
            f"{self.kind.value} has no start-of-day message",
            details={"channel": self.kind.value}
        )

    def _extract_message_id(self, body: Any) -> Optional[str]:
        return None

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        POSTs a JSON payload and folds the outcome into a send result.
        Non-2xx responses, timeouts and network errors are failures.
        """
        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.error(f"{self.kind.value} API timeout", extra={"channel": self.kind.value})
            return send_result(False, error=f"{self.kind.value} API timeout")
        except httpx.HTTPError as e:
            logger.error(f"{self.kind.value} request failed: {e}", extra={"channel": self.kind.value})
            return send_result(False, error=str(e))

        if response.status_code in (200, 201):
            try:
                body = response.json()
            except ValueError:
                body = None
            return send_result(True, message_id=self._extract_message_id(body))

        logger.error(
            f"❌ {self.kind.value} API error: {response.status_code} - {response.text}",
            extra={"channel": self.kind.value}
        )
        return send_result(
            False,
            error=f"{self.kind.value} API error: {response.status_code}",
            status_code=response.status_code
        )
