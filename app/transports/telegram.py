"""
app/transports/telegram.py

Purpose: Telegram Bot API transport

- Plain text messages
- Questions as a message with a one-time reply keyboard
- Delivers the first pending question directly at start of day
"""

from typing import Any, Dict, List, Optional

from app.core.exceptions import ConfigurationError
from app.core.logging import get_logger
from app.models.channel import ChannelKind
from app.models.question import Question
from app.transports.base import ChannelTransport, StartOfDayMode
from utils.telegram_utils import create_reply_keyboard, create_send_message

logger = get_logger(__name__)


class TelegramTransport(ChannelTransport):
    """Sends messages through https://api.telegram.org/bot<token>/sendMessage"""

    kind = ChannelKind.TELEGRAM
    start_of_day_mode = StartOfDayMode.QUESTION
    supports_choice_keyboard = True

    def is_configured(self) -> bool:
        return bool(self.settings.TELEGRAM_BOT_TOKEN)

    def _send_message_url(self) -> str:
        if not self.is_configured():
            raise ConfigurationError("TELEGRAM_BOT_TOKEN is not set")
        base_url = self.settings.TELEGRAM_API_BASE_URL.rstrip("/")
        return f"{base_url}/bot{self.settings.TELEGRAM_BOT_TOKEN}/sendMessage"

    def _extract_message_id(self, body: Any) -> Optional[str]:
        if isinstance(body, dict):
            message_id = (body.get("result") or {}).get("message_id")
            return str(message_id) if message_id is not None else None
        return None

    async def send_text(self, native_id: str, text: str) -> Dict[str, Any]:
        url = self._send_message_url()
        logger.info(f"📤 Sending Telegram message to {native_id}")
        return await self._post_json(url, create_send_message(native_id, text))

    async def send_keyboard_message(self, chat_id: str, text: str, options: List[str]) -> Dict[str, Any]:
        """
        Sends `text` with a reply keyboard holding one button per option.
        """
        url = self._send_message_url()
        logger.info(f"📤 Sending Telegram keyboard message to {chat_id}")
        reply_markup = create_reply_keyboard(options) if options else None
        payload = create_send_message(chat_id, text, reply_markup=reply_markup)
        return await self._post_json(url, payload)

    async def send_question(self, native_id: str, question: Question) -> Dict[str, Any]:
        return await self.send_keyboard_message(native_id, question.text, list(question.options))
