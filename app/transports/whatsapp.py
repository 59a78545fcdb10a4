"""
app/transports/whatsapp.py

Purpose: WhatsApp Cloud API transport

- Plain text (only inside an open session)
- Approved template to (re)open the session at start of day
- Questions as interactive list messages
"""

from typing import Any, Dict, List, Optional

from app.core.exceptions import ConfigurationError
from app.core.logging import get_logger
from app.models.channel import ChannelKind
from app.models.question import Question
from app.transports.base import ChannelTransport, StartOfDayContext, StartOfDayMode
from utils.whatsapp_utils import create_list_message, create_template_message, create_text_message

logger = get_logger(__name__)


class WhatsAppTransport(ChannelTransport):
    """Sends messages through POST /<version>/<phone-number-id>/messages"""

    kind = ChannelKind.WHATSAPP
    start_of_day_mode = StartOfDayMode.TEMPLATE
    supports_template = True
    supports_choice_list = True

    def is_configured(self) -> bool:
        return bool(self.settings.WHATSAPP_ACCESS_TOKEN and self.settings.WHATSAPP_PHONE_NUMBER_ID)

    def _messages_url(self) -> str:
        if not self.is_configured():
            raise ConfigurationError("WHATSAPP_ACCESS_TOKEN and WHATSAPP_PHONE_NUMBER_ID must be set")
        base_url = self.settings.WHATSAPP_API_BASE_URL.rstrip("/")
        return f"{base_url}/{self.settings.WHATSAPP_API_VERSION}/{self.settings.WHATSAPP_PHONE_NUMBER_ID}/messages"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.WHATSAPP_ACCESS_TOKEN}"}

    def _extract_message_id(self, body: Any) -> Optional[str]:
        if isinstance(body, dict):
            messages = body.get("messages") or []
            if messages:
                return messages[0].get("id")
        return None

    async def _send(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self._messages_url()
        logger.info(f"📤 Sending WhatsApp {payload['type']} message to {payload['to']}")
        return await self._post_json(url, payload, headers=self._headers())

    async def send_text(self, native_id: str, text: str) -> Dict[str, Any]:
        return await self._send(create_text_message(native_id, text))

    async def send_template(self, to: str, template_name: str, parameters: Optional[List[str]] = None) -> Dict[str, Any]:
        payload = create_template_message(
            to,
            template_name,
            language_code=self.settings.WHATSAPP_TEMPLATE_LANGUAGE,
            parameters=parameters,
        )
        return await self._send(payload)

    async def send_interactive_list(self, to: str, text: str, options: List[str]) -> Dict[str, Any]:
        return await self._send(create_list_message(to, text, options))

    async def send_question(self, native_id: str, question: Question) -> Dict[str, Any]:
        return await self.send_interactive_list(native_id, question.text, list(question.options))

    async def send_start_of_day(self, native_id: str, context: StartOfDayContext) -> Dict[str, Any]:
        # Free-form text is refused outside a user-initiated session
        return await self.send_template(native_id, self.settings.WHATSAPP_START_TEMPLATE)
