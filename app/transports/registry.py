"""
app/transports/registry.py

Purpose: Selects the transport for a channel kind

- Built once at startup from settings
- Callers stay channel-agnostic: look up by kind, use the interface
"""

from typing import Dict, Iterable, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import UnsupportedChannelError
from app.models.channel import ChannelKind
from app.services.push_service import PushService
from app.transports.base import ChannelTransport
from app.transports.telegram import TelegramTransport
from app.transports.web_push import WebPushTransport
from app.transports.whatsapp import WhatsAppTransport


class TransportRegistry:

    def __init__(self, transports: Iterable[ChannelTransport]):
        self._transports: Dict[ChannelKind, ChannelTransport] = {
            transport.kind: transport for transport in transports
        }

    def get(self, kind: ChannelKind) -> ChannelTransport:
        try:
            return self._transports[ChannelKind(kind)]
        except (KeyError, ValueError):
            raise UnsupportedChannelError(f"No transport registered for {kind}", details={"channel": str(kind)})

    def kinds(self):
        return list(self._transports)


def build_transports(
    settings: Settings,
    push_service: PushService,
    client: Optional[httpx.AsyncClient] = None
) -> TransportRegistry:
    """
    Creates one transport per supported channel.
    Telegram and WhatsApp share `client` when given.
    """
    return TransportRegistry([
        TelegramTransport(settings, client=client),
        WhatsAppTransport(settings, client=client),
        WebPushTransport(settings, push_service),
    ])
