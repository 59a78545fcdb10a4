"""
app/api/telegram.py

Purpose: Telegram webhook endpoint

- Checks the secret token Telegram echoes back (when configured)
- Normalizes the update and hands it to the inbound router
- Always acknowledges so Telegram does not redeliver
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from app.api.deps import get_container
from app.core.container import ServiceContainer
from app.core.logging import get_logger
from app.schemas.webhook import parse_telegram_update

logger = get_logger(__name__)
router = APIRouter()


@router.post("/telegram/webhook")
async def telegram_webhook(
    request: Request,
    container: ServiceContainer = Depends(get_container),
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
):
    """
    Receives Telegram updates.

    Returns:
        {"ok": True}
    """
    expected = container.settings.TELEGRAM_WEBHOOK_SECRET
    if expected and not hmac.compare_digest(x_telegram_bot_api_secret_token or "", expected):
        logger.warning("Telegram webhook called with a wrong secret token")
        raise HTTPException(status_code=401, detail="Invalid secret token")

    try:
        update = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    message = parse_telegram_update(update)
    if message is None:
        logger.debug("Telegram update without a message, ignoring")
        return {"ok": True}

    outcome = await container.router.handle(message)
    logger.info(f"Telegram update handled: {outcome}")
    return {"ok": True}
