"""
app/api/whatsapp.py

Purpose: WhatsApp Cloud API webhook

- GET: hub subscription handshake
- POST: signature check (X-Hub-Signature-256), then each message
  goes to the inbound router
"""

import hashlib
import hmac
import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from app.api.deps import get_container
from app.core.container import ServiceContainer
from app.core.logging import get_logger
from app.schemas.webhook import parse_whatsapp_payload

logger = get_logger(__name__)
router = APIRouter()

SIGNATURE_PREFIX = "sha256="


def verify_signature(body: bytes, signature: Optional[str], app_secret: str) -> bool:
    """
    Checks the HMAC-SHA256 of the raw body against the X-Hub-Signature-256 header.
    """
    if not signature or not signature.startswith(SIGNATURE_PREFIX):
        return False
    expected = hmac.new(app_secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature[len(SIGNATURE_PREFIX):], expected)


@router.get("/whatsapp/webhook")
async def whatsapp_verification(
    container: ServiceContainer = Depends(get_container),
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """
    Meta calls this once when the webhook is registered and expects
    the challenge echoed back as plain text.
    """
    expected = container.settings.WHATSAPP_WEBHOOK_TOKEN
    if (
        hub_mode == "subscribe"
        and expected
        and hub_verify_token
        and hmac.compare_digest(hub_verify_token, expected)
    ):
        logger.info("✅ WhatsApp webhook verified")
        return PlainTextResponse(hub_challenge or "")

    logger.warning("WhatsApp webhook verification failed")
    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("/whatsapp/webhook")
async def whatsapp_webhook(
    request: Request,
    container: ServiceContainer = Depends(get_container),
    x_hub_signature_256: Optional[str] = Header(None),
):
    """
    Receives WhatsApp message notifications.
    Status callbacks (sent/delivered/read) are acknowledged and dropped.
    """
    body = await request.body()

    app_secret = container.settings.FACEBOOK_APP_SECRET
    if not app_secret:
        logger.error("FACEBOOK_APP_SECRET not set, rejecting unsigned webhook")
        raise HTTPException(status_code=401, detail="Webhook signature cannot be verified")
    if not verify_signature(body, x_hub_signature_256, app_secret):
        logger.warning("WhatsApp webhook signature mismatch")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    outcomes = []
    for message in parse_whatsapp_payload(payload):
        outcomes.append(await container.router.handle(message))

    if outcomes:
        logger.info(f"WhatsApp webhook handled: {outcomes}")
    return {"status": "success", "processed": len(outcomes)}
