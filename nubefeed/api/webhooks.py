"""
Tiendanube webhook endpoint.
"""

import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from nubefeed.config import Settings, get_settings
from nubefeed.deps import get_feed_service, get_token_store
from nubefeed.core.feed import FeedService
from nubefeed.core.security import verify_webhook_signature
from nubefeed.schemas.oauth import WebhookPayload

router = APIRouter(tags=["Webhooks"])

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Linkedstore-Hmac-Sha256"


@router.post("/webhook", response_class=PlainTextResponse)
async def receive_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    token_store=Depends(get_token_store),
    service: FeedService = Depends(get_feed_service)
):
    """
    Handle app/uninstalled: drop the store's token and cached feeds.

    The signature is an HMAC-SHA256 of the raw body keyed with the app secret.
    """
    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    if not verify_webhook_signature(body, signature, settings.tn_client_secret):
        logger.error("[Webhook] Invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature"
        )

    try:
        payload = WebhookPayload.model_validate(json.loads(body or b"{}"))
    except (ValueError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook body"
        )

    if payload.event == "app/uninstalled" and payload.store_id:
        store_id = str(payload.store_id)
        await token_store.delete(store_id)
        await service.cache.invalidate(store_id)
        logger.info(f"[Webhook] app/uninstalled received for store_id={store_id}: token removed")
    else:
        logger.debug(f"[Webhook] Ignoring event {payload.event} for store_id={payload.store_id}")

    return "OK"
