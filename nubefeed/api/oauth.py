"""
OAuth install flow endpoints.
"""

import logging
from typing import Optional
import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from nubefeed.config import Settings, get_settings, get_install_url
from nubefeed.deps import get_feed_service, get_http_client, get_token_store
from nubefeed.core.feed import FeedService
from nubefeed.core.security import sanitize_dict_for_logging
from nubefeed.core.tn_client import TiendanubeClient, TiendanubeError, exchange_code_for_token
from nubefeed.schemas.oauth import TokenExchangeResponse

router = APIRouter(tags=["OAuth"])

logger = logging.getLogger(__name__)

STORE_COOKIE = "store_id"
STORE_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days
UNINSTALL_EVENT = "app/uninstalled"


@router.get("/install")
async def install(
    state: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings)
):
    """Send the merchant to the Tiendanube authorization page."""
    return RedirectResponse(get_install_url(settings, state or ""))


@router.get("/oauth/callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    token_store=Depends(get_token_store),
    service: FeedService = Depends(get_feed_service),
    http_client: httpx.AsyncClient = Depends(get_http_client)
):
    """
    Exchange the authorization code, store the token and register the
    app/uninstalled webhook.
    """
    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing authorization code"
        )

    try:
        data = await exchange_code_for_token(
            code,
            settings.tn_client_id,
            settings.tn_client_secret,
            auth_base=settings.tn_auth_base,
            http_client=http_client
        )
    except TiendanubeError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to obtain access token (status={e.status_code})"
        )

    try:
        token = TokenExchangeResponse.model_validate(data)
    except ValidationError:
        logger.error(f"[OAuth] Invalid token response: {sanitize_dict_for_logging(data)}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Invalid token response from Tiendanube"
        )

    store_id = str(token.user_id)
    await token_store.save(store_id, token.access_token)
    await service.cache.invalidate(store_id)
    logger.info(f"[OAuth] Store {store_id} installed")

    client = TiendanubeClient(
        store_id=store_id,
        access_token=token.access_token,
        api_base=settings.tn_api_base,
        user_agent=settings.tn_user_agent,
        http_client=http_client
    )
    webhook_url = f"{settings.app_url.rstrip('/')}/webhook"
    try:
        await client.register_webhook(UNINSTALL_EVENT, webhook_url)
        logger.info(f"[Webhook] {UNINSTALL_EVENT} registered for store {store_id}")
    except TiendanubeError as e:
        logger.error(f"[Webhook] Could not register {UNINSTALL_EVENT} for store {store_id}: status={e.status_code}")

    response = RedirectResponse(
        f"/api/v1/stores/{store_id}/status",
        status_code=status.HTTP_303_SEE_OTHER
    )
    response.set_cookie(
        STORE_COOKIE,
        store_id,
        max_age=STORE_COOKIE_MAX_AGE,
        path="/",
        samesite="none",
        secure=True
    )
    return response
