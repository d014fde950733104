"""
Debug endpoints, mounted only when DEBUG=true.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status

from nubefeed.deps import get_feed_service, get_token_store
from nubefeed.core.feed import FeedService, StoreNotInstalledError
from nubefeed.schemas.stores import DomainDebugResponse, MetricsResponse, TokenListResponse, TokenSummary

router = APIRouter()


@router.get("/tokens", response_model=TokenListResponse)
async def list_tokens(token_store=Depends(get_token_store)):
    """Stored tokens, newest first (token values are never returned)."""
    credentials = await token_store.list_credentials()
    return TokenListResponse(rows=[
        TokenSummary(store_id=c.store_id, created_at=c.issued_at.isoformat())
        for c in credentials[:50]
    ])


@router.get("/domain", response_model=DomainDebugResponse)
async def resolve_domain(
    store_id: Optional[str] = Query(None),
    domain: Optional[str] = Query(None),
    service: FeedService = Depends(get_feed_service)
):
    """Show which public domain the feed would use."""
    if not store_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="missing store_id"
        )
    try:
        resolved = await service.resolve_domain(store_id, domain)
    except StoreNotInstalledError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="no token"
        )
    return DomainDebugResponse(store_id=store_id, domain=resolved)


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    store_id: Optional[str] = Query(None),
    service: FeedService = Depends(get_feed_service)
):
    """Per-store feed counters."""
    return MetricsResponse(stores=service.metrics.snapshot(store_id))
