"""
Feed XML endpoint.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status

from nubefeed.deps import get_feed_service
from nubefeed.core.feed import FeedService, StoreNotInstalledError
from nubefeed.core.tn_client import TiendanubeError
from nubefeed.schemas.common import ErrorResponse

router = APIRouter(tags=["Feeds"])

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "text/xml; charset=utf-8"


@router.get(
    "/feed.xml",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def get_feed_xml(
    store_id: Optional[str] = Query(None),
    domain: Optional[str] = Query(None, description="Public host override"),
    if_none_match: Optional[str] = Header(None, alias="If-None-Match"),
    service: FeedService = Depends(get_feed_service)
):
    """
    Google Shopping feed for one store.

    Returns 304 with an empty body when If-None-Match matches the current
    ETag, whether the document came from cache or was just generated.
    """
    if not store_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing store_id"
        )

    try:
        result = await service.get_feed(store_id, domain_override=domain, if_none_match=if_none_match)
    except StoreNotInstalledError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token for this store. Install the app first."
        )
    except TiendanubeError as e:
        logger.exception(f"[Feed] Error generating feed for store {store_id} (upstream status={e.status_code})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error generating feed"
        )

    headers = {
        "ETag": f'"{result.fingerprint}"',
        "X-Feed-Cache": "HIT" if result.from_cache else "MISS",
    }

    if result.not_modified:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)

    return Response(
        content=result.xml_bytes,
        media_type=XML_MEDIA_TYPE,
        headers=headers
    )
