"""
Store status endpoints.
"""

from fastapi import APIRouter, Depends

from nubefeed.config import Settings, get_settings, get_install_url, get_feed_url
from nubefeed.deps import get_token_store
from nubefeed.schemas.stores import StoreStatus

router = APIRouter()


@router.get("/{store_id}/status", response_model=StoreStatus)
async def get_store_status(
    store_id: str,
    settings: Settings = Depends(get_settings),
    token_store=Depends(get_token_store)
):
    """
    Installation status and feed URL for a store.
    """
    installed = await token_store.exists(store_id)
    return StoreStatus(
        store_id=store_id,
        installed=installed,
        feed_url=get_feed_url(settings, store_id) if installed else None,
        install_url=get_install_url(settings)
    )
