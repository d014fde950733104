"""
Main API router.
"""

from fastapi import APIRouter
from nubefeed.api import feeds, oauth, webhooks, stores

router = APIRouter()

router.include_router(feeds.router)
router.include_router(oauth.router)
router.include_router(webhooks.router)

api_v1_router = APIRouter()

api_v1_router.include_router(stores.router, prefix="/stores", tags=["stores"])
