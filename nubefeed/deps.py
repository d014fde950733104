"""
Dependency injection for FastAPI.
"""

import logging
from typing import Optional, Union
import httpx
import redis.asyncio as aioredis

from nubefeed.config import Settings, get_settings, parse_store_map
from nubefeed.core.metrics import FeedMetrics
from nubefeed.core.tn_client import TiendanubeClient
from nubefeed.core.token_store import MemoryTokenStore, RedisTokenStore
from nubefeed.core.feed import (
    BrandResolver,
    DomainResolver,
    FeedConfig,
    FeedService,
    MemoryFeedCache,
    RedisFeedCache,
)


logger = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None
_http_client: Optional[httpx.AsyncClient] = None
_token_store: Optional[Union[MemoryTokenStore, RedisTokenStore]] = None
_feed_service: Optional[FeedService] = None


def get_redis() -> Optional[aioredis.Redis]:
    """Get Redis client (singleton), or None when REDIS_URL is not set."""
    global _redis_client
    settings = get_settings()
    if _redis_client is None and settings.redis_url:
        _redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=3.0,
            retry_on_timeout=True,
            health_check_interval=30
        )
    return _redis_client


def get_http_client() -> httpx.AsyncClient:
    """Shared httpx client for all upstream calls."""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(
            timeout=get_settings().http_timeout,
            follow_redirects=True
        )
    return _http_client


def get_token_store() -> Union[MemoryTokenStore, RedisTokenStore]:
    """Token store: redis-backed if configured, otherwise in memory."""
    global _token_store
    if _token_store is None:
        redis = get_redis()
        if redis is not None:
            _token_store = RedisTokenStore(redis)
        else:
            logger.warning("REDIS_URL not set: tokens are kept in memory only")
            _token_store = MemoryTokenStore()
    return _token_store


def build_feed_config(settings: Settings) -> FeedConfig:
    return FeedConfig(
        variant_mode=settings.variant_mode,
        primary_language=settings.primary_language,
        currency=settings.feed_currency,
        platform_domain=settings.platform_domain,
        platform_owned_domains=tuple(settings.owned_domains())
    )


def build_feed_service(
    settings: Settings,
    token_store,
    redis: Optional[aioredis.Redis] = None,
    http_client: Optional[httpx.AsyncClient] = None
) -> FeedService:
    """Wire a FeedService from settings. Override maps are parsed once here."""
    config = build_feed_config(settings)

    if redis is not None:
        cache = RedisFeedCache(redis, ttl=settings.feed_cache_ttl)
    else:
        cache = MemoryFeedCache(ttl=settings.feed_cache_ttl)

    def client_factory(store_id: str, access_token: str) -> TiendanubeClient:
        return TiendanubeClient(
            store_id=store_id,
            access_token=access_token,
            api_base=settings.tn_api_base,
            user_agent=settings.tn_user_agent,
            page_size=settings.products_page_size,
            timeout=settings.http_timeout,
            http_client=http_client
        )

    return FeedService(
        token_store=token_store,
        cache=cache,
        domain_resolver=DomainResolver(
            domain_map=parse_store_map(settings.domains_map),
            platform_domain=settings.platform_domain,
            owned_domains=config.platform_owned_domains,
            primary_language=settings.primary_language
        ),
        brand_resolver=BrandResolver(
            brand_map=parse_store_map(settings.brands_map),
            default_brand=settings.default_brand,
            primary_language=settings.primary_language
        ),
        client_factory=client_factory,
        config=config,
        metrics=FeedMetrics()
    )


def get_feed_service() -> FeedService:
    """Feed service singleton."""
    global _feed_service
    if _feed_service is None:
        _feed_service = build_feed_service(
            get_settings(),
            get_token_store(),
            redis=get_redis(),
            http_client=get_http_client()
        )
    return _feed_service


async def close_clients():
    """Close Redis and HTTP connections."""
    global _redis_client, _http_client, _token_store, _feed_service
    _feed_service = None
    _token_store = None
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
