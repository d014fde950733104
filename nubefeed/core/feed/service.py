"""
Feed generation service - orchestrates the entire feed generation process.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Optional

from nubefeed.core.metrics import FeedMetrics
from nubefeed.core.tn_client import TiendanubeClient, TiendanubeError
from .brand import BrandResolver
from .cache import cache_key, etag_matches
from .domain import DomainResolver
from .flattener import flatten_products
from .models import FeedConfig, FeedResult
from .xml_writer import write_feed_xml


logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], TiendanubeClient]


class StoreNotInstalledError(Exception):
    """No access token is stored for the requested store."""

    def __init__(self, store_id: str):
        super().__init__(f"No token for store {store_id}; install the app first")
        self.store_id = store_id


class FeedService:
    """
    Serves feeds for installed stores.

    token lookup -> cache lookup -> (miss) domain, products, flatten,
    serialize -> cache put. A matching If-None-Match turns either path into a
    not-modified result.
    """

    def __init__(
        self,
        token_store,
        cache,
        domain_resolver: DomainResolver,
        brand_resolver: BrandResolver,
        client_factory: ClientFactory,
        config: Optional[FeedConfig] = None,
        metrics: Optional[FeedMetrics] = None
    ):
        """
        Args:
            token_store: Memory or redis token store
            cache: Memory or redis feed cache
            domain_resolver: Public host resolver
            brand_resolver: Per-product brand resolver
            client_factory: Builds an API client from (store_id, access_token)
            config: Feed settings
            metrics: Per-store counters
        """
        self.token_store = token_store
        self.cache = cache
        self.domain_resolver = domain_resolver
        self.brand_resolver = brand_resolver
        self.client_factory = client_factory
        self.config = config or FeedConfig()
        self.metrics = metrics or FeedMetrics()

    async def _require_token(self, store_id: str) -> str:
        token = await self.token_store.load(store_id)
        if not token:
            self.metrics.incr(store_id, "unauthorized")
            logger.info(f"Feed requested for store {store_id} without a stored token")
            raise StoreNotInstalledError(store_id)
        return token

    async def get_feed(
        self,
        store_id: str,
        domain_override: Optional[str] = None,
        if_none_match: Optional[str] = None
    ) -> FeedResult:
        """
        Return the feed for a store, from cache when fresh.

        Args:
            store_id: Store id
            domain_override: Caller-requested host (ignored unless valid)
            if_none_match: Conditional request validator

        Returns:
            FeedResult; not_modified is set when the validator matches

        Raises:
            StoreNotInstalledError: No token for the store
            TiendanubeError: Product listing failed
        """
        store_id = str(store_id)
        self.metrics.incr(store_id, "requests")
        token = await self._require_token(store_id)

        override_host = self.domain_resolver.normalize_override(domain_override)
        key = cache_key(store_id, override_host)

        entry = await self.cache.get(key)
        if entry is not None:
            self.metrics.incr(store_id, "cache_hits")
            logger.debug(f"Feed cache hit for {key} ({entry.fingerprint})")
            result = FeedResult(
                store_id=store_id,
                xml_bytes=entry.xml_bytes,
                fingerprint=entry.fingerprint,
                from_cache=True
            )
        else:
            result = await self.generate(store_id, token, override_host, key)

        if etag_matches(if_none_match, result.fingerprint):
            self.metrics.incr(store_id, "not_modified")
            return replace(result, not_modified=True)
        return result

    async def generate(
        self,
        store_id: str,
        token: str,
        override_host: Optional[str] = None,
        key: Optional[str] = None
    ) -> FeedResult:
        """Build a fresh feed document and store it in the cache."""
        started = time.monotonic()
        client = self.client_factory(store_id, token)
        try:
            hostname = await self.domain_resolver.resolve(store_id, client, override_host)
            products = await client.fetch_all_products()
        except TiendanubeError as e:
            self.metrics.incr(store_id, "errors")
            logger.error(f"Feed generation failed for store {store_id}: status={e.status_code} | {e}")
            raise
        finally:
            await client.close()

        items = flatten_products(products, self.config.variant_mode, self.config.primary_language)
        xml_string = write_feed_xml(
            items,
            hostname,
            self.config,
            brand_for=lambda item: self.brand_resolver.resolve(store_id, item.source)
        )
        xml_bytes = xml_string.encode("utf-8")
        digest = await self.cache.put(key or cache_key(store_id, override_host), xml_bytes)

        item_count = sum(1 for item in items if item.price)
        duration_ms = (time.monotonic() - started) * 1000
        self.metrics.record_generation(store_id, item_count, duration_ms)
        logger.info(
            f"Generated feed for store {store_id}: {len(products)} products, "
            f"{item_count} items, host={hostname}, {duration_ms:.0f} ms"
        )

        return FeedResult(
            store_id=store_id,
            xml_bytes=xml_bytes,
            fingerprint=digest,
            from_cache=False,
            item_count=item_count,
            hostname=hostname
        )

    async def resolve_domain(self, store_id: str, domain_override: Optional[str] = None) -> str:
        """Resolve the public host for an installed store (debug helper)."""
        store_id = str(store_id)
        token = await self._require_token(store_id)
        client = self.client_factory(store_id, token)
        try:
            return await self.domain_resolver.resolve(store_id, client, domain_override)
        finally:
            await client.close()
