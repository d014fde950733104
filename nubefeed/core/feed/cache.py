"""
Short-TTL feed cache with content fingerprints for ETag support.
"""

import hashlib
import json
import logging
import re
import time
from typing import Callable, Dict, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .models import CacheEntry


logger = logging.getLogger(__name__)

DEFAULT_TTL = 300

GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def glob_escape(value: str) -> str:
    """Escape redis MATCH metacharacters so value is matched literally."""
    return GLOB_SPECIAL.sub(r"\\\1", value)


def fingerprint(xml_bytes: bytes) -> str:
    """Deterministic digest of a feed body."""
    return hashlib.md5(xml_bytes).hexdigest()


def cache_key(store_id: str, hostname_override: Optional[str] = None) -> str:
    """Cache key for a store, qualified by the domain override if any."""
    return f"{store_id}@{hostname_override}" if hostname_override else str(store_id)


def etag_matches(if_none_match: Optional[str], current: Optional[str]) -> bool:
    """
    Check an If-None-Match header against a fingerprint.

    Accepts quoted or bare tags, weak (W/) tags, comma-separated lists and *.
    """
    if not if_none_match or not current:
        return False
    for tag in if_none_match.split(','):
        tag = tag.strip()
        if tag == '*':
            return True
        if tag.startswith('W/'):
            tag = tag[2:]
        if tag.strip('"') == current:
            return True
    return False


class MemoryFeedCache:
    """Per-store in-process cache; entries expire lazily on read."""

    def __init__(self, ttl: int = DEFAULT_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self.clock()):
            # Only evict the entry we looked at; a newer put may have replaced it
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry

    async def put(self, key: str, xml_bytes: bytes) -> str:
        now = self.clock()
        digest = fingerprint(xml_bytes)
        self._entries[key] = CacheEntry(
            store_id=key,
            xml_bytes=xml_bytes,
            fingerprint=digest,
            generated_at=now,
            expires_at=now + self.ttl
        )
        return digest

    async def invalidate(self, store_id: str) -> None:
        """Drop every entry belonging to a store (including override keys)."""
        prefix = f"{store_id}@"
        for key in list(self._entries):
            if key == store_id or key.startswith(prefix):
                self._entries.pop(key, None)


class RedisFeedCache:
    """Feed cache stored in redis; expiry is enforced by redis TTLs."""

    KEY_PREFIX = "nubefeed:feed:"

    def __init__(self, redis_client: aioredis.Redis, ttl: int = DEFAULT_TTL, clock: Callable[[], float] = time.time):
        """
        Args:
            redis_client: Redis async client (decode_responses=True)
            ttl: Entry lifetime in seconds
            clock: Time source (epoch seconds)
        """
        self.redis = redis_client
        self.ttl = ttl
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as e:
            logger.warning(f"Feed cache read failed for {key}: {e}")
            return None
        if not raw:
            return None

        try:
            data = json.loads(raw)
            entry = CacheEntry(
                store_id=key,
                xml_bytes=data["xml"].encode("utf-8"),
                fingerprint=data["fingerprint"],
                generated_at=float(data["generated_at"]),
                expires_at=float(data["expires_at"])
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable feed cache entry for {key}: {e}")
            return None

        if entry.is_expired(self.clock()):
            return None
        return entry

    async def put(self, key: str, xml_bytes: bytes) -> str:
        now = self.clock()
        digest = fingerprint(xml_bytes)
        payload = json.dumps({
            "xml": xml_bytes.decode("utf-8"),
            "fingerprint": digest,
            "generated_at": now,
            "expires_at": now + self.ttl,
        })
        try:
            await self.redis.set(self._key(key), payload, ex=max(int(self.ttl), 1))
        except RedisError as e:
            logger.warning(f"Feed cache write failed for {key}: {e}")
        return digest

    async def invalidate(self, store_id: str) -> None:
        try:
            await self.redis.delete(self._key(store_id))
            pattern = f"{self.KEY_PREFIX}{glob_escape(str(store_id))}@*"
            async for redis_key in self.redis.scan_iter(match=pattern):
                await self.redis.delete(redis_key)
        except RedisError as e:
            logger.warning(f"Feed cache invalidation failed for store {store_id}: {e}")
