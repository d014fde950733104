"""
Per-store access token storage.

MemoryTokenStore keeps tokens for the life of the process. RedisTokenStore
persists them in redis and mirrors every write in memory. Redis answers every
read while it is reachable, so a delete made by another worker is seen at
once; the mirror is only read when a redis call fails.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreCredential:
    """Access credential for one store."""
    store_id: str
    access_token: str
    issued_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryTokenStore:
    """In-process token store."""

    def __init__(self):
        self._credentials: Dict[str, StoreCredential] = {}

    async def save(self, store_id: str, access_token: str) -> StoreCredential:
        credential = StoreCredential(str(store_id), access_token, _now())
        self._credentials[credential.store_id] = credential
        return credential

    async def get(self, store_id: str) -> Optional[StoreCredential]:
        return self._credentials.get(str(store_id))

    async def load(self, store_id: str) -> Optional[str]:
        credential = await self.get(store_id)
        return credential.access_token if credential else None

    async def exists(self, store_id: str) -> bool:
        if not store_id:
            return False
        return str(store_id) in self._credentials

    async def delete(self, store_id: str) -> None:
        self._credentials.pop(str(store_id), None)

    async def list_credentials(self) -> List[StoreCredential]:
        return sorted(self._credentials.values(), key=lambda c: c.issued_at, reverse=True)


class RedisTokenStore(MemoryTokenStore):
    """Redis-backed token store with an in-memory mirror."""

    KEY_PREFIX = "nubefeed:token:"

    def __init__(self, redis_client: aioredis.Redis):
        """
        Initialize token store.

        Args:
            redis_client: Redis async client (decode_responses=True)
        """
        super().__init__()
        self.redis = redis_client

    def _key(self, store_id: str) -> str:
        return f"{self.KEY_PREFIX}{store_id}"

    async def save(self, store_id: str, access_token: str) -> StoreCredential:
        credential = await super().save(store_id, access_token)
        try:
            await self.redis.hset(self._key(credential.store_id), mapping={
                "store_id": credential.store_id,
                "access_token": credential.access_token,
                "created_at": credential.issued_at.isoformat(),
            })
            logger.info(f"Token saved for store_id={credential.store_id}")
        except RedisError as e:
            logger.error(f"Error saving token for store_id={credential.store_id}: {e}")
        return credential

    async def get(self, store_id: str) -> Optional[StoreCredential]:
        store_id = str(store_id)
        try:
            data = await self.redis.hgetall(self._key(store_id))
        except RedisError as e:
            logger.error(f"Error reading token for store_id={store_id}: {e}")
            return await super().get(store_id)

        if not data or not data.get("access_token"):
            return None
        try:
            issued_at = datetime.fromisoformat(data.get("created_at", ""))
        except ValueError:
            issued_at = _now()
        return StoreCredential(store_id, data["access_token"], issued_at)

    async def exists(self, store_id: str) -> bool:
        if not store_id:
            return False
        try:
            return bool(await self.redis.exists(self._key(str(store_id))))
        except RedisError as e:
            logger.error(f"Error checking token for store_id={store_id}: {e}")
            return await super().exists(store_id)

    async def delete(self, store_id: str) -> None:
        await super().delete(store_id)
        try:
            await self.redis.delete(self._key(str(store_id)))
            logger.info(f"Token deleted for store_id={store_id}")
        except RedisError as e:
            logger.error(f"Error deleting token for store_id={store_id}: {e}")

    async def list_credentials(self) -> List[StoreCredential]:
        credentials = []
        try:
            async for key in self.redis.scan_iter(match=f"{self.KEY_PREFIX}*"):
                credential = await self.get(key[len(self.KEY_PREFIX):])
                if credential:
                    credentials.append(credential)
        except RedisError as e:
            logger.error(f"Error listing tokens: {e}")
            return await super().list_credentials()
        return sorted(credentials, key=lambda c: c.issued_at, reverse=True)
