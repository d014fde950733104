"""Shared fixtures for the feed service tests."""

from __future__ import annotations

import fnmatch
import json
import re
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from nubefeed.config import Settings
from nubefeed.core.tn_client import TiendanubeClient


API_BASE = "https://api.test/v1"
AUTH_BASE = "https://auth.test"
STORE_ID = "123"


class FakeRedis:
    """Just enough of redis.asyncio.Redis (decode_responses=True) for the stores."""

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("redis is down")

    async def hset(self, key, mapping=None):
        self._check()
        self.data.setdefault(key, {}).update(mapping or {})
        return len(mapping or {})

    async def hgetall(self, key):
        self._check()
        return dict(self.data.get(key, {}))

    async def exists(self, key):
        self._check()
        return int(key in self.data)

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        return True

    async def scan_iter(self, match=None):
        self._check()
        # Redis escapes with a backslash; fnmatch with a one-character class
        pattern = re.sub(r"\\(.)", r"[\1]", match) if match is not None else None
        for key in list(self.data):
            if pattern is None or fnmatch.fnmatchcase(key, pattern):
                yield key

    async def ping(self):
        self._check()
        return True


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"Content-Type": "application/json"})


class FakeTiendanube:
    """
    Routes MockTransport requests to canned responses.

    routes maps "METHOD /path" (path without the API base) to a payload, an
    httpx.Response, or a callable(request) returning one.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/v1"):
            path = path[len("/v1"):]
        route = self.routes.get(f"{request.method} {path}")
        if route is None:
            return json_response({"code": 404, "message": "Not Found"}, 404)
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        return json_response(route)

    def paths(self) -> List[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_api() -> FakeTiendanube:
    return FakeTiendanube()


@pytest.fixture
def http_client(fake_api) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api))


@pytest.fixture
def make_client(http_client) -> Callable[..., TiendanubeClient]:
    def factory(store_id: str = STORE_ID, access_token: str = "tok", page_size: int = 200) -> TiendanubeClient:
        return TiendanubeClient(
            store_id=store_id,
            access_token=access_token,
            api_base=API_BASE,
            user_agent="nube-feed-tests (qa@example.com)",
            page_size=page_size,
            http_client=http_client
        )
    return factory


@pytest.fixture
def settings() -> Settings:
    return Settings(
        tn_client_id="4242",
        tn_client_secret="s3cret",
        tn_api_base=API_BASE,
        tn_auth_base=AUTH_BASE,
        tn_user_agent="nube-feed-tests (qa@example.com)",
        app_url="https://feeds.example.com",
        redis_url=None,
        domains_map="",
        brands_map="",
        default_brand="",
        variant_mode="split",
    )


@pytest.fixture
def shoe_product() -> Dict[str, Any]:
    return {
        "id": 1,
        "name": {"es": "Shoe", "pt": "Sapato"},
        "description": {"es": "<p>Comfortable <b>shoe</b></p>"},
        "handle": {"es": "shoe"},
        "images": [
            {"id": 501, "src": "https://cdn.example.com/shoe-front.jpg"},
            {"id": 502, "src": "https://cdn.example.com/shoe-side.jpg"},
        ],
        "variants": [
            {"id": 10, "price": "50.00", "promotional_price": None, "stock_management": True, "stock": 0,
             "image_id": 502, "values": [{"es": "40"}]},
            {"id": 11, "price": "55.00", "promotional_price": "45.00", "stock_management": False, "stock": None,
             "image_id": None, "values": [{"es": "41"}]},
        ],
        "brand": "Acme",
    }
