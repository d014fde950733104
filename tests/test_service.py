import pytest

from nubefeed.core.feed import (
    BrandResolver,
    DomainResolver,
    FeedConfig,
    FeedService,
    MemoryFeedCache,
    StoreNotInstalledError,
)
from nubefeed.core.metrics import FeedMetrics
from nubefeed.core.tn_client import TiendanubeError
from nubefeed.core.token_store import MemoryTokenStore
from tests.conftest import STORE_ID, json_response


@pytest.fixture
def token_store():
    return MemoryTokenStore()


@pytest.fixture
def service(token_store, make_client):
    return FeedService(
        token_store=token_store,
        cache=MemoryFeedCache(ttl=300),
        domain_resolver=DomainResolver(domain_map={STORE_ID: "shop.example.com"}),
        brand_resolver=BrandResolver(default_brand="House"),
        client_factory=lambda store_id, token: make_client(store_id, token),
        config=FeedConfig(variant_mode="split"),
        metrics=FeedMetrics()
    )


@pytest.fixture
def installed(token_store, fake_api, shoe_product):
    async def install():
        await token_store.save(STORE_ID, "tok")
        fake_api.routes["GET /123/products"] = [shoe_product]
    return install


def product_requests(fake_api):
    return [r for r in fake_api.requests if r.url.path.endswith("/products")]


@pytest.mark.asyncio
async def test_unknown_store_is_unauthorized(service, fake_api):
    with pytest.raises(StoreNotInstalledError):
        await service.get_feed(STORE_ID)
    assert fake_api.requests == []
    assert service.metrics.snapshot(STORE_ID)[STORE_ID]["unauthorized"] == 1


@pytest.mark.asyncio
async def test_miss_then_hit(service, fake_api, installed):
    await installed()

    first = await service.get_feed(STORE_ID)
    assert not first.from_cache
    assert first.item_count == 2
    assert first.hostname == "shop.example.com"
    assert b"https://shop.example.com/productos/shoe" in first.xml_bytes

    second = await service.get_feed(STORE_ID)
    assert second.from_cache
    assert second.xml_bytes == first.xml_bytes
    assert second.fingerprint == first.fingerprint
    assert len(product_requests(fake_api)) == 1

    stats = service.metrics.snapshot(STORE_ID)[STORE_ID]
    assert stats["requests"] == 2
    assert stats["cache_hits"] == 1
    assert stats["generated"] == 1


@pytest.mark.asyncio
async def test_not_modified_from_cache(service, installed):
    await installed()
    first = await service.get_feed(STORE_ID)
    result = await service.get_feed(STORE_ID, if_none_match=f'"{first.fingerprint}"')
    assert result.not_modified
    assert result.from_cache


@pytest.mark.asyncio
async def test_not_modified_on_fresh_generation(service, installed):
    await installed()
    first = await service.get_feed(STORE_ID)
    await service.cache.invalidate(STORE_ID)

    result = await service.get_feed(STORE_ID, if_none_match=first.fingerprint)
    assert result.not_modified
    assert not result.from_cache


@pytest.mark.asyncio
async def test_stale_validator_gets_body(service, installed):
    await installed()
    result = await service.get_feed(STORE_ID, if_none_match='"stale"')
    assert not result.not_modified
    assert result.xml_bytes


@pytest.mark.asyncio
async def test_override_has_its_own_cache_entry(service, fake_api, installed):
    await installed()
    default = await service.get_feed(STORE_ID)
    custom = await service.get_feed(STORE_ID, domain_override="https://other.example.com/")
    assert custom.hostname == "other.example.com"
    assert not custom.from_cache
    assert custom.fingerprint != default.fingerprint
    assert len(product_requests(fake_api)) == 2

    # Platform subdomains are not honored as overrides
    platform = await service.get_feed(STORE_ID, domain_override="x.mitiendanube.com")
    assert platform.from_cache
    assert platform.fingerprint == default.fingerprint


@pytest.mark.asyncio
async def test_listing_failure_propagates_and_is_not_cached(service, fake_api, installed, shoe_product):
    await installed()
    fake_api.routes["GET /123/products"] = json_response({"code": 502}, 502)
    with pytest.raises(TiendanubeError):
        await service.get_feed(STORE_ID)
    assert await service.cache.get(STORE_ID) is None
    assert service.metrics.snapshot(STORE_ID)[STORE_ID]["errors"] == 1

    fake_api.routes["GET /123/products"] = [shoe_product]
    assert not (await service.get_feed(STORE_ID)).from_cache


@pytest.mark.asyncio
async def test_empty_catalog_is_a_valid_feed(service, fake_api, token_store):
    await token_store.save(STORE_ID, "tok")
    fake_api.routes["GET /123/products"] = []
    result = await service.get_feed(STORE_ID)
    assert result.item_count == 0
    assert b"<channel>" in result.xml_bytes
    assert b"<item>" not in result.xml_bytes


@pytest.mark.asyncio
async def test_brand_resolution_is_per_store(service, fake_api, installed, shoe_product):
    await installed()
    shoe_product.pop("brand")
    fake_api.routes["GET /123/products"] = [shoe_product]
    result = await service.get_feed(STORE_ID)
    assert b"House" in result.xml_bytes


@pytest.mark.asyncio
async def test_resolve_domain(service, token_store):
    await token_store.save(STORE_ID, "tok")
    assert await service.resolve_domain(STORE_ID) == "shop.example.com"
    with pytest.raises(StoreNotInstalledError):
        await service.resolve_domain("999")


@pytest.mark.asyncio
async def test_out_of_range_price_does_not_fail_the_feed(service, fake_api, token_store, shoe_product):
    await token_store.save(STORE_ID, "tok")
    broken = {"id": 2, "name": "Broken", "handle": "broken", "variants": [{"id": 20, "price": "1e30"}]}
    fake_api.routes["GET /123/products"] = [broken, shoe_product]

    result = await service.get_feed(STORE_ID)

    assert result.item_count == 2
    assert b"Broken" not in result.xml_bytes
