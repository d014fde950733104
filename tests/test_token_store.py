import pytest

from nubefeed.core.token_store import MemoryTokenStore, RedisTokenStore


class TestMemoryTokenStore:
    @pytest.mark.asyncio
    async def test_save_load_exists_delete(self):
        store = MemoryTokenStore()
        assert await store.load("123") is None
        assert not await store.exists("123")

        credential = await store.save(123, "tok")
        assert credential.store_id == "123"
        assert await store.load("123") == "tok"
        assert await store.exists("123")

        await store.delete("123")
        assert await store.load("123") is None
        assert not await store.exists("123")

    @pytest.mark.asyncio
    async def test_reinstall_overwrites(self):
        store = MemoryTokenStore()
        await store.save("123", "old")
        await store.save("123", "new")
        assert await store.load("123") == "new"
        assert len(await store.list_credentials()) == 1

    @pytest.mark.asyncio
    async def test_empty_store_id_never_exists(self):
        assert not await MemoryTokenStore().exists("")


class TestRedisTokenStore:
    @pytest.mark.asyncio
    async def test_persists_in_redis(self, fake_redis):
        store = RedisTokenStore(fake_redis)
        await store.save("123", "tok")
        assert fake_redis.data["nubefeed:token:123"]["access_token"] == "tok"

        # A fresh instance (new process) reads it back from redis
        other = RedisTokenStore(fake_redis)
        assert await other.load("123") == "tok"
        assert await other.exists("123")
        credential = await other.get("123")
        assert credential.issued_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_delete_removes_everywhere(self, fake_redis):
        store = RedisTokenStore(fake_redis)
        await store.save("123", "tok")
        await store.delete("123")
        assert "nubefeed:token:123" not in fake_redis.data
        assert await store.load("123") is None

    @pytest.mark.asyncio
    async def test_falls_back_to_memory_when_redis_down(self, fake_redis):
        store = RedisTokenStore(fake_redis)
        fake_redis.fail = True
        await store.save("123", "tok")
        assert await store.load("123") == "tok"
        assert await store.exists("123")
        await store.delete("123")
        assert await store.load("123") is None

    @pytest.mark.asyncio
    async def test_list_credentials_reads_redis(self, fake_redis):
        await RedisTokenStore(fake_redis).save("1", "a")
        store = RedisTokenStore(fake_redis)
        await store.save("2", "b")
        assert sorted(c.store_id for c in await store.list_credentials()) == ["1", "2"]

    @pytest.mark.asyncio
    async def test_delete_by_another_worker_is_seen(self, fake_redis):
        worker_a = RedisTokenStore(fake_redis)
        worker_b = RedisTokenStore(fake_redis)
        await worker_a.save("123", "tok")

        await worker_b.delete("123")

        assert await worker_a.load("123") is None
        assert not await worker_a.exists("123")
        assert await worker_a.list_credentials() == []

    @pytest.mark.asyncio
    async def test_list_credentials_from_memory_when_redis_down(self, fake_redis):
        store = RedisTokenStore(fake_redis)
        await store.save("1", "a")
        fake_redis.fail = True
        assert [c.store_id for c in await store.list_credentials()] == ["1"]
