"""Tests for cart storage backends"""
from unittest.mock import AsyncMock

import pytest

from storefront.cart import (
    FileCartStorage,
    MemoryCartStorage,
    RedisCartStorage,
    create_cart_storage,
)
from storefront.errors import CartStorageError


@pytest.mark.asyncio
async def test_memory_storage_get_set_delete():
    storage = MemoryCartStorage({"cart": "[]"})

    assert await storage.get("cart") == "[]"
    await storage.set("cart", '[{"id": 1}]')
    assert await storage.get("cart") == '[{"id": 1}]'
    await storage.delete("cart")
    await storage.delete("cart")
    assert await storage.get("cart") is None


@pytest.mark.asyncio
async def test_file_storage_round_trip(tmp_path):
    storage = FileCartStorage(tmp_path / "nested")

    assert await storage.get("cart") is None
    await storage.set("cart", "[1]")
    await storage.set("cart", "[2]")

    assert await storage.get("cart") == "[2]"
    assert (tmp_path / "nested" / "cart.json").read_text() == "[2]"
    # No temporary files left behind
    assert [p.name for p in (tmp_path / "nested").iterdir()] == ["cart.json"]


@pytest.mark.asyncio
async def test_file_storage_delete(tmp_path):
    storage = FileCartStorage(tmp_path)
    await storage.set("cart", "[]")

    await storage.delete("cart")
    await storage.delete("cart")

    assert not (tmp_path / "cart.json").exists()


@pytest.mark.asyncio
async def test_file_storage_write_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    storage = FileCartStorage(blocker)

    with pytest.raises(CartStorageError):
        await storage.set("cart", "[]")


@pytest.mark.asyncio
async def test_file_storage_read_error(tmp_path):
    (tmp_path / "cart.json").mkdir()
    storage = FileCartStorage(tmp_path)

    with pytest.raises(CartStorageError):
        await storage.get("cart")


class TestRedisCartStorage:
    """Tests for the Upstash Redis backend."""

    @pytest.mark.asyncio
    async def test_set_uses_prefix_and_ttl(self, mock_redis):
        storage = RedisCartStorage(redis=mock_redis, ttl=3600)

        await storage.set("cart", "[]")

        mock_redis.set.assert_awaited_once_with("storefront:cart", "[]", ex=3600)

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, mock_redis):
        storage = RedisCartStorage(redis=mock_redis, ttl=0)

        await storage.set("cart", "[]")

        mock_redis.set.assert_awaited_once_with("storefront:cart", "[]")

    @pytest.mark.asyncio
    async def test_default_ttl_is_one_day(self, mock_redis):
        assert RedisCartStorage(redis=mock_redis).ttl == 86400

    @pytest.mark.asyncio
    async def test_get(self, mock_redis):
        mock_redis.get.return_value = '[{"id": 1, "price": 1, "quantity": 1}]'
        storage = RedisCartStorage(redis=mock_redis)

        assert await storage.get("cart") == '[{"id": 1, "price": 1, "quantity": 1}]'
        mock_redis.get.assert_awaited_once_with("storefront:cart")

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_redis):
        assert await RedisCartStorage(redis=mock_redis).get("cart") is None

    @pytest.mark.asyncio
    async def test_delete(self, mock_redis):
        await RedisCartStorage(redis=mock_redis).delete("cart")

        mock_redis.delete.assert_awaited_once_with("storefront:cart")

    @pytest.mark.asyncio
    async def test_client_errors_are_wrapped(self, mock_redis):
        mock_redis.set = AsyncMock(side_effect=ConnectionError("network down"))
        storage = RedisCartStorage(redis=mock_redis)

        with pytest.raises(CartStorageError, match="network down"):
            await storage.set("cart", "[]")

    @pytest.mark.asyncio
    async def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr("storefront.db._redis_client", None)
        monkeypatch.setattr("storefront.config.UPSTASH_REDIS_REST_URL", "")
        storage = RedisCartStorage()

        with pytest.raises(CartStorageError, match="Redis not available"):
            await storage.get("cart")


class TestCreateCartStorage:
    """Tests for create_cart_storage()."""

    def test_memory(self):
        assert isinstance(create_cart_storage("memory"), MemoryCartStorage)

    def test_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("storefront.config.CART_STORAGE_DIR", str(tmp_path))

        storage = create_cart_storage("FILE")

        assert isinstance(storage, FileCartStorage)
        assert storage.directory == tmp_path

    def test_redis_is_lazy(self):
        storage = create_cart_storage("redis")
        assert isinstance(storage, RedisCartStorage)

    def test_configured_default(self):
        assert isinstance(create_cart_storage(), MemoryCartStorage)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown cart storage backend"):
            create_cart_storage("indexeddb")
