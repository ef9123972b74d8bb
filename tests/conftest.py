"""Pytest configuration and fixtures"""
import asyncio
import os
from typing import Optional
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables before storefront.config is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test_anon_key")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")

from storefront.cart import CartEngine, MemoryCartStorage  # noqa: E402
from storefront.errors import CartStorageError  # noqa: E402


class RecordingStorage(MemoryCartStorage):
    """Memory storage that records calls and can fail or block on demand."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        super().__init__(initial)
        self.calls: list[tuple] = []
        self.writes: list[str] = []
        self.fail_reads = False
        self.fail_writes = False
        self.fail_deletes = False
        self.read_gate: Optional[asyncio.Event] = None

    async def get(self, key: str) -> Optional[str]:
        self.calls.append(("get", key))
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_reads:
            raise CartStorageError("read failed")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self.calls.append(("set", key))
        if self.fail_writes:
            raise CartStorageError("quota exceeded")
        self.writes.append(value)
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        if self.fail_deletes:
            raise CartStorageError("delete failed")
        await super().delete(key)

    def stored(self, key: str = "cart") -> Optional[str]:
        return self._data.get(key)


@pytest.fixture
def storage():
    """Empty recording storage"""
    return RecordingStorage()


@pytest.fixture
def engine(storage):
    """Cart engine over the recording storage (not hydrated)"""
    return CartEngine(storage)


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client"""
    client = Mock()

    # Every builder method returns the same query object; execute() is awaited
    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.neq.return_value = table_mock
    table_mock.gte.return_value = table_mock
    table_mock.lte.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.order.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock

    return client


@pytest.fixture
def mock_redis():
    """Mock async Upstash Redis client"""
    redis = Mock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def sample_product():
    """Sample product row"""
    return {
        "id": 1,
        "name": "Ceramic Mug",
        "price": 9.99,
        "image_url": "https://cdn.example.com/mug.png",
        "category": "Kitchen",
        "description": "Holds coffee",
    }


@pytest.fixture
def sample_products(sample_product):
    """Several product rows across two categories"""
    return [
        sample_product,
        {"id": 2, "name": "Teapot", "price": 24.5, "image_url": None, "category": "Kitchen"},
        {"id": 3, "name": "Desk Lamp", "price": 39, "image_url": None, "category": "Office"},
    ]
