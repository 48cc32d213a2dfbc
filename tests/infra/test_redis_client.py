# tests/infra/test_redis_client.py
"""
Тесты для клиента Redis.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from cargo_exchange.core.geo.models import Location
from cargo_exchange.infra.redis_client import RedisClient


class TestRedisClient:
    """Тесты для RedisClient."""

    @pytest.fixture
    def redis_client(self) -> RedisClient:
        """Сбрасываем синглтон для каждого теста."""
        RedisClient._instance = None
        return RedisClient()

    @pytest.fixture
    def connected(self, redis_client: RedisClient) -> AsyncMock:
        client = AsyncMock()
        redis_client._client = client
        return client

    def test_singleton(self, redis_client: RedisClient) -> None:
        assert RedisClient() is redis_client

    def test_client_not_initialized(self, redis_client: RedisClient) -> None:
        with pytest.raises(RuntimeError, match="Redis клиент не инициализирован"):
            _ = redis_client.client
        assert redis_client.is_connected is False

    def test_make_key(self, redis_client: RedisClient) -> None:
        assert redis_client._make_key("geocode:en:abc") == "cargo:geocode:en:abc"

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        await redis_client.set("key", "value", ttl=60)
        connected.set.assert_awaited_once_with("cargo:key", "value", ex=60)

    @pytest.mark.asyncio
    async def test_model_roundtrip(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        location = Location(address="Chicago, IL", latitude=41.8781, longitude=-87.6298)

        await redis_client.set_model("loc", location, ttl=10)
        stored = connected.set.call_args.args[1]
        connected.get.return_value = stored

        assert await redis_client.get_model("loc", Location) == location

    @pytest.mark.asyncio
    async def test_get_model_missing(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        connected.get.return_value = None
        assert await redis_client.get_model("loc", Location) is None

    @pytest.mark.asyncio
    async def test_get_model_corrupted(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        """Битые данные в кэше трактуются как промах."""
        connected.get.return_value = "{not json"
        assert await redis_client.get_model("loc", Location) is None

    @pytest.mark.asyncio
    async def test_health_check_failure(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        connected.ping.side_effect = ConnectionError("down")
        assert await redis_client.health_check() is False

    @pytest.mark.asyncio
    async def test_disconnect(self, redis_client: RedisClient, connected: AsyncMock) -> None:
        await redis_client.disconnect()

        connected.aclose.assert_awaited_once()
        assert redis_client.is_connected is False
