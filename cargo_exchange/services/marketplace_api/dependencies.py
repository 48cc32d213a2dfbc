# cargo_exchange/services/marketplace_api/dependencies.py
"""
Зависимости для Marketplace API.
"""

from __future__ import annotations

from typing import Optional

from cargo_exchange.core.booking.service import BookingService
from cargo_exchange.core.geo.service import GeoService
from cargo_exchange.core.matching.service import MatchingService
from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.orders.service import OrderService
from cargo_exchange.core.users.directory import UserDirectory
from cargo_exchange.infra.database import DatabaseManager
from cargo_exchange.infra.event_bus import EventBus
from cargo_exchange.infra.redis_client import RedisClient


_db: Optional[DatabaseManager] = None
_redis: Optional[RedisClient] = None
_event_bus: Optional[EventBus] = None
_geo_service: Optional[GeoService] = None
_directory: Optional[UserDirectory] = None
_capacity: Optional[CapacityTracker] = None
_order_service: Optional[OrderService] = None
_matching_service: Optional[MatchingService] = None
_booking_service: Optional[BookingService] = None


async def init_dependencies() -> None:
    """Инициализация всех зависимостей сервиса."""
    global _db, _redis, _event_bus, _geo_service, _directory
    global _capacity, _order_service, _matching_service, _booking_service

    from cargo_exchange.common.constants import TypeMsg
    from cargo_exchange.common.logger import log_info
    from cargo_exchange.config import settings
    from cargo_exchange.core.orders.repository import (
        InMemoryOrderRepository,
        PostgresOrderRepository,
    )
    from cargo_exchange.core.users.directory import (
        InMemoryUserDirectory,
        PostgresUserDirectory,
        demo_users,
    )

    if settings.system.STORAGE_BACKEND == "postgres":
        from cargo_exchange.infra.database import init_db

        _db = await init_db()
        directory = PostgresUserDirectory(_db)
        repository = PostgresOrderRepository(_db)
        if settings.system.SEED_DEMO_DATA:
            for user in demo_users():
                await directory.save_user(user)
            await log_info("Демо-пользователи записаны в PostgreSQL", type_msg=TypeMsg.DEBUG)
    else:
        seed = demo_users() if settings.system.SEED_DEMO_DATA else []
        directory = InMemoryUserDirectory(seed)
        repository = InMemoryOrderRepository()
        await log_info(
            f"Хранилище в памяти, пользователей: {len(seed)}",
            type_msg=TypeMsg.DEBUG,
        )

    if settings.redis.REDIS_ENABLED:
        from cargo_exchange.infra.redis_client import init_redis

        _redis = await init_redis()

    if settings.rabbitmq.RABBITMQ_ENABLED:
        from cargo_exchange.infra.event_bus import init_event_bus

        _event_bus = await init_event_bus()

    _geo_service = GeoService(
        settings.google_maps.GOOGLE_MAPS_API_KEY,
        settings.google_maps.GEOCODING_LANGUAGE,
        timeout=settings.timeouts.GEOCODING_TIMEOUT,
        retry_attempts=settings.timeouts.GEOCODING_RETRY_ATTEMPTS,
        retry_delay=settings.timeouts.GEOCODING_RETRY_DELAY,
        cache=_redis,
        cache_ttl=settings.redis_ttl.GEOCODE_TTL,
    )

    _directory = directory
    _capacity = CapacityTracker(repository, directory)
    _order_service = OrderService(repository, directory, _capacity, _event_bus)
    _matching_service = MatchingService(directory, _capacity)
    _booking_service = BookingService(_geo_service, _matching_service, _order_service)

    await log_info("Marketplace API инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Закрытие всех ресурсов."""
    global _db, _redis, _event_bus, _geo_service

    from cargo_exchange.common.constants import TypeMsg
    from cargo_exchange.common.logger import log_info

    if _geo_service:
        await _geo_service.close()
        _geo_service = None

    if _event_bus:
        from cargo_exchange.infra.event_bus import close_event_bus

        await close_event_bus()
        _event_bus = None
        await log_info("RabbitMQ отключён", type_msg=TypeMsg.DEBUG)

    if _redis:
        from cargo_exchange.infra.redis_client import close_redis

        await close_redis()
        _redis = None
        await log_info("Redis отключён", type_msg=TypeMsg.DEBUG)

    if _db:
        from cargo_exchange.infra.database import close_db

        await close_db()
        _db = None
        await log_info("PostgreSQL отключён", type_msg=TypeMsg.DEBUG)


def dependency_status() -> dict[str, str]:
    """Статусы внешних подключений для /health."""
    def _state(client) -> str:
        if client is None:
            return "disabled"
        return "connected" if client.is_connected else "disconnected"

    return {
        "postgres": _state(_db),
        "redis": _state(_redis),
        "rabbitmq": _state(_event_bus),
    }


async def get_user_directory() -> UserDirectory:
    if _directory is None:
        raise RuntimeError("UserDirectory не инициализирован")
    return _directory


async def get_order_service() -> OrderService:
    if _order_service is None:
        raise RuntimeError("OrderService не инициализирован")
    return _order_service


async def get_capacity_tracker() -> CapacityTracker:
    if _capacity is None:
        raise RuntimeError("CapacityTracker не инициализирован")
    return _capacity


async def get_booking_service() -> BookingService:
    if _booking_service is None:
        raise RuntimeError("BookingService не инициализирован")
    return _booking_service
