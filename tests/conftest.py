# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test_api_key")
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("STORAGE_BACKEND", "memory")

from cargo_exchange.common.constants import OrderStatus
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.matching.service import MatchingService
from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.orders.models import Order, OrderCreateDTO, StatusUpdate, utc_now
from cargo_exchange.core.orders.repository import InMemoryOrderRepository
from cargo_exchange.core.orders.service import OrderService
from cargo_exchange.core.users.directory import InMemoryUserDirectory, demo_users


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.get_model = AsyncMock(return_value=None)
    redis.set_model = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=None)
    event_bus.is_connected = True
    return event_bus


# =============================================================================
# ФИКСТУРЫ ДОМЕНА
# =============================================================================

@pytest.fixture
def directory() -> InMemoryUserDirectory:
    """Демо-каталог: user1 (заказчик), user2 с транспортом v1 и v2."""
    return InMemoryUserDirectory(demo_users())


@pytest.fixture
def order_repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def capacity_tracker(
    order_repository: InMemoryOrderRepository,
    directory: InMemoryUserDirectory,
) -> CapacityTracker:
    return CapacityTracker(order_repository, directory)


@pytest.fixture
def order_service(
    order_repository: InMemoryOrderRepository,
    directory: InMemoryUserDirectory,
    capacity_tracker: CapacityTracker,
    mock_event_bus: AsyncMock,
) -> OrderService:
    """Сервис заказов поверх хранилища в памяти."""
    return OrderService(
        order_repository,
        directory,
        capacity_tracker,
        mock_event_bus,
        commit_price_on_proposal=True,
        default_currency="USD",
    )


@pytest.fixture
def matching_service(
    directory: InMemoryUserDirectory,
    capacity_tracker: CapacityTracker,
) -> MatchingService:
    return MatchingService(directory, capacity_tracker)


@pytest.fixture
def chicago() -> Location:
    """Точка рядом с v1."""
    return Location(address="Chicago, IL", latitude=41.8781, longitude=-87.6298)


@pytest.fixture
def milwaukee() -> Location:
    return Location(address="Milwaukee, WI", latitude=43.0389, longitude=-87.9065)


@pytest.fixture
def sample_cargo() -> Cargo:
    """Груз 500 кг, 1 м³."""
    return Cargo(
        description="Furniture",
        weight=500,
        dimensions={"length": 100, "width": 100, "height": 100},
    )


@pytest.fixture
def make_order_dto(
    chicago: Location,
    milwaukee: Location,
    sample_cargo: Cargo,
) -> Callable[..., OrderCreateDTO]:
    """Фабрика DTO для создания заказа (по умолчанию открытая заявка)."""

    def _make(**overrides: Any) -> OrderCreateDTO:
        data: dict[str, Any] = {
            "orderer_id": "user1",
            "pickup_location": chicago,
            "delivery_location": milwaukee,
            "cargo": sample_cargo,
            "status": OrderStatus.PENDING,
            "price": 0.0,
            "currency": "USD",
        }
        data.update(overrides)
        return OrderCreateDTO(**data)

    return _make


@pytest.fixture
def make_order(
    chicago: Location,
    milwaukee: Location,
    sample_cargo: Cargo,
) -> Callable[..., Order]:
    """Фабрика готовых заказов для засева хранилища."""

    def _make(**overrides: Any) -> Order:
        status = overrides.get("status", OrderStatus.PENDING)
        created_at = utc_now() - timedelta(hours=1)
        data: dict[str, Any] = {
            "orderer_id": "user1",
            "pickup_location": chicago,
            "delivery_location": milwaukee,
            "cargo": sample_cargo,
            "status": status,
            "created_at": created_at,
            "status_updates": [StatusUpdate(status=status, timestamp=created_at, note="seed")],
        }
        data.update(overrides)
        return Order(**data)

    return _make
