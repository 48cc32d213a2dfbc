# cargo_exchange/core/orders/__init__.py
"""
Домен заказов.
Модели, хранилища, учёт вместимости и жизненный цикл заказа.
"""

from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.orders.models import (
    Order,
    OrderCreateDTO,
    StatusUpdate,
    VehicleCapacityStatus,
)
from cargo_exchange.core.orders.repository import (
    InMemoryOrderRepository,
    OrderRepository,
    PostgresOrderRepository,
)
from cargo_exchange.core.orders.service import OrderService
from cargo_exchange.core.orders.state_machine import OrderStateMachine

__all__ = [
    "CapacityTracker",
    "InMemoryOrderRepository",
    "Order",
    "OrderCreateDTO",
    "OrderRepository",
    "OrderService",
    "OrderStateMachine",
    "PostgresOrderRepository",
    "StatusUpdate",
    "VehicleCapacityStatus",
]
