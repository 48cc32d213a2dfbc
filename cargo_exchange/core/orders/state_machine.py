# cargo_exchange/core/orders/state_machine.py
"""
State machine статусов заказа.

Основной путь:
    pending -> determine_price -> accepted -> pickup -> in_transit -> delivered
Из любого незавершённого статуса можно перейти в cancelled.
determine_price -> determine_price: перевозчик меняет предложение.
determine_price -> pending: заказчик отклонил предложение.
"""

from __future__ import annotations

from cargo_exchange.common.constants import OrderStatus
from cargo_exchange.common.exceptions import InvalidStatusTransitionError


class OrderStateMachine:
    """Таблица допустимых переходов статусов заказа."""

    ALLOWED_TRANSITIONS: dict[OrderStatus, list[OrderStatus]] = {
        OrderStatus.PENDING: [OrderStatus.DETERMINE_PRICE, OrderStatus.CANCELLED],
        OrderStatus.DETERMINE_PRICE: [
            OrderStatus.DETERMINE_PRICE,
            OrderStatus.ACCEPTED,
            OrderStatus.PENDING,
            OrderStatus.CANCELLED,
        ],
        OrderStatus.ACCEPTED: [OrderStatus.PICKUP, OrderStatus.CANCELLED],
        OrderStatus.PICKUP: [OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED],
        OrderStatus.IN_TRANSIT: [OrderStatus.DELIVERED, OrderStatus.CANCELLED],
        OrderStatus.DELIVERED: [],
        OrderStatus.CANCELLED: [],
    }

    @classmethod
    def can_transition(cls, current: OrderStatus, target: OrderStatus) -> bool:
        """Проверяет, допустим ли переход."""
        return target in cls.ALLOWED_TRANSITIONS.get(current, [])

    @classmethod
    def validate_transition(
        cls,
        order_id: str,
        current: OrderStatus,
        target: OrderStatus,
    ) -> None:
        """Выбрасывает InvalidStatusTransitionError для недопустимого перехода."""
        if not cls.can_transition(current, target):
            raise InvalidStatusTransitionError(order_id, current.value, target.value)
