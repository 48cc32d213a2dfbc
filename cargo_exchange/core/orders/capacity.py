# cargo_exchange/core/orders/capacity.py
"""
Учёт занятой вместимости транспорта.
"""

from __future__ import annotations

from cargo_exchange.common.constants import CAPACITY_CONSUMING_STATUSES, TypeMsg
from cargo_exchange.common.logger import log_info
from cargo_exchange.core.orders.models import VehicleCapacityStatus
from cargo_exchange.core.orders.repository import OrderRepository
from cargo_exchange.core.users.directory import UserDirectory


class CapacityTracker:
    """
    Остаток вместимости транспорта по активным заказам
    (accepted, pickup, in_transit).

    Считается заново при каждом вызове, без кэша.
    """

    def __init__(self, repository: OrderRepository, directory: UserDirectory) -> None:
        self._repo = repository
        self._directory = directory

    async def remaining_capacity(self, vehicle_id: str) -> VehicleCapacityStatus:
        """
        Возвращает остаток веса и объёма транспорта.

        Неизвестный транспорт получает нулевой остаток и пустой список заказов.
        """
        found = await self._directory.find_vehicle(vehicle_id)
        if found is None:
            await log_info(
                f"Транспорт {vehicle_id} не найден, вместимость считается нулевой",
                type_msg=TypeMsg.WARNING,
            )
            return VehicleCapacityStatus(
                vehicle_id=vehicle_id,
                remaining_weight=0.0,
                remaining_volume=0.0,
            )

        _, vehicle = found
        assigned = await self._repo.list(
            statuses=CAPACITY_CONSUMING_STATUSES,
            vehicle_id=vehicle_id,
        )

        used_weight = sum(order.cargo.weight for order in assigned)
        used_volume = sum(order.cargo.volume for order in assigned)

        return VehicleCapacityStatus(
            vehicle_id=vehicle_id,
            remaining_weight=max(0.0, vehicle.max_weight - used_weight),
            remaining_volume=max(0.0, vehicle.max_volume - used_volume),
            assigned_orders=assigned,
        )
