# cargo_exchange/core/matching/service.py
"""
Сервис подбора транспорта под груз.
Фильтрует парк по пригодности и радиусу, считает цену и ранжирует кандидатов.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from cargo_exchange.common.constants import TypeMsg, UserRole
from cargo_exchange.common.exceptions import ValidationError
from cargo_exchange.common.logger import log_info
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.distance import haversine_km
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.orders.capacity import CapacityTracker
from cargo_exchange.core.pricing.calculator import PriceBreakdownDTO, TransportPriceCalculator
from cargo_exchange.core.users.directory import UserDirectory
from cargo_exchange.core.users.models import User, Vehicle


@dataclass
class VehicleMatch:
    """Подходящий транспорт с рассчитанной ценой."""
    vehicle: Vehicle
    transporter: User
    price: float
    approach_distance_km: float
    breakdown: PriceBreakdownDTO

    @property
    def currency(self) -> str:
        return self.vehicle.currency


class MatchingService:
    """
    Сервис матчинга груза с транспортом.

    Транспорт подходит, если он доступен, умеет охлаждать (когда нужно),
    вмещает груз по паспорту и с учётом активных заказов, имеет координаты
    и находится не дальше радиуса поиска от точки погрузки.
    """

    def __init__(
        self,
        directory: UserDirectory,
        capacity: CapacityTracker,
        calculator: TransportPriceCalculator | None = None,
    ) -> None:
        """
        Args:
            directory: Каталог пользователей и транспорта
            capacity: Учёт занятой вместимости
            calculator: Калькулятор стоимости
        """
        self._directory = directory
        self._capacity = capacity
        self._calculator = calculator or TransportPriceCalculator()

    async def find_matches(
        self,
        cargo: Cargo,
        pickup: Location,
        distance_km: float,
        search_radius_km: float | None = None,
        fleet: Optional[Iterable[tuple[User, Vehicle]]] = None,
    ) -> list[VehicleMatch]:
        """
        Подбирает транспорт под груз.

        Args:
            cargo: Груз
            pickup: Точка погрузки (с координатами)
            distance_km: Длина маршрута погрузка -> выгрузка
            search_radius_km: Радиус поиска (из конфига если None)
            fleet: Пары (перевозчик, транспорт); по умолчанию весь каталог

        Returns:
            Кандидаты по возрастанию цены, при равной цене в порядке парка
        """
        pickup_point = pickup.coordinate
        if pickup_point is None:
            raise ValidationError(f"У точки погрузки нет координат: {pickup.address}")

        if search_radius_km is None:
            from cargo_exchange.config import settings
            search_radius_km = settings.search.DEFAULT_SEARCH_RADIUS_KM

        if not math.isfinite(search_radius_km) or search_radius_km <= 0:
            raise ValidationError(f"Радиус поиска должен быть положительным, получено {search_radius_km}")
        if not math.isfinite(distance_km) or distance_km < 0:
            raise ValidationError(f"Длина маршрута должна быть неотрицательной, получено {distance_km}")

        candidates = list(fleet) if fleet is not None else await self._load_fleet()
        matches: list[VehicleMatch] = []

        for transporter, vehicle in candidates:
            if not vehicle.available:
                continue
            if cargo.requires_refrigeration and not vehicle.is_refrigerated:
                continue
            if cargo.weight > vehicle.max_weight or cargo.volume > vehicle.max_volume:
                continue

            vehicle_point = vehicle.current_location.coordinate if vehicle.current_location else None
            if vehicle_point is None:
                continue

            approach_km = haversine_km(vehicle_point, pickup_point)
            if approach_km > search_radius_km:
                continue

            status = await self._capacity.remaining_capacity(vehicle.id)
            if status.remaining_weight < cargo.weight or status.remaining_volume < cargo.volume:
                continue

            breakdown = self._calculator.calculate(distance_km, approach_km, cargo, vehicle.tariff)
            matches.append(VehicleMatch(
                vehicle=vehicle,
                transporter=transporter,
                price=breakdown.total,
                approach_distance_km=approach_km,
                breakdown=breakdown,
            ))

        # sort стабилен: при равной цене сохраняется порядок парка
        matches.sort(key=lambda m: m.price)

        await log_info(
            f"Подбор транспорта: {len(matches)} из {len(candidates)} в радиусе {search_radius_km} км",
            type_msg=TypeMsg.DEBUG,
        )
        return matches

    async def _load_fleet(self) -> list[tuple[User, Vehicle]]:
        """Весь транспорт перевозчиков из каталога."""
        fleet: list[tuple[User, Vehicle]] = []
        for user in await self._directory.list_users():
            if user.role != UserRole.TRANSPORTER:
                continue
            fleet.extend((user, vehicle) for vehicle in user.vehicles)
        return fleet
