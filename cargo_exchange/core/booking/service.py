# cargo_exchange/core/booking/service.py
"""
Оформление перевозки.
Геокодирование адресов, подбор транспорта и создание заказа.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from cargo_exchange.common.constants import OrderStatus, TypeMsg
from cargo_exchange.common.exceptions import GeocodingError, ValidationError
from cargo_exchange.common.logger import log_info
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.distance import haversine_km
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.geo.service import GeoService
from cargo_exchange.core.matching.service import MatchingService, VehicleMatch
from cargo_exchange.core.orders.models import Order, OrderCreateDTO, utc_now
from cargo_exchange.core.orders.service import OrderService


class ShipmentRequest(BaseModel):
    """Запрос на перевозку: груз и два адреса (координаты необязательны)."""

    pickup_location: Location = Field(..., description="Точка погрузки")
    delivery_location: Location = Field(..., description="Точка выгрузки")
    cargo: Cargo = Field(..., description="Груз")
    search_radius_km: Optional[float] = Field(None, gt=0, description="Радиус поиска транспорта")


@dataclass
class Quote:
    """Результат подбора: геокодированный маршрут и кандидаты."""
    pickup_location: Location
    delivery_location: Location
    distance_km: float
    search_radius_km: float
    matches: list[VehicleMatch] = field(default_factory=list)


class BookingService:
    """
    Сценарий оформления перевозки.

    quote: адреса -> координаты -> маршрут -> подходящий транспорт с ценами.
    book: заказ сразу на выбранный транспорт по цене из подбора (accepted).
    post_open_order: открытая заявка для перевозчиков (pending).
    """

    # Плановые сроки по умолчанию
    DEFAULT_PICKUP_DELAY = timedelta(days=1)
    DEFAULT_DELIVERY_DELAY = timedelta(days=2)

    def __init__(
        self,
        geocoder: GeoService,
        matching: MatchingService,
        orders: OrderService,
        *,
        default_search_radius_km: float | None = None,
        max_search_radius_km: float | None = None,
    ) -> None:
        if default_search_radius_km is None or max_search_radius_km is None:
            from cargo_exchange.config import settings

            if default_search_radius_km is None:
                default_search_radius_km = settings.search.DEFAULT_SEARCH_RADIUS_KM
            if max_search_radius_km is None:
                max_search_radius_km = settings.search.MAX_SEARCH_RADIUS_KM

        self._geocoder = geocoder
        self._matching = matching
        self._orders = orders
        self._default_radius = default_search_radius_km
        self._max_radius = max_search_radius_km

    async def resolve_location(self, location: Location) -> Location:
        """
        Возвращает локацию с координатами.
        Уже геокодированная локация возвращается как есть.
        """
        if location.is_resolved:
            return location

        if not location.address.strip():
            raise ValidationError("Не указан адрес")

        resolved = await self._geocoder.geocode(location.address)
        if resolved is None:
            raise GeocodingError(location.address)
        # Сохраняем адрес в написании пользователя
        return resolved.model_copy(update={"address": location.address})

    async def quote(self, request: ShipmentRequest) -> Quote:
        """Геокодирует адреса и подбирает транспорт."""
        radius = request.search_radius_km or self._default_radius
        if radius > self._max_radius:
            raise ValidationError(
                f"Радиус поиска {radius} км больше допустимого ({self._max_radius} км)"
            )

        pickup = await self.resolve_location(request.pickup_location)
        delivery = await self.resolve_location(request.delivery_location)
        distance_km = haversine_km(pickup.coordinate, delivery.coordinate)

        matches = await self._matching.find_matches(
            request.cargo,
            pickup,
            distance_km,
            search_radius_km=radius,
        )

        await log_info(
            f"Подбор: {pickup.address} -> {delivery.address}, {distance_km:.1f} км, "
            f"кандидатов {len(matches)}",
            type_msg=TypeMsg.DEBUG,
        )
        return Quote(
            pickup_location=pickup,
            delivery_location=delivery,
            distance_km=distance_km,
            search_radius_km=radius,
            matches=matches,
        )

    async def book(
        self,
        request: ShipmentRequest,
        orderer_id: str,
        vehicle_id: str,
        *,
        notes: str | None = None,
        scheduled_pickup: datetime | None = None,
    ) -> Order:
        """
        Оформляет заказ на выбранный транспорт.

        Подбор выполняется заново: транспорт должен оставаться подходящим,
        а цена берётся из свежего расчёта.
        """
        quote = await self.quote(request)
        match = next((m for m in quote.matches if m.vehicle.id == vehicle_id), None)
        if match is None:
            raise ValidationError(f"Транспорт {vehicle_id} не подходит для этого груза или маршрута")

        now = utc_now()
        dto = OrderCreateDTO(
            orderer_id=orderer_id,
            pickup_location=quote.pickup_location,
            delivery_location=quote.delivery_location,
            cargo=request.cargo,
            status=OrderStatus.ACCEPTED,
            price=match.price,
            currency=match.currency,
            transporter_id=match.transporter.id,
            transporter_vehicle_id=vehicle_id,
            distance_km=quote.distance_km,
            transporter_to_pickup_distance_km=match.approach_distance_km,
            notes=notes,
            scheduled_pickup=scheduled_pickup or now + self.DEFAULT_PICKUP_DELAY,
            estimated_delivery=now + self.DEFAULT_DELIVERY_DELAY,
        )
        return await self._orders.create_order(dto)

    async def post_open_order(
        self,
        request: ShipmentRequest,
        orderer_id: str,
        *,
        price: float = 0.0,
        currency: str = "USD",
        notes: str | None = None,
        scheduled_pickup: datetime | None = None,
    ) -> Order:
        """Публикует открытую заявку, на которую перевозчики предлагают цену."""
        pickup = await self.resolve_location(request.pickup_location)
        delivery = await self.resolve_location(request.delivery_location)

        now = utc_now()
        dto = OrderCreateDTO(
            orderer_id=orderer_id,
            pickup_location=pickup,
            delivery_location=delivery,
            cargo=request.cargo,
            status=OrderStatus.PENDING,
            price=price,
            currency=currency,
            distance_km=haversine_km(pickup.coordinate, delivery.coordinate),
            notes=notes,
            scheduled_pickup=scheduled_pickup or now + self.DEFAULT_PICKUP_DELAY,
            estimated_delivery=now + self.DEFAULT_DELIVERY_DELAY,
        )
        return await self._orders.create_order(dto)
