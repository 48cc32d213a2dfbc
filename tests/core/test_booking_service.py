# tests/core/test_booking_service.py
"""
Тесты сценария оформления перевозки.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from cargo_exchange.common.constants import OrderStatus
from cargo_exchange.common.exceptions import (
    GeocoderUnavailableError,
    GeocodingError,
    ValidationError,
)
from cargo_exchange.core.booking.service import BookingService, ShipmentRequest
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.matching.service import MatchingService
from cargo_exchange.core.orders.models import utc_now
from cargo_exchange.core.orders.service import OrderService


KNOWN_ADDRESSES = {
    "Chicago": Location(address="Chicago, IL, USA", latitude=41.8781, longitude=-87.6298),
    "Milwaukee": Location(address="Milwaukee, WI, USA", latitude=43.0389, longitude=-87.9065),
}


async def _fake_geocode(address: str) -> Optional[Location]:
    return KNOWN_ADDRESSES.get(address)


@pytest.fixture
def geocoder() -> AsyncMock:
    """Мок GeoService: знает два адреса."""
    geo = AsyncMock()
    geo.geocode = AsyncMock(side_effect=_fake_geocode)
    return geo


@pytest.fixture
def booking_service(
    geocoder: AsyncMock,
    matching_service: MatchingService,
    order_service: OrderService,
) -> BookingService:
    return BookingService(
        geocoder,
        matching_service,
        order_service,
        default_search_radius_km=50,
        max_search_radius_km=500,
    )


def _request(cargo: Cargo, **overrides: object) -> ShipmentRequest:
    data: dict[str, object] = {
        "pickup_location": Location(address="Chicago"),
        "delivery_location": Location(address="Milwaukee"),
        "cargo": cargo,
    }
    data.update(overrides)
    return ShipmentRequest(**data)


class TestResolveLocation:
    """Тесты для BookingService.resolve_location."""

    @pytest.mark.asyncio
    async def test_resolved_location_not_geocoded(
        self,
        booking_service: BookingService,
        geocoder: AsyncMock,
        chicago: Location,
    ) -> None:
        """Координаты уже есть: запроса к геокодеру нет."""
        assert await booking_service.resolve_location(chicago) is chicago
        geocoder.geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_keeps_user_address(self, booking_service: BookingService) -> None:
        resolved = await booking_service.resolve_location(Location(address="Chicago"))

        assert resolved.address == "Chicago"
        assert resolved.latitude == 41.8781

    @pytest.mark.asyncio
    async def test_unknown_address(self, booking_service: BookingService) -> None:
        with pytest.raises(GeocodingError):
            await booking_service.resolve_location(Location(address="Atlantis"))

    @pytest.mark.asyncio
    async def test_empty_address(self, booking_service: BookingService) -> None:
        with pytest.raises(ValidationError):
            await booking_service.resolve_location(Location(address="   "))

    @pytest.mark.asyncio
    async def test_geocoder_unavailable_propagates(
        self,
        booking_service: BookingService,
        geocoder: AsyncMock,
    ) -> None:
        """Недоступность геокодера не путается с ненайденным адресом."""
        geocoder.geocode.side_effect = GeocoderUnavailableError("timeout")

        with pytest.raises(GeocoderUnavailableError):
            await booking_service.resolve_location(Location(address="Chicago"))


class TestQuote:
    """Тесты подбора."""

    @pytest.mark.asyncio
    async def test_quote(self, booking_service: BookingService, sample_cargo: Cargo) -> None:
        quote = await booking_service.quote(_request(sample_cargo))

        assert quote.pickup_location.latitude == 41.8781
        assert quote.delivery_location.latitude == 43.0389
        assert quote.distance_km == pytest.approx(131.0, abs=1.5)
        assert quote.search_radius_km == 50
        assert [m.vehicle.id for m in quote.matches] == ["v2", "v1"]

    @pytest.mark.asyncio
    async def test_explicit_radius(self, booking_service: BookingService, sample_cargo: Cargo) -> None:
        quote = await booking_service.quote(_request(sample_cargo, search_radius_km=5))

        assert quote.search_radius_km == 5
        assert [m.vehicle.id for m in quote.matches] == ["v1"]

    @pytest.mark.asyncio
    async def test_radius_above_limit(
        self,
        booking_service: BookingService,
        geocoder: AsyncMock,
        sample_cargo: Cargo,
    ) -> None:
        """Слишком большой радиус отклоняется до геокодирования."""
        with pytest.raises(ValidationError):
            await booking_service.quote(_request(sample_cargo, search_radius_km=1000))

        geocoder.geocode.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_matches(self, booking_service: BookingService) -> None:
        """Неподъёмный груз: пустой список, не ошибка."""
        quote = await booking_service.quote(_request(Cargo(weight=50000)))
        assert quote.matches == []


class TestBook:
    """Тесты оформления заказа."""

    @pytest.mark.asyncio
    async def test_book_selected_vehicle(
        self,
        booking_service: BookingService,
        sample_cargo: Cargo,
    ) -> None:
        """Заказ создаётся принятым, по цене и валюте из подбора."""
        quote = await booking_service.quote(_request(sample_cargo))
        expected = next(m for m in quote.matches if m.vehicle.id == "v2")

        order = await booking_service.book(_request(sample_cargo), "user1", "v2", notes="fragile")

        assert order.status == OrderStatus.ACCEPTED
        assert order.transporter_id == "user2"
        assert order.transporter_vehicle_id == "v2"
        assert order.price == expected.price
        assert order.currency == "EUR"
        assert order.notes == "fragile"
        assert order.transporter_to_pickup_distance_km == pytest.approx(expected.approach_distance_km)
        assert len(order.status_updates) == 2

    @pytest.mark.asyncio
    async def test_default_schedule(
        self,
        booking_service: BookingService,
        sample_cargo: Cargo,
    ) -> None:
        """Погрузка через сутки, доставка через двое."""
        before = utc_now()

        order = await booking_service.book(_request(sample_cargo), "user1", "v1")

        assert order.scheduled_pickup - before >= timedelta(days=1)
        assert order.estimated_delivery - order.scheduled_pickup == timedelta(days=1)

    @pytest.mark.asyncio
    async def test_book_unsuitable_vehicle(self, booking_service: BookingService) -> None:
        """Грузовик не везёт груз с охлаждением."""
        cargo = Cargo(weight=100, requires_refrigeration=True)

        with pytest.raises(ValidationError):
            await booking_service.book(_request(cargo), "user1", "v1")

    @pytest.mark.asyncio
    async def test_book_unknown_address(
        self,
        booking_service: BookingService,
        sample_cargo: Cargo,
    ) -> None:
        request = _request(sample_cargo, delivery_location=Location(address="Atlantis"))

        with pytest.raises(GeocodingError):
            await booking_service.book(request, "user1", "v1")


class TestPostOpenOrder:
    """Тесты открытых заявок."""

    @pytest.mark.asyncio
    async def test_post_open_order(
        self,
        booking_service: BookingService,
        sample_cargo: Cargo,
    ) -> None:
        order = await booking_service.post_open_order(
            _request(sample_cargo), "user1", price=250, currency="EUR",
        )

        assert order.status == OrderStatus.PENDING
        assert order.transporter_id is None
        assert order.price == 250
        assert order.currency == "EUR"
        assert order.pickup_location.address == "Chicago"
        assert order.distance_km == pytest.approx(131.0, abs=1.5)
        assert len(order.status_updates) == 1

    @pytest.mark.asyncio
    async def test_open_order_visible_to_transporters(
        self,
        booking_service: BookingService,
        order_service: OrderService,
        sample_cargo: Cargo,
        chicago: Location,
    ) -> None:
        order = await booking_service.post_open_order(_request(sample_cargo), "user1")

        available = await order_service.get_available_orders(chicago)

        assert [o.id for o in available] == [order.id]
