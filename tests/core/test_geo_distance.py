# tests/core/test_geo_distance.py
"""
Тесты расстояния и моделей геоданных.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from cargo_exchange.core.geo.distance import Coordinate, EARTH_RADIUS_KM, haversine_km
from cargo_exchange.core.geo.models import Location


class TestHaversine:
    """Тесты для haversine_km."""

    def test_same_point_is_zero(self) -> None:
        """Проверяет нулевое расстояние для совпадающих точек."""
        point = Coordinate(latitude=41.8781, longitude=-87.6298)
        assert haversine_km(point, point) == 0.0

    def test_symmetric(self) -> None:
        """Проверяет симметричность."""
        a = Coordinate(latitude=41.8781, longitude=-87.6298)
        b = Coordinate(latitude=40.7128, longitude=-74.0060)
        assert haversine_km(a, b) == pytest.approx(haversine_km(b, a))

    def test_chicago_new_york(self) -> None:
        """Проверяет известное расстояние Чикаго - Нью-Йорк (~1145 км)."""
        chicago = Coordinate(latitude=41.8781, longitude=-87.6298)
        new_york = Coordinate(latitude=40.7128, longitude=-74.0060)
        assert haversine_km(chicago, new_york) == pytest.approx(1145, abs=5)

    def test_one_degree_of_latitude(self) -> None:
        """Один градус по меридиану примерно 111.2 км."""
        a = Coordinate(latitude=0, longitude=0)
        b = Coordinate(latitude=1, longitude=0)
        assert haversine_km(a, b) == pytest.approx(111.19, abs=0.01)

    def test_antipodes(self) -> None:
        """Антиподы дают половину окружности без ошибки asin."""
        a = Coordinate(latitude=0, longitude=0)
        b = Coordinate(latitude=0, longitude=180)
        assert haversine_km(a, b) == pytest.approx(EARTH_RADIUS_KM * 3.141592653589793)


class TestCoordinate:
    """Тесты для Coordinate."""

    @pytest.mark.parametrize("lat,lng", [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_out_of_range(self, lat: float, lng: float) -> None:
        """Проверяет отклонение координат вне диапазона."""
        with pytest.raises(PydanticValidationError):
            Coordinate(latitude=lat, longitude=lng)

    def test_frozen(self) -> None:
        point = Coordinate(latitude=1, longitude=2)
        with pytest.raises(PydanticValidationError):
            point.latitude = 3


class TestLocation:
    """Тесты для Location."""

    def test_resolved(self) -> None:
        """Проверяет локацию с координатами."""
        loc = Location(address="Chicago, IL", latitude=41.8781, longitude=-87.6298)

        assert loc.is_resolved is True
        assert loc.coordinate == Coordinate(latitude=41.8781, longitude=-87.6298)

    def test_address_only(self) -> None:
        """Проверяет локацию без координат."""
        loc = Location(address="Chicago, IL")

        assert loc.is_resolved is False
        assert loc.coordinate is None

    def test_half_resolved(self) -> None:
        """Одна координата без другой не считается разрешённой."""
        loc = Location(address="x", latitude=41.0)
        assert loc.coordinate is None

    def test_default_address(self) -> None:
        loc = Location(latitude=1, longitude=2)
        assert loc.address == ""
        assert loc.updated_at is None
