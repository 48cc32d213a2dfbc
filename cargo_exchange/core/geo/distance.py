# cargo_exchange/core/geo/distance.py
"""
Расстояние по дуге большого круга (формула гаверсинуса).
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field


EARTH_RADIUS_KM = 6371.0


class Coordinate(BaseModel):
    """Географическая точка в градусах."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Широта")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Долгота")

    class Config:
        from_attributes = True
        frozen = True


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """
    Возвращает расстояние между точками в километрах.

    Симметрична и равна нулю для совпадающих точек.
    Неразрешённые координаты сюда не передаются: это проверяют вызывающие.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    # min() защищает asin от погрешности округления (h чуть больше 1)
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))
