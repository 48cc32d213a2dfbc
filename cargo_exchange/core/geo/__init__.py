# cargo_exchange/core/geo/__init__.py
"""
Geo-модуль.
Расстояния по гаверсинусу и геокодирование через Google Maps API.
"""

from cargo_exchange.core.geo.distance import Coordinate, haversine_km
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.geo.service import GeoService

__all__ = [
    "Coordinate",
    "Location",
    "GeoService",
    "haversine_km",
]
