"""
Подбор транспорта под груз.
"""

from cargo_exchange.core.matching.service import MatchingService, VehicleMatch

__all__ = [
    "MatchingService",
    "VehicleMatch",
]
