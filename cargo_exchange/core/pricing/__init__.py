"""
Ценообразование перевозок.
"""

from cargo_exchange.core.pricing.calculator import (
    PriceBreakdownDTO,
    TransportPriceCalculator,
    VehicleTariff,
    calculate_transport_price,
)

__all__ = [
    "PriceBreakdownDTO",
    "TransportPriceCalculator",
    "VehicleTariff",
    "calculate_transport_price",
]
