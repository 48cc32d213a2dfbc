"""
Оформление перевозки: подбор транспорта и создание заказа.
"""

from cargo_exchange.core.booking.service import BookingService, Quote, ShipmentRequest

__all__ = ["BookingService", "Quote", "ShipmentRequest"]
