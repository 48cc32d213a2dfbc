# cargo_exchange/services/marketplace_api/schemas.py
"""
Модели запросов и ответов Marketplace API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from cargo_exchange.common.constants import OrderStatus, format_price
from cargo_exchange.core.booking.service import Quote, ShipmentRequest
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.matching.service import VehicleMatch
from cargo_exchange.core.orders.models import Order, VehicleCapacityStatus
from cargo_exchange.core.pricing.calculator import PriceBreakdownDTO


# =============================================================================
# ОБЩИЕ
# =============================================================================

class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    error_code: str
    message: str
    details: dict[str, Any] | None = None


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# ПОДБОР И ОФОРМЛЕНИЕ
# =============================================================================

class QuoteRequest(ShipmentRequest):
    """Запрос на подбор транспорта."""


class BookOrderRequest(ShipmentRequest):
    """Заказ сразу на выбранный транспорт."""

    orderer_id: str = Field(..., description="ID заказчика")
    vehicle_id: str = Field(..., description="Выбранный транспорт")
    notes: Optional[str] = None
    scheduled_pickup: Optional[datetime] = None


class OpenOrderRequest(ShipmentRequest):
    """Открытая заявка для перевозчиков."""

    orderer_id: str = Field(..., description="ID заказчика")
    price: float = Field(0.0, ge=0.0, description="Ориентировочная цена заказчика")
    currency: str = Field("USD", description="Валюта")
    notes: Optional[str] = None
    scheduled_pickup: Optional[datetime] = None


class VehicleMatchDTO(BaseModel):
    """Кандидат подбора."""

    vehicle_id: str
    vehicle_type: str
    model: str
    license_plate: str
    transporter_id: str
    transporter_name: str
    price: float
    currency: str
    formatted_price: str
    approach_distance_km: float
    breakdown: PriceBreakdownDTO

    @classmethod
    def from_match(cls, match: VehicleMatch) -> VehicleMatchDTO:
        return cls(
            vehicle_id=match.vehicle.id,
            vehicle_type=match.vehicle.type.value,
            model=match.vehicle.model,
            license_plate=match.vehicle.license_plate,
            transporter_id=match.transporter.id,
            transporter_name=match.transporter.name,
            price=match.price,
            currency=match.currency,
            formatted_price=format_price(match.price, match.currency),
            approach_distance_km=round(match.approach_distance_km, 2),
            breakdown=match.breakdown,
        )


class QuoteResponse(BaseModel):
    """Результат подбора."""

    pickup_location: Location
    delivery_location: Location
    distance_km: float
    search_radius_km: float
    matches: list[VehicleMatchDTO]

    @classmethod
    def from_quote(cls, quote: Quote) -> QuoteResponse:
        return cls(
            pickup_location=quote.pickup_location,
            delivery_location=quote.delivery_location,
            distance_km=round(quote.distance_km, 2),
            search_radius_km=quote.search_radius_km,
            matches=[VehicleMatchDTO.from_match(m) for m in quote.matches],
        )


# =============================================================================
# ЗАКАЗЫ
# =============================================================================

class OrderResponse(BaseModel):
    """Заказ и цена для отображения."""

    order: Order
    quoted_price: float = Field(..., description="Предложение перевозчика во время торга, иначе цена заказа")
    formatted_price: str

    @classmethod
    def from_order(cls, order: Order) -> OrderResponse:
        return cls(
            order=order,
            quoted_price=order.quoted_price,
            formatted_price=format_price(order.quoted_price, order.currency),
        )


class ProposePriceRequest(BaseModel):
    """Предложение цены перевозчиком."""

    price: float = Field(..., gt=0, description="Предлагаемая цена")
    transporter_id: str
    vehicle_id: str


class RejectPriceRequest(BaseModel):
    note: str = ""


class UpdateStatusRequest(BaseModel):
    """Смена статуса заказа."""

    status: OrderStatus
    note: str = ""
    force: bool = Field(False, description="Административный переход")


class UpdateLocationRequest(BaseModel):
    """Текущее положение груза."""

    address: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_location(self) -> Location:
        return Location(address=self.address, latitude=self.latitude, longitude=self.longitude)


class CapacityResponse(BaseModel):
    """Остаток вместимости транспорта."""

    vehicle_id: str
    remaining_weight: float
    remaining_volume: float
    assigned_order_ids: list[str]

    @classmethod
    def from_status(cls, status: VehicleCapacityStatus) -> CapacityResponse:
        return cls(
            vehicle_id=status.vehicle_id,
            remaining_weight=status.remaining_weight,
            remaining_volume=status.remaining_volume,
            assigned_order_ids=[o.id for o in status.assigned_orders],
        )
