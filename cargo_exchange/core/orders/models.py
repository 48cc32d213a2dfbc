# cargo_exchange/core/orders/models.py
"""
Модели данных заказов.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from cargo_exchange.common.constants import (
    CAPACITY_CONSUMING_STATUSES,
    TERMINAL_STATUSES,
    OrderStatus,
)
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.geo.models import Location


def utc_now() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


class StatusUpdate(BaseModel):
    """Запись истории статусов. Не изменяется после создания."""

    status: OrderStatus = Field(..., description="Статус")
    timestamp: datetime = Field(default_factory=utc_now, description="Время перехода")
    note: str = Field("", description="Комментарий")

    class Config:
        from_attributes = True
        frozen = True


class Order(BaseModel):
    """Модель заказа на перевозку."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="UUID заказа")
    orderer_id: str = Field(..., description="ID заказчика")
    transporter_id: Optional[str] = Field(None, description="ID перевозчика")
    transporter_vehicle_id: Optional[str] = Field(None, description="ID транспорта")

    status: OrderStatus = Field(OrderStatus.PENDING, description="Статус заказа")

    # Маршрут
    pickup_location: Location = Field(..., description="Точка погрузки")
    delivery_location: Location = Field(..., description="Точка выгрузки")
    distance_km: float = Field(0.0, ge=0.0, description="Длина маршрута, км")
    transporter_to_pickup_distance_km: Optional[float] = Field(
        None, ge=0.0, description="Подача транспорта до погрузки, км"
    )

    cargo: Cargo = Field(..., description="Груз")

    # Цена
    price: float = Field(0.0, ge=0.0, description="Цена")
    proposed_price: Optional[float] = Field(None, ge=0.0, description="Предложенная перевозчиком цена")
    posted_price: Optional[float] = Field(
        None, ge=0.0, description="Цена заявки до торга, восстанавливается при отказе"
    )
    currency: str = Field("USD", description="Валюта")

    # Трекинг
    status_updates: list[StatusUpdate] = Field(default_factory=list, description="История статусов")
    current_location: Optional[Location] = Field(None, description="Текущее положение груза")

    # Дополнительно
    notes: Optional[str] = Field(None, description="Комментарий заказчика")
    scheduled_pickup: Optional[datetime] = Field(None, description="Плановое время погрузки")
    estimated_delivery: Optional[datetime] = Field(None, description="Ожидаемое время доставки")
    created_at: datetime = Field(default_factory=utc_now, description="Время создания")

    # Оптимистическая блокировка
    version: int = Field(1, ge=1, description="Версия записи")

    class Config:
        from_attributes = True

    @property
    def is_active(self) -> bool:
        """Занимает ли заказ место в транспорте."""
        return self.status in CAPACITY_CONSUMING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def quoted_price(self) -> float:
        """
        Цена для отображения: во время торга это предложение перевозчика,
        в остальных статусах согласованная цена.
        """
        if self.status == OrderStatus.DETERMINE_PRICE and self.proposed_price is not None:
            return self.proposed_price
        return self.price

    def next_status_update(
        self,
        status: OrderStatus,
        note: str,
        now: datetime | None = None,
    ) -> StatusUpdate:
        """
        Создаёт запись истории, время которой строго больше последней записи.
        """
        timestamp = now or utc_now()
        if self.status_updates:
            floor = self.status_updates[-1].timestamp + timedelta(microseconds=1)
            if timestamp < floor:
                timestamp = floor
        return StatusUpdate(status=status, timestamp=timestamp, note=note)


class OrderCreateDTO(BaseModel):
    """
    DTO для создания заказа.

    status=pending: открытая заявка без перевозчика.
    status=accepted: заказ сразу на выбранный транспорт.
    """

    orderer_id: str
    pickup_location: Location
    delivery_location: Location
    cargo: Cargo

    status: OrderStatus = OrderStatus.PENDING
    price: float = Field(0.0, ge=0.0)
    currency: str = "USD"

    transporter_id: Optional[str] = None
    transporter_vehicle_id: Optional[str] = None

    distance_km: Optional[float] = Field(None, ge=0.0)
    transporter_to_pickup_distance_km: Optional[float] = Field(None, ge=0.0)

    notes: Optional[str] = None
    scheduled_pickup: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None

    @model_validator(mode="after")
    def check_initial_status(self) -> OrderCreateDTO:
        if self.status not in (OrderStatus.PENDING, OrderStatus.ACCEPTED):
            raise ValueError(f"Заказ нельзя создать в статусе {self.status.value}")
        if self.status == OrderStatus.ACCEPTED and not (
            self.transporter_id and self.transporter_vehicle_id
        ):
            raise ValueError("Для принятого заказа нужны transporter_id и transporter_vehicle_id")
        return self


class VehicleCapacityStatus(BaseModel):
    """Остаток вместимости транспорта."""

    vehicle_id: str
    remaining_weight: float
    remaining_volume: float
    assigned_orders: list[Order] = Field(default_factory=list)
