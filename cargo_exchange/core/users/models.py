# cargo_exchange/core/users/models.py
"""
Модели данных пользователей и транспорта.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from cargo_exchange.common.constants import UserRole, VehicleType
from cargo_exchange.core.cargo.models import Dimensions
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.pricing.calculator import VehicleTariff


class Vehicle(BaseModel):
    """Транспорт перевозчика вместе с тарифом."""

    id: str = Field(..., description="ID транспорта")
    type: VehicleType = Field(VehicleType.TRUCK, description="Тип транспорта")
    model: str = Field("", description="Модель")
    license_plate: str = Field("", description="Госномер")

    # Вместимость
    max_weight: float = Field(..., ge=0.0, description="Грузоподъёмность, кг")
    max_volume: float = Field(..., ge=0.0, description="Объём кузова, м³")
    dimensions: Dimensions = Field(default_factory=Dimensions, description="Габариты кузова")
    is_refrigerated: bool = Field(False, description="Рефрижератор")

    # Состояние
    available: bool = Field(True, description="Принимает заказы")
    current_location: Optional[Location] = Field(None, description="Текущее положение")
    currency: str = Field("USD", description="Валюта тарифа")

    # Тариф
    base_price: float = Field(0.0, ge=0.0, description="Подача")
    price_per_km: float = Field(0.0, ge=0.0, description="Цена за км")
    price_per_approach_km: float = Field(0.0, ge=0.0, description="Цена за км подачи")
    price_per_kg: float = Field(0.0, ge=0.0, description="Цена за кг")
    price_per_m3: float = Field(0.0, ge=0.0, description="Цена за м³")
    cooling_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент охлаждения")
    hazardous_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент опасного груза")
    urgent_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент срочности")

    class Config:
        from_attributes = True

    @property
    def tariff(self) -> VehicleTariff:
        """Тариф транспорта в виде отдельной модели."""
        return VehicleTariff(
            base_price=self.base_price,
            price_per_km=self.price_per_km,
            price_per_approach_km=self.price_per_approach_km,
            price_per_kg=self.price_per_kg,
            price_per_m3=self.price_per_m3,
            cooling_coefficient=self.cooling_coefficient,
            hazardous_coefficient=self.hazardous_coefficient,
            urgent_coefficient=self.urgent_coefficient,
        )


class User(BaseModel):
    """Модель пользователя."""

    id: str = Field(..., description="ID пользователя")
    name: str = Field(..., description="Имя")
    email: str = Field("", description="Email")
    phone: Optional[str] = Field(None, description="Телефон")
    role: UserRole = Field(UserRole.ORDERER, description="Роль")
    address: Optional[str] = Field(None, description="Адрес")
    vehicles: list[Vehicle] = Field(default_factory=list, description="Транспорт перевозчика")

    class Config:
        from_attributes = True

    @property
    def is_transporter(self) -> bool:
        """Является ли пользователь перевозчиком."""
        return self.role == UserRole.TRANSPORTER
