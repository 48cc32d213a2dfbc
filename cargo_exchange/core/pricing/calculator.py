# cargo_exchange/core/pricing/calculator.py
"""
Калькулятор стоимости перевозки.
Детерминированный расчёт по тарифу транспорта.
"""

from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP

from pydantic import BaseModel, Field

from cargo_exchange.common.exceptions import ValidationError
from cargo_exchange.core.cargo.models import Cargo


_CENT = Decimal("0.01")


class VehicleTariff(BaseModel):
    """Тариф транспорта."""

    base_price: float = Field(0.0, ge=0.0, description="Подача")
    price_per_km: float = Field(0.0, ge=0.0, description="Цена за км маршрута")
    price_per_approach_km: float = Field(0.0, ge=0.0, description="Цена за км до точки погрузки")
    price_per_kg: float = Field(0.0, ge=0.0, description="Цена за кг")
    price_per_m3: float = Field(0.0, ge=0.0, description="Цена за м³")
    # Коэффициенты применяются только если больше 1
    cooling_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент охлаждения")
    hazardous_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент опасного груза")
    urgent_coefficient: float = Field(1.0, ge=0.0, description="Коэффициент срочности")

    class Config:
        from_attributes = True


class PriceBreakdownDTO(BaseModel):
    """DTO с детализацией расчёта стоимости."""

    base_price: float
    distance_cost: float
    approach_cost: float
    weight_cost: float
    volume_cost: float
    subtotal: float
    multiplier: float
    total: float


def _dec(value: float) -> Decimal:
    # Через str, чтобы 1.3 оставалось 1.3, а не двоичным приближением
    return Decimal(str(value))


def _money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


class TransportPriceCalculator:
    """
    Калькулятор стоимости перевозки.

    Формула:
        base_price
        + distance_km * price_per_km
        + approach_km * price_per_approach_km (только если оба > 0)
        + weight * price_per_kg
        + volume * price_per_m3
    Сумма умножается на произведение применимых коэффициентов
    и округляется до центов (half-up).
    """

    def calculate(
        self,
        distance_km: float,
        approach_distance_km: float,
        cargo: Cargo,
        tariff: VehicleTariff,
    ) -> PriceBreakdownDTO:
        """
        Рассчитывает стоимость с детализацией.

        Args:
            distance_km: Длина маршрута погрузка -> выгрузка
            approach_distance_km: Расстояние от транспорта до погрузки
            cargo: Груз
            tariff: Тариф транспорта

        Returns:
            Детализация расчёта
        """
        for name, value in (("distance_km", distance_km), ("approach_distance_km", approach_distance_km)):
            if not math.isfinite(value) or value < 0:
                raise ValidationError(f"{name} должно быть неотрицательным числом, получено {value}")

        distance = _dec(distance_km)
        approach = _dec(approach_distance_km)

        base = _dec(tariff.base_price)
        distance_cost = distance * _dec(tariff.price_per_km)

        approach_cost = Decimal(0)
        if approach > 0 and tariff.price_per_approach_km > 0:
            approach_cost = approach * _dec(tariff.price_per_approach_km)

        weight_cost = _dec(cargo.weight) * _dec(tariff.price_per_kg)
        volume_cost = _dec(cargo.volume) * _dec(tariff.price_per_m3)

        subtotal = base + distance_cost + approach_cost + weight_cost + volume_cost

        multiplier = Decimal(1)
        if cargo.requires_refrigeration and tariff.cooling_coefficient > 1:
            multiplier *= _dec(tariff.cooling_coefficient)
        if cargo.is_hazardous and tariff.hazardous_coefficient > 1:
            multiplier *= _dec(tariff.hazardous_coefficient)
        if cargo.is_urgent and tariff.urgent_coefficient > 1:
            multiplier *= _dec(tariff.urgent_coefficient)

        return PriceBreakdownDTO(
            base_price=_money(base),
            distance_cost=_money(distance_cost),
            approach_cost=_money(approach_cost),
            weight_cost=_money(weight_cost),
            volume_cost=_money(volume_cost),
            subtotal=_money(subtotal),
            multiplier=float(multiplier),
            total=_money(subtotal * multiplier),
        )


def calculate_transport_price(
    distance_km: float,
    approach_distance_km: float,
    cargo: Cargo,
    tariff: VehicleTariff,
) -> float:
    """Итоговая стоимость перевозки, округлённая до центов."""
    return TransportPriceCalculator().calculate(
        distance_km, approach_distance_km, cargo, tariff
    ).total
