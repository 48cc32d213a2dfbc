# tests/core/test_pricing_calculator.py
"""
Тесты калькулятора стоимости перевозки.
"""

from __future__ import annotations

import pytest

from cargo_exchange.common.exceptions import ValidationError
from cargo_exchange.core.cargo.models import Cargo
from cargo_exchange.core.pricing.calculator import (
    TransportPriceCalculator,
    VehicleTariff,
    calculate_transport_price,
)


@pytest.fixture
def tariff() -> VehicleTariff:
    return VehicleTariff(
        base_price=100,
        price_per_km=1.5,
        price_per_approach_km=1.0,
        price_per_kg=0.2,
        price_per_m3=10,
        cooling_coefficient=1.3,
        hazardous_coefficient=1.5,
        urgent_coefficient=1.8,
    )


@pytest.fixture
def calculator() -> TransportPriceCalculator:
    return TransportPriceCalculator()


class TestTransportPriceCalculator:
    """Тесты для TransportPriceCalculator."""

    def test_components(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        """Проверяет слагаемые формулы."""
        cargo = Cargo(weight=500, dimensions={"length": 100, "width": 100, "height": 200})

        result = calculator.calculate(100, 10, cargo, tariff)

        assert result.base_price == 100
        assert result.distance_cost == 150
        assert result.approach_cost == 10
        assert result.weight_cost == 100
        assert result.volume_cost == 20
        assert result.subtotal == 380
        assert result.multiplier == 1.0
        assert result.total == 380

    def test_coefficients_compound(self, calculator: TransportPriceCalculator) -> None:
        """Охлаждение и срочность перемножаются: (100 + 50) * 1.3 * 1.8 = 351."""
        tariff = VehicleTariff(
            base_price=100,
            price_per_km=1,
            cooling_coefficient=1.3,
            urgent_coefficient=1.8,
        )
        cargo = Cargo(weight=1, requires_refrigeration=True, is_urgent=True)

        result = calculator.calculate(50, 0, cargo, tariff)

        assert result.multiplier == pytest.approx(2.34)
        assert result.total == 351.00

    def test_coefficient_not_above_one_ignored(self, calculator: TransportPriceCalculator) -> None:
        """Коэффициент 1 и меньше не применяется."""
        tariff = VehicleTariff(base_price=100, hazardous_coefficient=0.5)
        cargo = Cargo(weight=1, is_hazardous=True)

        assert calculator.calculate(0, 0, cargo, tariff).total == 100

    def test_flag_without_coefficient(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        """Коэффициент применяется только при выставленном флаге."""
        cargo = Cargo(weight=1)
        result = calculator.calculate(0, 0, cargo, tariff)
        assert result.multiplier == 1.0

    def test_approach_ignored_without_rate(self, calculator: TransportPriceCalculator) -> None:
        """Подача не считается при нулевом тарифе за км подачи."""
        tariff = VehicleTariff(base_price=10)
        cargo = Cargo(weight=1)
        assert calculator.calculate(0, 500, cargo, tariff).approach_cost == 0

    def test_rounding_half_up(self, calculator: TransportPriceCalculator) -> None:
        """Итог округляется до центов вверх от половины."""
        tariff = VehicleTariff(price_per_km=0.005)
        cargo = Cargo(weight=1)
        assert calculator.calculate(1, 0, cargo, tariff).total == 0.01

    def test_monotonic_in_distance(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        """Цена не убывает с ростом расстояния."""
        cargo = Cargo(weight=100)
        prices = [calculator.calculate(d, 0, cargo, tariff).total for d in (0, 10, 100, 1000)]
        assert prices == sorted(prices)

    def test_monotonic_in_weight(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        prices = [calculator.calculate(10, 0, Cargo(weight=w), tariff).total for w in (1, 10, 100)]
        assert prices == sorted(prices)

    def test_monotonic_in_approach(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        """Цена не убывает с ростом подачи."""
        cargo = Cargo(weight=100)
        prices = [calculator.calculate(10, a, cargo, tariff).total for a in (0, 1, 10, 100)]
        assert prices == sorted(prices)
        assert prices[-1] > prices[0]

    def test_monotonic_in_volume(self, calculator: TransportPriceCalculator, tariff: VehicleTariff) -> None:
        """Цена не убывает с ростом объёма (вес неизменен)."""
        cargoes = [
            Cargo(weight=100, dimensions={"length": side, "width": side, "height": side})
            for side in (10, 50, 100, 200)
        ]
        prices = [calculator.calculate(10, 0, cargo, tariff).total for cargo in cargoes]
        assert prices == sorted(prices)
        assert prices[-1] > prices[0]

    @pytest.mark.parametrize("distance,approach", [(-1, 0), (0, -1), (float("nan"), 0), (0, float("inf"))])
    def test_invalid_distances(
        self,
        calculator: TransportPriceCalculator,
        tariff: VehicleTariff,
        distance: float,
        approach: float,
    ) -> None:
        """Отрицательные и нечисловые расстояния отклоняются."""
        with pytest.raises(ValidationError):
            calculator.calculate(distance, approach, Cargo(weight=1), tariff)

    def test_shortcut_returns_total(self, tariff: VehicleTariff) -> None:
        cargo = Cargo(weight=500, dimensions={"length": 100, "width": 100, "height": 200})
        assert calculate_transport_price(100, 10, cargo, tariff) == 380.0
