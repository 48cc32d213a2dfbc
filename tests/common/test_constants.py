# tests/common/test_constants.py
"""
Тесты констант, валют и доменных ошибок.
"""

from __future__ import annotations

import pytest

from cargo_exchange.common.constants import (
    CAPACITY_CONSUMING_STATUSES,
    TERMINAL_STATUSES,
    OrderStatus,
    format_price,
    get_currency_symbol,
)
from cargo_exchange.common.exceptions import (
    CargoExchangeError,
    ConcurrencyConflictError,
    GeocoderUnavailableError,
    InsufficientCapacityError,
    OrderNotFoundError,
)


class TestOrderStatus:
    """Тесты групп статусов."""

    def test_values(self) -> None:
        assert OrderStatus("determine_price") is OrderStatus.DETERMINE_PRICE
        assert OrderStatus.IN_TRANSIT.value == "in_transit"

    def test_capacity_statuses(self) -> None:
        """Место занимают только accepted, pickup и in_transit."""
        assert CAPACITY_CONSUMING_STATUSES == {
            OrderStatus.ACCEPTED, OrderStatus.PICKUP, OrderStatus.IN_TRANSIT,
        }

    def test_groups_disjoint(self) -> None:
        assert not CAPACITY_CONSUMING_STATUSES & TERMINAL_STATUSES


class TestCurrency:
    """Тесты форматирования цен."""

    @pytest.mark.parametrize("code,symbol", [
        ("USD", "$"),
        ("eur", "€"),
        ("GBP", "£"),
        ("UAH", "₴"),
        ("XYZ", "$"),
    ])
    def test_symbol(self, code: str, symbol: str) -> None:
        assert get_currency_symbol(code) == symbol

    def test_format_price(self) -> None:
        assert format_price(1250.5, "USD") == "$1,250.50"
        assert format_price(300, "EUR") == "€300.00"

    def test_format_price_rounds(self) -> None:
        assert format_price(99.999, "GBP") == "£100.00"


class TestExceptions:
    """Тесты доменных ошибок."""

    def test_default_message(self) -> None:
        """Без сообщения используется описание класса."""
        error = GeocoderUnavailableError()
        assert error.message == "Сервис геокодирования недоступен."
        assert error.code == "geocoder_unavailable"

    def test_hierarchy(self) -> None:
        assert issubclass(OrderNotFoundError, CargoExchangeError)
        with pytest.raises(CargoExchangeError):
            raise OrderNotFoundError("o1")

    def test_details(self) -> None:
        capacity = InsufficientCapacityError("v1", 250.0, 1.5)
        conflict = ConcurrencyConflictError("o1", 2, 3)

        assert capacity.remaining_weight == 250.0
        assert "v1" in capacity.message
        assert (conflict.expected, conflict.actual) == (2, 3)
