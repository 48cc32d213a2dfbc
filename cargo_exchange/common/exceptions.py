# cargo_exchange/common/exceptions.py
"""
Доменные ошибки.

Сервисы ядра поднимают только эти исключения, чтобы внешний слой
(HTTP, CLI) мог различать ошибку ввода, сбой внешнего сервиса и
конфликт состояния заказа.
"""

from __future__ import annotations


class CargoExchangeError(Exception):
    """Базовая ошибка предметной области."""

    code: str = "cargo_exchange_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code)


class ValidationError(CargoExchangeError):
    """Некорректные входные данные груза, локации или числовых параметров."""

    code = "validation_error"


class GeocodingError(CargoExchangeError):
    """Адрес не удалось преобразовать в координаты."""

    code = "geocoding_failed"

    def __init__(self, address: str) -> None:
        super().__init__(f"Не удалось определить координаты адреса: {address}")
        self.address = address


class GeocoderUnavailableError(CargoExchangeError):
    """Сервис геокодирования недоступен."""

    code = "geocoder_unavailable"


class NoProposedPriceError(CargoExchangeError):
    """Нет предложенной цены для принятия."""

    code = "no_proposed_price"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"У заказа {order_id} нет предложенной цены")
        self.order_id = order_id


class OrderNotFoundError(CargoExchangeError):
    """Заказ не найден."""

    code = "order_not_found"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Заказ {order_id} не найден")
        self.order_id = order_id


class VehicleNotFoundError(CargoExchangeError):
    """Транспорт не найден в каталоге."""

    code = "vehicle_not_found"

    def __init__(self, vehicle_id: str) -> None:
        super().__init__(f"Транспорт {vehicle_id} не найден")
        self.vehicle_id = vehicle_id


class InvalidStatusTransitionError(CargoExchangeError):
    """Недопустимый переход статуса заказа."""

    code = "invalid_status_transition"

    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Заказ {order_id}: переход {current} -> {target} недопустим"
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class InsufficientCapacityError(CargoExchangeError):
    """Груз не помещается в транспорт с учётом активных заказов."""

    code = "insufficient_capacity"

    def __init__(self, vehicle_id: str, remaining_weight: float, remaining_volume: float) -> None:
        super().__init__(
            f"Транспорт {vehicle_id}: осталось {remaining_weight:.1f} кг и {remaining_volume:.3f} м³"
        )
        self.vehicle_id = vehicle_id
        self.remaining_weight = remaining_weight
        self.remaining_volume = remaining_volume


class ConcurrencyConflictError(CargoExchangeError):
    """Заказ был изменён другим запросом."""

    code = "concurrency_conflict"

    def __init__(self, order_id: str, expected: int, actual: int | None) -> None:
        super().__init__(
            f"Заказ {order_id}: ожидалась версия {expected}, в хранилище {actual}"
        )
        self.order_id = order_id
        self.expected = expected
        self.actual = actual


class PersistenceError(CargoExchangeError):
    """Ошибка хранилища."""

    code = "persistence_error"
