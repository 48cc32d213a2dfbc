"""
Общие утилиты, константы, ошибки и логгер.
"""

from cargo_exchange.common.logger import get_logger, log_info, log_error, log_warning, log_debug
from cargo_exchange.common.constants import TypeMsg, OrderStatus, UserRole
from cargo_exchange.common.exceptions import CargoExchangeError

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "TypeMsg",
    "OrderStatus",
    "UserRole",
    "CargoExchangeError",
]
