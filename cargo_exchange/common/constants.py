# cargo_exchange/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    ORDERER = "orderer"
    TRANSPORTER = "transporter"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    """Статусы заказа."""
    PENDING = "pending"
    DETERMINE_PRICE = "determine_price"
    ACCEPTED = "accepted"
    PICKUP = "pickup"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Статусы, в которых груз занимает место в транспорте
CAPACITY_CONSUMING_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.ACCEPTED,
    OrderStatus.PICKUP,
    OrderStatus.IN_TRANSIT,
})

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
})


class VehicleType(str, Enum):
    """Типы транспорта."""
    TRUCK = "truck"
    VAN = "van"
    PICKUP = "pickup"
    SEMI_TRAILER = "semi_trailer"
    REFRIGERATOR = "refrigerator"


# Код валюты -> (название, символ)
CURRENCIES: dict[str, tuple[str, str]] = {
    "USD": ("US Dollar", "$"),
    "EUR": ("Euro", "€"),
    "GBP": ("British Pound", "£"),
    "JPY": ("Japanese Yen", "¥"),
    "CAD": ("Canadian Dollar", "$"),
    "AUD": ("Australian Dollar", "$"),
    "CHF": ("Swiss Franc", "CHF"),
    "CNY": ("Chinese Yuan", "¥"),
    "INR": ("Indian Rupee", "₹"),
    "BRL": ("Brazilian Real", "R$"),
    "KRW": ("South Korean Won", "₩"),
    "SGD": ("Singapore Dollar", "$"),
    "NZD": ("New Zealand Dollar", "$"),
    "MXN": ("Mexican Peso", "$"),
    "HKD": ("Hong Kong Dollar", "$"),
    "SEK": ("Swedish Krona", "kr"),
    "NOK": ("Norwegian Krone", "kr"),
    "DKK": ("Danish Krone", "kr"),
    "PLN": ("Polish Złoty", "zł"),
    "UAH": ("Ukrainian Hryvnia", "₴"),
}


def get_currency_symbol(code: str) -> str:
    """Возвращает символ валюты ("$" для неизвестных кодов)."""
    currency = CURRENCIES.get(code.upper())
    return currency[1] if currency else "$"


def format_price(amount: float, currency: str) -> str:
    """Форматирует сумму с символом валюты, например "$1,250.50"."""
    return f"{get_currency_symbol(currency)}{amount:,.2f}"
