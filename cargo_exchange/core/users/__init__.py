"""
Домен пользователей.
Пользователи, транспорт перевозчиков и каталог для их поиска.
"""

from cargo_exchange.core.users.directory import (
    InMemoryUserDirectory,
    PostgresUserDirectory,
    UserDirectory,
    demo_users,
)
from cargo_exchange.core.users.models import User, Vehicle

__all__ = [
    "InMemoryUserDirectory",
    "PostgresUserDirectory",
    "User",
    "UserDirectory",
    "Vehicle",
    "demo_users",
]
