# cargo_exchange/core/users/directory.py
"""
Каталог пользователей и транспорта.
Поиск транспорта по ID вместе с его владельцем.
"""

from __future__ import annotations

import json
from typing import Optional, Protocol

from cargo_exchange.common.constants import TypeMsg, UserRole, VehicleType
from cargo_exchange.common.exceptions import PersistenceError
from cargo_exchange.common.logger import log_error, log_info
from cargo_exchange.core.geo.models import Location
from cargo_exchange.core.users.models import User, Vehicle
from cargo_exchange.infra.database import DatabaseManager


class UserDirectory(Protocol):
    """Источник пользователей и транспорта."""

    async def list_users(self) -> list[User]: ...

    async def get_user(self, user_id: str) -> Optional[User]: ...

    async def find_vehicle(self, vehicle_id: str) -> Optional[tuple[User, Vehicle]]: ...


class InMemoryUserDirectory:
    """Каталог в памяти процесса."""

    def __init__(self, users: list[User] | None = None) -> None:
        self._users: dict[str, User] = {u.id: u for u in users or []}

    async def list_users(self) -> list[User]:
        return list(self._users.values())

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def find_vehicle(self, vehicle_id: str) -> Optional[tuple[User, Vehicle]]:
        for user in self._users.values():
            for vehicle in user.vehicles:
                if vehicle.id == vehicle_id:
                    return user, vehicle
        return None

    async def save_user(self, user: User) -> User:
        """Добавляет или заменяет пользователя."""
        self._users[user.id] = user
        return user


class PostgresUserDirectory:
    """Каталог в PostgreSQL: пользователь целиком хранится в JSONB."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def list_users(self) -> list[User]:
        try:
            rows = await self._db.fetch("SELECT data FROM users ORDER BY id")
        except Exception as e:
            await log_error(f"Ошибка получения пользователей: {e}")
            raise PersistenceError(f"Ошибка получения пользователей: {e}") from e
        return [self._row_to_user(row) for row in rows]

    async def get_user(self, user_id: str) -> Optional[User]:
        try:
            row = await self._db.fetchrow("SELECT data FROM users WHERE id = $1", user_id)
        except Exception as e:
            await log_error(f"Ошибка получения пользователя {user_id}: {e}")
            raise PersistenceError(f"Ошибка получения пользователя {user_id}: {e}") from e
        return self._row_to_user(row) if row else None

    async def find_vehicle(self, vehicle_id: str) -> Optional[tuple[User, Vehicle]]:
        """Ищет владельца по вложенному массиву vehicles."""
        try:
            row = await self._db.fetchrow(
                """
                SELECT data FROM users
                WHERE data->'vehicles' @> $1::jsonb
                LIMIT 1
                """,
                [{"id": vehicle_id}],
            )
        except Exception as e:
            await log_error(f"Ошибка поиска транспорта {vehicle_id}: {e}")
            raise PersistenceError(f"Ошибка поиска транспорта {vehicle_id}: {e}") from e

        if row is None:
            return None

        user = self._row_to_user(row)
        for vehicle in user.vehicles:
            if vehicle.id == vehicle_id:
                return user, vehicle
        return None

    async def save_user(self, user: User) -> User:
        """Добавляет или заменяет пользователя."""
        try:
            await self._db.execute(
                """
                INSERT INTO users (id, role, data)
                VALUES ($1, $2, $3)
                ON CONFLICT (id) DO UPDATE
                SET role = EXCLUDED.role, data = EXCLUDED.data
                """,
                user.id,
                user.role.value,
                user.model_dump(mode="json"),
            )
        except Exception as e:
            await log_error(f"Ошибка сохранения пользователя {user.id}: {e}")
            raise PersistenceError(f"Ошибка сохранения пользователя {user.id}: {e}") from e

        await log_info(f"Пользователь {user.id} сохранён", type_msg=TypeMsg.DEBUG)
        return user

    def _row_to_user(self, row) -> User:
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return User.model_validate(data)


# =============================================================================
# ДЕМО-ДАННЫЕ
# =============================================================================

def demo_users() -> list[User]:
    """Заказчик и перевозчик с двумя машинами в районе Чикаго."""
    return [
        User(
            id="user1",
            name="John Smith",
            email="john.smith@example.com",
            phone="+1234567890",
            role=UserRole.ORDERER,
            address="123 Main St, New York, NY",
        ),
        User(
            id="user2",
            name="Maria Rodriguez",
            email="maria.rodriguez@example.com",
            phone="+0987654321",
            role=UserRole.TRANSPORTER,
            address="456 Transport Ave, Chicago, IL",
            vehicles=[
                Vehicle(
                    id="v1",
                    type=VehicleType.TRUCK,
                    model="Ford F-650",
                    license_plate="TR-1234",
                    max_weight=10000,
                    max_volume=45,
                    dimensions={"length": 650, "width": 250, "height": 280},
                    is_refrigerated=False,
                    current_location=Location(
                        address="Chicago, IL", latitude=41.8781, longitude=-87.6298,
                    ),
                    currency="USD",
                    base_price=100,
                    price_per_km=1.5,
                    price_per_approach_km=1.0,
                    price_per_kg=0.2,
                    price_per_m3=10,
                    cooling_coefficient=1.3,
                    hazardous_coefficient=1.5,
                    urgent_coefficient=1.8,
                ),
                Vehicle(
                    id="v2",
                    type=VehicleType.VAN,
                    model="Mercedes Sprinter",
                    license_plate="TR-5678",
                    max_weight=3500,
                    max_volume=14,
                    dimensions={"length": 450, "width": 180, "height": 170},
                    is_refrigerated=True,
                    current_location=Location(
                        address="Oak Park, IL", latitude=41.8339, longitude=-87.8720,
                    ),
                    currency="EUR",
                    base_price=90,
                    price_per_km=1.3,
                    price_per_approach_km=0.8,
                    price_per_kg=0.18,
                    price_per_m3=9,
                    cooling_coefficient=1.3,
                    hazardous_coefficient=1.5,
                    urgent_coefficient=1.8,
                ),
            ],
        ),
    ]
