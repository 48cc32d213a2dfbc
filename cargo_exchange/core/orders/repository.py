# cargo_exchange/core/orders/repository.py
"""
Репозитории заказов.

Контракт:
- list / get_by_id возвращают копии, изменение которых не влияет на хранилище;
- update применяет patch и увеличивает version на 1;
- при expected_version, не совпадающей с хранимой, update поднимает
  ConcurrencyConflictError и ничего не меняет.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Protocol

from cargo_exchange.common.constants import OrderStatus, TypeMsg
from cargo_exchange.common.exceptions import (
    ConcurrencyConflictError,
    OrderNotFoundError,
    PersistenceError,
)
from cargo_exchange.common.logger import log_error, log_info
from cargo_exchange.core.orders.models import Order
from cargo_exchange.infra.database import DatabaseManager


class OrderRepository(Protocol):
    """Хранилище заказов."""

    async def list(
        self,
        *,
        statuses: Iterable[OrderStatus] | None = None,
        vehicle_id: str | None = None,
    ) -> list[Order]: ...

    async def get_by_id(self, order_id: str) -> Optional[Order]: ...

    async def append(self, order: Order) -> Order: ...

    async def update(
        self,
        order_id: str,
        patch: dict[str, Any],
        expected_version: int | None = None,
    ) -> Order: ...


def _matches(order: Order, statuses: set[OrderStatus] | None, vehicle_id: str | None) -> bool:
    if statuses is not None and order.status not in statuses:
        return False
    if vehicle_id is not None and order.transporter_vehicle_id != vehicle_id:
        return False
    return True


class InMemoryOrderRepository:
    """Заказы в памяти процесса, в порядке добавления."""

    def __init__(self, orders: Iterable[Order] | None = None) -> None:
        self._orders: dict[str, Order] = {}
        for order in orders or []:
            self._orders[order.id] = order.model_copy(deep=True)

    async def list(
        self,
        *,
        statuses: Iterable[OrderStatus] | None = None,
        vehicle_id: str | None = None,
    ) -> list[Order]:
        wanted = set(statuses) if statuses is not None else None
        return [
            order.model_copy(deep=True)
            for order in self._orders.values()
            if _matches(order, wanted, vehicle_id)
        ]

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def append(self, order: Order) -> Order:
        if order.id in self._orders:
            raise PersistenceError(f"Заказ {order.id} уже существует")
        self._orders[order.id] = order.model_copy(deep=True)
        await log_info(f"Заказ {order.id} создан", type_msg=TypeMsg.DEBUG)
        return order.model_copy(deep=True)

    async def update(
        self,
        order_id: str,
        patch: dict[str, Any],
        expected_version: int | None = None,
    ) -> Order:
        current = self._orders.get(order_id)
        if current is None:
            raise OrderNotFoundError(order_id)
        if expected_version is not None and current.version != expected_version:
            raise ConcurrencyConflictError(order_id, expected_version, current.version)

        updated = current.model_copy(
            update={**patch, "version": current.version + 1},
            deep=True,
        )
        self._orders[order_id] = updated
        return updated.model_copy(deep=True)


class PostgresOrderRepository:
    """
    Заказы в PostgreSQL.
    Документ заказа хранится в JSONB, поля для фильтрации продублированы колонками.
    """

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def list(
        self,
        *,
        statuses: Iterable[OrderStatus] | None = None,
        vehicle_id: str | None = None,
    ) -> list[Order]:
        clauses: list[str] = []
        params: list[Any] = []

        if statuses is not None:
            params.append([s.value for s in statuses])
            clauses.append(f"status = ANY(${len(params)}::text[])")
        if vehicle_id is not None:
            params.append(vehicle_id)
            clauses.append(f"transporter_vehicle_id = ${len(params)}")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            rows = await self._db.fetch(
                f"SELECT data, version FROM orders {where} ORDER BY created_at, id",
                *params,
            )
        except Exception as e:
            await log_error(f"Ошибка получения списка заказов: {e}")
            raise PersistenceError(f"Ошибка получения списка заказов: {e}") from e

        return [self._row_to_order(row) for row in rows]

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        try:
            row = await self._db.fetchrow(
                "SELECT data, version FROM orders WHERE id = $1",
                order_id,
            )
        except Exception as e:
            await log_error(f"Ошибка получения заказа {order_id}: {e}")
            raise PersistenceError(f"Ошибка получения заказа {order_id}: {e}") from e

        return self._row_to_order(row) if row else None

    async def append(self, order: Order) -> Order:
        try:
            await self._db.execute(
                """
                INSERT INTO orders (
                    id, orderer_id, transporter_id, transporter_vehicle_id,
                    status, version, created_at, data
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                order.id,
                order.orderer_id,
                order.transporter_id,
                order.transporter_vehicle_id,
                order.status.value,
                order.version,
                order.created_at,
                order.model_dump(mode="json", exclude={"version"}),
            )
        except Exception as e:
            await log_error(f"Ошибка создания заказа {order.id}: {e}")
            raise PersistenceError(f"Ошибка создания заказа {order.id}: {e}") from e

        await log_info(f"Заказ {order.id} создан", type_msg=TypeMsg.DEBUG)
        return order

    async def update(
        self,
        order_id: str,
        patch: dict[str, Any],
        expected_version: int | None = None,
    ) -> Order:
        try:
            async with self._db.transaction() as conn:
                row = await conn.fetchrow(
                    "SELECT data, version FROM orders WHERE id = $1 FOR UPDATE",
                    order_id,
                )
                if row is None:
                    raise OrderNotFoundError(order_id)

                current = self._row_to_order(row)
                if expected_version is not None and current.version != expected_version:
                    raise ConcurrencyConflictError(order_id, expected_version, current.version)

                updated = current.model_copy(update={**patch, "version": current.version + 1})
                await conn.execute(
                    """
                    UPDATE orders
                    SET transporter_id = $2, transporter_vehicle_id = $3,
                        status = $4, version = $5, data = $6
                    WHERE id = $1
                    """,
                    updated.id,
                    updated.transporter_id,
                    updated.transporter_vehicle_id,
                    updated.status.value,
                    updated.version,
                    updated.model_dump(mode="json", exclude={"version"}),
                )
        except (OrderNotFoundError, ConcurrencyConflictError):
            raise
        except Exception as e:
            await log_error(f"Ошибка обновления заказа {order_id}: {e}")
            raise PersistenceError(f"Ошибка обновления заказа {order_id}: {e}") from e

        return updated

    def _row_to_order(self, row) -> Order:
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return Order.model_validate({**data, "version": row["version"]})
