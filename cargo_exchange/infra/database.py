# cargo_exchange/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений asyncpg, повтор при обрыве соединения, JSONB-кодек.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from functools import wraps
from typing import Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from cargo_exchange.common.constants import TypeMsg
from cargo_exchange.common.logger import log_error, log_info, log_warning

T = TypeVar("T")

# Ошибки, после которых запрос имеет смысл повторить
_CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Декоратор повтора корутины при ошибках подключения к БД.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка (умножается на номер попытки)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except _CONNECTION_ERRORS as e:
                    if attempt == max_attempts:
                        await log_error(
                            f"{func.__name__}: БД недоступна после {max_attempts} попыток: {e}"
                        )
                        raise
                    await log_warning(
                        f"{func.__name__}: ошибка подключения к БД "
                        f"(попытка {attempt}/{max_attempts}): {e}"
                    )
                    await asyncio.sleep(delay * attempt)
            raise RuntimeError("unreachable")

        return wrapper  # type: ignore

    return decorator


async def _init_connection(conn: Connection) -> None:
    """JSONB колонки читаются и пишутся как обычные dict/list."""
    await conn.set_type_codec(
        "jsonb",
        encoder=lambda value: json.dumps(value, ensure_ascii=False, default=str),
        decoder=json.loads,
        schema="pg_catalog",
    )


class DatabaseManager:
    """
    Менеджер подключений к PostgreSQL.
    Один пул на процесс (Singleton).
    """

    _instance: DatabaseManager | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool: Pool | None = None

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error(max_attempts=3, delay=1.0)
    async def connect(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: int = 30,
    ) -> None:
        """
        Создаёт пул соединений.

        Args:
            dsn: Строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут команды в секундах
        """
        if self._pool is not None:
            return

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
            init=_init_connection,
        )
        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """Соединение из пула."""
        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """
        Соединение внутри транзакции.
        Commit при выходе, rollback при исключении.
        """
        async with self.pool.acquire() as connection:
            async with connection.transaction():
                yield connection

    @retry_on_connection_error()
    async def execute(self, query: str, *args: Any) -> str:
        """Выполняет запрос без возврата строк, возвращает статус команды."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    @retry_on_connection_error()
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        """Выполняет запрос и возвращает все строки."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    @retry_on_connection_error()
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        """Выполняет запрос и возвращает первую строку или None."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def health_check(self) -> bool:
        """Проверяет, что БД отвечает на SELECT 1."""
        try:
            async with self.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


# =============================================================================
# ГЛОБАЛЬНЫЙ ЭКЗЕМПЛЯР
# =============================================================================

_db_manager: DatabaseManager | None = None


def get_db() -> DatabaseManager:
    """Возвращает глобальный DatabaseManager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def init_db() -> DatabaseManager:
    """
    Подключается к БД по настройкам и применяет migrations/init.sql.
    """
    from cargo_exchange.config import settings

    db = get_db()
    await db.connect(
        dsn=settings.database.dsn,
        min_size=settings.database.DB_MIN_POOL_SIZE,
        max_size=settings.database.DB_MAX_POOL_SIZE,
        command_timeout=settings.database.DB_COMMAND_TIMEOUT,
    )
    await log_info(
        f"PostgreSQL подключён: {settings.database.DB_HOST}:{settings.database.DB_PORT}/{settings.database.DB_NAME}",
        type_msg=TypeMsg.INFO,
    )
    await _init_schema(db)
    return db


async def _init_schema(db: DatabaseManager) -> None:
    """Применяет схему БД под advisory lock."""
    from cargo_exchange.config.loader import get_project_root

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        await log_error(f"Файл схемы БД не найден: {schema_path}")
        return

    schema_sql = schema_path.read_text(encoding="utf-8")

    await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
    async with db.transaction() as conn:
        # Параллельно стартующие процессы ждут друг друга
        await conn.execute("SELECT pg_advisory_xact_lock(4242)")
        await conn.execute(schema_sql)
    await log_info("Схема БД применена", type_msg=TypeMsg.INFO)


async def close_db() -> None:
    """Закрывает подключение к базе данных."""
    await get_db().disconnect()
