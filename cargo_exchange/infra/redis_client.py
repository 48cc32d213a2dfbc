# cargo_exchange/infra/redis_client.py
"""
Клиент Redis для кэширования.
Хранит Pydantic модели в виде JSON под ключами с namespace.
"""

from __future__ import annotations

from typing import Type, TypeVar

import redis.asyncio as redis
from pydantic import BaseModel

from cargo_exchange.common.constants import TypeMsg
from cargo_exchange.common.logger import log_error, log_info

T = TypeVar("T", bound=BaseModel)


class RedisClient:
    """
    Асинхронный клиент Redis (Singleton).
    Используется как кэш результатов геокодирования.
    """

    _instance: RedisClient | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client: redis.Redis | None = None
        self._namespace = "cargo"

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str,
        max_connections: int = 20,
        namespace: str = "cargo",
    ) -> None:
        """
        Подключается к Redis и проверяет соединение PING-ом.

        Args:
            url: URL Redis
            max_connections: Размер пула соединений
            namespace: Префикс всех ключей
        """
        if self._client is not None:
            return

        self._namespace = namespace
        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)
        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )
        await self._client.ping()
        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # БАЗОВЫЕ ОПЕРАЦИИ
    # =========================================================================

    async def get(self, key: str) -> str | None:
        return await self.client.get(self._make_key(key))

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Устанавливает значение с необязательным TTL в секундах."""
        return await self.client.set(self._make_key(key), value, ex=ttl)

    async def delete(self, key: str) -> int:
        return await self.client.delete(self._make_key(key))

    # =========================================================================
    # ТИПИЗИРОВАННЫЕ ОПЕРАЦИИ (PYDANTIC)
    # =========================================================================

    async def get_model(self, key: str, model_class: Type[T]) -> T | None:
        """
        Читает и десериализует Pydantic модель.

        Returns:
            Экземпляр модели или None (нет ключа или битые данные)
        """
        data = await self.get(key)
        if data is None:
            return None

        try:
            return model_class.model_validate_json(data)
        except ValueError as e:
            await log_error(f"Ошибка десериализации модели {model_class.__name__}: {e}")
            return None

    async def set_model(self, key: str, model: BaseModel, ttl: int | None = None) -> bool:
        """Сериализует и сохраняет Pydantic модель."""
        return await self.set(key, model.model_dump_json(), ttl=ttl)

    async def health_check(self) -> bool:
        """Проверяет, что Redis отвечает на PING."""
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


def get_redis() -> RedisClient:
    """Возвращает глобальный экземпляр RedisClient."""
    return RedisClient()


async def init_redis() -> RedisClient:
    """Подключается к Redis по настройкам из конфигурации."""
    from cargo_exchange.config import settings

    redis_client = get_redis()
    await redis_client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        namespace=settings.redis.REDIS_NAMESPACE,
    )
    await log_info(
        f"Redis подключён: {settings.redis.REDIS_HOST}:{settings.redis.REDIS_PORT}/{settings.redis.REDIS_DB}",
        type_msg=TypeMsg.INFO,
    )
    return redis_client


async def close_redis() -> None:
    """Закрывает подключение к Redis."""
    await get_redis().disconnect()
