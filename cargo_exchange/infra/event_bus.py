# cargo_exchange/infra/event_bus.py
"""
Публикация доменных событий заказов в RabbitMQ.
Topic exchange, routing key совпадает с типом события.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import aio_pika
from aio_pika import ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

from cargo_exchange.common.constants import TypeMsg
from cargo_exchange.common.logger import log_error, log_info


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class DomainEvent:
    """Доменное событие."""
    event_type: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: str = field(default_factory=_utc_now_iso)

    def to_json(self) -> str:
        """Сериализует событие в JSON."""
        return json.dumps(
            {
                "event_id": self.event_id,
                "event_type": self.event_type,
                "timestamp": self.timestamp,
                "payload": self.payload,
            },
            ensure_ascii=False,
            default=str,
        )

    @classmethod
    def from_json(cls, data: str | bytes) -> DomainEvent:
        """Десериализует событие из JSON."""
        parsed = json.loads(data)
        return cls(
            event_type=parsed.get("event_type", ""),
            payload=parsed.get("payload", {}),
            event_id=parsed.get("event_id", str(uuid4())),
            timestamp=parsed.get("timestamp", ""),
        )


class EventTypes:
    """Типы событий заказов."""
    ORDER_CREATED = "order.created"
    ORDER_PRICE_PROPOSED = "order.price_proposed"
    ORDER_PRICE_ACCEPTED = "order.price_accepted"
    ORDER_PRICE_REJECTED = "order.price_rejected"
    ORDER_STATUS_CHANGED = "order.status_changed"
    ORDER_LOCATION_UPDATED = "order.location_updated"


class EventBus:
    """
    Издатель событий в RabbitMQ (Singleton).
    Без соединения publish() только пишет ошибку в лог.
    """

    _instance: EventBus | None = None

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None
        self._exchange_name = "cargo.events"

    @property
    def is_connected(self) -> bool:
        """Активно ли соединение."""
        return self._connection is not None and not self._connection.is_closed

    async def connect(self, url: str, exchange_name: str = "cargo.events") -> None:
        """
        Подключается к RabbitMQ и объявляет topic exchange.

        Args:
            url: AMQP URL
            exchange_name: Имя exchange
        """
        if self.is_connected:
            return

        self._exchange_name = exchange_name
        await log_info("Подключение к RabbitMQ...", type_msg=TypeMsg.INFO)

        self._connection = await aio_pika.connect_robust(url)
        self._channel = await self._connection.channel()
        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            ExchangeType.TOPIC,
            durable=True,
        )
        await log_info("Подключение к RabbitMQ установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с RabbitMQ."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            await log_info("Соединение с RabbitMQ закрыто", type_msg=TypeMsg.INFO)

    async def publish(self, event: DomainEvent) -> None:
        """
        Публикует событие. Ошибки брокера логируются и не пробрасываются:
        заказ уже сохранён, и событие не должно его откатывать.
        """
        if not self.is_connected or self._exchange is None:
            await log_error(f"Событие {event.event_type} не опубликовано: нет соединения с RabbitMQ")
            return

        try:
            message = Message(
                body=event.to_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                timestamp=datetime.now(timezone.utc),
            )
            await self._exchange.publish(message, routing_key=event.event_type)
            await log_info(f"Событие опубликовано: {event.event_type}", type_msg=TypeMsg.DEBUG)
        except Exception as e:
            await log_error(f"Ошибка публикации события {event.event_type}: {e}")

    async def health_check(self) -> bool:
        return self.is_connected


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Возвращает глобальный экземпляр EventBus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def init_event_bus() -> EventBus:
    """Подключается к RabbitMQ по настройкам из конфигурации."""
    from cargo_exchange.config import settings

    event_bus = get_event_bus()
    await event_bus.connect(
        url=settings.rabbitmq.url,
        exchange_name=settings.rabbitmq.RABBITMQ_EXCHANGE,
    )
    await log_info(
        f"RabbitMQ подключён: {settings.rabbitmq.RABBITMQ_HOST}:{settings.rabbitmq.RABBITMQ_PORT}",
        type_msg=TypeMsg.INFO,
    )
    return event_bus


async def close_event_bus() -> None:
    """Закрывает подключение к RabbitMQ."""
    await get_event_bus().disconnect()
