# cargo_exchange/infra/__init__.py
"""
Инфраструктурный слой: PostgreSQL, Redis, RabbitMQ.
"""

from cargo_exchange.infra.database import DatabaseManager, get_db
from cargo_exchange.infra.event_bus import DomainEvent, EventBus, EventTypes, get_event_bus
from cargo_exchange.infra.redis_client import RedisClient, get_redis

__all__ = [
    "DatabaseManager",
    "get_db",
    "DomainEvent",
    "EventBus",
    "EventTypes",
    "get_event_bus",
    "RedisClient",
    "get_redis",
]
