# cargo_exchange/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (можно переопределить CARGO_CONFIG_PATH)."""
    override = os.getenv("CARGO_CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json(path: Path | None = None) -> dict[str, Any]:
    """Загружает config.json и возвращает словарь без ключей-комментариев."""
    config_path = path or get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "cargo_exchange"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    SEED_DEMO_DATA: bool = True
    STORAGE_BACKEND: str = "memory"

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def check_backend(cls, v: str) -> str:
        """Допустимы только memory и postgres."""
        if v not in ("memory", "postgres"):
            raise ValueError(f"Неизвестный STORAGE_BACKEND: {v}")
        return v


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class GoogleMapsSettings(BaseModel):
    """Настройки Google Maps Geocoding API."""
    GOOGLE_MAPS_API_KEY: str = ""
    GEOCODING_LANGUAGE: str = "en"

    @field_validator("GOOGLE_MAPS_API_KEY", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает API ключ из переменных окружения."""
        if not v:
            return os.getenv("GOOGLE_MAPS_API_KEY", "")
        return v


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "cargo_exchange"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 30
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_ENABLED: bool = False
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "cargo"
    REDIS_MAX_CONNECTIONS: int = 20

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RedisTTLSettings(BaseModel):
    """Настройки TTL кэша."""
    GEOCODE_TTL: int = 86400


class RabbitMQSettings(BaseModel):
    """Настройки RabbitMQ."""
    RABBITMQ_ENABLED: bool = False
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_EXCHANGE: str = "cargo.events"

    @field_validator("RABBITMQ_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        env_pass = os.getenv("RABBITMQ_PASSWORD", "")
        if env_pass:
            return env_pass
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к RabbitMQ."""
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class PricingSettings(BaseModel):
    """Настройки ценообразования."""
    DEFAULT_CURRENCY: str = "USD"
    # Записывать предложенную цену в price сразу при предложении
    COMMIT_PRICE_ON_PROPOSAL: bool = True


class SearchSettings(BaseModel):
    """Настройки поиска транспорта."""
    DEFAULT_SEARCH_RADIUS_KM: float = Field(50.0, gt=0)
    MAX_SEARCH_RADIUS_KM: float = Field(1000.0, gt=0)


class TimeoutSettings(BaseModel):
    """Таймауты и ретраи внешних вызовов."""
    GEOCODING_TIMEOUT: float = 10.0
    GEOCODING_RETRY_ATTEMPTS: int = 3
    GEOCODING_RETRY_DELAY: float = 0.5


class ApiSettings(BaseModel):
    """Настройки HTTP API."""
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_PREFIX: str = "/api/v1"


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    google_maps: GoogleMapsSettings = Field(default_factory=GoogleMapsSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    redis_ttl: RedisTTLSettings = Field(default_factory=RedisTTLSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @classmethod
    def from_config_json(cls, path: Path | None = None) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты и адреса хостов переопределяются из переменных окружения.
        """
        data = load_config_json(path)

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "cargo_exchange"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", True),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
                SEED_DEMO_DATA=data.get("SEED_DEMO_DATA", True),
                STORAGE_BACKEND=os.getenv("STORAGE_BACKEND", data.get("STORAGE_BACKEND", "memory")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            google_maps=GoogleMapsSettings(
                GOOGLE_MAPS_API_KEY=os.getenv("GOOGLE_MAPS_API_KEY", data.get("GOOGLE_MAPS_API_KEY", "")),
                GEOCODING_LANGUAGE=data.get("GEOCODING_LANGUAGE", "en"),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "cargo_exchange")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 30),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_ENABLED=data.get("REDIS_ENABLED", False),
                REDIS_HOST=os.getenv("REDIS_HOST", data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", data.get("REDIS_PORT", 6379))),
                REDIS_DB=data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=data.get("REDIS_NAMESPACE", "cargo"),
                REDIS_MAX_CONNECTIONS=data.get("REDIS_MAX_CONNECTIONS", 20),
            ),
            redis_ttl=RedisTTLSettings(
                GEOCODE_TTL=data.get("GEOCODE_TTL", 86400),
            ),
            rabbitmq=RabbitMQSettings(
                RABBITMQ_ENABLED=data.get("RABBITMQ_ENABLED", False),
                RABBITMQ_HOST=os.getenv("RABBITMQ_HOST", data.get("RABBITMQ_HOST", "localhost")),
                RABBITMQ_PORT=int(os.getenv("RABBITMQ_PORT", data.get("RABBITMQ_PORT", 5672))),
                RABBITMQ_USER=os.getenv("RABBITMQ_USER", data.get("RABBITMQ_USER", "guest")),
                RABBITMQ_PASSWORD=os.getenv("RABBITMQ_PASSWORD", data.get("RABBITMQ_PASSWORD", "guest")),
                RABBITMQ_VHOST=data.get("RABBITMQ_VHOST", "/"),
                RABBITMQ_EXCHANGE=data.get("RABBITMQ_EXCHANGE", "cargo.events"),
            ),
            pricing=PricingSettings(
                DEFAULT_CURRENCY=data.get("DEFAULT_CURRENCY", "USD"),
                COMMIT_PRICE_ON_PROPOSAL=data.get("COMMIT_PRICE_ON_PROPOSAL", True),
            ),
            search=SearchSettings(
                DEFAULT_SEARCH_RADIUS_KM=data.get("DEFAULT_SEARCH_RADIUS_KM", 50.0),
                MAX_SEARCH_RADIUS_KM=data.get("MAX_SEARCH_RADIUS_KM", 1000.0),
            ),
            timeouts=TimeoutSettings(
                GEOCODING_TIMEOUT=data.get("GEOCODING_TIMEOUT", 10.0),
                GEOCODING_RETRY_ATTEMPTS=data.get("GEOCODING_RETRY_ATTEMPTS", 3),
                GEOCODING_RETRY_DELAY=data.get("GEOCODING_RETRY_DELAY", 0.5),
            ),
            api=ApiSettings(
                API_HOST=data.get("API_HOST", "0.0.0.0"),
                API_PORT=int(os.getenv("API_PORT", data.get("API_PORT", 8080))),
                API_PREFIX=data.get("API_PREFIX", "/api/v1"),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Перед чтением config.json подгружает .env из корня проекта.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
