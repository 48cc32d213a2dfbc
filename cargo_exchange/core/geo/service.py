# cargo_exchange/core/geo/service.py
"""
Geo-сервис для работы с Google Maps Geocoding API.
Прямое и обратное геокодирование с таймаутом, повторами и кэшем в Redis.
"""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Optional

import httpx

from cargo_exchange.common.constants import TypeMsg
from cargo_exchange.common.exceptions import GeocoderUnavailableError
from cargo_exchange.common.logger import log_error, log_info
from cargo_exchange.core.geo.models import Location
from cargo_exchange.infra.redis_client import RedisClient


# Статусы Google, после которых имеет смысл повторить запрос
_RETRYABLE_STATUSES = frozenset({"OVER_QUERY_LIMIT", "UNKNOWN_ERROR"})


class GeoService:
    """
    Сервис геокодирования через Google Maps API.

    Контракт geocode():
    - адрес найден: Location с координатами;
    - адрес не существует (ZERO_RESULTS): None;
    - сеть, таймаут, квоты или отказ API: GeocoderUnavailableError.
    """

    GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(
        self,
        api_key: str | None = None,
        language: str = "en",
        *,
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_delay: float = 0.5,
        cache: RedisClient | None = None,
        cache_ttl: int = 86400,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            api_key: API ключ Google Maps (берётся из конфига если None)
            language: Язык ответов
            timeout: Таймаут одного HTTP запроса в секундах
            retry_attempts: Количество попыток
            retry_delay: Базовая задержка между попытками
            cache: Клиент Redis для кэша (None отключает кэш)
            cache_ttl: Время жизни записи кэша
            client: Готовый HTTP клиент (для тестов)
        """
        if api_key is None:
            from cargo_exchange.config import settings

            api_key = settings.google_maps.GOOGLE_MAPS_API_KEY
            language = settings.google_maps.GEOCODING_LANGUAGE
            timeout = settings.timeouts.GEOCODING_TIMEOUT
            retry_attempts = settings.timeouts.GEOCODING_RETRY_ATTEMPTS
            retry_delay = settings.timeouts.GEOCODING_RETRY_DELAY
            cache_ttl = settings.redis_ttl.GEOCODE_TTL

        self._api_key = api_key
        self._language = language
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    # =========================================================================
    # ПУБЛИЧНЫЕ МЕТОДЫ
    # =========================================================================

    async def geocode(self, address: str) -> Optional[Location]:
        """
        Прямое геокодирование: адрес -> координаты.

        Args:
            address: Адрес для геокодирования

        Returns:
            Локация с координатами или None, если адрес не найден
        """
        cache_key = self._cache_key(address)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return cached

        data = await self._request({"address": address})
        if data is None:
            await log_info(
                f"Геокодирование не дало результатов для: {address}",
                type_msg=TypeMsg.WARNING,
            )
            return None

        result = data["results"][0]
        location = result["geometry"]["location"]
        resolved = Location(
            address=result.get("formatted_address", address),
            latitude=location["lat"],
            longitude=location["lng"],
        )

        await self._cache_set(cache_key, resolved)
        return resolved

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        """
        Обратное геокодирование: координаты -> адрес.

        Returns:
            Адрес или None
        """
        data = await self._request({"latlng": f"{latitude},{longitude}"})
        if data is None:
            return None
        return data["results"][0].get("formatted_address")

    # =========================================================================
    # ВНУТРЕННИЕ МЕТОДЫ
    # =========================================================================

    async def _request(self, params: dict[str, str]) -> Optional[dict[str, Any]]:
        """
        Выполняет запрос к Geocoding API с повторами.

        Returns:
            Ответ API со статусом OK или None при ZERO_RESULTS
        """
        if not self._api_key:
            await log_error("Google Maps API key не настроен")
            raise GeocoderUnavailableError("Google Maps API key не настроен")

        query = {**params, "key": self._api_key, "language": self._language}
        last_error = ""

        for attempt in range(1, self._retry_attempts + 1):
            try:
                response = await self._client.get(self.GEOCODING_URL, params=query)
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e) or e.__class__.__name__
            else:
                status = data.get("status")
                if status == "OK" and data.get("results"):
                    return data
                if status in ("OK", "ZERO_RESULTS"):
                    return None
                if status not in _RETRYABLE_STATUSES:
                    await log_error(f"Geocoding API отклонил запрос: {status}")
                    raise GeocoderUnavailableError(f"Geocoding API: {status}")
                last_error = status

            await log_info(
                f"Геокодирование: попытка {attempt}/{self._retry_attempts} не удалась ({last_error})",
                type_msg=TypeMsg.WARNING,
            )
            if attempt < self._retry_attempts:
                await asyncio.sleep(self._retry_delay * attempt)

        await log_error(f"Сервис геокодирования недоступен: {last_error}")
        raise GeocoderUnavailableError(f"Сервис геокодирования недоступен: {last_error}")

    def _cache_key(self, address: str) -> str:
        digest = hashlib.sha1(address.strip().lower().encode("utf-8")).hexdigest()
        return f"geocode:{self._language}:{digest}"

    async def _cache_get(self, key: str) -> Optional[Location]:
        if self._cache is None:
            return None
        try:
            return await self._cache.get_model(key, Location)
        except Exception as e:
            # Кэш не должен ломать геокодирование
            await log_error(f"Ошибка чтения кэша геокодирования: {e}")
            return None

    async def _cache_set(self, key: str, location: Location) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set_model(key, location, ttl=self._cache_ttl)
        except Exception as e:
            await log_error(f"Ошибка записи кэша геокодирования: {e}")
