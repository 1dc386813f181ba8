# tracker/core/enrichment/weather.py
"""
Погода по текущей позиции (OpenWeather).

Запрос выполняется не чаще WEATHER_MIN_INTERVAL_MS, одновременные
вызовы объединяются; при любой ошибке отдаётся последний сохранённый ответ.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Callable

import httpx

from tracker.common.logger import log_debug, log_error
from tracker.core.enrichment.singleflight import SingleFlight
from tracker.core.route.models import format_timestamp, is_finite_number, utc_now
from tracker.infra.files import read_json, write_json

ERROR_LOG_INTERVAL_SECONDS = 30.0


def _round(value: Any) -> int | None:
    return round(value) if is_finite_number(value) else None


class WeatherService:
    """Кэш погоды в temperatureData.json с троттлингом."""

    WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

    def __init__(
        self,
        temperature_file: Path,
        location_file: Path,
        api_key: str = "",
        min_interval_ms: int = 60_000,
        language: str = "nl",
        client: httpx.AsyncClient | None = None,
        timeout: float = 8.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            temperature_file: Куда сохраняется последний ответ
            location_file: Откуда берётся текущая позиция
            api_key: Ключ OpenWeather (пустой — запросы не выполняются)
            min_interval_ms: Минимальный интервал между запросами
            client: HTTP клиент (создаётся, если не передан)
        """
        self._temperature_file = temperature_file
        self._location_file = location_file
        self._api_key = api_key
        self._min_interval = min_interval_ms / 1000.0
        self._language = language
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock

        self._flight: SingleFlight[None] = SingleFlight()
        self._last_fetch: float | None = None
        self._last_error_log: float | None = None

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    def cached(self) -> dict[str, Any]:
        data = read_json(self._temperature_file)
        return data if isinstance(data, dict) else {}

    async def current(self) -> dict[str, Any]:
        """Текущая погода (возможно, из кэша)."""
        cached = self.cached()
        location = read_json(self._location_file)
        if not isinstance(location, dict):
            location = {}
        lat, lon = location.get("lat"), location.get("lon")

        if not self._api_key or not is_finite_number(lat) or not is_finite_number(lon):
            return cached

        if self._last_fetch is not None and self._clock() - self._last_fetch < self._min_interval:
            return cached

        await self._flight.do(lambda: self._fetch(lat, lon))
        return self.cached() or cached

    async def _fetch(self, lat: float, lon: float) -> None:
        try:
            response = await self._client.get(
                self.WEATHER_URL,
                params={
                    "lat": lat,
                    "lon": lon,
                    "appid": self._api_key,
                    "units": "metric",
                    "lang": self._language,
                },
            )
            response.raise_for_status()
            data = response.json()

            main = data.get("main") or {}
            wind = data.get("wind") or {}
            weather = (data.get("weather") or [{}])[0]
            payload = {
                "temp": _round(main.get("temp")),
                "feels_like": _round(main.get("feels_like")),
                "humidity": main.get("humidity"),
                "pressure": main.get("pressure"),
                "wind_speed": wind.get("speed"),
                "wind_deg": wind.get("deg"),
                "weather_main": weather.get("main"),
                "weather_description": weather.get("description"),
                "icon": weather.get("icon"),
                "city": data.get("name") or "",
                "timestamp": format_timestamp(utc_now()),
            }
            write_json(self._temperature_file, payload)
            await log_debug(f"Погода обновлена: {payload['temp']}°C", logger_name="tracker.weather")
        except Exception as e:
            await self._log_error(e)
        finally:
            self._last_fetch = self._clock()

    async def _log_error(self, error: Exception) -> None:
        now = self._clock()
        if self._last_error_log is not None and now - self._last_error_log <= ERROR_LOG_INTERVAL_SECONDS:
            return
        self._last_error_log = now
        await log_error(f"Ошибка запроса погоды: {error}", logger_name="tracker.weather")

    def update(self, values: dict[str, Any]) -> dict[str, Any]:
        """Ручное обновление сохранённых значений."""
        merged = {
            **self.cached(),
            **values,
            "timestamp": format_timestamp(utc_now()),
        }
        write_json(self._temperature_file, merged)
        return merged
