# tracker/core/enrichment/location.py
"""
Текущая позиция с обратным геокодированием (Mapbox).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from tracker.common.errors import ValidationRejected
from tracker.common.logger import log_debug
from tracker.core.route.models import format_timestamp, is_finite_number, utc_now
from tracker.infra.files import read_json, write_json

if TYPE_CHECKING:
    from tracker.core.privacy.cache import PrivacyZoneCache


class LocationService:
    """
    Хранит последнюю позицию в locationData.json и высоту в altitudeData.json.
    Внутри зоны приватности позиция не обновляется.
    """

    GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{lon},{lat}.json"

    def __init__(
        self,
        location_file: Path,
        altitude_file: Path,
        privacy: "PrivacyZoneCache | None" = None,
        mapbox_token: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 8.0,
    ) -> None:
        self._location_file = location_file
        self._altitude_file = altitude_file
        self._privacy = privacy
        self._token = mapbox_token
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Закрывает HTTP клиент."""
        await self._client.aclose()

    def current(self) -> dict[str, Any]:
        data = read_json(self._location_file)
        return data if isinstance(data, dict) else {}

    def altitude(self) -> dict[str, Any]:
        data = read_json(self._altitude_file)
        return data if isinstance(data, dict) else {}

    def set_altitude(self, altitude: Any) -> dict[str, Any]:
        """
        Raises:
            ValidationRejected: Высота не число
        """
        if not is_finite_number(altitude):
            raise ValidationRejected("altitude required", reason="altitude")
        data = {"altitude": float(altitude), "timestamp": format_timestamp(utc_now())}
        write_json(self._altitude_file, data)
        return data

    async def update(self, sample: dict[str, Any]) -> dict[str, Any]:
        """
        Обновляет текущую позицию.

        Returns:
            Сохранённая позиция с флагом redacted

        Raises:
            ValidationRejected: Нет числовых lat/lon
        """
        lat, lon = sample.get("lat"), sample.get("lon")
        if not is_finite_number(lat) or not is_finite_number(lon):
            raise ValidationRejected("lat/lon required", reason="coordinates")

        if self._privacy is not None and self._privacy.contains(lat, lon):
            return {**self.current(), "redacted": True}

        now_iso = format_timestamp(utc_now())
        location: dict[str, Any] = {
            "lat": float(lat),
            "lon": float(lon),
            "city": "",
            "countryCode": "",
            "timestamp": now_iso,
        }
        heading = sample.get("heading")
        if is_finite_number(heading):
            location["heading"] = heading
        speed = sample.get("speedKmh")
        if is_finite_number(speed):
            location["speedKmh"] = round(speed)

        if self._token:
            city, country_code = await self.reverse_geocode(lat, lon)
            location["city"] = city
            location["countryCode"] = country_code

        write_json(self._location_file, location)

        alt = sample.get("alt")
        if is_finite_number(alt):
            write_json(self._altitude_file, {"altitude": float(alt), "timestamp": now_iso})

        return {**location, "redacted": False}

    async def reverse_geocode(self, lat: float, lon: float) -> tuple[str, str]:
        """
        Город и код страны; при ошибке пустые строки.
        """
        try:
            response = await self._client.get(
                self.GEOCODING_URL.format(lon=lon, lat=lat),
                params={"types": "place,country", "access_token": self._token},
            )
            response.raise_for_status()
            features = response.json().get("features") or []
        except Exception as e:
            await log_debug(f"Обратное геокодирование не удалось: {e}", logger_name="tracker.location")
            return "", ""

        place = next((f for f in features if "place" in (f.get("place_type") or [])), {})
        country = next((f for f in features if "country" in (f.get("place_type") or [])), {})
        city = place.get("text") or ""
        country_code = ((country.get("properties") or {}).get("short_code") or "").upper()
        return city, country_code
