# tracker/core/privacy/repository.py
"""
Хранилище зон приватности (privacyZones.json).
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any

from tracker.common.errors import PrivacyZoneNotFound
from tracker.common.logger import log_info
from tracker.core.privacy.cache import PrivacyZoneCache
from tracker.core.privacy.models import PrivacyZone
from tracker.core.route.models import format_timestamp, utc_now
from tracker.infra.files import read_json, write_json


class PrivacyZoneRepository:
    """Список, добавление и удаление зон. Изменения сбрасывают кэш."""

    def __init__(self, path: Path, cache: PrivacyZoneCache) -> None:
        self._path = path
        self._cache = cache

    def _read(self) -> list[dict[str, Any]]:
        raw = read_json(self._path)
        return raw if isinstance(raw, list) else []

    def list(self) -> list[dict[str, Any]]:
        """Зоны в том виде, в каком они лежат на диске."""
        return self._read()

    async def add(self, lat: float, lon: float, radius: float, name: str = "") -> tuple[PrivacyZone, int]:
        """
        Добавляет зону.

        Returns:
            (зона, общее количество зон)
        """
        zone = PrivacyZone(
            id=str(uuid.uuid4()),
            lat=float(lat),
            lon=float(lon),
            radius=float(radius),
            name=str(name or ""),
            createdAt=format_timestamp(utc_now()),
        )
        zones = self._read()
        zones.append(zone.to_record())
        write_json(self._path, zones)
        self._cache.invalidate()

        await log_info(
            f"Добавлена зона приватности {zone.id} (r={zone.radius_meters} м)",
            logger_name="tracker.privacy",
        )
        return zone, len(zones)

    async def remove(self, zone_id: str) -> None:
        """
        Raises:
            PrivacyZoneNotFound: Зоны с таким id нет
        """
        zones = self._read()
        remaining = [z for z in zones if not (isinstance(z, dict) and z.get("id") == zone_id)]
        if len(remaining) == len(zones):
            raise PrivacyZoneNotFound(zone_id)

        write_json(self._path, remaining)
        self._cache.invalidate()
        await log_info(f"Удалена зона приватности {zone_id}", logger_name="tracker.privacy")
