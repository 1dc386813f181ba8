# tracker/core/privacy/cache.py
"""
Кэш зон приватности с TTL.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from tracker.common.logger import get_logger
from tracker.core.geo.distance import distance_meters
from tracker.core.privacy.models import PrivacyZone
from tracker.infra.files import read_json

logger = get_logger("tracker.privacy")


class PrivacyZoneCache:
    """
    Снимок зон из privacyZones.json.

    После истечения TTL следующий вызов zones() синхронно перечитывает файл.
    Битые записи пропускаются.
    """

    def __init__(
        self,
        path: Path,
        ttl_ms: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._path = path
        self._ttl = ttl_ms / 1000.0
        self._clock = clock
        self._zones: list[PrivacyZone] = []
        self._loaded_at: float | None = None

    @property
    def path(self) -> Path:
        return self._path

    def zones(self) -> list[PrivacyZone]:
        now = self._clock()
        if self._loaded_at is not None and now - self._loaded_at < self._ttl:
            return self._zones
        self._zones = self._load()
        self._loaded_at = now
        return self._zones

    def contains(self, lat: float, lon: float) -> bool:
        """Точка внутри хотя бы одной зоны (граница включается)."""
        return any(
            distance_meters(lat, lon, zone.lat, zone.lon) <= zone.radius_meters
            for zone in self.zones()
        )

    def invalidate(self) -> None:
        """Сбросить снимок: следующее обращение перечитает файл."""
        self._loaded_at = None

    def _load(self) -> list[PrivacyZone]:
        raw = read_json(self._path)
        if not isinstance(raw, list):
            return []

        zones: list[PrivacyZone] = []
        for item in raw:
            try:
                zones.append(PrivacyZone.model_validate(item))
            except ValidationError:
                logger.debug(f"Пропущена некорректная зона: {item!r}")
        return zones
