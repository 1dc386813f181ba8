# tracker/core/route/ingest.py
"""
Приём сэмплов маршрута: проверка, приватность, фильтр дрожания, запись.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Iterable

from tracker.common.errors import IOFailure, ValidationRejected
from tracker.common.logger import get_logger
from tracker.core.geo.distance import distance_meters, implied_speed_kmh
from tracker.core.route.models import (
    IngestResult,
    Point,
    is_finite_number,
    normalize_sample,
    timestamp_ms,
    utc_now,
)
from tracker.core.route.store import PointStore

if TYPE_CHECKING:
    from tracker.core.privacy.cache import PrivacyZoneCache

logger = get_logger("tracker.ingest")


@dataclass(frozen=True)
class GateThresholds:
    """Пороги фильтра относительно предыдущей точки."""
    min_distance_m: float = 15.0
    min_elapsed_ms: int = 4000
    max_speed_kmh: float = 160.0


class IngestionPipeline:
    """
    Решает, какие сэмплы становятся точками журнала.

    Порядок для каждого сэмпла:
    1. зона приватности по конечным lat/lon: отбрасывается, redacted += 1;
    2. форма (разбираемая метка и прочие поля), иначе ValidationRejected без учёта;
    3. фильтр относительно курсора (расстояние, время, скорость): отбрасывается без учёта;
    4. запись и сдвиг курсора; ошибка записи пропускает только эту точку.
    """

    def __init__(
        self,
        store: PointStore,
        privacy: "PrivacyZoneCache | None" = None,
        thresholds: GateThresholds | None = None,
        on_added: Callable[[], Any] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._privacy = privacy
        self._thresholds = thresholds or GateThresholds()
        self._on_added = on_added
        self._clock = clock

    @property
    def thresholds(self) -> GateThresholds:
        return self._thresholds

    def ingest(self, samples: Iterable[Any]) -> IngestResult:
        """
        Принимает пачку сэмплов.

        Вызывается без await между проверкой и записью, поэтому
        дозаписи из разных запросов не перемешиваются.
        """
        added = 0
        redacted = 0
        rejected = 0
        failed = 0

        for sample in samples:
            if self._in_privacy_zone(sample):
                redacted += 1
                continue

            try:
                point = normalize_sample(sample, now=self._clock())
            except ValidationRejected as e:
                rejected += 1
                logger.debug(f"Сэмпл отклонён ({e.reason}): {e}")
                continue

            if not self.passes_gate(point, self._store.cursor):
                continue

            try:
                self._store.append(point)
            except IOFailure as e:
                failed += 1
                logger.warning(f"Точка не записана, пачка продолжается: {e}")
                continue
            added += 1

        if rejected:
            logger.debug(f"Отклонено некорректных сэмплов: {rejected}")
        if failed:
            logger.error(f"Не записано точек из-за ошибок ввода-вывода: {failed}")

        if added and self._on_added is not None:
            self._on_added()

        return IngestResult(added=added, redacted=redacted)

    def _in_privacy_zone(self, sample: Any) -> bool:
        """Проверка зоны по исходным lat/lon, до разбора остальных полей."""
        if self._privacy is None or not isinstance(sample, dict):
            return False
        lat, lon = sample.get("lat"), sample.get("lon")
        if not is_finite_number(lat) or not is_finite_number(lon):
            return False
        return self._privacy.contains(lat, lon)

    def passes_gate(self, point: Point, previous: Point | None) -> bool:
        """
        Фильтр дрожания GPS относительно предыдущей точки.
        Граничные значения порогов проходят.
        """
        if previous is None:
            return True

        t = self._thresholds
        now = self._clock()
        distance = distance_meters(previous.lat, previous.lon, point.lat, point.lon)
        elapsed = max(1, timestamp_ms(point.timestamp, now) - timestamp_ms(previous.timestamp, now))
        speed = implied_speed_kmh(distance, elapsed)

        if distance < t.min_distance_m:
            return False
        if elapsed < t.min_elapsed_ms:
            return False
        if speed > t.max_speed_kmh:
            return False
        return True
