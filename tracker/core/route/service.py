# tracker/core/route/service.py
"""
Сервис маршрута.

Собирает журнал, кэш зон приватности, приём точек, представления
и публикацию GeoJSON в один объект с явным жизненным циклом.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from tracker.common.constants import ROUTE_PUBLIC_FILE_NAME, RouteFormat
from tracker.common.logger import log_info
from tracker.core.privacy.cache import PrivacyZoneCache
from tracker.core.route.ingest import GateThresholds, IngestionPipeline
from tracker.core.route.materializer import GeoJsonMaterializer
from tracker.core.route.models import IngestResult
from tracker.core.route.projections import RouteProjections
from tracker.core.route.store import PointStore
from tracker.infra.files import ensure_file

if TYPE_CHECKING:
    from tracker.config.loader import Settings


class RouteService:
    """
    Фасад над журналом маршрута.

    Жизненный цикл:
        service = RouteService.from_settings(settings)
        await service.startup()
        ...
        await service.shutdown()
    """

    def __init__(
        self,
        store: PointStore,
        privacy: PrivacyZoneCache,
        thresholds: GateThresholds | None = None,
        public_file: Path | None = None,
        min_interval_ms: int = 30_000,
    ) -> None:
        self.store = store
        self.privacy = privacy
        self.projections = RouteProjections(store)
        self.materializer = GeoJsonMaterializer(
            target=public_file or store.path.with_name(ROUTE_PUBLIC_FILE_NAME),
            source=lambda: self.projections.iter_geojson(redact=True),
            min_interval_ms=min_interval_ms,
        )
        self.pipeline = IngestionPipeline(
            store,
            privacy=privacy,
            thresholds=thresholds,
            on_added=self.materializer.schedule_rebuild,
        )
        self._started = False

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RouteService":
        """Создаёт сервис по настройкам приложения."""
        storage = settings.storage
        privacy = PrivacyZoneCache(
            storage.privacy_zones_file,
            ttl_ms=settings.privacy.PRIVACY_CACHE_TTL_MS,
        )
        store = PointStore(
            storage.route_file,
            storage_mode=storage.ROUTE_STORAGE,
            privacy=privacy,
            fsync=storage.FSYNC_APPENDS,
            tail_window_bytes=storage.TAIL_WINDOW_BYTES,
            read_chunk_bytes=storage.READ_CHUNK_BYTES,
        )
        thresholds = GateThresholds(
            min_distance_m=settings.ingest.MIN_DIST_M,
            min_elapsed_ms=settings.ingest.MIN_TIME_MS,
            max_speed_kmh=settings.ingest.MAX_SPEED_KMH,
        )
        return cls(
            store,
            privacy,
            thresholds=thresholds,
            public_file=storage.route_public_file,
            min_interval_ms=settings.materializer.PUBLIC_GEOJSON_MIN_INTERVAL_MS,
        )

    @property
    def format(self) -> RouteFormat:
        return self.store.format

    async def startup(self) -> None:
        """Инициализация журнала и первичная публикация GeoJSON."""
        ensure_file(self.privacy.path, [])
        self.store.initialize()
        await self.materializer.force_rebuild()
        self._started = True
        await log_info(
            f"Сервис маршрута запущен ({self.store.format.value})",
            logger_name="tracker.route",
        )

    async def shutdown(self) -> None:
        await self.materializer.close()
        self._started = False
        await log_info("Сервис маршрута остановлен", logger_name="tracker.route")

    def ingest(self, samples: Iterable[Any]) -> IngestResult:
        """Приём пачки сэмплов; после добавления планирует пересборку."""
        return self.pipeline.ingest(samples)

    async def reset(self) -> bool:
        """
        Очищает журнал и сразу пересобирает публичный файл.

        Returns:
            Результат пересборки
        """
        self.store.reset()
        await log_info("Маршрут сброшен", logger_name="tracker.route")
        return await self.materializer.force_rebuild()

    async def rebuild(self) -> bool:
        return await self.materializer.force_rebuild()

    def health(self) -> dict[str, Any]:
        return {
            "started": self._started,
            "route": self.store.stats(),
            "publicGeojson": {
                "rebuilds": self.materializer.rebuild_count,
                "lastRebuiltAt": (
                    self.materializer.last_rebuilt_at.isoformat()
                    if self.materializer.last_rebuilt_at
                    else None
                ),
                "pending": self.materializer.armed,
            },
        }
