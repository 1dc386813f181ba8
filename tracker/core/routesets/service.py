# tracker/core/routesets/service.py
"""
Снимки маршрута (routesets).

Снимок — копия текущего журнала в виде JSON-массива `routeset_<id>.json`
с записями `{lat, lon, timestamp, alt?}` и метаданными в routesets.json.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from pathlib import Path
from typing import Any

from tracker.common.constants import ROUTESETS_FILE_NAME
from tracker.common.errors import NotEnoughPoints, RoutesetNotFound
from tracker.common.logger import get_logger, log_info
from tracker.core.codec.array_stream import iter_array_objects
from tracker.core.codec.encoders import JsonArrayEncoder, LineStringFeatureEncoder
from tracker.core.route.models import Point, format_timestamp, is_finite_number, utc_now
from tracker.core.route.projections import RouteProjections
from tracker.core.route.store import PointStore
from tracker.core.routesets.models import RoutesetMeta
from tracker.infra.files import ensure_file, iter_text_chunks, read_json, replace_file, write_json

logger = get_logger("tracker.routesets")

_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")


def _snapshot_record(point: Point) -> dict[str, Any]:
    record: dict[str, Any] = {"lat": point.lat, "lon": point.lon, "timestamp": point.timestamp}
    if point.alt is not None:
        record["alt"] = point.alt
    return record


class RoutesetService:
    """Сохранение, список, чтение и удаление снимков."""

    def __init__(self, data_dir: Path, store: PointStore, index_file: Path | None = None) -> None:
        self._data_dir = Path(data_dir)
        self._store = store
        self._projections = RouteProjections(store)
        self._index = index_file or self._data_dir / ROUTESETS_FILE_NAME

    def file_for(self, routeset_id: str) -> Path:
        """
        Путь к файлу снимка.

        Raises:
            RoutesetNotFound: Недопустимый id
        """
        if not _ID_PATTERN.fullmatch(routeset_id):
            raise RoutesetNotFound(routeset_id)
        return self._data_dir / f"routeset_{routeset_id}.json"

    def _read_index(self) -> list[dict[str, Any]]:
        raw = read_json(self._index)
        return raw if isinstance(raw, list) else []

    def list(self) -> list[dict[str, Any]]:
        ensure_file(self._index, [])
        return self._read_index()

    async def save(self, name: str | None = None) -> RoutesetMeta:
        """
        Снимок текущего журнала (без скрытия зон приватности).

        Raises:
            NotEnoughPoints: В журнале меньше двух точек
        """
        if await self._projections.count_points(limit=2) < 2:
            raise NotEnoughPoints("Недостаточно точек для сохранения")

        now = utc_now()
        routeset_id = str(uuid.uuid4())
        target = self.file_for(routeset_id)
        count = await self._write_snapshot(target)

        meta = RoutesetMeta(
            id=routeset_id,
            name=(name or f"Route {now.strftime('%Y-%m-%d %H:%M:%S')}"),
            createdAt=format_timestamp(now),
            count=count,
        )
        index = self._read_index()
        index.append(meta.model_dump())
        write_json(self._index, index)

        await log_info(
            f"Сохранён снимок маршрута {routeset_id} ({count} точек)",
            logger_name="tracker.routesets",
        )
        return meta

    async def _write_snapshot(self, target: Path) -> int:
        tmp = target.with_name(target.name + ".tmp")
        encoder = JsonArrayEncoder()
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(encoder.begin())
            async for point in self._store.scan(redact=False):
                f.write(encoder.encode(_snapshot_record(point)))
            f.write(encoder.end())
        await asyncio.to_thread(replace_file, tmp, target)
        return encoder.count

    def get(self, routeset_id: str) -> list[Any]:
        """
        Raises:
            RoutesetNotFound: Снимка нет
        """
        path = self.file_for(routeset_id)
        if not path.exists():
            raise RoutesetNotFound(routeset_id)
        data = read_json(path)
        return data if isinstance(data, list) else []

    async def delete(self, routeset_id: str) -> None:
        """
        Удаляет метаданные и файл снимка.

        Raises:
            RoutesetNotFound: Снимка нет в routesets.json
        """
        index = self._read_index()
        remaining = [m for m in index if not (isinstance(m, dict) and m.get("id") == routeset_id)]
        if len(remaining) == len(index):
            raise RoutesetNotFound(routeset_id)
        write_json(self._index, remaining)

        path = self.file_for(routeset_id)
        path.unlink(missing_ok=True)
        await log_info(f"Удалён снимок маршрута {routeset_id}", logger_name="tracker.routesets")

    def geojson(self, routeset_id: str) -> str:
        """
        GeoJSON снимка: LineString при двух и более координатах,
        иначе пустая коллекция.

        Raises:
            RoutesetNotFound: Снимка нет
        """
        path = self.file_for(routeset_id)
        if not path.exists():
            raise RoutesetNotFound(routeset_id)

        encoder = LineStringFeatureEncoder({"routesetId": routeset_id})
        parts = [encoder.begin()]
        for obj in iter_array_objects(iter_text_chunks(path, 64 * 1024)):
            lon, lat = obj.get("lon"), obj.get("lat")
            if is_finite_number(lon) and is_finite_number(lat):
                parts.append(encoder.add(lon, lat))
        parts.append(encoder.end())
        return "".join(parts)
