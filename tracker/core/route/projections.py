# tracker/core/route/projections.py
"""
Представления журнала для чтения: JSON-массив точек и GeoJSON-линия.

Всё читается потоково из журнала; кэшированный публичный файл
(materializer) здесь не используется.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator

from tracker.core.codec.encoders import JsonArrayEncoder, LineStringFeatureEncoder
from tracker.core.route.store import PointStore


class RouteProjections:
    """Генераторы текстовых фрагментов поверх PointStore."""

    def __init__(self, store: PointStore, source_name: str | None = None) -> None:
        self._store = store
        self._source_name = source_name or store.path.name

    async def iter_json_array(self, redact: bool = False) -> AsyncIterator[str]:
        """JSON-массив сохранённых точек."""
        encoder = JsonArrayEncoder()
        yield encoder.begin()
        async for point in self._store.scan(redact=redact):
            yield encoder.encode_raw(point.to_json())
        yield encoder.end()

    async def iter_geojson(self, redact: bool = True) -> AsyncIterator[str]:
        """
        FeatureCollection с одной LineString.
        Меньше двух точек: пустая коллекция.
        """
        encoder = LineStringFeatureEncoder({"source": self._source_name, "redact": redact})
        yield encoder.begin()
        async for point in self._store.scan(redact=redact):
            fragment = encoder.add(point.lon, point.lat)
            if fragment:
                yield fragment
        yield encoder.end()

    async def count_points(self, limit: int | None = None, redact: bool = False) -> int:
        """Количество корректных точек; при limit останавливается досрочно."""
        count = 0
        async with aclosing(self._store.scan(redact=redact)) as points:
            async for _ in points:
                count += 1
                if limit is not None and count >= limit:
                    break
        return count
