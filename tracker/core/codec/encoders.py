# tracker/core/codec/encoders.py
"""
Потоковые кодировщики: JSON-массив и GeoJSON LineString.

Кодировщики только формируют текстовые фрагменты; куда их писать
(файл, HTTP-ответ) решает вызывающий код.
"""

from __future__ import annotations

import json
from typing import Any


FEATURE_COLLECTION_OPEN = '{"type":"FeatureCollection","features":['


def dumps_compact(obj: Any) -> str:
    """JSON без пробелов (как одна строка журнала)."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


class JsonArrayEncoder:
    """Пишет `[`, затем объекты через запятую, затем `]`."""

    def __init__(self) -> None:
        self.count = 0

    def begin(self) -> str:
        return "["

    def encode(self, obj: Any) -> str:
        """Фрагмент для очередного объекта (первый без запятой)."""
        prefix = "," if self.count else ""
        self.count += 1
        return prefix + dumps_compact(obj)

    def encode_raw(self, json_text: str) -> str:
        """То же, но для уже сериализованного объекта."""
        prefix = "," if self.count else ""
        self.count += 1
        return prefix + json_text

    def end(self) -> str:
        return "]"


class LineStringFeatureEncoder:
    """
    Инкрементальный FeatureCollection с одной линией.

    Линии нужно минимум две вершины, поэтому первые две координаты
    буферизуются; фича открывается только при получении второй.
    Если координат меньше двух, результат — пустая коллекция.
    """

    def __init__(self, properties: dict[str, Any] | None = None) -> None:
        self._properties = properties or {}
        self._buffered: list[str] = []
        self._started = False
        self.count = 0

    @property
    def started(self) -> bool:
        """Фича уже открыта (получено >= 2 координат)."""
        return self._started

    def begin(self) -> str:
        return FEATURE_COLLECTION_OPEN

    def add(self, lon: float, lat: float) -> str:
        """Фрагмент для очередной координаты (может быть пустым)."""
        coord = dumps_compact([lon, lat])
        self.count += 1

        if self._started:
            return "," + coord

        self._buffered.append(coord)
        if len(self._buffered) < 2:
            return ""

        self._started = True
        head = (
            '{"type":"Feature","properties":'
            + dumps_compact(self._properties)
            + ',"geometry":{"type":"LineString","coordinates":['
        )
        out = head + self._buffered[0] + "," + self._buffered[1]
        self._buffered.clear()
        return out

    def end(self) -> str:
        if self._started:
            return "]}}]}"
        return "]}"
