# tracker/core/route/store.py
"""
Журнал точек маршрута (routeData.json).

Два формата на диске:
- line (ndjson): одна точка на строку, только дозапись в конец;
- array (json): устаревший единый JSON-массив.

Формат определяется один раз при initialize() и не меняется до перезапуска.
"""

from __future__ import annotations

import asyncio
import json
import os
from contextlib import aclosing
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator

from tracker.common.constants import RouteFormat, StorageMode
from tracker.common.errors import IOFailure
from tracker.common.logger import get_logger
from tracker.core.route.models import Point
from tracker.infra.files import (
    ends_with_newline,
    ensure_dir,
    file_size,
    first_non_whitespace_char,
    read_json,
    read_tail,
    write_json,
)

if TYPE_CHECKING:
    from tracker.core.privacy.cache import PrivacyZoneCache

logger = get_logger("tracker.store")


class PointStore:
    """
    Журнал точек с курсором последней принятой точки.

    Курсор живёт только в памяти и служит для фильтрации при приёме;
    источник истины всегда файл.
    """

    def __init__(
        self,
        path: Path,
        *,
        storage_mode: StorageMode = StorageMode.AUTO,
        privacy: "PrivacyZoneCache | None" = None,
        fsync: bool = True,
        tail_window_bytes: int = 128 * 1024,
        read_chunk_bytes: int = 64 * 1024,
    ) -> None:
        self._path = Path(path)
        self._mode = StorageMode(storage_mode)
        self._privacy = privacy
        self._fsync = fsync
        self._tail_window = tail_window_bytes
        self._chunk_size = read_chunk_bytes

        self._format: RouteFormat | None = None
        self._cursor: Point | None = None
        self._needs_newline = False

    # --- свойства ---

    @property
    def path(self) -> Path:
        return self._path

    @property
    def format(self) -> RouteFormat:
        """Формат журнала; до initialize() определяется по файлу."""
        if self._format is None:
            return self._detect_format()
        return self._format

    @property
    def cursor(self) -> Point | None:
        """Последняя принятая точка (best-effort)."""
        return self._cursor

    # --- жизненный цикл ---

    def initialize(self) -> None:
        """
        Создаёт файл при первом запуске, определяет формат,
        восстанавливает курсор из хвоста файла.
        """
        ensure_dir(self._path.parent)
        if not self._path.exists():
            initial = "[]" if self._mode is StorageMode.JSON else ""
            self._path.write_text(initial, encoding="utf-8")

        self._format = self._detect_format()

        if self._format is RouteFormat.JSON and file_size(self._path) == 0:
            self._path.write_text("[]", encoding="utf-8")
        if self._format is RouteFormat.NDJSON and first_non_whitespace_char(self._path) == "[":
            logger.warning(
                f"{self._path.name} похож на JSON-массив, но выбран построчный формат; "
                f"запустите миграцию tracker.tools.migrate_route"
            )

        self._needs_newline = self._format is RouteFormat.NDJSON and not ends_with_newline(self._path)
        if self._needs_newline:
            logger.warning(f"{self._path.name}: последняя строка оборвана, следующая запись начнётся с новой строки")

        self._cursor = self.last_point()
        logger.info(
            f"Журнал маршрута: {self._path} ({self._format.value}, "
            f"{file_size(self._path)} байт, курсор={'есть' if self._cursor else 'нет'})"
        )

    def _detect_format(self) -> RouteFormat:
        if self._mode is StorageMode.JSON:
            return RouteFormat.JSON
        if self._mode is StorageMode.NDJSON:
            return RouteFormat.NDJSON
        return RouteFormat.JSON if first_non_whitespace_char(self._path) == "[" else RouteFormat.NDJSON

    # --- запись ---

    def append(self, point: Point) -> None:
        """
        Дописывает точку и сдвигает курсор.

        Raises:
            IOFailure: Запись не удалась (курсор не меняется)
        """
        if self.format is RouteFormat.JSON:
            self._append_array(point)
        else:
            self._append_line(point)
        self._cursor = point

    def _append_line(self, point: Point) -> None:
        data = point.to_json() + "\n"
        if self._needs_newline:
            data = "\n" + data

        try:
            with open(self._path, "ab") as f:
                f.write(data.encode("utf-8"))
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Не удалось дописать точку в {self._path.name}: {e}")
            raise IOFailure(f"Дозапись в {self._path} не удалась: {e}") from e

        self._needs_newline = False

    def _append_array(self, point: Point) -> None:
        # Старый формат: перечитать и перезаписать массив целиком
        route = read_json(self._path)
        if not isinstance(route, list):
            route = []
        route.append(point.to_record())
        write_json(self._path, route)

    def reset(self) -> None:
        """Очищает журнал и курсор."""
        if self.format is RouteFormat.JSON:
            write_json(self._path, [])
        else:
            try:
                with open(self._path, "w", encoding="utf-8") as f:
                    f.flush()
                    if self._fsync:
                        os.fsync(f.fileno())
            except OSError as e:
                raise IOFailure(f"Не удалось очистить {self._path}: {e}") from e

        self._cursor = None
        self._needs_newline = False
        logger.info(f"Журнал маршрута {self._path.name} очищен")

    # --- чтение ---

    async def scan(self, redact: bool = False) -> AsyncIterator[Point]:
        """
        Однопроходное чтение всех корректных точек.

        Args:
            redact: Пропускать точки внутри зон приватности
        """
        if self.format is RouteFormat.JSON:
            source = self._scan_array()
        else:
            source = self._scan_lines()

        async with aclosing(source) as points:
            async for point in points:
                if redact and self._is_redacted(point):
                    continue
                yield point

    async def _scan_lines(self) -> AsyncIterator[Point]:
        try:
            f = await asyncio.to_thread(open, self._path, "rb")
        except FileNotFoundError:
            return

        skipped = 0
        try:
            rest = b""
            while True:
                chunk = await asyncio.to_thread(f.read, self._chunk_size)
                if not chunk:
                    break
                lines = (rest + chunk).split(b"\n")
                rest = lines.pop()
                for line in lines:
                    point = _parse_line(line)
                    if point is None:
                        if line.strip():
                            skipped += 1
                        continue
                    yield point

            if rest.strip():
                point = _parse_line(rest)
                if point is None:
                    skipped += 1
                else:
                    yield point
        finally:
            f.close()
            if skipped:
                logger.debug(f"{self._path.name}: пропущено некорректных строк: {skipped}")

    async def _scan_array(self) -> AsyncIterator[Point]:
        route = await asyncio.to_thread(read_json, self._path)
        if not isinstance(route, list):
            return
        for item in route:
            point = Point.from_record(item)
            if point is not None:
                yield point

    def last_point(self) -> Point | None:
        """Последняя корректная точка журнала (читается только хвост файла)."""
        if self.format is RouteFormat.JSON:
            route = read_json(self._path)
            if not isinstance(route, list):
                return None
            for item in reversed(route):
                point = Point.from_record(item)
                if point is not None:
                    return point
            return None

        data, truncated = read_tail(self._path, self._tail_window)
        lines = data.split(b"\n")
        if truncated:
            # Первая строка окна может начинаться с середины записи
            lines = lines[1:]
        for line in reversed(lines):
            point = _parse_line(line)
            if point is not None:
                return point
        return None

    def stats(self) -> dict[str, Any]:
        return {
            "format": self.format.value,
            "bytes": file_size(self._path),
            "hasCursor": self._cursor is not None,
        }

    def _is_redacted(self, point: Point) -> bool:
        return self._privacy is not None and self._privacy.contains(point.lat, point.lon)


def _parse_line(line: bytes) -> Point | None:
    line = line.strip()
    if not line:
        return None
    try:
        obj = json.loads(line)
    except ValueError:
        return None
    return Point.from_record(obj)
