# tracker/core/route/materializer.py
"""
Публичный GeoJSON (route_public.geojson) с отложенной пересборкой.

Частые дозаписи не приводят к частым пересборкам: запланирована может быть
только одна, и не раньше чем через min_interval после предыдущей.
"""

from __future__ import annotations

import asyncio
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable

from tracker.common.errors import IOFailure
from tracker.common.logger import get_logger, log_debug, log_error, log_info
from tracker.infra.files import replace_file

logger = get_logger("tracker.materializer")


class GeoJsonMaterializer:
    """
    Пересборка производного файла из журнала.

    Args:
        target: Путь к публикуемому файлу
        source: Фабрика потока текстовых фрагментов (обычно iter_geojson(redact=True))
        min_interval_ms: Минимальный интервал между пересборками
        clock: Монотонные часы в секундах (подменяются в тестах)
    """

    def __init__(
        self,
        target: Path,
        source: Callable[[], AsyncIterator[str]],
        min_interval_ms: int = 30_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._target = Path(target)
        self._source = source
        self._min_interval = min_interval_ms / 1000.0
        self._clock = clock

        self._timer: asyncio.Task | None = None
        self._lock = asyncio.Lock()
        self._last_done: float | None = None

        self.rebuild_count = 0
        self.last_rebuilt_at: datetime | None = None

    @property
    def target(self) -> Path:
        return self._target

    @property
    def armed(self) -> bool:
        """Пересборка запланирована и ещё не началась."""
        return self._timer is not None

    def _delay(self) -> float:
        if self._last_done is None:
            return 0.0
        return max(0.0, self._min_interval - (self._clock() - self._last_done))

    def schedule_rebuild(self) -> None:
        """
        Запланировать пересборку.
        Если уже запланирована, ничего не делает.
        """
        if self._timer is not None:
            return
        delay = self._delay()
        self._timer = asyncio.get_running_loop().create_task(self._deferred(delay))
        logger.debug(f"Пересборка {self._target.name} запланирована через {delay:.1f} с")

    async def _deferred(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            # Пока таймер ждал, могла пройти другая пересборка: интервал отсчитывается от её конца
            while True:
                if self._lock.locked():
                    async with self._lock:
                        pass
                    continue
                delay = self._delay()
                if delay <= 0:
                    break
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        # Слот освобождается до начала пересборки
        self._timer = None
        await self._run()

    async def force_rebuild(self) -> bool:
        """
        Немедленная пересборка; отменяет запланированную.

        Returns:
            True, если файл опубликован
        """
        self._disarm()
        return await self._run()

    def _disarm(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done():
            timer.cancel()

    async def _run(self) -> bool:
        async with self._lock:
            try:
                await self._build()
            except IOFailure as e:
                await log_error(
                    f"Публикация {self._target.name} не удалась, оставлен прежний файл: {e}",
                    logger_name="tracker.materializer",
                )
                return False
            except Exception as e:
                await log_error(
                    f"Пересборка {self._target.name} не удалась: {e}",
                    logger_name="tracker.materializer",
                    exc_info=True,
                )
                return False
            finally:
                self._last_done = self._clock()

            self.rebuild_count += 1
            self.last_rebuilt_at = datetime.now(timezone.utc)
            await log_debug(
                f"{self._target.name} пересобран (#{self.rebuild_count})",
                logger_name="tracker.materializer",
            )
            return True

    async def _build(self) -> None:
        tmp = self._target.with_name(self._target.name + ".tmp")
        f = await asyncio.to_thread(open, tmp, "w", encoding="utf-8")
        try:
            async for fragment in self._source():
                f.write(fragment)
            await asyncio.to_thread(_flush_and_sync, f)
        finally:
            f.close()
        await asyncio.to_thread(replace_file, tmp, self._target)

    async def close(self) -> None:
        """Отменяет только запланированную пересборку; текущая доводится до конца."""
        timer = self._timer
        self._disarm()
        if timer is not None:
            await log_info(
                f"Отложенная пересборка {self._target.name} отменена",
                logger_name="tracker.materializer",
            )
        async with self._lock:
            pass


def _flush_and_sync(f) -> None:
    f.flush()
    os.fsync(f.fileno())
