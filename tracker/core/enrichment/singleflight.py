# tracker/core/enrichment/singleflight.py
"""
Дедупликация одновременных вызовов: один общий ожидаемый результат.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Пока задача выполняется, новые вызовы do() ждут её же результат,
    а не запускают свою. После завершения слот освобождается.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[T] | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    async def do(self, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._task
        if task is None:
            task = asyncio.ensure_future(factory())
            self._task = task
            task.add_done_callback(self._release)
        # Отмена одного ожидающего не отменяет общую задачу
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
