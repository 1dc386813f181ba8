# tracker/core/codec/array_stream.py
"""
Потоковый декодер JSON-массива объектов.

Разбирает `[ {...}, {...}, ... ]` по кускам, не держа в памяти весь вход:
буфер содержит не больше одного незавершённого объекта и остаток текущего куска.
Каждый завершённый объект верхнего уровня передаётся в callback `on_object`.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

from tracker.common.errors import MalformedInput
from tracker.common.logger import get_logger

logger = get_logger("tracker.codec")

_WHITESPACE = frozenset(" \t\r\n\ufeff")
# Внутри объекта значимы только кавычки и фигурные скобки
_OBJECT_SPECIAL = re.compile(r'[{}"]')
# Внутри строки значимы только кавычка и обратный слэш
_STRING_SPECIAL = re.compile(r'["\\]')


class DecoderState(str, Enum):
    """Состояния автомата разбора."""
    EXPECT_ARRAY_START = "expect_array_start"
    BETWEEN_ELEMENTS = "between_elements"
    INSIDE_OBJECT = "inside_object"
    INSIDE_STRING = "inside_string"
    DONE = "done"


class ArrayStreamDecoder:
    """
    Инкрементальный декодер массива объектов.

    Ошибки (MalformedInput):
    - первый непробельный символ не `[`;
    - посторонний символ между элементами;
    - завершённый объект не парсится как JSON;
    - по close(): вход оборвался внутри объекта или до `]`
      (если не включён allow_truncated).
    """

    def __init__(
        self,
        on_object: Callable[[dict[str, Any]], None],
        *,
        allow_truncated: bool = False,
    ) -> None:
        """
        Args:
            on_object: Вызывается для каждого завершённого объекта
            allow_truncated: Молча отбросить оборванный хвост вместо ошибки
        """
        self._on_object = on_object
        self._allow_truncated = allow_truncated

        self.state = DecoderState.EXPECT_ARRAY_START
        self.count = 0

        self._buf = ""
        self._pos = 0          # позиция сканирования внутри _buf
        self._offset = 0       # абсолютное смещение _buf[0] во входе
        self._obj_start = -1   # начало текущего объекта в _buf
        self._depth = 0
        self._escape = False

    @property
    def done(self) -> bool:
        """Встретилась закрывающая `]`."""
        return self.state is DecoderState.DONE

    @property
    def buffered(self) -> int:
        """Сколько символов удерживается в рабочем буфере."""
        return len(self._buf)

    def feed(self, chunk: str) -> None:
        """Передать очередной кусок входа."""
        if self.state is DecoderState.DONE or not chunk:
            return
        self._buf += chunk
        self._process()

    def close(self) -> None:
        """Сообщить о конце входа."""
        state = self.state
        if state is DecoderState.DONE:
            return

        if self._allow_truncated:
            if self._buf:
                logger.debug(f"Отброшен незавершённый хвост массива: {len(self._buf)} символов")
            self._reset_buffer()
            return

        if state is DecoderState.EXPECT_ARRAY_START:
            raise MalformedInput("Вход не является JSON-массивом: '[' не найден", self._offset)
        if state in (DecoderState.INSIDE_OBJECT, DecoderState.INSIDE_STRING):
            raise MalformedInput("Вход оборвался внутри объекта", self._offset + max(self._obj_start, 0))
        raise MalformedInput("Массив не закрыт символом ']'", self._offset + len(self._buf))

    # --- автомат ---

    def _process(self) -> None:
        buf = self._buf
        n = len(buf)
        i = self._pos
        state = self.state

        while i < n:
            if state is DecoderState.INSIDE_STRING:
                if self._escape:
                    self._escape = False
                    i += 1
                    continue
                m = _STRING_SPECIAL.search(buf, i)
                if m is None:
                    i = n
                    break
                i = m.start()
                if buf[i] == "\\":
                    self._escape = True
                else:
                    state = DecoderState.INSIDE_OBJECT
                i += 1
                continue

            if state is DecoderState.INSIDE_OBJECT:
                m = _OBJECT_SPECIAL.search(buf, i)
                if m is None:
                    i = n
                    break
                i = m.start()
                ch = buf[i]
                i += 1
                if ch == '"':
                    state = DecoderState.INSIDE_STRING
                elif ch == "{":
                    self._depth += 1
                else:
                    self._depth -= 1
                    if self._depth == 0:
                        self._emit(buf[self._obj_start:i], self._offset + self._obj_start)
                        self._obj_start = -1
                        state = DecoderState.BETWEEN_ELEMENTS
                continue

            ch = buf[i]

            if state is DecoderState.EXPECT_ARRAY_START:
                if ch in _WHITESPACE:
                    i += 1
                    continue
                if ch != "[":
                    raise MalformedInput(
                        f"Ожидался '[' в начале массива, получено {ch!r}", self._offset + i
                    )
                state = DecoderState.BETWEEN_ELEMENTS
                i += 1
                continue

            # BETWEEN_ELEMENTS
            if ch in _WHITESPACE or ch == ",":
                i += 1
                continue
            if ch == "]":
                state = DecoderState.DONE
                i += 1
                break
            if ch == "{":
                state = DecoderState.INSIDE_OBJECT
                self._obj_start = i
                self._depth = 1
                self._escape = False
                i += 1
                continue
            raise MalformedInput(f"Неожиданный символ между элементами: {ch!r}", self._offset + i)

        self.state = state

        if state in (DecoderState.INSIDE_OBJECT, DecoderState.INSIDE_STRING):
            # Держим только незавершённый объект
            start = self._obj_start
            self._buf = buf[start:]
            self._offset += start
            self._pos = i - start
            self._obj_start = 0
        else:
            self._offset += i
            self._buf = ""
            self._pos = 0

    def _emit(self, text: str, position: int) -> None:
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"Объект не парсится: {e.msg}", position) from e
        self.count += 1
        self._on_object(obj)

    def _reset_buffer(self) -> None:
        self._offset += len(self._buf)
        self._buf = ""
        self._pos = 0
        self._obj_start = -1


def iter_array_objects(
    chunks: Iterable[str],
    *,
    allow_truncated: bool = False,
) -> Iterator[dict[str, Any]]:
    """
    Итерирует объекты массива из последовательности текстовых кусков.

    Чтение прекращается сразу после `]`.
    """
    pending: list[dict[str, Any]] = []
    decoder = ArrayStreamDecoder(pending.append, allow_truncated=allow_truncated)

    for chunk in chunks:
        decoder.feed(chunk)
        if pending:
            yield from pending
            pending.clear()
        if decoder.done:
            return

    decoder.close()
