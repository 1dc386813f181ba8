# tracker/infra/files.py
"""
Файловый слой: атомарная запись JSON, чтение хвоста файла, чтение кусками.
"""

from __future__ import annotations

import json
import os
import shutil
import time
from pathlib import Path
from typing import Any, Iterator

from tracker.common.errors import IOFailure
from tracker.common.logger import get_logger

logger = get_logger("tracker.files")

REPLACE_RETRIES = 5
REPLACE_BACKOFF_SECONDS = 0.02


def ensure_dir(path: Path) -> None:
    """Создаёт директорию (с родителями), если её нет."""
    path.mkdir(parents=True, exist_ok=True)


def ensure_file(path: Path, default: Any) -> None:
    """Создаёт JSON-файл со значением по умолчанию, если его нет."""
    if not path.exists():
        ensure_dir(path.parent)
        path.write_text(json.dumps(default, ensure_ascii=False, indent=2), encoding="utf-8")


def read_json(path: Path) -> Any | None:
    """
    Читает JSON-файл целиком.

    Returns:
        Данные или None, если файла нет или он повреждён
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Не удалось прочитать {path.name}: {e}")
        return None


def replace_file(tmp: Path, target: Path) -> None:
    """
    Ставит tmp на место target.

    Сначала атомарный os.replace (с повторами), затем запасной вариант
    copy + удаление tmp. Если не сработало ни то, ни другое, IOFailure,
    а target остаётся прежним.
    """
    last_error: OSError | None = None
    for attempt in range(REPLACE_RETRIES):
        try:
            os.replace(tmp, target)
            return
        except OSError as e:
            last_error = e
            time.sleep(REPLACE_BACKOFF_SECONDS * (attempt + 1))

    logger.warning(f"os.replace не удался для {target.name}: {last_error}; пробуем копирование")
    try:
        shutil.copyfile(tmp, target)
        os.unlink(tmp)
    except OSError as e:
        logger.error(f"Запасное копирование {target.name} не удалось: {e}")
        raise IOFailure(f"Не удалось заменить {target}: {last_error}; копирование: {e}") from e


def write_json(path: Path, obj: Any) -> None:
    """
    Атомарная запись JSON: сначала в .tmp, затем replace_file.
    """
    tmp = path.with_name(path.name + ".tmp")
    payload = json.dumps(obj, ensure_ascii=False, indent=2)
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        raise IOFailure(f"Не удалось записать {tmp}: {e}") from e
    replace_file(tmp, path)


def first_non_whitespace_char(path: Path, probe_bytes: int = 2048) -> str | None:
    """
    Первый непробельный символ файла.

    Returns:
        Символ или None (файла нет, он пуст или состоит из пробелов)
    """
    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(probe_bytes)
                if not chunk:
                    return None
                stripped = chunk.lstrip(b" \t\r\n")
                if stripped.startswith(b"\xef\xbb\xbf"):
                    stripped = stripped[3:].lstrip(b" \t\r\n")
                if stripped:
                    return chr(stripped[0])
    except FileNotFoundError:
        return None


def read_tail(path: Path, max_bytes: int) -> tuple[bytes, bool]:
    """
    Читает не более max_bytes с конца файла.

    Returns:
        (данные, обрезано_ли_начало)
    """
    try:
        with open(path, "rb") as f:
            size = f.seek(0, os.SEEK_END)
            start = max(0, size - max_bytes)
            f.seek(start)
            return f.read(), start > 0
    except FileNotFoundError:
        return b"", False


def ends_with_newline(path: Path) -> bool:
    """Пустой файл или файл, оканчивающийся переводом строки."""
    try:
        with open(path, "rb") as f:
            size = f.seek(0, os.SEEK_END)
            if size == 0:
                return True
            f.seek(size - 1)
            return f.read(1) == b"\n"
    except FileNotFoundError:
        return True


def iter_text_chunks(path: Path, chunk_size: int) -> Iterator[str]:
    """Читает текстовый файл кусками по chunk_size символов."""
    with open(path, "r", encoding="utf-8") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                return
            yield chunk


def file_size(path: Path) -> int:
    """Размер файла в байтах (0, если файла нет)."""
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return 0
