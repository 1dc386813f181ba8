#!/usr/bin/env python3
# tracker/tools/migrate_route.py
"""
Перевод журнала маршрута из JSON-массива в построчный формат.

Файл читается потоково, в памяти не держится целиком.

Запуск:
    python -m tracker.tools.migrate_route data/routeData.json

Результат:
    - резервная копия: routeData.json.bak-YYYYMMDDHHMMSS
    - новый построчный файл под прежним именем

Если файл уже построчный (или пустой), ничего не делается.
После миграции пересоберите публичный GeoJSON: POST /api/route/rebuild-geojson.
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

from tracker.common.logger import get_logger
from tracker.core.codec.array_stream import ArrayStreamDecoder
from tracker.core.codec.encoders import dumps_compact
from tracker.infra.files import first_non_whitespace_char, iter_text_chunks

logger = get_logger("tracker.migrate")

CHUNK_SIZE = 64 * 1024


class MigrationResult:
    """Итог миграции."""

    def __init__(self, migrated: bool, count: int = 0, backup: Path | None = None) -> None:
        self.migrated = migrated
        self.count = count
        self.backup = backup


def backup_path_for(path: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return path.with_name(f"{path.name}.bak-{stamp}")


def migrate(path: Path, chunk_size: int = CHUNK_SIZE) -> MigrationResult:
    """
    Переводит файл в построчный формат.

    Исходный файл заменяется только после полной успешной перезаписи.

    Raises:
        FileNotFoundError: Файла нет
        MalformedInput: Массив не разбирается
        OSError: Ошибка чтения или записи
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Файл не найден: {path}")

    if first_non_whitespace_char(path) != "[":
        logger.info(f"{path.name} уже в построчном формате, миграция не нужна")
        return MigrationResult(migrated=False)

    tmp = path.with_name(f"{path.name}.ndjson.tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as out:
            decoder = ArrayStreamDecoder(lambda obj: out.write(dumps_compact(obj) + "\n"))
            for chunk in iter_text_chunks(path, chunk_size):
                decoder.feed(chunk)
                if decoder.done:
                    break
            decoder.close()
            out.flush()
            os.fsync(out.fileno())
    except (OSError, ValueError):
        tmp.unlink(missing_ok=True)
        raise

    backup = backup_path_for(path)
    os.replace(path, backup)
    try:
        os.replace(tmp, path)
    except OSError:
        os.replace(backup, path)
        tmp.unlink(missing_ok=True)
        raise

    logger.info(f"Миграция завершена: {decoder.count} точек, резервная копия {backup.name}")
    return MigrationResult(migrated=True, count=decoder.count, backup=backup)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m tracker.tools.migrate_route",
        description="Перевод routeData.json из JSON-массива в построчный формат",
    )
    parser.add_argument("path", type=Path, help="Путь к routeData.json")
    args = parser.parse_args(argv)

    try:
        result = migrate(args.path)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        logger.error(f"Миграция не удалась, исходный файл не изменён: {e}")
        return 1
    except OSError as e:
        logger.error(f"Ошибка ввода-вывода, исходный файл не изменён: {e}")
        return 1

    if result.migrated:
        print(f"Migrated {result.count} points; backup: {result.backup}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
