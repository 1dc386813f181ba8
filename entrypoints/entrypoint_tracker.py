#!/usr/bin/env python3
"""
Entrypoint для HTTP API трекера маршрута.

Запуск:
    python entrypoints/entrypoint_tracker.py

Порт по умолчанию: 3000 (PORT в окружении или config.json)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from tracker.config import settings


def main() -> None:
    """Запустить HTTP API трекера."""
    uvicorn.run(
        "tracker.services.tracker_api.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
