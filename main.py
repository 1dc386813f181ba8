#!/usr/bin/env python3
# main.py
"""
Главная точка входа трекера маршрута.

Режимы:
    python main.py            - HTTP API (по умолчанию)
    python main.py api        - то же
    python main.py migrate <path>  - перевод routeData.json в построчный формат
"""

from __future__ import annotations

import asyncio
import signal
import sys

from tracker.config import settings
from tracker.common.logger import setup_logging, log_info
from tracker.common.constants import TypeMsg


# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None
_running_tasks: list[asyncio.Task] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()
            for task in _running_tasks:
                if not task.done():
                    task.cancel()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_api() -> None:
    """Запускает HTTP API трекера."""
    import uvicorn

    await log_info(
        f"Запуск трекера на {settings.server.HOST}:{settings.server.PORT} "
        f"(ROUTE_STORAGE={settings.storage.ROUTE_STORAGE.value})...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "tracker.services.tracker_api.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Трекер: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def main() -> None:
    """Главная функция запуска HTTP API."""
    setup_logging()
    setup_signal_handlers()

    task = asyncio.create_task(run_api())
    _running_tasks.append(task)
    try:
        await task
    except asyncio.CancelledError:
        pass
    finally:
        await log_info("Трекер остановлен", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    print(__doc__)


if __name__ == "__main__":
    args = sys.argv[1:]
    mode = args[0].lower() if args else "api"

    if mode in ("--help", "-h"):
        print_usage()
        sys.exit(0)

    if mode == "migrate":
        from tracker.tools.migrate_route import main as migrate_main
        sys.exit(migrate_main(args[1:]))

    if mode != "api":
        print(f"Неизвестный режим: {mode}")
        print_usage()
        sys.exit(1)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
