# tracker/services/tracker_api/app.py
"""
FastAPI приложение трекера маршрута.

Приём GPS-точек, чтение маршрута в разных представлениях,
снимки маршрута, зоны приватности, текущая позиция и погода.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tracker import __version__
from tracker.common.logger import log_error, log_info, setup_logging
from tracker.config.loader import Settings, get_settings
from tracker.core.enrichment import LocationService, WeatherService
from tracker.core.privacy import PrivacyZoneRepository
from tracker.core.route import RouteService
from tracker.core.routesets import RoutesetService
from tracker.infra.files import ensure_file
from tracker.services.tracker_api.dependencies import TrackerServices
from tracker.services.tracker_api.routes import router


def build_services(app_settings: Settings) -> TrackerServices:
    """Создаёт сервисы по настройкам."""
    storage = app_settings.storage
    enrichment = app_settings.enrichment

    route = RouteService.from_settings(app_settings)
    return TrackerServices(
        route=route,
        routesets=RoutesetService(storage.data_path, route.store, storage.routesets_file),
        privacy_zones=PrivacyZoneRepository(storage.privacy_zones_file, route.privacy),
        location=LocationService(
            storage.location_file,
            storage.altitude_file,
            privacy=route.privacy,
            mapbox_token=enrichment.MAPBOX_TOKEN,
            timeout=enrichment.HTTP_TIMEOUT_SECONDS,
        ),
        weather=WeatherService(
            storage.temperature_file,
            storage.location_file,
            api_key=enrichment.OPENWEATHER_KEY,
            min_interval_ms=enrichment.WEATHER_MIN_INTERVAL_MS,
            language=enrichment.WEATHER_LANG,
            timeout=enrichment.HTTP_TIMEOUT_SECONDS,
        ),
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        app_settings: Настройки (по умолчанию глобальные из config.json)
    """
    conf = app_settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        setup_logging()
        storage = conf.storage
        for path, default in (
            (storage.routesets_file, []),
            (storage.location_file, {}),
            (storage.altitude_file, {}),
            (storage.temperature_file, {}),
        ):
            ensure_file(path, default)

        services = build_services(conf)
        await services.route.startup()
        app.state.services = services
        await log_info(f"Трекер запущен, данные в {storage.data_path}", logger_name="tracker.api")

        try:
            yield
        finally:
            await services.close()
            app.state.services = None

    app = FastAPI(
        title="GPS Route Tracker",
        description="Приём и раздача GPS-маршрута.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=conf.server.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        await log_error(
            f"{request.method} {request.url.path} failed: {exc}",
            logger_name="tracker.api",
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": "internal error"})

    app.include_router(router)
    return app


app = create_app()


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    from tracker.config import settings

    uvicorn.run(app, host=settings.server.HOST, port=settings.server.PORT)
