# tracker/services/tracker_api/dependencies.py
"""
Контейнер сервисов приложения и зависимости FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time

from fastapi import Request

from tracker.core.enrichment import LocationService, WeatherService
from tracker.core.privacy import PrivacyZoneRepository
from tracker.core.route import RouteService
from tracker.core.routesets import RoutesetService


@dataclass
class TrackerServices:
    """Всё, что создаётся в lifespan и живёт до остановки приложения."""
    route: RouteService
    routesets: RoutesetService
    privacy_zones: PrivacyZoneRepository
    location: LocationService
    weather: WeatherService
    started_at: float = field(default_factory=time.monotonic)

    async def close(self) -> None:
        await self.route.shutdown()
        await self.location.close()
        await self.weather.close()


def get_services(request: Request) -> TrackerServices:
    """Получить контейнер сервисов."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized")
    return services
