# tracker/services/tracker_api/models.py
"""
Модели запросов и ответов HTTP API.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    ok: bool = True
    service: str
    status: str = "healthy"  # healthy, degraded
    version: str | None = None
    uptime_seconds: float | None = None
    route: dict = Field(default_factory=dict)
    publicGeojson: dict = Field(default_factory=dict)


class IngestResponse(BaseModel):
    """Итог приёма точек маршрута."""

    ok: bool = True
    added: int
    redacted: int
    routeFormat: str


class OkResponse(BaseModel):
    ok: bool = True


class PrivacyZoneAdded(BaseModel):
    ok: bool = True
    id: str
    count: int
