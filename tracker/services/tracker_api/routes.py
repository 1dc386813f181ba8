# tracker/services/tracker_api/routes.py
"""
Эндпоинты трекера.

Маршрут:
- POST /api/route - приём одной точки или массива
- GET /api/route - весь журнал (без скрытия)
- GET /getRoute?redact=0|1 - журнал, по умолчанию со скрытием зон
- POST /api/route/reset - очистка журнала
- GET /api/route.geojson - GeoJSON со скрытием зон (потоково)
- GET /api/route/public-file - опубликованный GeoJSON
- POST /api/route/rebuild-geojson - немедленная пересборка
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import FileResponse, Response, StreamingResponse

from tracker import __version__
from tracker.common.errors import (
    NotEnoughPoints,
    PrivacyZoneNotFound,
    RoutesetNotFound,
    ValidationRejected,
)
from tracker.core.route.models import is_finite_number
from tracker.core.routesets.models import RoutesetMeta, RoutesetSaveRequest
from tracker.services.tracker_api.dependencies import TrackerServices, get_services
from tracker.services.tracker_api.models import (
    HealthStatus,
    IngestResponse,
    OkResponse,
    PrivacyZoneAdded,
)

GEOJSON_MEDIA_TYPE = "application/geo+json; charset=utf-8"
JSON_MEDIA_TYPE = "application/json; charset=utf-8"
NO_CACHE = {"Cache-Control": "no-cache"}

router = APIRouter()


# === ROUTE ===

@router.post("/api/route", response_model=IngestResponse, tags=["Route"])
async def ingest_route(
    payload: Any = Body(...),
    services: TrackerServices = Depends(get_services),
) -> IngestResponse:
    """
    Принять точки маршрута.

    Некорректные и отфильтрованные точки молча пропускаются.
    """
    samples = payload if isinstance(payload, list) else [payload]
    result = services.route.ingest(samples)
    return IngestResponse(
        added=result.added,
        redacted=result.redacted,
        routeFormat=services.route.format.value,
    )


@router.get("/api/route", tags=["Route"])
async def get_route(services: TrackerServices = Depends(get_services)) -> StreamingResponse:
    """Весь журнал JSON-массивом (без скрытия зон)."""
    return StreamingResponse(
        services.route.projections.iter_json_array(redact=False),
        media_type=JSON_MEDIA_TYPE,
        headers=NO_CACHE,
    )


@router.get("/getRoute", tags=["Route"])
async def get_route_legacy(
    redact: str = Query(default="1"),
    services: TrackerServices = Depends(get_services),
) -> StreamingResponse:
    """Журнал JSON-массивом; redact=0 отключает скрытие зон."""
    return StreamingResponse(
        services.route.projections.iter_json_array(redact=redact != "0"),
        media_type=JSON_MEDIA_TYPE,
        headers=NO_CACHE,
    )


@router.post("/api/route/reset", response_model=OkResponse, tags=["Route"])
async def reset_route(services: TrackerServices = Depends(get_services)) -> OkResponse:
    await services.route.reset()
    return OkResponse()


@router.get("/api/route.geojson", tags=["Route"])
async def get_route_geojson(services: TrackerServices = Depends(get_services)) -> StreamingResponse:
    """GeoJSON маршрута со скрытием зон приватности."""
    return StreamingResponse(
        services.route.projections.iter_geojson(redact=True),
        media_type=GEOJSON_MEDIA_TYPE,
        headers=NO_CACHE,
    )


@router.get(
    "/api/route/public-file",
    responses={404: {"description": "Файл ещё не опубликован"}},
    tags=["Route"],
)
async def get_public_file(services: TrackerServices = Depends(get_services)) -> FileResponse:
    path = services.route.materializer.target
    if not path.exists():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(path, media_type=GEOJSON_MEDIA_TYPE, headers=NO_CACHE)


@router.post("/api/route/rebuild-geojson", response_model=OkResponse, tags=["Route"])
async def rebuild_geojson(services: TrackerServices = Depends(get_services)) -> OkResponse:
    if not await services.route.rebuild():
        raise HTTPException(status_code=500, detail="rebuild failed")
    return OkResponse()


# === ROUTESETS ===

@router.get("/api/routesets", tags=["Routesets"])
async def list_routesets(services: TrackerServices = Depends(get_services)) -> list[dict[str, Any]]:
    return services.routesets.list()


@router.post("/api/routesets/save", tags=["Routesets"])
async def save_routeset(
    payload: RoutesetSaveRequest | None = Body(default=None),
    services: TrackerServices = Depends(get_services),
) -> dict[str, Any]:
    """Сохранить снимок текущего маршрута."""
    try:
        meta: RoutesetMeta = await services.routesets.save(payload.name if payload else None)
    except NotEnoughPoints:
        raise HTTPException(status_code=400, detail="Not enough points to save")
    return {"ok": True, **meta.model_dump()}


@router.delete("/api/routesets/{routeset_id}", response_model=OkResponse, tags=["Routesets"])
async def delete_routeset(
    routeset_id: str,
    services: TrackerServices = Depends(get_services),
) -> OkResponse:
    try:
        await services.routesets.delete(routeset_id)
    except RoutesetNotFound:
        raise HTTPException(status_code=404, detail="not found")
    return OkResponse()


@router.get("/api/routesets/{routeset_id}", tags=["Routesets"])
async def get_routeset(
    routeset_id: str,
    services: TrackerServices = Depends(get_services),
) -> list[Any]:
    try:
        return services.routesets.get(routeset_id)
    except RoutesetNotFound:
        raise HTTPException(status_code=404, detail="not found")


@router.get("/api/routesets/{routeset_id}/geojson", tags=["Routesets"])
async def get_routeset_geojson(
    routeset_id: str,
    services: TrackerServices = Depends(get_services),
) -> Response:
    try:
        content = services.routesets.geojson(routeset_id)
    except RoutesetNotFound:
        raise HTTPException(status_code=404, detail="not found")
    return Response(content=content, media_type=GEOJSON_MEDIA_TYPE)


# === PRIVACY ZONES ===

@router.get("/getPrivacyZones", tags=["Privacy"])
async def get_privacy_zones(services: TrackerServices = Depends(get_services)) -> list[dict[str, Any]]:
    return services.privacy_zones.list()


@router.post("/addPrivacyZone", response_model=PrivacyZoneAdded, tags=["Privacy"])
async def add_privacy_zone(
    payload: dict[str, Any] = Body(...),
    services: TrackerServices = Depends(get_services),
) -> PrivacyZoneAdded:
    lat, lon, radius = payload.get("lat"), payload.get("lon"), payload.get("radius")
    if not all(is_finite_number(v) for v in (lat, lon, radius)) or radius < 0:
        raise HTTPException(status_code=400, detail="lat, lon, radius required")

    zone, count = await services.privacy_zones.add(lat, lon, radius, payload.get("name") or "")
    return PrivacyZoneAdded(id=zone.id, count=count)


@router.delete("/removePrivacyZone/{zone_id}", response_model=OkResponse, tags=["Privacy"])
async def remove_privacy_zone(
    zone_id: str,
    services: TrackerServices = Depends(get_services),
) -> OkResponse:
    try:
        await services.privacy_zones.remove(zone_id)
    except PrivacyZoneNotFound:
        raise HTTPException(status_code=404, detail="not found")
    return OkResponse()


# === LOCATION & WEATHER ===

@router.post("/api/location", tags=["Location"])
async def update_location(
    payload: dict[str, Any] = Body(...),
    services: TrackerServices = Depends(get_services),
) -> dict[str, Any]:
    """Обновить текущую позицию (внутри зоны приватности не обновляется)."""
    try:
        return await services.location.update(payload)
    except ValidationRejected:
        raise HTTPException(status_code=400, detail="lat/lon required")


@router.get("/api/location", tags=["Location"])
async def get_location(services: TrackerServices = Depends(get_services)) -> dict[str, Any]:
    return services.location.current()


@router.get("/api/altitude", tags=["Location"])
async def get_altitude(services: TrackerServices = Depends(get_services)) -> dict[str, Any]:
    return services.location.altitude()


@router.post("/api/altitude", response_model=OkResponse, tags=["Location"])
async def set_altitude(
    payload: dict[str, Any] = Body(...),
    services: TrackerServices = Depends(get_services),
) -> OkResponse:
    try:
        services.location.set_altitude(payload.get("altitude"))
    except ValidationRejected:
        raise HTTPException(status_code=400, detail="altitude required")
    return OkResponse()


@router.get("/api/temperature", tags=["Location"])
async def get_temperature(services: TrackerServices = Depends(get_services)) -> dict[str, Any]:
    """Погода в текущей позиции (с троттлингом запросов)."""
    return await services.weather.current()


@router.post("/api/temperature", tags=["Location"])
async def set_temperature(
    payload: dict[str, Any] | None = Body(default=None),
    services: TrackerServices = Depends(get_services),
) -> dict[str, Any]:
    """Ручное обновление сохранённой погоды."""
    return services.weather.update(payload or {})


# === HEALTH ===

@router.get("/api/health", response_model=HealthStatus, tags=["Health"])
async def health_check(services: TrackerServices = Depends(get_services)) -> HealthStatus:
    """Проверка здоровья сервиса."""
    health = services.route.health()
    return HealthStatus(
        service="tracker",
        status="healthy" if health["started"] else "degraded",
        version=__version__,
        uptime_seconds=round(time.monotonic() - services.started_at, 3),
        route=health["route"],
        publicGeojson=health["publicGeojson"],
    )
