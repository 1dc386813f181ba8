# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("OPENWEATHER_KEY", "")
os.environ.setdefault("MAPBOX_TOKEN", "")

from tracker.common.constants import StorageMode
from tracker.config.loader import (
    EnrichmentSettings,
    IngestSettings,
    MaterializerSettings,
    PrivacySettings,
    Settings,
    StorageSettings,
)
from tracker.core.privacy.cache import PrivacyZoneCache
from tracker.core.route.models import Point
from tracker.core.route.store import PointStore


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "gps_tracker_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "HOST": "127.0.0.1",
        "PORT": 3100,
        "DATA_DIR": "test_data",
        "ROUTE_STORAGE": "NDJSON",
        "MIN_DIST_M": 20,
        "MIN_TIME_MS": 5000,
        "MAX_SPEED_KMH": 120,
        "PRIVACY_CACHE_TTL_MS": 500,
        "PUBLIC_GEOJSON_MIN_INTERVAL_MS": 1000,
        "WEATHER_MIN_INTERVAL_MS": 2000,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Настройки с данными во временной директории и без задержек."""
    return Settings(
        storage=StorageSettings(DATA_DIR=str(tmp_path / "data"), ROUTE_STORAGE=StorageMode.AUTO),
        ingest=IngestSettings(),
        privacy=PrivacySettings(PRIVACY_CACHE_TTL_MS=0),
        materializer=MaterializerSettings(PUBLIC_GEOJSON_MIN_INTERVAL_MS=60_000),
        enrichment=EnrichmentSettings(OPENWEATHER_KEY="", MAPBOX_TOKEN=""),
    )


# =============================================================================
# ФИКСТУРЫ ХРАНИЛИЩА
# =============================================================================

@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Директория данных."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def route_file(data_dir: Path) -> Path:
    return data_dir / "routeData.json"


@pytest.fixture
def zones_file(data_dir: Path) -> Path:
    """Файл зон приватности (изначально пустой список)."""
    path = data_dir / "privacyZones.json"
    path.write_text("[]", encoding="utf-8")
    return path


@pytest.fixture
def privacy_cache(zones_file: Path) -> PrivacyZoneCache:
    """Кэш зон без TTL (каждый вызов перечитывает файл)."""
    return PrivacyZoneCache(zones_file, ttl_ms=0)


@pytest.fixture
def store(route_file: Path, privacy_cache: PrivacyZoneCache) -> PointStore:
    """Инициализированный журнал в построчном формате."""
    point_store = PointStore(route_file, privacy=privacy_cache, fsync=False)
    point_store.initialize()
    return point_store


def _make_point(lat: float, lon: float, timestamp: str = "2024-05-01T10:00:00.000Z", **extra: Any) -> Point:
    return Point(lat=lat, lon=lon, timestamp=timestamp, **extra)


@pytest.fixture
def make_point():
    """Фабрика точек маршрута."""
    return _make_point


@pytest.fixture
def write_zones(zones_file: Path):
    """Перезаписывает privacyZones.json."""
    def _write(zones: list[dict[str, Any]]) -> None:
        zones_file.write_text(json.dumps(zones), encoding="utf-8")
    return _write


@pytest.fixture
def sample_points() -> list[Point]:
    """Несколько точек вдоль меридиана (~111 м между соседними)."""
    return [
        _make_point(52.0 + i * 0.001, 5.0, f"2024-05-01T10:0{i}:00.000Z")
        for i in range(5)
    ]
