# tests/config/test_loader.py
"""
Тесты для модуля загрузки конфигурации.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from tracker.common.constants import StorageMode
from tracker.config.loader import (
    IngestSettings,
    Settings,
    StorageSettings,
    get_config_path,
    get_project_root,
    get_settings,
    load_config_json,
)


class TestGetProjectRoot:
    """Тесты для функции get_project_root."""

    def test_root_contains_package_and_config(self) -> None:
        """В корне есть пакет tracker и директория config."""
        root = get_project_root()

        assert isinstance(root, Path)
        assert (root / "tracker").is_dir()
        assert (root / "config").is_dir()


class TestGetConfigPath:
    """Тесты для функции get_config_path."""

    def test_default_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """По умолчанию config/config.json."""
        monkeypatch.delenv("TRACKER_CONFIG", raising=False)
        path = get_config_path()

        assert path.name == "config.json"
        assert path.parent.name == "config"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, temp_config_file: Path) -> None:
        """TRACKER_CONFIG переопределяет путь."""
        monkeypatch.setenv("TRACKER_CONFIG", str(temp_config_file))

        assert get_config_path() == temp_config_file


class TestLoadConfigJson:
    """Тесты для функции load_config_json."""

    def test_loads_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Загружается словарь с ключами хранилища."""
        monkeypatch.delenv("TRACKER_CONFIG", raising=False)
        config = load_config_json()

        assert isinstance(config, dict)
        assert "DATA_DIR" in config
        assert "ROUTE_STORAGE" in config

    def test_missing_file_raises(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Отсутствующий файл — FileNotFoundError."""
        monkeypatch.setenv("TRACKER_CONFIG", str(tmp_path / "nope.json"))

        with pytest.raises(FileNotFoundError):
            load_config_json()


class TestSettingsFromDict:
    """Тесты сборки Settings из плоского словаря."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "ENVIRONMENT", "LOG_LEVEL", "LOG_FORMAT", "HOST", "PORT", "DATA_DIR",
            "ROUTE_STORAGE", "PRIVACY_CACHE_TTL_MS", "PUBLIC_GEOJSON_MIN_INTERVAL_MS",
            "WEATHER_MIN_INTERVAL_MS",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_values_from_config(self, mock_config: dict[str, Any]) -> None:
        """Значения берутся из словаря, ключи _comment_ игнорируются."""
        conf = Settings.from_dict(mock_config)

        assert conf.system.PROJECT_NAME == "gps_tracker_test"
        assert conf.server.PORT == 3100
        assert conf.storage.ROUTE_STORAGE is StorageMode.NDJSON
        assert conf.ingest.MIN_DIST_M == 20
        assert conf.ingest.MIN_TIME_MS == 5000
        assert conf.ingest.MAX_SPEED_KMH == 120
        assert conf.privacy.PRIVACY_CACHE_TTL_MS == 500
        assert conf.materializer.PUBLIC_GEOJSON_MIN_INTERVAL_MS == 1000

    def test_defaults(self) -> None:
        """Пустой словарь — значения по умолчанию."""
        conf = Settings.from_dict({})

        assert conf.server.PORT == 3000
        assert conf.storage.ROUTE_STORAGE is StorageMode.AUTO
        assert conf.ingest.MIN_DIST_M == 15.0
        assert conf.ingest.MIN_TIME_MS == 4000
        assert conf.ingest.MAX_SPEED_KMH == 160.0
        assert conf.privacy.PRIVACY_CACHE_TTL_MS == 10_000
        assert conf.materializer.PUBLIC_GEOJSON_MIN_INTERVAL_MS == 30_000
        assert conf.enrichment.WEATHER_MIN_INTERVAL_MS == 60_000

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, mock_config: dict[str, Any], tmp_path: Path) -> None:
        """Окружение важнее config.json."""
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("ROUTE_STORAGE", "json")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("PUBLIC_GEOJSON_MIN_INTERVAL_MS", "5")

        conf = Settings.from_dict(mock_config)

        assert conf.storage.data_path == tmp_path
        assert conf.storage.ROUTE_STORAGE is StorageMode.JSON
        assert conf.server.PORT == 8080
        assert conf.materializer.PUBLIC_GEOJSON_MIN_INTERVAL_MS == 5

    def test_invalid_storage_mode(self) -> None:
        """Неизвестный режим хранения отклоняется."""
        with pytest.raises(ValidationError):
            Settings.from_dict({"ROUTE_STORAGE": "csv"})


class TestStorageSettings:
    """Тесты путей хранилища."""

    def test_relative_data_dir_resolves_against_root(self) -> None:
        storage = StorageSettings(DATA_DIR="data")

        assert storage.data_path == get_project_root() / "data"
        assert storage.route_file.name == "routeData.json"
        assert storage.route_public_file.name == "route_public.geojson"
        assert storage.privacy_zones_file.name == "privacyZones.json"

    def test_absolute_data_dir(self, tmp_path: Path) -> None:
        storage = StorageSettings(DATA_DIR=str(tmp_path))

        assert storage.routesets_file == tmp_path / "routesets.json"


class TestIngestSettings:
    """Тесты ограничений фильтров."""

    def test_negative_distance_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IngestSettings(MIN_DIST_M=-1)


class TestGetSettings:
    """Тесты синглтона настроек."""

    def test_cached(self) -> None:
        """get_settings кэширует результат."""
        assert get_settings() is get_settings()
