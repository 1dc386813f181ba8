# tracker/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Пути, порты и секреты переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracker.common.constants import (
    ALTITUDE_FILE_NAME,
    LOCATION_FILE_NAME,
    PRIVACY_ZONES_FILE_NAME,
    ROUTE_FILE_NAME,
    ROUTE_PUBLIC_FILE_NAME,
    ROUTESETS_FILE_NAME,
    TEMPERATURE_FILE_NAME,
    StorageMode,
)


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации (TRACKER_CONFIG переопределяет)."""
    override = os.getenv("TRACKER_CONFIG")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _env_int(name: str, default: Any) -> int:
    """Целое из окружения или значение по умолчанию."""
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else int(default)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "gps_tracker"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/tracker.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760


class ServerSettings(BaseModel):
    """Настройки HTTP-сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    DOMAIN: str = "localhost"
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


class StorageSettings(BaseModel):
    """Настройки хранения данных."""
    DATA_DIR: str = "data"
    ROUTE_STORAGE: StorageMode = StorageMode.AUTO
    FSYNC_APPENDS: bool = True
    TAIL_WINDOW_BYTES: int = Field(default=128 * 1024, gt=0)
    READ_CHUNK_BYTES: int = Field(default=64 * 1024, gt=0)

    @field_validator("ROUTE_STORAGE", mode="before")
    @classmethod
    def normalize_storage(cls, v: Any) -> Any:
        """Приводит значение режима к нижнему регистру."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def data_path(self) -> Path:
        """Абсолютный путь к директории данных."""
        path = Path(self.DATA_DIR)
        if not path.is_absolute():
            path = get_project_root() / path
        return path

    @property
    def route_file(self) -> Path:
        return self.data_path / ROUTE_FILE_NAME

    @property
    def route_public_file(self) -> Path:
        return self.data_path / ROUTE_PUBLIC_FILE_NAME

    @property
    def privacy_zones_file(self) -> Path:
        return self.data_path / PRIVACY_ZONES_FILE_NAME

    @property
    def routesets_file(self) -> Path:
        return self.data_path / ROUTESETS_FILE_NAME

    @property
    def location_file(self) -> Path:
        return self.data_path / LOCATION_FILE_NAME

    @property
    def altitude_file(self) -> Path:
        return self.data_path / ALTITUDE_FILE_NAME

    @property
    def temperature_file(self) -> Path:
        return self.data_path / TEMPERATURE_FILE_NAME


class IngestSettings(BaseModel):
    """Фильтры приёма точек маршрута."""
    MIN_DIST_M: float = Field(default=15.0, ge=0)
    MIN_TIME_MS: int = Field(default=4000, ge=0)
    MAX_SPEED_KMH: float = Field(default=160.0, gt=0)


class PrivacySettings(BaseModel):
    """Настройки зон приватности."""
    PRIVACY_CACHE_TTL_MS: int = Field(default=10_000, ge=0)


class MaterializerSettings(BaseModel):
    """Настройки публичного GeoJSON."""
    PUBLIC_GEOJSON_MIN_INTERVAL_MS: int = Field(default=30_000, ge=0)


class EnrichmentSettings(BaseModel):
    """Внешние API: погода и геокодирование."""
    OPENWEATHER_KEY: str = ""
    WEATHER_MIN_INTERVAL_MS: int = Field(default=60_000, ge=0)
    WEATHER_LANG: str = "nl"
    MAPBOX_TOKEN: str = ""
    HTTP_TIMEOUT_SECONDS: float = 8.0

    @field_validator("OPENWEATHER_KEY", "MAPBOX_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает ключ из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)
    materializer: MaterializerSettings = Field(default_factory=MaterializerSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """
        Создаёт объект Settings из плоского словаря config.json.
        Значения окружения имеют приоритет для путей, портов и секретов.
        """
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "gps_tracker"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                LOG_LEVEL=data.get("LOG_LEVEL", "INFO"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/tracker.log"),
                LOG_FORMAT=os.getenv("LOG_FORMAT", data.get("LOG_FORMAT", "colored")),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            server=ServerSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=_env_int("PORT", data.get("PORT", 3000)),
                DOMAIN=os.getenv("DOMAIN", data.get("DOMAIN", "localhost")),
                CORS_ORIGINS=data.get("CORS_ORIGINS", ["*"]),
            ),
            storage=StorageSettings(
                DATA_DIR=os.getenv("DATA_DIR", data.get("DATA_DIR", "data")),
                ROUTE_STORAGE=os.getenv("ROUTE_STORAGE", data.get("ROUTE_STORAGE", "auto")),
                FSYNC_APPENDS=data.get("FSYNC_APPENDS", True),
                TAIL_WINDOW_BYTES=data.get("TAIL_WINDOW_BYTES", 128 * 1024),
                READ_CHUNK_BYTES=data.get("READ_CHUNK_BYTES", 64 * 1024),
            ),
            ingest=IngestSettings(
                MIN_DIST_M=data.get("MIN_DIST_M", 15.0),
                MIN_TIME_MS=data.get("MIN_TIME_MS", 4000),
                MAX_SPEED_KMH=data.get("MAX_SPEED_KMH", 160.0),
            ),
            privacy=PrivacySettings(
                PRIVACY_CACHE_TTL_MS=_env_int(
                    "PRIVACY_CACHE_TTL_MS", data.get("PRIVACY_CACHE_TTL_MS", 10_000)
                ),
            ),
            materializer=MaterializerSettings(
                PUBLIC_GEOJSON_MIN_INTERVAL_MS=_env_int(
                    "PUBLIC_GEOJSON_MIN_INTERVAL_MS",
                    data.get("PUBLIC_GEOJSON_MIN_INTERVAL_MS", 30_000),
                ),
            ),
            enrichment=EnrichmentSettings(
                OPENWEATHER_KEY=os.getenv("OPENWEATHER_KEY", data.get("OPENWEATHER_KEY", "")),
                WEATHER_MIN_INTERVAL_MS=_env_int(
                    "WEATHER_MIN_INTERVAL_MS", data.get("WEATHER_MIN_INTERVAL_MS", 60_000)
                ),
                WEATHER_LANG=data.get("WEATHER_LANG", "nl"),
                MAPBOX_TOKEN=os.getenv("MAPBOX_TOKEN", data.get("MAPBOX_TOKEN", "")),
                HTTP_TIMEOUT_SECONDS=data.get("HTTP_TIMEOUT_SECONDS", 8.0),
            ),
        )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """Создаёт объект Settings из config.json."""
        return cls.from_dict(load_config_json())


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
