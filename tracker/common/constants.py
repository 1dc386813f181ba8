# tracker/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class RouteFormat(str, Enum):
    """Формат файла маршрута на диске."""
    JSON = "json"      # legacy: один JSON-массив
    NDJSON = "ndjson"  # одна точка на строку


class StorageMode(str, Enum):
    """Режим выбора формата хранения (ROUTE_STORAGE)."""
    AUTO = "auto"
    JSON = "json"
    NDJSON = "ndjson"


# Средний радиус Земли в метрах
EARTH_RADIUS_M = 6_371_000.0

# Имена файлов в DATA_DIR
ROUTE_FILE_NAME = "routeData.json"
ROUTE_PUBLIC_FILE_NAME = "route_public.geojson"
PRIVACY_ZONES_FILE_NAME = "privacyZones.json"
ROUTESETS_FILE_NAME = "routesets.json"
LOCATION_FILE_NAME = "locationData.json"
ALTITUDE_FILE_NAME = "altitudeData.json"
TEMPERATURE_FILE_NAME = "temperatureData.json"
