# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

import pytest

from tracker.common.constants import (
    ROUTE_FILE_NAME,
    ROUTE_PUBLIC_FILE_NAME,
    RouteFormat,
    StorageMode,
    TypeMsg,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        """Проверяет значения типов сообщений."""
        assert TypeMsg.DEBUG.value == "debug"
        assert TypeMsg.INFO.value == "info"
        assert TypeMsg.WARNING.value == "warning"
        assert TypeMsg.ERROR.value == "error"
        assert TypeMsg.CRITICAL.value == "critical"

    def test_type_msg_is_str_enum(self) -> None:
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestRouteFormat:
    """Форматы журнала и режимы хранения."""

    def test_values(self) -> None:
        assert RouteFormat.JSON == "json"
        assert RouteFormat.NDJSON == "ndjson"

    @pytest.mark.parametrize("value", ["auto", "json", "ndjson"])
    def test_storage_mode_from_value(self, value: str) -> None:
        assert StorageMode(value).value == value

    def test_storage_mode_unknown(self) -> None:
        with pytest.raises(ValueError):
            StorageMode("xml")


class TestFileNames:

    def test_route_files(self) -> None:
        assert ROUTE_FILE_NAME == "routeData.json"
        assert ROUTE_PUBLIC_FILE_NAME.endswith(".geojson")
