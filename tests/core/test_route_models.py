# tests/core/test_route_models.py
"""
Тесты модели точки и нормализации сэмплов.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tracker.common.errors import ValidationRejected
from tracker.core.route.models import (
    Point,
    format_timestamp,
    normalize_sample,
    parse_timestamp,
    timestamp_ms,
)

NOW = datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)


class TestTimestamps:
    """Разбор и форматирование временных меток."""

    @pytest.mark.parametrize(
        "value",
        [
            "2024-05-01T12:00:00.123Z",
            "2024-05-01T14:00:00.123+02:00",
            "2024-05-01T12:00:00.123",
            1714564800123,
        ],
    )
    def test_parse_variants(self, value) -> None:
        """Z, смещение, наивная метка (UTC) и миллисекунды эпохи."""
        assert parse_timestamp(value) == NOW

    @pytest.mark.parametrize("value", ["yesterday", "", None, True, {"t": 1}])
    def test_parse_invalid(self, value) -> None:
        with pytest.raises(ValidationRejected):
            parse_timestamp(value)

    def test_format(self) -> None:
        assert format_timestamp(NOW) == "2024-05-01T12:00:00.123Z"

    def test_timestamp_ms_falls_back_to_default(self) -> None:
        """Отсутствующая или битая метка заменяется на переданное время."""
        assert timestamp_ms(None, NOW) == 1714564800123
        assert timestamp_ms("garbage", NOW) == 1714564800123
        assert timestamp_ms("2024-05-01T12:00:04.123Z") - timestamp_ms("2024-05-01T12:00:00.123Z") == 4000


class TestPoint:
    """Тесты модели Point."""

    def test_optional_fields_not_serialized(self) -> None:
        """Отсутствующие необязательные поля не попадают в JSON."""
        point = Point(lat=52.1, lon=5.1, timestamp="2024-05-01T12:00:00.000Z")

        assert point.to_json() == '{"lat":52.1,"lon":5.1,"timestamp":"2024-05-01T12:00:00.000Z"}'

    def test_point_is_frozen(self) -> None:
        point = Point(lat=1.0, lon=2.0)

        with pytest.raises(Exception):
            point.lat = 3.0

    def test_from_record_keeps_extra_keys(self) -> None:
        """Лишние ключи старых записей сохраняются."""
        point = Point.from_record({"lat": 1.0, "lon": 2.0, "accuracy": 5})

        assert point is not None
        assert point.to_record() == {"lat": 1.0, "lon": 2.0, "accuracy": 5}

    @pytest.mark.parametrize(
        "record",
        [
            {"lat": "52.0", "lon": 5.0},
            {"lat": True, "lon": 5.0},
            {"lat": float("nan"), "lon": 5.0},
            {"lon": 5.0},
            [52.0, 5.0],
            None,
        ],
    )
    def test_from_record_rejects_invalid(self, record) -> None:
        assert Point.from_record(record) is None


class TestNormalizeSample:
    """Тесты приведения входного сэмпла к точке."""

    def test_full_sample(self) -> None:
        point = normalize_sample(
            {
                "lat": 52,
                "lon": 5,
                "timestamp": "2024-05-01T14:00:00.123+02:00",
                "alt": 3.5,
                "heading": 270,
                "speedKmh": 42.6,
            },
            now=NOW,
        )

        assert point.to_record() == {
            "lat": 52.0,
            "lon": 5.0,
            "timestamp": "2024-05-01T12:00:00.123Z",
            "alt": 3.5,
            "heading": 270.0,
            "speedKmh": 43,
        }

    def test_missing_timestamp_uses_now(self) -> None:
        point = normalize_sample({"lat": 1.0, "lon": 2.0}, now=NOW)

        assert point.timestamp == "2024-05-01T12:00:00.123Z"

    def test_non_finite_optionals_dropped(self) -> None:
        """Нечисловые и бесконечные alt/heading/speedKmh отбрасываются."""
        point = normalize_sample(
            {"lat": 1.0, "lon": 2.0, "alt": float("inf"), "heading": "north", "speedKmh": None},
            now=NOW,
        )

        assert point.alt is None
        assert point.heading is None
        assert point.speedKmh is None

    @pytest.mark.parametrize(
        "sample",
        [
            {"lat": "52", "lon": 5.0},
            {"lat": 52.0},
            {"lat": 52.0, "lon": float("inf")},
            {"lat": 52.0, "lon": 5.0, "timestamp": "not-a-date"},
            "52,5",
        ],
    )
    def test_rejected(self, sample) -> None:
        with pytest.raises(ValidationRejected):
            normalize_sample(sample, now=NOW)
