# tracker/core/route/models.py
"""
Модели маршрута: точка, результат приёма, работа с временными метками.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tracker.common.errors import ValidationRejected
from tracker.core.codec.encoders import dumps_compact


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def is_finite_number(value: Any) -> bool:
    """Число (не bool), конечное."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def utc_now() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Разбирает временную метку точки.

    Поддерживается:
    - строка RFC3339 / ISO-8601 (суффикс `Z` допускается);
    - число: миллисекунды с эпохи.

    Метка без часового пояса считается UTC.

    Raises:
        ValidationRejected: Метка не разбирается
    """
    if isinstance(value, datetime):
        dt = value
    elif is_finite_number(value):
        try:
            dt = _EPOCH + timedelta(milliseconds=value)
        except OverflowError as e:
            raise ValidationRejected(f"Метка времени вне диапазона: {value!r}", reason="timestamp") from e
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationRejected(f"Некорректная метка времени: {value!r}", reason="timestamp") from e
    else:
        raise ValidationRejected(f"Некорректная метка времени: {value!r}", reason="timestamp")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """UTC `YYYY-MM-DDTHH:MM:SS.mmmZ`."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def timestamp_ms(value: str | None, default: datetime | None = None) -> int:
    """
    Метка точки в целых миллисекундах эпохи.
    Отсутствующая или битая метка заменяется на default (или текущее время).
    """
    dt = None
    if value is not None:
        try:
            dt = parse_timestamp(value)
        except ValidationRejected:
            dt = None
    if dt is None:
        dt = (default or utc_now()).astimezone(timezone.utc)
    return (dt - _EPOCH) // timedelta(milliseconds=1)


class Point(BaseModel):
    """
    Точка маршрута.

    Неизменяема после записи. Необязательные поля, которых нет, не сериализуются.
    Лишние ключи из старых записей сохраняются.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    lat: float = Field(..., description="Широта")
    lon: float = Field(..., description="Долгота")
    timestamp: str | None = Field(default=None, description="Время RFC3339")
    alt: float | None = Field(default=None, description="Высота, м")
    heading: float | None = Field(default=None, description="Курс, градусы")
    speedKmh: int | float | None = Field(default=None, description="Скорость, км/ч")

    @classmethod
    def from_record(cls, obj: Any) -> "Point | None":
        """
        Точка из сохранённой записи.

        Returns:
            Point или None, если lat/lon не являются конечными числами
        """
        if not isinstance(obj, dict):
            return None
        if not is_finite_number(obj.get("lat")) or not is_finite_number(obj.get("lon")):
            return None
        try:
            return cls.model_validate(obj)
        except ValueError:
            return None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def to_json(self) -> str:
        """Компактный JSON в одну строку."""
        return dumps_compact(self.to_record())


def normalize_sample(sample: dict[str, Any], now: datetime | None = None) -> Point:
    """
    Приводит входной сэмпл к сохраняемой точке.

    Raises:
        ValidationRejected: Нет конечных lat/lon или метка не разбирается
    """
    if not isinstance(sample, dict):
        raise ValidationRejected("Сэмпл должен быть объектом", reason="shape")

    lat = _coerce_float(sample.get("lat"))
    lon = _coerce_float(sample.get("lon"))
    if lat is None or lon is None:
        raise ValidationRejected("Нет корректных lat/lon", reason="coordinates")

    raw_ts = sample.get("timestamp")
    if raw_ts is None or raw_ts == "":
        ts = now or utc_now()
    else:
        ts = parse_timestamp(raw_ts)

    data: dict[str, Any] = {"lat": lat, "lon": lon, "timestamp": format_timestamp(ts)}

    alt = _coerce_float(sample.get("alt"))
    if alt is not None:
        data["alt"] = alt
    heading = _coerce_float(sample.get("heading"))
    if heading is not None:
        data["heading"] = heading
    speed = _coerce_float(sample.get("speedKmh"))
    if speed is not None:
        data["speedKmh"] = int(round(speed))

    return Point(**data)


def _coerce_float(value: Any) -> float | None:
    return float(value) if is_finite_number(value) else None


class IngestResult(BaseModel):
    """Итог приёма пачки сэмплов."""
    added: int = 0
    redacted: int = 0
