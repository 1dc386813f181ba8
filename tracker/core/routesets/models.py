# tracker/core/routesets/models.py
"""
Модели снимков маршрута.
"""

from pydantic import BaseModel, Field


class RoutesetMeta(BaseModel):
    """Запись в routesets.json."""
    id: str = Field(..., description="Идентификатор снимка")
    name: str = Field(..., description="Название")
    createdAt: str = Field(..., description="Время создания")
    count: int = Field(default=0, ge=0, description="Количество точек")


class RoutesetSaveRequest(BaseModel):
    """Запрос на сохранение снимка."""
    name: str | None = None
