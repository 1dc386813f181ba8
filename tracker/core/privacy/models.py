# tracker/core/privacy/models.py
"""
Модель зоны приватности.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PrivacyZone(BaseModel):
    """
    Круговая зона, внутри которой точки не публикуются.

    На диске радиус хранится под ключом `radius`.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", description="Идентификатор зоны")
    lat: float = Field(..., description="Широта центра")
    lon: float = Field(..., description="Долгота центра")
    radius_meters: float = Field(..., alias="radius", ge=0, description="Радиус, м")
    name: str = Field(default="", description="Название")
    createdAt: str | None = Field(default=None, description="Время создания")

    def to_record(self) -> dict:
        """Запись для privacyZones.json."""
        return self.model_dump(by_alias=True, exclude_none=True)

