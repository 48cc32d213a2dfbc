# cargo_exchange/core/geo/models.py
"""
Модели геоданных.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from cargo_exchange.core.geo.distance import Coordinate


class Location(BaseModel):
    """Адрес с координатами (координаты могут быть ещё не определены)."""

    address: str = Field("", description="Адрес")
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0, description="Широта")
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0, description="Долгота")
    # Заполняется только при обновлении позиции в пути
    updated_at: Optional[datetime] = Field(None, description="Время обновления позиции")

    class Config:
        from_attributes = True

    @property
    def coordinate(self) -> Optional[Coordinate]:
        """Координата или None, если адрес не геокодирован."""
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @property
    def is_resolved(self) -> bool:
        return self.coordinate is not None
