# cargo_exchange/core/cargo/models.py
"""
Модели груза.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# Допустимое расхождение переданного объёма с вычисленным по габаритам, м³
VOLUME_TOLERANCE_M3 = 0.001


class Dimensions(BaseModel):
    """Габариты в сантиметрах."""

    length: float = Field(0.0, ge=0.0, description="Длина, см")
    width: float = Field(0.0, ge=0.0, description="Ширина, см")
    height: float = Field(0.0, ge=0.0, description="Высота, см")

    class Config:
        from_attributes = True

    @field_validator("length", "width", "height")
    @classmethod
    def check_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Габарит должен быть конечным числом")
        return v

    @property
    def volume_m3(self) -> float:
        """Объём в кубических метрах."""
        return self.length * self.width * self.height / 1_000_000


class Cargo(BaseModel):
    """
    Описание груза.

    Объём всегда вычисляется по габаритам. Переданный вызывающим объём
    допускается только если совпадает с вычисленным.
    """

    description: str = Field("", description="Описание груза")
    weight: float = Field(..., gt=0.0, description="Вес, кг")
    dimensions: Dimensions = Field(default_factory=Dimensions, description="Габариты")
    volume: float = Field(0.0, ge=0.0, description="Объём, м³ (вычисляется)")
    items: int = Field(1, ge=1, description="Количество мест")
    requires_refrigeration: bool = Field(False, description="Нужен рефрижератор")
    is_hazardous: bool = Field(False, description="Опасный груз")
    is_urgent: bool = Field(False, description="Срочная доставка")

    class Config:
        from_attributes = True

    @field_validator("weight")
    @classmethod
    def check_weight(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Вес должен быть конечным числом")
        return v

    @field_validator("items", mode="before")
    @classmethod
    def default_items(cls, v: Any) -> int:
        """Пустое, нечисловое или неположительное значение превращается в 1."""
        try:
            items = int(v)
        except (TypeError, ValueError):
            return 1
        return items if items > 0 else 1

    @model_validator(mode="before")
    @classmethod
    def derive_volume(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        raw_dimensions = data.get("dimensions") or {}
        if isinstance(raw_dimensions, Dimensions):
            dimensions = raw_dimensions
        else:
            dimensions = Dimensions.model_validate(raw_dimensions)

        derived = dimensions.volume_m3
        supplied: Optional[Any] = data.get("volume")
        if supplied is not None:
            try:
                supplied_value = float(supplied)
            except (TypeError, ValueError):
                raise ValueError("Объём должен быть числом")
            if abs(supplied_value - derived) > VOLUME_TOLERANCE_M3:
                raise ValueError(
                    f"Объём {supplied_value} м³ не соответствует габаритам ({derived:.3f} м³)"
                )

        return {**data, "dimensions": dimensions, "volume": derived}
