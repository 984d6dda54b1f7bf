"""Freshness DTOs (Pydantic v2, frozen)."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.freshness.constants import DEFAULT_STORAGE_CONDITIONS


class CreateBatchDTO(BaseModel):
    """A batch recorded by hand, with its own dates."""

    model_config = ConfigDict(frozen=True)

    flower_id: UUID
    quantity: int
    delivery_date: date
    expiry_date: Optional[date] = None
    batch_number: str = ""
    storage_conditions: str = DEFAULT_STORAGE_CONDITIONS
    temperature_celsius: Optional[int] = None
    humidity_percentage: Optional[int] = None
    notes: str = ""

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Batch quantity must be positive.")
        return v

    @field_validator("humidity_percentage")
    @classmethod
    def humidity_in_range(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Humidity must be between 0 and 100.")
        return v
