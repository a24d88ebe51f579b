# backend/labhub/schemas/maintenance.py
"""Maintenance block schemas (staff only)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ._strict_base import StrictRequestModel


class MaintenanceBlockCreate(StrictRequestModel):
    lab_space_id: str = Field(..., min_length=1)
    starts_at: datetime
    ends_at: datetime
    title: str = Field("Maintenance", min_length=1, max_length=255)
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _validate_range(self) -> "MaintenanceBlockCreate":
        if self.starts_at.tzinfo is None or self.ends_at.tzinfo is None:
            raise ValueError("starts_at and ends_at must include a timezone offset")
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class MaintenanceBlockUpdate(StrictRequestModel):
    """Partial update; the merged range must still end after it starts."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    reason: Optional[str] = Field(None, max_length=1000)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _validate_range(self) -> "MaintenanceBlockUpdate":
        for field in ("title", "starts_at", "ends_at"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        for value in (self.starts_at, self.ends_at):
            if value is not None and value.tzinfo is None:
                raise ValueError("starts_at and ends_at must include a timezone offset")
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class MaintenanceBlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lab_space_id: str
    title: str
    reason: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    duration_hours: float
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
