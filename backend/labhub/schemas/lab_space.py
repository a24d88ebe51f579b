# backend/labhub/schemas/lab_space.py
"""Lab space catalog and availability schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.enums import LabSpaceType
from ..models.lab_space import LabSpace
from ..services.availability_calendar import CalendarEvent
from ._strict_base import StrictRequestModel


class LabSpaceSummary(BaseModel):
    """Compact space reference embedded in booking payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str


class LabSpaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    description: Optional[str] = None
    type: str
    type_name: str
    capacity: int
    amenities: List[str] = []
    safety_requirements: List[str] = []
    is_active: bool

    @classmethod
    def from_space(cls, space: LabSpace) -> "LabSpaceResponse":
        return cls.model_validate(space)


class CalendarEventResponse(BaseModel):
    id: str
    title: str
    start: datetime
    end: datetime
    type: Literal["booking", "maintenance"]
    status: Optional[str] = None
    reason: Optional[str] = None
    user: Optional[str] = None

    @classmethod
    def from_event(cls, event: CalendarEvent) -> "CalendarEventResponse":
        return cls(
            id=event.id,
            title=event.title,
            start=event.start,
            end=event.end,
            type=event.type,
            status=event.status,
            reason=event.reason,
            user=event.user,
        )


class AvailabilityResponse(BaseModel):
    space: LabSpaceResponse
    events: List[CalendarEventResponse]


class LabSpaceCreate(StrictRequestModel):
    """Staff payload for a new space; the slug is derived from the name when omitted."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=r"^[a-z0-9-]+$")
    type: LabSpaceType
    description: Optional[str] = None
    capacity: int = Field(4, ge=1, le=50)
    amenities: List[str] = Field(default_factory=list)
    safety_requirements: List[str] = Field(default_factory=list)
    is_active: bool = True


class LabSpaceUpdate(StrictRequestModel):
    """Partial update; only fields present in the body are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=r"^[a-z0-9-]+$")
    type: Optional[LabSpaceType] = None
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1, le=50)
    amenities: Optional[List[str]] = None
    safety_requirements: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _reject_nulls(self) -> "LabSpaceUpdate":
        for field in self.model_fields_set:
            if field != "description" and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self
