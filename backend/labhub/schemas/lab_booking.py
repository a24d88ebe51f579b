# backend/labhub/schemas/lab_booking.py
"""
Lab booking request and response schemas.

Derived fields (duration, cancellable, check-in availability, badge color)
depend on the current time, so responses are built through
``LabBookingResponse.from_booking`` rather than plain attribute loading.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ..core.enums import LabBookingStatus, SlotType
from ..models.lab_booking import LabBooking
from ._strict_base import StrictRequestModel
from .lab_space import LabSpaceSummary


class LabBookingCreate(StrictRequestModel):
    lab_space_id: str = Field(..., min_length=1, description="Lab space to book")
    starts_at: datetime = Field(..., description="Start (ISO 8601 with offset)")
    ends_at: datetime = Field(..., description="End (ISO 8601 with offset), after starts_at")
    purpose: str = Field(..., min_length=10, max_length=1000, description="What the space is for")
    title: Optional[str] = Field(None, max_length=255)
    slot_type: SlotType = Field(SlotType.HOURLY, description="Informational slot label")

    @model_validator(mode="after")
    def _validate_range(self) -> "LabBookingCreate":
        if self.starts_at.tzinfo is None or self.ends_at.tzinfo is None:
            raise ValueError("starts_at and ends_at must include a timezone offset")
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class LabBookingApprove(StrictRequestModel):
    notes: Optional[str] = Field(None, max_length=1000)


class LabBookingReject(StrictRequestModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class LabBookingResponse(BaseModel):
    id: str
    user_id: str
    owner_name: Optional[str] = None
    lab_space_id: str
    lab_space: Optional[LabSpaceSummary] = None
    title: Optional[str] = None
    purpose: str
    starts_at: datetime
    ends_at: datetime
    slot_type: SlotType
    status: LabBookingStatus
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    checked_out_at: Optional[datetime] = None
    actual_duration_hours: Optional[float] = None
    created_at: Optional[datetime] = None

    duration_hours: float
    is_cancellable: bool
    can_check_in: bool
    can_check_out: bool
    status_color: str

    @classmethod
    def from_booking(
        cls, booking: LabBooking, now: datetime, check_in_early_minutes: int = 15
    ) -> "LabBookingResponse":
        space = booking.lab_space
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            owner_name=booking.owner_name,
            lab_space_id=booking.lab_space_id,
            lab_space=LabSpaceSummary.model_validate(space) if space is not None else None,
            title=booking.title,
            purpose=booking.purpose,
            starts_at=booking.starts_at,
            ends_at=booking.ends_at,
            slot_type=SlotType(booking.slot_type),
            status=LabBookingStatus(booking.status),
            admin_notes=booking.admin_notes,
            rejection_reason=booking.rejection_reason,
            checked_in_at=booking.checked_in_at,
            checked_out_at=booking.checked_out_at,
            actual_duration_hours=booking.actual_duration_hours,
            created_at=booking.created_at,
            duration_hours=booking.duration_hours,
            is_cancellable=booking.is_cancellable(now),
            can_check_in=booking.can_check_in(now, check_in_early_minutes),
            can_check_out=booking.can_check_out,
            status_color=booking.status_color,
        )
