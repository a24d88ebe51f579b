# backend/labhub/models/lab_booking.py
"""
Lab booking model.

A booking reserves a lab space for a half-open ``[starts_at, ends_at)`` range.
Quota usage is never stored: it is derived from the bookings themselves, so a
status change is the only thing needed to consume or refund hours.

Status changes go through ``BookingLifecycle``; the helpers here only answer
read-side questions for the API and the policy layer.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..core.constants import STATUS_COLORS
from ..core.enums import LabBookingStatus, SlotType
from ..core.ulid_helper import generate_ulid
from ..database import Base
from ..domain.time_range import TimeRange, hours_between, utc_now
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class LabBooking(Base):
    """Reservation of one lab space by one user."""

    __tablename__ = "lab_bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    user_id = Column(String(26), nullable=False, index=True)
    # Display-name snapshot for calendars, taken at creation
    owner_name = Column(String(255), nullable=True)
    lab_space_id = Column(
        String(26), ForeignKey("lab_spaces.id", ondelete="CASCADE"), nullable=False
    )

    title = Column(String(255), nullable=True)
    purpose = Column(Text, nullable=False)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    slot_type = Column(String(20), nullable=False, default=SlotType.HOURLY.value)
    status = Column(String(20), nullable=False, default=LabBookingStatus.PENDING.value, index=True)

    admin_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    checked_in_at = Column(UTCDateTime, nullable=True)
    checked_out_at = Column(UTCDateTime, nullable=True)
    actual_duration_hours = Column(Float, nullable=True)

    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, onupdate=utc_now)

    lab_space = relationship("LabSpace", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_lab_bookings_range"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'checked_in', 'completed', "
            "'rejected', 'cancelled', 'no_show')",
            name="ck_lab_bookings_status",
        ),
        CheckConstraint(
            "slot_type IN ('hourly', 'half_day', 'full_day')",
            name="ck_lab_bookings_slot_type",
        ),
        Index("idx_lab_bookings_space_range", "lab_space_id", "starts_at", "ends_at"),
        Index("idx_lab_bookings_user_starts", "user_id", "starts_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = LabBookingStatus.PENDING.value
        if not self.slot_type:
            self.slot_type = SlotType.HOURLY.value

    def __repr__(self) -> str:
        return (
            f"<LabBooking {self.id}: user={self.user_id}, space={self.lab_space_id}, "
            f"{self.starts_at}-{self.ends_at}, status={self.status}>"
        )

    @property
    def status_enum(self) -> LabBookingStatus:
        return LabBookingStatus(self.status)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.starts_at, self.ends_at)

    @property
    def duration_hours(self) -> float:
        """Booked length in hours at ledger precision."""
        return hours_between(self.starts_at, self.ends_at)

    @property
    def status_color(self) -> str:
        return STATUS_COLORS.get(str(self.status), "gray")

    def is_cancellable(self, now: datetime) -> bool:
        """Only pending/approved bookings that have not started yet."""
        return (
            self.status_enum in (LabBookingStatus.PENDING, LabBookingStatus.APPROVED)
            and self.starts_at > now
        )

    def check_in_opens_at(self, early_minutes: int = 15) -> datetime:
        return self.starts_at - timedelta(minutes=early_minutes)

    def can_check_in(self, now: datetime, early_minutes: int = 15) -> bool:
        """Approved and inside ``[starts_at - early_minutes, ends_at)``."""
        if self.status_enum != LabBookingStatus.APPROVED:
            return False
        return self.check_in_opens_at(early_minutes) <= now < self.ends_at

    @property
    def can_check_out(self) -> bool:
        return self.status_enum == LabBookingStatus.CHECKED_IN

    def elapsed_hours(self) -> Optional[float]:
        """Actual presence time between check-in and check-out, if both are known."""
        if self.checked_in_at is None or self.checked_out_at is None:
            return None
        return hours_between(self.checked_in_at, self.checked_out_at)
