# backend/labhub/services/availability_calendar.py
"""
Availability calendar for a lab space.

Merges active bookings and maintenance blocks overlapping a window into one
chronological feed. The feed is rebuilt on every call and never cached.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_BOOKING_TITLE
from ..domain.time_range import TimeRange
from ..models.lab_booking import LabBooking
from ..models.lab_space import LabSpace
from ..models.maintenance_block import MaintenanceBlock
from ..repositories import RepositoryFactory
from ..repositories.lab_booking_repository import LabBookingRepository
from ..repositories.maintenance_repository import MaintenanceRepository
from .base import BaseService

EVENT_BOOKING = "booking"
EVENT_MAINTENANCE = "maintenance"

# Maintenance sorts ahead of a booking with the same start
_TYPE_ORDER = {EVENT_MAINTENANCE: 0, EVENT_BOOKING: 1}


@dataclass(frozen=True)
class CalendarEvent:
    id: str
    title: str
    start: datetime
    end: datetime
    type: str
    status: Optional[str] = None
    reason: Optional[str] = None
    user: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: LabBooking) -> "CalendarEvent":
        return cls(
            id=f"booking_{booking.id}",
            title=booking.title or DEFAULT_BOOKING_TITLE,
            start=booking.starts_at,
            end=booking.ends_at,
            type=EVENT_BOOKING,
            status=booking.status,
            user=booking.owner_name,
        )

    @classmethod
    def from_maintenance(cls, block: MaintenanceBlock) -> "CalendarEvent":
        return cls(
            id=f"maintenance_{block.id}",
            title=block.title,
            start=block.starts_at,
            end=block.ends_at,
            type=EVENT_MAINTENANCE,
            reason=block.reason,
        )

    @property
    def sort_key(self) -> tuple:
        return (self.start, _TYPE_ORDER[self.type], self.id)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "type": self.type,
        }
        if self.type == EVENT_BOOKING:
            payload["status"] = self.status
            if self.user:
                payload["user"] = self.user
        else:
            payload["reason"] = self.reason
        return payload


class AvailabilityCalendarBuilder(BaseService):
    def __init__(
        self,
        db: Session,
        booking_repository: Optional[LabBookingRepository] = None,
        maintenance_repository: Optional[MaintenanceRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_lab_booking_repository(db)
        )
        self.maintenance_repository = (
            maintenance_repository or RepositoryFactory.create_maintenance_repository(db)
        )

    @BaseService.measure_operation("build_calendar")
    def build(self, lab_space: LabSpace, time_range: TimeRange) -> List[CalendarEvent]:
        """Events overlapping ``time_range`` sorted by start time."""
        events = [
            CalendarEvent.from_booking(booking)
            for booking in self.booking_repository.find_overlapping(
                lab_space.id, time_range.start, time_range.end
            )
        ]
        events.extend(
            CalendarEvent.from_maintenance(block)
            for block in self.maintenance_repository.find_overlapping(
                lab_space.id, time_range.start, time_range.end
            )
        )
        events.sort(key=lambda event: event.sort_key)
        return events
