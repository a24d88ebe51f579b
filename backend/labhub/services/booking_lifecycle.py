# backend/labhub/services/booking_lifecycle.py
"""
Booking lifecycle state machine.

Every status change on a ``LabBooking`` goes through this module. The table
below is the whole set of legal moves; terminal statuses have no outgoing
edges, so no sequence of events can leave them.

Quota side effects are implicit: the ledger excludes cancelled and rejected
bookings, so moving into either state refunds the hours.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from typing import Dict, FrozenSet, Optional, Tuple

from ..core.enums import TERMINAL_STATUSES, LabBookingStatus
from ..core.exceptions import (
    BusinessRuleException,
    InvalidStateTransitionException,
    OutsideCheckInWindowException,
    TooLateToCancelException,
)
from ..domain.time_range import hours_between
from ..models.lab_booking import LabBooking

logger = logging.getLogger(__name__)


class LifecycleEvent(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    CHECK_IN = "check in"
    CHECK_OUT = "check out"
    MARK_NO_SHOW = "mark no-show"


TRANSITIONS: Dict[Tuple[LabBookingStatus, LifecycleEvent], LabBookingStatus] = {
    (LabBookingStatus.PENDING, LifecycleEvent.APPROVE): LabBookingStatus.APPROVED,
    (LabBookingStatus.PENDING, LifecycleEvent.REJECT): LabBookingStatus.REJECTED,
    (LabBookingStatus.PENDING, LifecycleEvent.CANCEL): LabBookingStatus.CANCELLED,
    (LabBookingStatus.APPROVED, LifecycleEvent.CANCEL): LabBookingStatus.CANCELLED,
    (LabBookingStatus.APPROVED, LifecycleEvent.CHECK_IN): LabBookingStatus.CHECKED_IN,
    (LabBookingStatus.APPROVED, LifecycleEvent.MARK_NO_SHOW): LabBookingStatus.NO_SHOW,
    (LabBookingStatus.CHECKED_IN, LifecycleEvent.CHECK_OUT): LabBookingStatus.COMPLETED,
}


def allowed_events(status: LabBookingStatus) -> FrozenSet[LifecycleEvent]:
    status = LabBookingStatus(status)
    return frozenset(event for (source, event) in TRANSITIONS if source == status)


def next_status(status: LabBookingStatus, event: LifecycleEvent) -> LabBookingStatus:
    """
    Target status for ``event`` from ``status``.

    Raises:
        InvalidStateTransitionException: No edge exists for the pair
    """
    status = LabBookingStatus(status)
    target = TRANSITIONS.get((status, LifecycleEvent(event)))
    if target is None:
        raise InvalidStateTransitionException(status.value, LifecycleEvent(event).value)
    return target


class BookingLifecycle:
    """Applies guarded transitions to a booking in memory; callers persist."""

    def __init__(self, check_in_early_minutes: int = 15):
        self.check_in_early_minutes = check_in_early_minutes

    def _apply(self, booking: LabBooking, event: LifecycleEvent) -> LabBookingStatus:
        previous = booking.status_enum
        target = next_status(previous, event)
        booking.status = target.value
        logger.info(
            "Lab booking transition",
            extra={
                "booking_id": booking.id,
                "event": event.value,
                "from_status": previous.value,
                "to_status": target.value,
            },
        )
        return target

    def approve(self, booking: LabBooking, notes: Optional[str] = None) -> LabBooking:
        self._apply(booking, LifecycleEvent.APPROVE)
        if notes:
            booking.admin_notes = notes
        return booking

    def reject(self, booking: LabBooking, reason: str) -> LabBooking:
        self._apply(booking, LifecycleEvent.REJECT)
        booking.rejection_reason = reason
        return booking

    def cancel(self, booking: LabBooking, now: datetime) -> LabBooking:
        next_status(booking.status_enum, LifecycleEvent.CANCEL)
        if booking.starts_at <= now:
            raise TooLateToCancelException(booking.starts_at.isoformat())
        self._apply(booking, LifecycleEvent.CANCEL)
        return booking

    def check_in(self, booking: LabBooking, now: datetime, manual: bool = False) -> LabBooking:
        """
        Owner check-in opens ``check_in_early_minutes`` before the start; a
        staff manual check-in may happen any time before ``ends_at``.
        A repeated check-in fails and leaves ``checked_in_at`` untouched.
        """
        next_status(booking.status_enum, LifecycleEvent.CHECK_IN)
        opens_at = booking.starts_at - timedelta(minutes=self.check_in_early_minutes)
        too_early = not manual and now < opens_at
        if too_early or now >= booking.ends_at:
            raise OutsideCheckInWindowException(opens_at.isoformat(), booking.ends_at.isoformat())
        self._apply(booking, LifecycleEvent.CHECK_IN)
        booking.checked_in_at = now
        return booking

    def check_out(self, booking: LabBooking, now: datetime) -> LabBooking:
        self._apply(booking, LifecycleEvent.CHECK_OUT)
        booking.checked_out_at = now
        checked_in_at = booking.checked_in_at or booking.starts_at
        booking.actual_duration_hours = max(0.0, hours_between(checked_in_at, now))
        return booking

    def mark_no_show(self, booking: LabBooking, now: datetime) -> LabBooking:
        """Staff-only; the booking must be over without a check-in. Hours stay consumed."""
        next_status(booking.status_enum, LifecycleEvent.MARK_NO_SHOW)
        if now < booking.ends_at:
            raise BusinessRuleException(
                "A booking can only be marked as no-show after it has ended",
                code="NO_SHOW_TOO_EARLY",
                details={"ends_at": booking.ends_at.isoformat()},
            )
        self._apply(booking, LifecycleEvent.MARK_NO_SHOW)
        return booking

    @staticmethod
    def is_terminal(status: LabBookingStatus) -> bool:
        return LabBookingStatus(status) in TERMINAL_STATUSES
