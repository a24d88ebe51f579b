# backend/labhub/core/enums.py
"""
Core enums for the LabHub booking engine.

Statuses and slot/space types are stored as their string values so the
database rows stay readable and portable across SQLite and PostgreSQL.
"""

from enum import Enum


class LabBookingStatus(str, Enum):
    """Lab booking lifecycle statuses."""

    PENDING = "pending"  # Awaiting staff review
    APPROVED = "approved"  # Confirmed, not yet attended
    CHECKED_IN = "checked_in"  # Occupant is in the space
    COMPLETED = "completed"  # Checked out
    REJECTED = "rejected"  # Declined by staff
    CANCELLED = "cancelled"  # Withdrawn before start
    NO_SHOW = "no_show"  # Never checked in


# Bookings that occupy time on a lab space
ACTIVE_STATUSES = frozenset(
    {
        LabBookingStatus.PENDING,
        LabBookingStatus.APPROVED,
        LabBookingStatus.CHECKED_IN,
        LabBookingStatus.COMPLETED,
    }
)

# Bookings whose hours were refunded
REFUNDED_STATUSES = frozenset({LabBookingStatus.CANCELLED, LabBookingStatus.REJECTED})

TERMINAL_STATUSES = frozenset(
    {
        LabBookingStatus.REJECTED,
        LabBookingStatus.CANCELLED,
        LabBookingStatus.COMPLETED,
        LabBookingStatus.NO_SHOW,
    }
)


class SlotType(str, Enum):
    """Informational slot label chosen by the requester."""

    HOURLY = "hourly"
    HALF_DAY = "half_day"
    FULL_DAY = "full_day"


class LabSpaceType(str, Enum):
    """Kinds of lab space in the catalog."""

    WET_LAB = "wet_lab"
    DRY_LAB = "dry_lab"
    GREENHOUSE = "greenhouse"
    MOBILE_LAB = "mobile_lab"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class LabAction(str, Enum):
    """Actions a principal may attempt on a lab booking."""

    VIEW = "view"
    CANCEL = "cancel"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_NO_SHOW = "mark_no_show"


class PermissionName(str, Enum):
    """Staff permissions granted by the identity collaborator."""

    VIEW_ALL_LAB_BOOKINGS = "view_all_lab_bookings"
    APPROVE_LAB_BOOKINGS = "approve_lab_bookings"
    MARK_LAB_ATTENDANCE = "mark_lab_attendance"
    MANAGE_LAB_SPACES = "manage_lab_spaces"


def status_values(statuses) -> list[str]:
    """Plain string values for use in SQL ``IN`` filters, in a stable order."""
    return sorted(LabBookingStatus(s).value for s in statuses)
