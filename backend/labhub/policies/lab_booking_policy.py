# backend/labhub/policies/lab_booking_policy.py
"""
Capability checks for lab bookings.

The booking engine never inspects roles. It asks ``can_act`` for a yes/no
answer based on ownership and explicit permissions, and callers decide how to
report a refusal. Whether the booking's status allows the action is a separate
question answered by the lifecycle.
"""

from typing import Dict, Optional

from ..core.enums import LabAction, PermissionName
from ..core.exceptions import ForbiddenException
from ..models.lab_booking import LabBooking
from ..principal import LabPrincipal

# Staff permission that unlocks each action regardless of ownership
_STAFF_PERMISSION: Dict[LabAction, PermissionName] = {
    LabAction.VIEW: PermissionName.VIEW_ALL_LAB_BOOKINGS,
    LabAction.CANCEL: PermissionName.APPROVE_LAB_BOOKINGS,
    LabAction.CHECK_IN: PermissionName.MARK_LAB_ATTENDANCE,
    LabAction.CHECK_OUT: PermissionName.MARK_LAB_ATTENDANCE,
    LabAction.APPROVE: PermissionName.APPROVE_LAB_BOOKINGS,
    LabAction.REJECT: PermissionName.APPROVE_LAB_BOOKINGS,
    LabAction.MARK_NO_SHOW: PermissionName.MARK_LAB_ATTENDANCE,
}

# Actions the booking owner may take on their own booking
_OWNER_ACTIONS = frozenset({LabAction.VIEW, LabAction.CANCEL, LabAction.CHECK_IN})


def can_act(principal: Optional[LabPrincipal], booking: LabBooking, action: LabAction) -> bool:
    if principal is None:
        return False
    action = LabAction(action)
    if action in _OWNER_ACTIONS and booking.user_id == principal.user_id:
        return True
    return principal.has_permission(_STAFF_PERMISSION[action])


def authorize(principal: Optional[LabPrincipal], booking: LabBooking, action: LabAction) -> None:
    """Raise ``ForbiddenException`` unless ``can_act`` allows the action."""
    if not can_act(principal, booking, action):
        raise ForbiddenException(
            "You are not allowed to perform this action on this booking",
            code="LAB_BOOKING_FORBIDDEN",
            details={"action": LabAction(action).value},
        )
