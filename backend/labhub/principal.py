"""Principal abstraction for the authenticated caller of the booking engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from .core.enums import PermissionName
from .domain.plan import PlanDescriptor


@dataclass(frozen=True)
class LabPrincipal:
    """
    Authenticated user as handed over by the identity collaborator.

    The engine never looks at roles, only at the explicit permission set and
    the plan descriptor attached to the user.
    """

    user_id: str
    username: str
    plan: PlanDescriptor
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def id(self) -> str:
        return self.user_id

    def has_permission(self, permission: PermissionName | str) -> bool:
        value = permission.value if isinstance(permission, PermissionName) else permission
        return value in self.permissions

    @property
    def is_staff(self) -> bool:
        return any(
            self.has_permission(p)
            for p in (
                PermissionName.VIEW_ALL_LAB_BOOKINGS,
                PermissionName.APPROVE_LAB_BOOKINGS,
                PermissionName.MARK_LAB_ATTENDANCE,
            )
        )
