# backend/labhub/domain/plan.py
"""
Plan and quota value types.

``PlanDescriptor`` is supplied by the subscription collaborator; the booking
engine only relies on these fields and never on plan naming.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PlanDescriptor:
    name: str
    monthly_hour_limit: Optional[float]  # None = unlimited
    auto_approve: bool = False
    eligible: bool = True
    cycle_start_day: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.cycle_start_day <= 31:
            raise ValueError("cycle_start_day must be between 1 and 31")
        if self.monthly_hour_limit is not None and self.monthly_hour_limit < 0:
            raise ValueError("monthly_hour_limit cannot be negative")

    @property
    def unlimited(self) -> bool:
        return self.monthly_hour_limit is None


@dataclass(frozen=True)
class QuotaStatus:
    """Snapshot of a user's lab-hour allowance for one billing cycle."""

    has_access: bool
    reason: Optional[str] = None
    plan_name: Optional[str] = None
    limit: Optional[float] = None
    unlimited: bool = False
    used: float = 0.0
    remaining: Optional[float] = None
    cycle_start: Optional[datetime] = None
    resets_at: Optional[datetime] = None

    def allows(self, requested_hours: float) -> bool:
        if not self.has_access:
            return False
        if self.unlimited:
            return True
        return (self.remaining or 0.0) >= requested_hours

    def to_dict(self) -> Dict[str, Any]:
        if not self.has_access:
            return {"has_access": False, "reason": self.reason}
        payload = asdict(self)
        payload.pop("reason")
        payload.pop("cycle_start")
        return payload
