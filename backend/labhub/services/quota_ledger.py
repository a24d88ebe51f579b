# backend/labhub/services/quota_ledger.py
"""
Quota Ledger for LabHub

Lab hours are never stored as a balance. Usage is recomputed from the user's
bookings in the billing cycle, so cancelling or rejecting a booking refunds
its hours without any extra bookkeeping.
"""

import calendar
from datetime import datetime, timezone
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import HOURS_PRECISION
from ..core.exceptions import NotEligibleException, QuotaExceededException
from ..domain.plan import PlanDescriptor, QuotaStatus
from ..domain.time_range import ensure_utc
from ..repositories import RepositoryFactory
from ..repositories.lab_booking_repository import LabBookingRepository
from .base import BaseService

PLAN_NOT_ELIGIBLE = "plan_not_eligible"


def _cycle_anchor(year: int, month: int, cycle_start_day: int) -> datetime:
    # Short months clamp the anchor to their last day
    day = min(cycle_start_day, calendar.monthrange(year, month)[1])
    return datetime(year, month, day, tzinfo=timezone.utc)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def cycle_window(cycle_start_day: int, at: datetime) -> Tuple[datetime, datetime]:
    """
    Billing cycle ``[start, end)`` that contains ``at``.

    Cycles start at 00:00 UTC on ``cycle_start_day`` of each month.
    """
    at = ensure_utc(at)
    anchor = _cycle_anchor(at.year, at.month, cycle_start_day)
    if at >= anchor:
        next_year, next_month = _shift_month(at.year, at.month, 1)
        return anchor, _cycle_anchor(next_year, next_month, cycle_start_day)
    prev_year, prev_month = _shift_month(at.year, at.month, -1)
    return _cycle_anchor(prev_year, prev_month, cycle_start_day), anchor


class QuotaLedger(BaseService):
    """Read-only view of a user's lab-hour consumption."""

    def __init__(self, db: Session, repository: Optional[LabBookingRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_lab_booking_repository(db)

    @BaseService.measure_operation("quota_status")
    def status(self, user_id: str, plan: PlanDescriptor, now: datetime) -> QuotaStatus:
        if not plan.eligible:
            return QuotaStatus(has_access=False, reason=PLAN_NOT_ELIGIBLE, plan_name=plan.name)

        cycle_start, cycle_end = cycle_window(plan.cycle_start_day, now)
        used = round(
            self.repository.sum_consumed_hours(user_id, cycle_start, cycle_end), HOURS_PRECISION
        )
        if plan.unlimited:
            remaining = None
            limit = None
        else:
            limit = float(plan.monthly_hour_limit)
            remaining = round(max(0.0, limit - used), HOURS_PRECISION)

        return QuotaStatus(
            has_access=True,
            plan_name=plan.name,
            limit=limit,
            unlimited=plan.unlimited,
            used=used,
            remaining=remaining,
            cycle_start=cycle_start,
            resets_at=cycle_end,
        )

    def check(
        self, user_id: str, plan: PlanDescriptor, requested_hours: float, at: datetime
    ) -> QuotaStatus:
        """
        Ensure ``requested_hours`` fit in the cycle containing ``at``.

        Raises:
            NotEligibleException: The plan has no lab access
            QuotaExceededException: Remaining hours are below the request
        """
        quota = self.status(user_id, plan, at)
        if not quota.has_access:
            raise NotEligibleException(plan.name)
        if not quota.allows(requested_hours):
            raise QuotaExceededException(quota.remaining or 0.0, requested_hours)
        return quota
