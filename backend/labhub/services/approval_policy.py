# backend/labhub/services/approval_policy.py
"""Initial status for new lab bookings."""

from ..core.enums import LabBookingStatus
from ..domain.plan import PlanDescriptor


class ApprovalPolicy:
    """
    Auto-approve plans skip staff review; every other plan starts pending.

    Only the ``auto_approve`` flag is consulted, never the plan name.
    """

    @staticmethod
    def decide(plan: PlanDescriptor) -> LabBookingStatus:
        if plan.auto_approve:
            return LabBookingStatus.APPROVED
        return LabBookingStatus.PENDING
