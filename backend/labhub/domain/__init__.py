"""Plain value types shared by services, repositories and schemas."""

from .plan import PlanDescriptor, QuotaStatus
from .time_range import TimeRange, utc_now

__all__ = ["PlanDescriptor", "QuotaStatus", "TimeRange", "utc_now"]
