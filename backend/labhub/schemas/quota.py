"""Quota status payload."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class QuotaStatusResponse(BaseModel):
    """Ineligible callers only get ``has_access`` and ``reason``."""

    has_access: bool
    reason: Optional[str] = None
    plan_name: Optional[str] = None
    limit: Optional[float] = None
    unlimited: Optional[bool] = None
    used: Optional[float] = None
    remaining: Optional[float] = None
    resets_at: Optional[datetime] = None
