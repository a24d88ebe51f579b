# backend/labhub/services/conflict_checker.py
"""
Conflict Checker Service for LabHub

Decides whether a proposed range collides with active bookings or with
maintenance blocks on the same lab space. Callers must run it inside the
transaction that performs the write, while holding the lab-space lock, or two
concurrent requests can both pass the check.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..domain.time_range import TimeRange
from ..repositories import RepositoryFactory
from ..repositories.lab_booking_repository import LabBookingRepository
from ..repositories.maintenance_repository import MaintenanceRepository
from .base import BaseService


@dataclass(frozen=True)
class Conflict:
    kind: str  # booking | maintenance
    id: str
    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "id": self.id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


class ConflictChecker(BaseService):
    """Overlap detection against bookings in the active set and maintenance blocks."""

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

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        lab_space_id: str,
        time_range: TimeRange,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Conflict]:
        """
        Every booking or maintenance block overlapping ``time_range``.

        Maintenance blocks come first; a range touching a block or a booking
        only at an endpoint is not a conflict.
        """
        conflicts = [
            Conflict("maintenance", block.id, block.starts_at, block.ends_at)
            for block in self.maintenance_repository.find_overlapping(
                lab_space_id, time_range.start, time_range.end
            )
        ]
        conflicts.extend(
            Conflict("booking", booking.id, booking.starts_at, booking.ends_at)
            for booking in self.booking_repository.find_overlapping(
                lab_space_id,
                time_range.start,
                time_range.end,
                exclude_booking_id=exclude_booking_id,
            )
        )
        if conflicts:
            self.logger.info(
                "Lab space conflict detected",
                extra={
                    "lab_space_id": lab_space_id,
                    "range": str(time_range),
                    "conflicts": [c.to_dict() for c in conflicts],
                },
            )
        return conflicts

    def has_conflict(
        self,
        lab_space_id: str,
        time_range: TimeRange,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        return bool(self.find_conflicts(lab_space_id, time_range, exclude_booking_id))
