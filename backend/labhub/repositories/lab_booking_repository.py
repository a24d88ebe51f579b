# backend/labhub/repositories/lab_booking_repository.py
"""
Lab booking data access.

Overlap queries use the half-open rule ``starts_at < end AND ends_at > start``
so back-to-back bookings never match each other.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Iterable, List, Optional, Tuple, cast
import zlib

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import ACTIVE_STATUSES, REFUNDED_STATUSES, LabBookingStatus, status_values
from ..core.exceptions import RepositoryException
from ..models.lab_booking import LabBooking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabBookingFilters:
    """Staff list filters; every field is optional."""

    status: Optional[LabBookingStatus] = None
    lab_space_id: Optional[str] = None
    user_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


class LabBookingRepository(BaseRepository[LabBooking]):
    def __init__(self, db: Session):
        super().__init__(db, LabBooking)
        self.logger = logging.getLogger(__name__)

    # Conflict queries

    def find_overlapping(
        self,
        lab_space_id: str,
        start: datetime,
        end: datetime,
        *,
        statuses: Iterable[LabBookingStatus] = ACTIVE_STATUSES,
        exclude_booking_id: Optional[str] = None,
    ) -> List[LabBooking]:
        """Bookings on the space in ``statuses`` whose range overlaps ``[start, end)``."""
        query = self._build_query().filter(
            LabBooking.lab_space_id == lab_space_id,
            LabBooking.status.in_(status_values(statuses)),
            LabBooking.starts_at < end,
            LabBooking.ends_at > start,
        )
        if exclude_booking_id:
            query = query.filter(LabBooking.id != exclude_booking_id)
        return self._execute_query(query.order_by(LabBooking.starts_at, LabBooking.id))

    # Quota queries

    def sum_consumed_hours(self, user_id: str, cycle_start: datetime, cycle_end: datetime) -> float:
        """
        Hours consumed by the user's bookings starting inside the cycle.

        Summed in Python from the loaded ranges so SQLite and PostgreSQL agree
        on precision; cycles hold at most a few dozen rows per user.
        """
        try:
            rows = cast(
                List[Tuple[datetime, datetime]],
                self.db.query(LabBooking.starts_at, LabBooking.ends_at)
                .filter(
                    LabBooking.user_id == user_id,
                    LabBooking.starts_at >= cycle_start,
                    LabBooking.starts_at < cycle_end,
                    LabBooking.status.notin_(status_values(REFUNDED_STATUSES)),
                )
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing lab hours for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute lab usage: {str(e)}")
        return sum((end - start).total_seconds() for start, end in rows) / 3600

    def lock_user_quota(self, user_id: str) -> None:
        """
        Serialize quota reads for one user until the transaction ends.

        PostgreSQL only; other dialects rely on the caller's named lock.
        """
        if self.dialect_name != "postgresql":
            return
        key = zlib.crc32(f"lab_user:{user_id}".encode("utf-8"))
        try:
            self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": key})
        except SQLAlchemyError as e:
            self.logger.error(f"Error taking quota lock for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock lab quota: {str(e)}")

    # Listing

    def list_for_user(
        self,
        user_id: str,
        *,
        status: Optional[LabBookingStatus] = None,
        starts_after: Optional[datetime] = None,
    ) -> List[LabBooking]:
        query = self._build_query().filter(LabBooking.user_id == user_id)
        if status is not None:
            query = query.filter(LabBooking.status == LabBookingStatus(status).value)
        if starts_after is not None:
            query = query.filter(LabBooking.starts_at > starts_after)
            return self._execute_query(query.order_by(LabBooking.starts_at.asc()))
        return self._execute_query(query.order_by(LabBooking.starts_at.desc()))

    def list_filtered(
        self, filters: LabBookingFilters, *, skip: int = 0, limit: int = 20
    ) -> Tuple[List[LabBooking], int]:
        """Page of bookings matching the staff filters plus the total match count."""
        query = self._build_query()
        if filters.status is not None:
            query = query.filter(LabBooking.status == LabBookingStatus(filters.status).value)
        if filters.lab_space_id:
            query = query.filter(LabBooking.lab_space_id == filters.lab_space_id)
        if filters.user_id:
            query = query.filter(LabBooking.user_id == filters.user_id)
        if filters.date_from is not None:
            query = query.filter(LabBooking.starts_at >= filters.date_from)
        if filters.date_to is not None:
            query = query.filter(LabBooking.starts_at < filters.date_to)

        total = self._execute_scalar(query.with_entities(func.count(LabBooking.id)))
        items = self._execute_query(
            query.order_by(LabBooking.starts_at.desc(), LabBooking.id).offset(skip).limit(limit)
        )
        return items, int(total or 0)
