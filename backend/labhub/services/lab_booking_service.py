# backend/labhub/services/lab_booking_service.py
"""
Lab Booking Service for LabHub

Orchestrates booking creation and lifecycle changes on top of the quota
ledger, conflict checker, approval policy and lifecycle state machine.

Locking model for creation:
    1. Named locks ``lab_user:<user>`` then ``lab_space:<space>``, held until
       the transaction has committed or rolled back.
    2. Inside the transaction the lab-space row is read ``FOR UPDATE`` and, on
       PostgreSQL, a transaction-scoped advisory lock is taken for the user.
    3. Quota check, conflict check and insert all happen under those locks, so
       neither two overlapping bookings nor two quota-busting bookings can
       commit side by side.

Lifecycle transitions hold ``lab_booking:<booking>`` (after ``lab_space:``
when they free time) and re-read the row before validating it, so a stale
copy in the session can never drive a transition.

Authorization is the caller's job (see ``policies.lab_booking_policy``).
"""

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Callable, Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import LabBookingStatus, SlotType
from ..core.exceptions import (
    DomainException,
    NotEligibleException,
    NotFoundException,
    SlotUnavailableException,
    ValidationException,
)
from ..core.lab_space_lock import (
    NamedLockManager,
    get_lock_manager,
    lab_booking_key,
    lab_space_key,
    lab_user_key,
)
from ..domain.plan import QuotaStatus
from ..domain.time_range import TimeRange, utc_now
from ..models.lab_booking import LabBooking
from ..models.lab_space import LabSpace
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..principal import LabPrincipal
from ..repositories import RepositoryFactory
from ..repositories.lab_booking_repository import LabBookingFilters, LabBookingRepository
from ..repositories.lab_space_repository import LabSpaceRepository
from .approval_policy import ApprovalPolicy
from .availability_calendar import AvailabilityCalendarBuilder, CalendarEvent
from .base import BaseService
from .booking_lifecycle import BookingLifecycle
from .conflict_checker import ConflictChecker
from .quota_ledger import QuotaLedger

Clock = Callable[[], datetime]


class LabBookingService(BaseService):
    """
    Service layer for lab bookings.

    Every write runs in its own transaction; any error rolls the whole
    operation back, so a failed request never leaves a partial booking.
    """

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[LabBookingRepository] = None,
        lab_space_repository: Optional[LabSpaceRepository] = None,
        lock_manager: Optional[NamedLockManager] = None,
        clock: Clock = utc_now,
        check_in_early_minutes: Optional[int] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_lab_booking_repository(db)
        )
        self.lab_space_repository = (
            lab_space_repository or RepositoryFactory.create_lab_space_repository(db)
        )
        maintenance_repository = RepositoryFactory.create_maintenance_repository(db)
        self.quota_ledger = QuotaLedger(db, self.booking_repository)
        self.conflict_checker = ConflictChecker(db, self.booking_repository, maintenance_repository)
        self.calendar_builder = AvailabilityCalendarBuilder(
            db, self.booking_repository, maintenance_repository
        )
        self.lifecycle = BookingLifecycle(
            settings.lab_check_in_early_minutes
            if check_in_early_minutes is None
            else check_in_early_minutes
        )
        self.lock_manager = lock_manager or get_lock_manager()
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    @contextmanager
    def _track(self, event: str) -> Iterator[None]:
        try:
            yield
        except DomainException as exc:
            prometheus_metrics.record_lab_booking_event(event, exc.code)
            raise
        prometheus_metrics.record_lab_booking_event(event, "success")

    # Creation

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        principal: LabPrincipal,
        lab_space_id: str,
        time_range: TimeRange,
        purpose: str,
        title: Optional[str] = None,
        slot_type: SlotType = SlotType.HOURLY,
    ) -> LabBooking:
        """
        Create a booking for ``principal`` on a lab space.

        Raises:
            ValidationException: ``starts_at`` is not in the future
            NotEligibleException: The plan has no lab access
            NotFoundException: The space does not exist or is inactive
            QuotaExceededException: Not enough hours left in the cycle
            SlotUnavailableException: Overlaps a booking or maintenance block
            LockTimeoutException: The space or user lock is contended
        """
        with self._track("create"):
            now = self.now()
            if time_range.start <= now:
                raise ValidationException(
                    "Bookings must start in the future",
                    details={"starts_at": time_range.start.isoformat()},
                )
            plan = principal.plan
            if not plan.eligible:
                raise NotEligibleException(plan.name)

            requested_hours = time_range.duration_hours
            with self.lock_manager.hold(
                lab_user_key(principal.user_id), lab_space_key(lab_space_id)
            ):
                with self.transaction():
                    space = self.lab_space_repository.get_for_update(lab_space_id)
                    if space is None or not space.is_active:
                        raise NotFoundException(
                            "Lab space not found", details={"lab_space_id": lab_space_id}
                        )

                    self.booking_repository.lock_user_quota(principal.user_id)
                    self.quota_ledger.check(
                        principal.user_id, plan, requested_hours, time_range.start
                    )

                    conflicts = self.conflict_checker.find_conflicts(lab_space_id, time_range)
                    if conflicts:
                        raise SlotUnavailableException(
                            details={"conflicts": [c.to_dict() for c in conflicts]}
                        )

                    status = ApprovalPolicy.decide(plan)
                    booking = self.booking_repository.create(
                        user_id=principal.user_id,
                        owner_name=principal.username,
                        lab_space_id=lab_space_id,
                        title=title,
                        purpose=purpose,
                        starts_at=time_range.start,
                        ends_at=time_range.end,
                        slot_type=SlotType(slot_type).value,
                        status=status.value,
                    )

        self.log_operation(
            "create_lab_booking",
            booking_id=booking.id,
            user_id=principal.user_id,
            lab_space_id=lab_space_id,
            status=booking.status,
            hours=requested_hours,
        )
        return booking

    # Lifecycle transitions

    def _load(self, booking_id: str) -> LabBooking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Lab booking not found", details={"booking_id": booking_id})
        return booking

    def _load_for_update(self, booking_id: str) -> LabBooking:
        booking = self.booking_repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException("Lab booking not found", details={"booking_id": booking_id})
        return booking

    def _transition(
        self,
        event: str,
        booking_id: str,
        apply: Callable[[LabBooking, datetime], LabBooking],
        *,
        space_locked: bool = False,
    ) -> LabBooking:
        with self._track(event):
            keys = [lab_booking_key(booking_id)]
            if space_locked:
                # Freeing time must serialize with conflict checks on the space
                keys.insert(0, lab_space_key(self._load(booking_id).lab_space_id))
            with self.lock_manager.hold(*keys):
                booking = self._apply_in_transaction(booking_id, apply)
        self.log_operation(
            f"{event}_lab_booking", booking_id=booking.id, status=booking.status
        )
        return booking

    def _apply_in_transaction(
        self, booking_id: str, apply: Callable[[LabBooking, datetime], LabBooking]
    ) -> LabBooking:
        with self.transaction():
            booking = self._load_for_update(booking_id)
            apply(booking, self.now())
            self.booking_repository.flush()
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, principal: LabPrincipal, booking_id: str) -> LabBooking:
        """Cancel before the start; the booking's hours return to the owner's quota."""
        self.logger.debug(
            "Cancelling lab booking",
            extra={"booking_id": booking_id, "actor_id": principal.user_id},
        )
        return self._transition(
            "cancel", booking_id, lambda b, now: self.lifecycle.cancel(b, now), space_locked=True
        )

    @BaseService.measure_operation("approve_booking")
    def approve_booking(self, booking_id: str, notes: Optional[str] = None) -> LabBooking:
        return self._transition(
            "approve", booking_id, lambda b, now: self.lifecycle.approve(b, notes)
        )

    @BaseService.measure_operation("reject_booking")
    def reject_booking(self, booking_id: str, reason: str) -> LabBooking:
        return self._transition(
            "reject",
            booking_id,
            lambda b, now: self.lifecycle.reject(b, reason),
            space_locked=True,
        )

    @BaseService.measure_operation("check_in")
    def check_in(
        self, principal: LabPrincipal, booking_id: str, manual: bool = False
    ) -> LabBooking:
        """
        Mark the occupant as present.

        ``manual`` is the staff override that ignores the early-window bound.
        """
        self.logger.debug(
            "Checking in lab booking",
            extra={"booking_id": booking_id, "actor_id": principal.user_id, "manual": manual},
        )
        return self._transition(
            "check_in", booking_id, lambda b, now: self.lifecycle.check_in(b, now, manual)
        )

    @BaseService.measure_operation("check_out")
    def check_out(self, booking_id: str) -> LabBooking:
        return self._transition(
            "check_out", booking_id, lambda b, now: self.lifecycle.check_out(b, now)
        )

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(self, booking_id: str) -> LabBooking:
        return self._transition(
            "no_show", booking_id, lambda b, now: self.lifecycle.mark_no_show(b, now)
        )

    # Reads

    @BaseService.measure_operation("get_quota_status")
    def get_quota_status(self, principal: LabPrincipal) -> QuotaStatus:
        return self.quota_ledger.status(principal.user_id, principal.plan, self.now())

    @BaseService.measure_operation("get_availability_calendar")
    def get_availability_calendar(
        self, slug: str, time_range: TimeRange
    ) -> Tuple[LabSpace, List[CalendarEvent]]:
        space = self.lab_space_repository.get_by_slug(slug)
        if space is None or not space.is_active:
            raise NotFoundException("Lab space not found", details={"slug": slug})
        return space, self.calendar_builder.build(space, time_range)

    def get_booking(self, booking_id: str) -> LabBooking:
        return self._load(booking_id)

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        principal: LabPrincipal,
        status: Optional[LabBookingStatus] = None,
        upcoming: bool = False,
    ) -> List[LabBooking]:
        """The caller's own bookings; ``upcoming`` keeps only future starts, soonest first."""
        return self.booking_repository.list_for_user(
            principal.user_id,
            status=status,
            starts_after=self.now() if upcoming else None,
        )

    @BaseService.measure_operation("list_all_bookings")
    def list_all_bookings(
        self, filters: LabBookingFilters, page: int = 1, per_page: int = 20
    ) -> Tuple[List[LabBooking], int]:
        page = max(page, 1)
        return self.booking_repository.list_filtered(
            filters, skip=(page - 1) * per_page, limit=per_page
        )
