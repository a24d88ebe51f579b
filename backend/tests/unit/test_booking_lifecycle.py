from datetime import timedelta
import itertools

import pytest

from labhub.core.enums import TERMINAL_STATUSES, LabBookingStatus
from labhub.core.exceptions import (
    BusinessRuleException,
    InvalidStateTransitionException,
    OutsideCheckInWindowException,
    TooLateToCancelException,
)
from labhub.domain.plan import PlanDescriptor
from labhub.models.lab_booking import LabBooking
from labhub.services.approval_policy import ApprovalPolicy
from labhub.services.booking_lifecycle import (
    TRANSITIONS,
    BookingLifecycle,
    LifecycleEvent,
    allowed_events,
    next_status,
)
from tests.helpers.lab_time import FROZEN_NOW, at


def _booking(status: LabBookingStatus = LabBookingStatus.APPROVED, **overrides) -> LabBooking:
    return LabBooking(
        id=overrides.pop("id", "01HBOOKING0000000000000000"),
        user_id="01HUSERA000000000000000000",
        lab_space_id="01HSPACE000000000000000000",
        purpose="PCR run for soil samples",
        starts_at=overrides.pop("starts_at", at(12, 9)),
        ends_at=overrides.pop("ends_at", at(12, 12)),
        status=status.value,
        **overrides,
    )


@pytest.fixture
def lifecycle() -> BookingLifecycle:
    return BookingLifecycle(check_in_early_minutes=15)


class TestTransitionTable:
    def test_allowed_events_per_status(self) -> None:
        assert allowed_events(LabBookingStatus.PENDING) == {
            LifecycleEvent.APPROVE,
            LifecycleEvent.REJECT,
            LifecycleEvent.CANCEL,
        }
        assert allowed_events(LabBookingStatus.APPROVED) == {
            LifecycleEvent.CANCEL,
            LifecycleEvent.CHECK_IN,
            LifecycleEvent.MARK_NO_SHOW,
        }
        assert allowed_events(LabBookingStatus.CHECKED_IN) == {LifecycleEvent.CHECK_OUT}

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_statuses_have_no_outgoing_edges(self, status: LabBookingStatus) -> None:
        assert allowed_events(status) == frozenset()
        for event in LifecycleEvent:
            with pytest.raises(InvalidStateTransitionException):
                next_status(status, event)

    def test_no_sequence_leaves_a_terminal_status(self) -> None:
        for status, events in itertools.product(
            TERMINAL_STATUSES, itertools.product(LifecycleEvent, repeat=2)
        ):
            current = status
            for event in events:
                target = TRANSITIONS.get((current, event))
                if target is not None:
                    current = target
            assert current == status

    def test_illegal_move_message(self) -> None:
        with pytest.raises(InvalidStateTransitionException) as exc_info:
            next_status(LabBookingStatus.COMPLETED, LifecycleEvent.CANCEL)

        assert exc_info.value.message == "Cannot cancel a booking that is completed"
        assert exc_info.value.status_code == 409

    def test_accepts_plain_string_status(self) -> None:
        assert next_status("pending", LifecycleEvent.APPROVE) == LabBookingStatus.APPROVED


class TestApproveReject:
    def test_approve_pending_with_notes(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.PENDING)

        lifecycle.approve(booking, notes="Bring your own reagents")

        assert booking.status == "approved"
        assert booking.admin_notes == "Bring your own reagents"

    def test_approve_twice_fails(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.APPROVED)

        with pytest.raises(InvalidStateTransitionException):
            lifecycle.approve(booking)

    def test_reject_records_reason(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.PENDING)

        lifecycle.reject(booking, "Space reserved for training")

        assert booking.status == "rejected"
        assert booking.rejection_reason == "Space reserved for training"

    def test_approved_booking_cannot_be_rejected(self, lifecycle: BookingLifecycle) -> None:
        with pytest.raises(InvalidStateTransitionException):
            lifecycle.reject(_booking(LabBookingStatus.APPROVED), "late change")


class TestCancel:
    def test_cancel_before_start(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.APPROVED)

        lifecycle.cancel(booking, FROZEN_NOW)

        assert booking.status == "cancelled"

    def test_cancel_at_start_is_too_late(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.APPROVED)

        with pytest.raises(TooLateToCancelException):
            lifecycle.cancel(booking, at(12, 9))
        assert booking.status == "approved"

    def test_state_error_wins_over_timing(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking(LabBookingStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionException):
            lifecycle.cancel(booking, at(12, 13))


class TestCheckIn:
    def test_owner_can_check_in_inside_early_window(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()

        lifecycle.check_in(booking, at(12, 8, 45))

        assert booking.status == "checked_in"
        assert booking.checked_in_at == at(12, 8, 45)

    def test_owner_too_early(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()

        with pytest.raises(OutsideCheckInWindowException):
            lifecycle.check_in(booking, at(12, 8, 44))
        assert booking.status == "approved"
        assert booking.checked_in_at is None

    def test_check_in_closes_at_end(self, lifecycle: BookingLifecycle) -> None:
        with pytest.raises(OutsideCheckInWindowException):
            lifecycle.check_in(_booking(), at(12, 12))

    def test_manual_check_in_ignores_early_bound_only(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()
        lifecycle.check_in(booking, at(12, 6), manual=True)
        assert booking.status == "checked_in"

        with pytest.raises(OutsideCheckInWindowException):
            lifecycle.check_in(_booking(), at(12, 12), manual=True)

    def test_second_check_in_is_rejected_and_keeps_timestamp(
        self, lifecycle: BookingLifecycle
    ) -> None:
        booking = _booking()
        lifecycle.check_in(booking, at(12, 9))

        with pytest.raises(InvalidStateTransitionException):
            lifecycle.check_in(booking, at(12, 9, 30))
        assert booking.checked_in_at == at(12, 9)

    def test_pending_booking_cannot_check_in(self, lifecycle: BookingLifecycle) -> None:
        with pytest.raises(InvalidStateTransitionException):
            lifecycle.check_in(_booking(LabBookingStatus.PENDING), at(12, 9))

    def test_custom_early_window(self) -> None:
        booking = _booking()

        BookingLifecycle(check_in_early_minutes=60).check_in(booking, at(12, 8))

        assert booking.status == "checked_in"


class TestCheckOutAndNoShow:
    def test_check_out_records_actual_hours(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()
        lifecycle.check_in(booking, at(12, 9, 15))

        lifecycle.check_out(booking, at(12, 11, 45))

        assert booking.status == "completed"
        assert booking.checked_out_at == at(12, 11, 45)
        assert booking.actual_duration_hours == 2.5
        assert booking.elapsed_hours() == 2.5

    def test_check_out_requires_check_in(self, lifecycle: BookingLifecycle) -> None:
        with pytest.raises(InvalidStateTransitionException):
            lifecycle.check_out(_booking(), at(12, 11))

    def test_no_show_after_end(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()

        lifecycle.mark_no_show(booking, at(12, 12))

        assert booking.status == "no_show"

    def test_no_show_before_end_is_refused(self, lifecycle: BookingLifecycle) -> None:
        booking = _booking()

        with pytest.raises(BusinessRuleException) as exc_info:
            lifecycle.mark_no_show(booking, at(12, 11, 59))
        assert exc_info.value.code == "NO_SHOW_TOO_EARLY"
        assert booking.status == "approved"

    def test_is_terminal(self) -> None:
        assert BookingLifecycle.is_terminal(LabBookingStatus.NO_SHOW)
        assert BookingLifecycle.is_terminal("completed")
        assert not BookingLifecycle.is_terminal(LabBookingStatus.CHECKED_IN)


class TestBookingDerivedFields:
    def test_cancellable_and_check_in_flags(self) -> None:
        booking = _booking()

        assert booking.is_cancellable(FROZEN_NOW)
        assert not booking.is_cancellable(at(12, 9))
        assert not booking.can_check_in(FROZEN_NOW)
        assert booking.can_check_in(at(12, 8, 45))
        assert booking.check_in_opens_at() == at(12, 9) - timedelta(minutes=15)
        assert booking.duration_hours == 3.0
        assert booking.status_color == "blue"

    def test_defaults_for_new_booking(self) -> None:
        booking = LabBooking(
            user_id="u", lab_space_id="s", purpose="p", starts_at=at(12, 9), ends_at=at(12, 10)
        )

        assert booking.status == "pending"
        assert booking.slot_type == "hourly"


class TestApprovalPolicy:
    def test_auto_approve_plan(self, premium_plan: PlanDescriptor) -> None:
        assert ApprovalPolicy.decide(premium_plan) == LabBookingStatus.APPROVED

    def test_review_plan(self, student_plan: PlanDescriptor) -> None:
        assert ApprovalPolicy.decide(student_plan) == LabBookingStatus.PENDING

    def test_plan_name_is_ignored(self) -> None:
        plan = PlanDescriptor(name="Premium Member", monthly_hour_limit=10, auto_approve=False)

        assert ApprovalPolicy.decide(plan) == LabBookingStatus.PENDING
