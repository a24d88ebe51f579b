from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from labhub.core.exceptions import NotEligibleException, QuotaExceededException
from labhub.domain.plan import PlanDescriptor, QuotaStatus
from labhub.services.quota_ledger import PLAN_NOT_ELIGIBLE, QuotaLedger, cycle_window
from tests.helpers.lab_time import FROZEN_NOW


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def repository() -> Mock:
    repo = Mock()
    repo.sum_consumed_hours.return_value = 0.0
    return repo


@pytest.fixture
def ledger(repository: Mock) -> QuotaLedger:
    return QuotaLedger(Mock(), repository)


class TestCycleWindow:
    def test_first_of_month_cycle(self) -> None:
        assert cycle_window(1, _utc(2026, 3, 10, 8)) == (_utc(2026, 3, 1), _utc(2026, 4, 1))

    def test_instant_before_anchor_belongs_to_previous_cycle(self) -> None:
        assert cycle_window(15, _utc(2026, 3, 10)) == (_utc(2026, 2, 15), _utc(2026, 3, 15))

    def test_anchor_instant_starts_a_new_cycle(self) -> None:
        assert cycle_window(15, _utc(2026, 3, 15)) == (_utc(2026, 3, 15), _utc(2026, 4, 15))

    def test_short_month_clamps_anchor(self) -> None:
        assert cycle_window(31, _utc(2026, 2, 28, 12)) == (_utc(2026, 2, 28), _utc(2026, 3, 31))
        assert cycle_window(31, _utc(2026, 2, 27)) == (_utc(2026, 1, 31), _utc(2026, 2, 28))

    def test_year_rollover(self) -> None:
        assert cycle_window(1, _utc(2026, 12, 31, 23)) == (_utc(2026, 12, 1), _utc(2027, 1, 1))
        assert cycle_window(5, _utc(2027, 1, 2)) == (_utc(2026, 12, 5), _utc(2027, 1, 5))


class TestQuotaLedgerStatus:
    def test_limited_plan_reports_remaining(
        self, ledger: QuotaLedger, repository: Mock, premium_plan: PlanDescriptor
    ) -> None:
        repository.sum_consumed_hours.return_value = 3.0

        status = ledger.status("user-1", premium_plan, FROZEN_NOW)

        assert status.has_access is True
        assert status.limit == 10.0
        assert status.used == 3.0
        assert status.remaining == 7.0
        assert status.resets_at == _utc(2026, 4, 1)
        repository.sum_consumed_hours.assert_called_once_with(
            "user-1", _utc(2026, 3, 1), _utc(2026, 4, 1)
        )

    def test_remaining_never_goes_negative(
        self, ledger: QuotaLedger, repository: Mock, basic_plan: PlanDescriptor
    ) -> None:
        # Usage can exceed a limit that was lowered mid-cycle
        repository.sum_consumed_hours.return_value = 5.0

        status = ledger.status("user-1", basic_plan, FROZEN_NOW)

        assert status.used == 5.0
        assert status.remaining == 0.0

    def test_unlimited_plan(self, ledger: QuotaLedger, repository: Mock) -> None:
        repository.sum_consumed_hours.return_value = 42.5
        plan = PlanDescriptor(name="Enterprise", monthly_hour_limit=None, auto_approve=True)

        status = ledger.status("user-1", plan, FROZEN_NOW)

        assert status.unlimited is True
        assert status.limit is None
        assert status.remaining is None
        assert status.used == 42.5
        assert status.allows(1000)

    def test_ineligible_plan_skips_the_ledger(
        self, ledger: QuotaLedger, repository: Mock, free_plan: PlanDescriptor
    ) -> None:
        status = ledger.status("user-1", free_plan, FROZEN_NOW)

        assert status.to_dict() == {"has_access": False, "reason": PLAN_NOT_ELIGIBLE}
        repository.sum_consumed_hours.assert_not_called()


class TestQuotaLedgerCheck:
    def test_request_that_fits_passes(
        self, ledger: QuotaLedger, repository: Mock, premium_plan: PlanDescriptor
    ) -> None:
        repository.sum_consumed_hours.return_value = 7.0

        quota = ledger.check("user-1", premium_plan, 3.0, FROZEN_NOW)

        assert quota.remaining == 3.0

    def test_request_over_remaining_is_refused(
        self, ledger: QuotaLedger, repository: Mock, basic_plan: PlanDescriptor
    ) -> None:
        with pytest.raises(QuotaExceededException) as exc_info:
            ledger.check("user-1", basic_plan, 3.0, FROZEN_NOW)

        assert exc_info.value.message == "Insufficient lab hours: remaining 2h, requested 3h."
        assert exc_info.value.code == "QUOTA_EXCEEDED"

    def test_ineligible_plan_raises(
        self, ledger: QuotaLedger, free_plan: PlanDescriptor
    ) -> None:
        with pytest.raises(NotEligibleException):
            ledger.check("user-1", free_plan, 1.0, FROZEN_NOW)

    def test_check_uses_cycle_of_requested_instant(
        self, ledger: QuotaLedger, repository: Mock, premium_plan: PlanDescriptor
    ) -> None:
        ledger.check("user-1", premium_plan, 1.0, _utc(2026, 4, 2, 9))

        repository.sum_consumed_hours.assert_called_once_with(
            "user-1", _utc(2026, 4, 1), _utc(2026, 5, 1)
        )


class TestQuotaStatus:
    def test_to_dict_hides_internal_fields(self) -> None:
        status = QuotaStatus(
            has_access=True,
            plan_name="Premium Member",
            limit=10.0,
            used=4.0,
            remaining=6.0,
            cycle_start=_utc(2026, 3, 1),
            resets_at=_utc(2026, 4, 1),
        )

        payload = status.to_dict()

        assert "reason" not in payload
        assert "cycle_start" not in payload
        assert payload["remaining"] == 6.0

    def test_allows_boundary(self) -> None:
        status = QuotaStatus(has_access=True, limit=10.0, used=7.0, remaining=3.0)

        assert status.allows(3.0)
        assert not status.allows(3.01)
