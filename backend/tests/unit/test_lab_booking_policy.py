from typing import Callable

import pytest

from labhub.core.enums import LabAction, PermissionName
from labhub.core.exceptions import ForbiddenException
from labhub.domain.plan import PlanDescriptor
from labhub.models.lab_booking import LabBooking
from labhub.policies.lab_booking_policy import authorize, can_act
from labhub.principal import LabPrincipal
from tests.helpers.lab_time import at


@pytest.fixture
def booking(user_a: LabPrincipal) -> LabBooking:
    return LabBooking(
        id="01HBOOKING0000000000000000",
        user_id=user_a.user_id,
        lab_space_id="01HSPACE000000000000000000",
        purpose="Protein purification",
        starts_at=at(12, 9),
        ends_at=at(12, 12),
        status="approved",
    )


class TestCanAct:
    @pytest.mark.parametrize("action", [LabAction.VIEW, LabAction.CANCEL, LabAction.CHECK_IN])
    def test_owner_actions(
        self, booking: LabBooking, user_a: LabPrincipal, action: LabAction
    ) -> None:
        assert can_act(user_a, booking, action)

    @pytest.mark.parametrize(
        "action",
        [LabAction.CHECK_OUT, LabAction.APPROVE, LabAction.REJECT, LabAction.MARK_NO_SHOW],
    )
    def test_owner_cannot_act_as_staff(
        self, booking: LabBooking, user_a: LabPrincipal, action: LabAction
    ) -> None:
        assert not can_act(user_a, booking, action)

    def test_other_user_is_refused(self, booking: LabBooking, user_b: LabPrincipal) -> None:
        for action in LabAction:
            assert not can_act(user_b, booking, action)

    def test_anonymous_is_refused(self, booking: LabBooking) -> None:
        assert not can_act(None, booking, LabAction.VIEW)

    @pytest.mark.parametrize(
        "permission,actions",
        [
            (PermissionName.VIEW_ALL_LAB_BOOKINGS, {LabAction.VIEW}),
            (
                PermissionName.APPROVE_LAB_BOOKINGS,
                {LabAction.CANCEL, LabAction.APPROVE, LabAction.REJECT},
            ),
            (
                PermissionName.MARK_LAB_ATTENDANCE,
                {LabAction.CHECK_IN, LabAction.CHECK_OUT, LabAction.MARK_NO_SHOW},
            ),
        ],
    )
    def test_staff_permission_grants(
        self,
        booking: LabBooking,
        make_principal: Callable[..., LabPrincipal],
        premium_plan: PlanDescriptor,
        permission: PermissionName,
        actions: set,
    ) -> None:
        staff = make_principal(
            "01HSTAFF000000000000000000", premium_plan, permissions={permission.value}
        )

        granted = {action for action in LabAction if can_act(staff, booking, action)}

        assert granted == actions
        assert staff.is_staff

    def test_manage_spaces_alone_is_not_booking_staff(
        self,
        booking: LabBooking,
        make_principal: Callable[..., LabPrincipal],
        premium_plan: PlanDescriptor,
    ) -> None:
        manager = make_principal(
            "01HSTAFF000000000000000000",
            premium_plan,
            permissions={PermissionName.MANAGE_LAB_SPACES.value},
        )

        assert not manager.is_staff
        assert not can_act(manager, booking, LabAction.VIEW)


class TestAuthorize:
    def test_raises_forbidden(self, booking: LabBooking, user_b: LabPrincipal) -> None:
        with pytest.raises(ForbiddenException) as exc_info:
            authorize(user_b, booking, LabAction.CANCEL)

        assert exc_info.value.code == "LAB_BOOKING_FORBIDDEN"
        assert exc_info.value.details == {"action": "cancel"}

    def test_allows_owner(self, booking: LabBooking, user_a: LabPrincipal) -> None:
        authorize(user_a, booking, LabAction.CANCEL)
