# backend/labhub/routes/v1/lab_bookings.py
"""
Lab booking routes - API v1

Versioned endpoints under /api/v1/lab-bookings for the authenticated caller.
Business rules live in LabBookingService; authorization goes through
``can_act`` before any transition is attempted.

Endpoints:
    GET /quota - Caller's lab-hour quota for the current cycle
    GET / - Caller's bookings (optional status / upcoming filters)
    POST / - Create a booking
    GET /{booking_id} - Booking detail (owner or staff)
    DELETE /{booking_id} - Cancel a booking (owner or staff)
    POST /{booking_id}/check-in - Check in (owner in window, staff manual)
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from ...api.dependencies import get_current_principal, get_lab_booking_service
from ...core.enums import LabAction, LabBookingStatus
from ...core.exceptions import DomainException
from ...domain.time_range import TimeRange
from ...policies.lab_booking_policy import authorize
from ...principal import LabPrincipal
from ...schemas.base_responses import ApiResponse
from ...schemas.lab_booking import LabBookingCreate, LabBookingResponse
from ...schemas.quota import QuotaStatusResponse
from ...services.lab_booking_service import LabBookingService
from ._shared import ULID_PATH_PATTERN, handle_domain_exception, serialize_booking

logger = logging.getLogger(__name__)

# V1 router - no prefix here, added when mounting in main.py
router = APIRouter(tags=["lab-bookings-v1"])


@router.get(
    "/quota",
    response_model=ApiResponse[QuotaStatusResponse],
    response_model_exclude_none=True,
)
async def get_quota_status(
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[QuotaStatusResponse]:
    try:
        quota = await asyncio.to_thread(service.get_quota_status, principal)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=QuotaStatusResponse(**quota.to_dict()))


@router.get("", response_model=ApiResponse[List[LabBookingResponse]])
async def list_my_bookings(
    status_filter: Optional[LabBookingStatus] = Query(None, alias="status"),
    upcoming: bool = Query(False),
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[List[LabBookingResponse]]:
    def _run() -> List[LabBookingResponse]:
        bookings = service.list_bookings(principal, status=status_filter, upcoming=upcoming)
        return [serialize_booking(service, b) for b in bookings]

    try:
        items = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=items)


@router.post(
    "",
    response_model=ApiResponse[LabBookingResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: LabBookingCreate,
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    """
    Create a booking request.

    Auto-approve plans are confirmed immediately; other plans wait for staff.
    Quota, conflict and eligibility failures come back as 422.
    """

    def _run() -> LabBookingResponse:
        booking = service.create_booking(
            principal,
            payload.lab_space_id,
            TimeRange(payload.starts_at, payload.ends_at),
            payload.purpose,
            title=payload.title,
            slot_type=payload.slot_type,
        )
        return serialize_booking(service, booking)

    try:
        data = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)

    message = (
        "Booking created and auto-approved!"
        if data.status == LabBookingStatus.APPROVED
        else "Booking submitted for approval."
    )
    return ApiResponse(message=message, data=data)


@router.get("/{booking_id}", response_model=ApiResponse[LabBookingResponse])
async def get_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    def _run() -> LabBookingResponse:
        booking = service.get_booking(booking_id)
        authorize(principal, booking, LabAction.VIEW)
        return serialize_booking(service, booking)

    try:
        data = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=data)


@router.delete("/{booking_id}", response_model=ApiResponse[LabBookingResponse])
async def cancel_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    """Cancel a pending or approved booking before it starts; hours are refunded."""

    def _run() -> LabBookingResponse:
        authorize(principal, service.get_booking(booking_id), LabAction.CANCEL)
        return serialize_booking(service, service.cancel_booking(principal, booking_id))

    try:
        data = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Booking cancelled successfully", data=data)


@router.post("/{booking_id}/check-in", response_model=ApiResponse[LabBookingResponse])
async def check_in(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(get_current_principal),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    def _run() -> LabBookingResponse:
        booking = service.get_booking(booking_id)
        authorize(principal, booking, LabAction.CHECK_IN)
        # Staff checking someone else in bypass the early-window bound
        manual = booking.user_id != principal.user_id
        return serialize_booking(service, service.check_in(principal, booking_id, manual=manual))

    try:
        data = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Checked in successfully", data=data)
