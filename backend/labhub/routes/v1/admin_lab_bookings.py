# backend/labhub/routes/v1/admin_lab_bookings.py
"""
Staff lab booking administration - API v1

Endpoints (all require staff permissions):
    GET / - Paginated list with status/space/user/date filters
    GET /{booking_id} - Any booking
    POST /{booking_id}/approve - Approve a pending booking
    POST /{booking_id}/reject - Reject a pending booking with a reason
    POST /{booking_id}/check-in - Manual check-in
    POST /{booking_id}/check-out - Check out and record actual hours
    POST /{booking_id}/no-show - Mark an ended, unattended booking as no-show
"""

import asyncio
from datetime import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from ...api.dependencies import get_lab_booking_service, require_permission
from ...core.enums import LabBookingStatus, PermissionName
from ...core.exceptions import DomainException
from ...domain.time_range import ensure_utc
from ...principal import LabPrincipal
from ...repositories.lab_booking_repository import LabBookingFilters
from ...schemas.base_responses import ApiResponse, PaginatedData
from ...schemas.lab_booking import LabBookingApprove, LabBookingReject, LabBookingResponse
from ...services.lab_booking_service import LabBookingService
from ._shared import ULID_PATH_PATTERN, handle_domain_exception, serialize_booking

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-lab-bookings-v1"])


@router.get("", response_model=ApiResponse[PaginatedData[LabBookingResponse]])
async def list_all_bookings(
    status_filter: Optional[LabBookingStatus] = Query(None, alias="status"),
    lab_space_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _: LabPrincipal = Depends(require_permission(PermissionName.VIEW_ALL_LAB_BOOKINGS)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[PaginatedData[LabBookingResponse]]:
    def _run() -> PaginatedData[LabBookingResponse]:
        filters = LabBookingFilters(
            status=status_filter,
            lab_space_id=lab_space_id,
            user_id=user_id,
            date_from=ensure_utc(date_from) if date_from else None,
            date_to=ensure_utc(date_to) if date_to else None,
        )
        items, total = service.list_all_bookings(filters, page=page, per_page=per_page)
        return PaginatedData[LabBookingResponse](
            items=[serialize_booking(service, b) for b in items],
            total=total,
            page=page,
            per_page=per_page,
            has_next=page * per_page < total,
            has_prev=page > 1,
        )

    try:
        data = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=data)


@router.get("/{booking_id}", response_model=ApiResponse[LabBookingResponse])
async def get_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_permission(PermissionName.VIEW_ALL_LAB_BOOKINGS)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(service, service.get_booking(booking_id))
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=data)


@router.post("/{booking_id}/approve", response_model=ApiResponse[LabBookingResponse])
async def approve_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    payload: Optional[LabBookingApprove] = Body(None),
    _: LabPrincipal = Depends(require_permission(PermissionName.APPROVE_LAB_BOOKINGS)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    notes = payload.notes if payload else None
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(service, service.approve_booking(booking_id, notes))
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Booking approved", data=data)


@router.post("/{booking_id}/reject", response_model=ApiResponse[LabBookingResponse])
async def reject_booking(
    payload: LabBookingReject,
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_permission(PermissionName.APPROVE_LAB_BOOKINGS)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(service, service.reject_booking(booking_id, payload.reason))
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Booking rejected", data=data)


@router.post("/{booking_id}/check-in", response_model=ApiResponse[LabBookingResponse])
async def manual_check_in(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(require_permission(PermissionName.MARK_LAB_ATTENDANCE)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(
                service, service.check_in(principal, booking_id, manual=True)
            )
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Checked in successfully", data=data)


@router.post("/{booking_id}/check-out", response_model=ApiResponse[LabBookingResponse])
async def check_out(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_permission(PermissionName.MARK_LAB_ATTENDANCE)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(service, service.check_out(booking_id))
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Checked out successfully", data=data)


@router.post("/{booking_id}/no-show", response_model=ApiResponse[LabBookingResponse])
async def mark_no_show(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_permission(PermissionName.MARK_LAB_ATTENDANCE)),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[LabBookingResponse]:
    try:
        data = await asyncio.to_thread(
            lambda: serialize_booking(service, service.mark_no_show(booking_id))
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Booking marked as no-show", data=data)
