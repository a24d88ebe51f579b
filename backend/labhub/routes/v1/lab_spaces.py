# backend/labhub/routes/v1/lab_spaces.py
"""
Lab space catalog routes - API v1

Endpoints:
    GET / - Active spaces (filter by type, search by name/description)
    GET /{slug} - One space
    GET /{slug}/availability?start=&end= - Bookings and maintenance in a window
"""

import asyncio
from datetime import datetime
import logging
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import (
    get_current_principal,
    get_lab_booking_service,
    get_lab_space_service,
)
from ...core.enums import LabSpaceType
from ...core.exceptions import DomainException
from ...domain.time_range import TimeRange
from ...schemas.base_responses import ApiResponse
from ...schemas.lab_space import AvailabilityResponse, CalendarEventResponse, LabSpaceResponse
from ...services.lab_booking_service import LabBookingService
from ...services.lab_space_service import LabSpaceService
from ._shared import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lab-spaces-v1"], dependencies=[Depends(get_current_principal)])


@router.get("", response_model=ApiResponse[List[LabSpaceResponse]])
async def list_spaces(
    space_type: Optional[LabSpaceType] = Query(None, alias="type"),
    search: Optional[str] = Query(None, max_length=100),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[List[LabSpaceResponse]]:
    try:
        spaces = await asyncio.to_thread(service.list_spaces, space_type, search)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=[LabSpaceResponse.from_space(s) for s in spaces])


@router.get("/{slug}", response_model=ApiResponse[LabSpaceResponse])
async def get_space(
    slug: str,
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[LabSpaceResponse]:
    try:
        space = await asyncio.to_thread(service.get_space, slug)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=LabSpaceResponse.from_space(space))


@router.get("/{slug}/availability", response_model=ApiResponse[AvailabilityResponse])
async def get_availability(
    slug: str,
    start: datetime = Query(..., description="Window start (ISO 8601 with offset)"),
    end: datetime = Query(..., description="Window end (ISO 8601 with offset)"),
    service: LabBookingService = Depends(get_lab_booking_service),
) -> ApiResponse[AvailabilityResponse]:
    """Chronological feed of bookings and maintenance overlapping ``[start, end)``."""

    def _run() -> Tuple[LabSpaceResponse, List[CalendarEventResponse]]:
        space, events = service.get_availability_calendar(slug, TimeRange(start, end))
        return (
            LabSpaceResponse.from_space(space),
            [CalendarEventResponse.from_event(e) for e in events],
        )

    try:
        space_data, events = await asyncio.to_thread(_run)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=AvailabilityResponse(space=space_data, events=events))
