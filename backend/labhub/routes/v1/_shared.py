"""Helpers shared by the v1 lab routers."""

from typing import NoReturn

from fastapi import HTTPException, status

from ...core.exceptions import DomainException
from ...models.lab_booking import LabBooking
from ...schemas.lab_booking import LabBookingResponse
from ...services.lab_booking_service import LabBookingService

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def serialize_booking(service: LabBookingService, booking: LabBooking) -> LabBookingResponse:
    return LabBookingResponse.from_booking(
        booking, service.now(), service.lifecycle.check_in_early_minutes
    )
