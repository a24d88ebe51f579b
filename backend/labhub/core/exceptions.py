# backend/labhub/core/exceptions.py
"""
Domain-specific exceptions for the LabHub booking engine.

These exceptions carry clear, user-facing messages that the API layer
turns into structured HTTP responses.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed or violates a basic constraint."""

    status_code = HTTP_422_UNPROCESSABLE


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller may not act on a resource."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails unexpectedly."""

    def to_http_exception(self) -> HTTPException:
        # Never leak persistence internals to clients
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": "An error occurred processing your request",
                "code": self.code,
                "details": {},
            },
        )


# Specific lab booking exceptions


class NotEligibleException(BusinessRuleException):
    """Raised when the caller's plan does not include lab access."""

    def __init__(self, plan_name: Optional[str] = None):
        super().__init__(
            message="Lab space booking is not available on your current plan. Please upgrade.",
            code="PLAN_NOT_ELIGIBLE",
            details={"plan_name": plan_name} if plan_name else {},
        )


class QuotaExceededException(BusinessRuleException):
    """Raised when a booking would exceed the remaining hours of the cycle."""

    def __init__(self, remaining_hours: float, requested_hours: float):
        super().__init__(
            message=(
                f"Insufficient lab hours: remaining {format_hours(remaining_hours)}h, "
                f"requested {format_hours(requested_hours)}h."
            ),
            code="QUOTA_EXCEEDED",
            details={
                "remaining_hours": remaining_hours,
                "requested_hours": requested_hours,
            },
        )


class SlotUnavailableException(BusinessRuleException):
    """Raised when the requested range collides with a booking or maintenance block."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message
            or "This time slot is not available. Please select a different time.",
            code="SLOT_UNAVAILABLE",
            details=details or {},
        )


class InvalidStateTransitionException(ConflictException):
    """Raised when a lifecycle event is not allowed from the booking's current status."""

    def __init__(self, current_status: str, event: str):
        super().__init__(
            message=f"Cannot {event} a booking that is {current_status}",
            code="INVALID_STATE_TRANSITION",
            details={"status": current_status, "event": event},
        )


class TooLateToCancelException(BusinessRuleException):
    """Raised when cancelling a booking whose start time has passed."""

    def __init__(self, starts_at: str):
        super().__init__(
            message="Bookings can only be cancelled before they start",
            code="TOO_LATE_TO_CANCEL",
            details={"starts_at": starts_at},
        )


class OutsideCheckInWindowException(BusinessRuleException):
    """Raised when check-in is attempted before the window opens or after the booking ends."""

    def __init__(self, opens_at: str, closes_at: str):
        super().__init__(
            message=f"Check-in is only possible between {opens_at} and {closes_at}",
            code="OUTSIDE_CHECK_IN_WINDOW",
            details={"opens_at": opens_at, "closes_at": closes_at},
        )


class LockTimeoutException(ConflictException):
    """Raised when a named lock could not be acquired in time."""

    def __init__(self, key: str, timeout_s: float):
        super().__init__(
            message="This lab space is busy right now. Please retry in a moment.",
            code="LOCK_TIMEOUT",
            details={"lock": key, "timeout_s": timeout_s},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """


def format_hours(value: float) -> str:
    """Render an hour amount without trailing zeros (3.0 -> '3', 2.5 -> '2.5')."""
    return f"{round(float(value), 2):g}"
