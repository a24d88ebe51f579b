# backend/labhub/api/dependencies/auth.py
"""
Caller identity for lab routes.

Authentication lives outside this service. The hosting application installs
an ``identity_provider`` on ``app.state``: a callable that takes the request
and returns a ``LabPrincipal`` or ``None``. No provider, or no principal,
means the request is unauthenticated.
"""

import logging
from typing import Callable, Optional, Union

from fastapi import Depends, HTTPException, Request, status

from ...core.enums import PermissionName
from ...principal import LabPrincipal

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[Request], Optional[LabPrincipal]]


def get_current_principal(request: Request) -> LabPrincipal:
    """
    Resolve the authenticated principal for this request.

    Raises:
        HTTPException: 401 when no identity can be resolved
    """
    cached = getattr(request.state, "lab_principal", None)
    if isinstance(cached, LabPrincipal):
        return cached

    provider: Optional[IdentityProvider] = getattr(request.app.state, "identity_provider", None)
    principal = provider(request) if provider is not None else None
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Authentication required", "code": "UNAUTHENTICATED"},
        )
    request.state.lab_principal = principal
    return principal


def require_permission(permission_name: Union[str, PermissionName]):
    """
    Create a dependency that requires a specific permission.

    Example:
        @router.get("/admin/lab-bookings",
                    dependencies=[Depends(require_permission(PermissionName.VIEW_ALL_LAB_BOOKINGS))])
    """

    def permission_checker(
        principal: LabPrincipal = Depends(get_current_principal),
    ) -> LabPrincipal:
        if not principal.has_permission(permission_name):
            value = (
                permission_name.value
                if isinstance(permission_name, PermissionName)
                else permission_name
            )
            logger.info(
                "Lab permission denied",
                extra={"user_id": principal.user_id, "permission": value},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": f"User does not have required permission: {value}",
                    "code": "PERMISSION_DENIED",
                },
            )
        return principal

    return permission_checker
