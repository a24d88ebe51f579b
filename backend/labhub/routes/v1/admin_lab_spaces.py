# backend/labhub/routes/v1/admin_lab_spaces.py
"""
Staff lab space management - API v1

Endpoints (require manage_lab_spaces):
    GET / - Paginated list, inactive spaces included (filter by type, active)
    POST / - Create a space
    GET /{lab_space_id} - One space by id
    PUT /{lab_space_id} - Partial update, including the active flag
    DELETE /{lab_space_id} - Delete a space that has no bookings
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from ...api.dependencies import get_lab_space_service, require_permission
from ...core.enums import LabSpaceType, PermissionName
from ...core.exceptions import DomainException
from ...principal import LabPrincipal
from ...schemas.base_responses import ApiResponse, PaginatedData
from ...schemas.lab_space import LabSpaceCreate, LabSpaceResponse, LabSpaceUpdate
from ...services.lab_space_service import LabSpaceService
from ._shared import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-lab-spaces-v1"])

require_manage_spaces = require_permission(PermissionName.MANAGE_LAB_SPACES)


@router.get("", response_model=ApiResponse[PaginatedData[LabSpaceResponse]])
async def list_spaces(
    space_type: Optional[LabSpaceType] = Query(None, alias="type"),
    active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    _: LabPrincipal = Depends(require_manage_spaces),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[PaginatedData[LabSpaceResponse]]:
    def _run() -> PaginatedData[LabSpaceResponse]:
        items, total = service.list_all_spaces(space_type, active, page=page, per_page=per_page)
        return PaginatedData[LabSpaceResponse](
            items=[LabSpaceResponse.from_space(s) for s in items],
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


@router.post(
    "",
    response_model=ApiResponse[LabSpaceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_space(
    payload: LabSpaceCreate,
    principal: LabPrincipal = Depends(require_manage_spaces),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[LabSpaceResponse]:
    try:
        space = await asyncio.to_thread(service.create_space, principal, payload.model_dump())
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(
        message="Lab space created successfully", data=LabSpaceResponse.from_space(space)
    )


@router.get("/{lab_space_id}", response_model=ApiResponse[LabSpaceResponse])
async def get_space(
    lab_space_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_manage_spaces),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[LabSpaceResponse]:
    try:
        space = await asyncio.to_thread(service.get_space_by_id, lab_space_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=LabSpaceResponse.from_space(space))


@router.put("/{lab_space_id}", response_model=ApiResponse[LabSpaceResponse])
async def update_space(
    payload: LabSpaceUpdate,
    lab_space_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(require_manage_spaces),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[LabSpaceResponse]:
    try:
        space = await asyncio.to_thread(
            service.update_space, principal, lab_space_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(
        message="Lab space updated successfully", data=LabSpaceResponse.from_space(space)
    )


@router.delete("/{lab_space_id}", response_model=ApiResponse[None])
async def delete_space(
    lab_space_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(require_manage_spaces),
    service: LabSpaceService = Depends(get_lab_space_service),
) -> ApiResponse[None]:
    try:
        await asyncio.to_thread(service.delete_space, principal, lab_space_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Lab space deleted successfully", data=None)
