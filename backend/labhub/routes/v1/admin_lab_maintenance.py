# backend/labhub/routes/v1/admin_lab_maintenance.py
"""
Staff maintenance block management - API v1

Endpoints (require manage_lab_spaces):
    GET / - List blocks (optional lab_space_id, upcoming)
    POST / - Create a block
    GET /{block_id} - One block
    PUT /{block_id} - Edit title, reason or window
    DELETE /{block_id} - Remove a block
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from ...api.dependencies import get_maintenance_service, require_permission
from ...core.enums import PermissionName
from ...core.exceptions import DomainException
from ...domain.time_range import TimeRange
from ...principal import LabPrincipal
from ...schemas.base_responses import ApiResponse
from ...schemas.maintenance import (
    MaintenanceBlockCreate,
    MaintenanceBlockResponse,
    MaintenanceBlockUpdate,
)
from ...services.maintenance_service import MaintenanceService
from ._shared import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-lab-maintenance-v1"])

require_manage_spaces = require_permission(PermissionName.MANAGE_LAB_SPACES)


@router.get("", response_model=ApiResponse[List[MaintenanceBlockResponse]])
async def list_blocks(
    lab_space_id: Optional[str] = Query(None),
    upcoming: bool = Query(False),
    _: LabPrincipal = Depends(require_manage_spaces),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> ApiResponse[List[MaintenanceBlockResponse]]:
    try:
        blocks = await asyncio.to_thread(service.list_blocks, lab_space_id, upcoming)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=[MaintenanceBlockResponse.model_validate(b) for b in blocks])


@router.post(
    "",
    response_model=ApiResponse[MaintenanceBlockResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_block(
    payload: MaintenanceBlockCreate,
    principal: LabPrincipal = Depends(require_manage_spaces),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> ApiResponse[MaintenanceBlockResponse]:
    try:
        block = await asyncio.to_thread(
            service.create_block,
            principal,
            payload.lab_space_id,
            TimeRange(payload.starts_at, payload.ends_at),
            payload.title,
            payload.reason,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(
        message="Maintenance block created",
        data=MaintenanceBlockResponse.model_validate(block),
    )


@router.get("/{block_id}", response_model=ApiResponse[MaintenanceBlockResponse])
async def get_block(
    block_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_manage_spaces),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> ApiResponse[MaintenanceBlockResponse]:
    try:
        block = await asyncio.to_thread(service.get_block, block_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(data=MaintenanceBlockResponse.model_validate(block))


@router.put("/{block_id}", response_model=ApiResponse[MaintenanceBlockResponse])
async def update_block(
    payload: MaintenanceBlockUpdate,
    block_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    principal: LabPrincipal = Depends(require_manage_spaces),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> ApiResponse[MaintenanceBlockResponse]:
    try:
        block = await asyncio.to_thread(
            service.update_block, principal, block_id, payload.model_dump(exclude_unset=True)
        )
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(
        message="Maintenance block updated",
        data=MaintenanceBlockResponse.model_validate(block),
    )


@router.delete("/{block_id}", response_model=ApiResponse[None])
async def delete_block(
    block_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    _: LabPrincipal = Depends(require_manage_spaces),
    service: MaintenanceService = Depends(get_maintenance_service),
) -> ApiResponse[None]:
    try:
        await asyncio.to_thread(service.delete_block, block_id)
    except DomainException as e:
        handle_domain_exception(e)
    return ApiResponse(message="Maintenance block deleted", data=None)
