# backend/labhub/services/maintenance_service.py
"""
Staff management of maintenance blocks.

A block is a hard exclusion zone for new bookings. Creating one does not touch
bookings that already overlap it; staff resolve those by hand.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..core.lab_space_lock import NamedLockManager, get_lock_manager, lab_space_key
from ..domain.time_range import TimeRange, utc_now
from ..models.maintenance_block import MaintenanceBlock
from ..principal import LabPrincipal
from ..repositories import RepositoryFactory
from ..repositories.maintenance_repository import MaintenanceRepository
from .base import BaseService


class MaintenanceService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[MaintenanceRepository] = None,
        lock_manager: Optional[NamedLockManager] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_maintenance_repository(db)
        self.lab_space_repository = RepositoryFactory.create_lab_space_repository(db)
        self.booking_repository = RepositoryFactory.create_lab_booking_repository(db)
        self.lock_manager = lock_manager or get_lock_manager()

    @BaseService.measure_operation("list_blocks")
    def list_blocks(
        self, lab_space_id: Optional[str] = None, upcoming: bool = False
    ) -> List[MaintenanceBlock]:
        return self.repository.list_blocks(
            lab_space_id=lab_space_id, ending_after=utc_now() if upcoming else None
        )

    @BaseService.measure_operation("create_block")
    def create_block(
        self,
        actor: LabPrincipal,
        lab_space_id: str,
        time_range: TimeRange,
        title: str = "Maintenance",
        reason: Optional[str] = None,
    ) -> MaintenanceBlock:
        with self.lock_manager.hold(lab_space_key(lab_space_id)):
            with self.transaction():
                if self.lab_space_repository.get_by_id(lab_space_id) is None:
                    raise NotFoundException(
                        "Lab space not found", details={"lab_space_id": lab_space_id}
                    )
                block = self.repository.create(
                    lab_space_id=lab_space_id,
                    title=title,
                    reason=reason,
                    starts_at=time_range.start,
                    ends_at=time_range.end,
                    created_by=actor.user_id,
                )
                overlapping = self.booking_repository.find_overlapping(
                    lab_space_id, time_range.start, time_range.end
                )

        if overlapping:
            self.logger.warning(
                "Maintenance block overlaps existing bookings",
                extra={
                    "block_id": block.id,
                    "lab_space_id": lab_space_id,
                    "booking_ids": [b.id for b in overlapping],
                },
            )
        self.log_operation("create_maintenance_block", block_id=block.id, actor_id=actor.user_id)
        return block

    def get_block(self, block_id: str) -> MaintenanceBlock:
        block = self.repository.get_by_id(block_id)
        if block is None:
            raise NotFoundException("Maintenance block not found", details={"block_id": block_id})
        return block

    @BaseService.measure_operation("update_block")
    def update_block(
        self, actor: LabPrincipal, block_id: str, changes: Dict[str, Any]
    ) -> MaintenanceBlock:
        """
        Edit a block's title, reason or window.

        The merged window is validated as a whole, so moving only ``starts_at``
        past the stored ``ends_at`` is refused.

        Raises:
            NotFoundException: The block does not exist
            ValidationException: The resulting window is empty or naive
        """
        lab_space_id = self.get_block(block_id).lab_space_id
        with self.lock_manager.hold(lab_space_key(lab_space_id)):
            with self.transaction():
                block = self.repository.get_for_update(block_id)
                if block is None:
                    raise NotFoundException(
                        "Maintenance block not found", details={"block_id": block_id}
                    )
                window = TimeRange(
                    changes.get("starts_at") or block.starts_at,
                    changes.get("ends_at") or block.ends_at,
                )
                block.starts_at = window.start
                block.ends_at = window.end
                if "title" in changes:
                    block.title = changes["title"]
                if "reason" in changes:
                    block.reason = changes["reason"]
                self.repository.flush()
                overlapping = self.booking_repository.find_overlapping(
                    lab_space_id, window.start, window.end
                )

        if overlapping:
            self.logger.warning(
                "Maintenance block overlaps existing bookings",
                extra={
                    "block_id": block_id,
                    "lab_space_id": lab_space_id,
                    "booking_ids": [b.id for b in overlapping],
                },
            )
        self.log_operation(
            "update_maintenance_block",
            block_id=block_id,
            actor_id=actor.user_id,
            fields=sorted(changes),
        )
        return block

    @BaseService.measure_operation("delete_block")
    def delete_block(self, block_id: str) -> None:
        with self.transaction():
            if not self.repository.delete(block_id):
                raise NotFoundException(
                    "Maintenance block not found", details={"block_id": block_id}
                )
        self.log_operation("delete_maintenance_block", block_id=block_id)
