# backend/labhub/repositories/maintenance_repository.py
"""Maintenance block data access."""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.maintenance_block import MaintenanceBlock
from .base_repository import BaseRepository


class MaintenanceRepository(BaseRepository[MaintenanceBlock]):
    def __init__(self, db: Session):
        super().__init__(db, MaintenanceBlock)
        self.logger = logging.getLogger(__name__)

    def find_overlapping(
        self, lab_space_id: str, start: datetime, end: datetime
    ) -> List[MaintenanceBlock]:
        query = self._build_query().filter(
            MaintenanceBlock.lab_space_id == lab_space_id,
            MaintenanceBlock.starts_at < end,
            MaintenanceBlock.ends_at > start,
        )
        return self._execute_query(query.order_by(MaintenanceBlock.starts_at, MaintenanceBlock.id))

    def list_blocks(
        self,
        *,
        lab_space_id: Optional[str] = None,
        ending_after: Optional[datetime] = None,
    ) -> List[MaintenanceBlock]:
        """Blocks, optionally for one space and only those not yet over."""
        query = self._build_query()
        if lab_space_id:
            query = query.filter(MaintenanceBlock.lab_space_id == lab_space_id)
        if ending_after is not None:
            query = query.filter(MaintenanceBlock.ends_at > ending_after)
        return self._execute_query(query.order_by(MaintenanceBlock.starts_at))

    def delete_for_space(self, lab_space_id: str) -> int:
        try:
            deleted = (
                self._build_query()
                .filter(MaintenanceBlock.lab_space_id == lab_space_id)
                .delete(synchronize_session=False)
            )
            self.db.flush()
            return deleted
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting blocks for space {lab_space_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete maintenance blocks: {str(e)}")
