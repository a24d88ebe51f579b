# backend/labhub/repositories/lab_space_repository.py
"""Lab space catalog data access."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.enums import LabSpaceType
from ..models.lab_space import LabSpace
from .base_repository import BaseRepository


class LabSpaceRepository(BaseRepository[LabSpace]):
    def __init__(self, db: Session):
        super().__init__(db, LabSpace)
        self.logger = logging.getLogger(__name__)

    def get_by_slug(self, slug: str) -> Optional[LabSpace]:
        query = self._build_query().filter(LabSpace.slug == slug)
        results = self._execute_query(query.limit(1))
        return results[0] if results else None

    def list_active(
        self, *, space_type: Optional[LabSpaceType] = None, search: Optional[str] = None
    ) -> List[LabSpace]:
        query = self._build_query().filter(LabSpace.is_active.is_(True))
        if space_type is not None:
            query = query.filter(LabSpace.type == LabSpaceType(space_type).value)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(LabSpace.name.ilike(pattern), LabSpace.description.ilike(pattern))
            )
        return self._execute_query(query.order_by(LabSpace.name))

    def list_filtered(
        self,
        *,
        space_type: Optional[LabSpaceType] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[LabSpace], int]:
        """Page of spaces for staff, inactive ones included unless filtered out."""
        query = self._build_query()
        if space_type is not None:
            query = query.filter(LabSpace.type == LabSpaceType(space_type).value)
        if is_active is not None:
            query = query.filter(LabSpace.is_active.is_(is_active))

        total = self._execute_scalar(query.with_entities(func.count(LabSpace.id)))
        items = self._execute_query(
            query.order_by(LabSpace.name, LabSpace.id).offset(skip).limit(limit)
        )
        return items, int(total or 0)
