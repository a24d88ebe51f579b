# backend/labhub/services/lab_space_service.py
"""
Lab space catalog.

Members read active spaces by slug. Staff create, edit, deactivate and delete
spaces; every staff write holds the ``lab_space:<id>`` lock so it never
interleaves with a booking's conflict check on the same space.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import LabSpaceType
from ..core.exceptions import ConflictException, NotFoundException, ValidationException
from ..core.lab_space_lock import NamedLockManager, get_lock_manager, lab_space_key
from ..models.lab_space import LabSpace
from ..principal import LabPrincipal
from ..repositories import RepositoryFactory
from ..repositories.lab_space_repository import LabSpaceRepository
from .base import BaseService

EDITABLE_FIELDS = frozenset(
    {
        "name",
        "slug",
        "type",
        "description",
        "capacity",
        "amenities",
        "safety_requirements",
        "is_active",
    }
)


def slugify(name: str) -> str:
    value = re.sub(r"[^a-z0-9\s-]", " ", name.lower())
    return re.sub(r"[\s-]+", "-", value).strip("-")


class LabSpaceService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[LabSpaceRepository] = None,
        lock_manager: Optional[NamedLockManager] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_lab_space_repository(db)
        self.booking_repository = RepositoryFactory.create_lab_booking_repository(db)
        self.maintenance_repository = RepositoryFactory.create_maintenance_repository(db)
        self.lock_manager = lock_manager or get_lock_manager()

    # Member reads

    @BaseService.measure_operation("list_spaces")
    def list_spaces(
        self, space_type: Optional[LabSpaceType] = None, search: Optional[str] = None
    ) -> List[LabSpace]:
        """Active spaces, optionally filtered by type and a name/description search."""
        return self.repository.list_active(space_type=space_type, search=search)

    @BaseService.measure_operation("get_space")
    def get_space(self, slug: str) -> LabSpace:
        space = self.repository.get_by_slug(slug)
        if space is None or not space.is_active:
            raise NotFoundException("Lab space not found", details={"slug": slug})
        return space

    # Staff management

    @BaseService.measure_operation("list_all_spaces")
    def list_all_spaces(
        self,
        space_type: Optional[LabSpaceType] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Tuple[List[LabSpace], int]:
        page = max(page, 1)
        return self.repository.list_filtered(
            space_type=space_type,
            is_active=is_active,
            skip=(page - 1) * per_page,
            limit=per_page,
        )

    def get_space_by_id(self, lab_space_id: str) -> LabSpace:
        """Any space, inactive included."""
        space = self.repository.get_by_id(lab_space_id)
        if space is None:
            raise NotFoundException("Lab space not found", details={"lab_space_id": lab_space_id})
        return space

    def _ensure_slug_free(self, slug: str, current_id: Optional[str] = None) -> None:
        existing = self.repository.get_by_slug(slug)
        if existing is not None and existing.id != current_id:
            raise ConflictException(
                "A lab space with this slug already exists",
                code="SLUG_TAKEN",
                details={"slug": slug},
            )

    @BaseService.measure_operation("create_space")
    def create_space(self, actor: LabPrincipal, fields: Dict[str, Any]) -> LabSpace:
        """
        Create a space from validated fields.

        Raises:
            ValidationException: No usable slug can be derived from the name
            ConflictException: The slug is already taken
        """
        values = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        slug = values.get("slug") or slugify(values["name"])
        if not slug:
            raise ValidationException(
                "Cannot derive a slug from this name", details={"name": values["name"]}
            )
        values["slug"] = slug
        values["type"] = LabSpaceType(values["type"]).value

        with self.transaction():
            self._ensure_slug_free(slug)
            space = self.repository.create(**values)

        self.log_operation("create_lab_space", lab_space_id=space.id, actor_id=actor.user_id)
        return space

    @BaseService.measure_operation("update_space")
    def update_space(
        self, actor: LabPrincipal, lab_space_id: str, changes: Dict[str, Any]
    ) -> LabSpace:
        """
        Apply a partial update. Renaming regenerates the slug unless one is given.

        Toggling ``is_active`` off stops new bookings; existing bookings stay.
        """
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}
        with self.lock_manager.hold(lab_space_key(lab_space_id)):
            with self.transaction():
                space = self.repository.get_for_update(lab_space_id)
                if space is None:
                    raise NotFoundException(
                        "Lab space not found", details={"lab_space_id": lab_space_id}
                    )
                if "name" in changes and "slug" not in changes and changes["name"] != space.name:
                    changes["slug"] = slugify(changes["name"]) or space.slug
                if "slug" in changes:
                    self._ensure_slug_free(changes["slug"], current_id=space.id)
                if "type" in changes:
                    changes["type"] = LabSpaceType(changes["type"]).value
                for field, value in changes.items():
                    setattr(space, field, value)
                self.repository.flush()

        self.log_operation(
            "update_lab_space",
            lab_space_id=lab_space_id,
            actor_id=actor.user_id,
            fields=sorted(changes),
        )
        return space

    @BaseService.measure_operation("delete_space")
    def delete_space(self, actor: LabPrincipal, lab_space_id: str) -> None:
        """
        Remove a space that has never been booked, with its maintenance blocks.

        Raises:
            ConflictException: Bookings reference the space; deactivate it instead
        """
        with self.lock_manager.hold(lab_space_key(lab_space_id)):
            with self.transaction():
                space = self.repository.get_for_update(lab_space_id)
                if space is None:
                    raise NotFoundException(
                        "Lab space not found", details={"lab_space_id": lab_space_id}
                    )
                bookings = self.booking_repository.count(lab_space_id=lab_space_id)
                if bookings:
                    raise ConflictException(
                        "Lab space has bookings; deactivate it instead",
                        code="LAB_SPACE_IN_USE",
                        details={"lab_space_id": lab_space_id, "bookings": bookings},
                    )
                self.maintenance_repository.delete_for_space(lab_space_id)
                self.repository.delete(lab_space_id)

        self.log_operation("delete_lab_space", lab_space_id=lab_space_id, actor_id=actor.user_id)
