# backend/labhub/repositories/factory.py
"""
Repository Factory for LabHub.

Centralizes repository creation so services and tests build them the same way.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .lab_booking_repository import LabBookingRepository
    from .lab_space_repository import LabSpaceRepository
    from .maintenance_repository import MaintenanceRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_lab_booking_repository(db: Session) -> "LabBookingRepository":
        from .lab_booking_repository import LabBookingRepository

        return LabBookingRepository(db)

    @staticmethod
    def create_maintenance_repository(db: Session) -> "MaintenanceRepository":
        from .maintenance_repository import MaintenanceRepository

        return MaintenanceRepository(db)

    @staticmethod
    def create_lab_space_repository(db: Session) -> "LabSpaceRepository":
        from .lab_space_repository import LabSpaceRepository

        return LabSpaceRepository(db)
