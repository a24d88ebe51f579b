"""Repository layer for lab booking data access."""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .lab_booking_repository import LabBookingFilters, LabBookingRepository
from .lab_space_repository import LabSpaceRepository
from .maintenance_repository import MaintenanceRepository

__all__ = [
    "BaseRepository",
    "LabBookingFilters",
    "LabBookingRepository",
    "LabSpaceRepository",
    "MaintenanceRepository",
    "RepositoryFactory",
]
