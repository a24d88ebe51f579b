"""ORM models for the lab booking engine."""

from .lab_booking import LabBooking
from .lab_space import LabSpace
from .maintenance_block import MaintenanceBlock

__all__ = ["LabBooking", "LabSpace", "MaintenanceBlock"]
