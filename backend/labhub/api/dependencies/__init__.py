# backend/labhub/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_principal, require_permission
from .database import get_db
from .services import get_lab_booking_service, get_lab_space_service, get_maintenance_service

__all__ = [
    # Auth
    "get_current_principal",
    "require_permission",
    # Database
    "get_db",
    # Services
    "get_lab_booking_service",
    "get_lab_space_service",
    "get_maintenance_service",
]
