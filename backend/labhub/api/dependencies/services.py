# backend/labhub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Tests swap these through ``app.dependency_overrides`` to inject a fixed clock
or a dedicated lock manager.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.lab_booking_service import LabBookingService
from ...services.lab_space_service import LabSpaceService
from ...services.maintenance_service import MaintenanceService
from .database import get_db


def get_lab_booking_service(db: Session = Depends(get_db)) -> LabBookingService:
    return LabBookingService(db)


def get_lab_space_service(db: Session = Depends(get_db)) -> LabSpaceService:
    return LabSpaceService(db)


def get_maintenance_service(db: Session = Depends(get_db)) -> MaintenanceService:
    return MaintenanceService(db)
