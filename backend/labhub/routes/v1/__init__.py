# backend/labhub/routes/v1/__init__.py
"""
API v1 routes.

Mounted under /api/v1 by ``labhub.main.create_app``.
"""

from . import (
    admin_lab_bookings,
    admin_lab_maintenance,
    admin_lab_spaces,
    lab_bookings,
    lab_spaces,
)

__all__ = [
    "admin_lab_bookings",
    "admin_lab_maintenance",
    "admin_lab_spaces",
    "lab_bookings",
    "lab_spaces",
]
