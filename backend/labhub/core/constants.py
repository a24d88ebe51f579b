# backend/labhub/core/constants.py
"""Application-wide constants."""

BRAND_NAME = "LabHub"

API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Lab-space booking engine: quotas, conflicts, approvals and check-in."

# Ledger precision for hour arithmetic (0.01h)
HOURS_PRECISION = 2

# Status badge colors used by the web client
STATUS_COLORS = {
    "pending": "yellow",
    "approved": "blue",
    "checked_in": "teal",
    "rejected": "red",
    "cancelled": "gray",
    "completed": "green",
    "no_show": "orange",
}

DEFAULT_BOOKING_TITLE = "Booked"
