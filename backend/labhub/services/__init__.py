"""Service layer for the lab booking engine."""
