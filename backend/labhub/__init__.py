"""LabHub lab-space booking backend."""
