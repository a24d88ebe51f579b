# backend/labhub/models/lab_space.py
"""
Lab space catalog model.

Spaces are created and edited by staff. During booking operations the row is
read-only apart from ``is_active``; it also serves as the row-lock anchor that
serializes conflict checks for the space.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.enums import LabSpaceType
from ..core.ulid_helper import generate_ulid
from ..database import Base
from ..domain.time_range import utc_now
from .types import JSONList, UTCDateTime


class LabSpace(Base):
    """A bookable physical lab space."""

    __tablename__ = "lab_spaces"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default=LabSpaceType.DRY_LAB.value)
    capacity = Column(Integer, nullable=False, default=1)
    amenities = Column(JSONList, nullable=False, default=list)
    safety_requirements = Column(JSONList, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, onupdate=utc_now)

    bookings = relationship("LabBooking", back_populates="lab_space", lazy="noload")
    maintenance_blocks = relationship(
        "MaintenanceBlock", back_populates="lab_space", lazy="noload"
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_lab_spaces_capacity_positive"),
        CheckConstraint(
            "type IN ('wet_lab', 'dry_lab', 'greenhouse', 'mobile_lab')",
            name="ck_lab_spaces_type",
        ),
    )

    @property
    def type_name(self) -> str:
        try:
            return LabSpaceType(self.type).display_name
        except ValueError:
            return str(self.type).replace("_", " ").title()

    def __repr__(self) -> str:
        return f"<LabSpace {self.slug} active={self.is_active}>"
