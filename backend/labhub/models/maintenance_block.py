# backend/labhub/models/maintenance_block.py
"""Staff-defined maintenance windows that exclude bookings on a lab space."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from ..domain.time_range import hours_between, utc_now
from .types import UTCDateTime


class MaintenanceBlock(Base):
    """Hard exclusion zone: no booking in the active set may overlap it."""

    __tablename__ = "lab_maintenance_blocks"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    lab_space_id = Column(
        String(26), ForeignKey("lab_spaces.id", ondelete="CASCADE"), nullable=False
    )
    title = Column(String(255), nullable=False, default="Maintenance")
    reason = Column(Text, nullable=True)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    created_by = Column(String(26), nullable=True)
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, onupdate=utc_now)

    lab_space = relationship("LabSpace", back_populates="maintenance_blocks")

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_lab_maintenance_blocks_range"),
        Index("idx_lab_maintenance_space_range", "lab_space_id", "starts_at", "ends_at"),
    )

    @property
    def duration_hours(self) -> float:
        return hours_between(self.starts_at, self.ends_at)

    def __repr__(self) -> str:
        return f"<MaintenanceBlock {self.id} space={self.lab_space_id}>"
