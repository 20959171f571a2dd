# models/flat.py
import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from .base import Base


class OccupancyStatus(str, enum.Enum):
     """Who currently lives in a flat."""
     VACANT = "vacant"
     OWNER_OCCUPIED = "owner_occupied"
     RENTED = "rented"


class Flat(Base):
     """
     Flat model - a billable dwelling within a society.

     area_sqft drives per-area charge heads; occupancy_status decides whether
     non-occupancy charges apply.
     """
     __tablename__ = "flats"
     __table_args__ = (
          UniqueConstraint("society_id", "wing", "flat_number", name="uq_flats_society_wing_number"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)
     society_id = Column(Integer, ForeignKey("societies.id", ondelete="CASCADE"), nullable=False, index=True)

     wing = Column(String(20), nullable=False)
     flat_number = Column(String(50), nullable=False)
     floor = Column(Integer, default=0, nullable=False)
     area_sqft = Column(Numeric(10, 2), nullable=False)
     occupancy_status = Column(
          Enum(OccupancyStatus, name="occupancy_status", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          default=OccupancyStatus.VACANT,
          nullable=False,
     )

     owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
     # Only set when the flat is rented
     tenant_occupant_id = Column(Integer, ForeignKey("users.id"), nullable=True)

     is_active = Column(Boolean, default=True, nullable=False)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     society = relationship("Society", back_populates="flats")
     bills = relationship("Bill", back_populates="flat")

     @property
     def label(self) -> str:
          return f"{self.wing}-{self.flat_number}"

     @property
     def responsible_user_id(self):
          """Who a bill for this flat is addressed to: owner, else occupant, else nobody."""
          return self.owner_id or self.tenant_occupant_id

     def __repr__(self):
          return f"<Flat(id={self.id}, flat='{self.label}', status='{self.occupancy_status.value}')>"
