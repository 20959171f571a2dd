# models/billing_config.py
"""
BillingConfig model - society-level billing rules.

Each society has its own ordered list of charge heads. A head is priced
per sq.ft (maintenance at 5/sq.ft), as a fixed amount (parking at 500), or as
a percentage of another head (sinking fund at 10% of maintenance).
Non-occupancy heads apply only to flats that are not owner-occupied.
"""
import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Enum, func
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from .base import Base


class ComputationType(str, enum.Enum):
     """How a charge head turns its rate into an amount."""
     PER_AREA = "per_area"
     FIXED = "fixed"
     PERCENTAGE_OF = "percentage_of"


class LateFeeType(str, enum.Enum):
     FIXED = "fixed"
     PERCENTAGE = "percentage"


def _enum_values(enum_cls):
     return [member.value for member in enum_cls]


class BillingConfig(Base):
     """
     One row per society. Created lazily with the default charge heads
     the first time a society's configuration is read.
     """
     __tablename__ = "billing_configs"

     id = Column(Integer, primary_key=True, autoincrement=True)
     society_id = Column(
          Integer,
          ForeignKey("societies.id", ondelete="CASCADE"),
          nullable=False,
          unique=True,
          index=True
     )

     # Day of the month bills fall due (10 = the 10th)
     default_due_day = Column(Integer, default=10, nullable=False)

     # Late fee rule
     late_fee_enabled = Column(Boolean, default=False, nullable=False)
     late_fee_amount = Column(Numeric(12, 2), default=0, nullable=False)
     late_fee_type = Column(
          Enum(LateFeeType, name="late_fee_type", create_constraint=True, values_callable=_enum_values),
          default=LateFeeType.FIXED,
          nullable=False,
     )
     late_fee_grace_days = Column(Integer, default=15, nullable=False)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     society = relationship("Society", back_populates="billing_config")
     charge_heads = relationship(
          "ChargeHead",
          back_populates="billing_config",
          order_by="ChargeHead.position",
          collection_class=ordering_list("position"),
          cascade="all, delete-orphan",
     )

     @property
     def active_charge_heads(self) -> list:
          return [head for head in self.charge_heads if head.is_active]

     def __repr__(self):
          return f"<BillingConfig(society_id={self.society_id}, heads={len(self.charge_heads)})>"


class ChargeHead(Base):
     """
     A named component of a bill. percentage_of_name refers to a sibling
     head by name, not by id.
     """
     __tablename__ = "charge_heads"

     id = Column(Integer, primary_key=True, autoincrement=True)
     billing_config_id = Column(
          Integer,
          ForeignKey("billing_configs.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     position = Column(Integer, nullable=False, default=0)

     name = Column(String(100), nullable=False)
     computation_type = Column(
          Enum(ComputationType, name="computation_type", create_constraint=True, values_callable=_enum_values),
          nullable=False,
     )
     rate = Column(Numeric(12, 2), nullable=False)
     percentage_of_name = Column(String(100), nullable=True)

     # Applies to rented and vacant flats only
     is_non_occupancy_only = Column(Boolean, default=False, nullable=False)
     # Reserve / sinking fund, reported separately
     is_reserve_fund = Column(Boolean, default=False, nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)

     # Relationships
     billing_config = relationship("BillingConfig", back_populates="charge_heads")

     def __repr__(self):
          return (
               f"<ChargeHead(name='{self.name}', type='{self.computation_type.value}', "
               f"rate={self.rate}, active={self.is_active})>"
          )
