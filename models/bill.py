# models/bill.py
import enum
from sqlalchemy import (
     Column, Integer, String, Numeric, Boolean, Date, DateTime, ForeignKey, Enum, UniqueConstraint, func
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship
from .base import Base


class BillStatus(str, enum.Enum):
     """Enumeration for bill payment status."""
     PENDING = "pending"
     PENDING_CLEARANCE = "pending_clearance"
     PAID = "paid"
     OVERDUE = "overdue"


class Bill(Base):
     """
     Bill model - one maintenance bill for one flat in one billing period.

     (society_id, flat_id, billing_period) is unique: a flat is billed at
     most once per period. Bills are never deleted, only moved through
     their status lifecycle.
     """
     __tablename__ = "bills"
     __table_args__ = (
          UniqueConstraint("society_id", "flat_id", "billing_period", name="uq_bills_society_flat_period"),
     )

     id = Column(Integer, primary_key=True, autoincrement=True)

     # Foreign keys
     society_id = Column(
          Integer,
          ForeignKey("societies.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     flat_id = Column(Integer, ForeignKey("flats.id"), nullable=False, index=True)
     # Vacant flats may have nobody to address the bill to yet
     user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

     # Bill details
     billing_period = Column(String(50), nullable=False, index=True)  # e.g. "March 2026"
     due_date = Column(Date, nullable=False, index=True)
     total_amount = Column(Numeric(12, 2), nullable=False)
     status = Column(
          Enum(BillStatus, name="bill_status", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          default=BillStatus.PENDING,
          nullable=False,
          index=True
     )

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

     # Relationships
     flat = relationship("Flat", back_populates="bills")
     user = relationship("User")
     line_items = relationship(
          "BillLineItem",
          back_populates="bill",
          order_by="BillLineItem.position",
          collection_class=ordering_list("position"),
          cascade="all, delete-orphan",
     )
     transactions = relationship(
          "PaymentTransaction",
          back_populates="bill",
          order_by="PaymentTransaction.id",
     )

     def __repr__(self):
          return (
               f"<Bill(id={self.id}, flat_id={self.flat_id}, period='{self.billing_period}', "
               f"total={self.total_amount}, status='{self.status.value}')>"
          )

     def mark_as_paid(self) -> None:
          """Mark the bill as paid."""
          self.status = BillStatus.PAID

     def mark_as_pending_clearance(self) -> None:
          """Payment received by an instrument that has not cleared yet."""
          self.status = BillStatus.PENDING_CLEARANCE

     def mark_as_pending(self) -> None:
          self.status = BillStatus.PENDING

     def mark_as_overdue(self) -> None:
          """Mark the bill as overdue."""
          self.status = BillStatus.OVERDUE


class BillLineItem(Base):
     """One line of a bill's itemized breakdown."""
     __tablename__ = "bill_line_items"

     id = Column(Integer, primary_key=True, autoincrement=True)
     bill_id = Column(Integer, ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
     position = Column(Integer, nullable=False, default=0)
     charge_name = Column(String(100), nullable=False)
     amount = Column(Numeric(12, 2), nullable=False)
     # Copied from the charge head when the bill was generated
     is_reserve_fund = Column(Boolean, default=False, nullable=False)

     bill = relationship("Bill", back_populates="line_items")

     def __repr__(self):
          return f"<BillLineItem(bill_id={self.bill_id}, charge='{self.charge_name}', amount={self.amount})>"
