# models/payment_transaction.py
"""
PaymentTransaction model - one payment recorded against one bill.

Cheque payments are stored as pending_clearance until the cheque clears
(success) or bounces (failed); every other method succeeds immediately.
"""
import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class PaymentMethod(str, enum.Enum):
     UPI = "upi"
     CHEQUE = "cheque"
     BANK_TRANSFER = "bank_transfer"
     CASH = "cash"


# Methods whose funds are not available until the instrument clears
DEFERRED_CLEARING_METHODS = frozenset({PaymentMethod.CHEQUE})


class TransactionStatus(str, enum.Enum):
     SUCCESS = "success"
     PENDING_CLEARANCE = "pending_clearance"
     FAILED = "failed"


class PaymentTransaction(Base):
     __tablename__ = "payment_transactions"

     id = Column(Integer, primary_key=True, autoincrement=True)
     society_id = Column(
          Integer,
          ForeignKey("societies.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     bill_id = Column(
          Integer,
          ForeignKey("bills.id", ondelete="RESTRICT"),  # Bills with payments are never removed
          nullable=False,
          index=True
     )
     user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

     amount_paid = Column(Numeric(12, 2), nullable=False)
     payment_method = Column(
          Enum(PaymentMethod, name="payment_method", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          nullable=False,
     )
     # UTR number, cheque number, or any other reference
     transaction_ref = Column(String(255), nullable=True)
     status = Column(
          Enum(TransactionStatus, name="transaction_status", create_constraint=True,
               values_callable=lambda e: [m.value for m in e]),
          default=TransactionStatus.SUCCESS,
          nullable=False,
     )
     payment_date = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     bill = relationship("Bill", back_populates="transactions")

     def __repr__(self):
          return (
               f"<PaymentTransaction(id={self.id}, bill_id={self.bill_id}, "
               f"amount={self.amount_paid}, status='{self.status.value}')>"
          )
