# schemas/payment.py
"""
Pydantic schemas for payment recording API.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import ConfigDict, Field

from models.bill import BillStatus
from models.payment_transaction import PaymentMethod, TransactionStatus
from .base import CamelModel


class PaymentCreate(CamelModel):
     """Request body for POST /pay."""

     bill_id: int = Field(..., gt=0, description="Bill being paid")
     amount_paid: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount paid")
     payment_method: PaymentMethod
     transaction_ref: Optional[str] = Field(
          None,
          max_length=255,
          description="UTR number, cheque number or other reference",
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "billId": 1,
                    "amountPaid": 6800,
                    "paymentMethod": "upi",
                    "transactionRef": "UTR123456789",
               }
          }
     )


class ClearPaymentRequest(CamelModel):
     """Outcome of a cheque: cleared, or bounced when false."""
     cleared: bool = True


class TransactionResponse(CamelModel):
     id: int
     bill_id: int
     user_id: Optional[int] = None
     amount_paid: float
     payment_method: PaymentMethod
     transaction_ref: Optional[str] = None
     status: TransactionStatus
     payment_date: Optional[datetime] = None


class PaymentResponse(CamelModel):
     """Response for payment recording and clearance."""

     transaction: TransactionResponse
     bill_status: BillStatus
     message: str
