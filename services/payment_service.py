# services/payment_service.py
"""
Payment Service - records payments against bills.

A payment inserts a transaction and moves its bill on in the same database
transaction; the request's session commits both or neither.

- upi / bank_transfer / cash: transaction SUCCESS, bill PAID
- cheque: transaction PENDING_CLEARANCE, bill PENDING_CLEARANCE until
  clear_payment() settles it

A PAID bill accepts no further payments.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from models import Bill, PaymentTransaction
from models.bill import BillStatus
from models.payment_transaction import (
     DEFERRED_CLEARING_METHODS,
     PaymentMethod,
     TransactionStatus,
)
from services.errors import (
     BillAlreadyPaid,
     BillNotFound,
     PaymentNotPendingClearance,
     TransactionNotFound,
)

logger = logging.getLogger(__name__)


def record_payment(
     db: Session,
     society_id: int,
     user_id: Optional[int],
     bill_id: int,
     amount_paid: Decimal,
     payment_method: PaymentMethod,
     transaction_ref: Optional[str] = None,
) -> PaymentTransaction:
     """
     Record one payment against one bill.

     The bill row is locked for the rest of the transaction so two payments
     for the same bill cannot both see it unpaid.

     Raises:
          BillNotFound: bill does not exist in this society
          BillAlreadyPaid: bill is already PAID
     """
     payment_method = PaymentMethod(payment_method)
     bill = (
          db.query(Bill)
          .filter(Bill.id == bill_id, Bill.society_id == society_id)
          .with_for_update()
          .first()
     )
     if bill is None:
          raise BillNotFound(f"Bill with ID {bill_id} not found in your society")

     if bill.status == BillStatus.PAID:
          raise BillAlreadyPaid("This bill is already paid")

     if payment_method in DEFERRED_CLEARING_METHODS:
          status = TransactionStatus.PENDING_CLEARANCE
          bill.mark_as_pending_clearance()
     else:
          status = TransactionStatus.SUCCESS
          bill.mark_as_paid()

     transaction = PaymentTransaction(
          society_id=society_id,
          bill_id=bill.id,
          user_id=user_id,
          amount_paid=Decimal(str(amount_paid)),
          payment_method=payment_method,
          transaction_ref=transaction_ref or None,
          status=status,
     )
     db.add(transaction)
     db.flush()

     logger.info(
          "Recorded %s payment %s on bill %s; bill is now %s",
          payment_method.value, transaction.id, bill.id, bill.status.value,
     )
     return transaction


def clear_payment(db: Session, society_id: int, transaction_id: int, cleared: bool) -> PaymentTransaction:
     """
     Settle a payment that was waiting for clearance.

     cleared=True marks the transaction SUCCESS and its bill PAID.
     cleared=False (bounced) marks the transaction FAILED and puts the bill
     back to PENDING.

     Raises:
          TransactionNotFound: no such transaction in this society
          PaymentNotPendingClearance: transaction is not awaiting clearance
     """
     transaction = (
          db.query(PaymentTransaction)
          .filter(
               PaymentTransaction.id == transaction_id,
               PaymentTransaction.society_id == society_id,
          )
          .with_for_update()
          .first()
     )
     if transaction is None:
          raise TransactionNotFound(f"Transaction with ID {transaction_id} not found")

     if transaction.status != TransactionStatus.PENDING_CLEARANCE:
          raise PaymentNotPendingClearance(
               f"Transaction {transaction_id} is {transaction.status.value}, not pending clearance"
          )

     bill = transaction.bill
     if cleared:
          transaction.status = TransactionStatus.SUCCESS
          bill.mark_as_paid()
     else:
          transaction.status = TransactionStatus.FAILED
          if bill.status == BillStatus.PENDING_CLEARANCE:
               bill.mark_as_pending()

     db.flush()
     logger.info(
          "Transaction %s %s; bill %s is now %s",
          transaction.id, "cleared" if cleared else "bounced", bill.id, bill.status.value,
     )
     return transaction
