"""
Tests for payment recording and cheque clearance.
"""
import unittest
from datetime import date
from decimal import Decimal

from models import PaymentTransaction
from models.bill import BillStatus
from models.payment_transaction import PaymentMethod, TransactionStatus
from services.bill_service import BillService
from services.errors import (
    BillAlreadyPaid,
    BillNotFound,
    PaymentNotPendingClearance,
    TransactionNotFound,
)
from services.payment_service import clear_payment, record_payment
from tests.support import DatabaseTestCase


class PaymentTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.owner = self.add_user("owner@example.com")
        flat = self.add_flat("101", owner=self.owner)
        self.bill = BillService.generate_single_bill(
            self.db, self.society.id, flat.id, "March 2026", date(2026, 3, 10),
            breakdown=[("Maintenance", 5000)],
        )

    def pay(self, method, amount=5000, bill=None, society=None):
        return record_payment(
            self.db,
            (society or self.society).id,
            self.owner.id,
            (bill or self.bill).id,
            Decimal(amount),
            method,
            transaction_ref="REF-1",
        )


class TestRecordPayment(PaymentTestCase):

    def test_upi_payment_marks_bill_paid(self):
        transaction = self.pay(PaymentMethod.UPI)

        self.assertEqual(transaction.status, TransactionStatus.SUCCESS)
        self.assertEqual(transaction.bill_id, self.bill.id)
        self.assertEqual(transaction.amount_paid, Decimal("5000"))
        self.assertEqual(transaction.transaction_ref, "REF-1")
        self.assertEqual(self.bill.status, BillStatus.PAID)

    def test_immediate_methods_settle_the_bill(self):
        for method in ("bank_transfer", "cash"):
            with self.subTest(method=method):
                self.bill.mark_as_pending()
                transaction = self.pay(method)

                self.assertEqual(transaction.status, TransactionStatus.SUCCESS)
                self.assertEqual(self.bill.status, BillStatus.PAID)

    def test_cheque_payment_waits_for_clearance(self):
        transaction = self.pay(PaymentMethod.CHEQUE)

        self.assertEqual(transaction.status, TransactionStatus.PENDING_CLEARANCE)
        self.assertEqual(self.bill.status, BillStatus.PENDING_CLEARANCE)

    def test_overdue_bill_can_be_paid(self):
        self.bill.mark_as_overdue()

        self.pay(PaymentMethod.CASH)

        self.assertEqual(self.bill.status, BillStatus.PAID)

    def test_paid_bill_rejects_second_payment(self):
        self.pay(PaymentMethod.UPI)

        with self.assertRaises(BillAlreadyPaid):
            self.pay(PaymentMethod.UPI)
        self.assertEqual(self.db.query(PaymentTransaction).count(), 1)

    def test_bill_of_another_society_is_not_found(self):
        other = self.add_society("Blue Ridge")

        with self.assertRaises(BillNotFound):
            self.pay(PaymentMethod.UPI, society=other)
        self.assertEqual(self.bill.status, BillStatus.PENDING)
        self.assertEqual(self.db.query(PaymentTransaction).count(), 0)


class TestClearPayment(PaymentTestCase):

    def test_cleared_cheque_marks_bill_paid(self):
        cheque = self.pay(PaymentMethod.CHEQUE)

        transaction = clear_payment(self.db, self.society.id, cheque.id, cleared=True)

        self.assertEqual(transaction.status, TransactionStatus.SUCCESS)
        self.assertEqual(self.bill.status, BillStatus.PAID)

    def test_bounced_cheque_reopens_bill(self):
        cheque = self.pay(PaymentMethod.CHEQUE)

        transaction = clear_payment(self.db, self.society.id, cheque.id, cleared=False)

        self.assertEqual(transaction.status, TransactionStatus.FAILED)
        self.assertEqual(self.bill.status, BillStatus.PENDING)

    def test_settled_transaction_cannot_be_cleared_again(self):
        upi = self.pay(PaymentMethod.UPI)

        with self.assertRaises(PaymentNotPendingClearance):
            clear_payment(self.db, self.society.id, upi.id, cleared=True)

    def test_unknown_transaction(self):
        with self.assertRaises(TransactionNotFound):
            clear_payment(self.db, self.society.id, 999, cleared=True)


if __name__ == "__main__":
    unittest.main()
