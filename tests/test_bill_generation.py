"""
Tests for bulk and single bill generation, overdue marking, late fees and stats.
"""
import unittest
from datetime import date
from decimal import Decimal
from unittest import mock

from models import Bill, BillingConfig
from models.bill import BillStatus
from models.billing_config import ComputationType, LateFeeType
from models.flat import OccupancyStatus
from services.bill_service import BillService
from services.billing_config_service import get_or_create_config, update_config
from services.errors import (
    BillNotFound,
    ConfigurationMissing,
    DuplicateBill,
    FlatNotFound,
    NoUnitsFound,
)
from tests.support import DatabaseTestCase

PERIOD = "March 2026"
DUE = date(2026, 3, 10)


class TestBulkGeneration(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.owner = self.add_user("owner@example.com")
        self.renter = self.add_user("renter@example.com")
        self.owned = self.add_flat("101", owner=self.owner)
        self.rented = self.add_flat("102", occupancy_status=OccupancyStatus.RENTED, occupant=self.renter)
        self.vacant = self.add_flat("103", area_sqft=500, occupancy_status=OccupancyStatus.VACANT)
        get_or_create_config(self.db, self.society.id)

    def bills_by_flat(self):
        return {bill.flat_id: bill for bill in self.db.query(Bill).all()}

    def test_generates_one_pending_bill_per_active_flat(self):
        self.add_flat("104", is_active=False)

        result = BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        self.assertEqual((result.generated, result.skipped, result.total_units), (3, 0, 3))
        bills = self.bills_by_flat()
        self.assertEqual(set(bills), {self.owned.id, self.rented.id, self.vacant.id})
        self.assertTrue(all(bill.status == BillStatus.PENDING for bill in bills.values()))
        self.assertTrue(all(bill.due_date == DUE for bill in bills.values()))

    def test_bill_amounts_follow_the_breakdown(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)
        bills = self.bills_by_flat()

        owned = bills[self.owned.id]
        self.assertEqual(owned.total_amount, Decimal("6800"))
        self.assertEqual(
            [(line.charge_name, line.amount) for line in owned.line_items],
            [("Maintenance", 5000), ("Reserve", 1000), ("Utility", 300), ("Parking", 500)],
        )
        self.assertEqual(bills[self.rented.id].total_amount, Decimal("7800"))
        self.assertEqual(bills[self.vacant.id].total_amount, Decimal("4800"))
        for bill in bills.values():
            self.assertEqual(sum(line.amount for line in bill.line_items), bill.total_amount)

    def test_line_items_carry_reserve_tag(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        bill = self.bills_by_flat()[self.owned.id]
        self.assertEqual([line.charge_name for line in bill.line_items if line.is_reserve_fund], ["Reserve"])

    def test_bills_are_addressed_to_owner_then_occupant(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)
        bills = self.bills_by_flat()

        self.assertEqual(bills[self.owned.id].user_id, self.owner.id)
        self.assertEqual(bills[self.rented.id].user_id, self.renter.id)
        self.assertIsNone(bills[self.vacant.id].user_id)

    def test_rerun_for_same_period_generates_nothing(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        result = BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        self.assertEqual((result.generated, result.skipped, result.total_units), (0, 3, 3))
        self.assertEqual(self.db.query(Bill).count(), 3)

    def test_new_flats_are_billed_on_rerun(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)
        late = self.add_flat("105")

        result = BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        self.assertEqual((result.generated, result.skipped), (1, 3))
        self.assertIn(late.id, self.bills_by_flat())

    def test_different_period_is_billed_separately(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        result = BillService.generate_bulk_bills(self.db, self.society.id, "April 2026", date(2026, 4, 10))

        self.assertEqual(result.generated, 3)
        self.assertEqual(self.db.query(Bill).count(), 6)

    def test_period_labels_are_compared_exactly(self):
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        result = BillService.generate_bulk_bills(self.db, self.society.id, "march 2026", DUE)

        self.assertEqual(result.generated, 3)

    def test_bill_created_concurrently_is_counted_as_skipped(self):
        BillService.generate_single_bill(self.db, self.society.id, self.rented.id, PERIOD, DUE)

        # The other run's bill is invisible to the up-front check
        with mock.patch("services.bill_service._billed_flat_ids", return_value=set()):
            result = BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        self.assertEqual((result.generated, result.skipped, result.total_units), (2, 1, 3))
        self.assertEqual(self.db.query(Bill).count(), 3)
        self.assertEqual(
            self.db.query(Bill).filter(Bill.flat_id == self.rented.id).count(), 1
        )

    def test_other_societies_are_untouched(self):
        other = self.add_society("Blue Ridge")
        self.add_flat("101", society=other)

        result = BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)

        self.assertEqual(result.total_units, 3)
        self.assertEqual(self.db.query(Bill).filter(Bill.society_id == other.id).count(), 0)

    def test_missing_configuration_is_rejected(self):
        other = self.add_society("Blue Ridge")
        self.add_flat("101", society=other)

        with self.assertRaises(ConfigurationMissing):
            BillService.generate_bulk_bills(self.db, other.id, PERIOD, DUE)

    def test_configuration_without_active_heads_is_rejected(self):
        update_config(self.db, self.society.id, charge_heads=[
            dict(name="Maintenance", computation_type=ComputationType.PER_AREA, rate=5, is_active=False),
        ])

        with self.assertRaises(ConfigurationMissing):
            BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)
        self.assertEqual(self.db.query(Bill).count(), 0)

    def test_society_without_flats_is_rejected(self):
        other = self.add_society("Blue Ridge")
        get_or_create_config(self.db, other.id)

        with self.assertRaises(NoUnitsFound):
            BillService.generate_bulk_bills(self.db, other.id, PERIOD, DUE)


class TestSingleBill(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.owner = self.add_user("owner@example.com")
        self.flat = self.add_flat("201", area_sqft=800, owner=self.owner)

    def test_breakdown_computed_from_configuration(self):
        get_or_create_config(self.db, self.society.id)

        bill = BillService.generate_single_bill(self.db, self.society.id, self.flat.id, PERIOD, DUE)

        self.assertEqual(bill.total_amount, Decimal("5600"))
        self.assertEqual(bill.user_id, self.owner.id)
        self.assertEqual(bill.status, BillStatus.PENDING)

    def test_supplied_breakdown_is_used_as_given(self):
        bill = BillService.generate_single_bill(
            self.db, self.society.id, self.flat.id, PERIOD, DUE,
            breakdown=[("Maintenance", 4000), ("Water", Decimal("249.5"))],
        )

        self.assertEqual(bill.total_amount, Decimal("4250"))
        self.assertEqual([line.charge_name for line in bill.line_items], ["Maintenance", "Water"])
        self.assertIsNone(self.db.query(BillingConfig).first())

    def test_explicit_user_overrides_flat_resident(self):
        payer = self.add_user("payer@example.com")

        bill = BillService.generate_single_bill(
            self.db, self.society.id, self.flat.id, PERIOD, DUE,
            breakdown=[("Maintenance", 100)], user_id=payer.id,
        )

        self.assertEqual(bill.user_id, payer.id)

    def test_duplicate_bill_is_rejected(self):
        BillService.generate_single_bill(
            self.db, self.society.id, self.flat.id, PERIOD, DUE, breakdown=[("Maintenance", 100)]
        )

        with self.assertRaises(DuplicateBill):
            BillService.generate_single_bill(
                self.db, self.society.id, self.flat.id, PERIOD, DUE, breakdown=[("Maintenance", 100)]
            )

    def test_flat_of_another_society_is_not_found(self):
        other = self.add_society("Blue Ridge")
        foreign = self.add_flat("201", society=other)

        with self.assertRaises(FlatNotFound):
            BillService.generate_single_bill(
                self.db, self.society.id, foreign.id, PERIOD, DUE, breakdown=[("Maintenance", 100)]
            )

    def test_computed_breakdown_needs_configuration(self):
        with self.assertRaises(ConfigurationMissing):
            BillService.generate_single_bill(self.db, self.society.id, self.flat.id, PERIOD, DUE)


class TestBillLifecycle(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.owner = self.add_user("owner@example.com")
        self.flat = self.add_flat("301", owner=self.owner)
        self.config = get_or_create_config(self.db, self.society.id)
        self.bill = BillService.generate_single_bill(
            self.db, self.society.id, self.flat.id, PERIOD, DUE, breakdown=[("Maintenance", 2000)]
        )

    def test_get_bill_is_scoped_to_society(self):
        other = self.add_society("Blue Ridge")

        self.assertEqual(BillService.get_bill(self.db, self.society.id, self.bill.id).id, self.bill.id)
        with self.assertRaises(BillNotFound):
            BillService.get_bill(self.db, other.id, self.bill.id)

    def test_list_bills_filters_and_paginates(self):
        second = self.add_flat("302")
        BillService.generate_single_bill(
            self.db, self.society.id, second.id, "April 2026", date(2026, 4, 10), breakdown=[("Maintenance", 100)]
        )

        bills, total = BillService.list_bills(self.db, self.society.id, billing_period=PERIOD)
        self.assertEqual(total, 1)
        self.assertEqual(bills[0].id, self.bill.id)

        bills, total = BillService.list_bills(self.db, self.society.id, page=2, page_size=1)
        self.assertEqual(total, 2)
        self.assertEqual(len(bills), 1)

        bills, total = BillService.list_bills(self.db, self.society.id, status=BillStatus.PAID)
        self.assertEqual((bills, total), ([], 0))

    def test_list_user_bills(self):
        self.assertEqual(
            [bill.id for bill in BillService.list_user_bills(self.db, self.society.id, self.owner.id)],
            [self.bill.id],
        )

    def test_mark_overdue_only_moves_pending_bills_past_due(self):
        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=DUE), 0)
        self.assertEqual(self.bill.status, BillStatus.PENDING)

        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=date(2026, 3, 11)), 1)
        self.assertEqual(self.bill.status, BillStatus.OVERDUE)

        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=date(2026, 3, 12)), 0)

    def test_repeat_run_in_same_session_counts_nothing(self):
        as_of = date(2026, 3, 11)

        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=as_of), 1)
        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=as_of), 0)
        self.assertEqual(self.bill.status, BillStatus.OVERDUE)

    def test_paid_bills_are_never_overdue(self):
        self.bill.mark_as_paid()

        self.assertEqual(BillService.mark_overdue_bills(self.db, self.society.id, as_of=date(2026, 5, 1)), 0)
        self.assertEqual(self.bill.status, BillStatus.PAID)

    def test_late_fee_disabled_by_default(self):
        self.assertEqual(BillService.calculate_late_fee(self.bill, self.config, as_of=date(2026, 6, 1)), 0)

    def test_fixed_late_fee_after_grace_period(self):
        update_config(self.db, self.society.id, late_fee={"enabled": True, "amount": 150, "grace_days": 5})

        self.assertEqual(BillService.calculate_late_fee(self.bill, self.config, as_of=date(2026, 3, 15)), 0)
        self.assertEqual(BillService.calculate_late_fee(self.bill, self.config, as_of=date(2026, 3, 16)), 150)

    def test_percentage_late_fee_is_rounded(self):
        update_config(self.db, self.society.id, late_fee={
            "enabled": True, "amount": Decimal("2.5"), "type": LateFeeType.PERCENTAGE, "grace_days": 0,
        })
        # 2.5% of 2010 = 50.25
        self.bill.total_amount = Decimal("2010")

        self.assertEqual(BillService.calculate_late_fee(self.bill, self.config, as_of=date(2026, 3, 11)), 50)

    def test_no_late_fee_on_paid_bill(self):
        update_config(self.db, self.society.id, late_fee={"enabled": True, "amount": 150, "grace_days": 0})
        self.bill.mark_as_paid()

        self.assertEqual(BillService.calculate_late_fee(self.bill, self.config, as_of=date(2026, 6, 1)), 0)


class TestBillingStats(DatabaseTestCase):

    def test_collected_and_reserve_totals_count_paid_bills(self):
        get_or_create_config(self.db, self.society.id)
        first = self.add_flat("401")
        self.add_flat("402", area_sqft=500)
        BillService.generate_bulk_bills(self.db, self.society.id, PERIOD, DUE)
        paid = self.db.query(Bill).filter(Bill.flat_id == first.id).one()
        paid.mark_as_paid()
        self.db.flush()

        stats = BillService.billing_stats(self.db, self.society.id)

        # 6800 for 1000 sq.ft, 3800 for 500 sq.ft
        self.assertEqual(stats["total_bills"], 2)
        self.assertEqual(stats["total_billed"], 10600.0)
        self.assertEqual(stats["total_collected"], 6800.0)
        self.assertEqual(stats["total_pending"], 3800.0)
        self.assertEqual(stats["collection_rate"], 64.2)
        self.assertEqual(stats["reserve_fund_collected"], 1000.0)
        self.assertEqual(
            stats["charge_breakdown"][0], {"charge_name": "Maintenance", "amount": 7500.0}
        )
        self.assertEqual(
            stats["period_trend"],
            [{"billing_period": PERIOD, "bills": 2, "billed": 10600.0, "collected": 6800.0}],
        )

    def test_empty_society(self):
        stats = BillService.billing_stats(self.db, self.society.id)

        self.assertEqual(stats["total_bills"], 0)
        self.assertEqual(stats["collection_rate"], 0.0)
        self.assertEqual(stats["period_trend"], [])


if __name__ == "__main__":
    unittest.main()
