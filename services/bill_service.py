# services/bill_service.py
"""
Bill Service - bill generation and bill lifecycle rules.

Bulk generation bills every active flat of a society once per billing
period. The flats already billed for the period are read once up front;
everything is computed before anything is written, and the new bills go in
as one batch. A unique constraint on (society, flat, period) backs this up
when two runs race: bills the other run already created are counted as
skipped.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from models import Bill, BillLineItem, BillingConfig, Flat
from models.bill import BillStatus
from models.billing_config import LateFeeType
from services.billing_config_service import get_config
from services.breakdown import Breakdown, BreakdownLine, calculate_breakdown, round_to_unit
from services.errors import (
     BillNotFound,
     ConfigurationMissing,
     DuplicateBill,
     FlatNotFound,
     NoUnitsFound,
)
from services.flat_service import get_flat, list_active_flats

logger = logging.getLogger(__name__)

UNPAID_STATUSES = (BillStatus.PENDING, BillStatus.OVERDUE)


@dataclass(frozen=True)
class BulkGenerationResult:
     generated: int
     skipped: int
     total_units: int


def _billed_flat_ids(db: Session, society_id: int, billing_period: str) -> Set[int]:
     rows = (
          db.query(Bill.flat_id)
          .filter(Bill.society_id == society_id, Bill.billing_period == billing_period)
          .all()
     )
     return {row[0] for row in rows}


def _bill_exists(db: Session, society_id: int, flat_id: int, billing_period: str) -> bool:
     return db.query(Bill.id).filter(
          Bill.society_id == society_id,
          Bill.flat_id == flat_id,
          Bill.billing_period == billing_period,
     ).first() is not None


def _new_bill(
     society_id: int,
     flat: Flat,
     billing_period: str,
     due_date: date,
     breakdown: Breakdown,
     user_id: Optional[int] = None,
) -> Bill:
     bill = Bill(
          society_id=society_id,
          flat_id=flat.id,
          user_id=user_id if user_id is not None else flat.responsible_user_id,
          billing_period=billing_period,
          due_date=due_date,
          total_amount=Decimal(breakdown.total),
          status=BillStatus.PENDING,
     )
     bill.line_items = [
          BillLineItem(
               charge_name=line.charge_name,
               amount=Decimal(line.amount),
               is_reserve_fund=line.is_reserve_fund,
          )
          for line in breakdown.lines
     ]
     bill.line_items.reorder()
     return bill


def _require_active_heads(config: Optional[BillingConfig]) -> list:
     heads = config.active_charge_heads if config is not None else []
     if not heads:
          raise ConfigurationMissing()
     return heads


class BillService:
     """Service class for bill generation and bill lifecycle."""

     @staticmethod
     def generate_bulk_bills(
          db: Session,
          society_id: int,
          billing_period: str,
          due_date: date,
     ) -> BulkGenerationResult:
          """
          Generate one bill per active flat for a billing period.

          Flats that already have a bill for exactly this billing_period are
          skipped, so running this twice for the same period creates nothing
          the second time.

          Args:
               db: SQLAlchemy database session
               society_id: society being billed
               billing_period: period label, e.g. "March 2026"
               due_date: due date written on every new bill

          Returns:
               BulkGenerationResult with generated/skipped/total_units counts

          Raises:
               ConfigurationMissing: no configuration or no active charge heads
               NoUnitsFound: the society has no active flats
          """
          heads = _require_active_heads(get_config(db, society_id))

          flats = list_active_flats(db, society_id)
          if not flats:
               raise NoUnitsFound()

          already_billed = _billed_flat_ids(db, society_id, billing_period)

          drafts: List[Tuple[Flat, Breakdown]] = []
          for flat in flats:
               if flat.id in already_billed:
                    continue
               drafts.append((flat, calculate_breakdown(flat, heads)))

          generated = BillService._insert_drafts(db, society_id, billing_period, due_date, drafts)
          result = BulkGenerationResult(
               generated=generated,
               skipped=len(flats) - generated,
               total_units=len(flats),
          )
          logger.info(
               "Bulk billing for society %s, period '%s': %d generated, %d skipped of %d flats",
               society_id, billing_period, result.generated, result.skipped, result.total_units,
          )
          return result

     @staticmethod
     def _insert_drafts(
          db: Session,
          society_id: int,
          billing_period: str,
          due_date: date,
          drafts: List[Tuple[Flat, Breakdown]],
     ) -> int:
          """Insert staged bills as one batch; returns how many were inserted."""
          if not drafts:
               return 0

          try:
               with db.begin_nested():
                    db.add_all([
                         _new_bill(society_id, flat, billing_period, due_date, breakdown)
                         for flat, breakdown in drafts
                    ])
               return len(drafts)
          except IntegrityError:
               logger.warning(
                    "Batch insert for society %s, period '%s' hit an existing bill; "
                    "retrying flat by flat",
                    society_id, billing_period,
               )

          inserted = 0
          for flat, breakdown in drafts:
               try:
                    with db.begin_nested():
                         db.add(_new_bill(society_id, flat, billing_period, due_date, breakdown))
               except IntegrityError:
                    if not _bill_exists(db, society_id, flat.id, billing_period):
                         raise
                    logger.info("Flat %s was billed concurrently for '%s'", flat.id, billing_period)
               else:
                    inserted += 1
          return inserted

     @staticmethod
     def generate_single_bill(
          db: Session,
          society_id: int,
          flat_id: int,
          billing_period: str,
          due_date: date,
          breakdown: Optional[List] = None,
          user_id: Optional[int] = None,
     ) -> Bill:
          """
          Generate a bill for one flat.

          If breakdown (a list of (charge_name, amount) pairs) is not given,
          it is computed from the society's charge heads.

          Raises:
               FlatNotFound: flat is not an active flat of the society
               DuplicateBill: the flat already has a bill for this period
               ConfigurationMissing: breakdown must be computed but billing is not configured
          """
          flat = get_flat(db, society_id, flat_id)
          if flat is None:
               raise FlatNotFound(f"Flat with ID {flat_id} not found")

          if _bill_exists(db, society_id, flat_id, billing_period):
               raise DuplicateBill(f"Bill for this flat already exists for {billing_period}")

          if breakdown is None:
               heads = _require_active_heads(get_config(db, society_id))
               computed = calculate_breakdown(flat, heads)
          else:
               computed = Breakdown()
               for charge_name, amount in breakdown:
                    computed.add(BreakdownLine(charge_name, round_to_unit(amount)))

          bill = _new_bill(society_id, flat, billing_period, due_date, computed, user_id=user_id)
          try:
               with db.begin_nested():
                    db.add(bill)
          except IntegrityError:
               raise DuplicateBill(f"Bill for this flat already exists for {billing_period}")

          logger.info("Generated bill %s for flat %s, period '%s'", bill.id, flat_id, billing_period)
          return bill

     @staticmethod
     def get_bill(db: Session, society_id: int, bill_id: int) -> Bill:
          """
          Raises:
               BillNotFound: no such bill in this society
          """
          bill = db.query(Bill).filter(Bill.id == bill_id, Bill.society_id == society_id).first()
          if bill is None:
               raise BillNotFound(f"Bill with ID {bill_id} not found")
          return bill

     @staticmethod
     def list_bills(
          db: Session,
          society_id: int,
          status: Optional[BillStatus] = None,
          billing_period: Optional[str] = None,
          page: int = 1,
          page_size: int = 50,
     ) -> Tuple[List[Bill], int]:
          """Society bills, newest first. Returns (bills on this page, total matching)."""
          query = db.query(Bill).filter(Bill.society_id == society_id)
          if status is not None:
               query = query.filter(Bill.status == status)
          if billing_period:
               query = query.filter(Bill.billing_period == billing_period)

          total = query.count()
          offset = (page - 1) * page_size
          bills = (
               query.options(selectinload(Bill.line_items))
               .order_by(Bill.created_at.desc(), Bill.id.desc())
               .offset(offset)
               .limit(page_size)
               .all()
          )
          return bills, total

     @staticmethod
     def list_user_bills(db: Session, society_id: int, user_id: int) -> List[Bill]:
          """Bills addressed to one resident, newest first."""
          return (
               db.query(Bill)
               .options(selectinload(Bill.line_items))
               .filter(Bill.society_id == society_id, Bill.user_id == user_id)
               .order_by(Bill.created_at.desc(), Bill.id.desc())
               .all()
          )

     @staticmethod
     def mark_overdue_bills(db: Session, society_id: int, as_of: Optional[date] = None) -> int:
          """
          Mark pending bills past their due date as OVERDUE.

          Returns:
               Number of bills marked as overdue
          """
          as_of = as_of or date.today()
          # Status changes made earlier in this session must be visible to the query
          db.flush()
          overdue_bills = db.query(Bill).filter(
               Bill.society_id == society_id,
               Bill.status == BillStatus.PENDING,
               Bill.due_date < as_of,
          ).all()

          overdue_bills = [bill for bill in overdue_bills if bill.status == BillStatus.PENDING]
          for bill in overdue_bills:
               bill.mark_as_overdue()

          if overdue_bills:
               logger.info("Marked %d bills overdue for society %s", len(overdue_bills), society_id)
          return len(overdue_bills)

     @staticmethod
     def calculate_late_fee(bill: Bill, config: Optional[BillingConfig], as_of: Optional[date] = None) -> int:
          """
          Late fee owed on an unpaid bill under the society's late-fee rule.

          Nothing is owed until grace_days have passed after the due date.
          Percentage fees are a percentage of the bill total. Rounded to a whole
          currency unit.
          """
          if config is None or not config.late_fee_enabled:
               return 0
          if bill.status not in UNPAID_STATUSES:
               return 0

          as_of = as_of or date.today()
          if as_of <= bill.due_date + timedelta(days=config.late_fee_grace_days or 0):
               return 0

          amount = Decimal(config.late_fee_amount or 0)
          if config.late_fee_type == LateFeeType.PERCENTAGE:
               return round_to_unit(Decimal(bill.total_amount) * amount / Decimal("100"))
          return round_to_unit(amount)

     @staticmethod
     def billing_stats(db: Session, society_id: int) -> dict:
          """
          Collection summary for a society's bills.

          Returns:
               Dictionary with billed/collected/pending totals, collection rate
               (percent of billed amount on paid bills), reserve fund collected,
               per-charge totals and a per-period trend
          """
          bills = (
               db.query(Bill)
               .options(selectinload(Bill.line_items))
               .filter(Bill.society_id == society_id)
               .order_by(Bill.created_at, Bill.id)
               .all()
          )

          paid = [bill for bill in bills if bill.status == BillStatus.PAID]
          total_billed = sum((Decimal(bill.total_amount) for bill in bills), Decimal("0"))
          total_collected = sum((Decimal(bill.total_amount) for bill in paid), Decimal("0"))
          reserve_collected = sum(
               (Decimal(line.amount) for bill in paid for line in bill.line_items if line.is_reserve_fund),
               Decimal("0"),
          )

          by_charge = OrderedDict()
          by_period = OrderedDict()
          for bill in bills:
               for line in bill.line_items:
                    by_charge[line.charge_name] = by_charge.get(line.charge_name, Decimal("0")) + Decimal(line.amount)
               period = by_period.setdefault(
                    bill.billing_period, {"billed": Decimal("0"), "collected": Decimal("0"), "bills": 0}
               )
               period["billed"] += Decimal(bill.total_amount)
               period["bills"] += 1
               if bill.status == BillStatus.PAID:
                    period["collected"] += Decimal(bill.total_amount)

          collection_rate = (
               round(float(total_collected / total_billed * 100), 1) if total_billed else 0.0
          )

          return {
               "total_bills": len(bills),
               "total_billed": float(total_billed),
               "total_collected": float(total_collected),
               "total_pending": float(total_billed - total_collected),
               "collection_rate": collection_rate,
               "reserve_fund_collected": float(reserve_collected),
               "charge_breakdown": [
                    {"charge_name": name, "amount": float(amount)} for name, amount in by_charge.items()
               ],
               "period_trend": [
                    {
                         "billing_period": name,
                         "bills": values["bills"],
                         "billed": float(values["billed"]),
                         "collected": float(values["collected"]),
                    }
                    for name, values in by_period.items()
               ],
          }
