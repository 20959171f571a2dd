# services/breakdown.py
"""
Charge breakdown computation for one flat.

Pure functions, no database access. Charge heads are evaluated in two passes:

1. Non-percentage heads, in list order. per_area heads charge
   round(rate * area), fixed heads charge their rate. Non-occupancy heads are
   skipped for owner-occupied flats.
2. Percentage heads, in list order. The base is the amount of the head named
   by percentage_of_name if pass 1 produced one, otherwise the pass-1 running
   total. Percentage heads never use each other as a base.

Every line is rounded half-up to a whole currency unit on its own and the
total is the sum of the rounded lines, so the breakdown always adds up to the
total exactly.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from models.billing_config import ComputationType
from models.flat import OccupancyStatus

ONE_UNIT = Decimal("1")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class BreakdownLine:
     charge_name: str
     amount: int
     is_reserve_fund: bool = False


@dataclass
class Breakdown:
     lines: List[BreakdownLine] = field(default_factory=list)
     total: int = 0

     def add(self, line: BreakdownLine) -> None:
          self.lines.append(line)
          self.total += line.amount


def round_to_unit(value) -> int:
     """Round half-up to a whole currency unit."""
     return int(Decimal(value).quantize(ONE_UNIT, rounding=ROUND_HALF_UP))


def _to_decimal(value) -> Decimal:
     if isinstance(value, Decimal):
          return value
     return Decimal(str(value if value is not None else 0))


def _skips_flat(head, flat) -> bool:
     return bool(head.is_non_occupancy_only) and flat.occupancy_status == OccupancyStatus.OWNER_OCCUPIED


def calculate_breakdown(flat, charge_heads: Iterable) -> Breakdown:
     """
     Compute the itemized charges for one flat.

     Args:
          flat: object with area_sqft and occupancy_status
          charge_heads: ordered charge heads; inactive ones are ignored

     Returns:
          Breakdown with the ordered lines and their total
     """
     heads = [head for head in charge_heads if head.is_active]
     area = _to_decimal(flat.area_sqft)
     breakdown = Breakdown()
     amounts_by_name = {}

     for head in heads:
          if head.computation_type == ComputationType.PERCENTAGE_OF:
               continue
          if _skips_flat(head, flat):
               continue

          rate = _to_decimal(head.rate)
          if head.computation_type == ComputationType.PER_AREA:
               amount = round_to_unit(rate * area)
          else:
               amount = round_to_unit(rate)

          amounts_by_name[head.name] = amount
          breakdown.add(BreakdownLine(head.name, amount, bool(head.is_reserve_fund)))

     # Percentage bases come from pass 1 only
     first_pass_total = breakdown.total
     for head in heads:
          if head.computation_type != ComputationType.PERCENTAGE_OF:
               continue

          base = amounts_by_name.get(head.percentage_of_name, first_pass_total)
          amount = round_to_unit(_to_decimal(head.rate) / HUNDRED * base)
          breakdown.add(BreakdownLine(head.name, amount, bool(head.is_reserve_fund)))

     return breakdown
