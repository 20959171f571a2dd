# services/billing_config_service.py
"""
Billing Configuration Service - per-society charge heads and billing rules.

A society's configuration is created with a default set of charge heads the
first time it is read. Updates replace the charge-head list wholesale and
merge late-fee fields; charge heads are validated before anything is written.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import BillingConfig, ChargeHead
from models.billing_config import ComputationType, LateFeeType
from services.errors import InvalidChargeHeads

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAY = 10

DEFAULT_CHARGE_HEADS = (
     {"name": "Maintenance", "computation_type": ComputationType.PER_AREA, "rate": Decimal("5")},
     {"name": "Reserve", "computation_type": ComputationType.PER_AREA, "rate": Decimal("1"),
      "is_reserve_fund": True},
     {"name": "Utility", "computation_type": ComputationType.FIXED, "rate": Decimal("300")},
     {"name": "Parking", "computation_type": ComputationType.FIXED, "rate": Decimal("500")},
     {"name": "Penalty", "computation_type": ComputationType.FIXED, "rate": Decimal("1000"),
      "is_non_occupancy_only": True},
)

# Late-fee keys accepted by update_config -> BillingConfig column
LATE_FEE_FIELDS = {
     "enabled": "late_fee_enabled",
     "amount": "late_fee_amount",
     "type": "late_fee_type",
     "grace_days": "late_fee_grace_days",
}


def _head_value(head, key, default=None):
     if isinstance(head, Mapping):
          return head.get(key, default)
     return getattr(head, key, default)


def validate_charge_heads(charge_heads: Iterable) -> None:
     """
     Check that a charge-head list can be evaluated without ambiguity.

     - percentage_of heads must name the head they are a percentage of
     - that head must be in the same list
     - that head must not be a percentage_of head itself
     - active heads must have distinct names

     Raises:
          InvalidChargeHeads: listing every problem found
     """
     heads = list(charge_heads)
     problems = []
     types_by_name = {}
     seen_active = set()

     for head in heads:
          name = _head_value(head, "name")
          types_by_name.setdefault(name, set()).add(ComputationType(_head_value(head, "computation_type")))
          if _head_value(head, "is_active", True):
               if name in seen_active:
                    problems.append(f"Duplicate active charge head name '{name}'")
               seen_active.add(name)

     for head in heads:
          if ComputationType(_head_value(head, "computation_type")) != ComputationType.PERCENTAGE_OF:
               continue
          name = _head_value(head, "name")
          target = _head_value(head, "percentage_of_name")
          if not target:
               problems.append(f"Charge head '{name}' is a percentage but does not say of which charge head")
          elif target not in types_by_name:
               problems.append(f"Charge head '{name}' is a percentage of unknown charge head '{target}'")
          elif ComputationType.PERCENTAGE_OF in types_by_name[target]:
               problems.append(
                    f"Charge head '{name}' cannot be a percentage of '{target}', "
                    f"which is itself a percentage"
               )

     if problems:
          raise InvalidChargeHeads(problems)


def _build_charge_head(data) -> ChargeHead:
     computation_type = ComputationType(_head_value(data, "computation_type"))
     return ChargeHead(
          name=_head_value(data, "name").strip(),
          computation_type=computation_type,
          rate=Decimal(str(_head_value(data, "rate", 0))),
          percentage_of_name=(
               _head_value(data, "percentage_of_name")
               if computation_type == ComputationType.PERCENTAGE_OF else None
          ),
          is_non_occupancy_only=bool(_head_value(data, "is_non_occupancy_only", False)),
          is_reserve_fund=bool(_head_value(data, "is_reserve_fund", False)),
          is_active=bool(_head_value(data, "is_active", True)),
     )


def get_config(db: Session, society_id: int) -> Optional[BillingConfig]:
     """Return the society's configuration, or None if it was never created."""
     return db.query(BillingConfig).filter(BillingConfig.society_id == society_id).first()


def get_or_create_config(db: Session, society_id: int) -> BillingConfig:
     """
     Return the society's configuration, creating the default one if absent.

     The default has the standard charge heads (maintenance and reserve fund
     per sq.ft, flat utility and parking, non-occupancy penalty) and bills
     due on the 10th.
     """
     config = get_config(db, society_id)
     if config is not None:
          return config

     config = BillingConfig(
          society_id=society_id,
          default_due_day=DEFAULT_DUE_DAY,
          late_fee_enabled=False,
          late_fee_amount=Decimal("0"),
          late_fee_type=LateFeeType.FIXED,
          late_fee_grace_days=15,
     )
     config.charge_heads = [_build_charge_head(head) for head in DEFAULT_CHARGE_HEADS]
     config.charge_heads.reorder()
     try:
          with db.begin_nested():
               db.add(config)
     except IntegrityError:
          # Another request created it first
          logger.info("Billing config for society %s was created concurrently", society_id)
          return get_config(db, society_id)

     logger.info("Created default billing config for society %s", society_id)
     return config


def update_config(
     db: Session,
     society_id: int,
     charge_heads: Optional[List] = None,
     default_due_day: Optional[int] = None,
     late_fee: Optional[Mapping] = None,
) -> BillingConfig:
     """
     Update a society's configuration.

     Args:
          db: SQLAlchemy database session
          society_id: society being configured
          charge_heads: replaces the whole list when given
          default_due_day: day of month (1-28) when given
          late_fee: mapping with any of enabled, amount, type, grace_days;
               only the keys present are changed

     Raises:
          InvalidChargeHeads: if charge_heads fails validation (nothing is written)
     """
     if charge_heads is not None:
          validate_charge_heads(charge_heads)

     config = get_or_create_config(db, society_id)

     if charge_heads is not None:
          config.charge_heads = [_build_charge_head(head) for head in charge_heads]
          config.charge_heads.reorder()

     if default_due_day is not None:
          config.default_due_day = default_due_day

     if late_fee:
          for key, column in LATE_FEE_FIELDS.items():
               if late_fee.get(key) is None:
                    continue
               value = late_fee[key]
               if key == "type":
                    value = LateFeeType(value)
               elif key == "amount":
                    value = Decimal(str(value))
               setattr(config, column, value)

     db.flush()
     logger.info(
          "Updated billing config for society %s (%d charge heads)",
          society_id, len(config.charge_heads),
     )
     return config
