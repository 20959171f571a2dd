# services/__init__.py
from .bill_service import BillService, BulkGenerationResult
from .billing_config_service import (
     get_config,
     get_or_create_config,
     update_config,
     validate_charge_heads,
     DEFAULT_CHARGE_HEADS,
)
from .breakdown import Breakdown, BreakdownLine, calculate_breakdown
from .payment_service import record_payment, clear_payment

__all__ = [
     "BillService",
     "BulkGenerationResult",
     "get_config",
     "get_or_create_config",
     "update_config",
     "validate_charge_heads",
     "DEFAULT_CHARGE_HEADS",
     "Breakdown",
     "BreakdownLine",
     "calculate_breakdown",
     "record_payment",
     "clear_payment",
]
