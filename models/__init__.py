# models/__init__.py
from .base import Base
from .society import Society
from .user import User
from .flat import Flat, OccupancyStatus
from .billing_config import BillingConfig, ChargeHead, ComputationType, LateFeeType
from .bill import Bill, BillLineItem, BillStatus
from .payment_transaction import (
     PaymentTransaction,
     PaymentMethod,
     TransactionStatus,
     DEFERRED_CLEARING_METHODS,
)

__all__ = [
     "Base",
     "Society",
     "User",
     "Flat",
     "OccupancyStatus",
     "BillingConfig",
     "ChargeHead",
     "ComputationType",
     "LateFeeType",
     "Bill",
     "BillLineItem",
     "BillStatus",
     "PaymentTransaction",
     "PaymentMethod",
     "TransactionStatus",
     "DEFERRED_CLEARING_METHODS",
]
