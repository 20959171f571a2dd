# schemas/__init__.py
from .billing_config import (
     ChargeHeadIn,
     ChargeHeadResponse,
     LateFeeRule,
     LateFeeUpdate,
     BillingConfigUpdate,
     BillingConfigResponse,
)
from .bill import (
     BulkGenerateRequest,
     BulkGenerateResponse,
     BillCreate,
     BillResponse,
     BillListResponse,
     BillingStatsResponse,
     MarkOverdueResponse,
)
from .payment import (
     PaymentCreate,
     ClearPaymentRequest,
     TransactionResponse,
     PaymentResponse,
)

__all__ = [
     "ChargeHeadIn",
     "ChargeHeadResponse",
     "LateFeeRule",
     "LateFeeUpdate",
     "BillingConfigUpdate",
     "BillingConfigResponse",
     "BulkGenerateRequest",
     "BulkGenerateResponse",
     "BillCreate",
     "BillResponse",
     "BillListResponse",
     "BillingStatsResponse",
     "MarkOverdueResponse",
     "PaymentCreate",
     "ClearPaymentRequest",
     "TransactionResponse",
     "PaymentResponse",
]
