# routers/finance.py
"""
Finance API routes: billing configuration, bill generation, payments.

Every route is scoped to the society in the caller's token.
Role-based access:
- Admin / Manager: configure billing, generate bills, view all bills, clear cheques
- Resident: view own bills, pay bills
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import CallerContext, get_caller, require_admin
from models import Bill, BillingConfig, PaymentTransaction
from models.bill import BillStatus
from models.payment_transaction import TransactionStatus
from schemas.bill import (
     BillCreate,
     BillListResponse,
     BillResponse,
     BillingStatsResponse,
     BreakdownLineResponse,
     BulkGenerateRequest,
     BulkGenerateResponse,
     MarkOverdueResponse,
)
from schemas.billing_config import (
     BillingConfigResponse,
     BillingConfigUpdate,
     ChargeHeadResponse,
     LateFeeRule,
)
from schemas.payment import (
     ClearPaymentRequest,
     PaymentCreate,
     PaymentResponse,
     TransactionResponse,
)
from services import billing_config_service, payment_service
from services.bill_service import BillService
from services.errors import (
     BillAlreadyPaid,
     BillNotFound,
     ConfigurationMissing,
     DuplicateBill,
     FlatNotFound,
     InvalidChargeHeads,
     NoUnitsFound,
     PaymentNotPendingClearance,
     TransactionNotFound,
)

router = APIRouter(prefix="/api/finance", tags=["finance"])


ERROR_STATUS = {
     ConfigurationMissing: status.HTTP_400_BAD_REQUEST,
     NoUnitsFound: status.HTTP_400_BAD_REQUEST,
     InvalidChargeHeads: status.HTTP_400_BAD_REQUEST,
     BillAlreadyPaid: status.HTTP_400_BAD_REQUEST,
     FlatNotFound: status.HTTP_404_NOT_FOUND,
     BillNotFound: status.HTTP_404_NOT_FOUND,
     TransactionNotFound: status.HTTP_404_NOT_FOUND,
     DuplicateBill: status.HTTP_409_CONFLICT,
     PaymentNotPendingClearance: status.HTTP_409_CONFLICT,
}


def _http_error(exc: ValueError) -> HTTPException:
     return HTTPException(
          status_code=ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
          detail=str(exc),
     )


# ---------------------------------------------------------------------------
# Billing configuration
# ---------------------------------------------------------------------------

@router.get(
     "/config",
     response_model=BillingConfigResponse,
     summary="Get billing configuration"
)
def get_billing_config(
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(get_caller),
):
     """
     Return the society's charge heads, due day and late fee rule.
     A default configuration is created the first time this is called.
     """
     config = billing_config_service.get_or_create_config(db, caller.society_id)
     db.commit()
     return _build_config_response(config)


@router.put(
     "/config",
     response_model=BillingConfigResponse,
     summary="Update billing configuration"
)
def update_billing_config(
     body: BillingConfigUpdate,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Update the billing configuration.

     - **chargeHeads**: replaces the whole list when given
     - **defaultDueDay**: day of the month bills fall due (1-28)
     - **lateFee**: only the provided fields are changed

     Percentage heads must refer to a non-percentage head in the same list.
     """
     try:
          config = billing_config_service.update_config(
               db,
               caller.society_id,
               charge_heads=(
                    [head.model_dump() for head in body.charge_heads]
                    if body.charge_heads is not None else None
               ),
               default_due_day=body.default_due_day,
               late_fee=body.late_fee.model_dump(exclude_none=True) if body.late_fee else None,
          )
     except InvalidChargeHeads as exc:
          raise _http_error(exc)

     db.commit()
     db.refresh(config)
     return _build_config_response(config)


# ---------------------------------------------------------------------------
# Bill generation
# ---------------------------------------------------------------------------

@router.post(
     "/bills/bulk",
     response_model=BulkGenerateResponse,
     summary="Generate bills for all flats"
)
def generate_bulk_bills(
     body: BulkGenerateRequest,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Generate one bill per active flat for **billingPeriod**.

     Flats already billed for that period are skipped, so the call is safe
     to repeat.
     """
     try:
          result = BillService.generate_bulk_bills(
               db, caller.society_id, body.billing_period, body.due_date
          )
     except (ConfigurationMissing, NoUnitsFound) as exc:
          raise _http_error(exc)

     db.commit()
     return BulkGenerateResponse(
          generated=result.generated,
          skipped=result.skipped,
          total_units=result.total_units,
          message=f"{result.generated} bills generated, {result.skipped} skipped",
     )


@router.post(
     "/bills",
     response_model=BillResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Generate a bill for one flat"
)
def create_bill(
     body: BillCreate,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Generate a bill for a single flat.

     - **breakdown**: itemized charges; computed from the billing
       configuration when omitted
     """
     try:
          bill = BillService.generate_single_bill(
               db,
               caller.society_id,
               body.flat_id,
               body.billing_period,
               body.due_date,
               breakdown=(
                    [(line.charge_name, line.amount) for line in body.breakdown]
                    if body.breakdown is not None else None
               ),
               user_id=body.user_id,
          )
     except (FlatNotFound, DuplicateBill, ConfigurationMissing) as exc:
          raise _http_error(exc)

     db.commit()
     db.refresh(bill)
     return _build_bill_response(bill, billing_config_service.get_config(db, caller.society_id))


# ---------------------------------------------------------------------------
# Bill queries
# ---------------------------------------------------------------------------

@router.get(
     "/bills",
     response_model=BillListResponse,
     summary="List society bills"
)
def list_bills(
     status: Optional[BillStatus] = Query(None, description="Filter by status"),
     billing_period: Optional[str] = Query(None, alias="billingPeriod", description="Filter by billing period"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, alias="pageSize", description="Items per page"),
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Paginated list of the society's bills, newest first.
     """
     bills, total = BillService.list_bills(
          db, caller.society_id, status=status, billing_period=billing_period, page=page, page_size=page_size
     )
     config = billing_config_service.get_config(db, caller.society_id)
     return BillListResponse(
          bills=[_build_bill_response(bill, config) for bill in bills],
          total=total,
          page=page,
          page_size=page_size,
     )


@router.get(
     "/my-bills",
     response_model=BillListResponse,
     summary="List the caller's bills"
)
def list_my_bills(
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(get_caller),
):
     """Bills addressed to the logged-in resident."""
     if caller.user_id is None:
          return BillListResponse(bills=[], total=0)
     bills = BillService.list_user_bills(db, caller.society_id, caller.user_id)
     config = billing_config_service.get_config(db, caller.society_id)
     return BillListResponse(
          bills=[_build_bill_response(bill, config) for bill in bills],
          total=len(bills),
          page=1,
          page_size=max(len(bills), 1),
     )


@router.get(
     "/stats",
     response_model=BillingStatsResponse,
     summary="Billing and collection summary"
)
def get_billing_stats(
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Totals billed, collected and pending, collection rate, reserve fund
     collected, per-charge totals and per-period trend.
     """
     return BillingStatsResponse(**BillService.billing_stats(db, caller.society_id))


@router.post(
     "/bills/mark-overdue",
     response_model=MarkOverdueResponse,
     summary="Mark past-due bills as overdue"
)
def mark_overdue_bills(
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """Move every pending bill whose due date has passed to OVERDUE."""
     updated = BillService.mark_overdue_bills(db, caller.society_id)
     db.commit()
     return MarkOverdueResponse(updated=updated)


@router.get(
     "/bills/{bill_id}",
     response_model=BillResponse,
     summary="Get bill by ID"
)
def get_bill(
     bill_id: int,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(get_caller),
):
     """
     Retrieve one bill with its breakdown.

     Residents can only see bills addressed to them.
     """
     try:
          bill = BillService.get_bill(db, caller.society_id, bill_id)
     except BillNotFound as exc:
          raise _http_error(exc)

     if not caller.is_admin and (caller.user_id is None or bill.user_id != caller.user_id):
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="You do not have permission to view this bill"
          )

     return _build_bill_response(bill, billing_config_service.get_config(db, caller.society_id))


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

@router.post(
     "/pay",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def record_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(get_caller),
):
     """
     Record a payment against a bill.

     The transaction and the bill's new status are committed together.
     Cheque payments leave the bill pending clearance.
     """
     try:
          transaction = payment_service.record_payment(
               db,
               caller.society_id,
               caller.user_id,
               body.bill_id,
               body.amount_paid,
               body.payment_method,
               transaction_ref=body.transaction_ref,
          )
     except (BillNotFound, BillAlreadyPaid) as exc:
          raise _http_error(exc)

     db.commit()
     message = (
          "Payment recorded successfully"
          if transaction.status == TransactionStatus.SUCCESS
          else "Payment recorded. Cheque pending clearance."
     )
     return _build_payment_response(transaction, message)


@router.post(
     "/payments/{transaction_id}/clear",
     response_model=PaymentResponse,
     summary="Settle a cheque payment"
)
def clear_payment(
     transaction_id: int,
     body: ClearPaymentRequest,
     db: Session = Depends(get_session),
     caller: CallerContext = Depends(require_admin),
):
     """
     Mark a pending-clearance payment as cleared (bill becomes PAID) or
     bounced with **cleared** = false (bill goes back to PENDING).
     """
     try:
          transaction = payment_service.clear_payment(
               db, caller.society_id, transaction_id, body.cleared
          )
     except (TransactionNotFound, PaymentNotPendingClearance) as exc:
          raise _http_error(exc)

     db.commit()
     message = "Cheque cleared" if body.cleared else "Cheque bounced; bill is pending again"
     return _build_payment_response(transaction, message)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def _build_config_response(config: BillingConfig) -> BillingConfigResponse:
     return BillingConfigResponse(
          society_id=config.society_id,
          charge_heads=[
               ChargeHeadResponse(
                    id=head.id,
                    name=head.name,
                    computation_type=head.computation_type,
                    rate=float(head.rate),
                    percentage_of_name=head.percentage_of_name,
                    is_non_occupancy_only=head.is_non_occupancy_only,
                    is_reserve_fund=head.is_reserve_fund,
                    is_active=head.is_active,
               )
               for head in config.charge_heads
          ],
          default_due_day=config.default_due_day,
          late_fee=LateFeeRule(
               enabled=config.late_fee_enabled,
               amount=float(config.late_fee_amount or 0),
               type=config.late_fee_type,
               grace_days=config.late_fee_grace_days,
          ),
     )


def _build_bill_response(
     bill: Bill,
     config: Optional[BillingConfig],
     as_of: Optional[date] = None,
) -> BillResponse:
     """
     Helper function to build BillResponse with related data.
     """
     flat = bill.flat
     user = bill.user
     return BillResponse(
          id=bill.id,
          flat_id=bill.flat_id,
          user_id=bill.user_id,
          billing_period=bill.billing_period,
          due_date=bill.due_date,
          total_amount=int(bill.total_amount),
          status=bill.status,
          breakdown=[
               BreakdownLineResponse(
                    charge_name=line.charge_name,
                    amount=int(line.amount),
                    is_reserve_fund=line.is_reserve_fund,
               )
               for line in bill.line_items
          ],
          late_fee=BillService.calculate_late_fee(bill, config, as_of),
          created_at=bill.created_at,
          flat_label=flat.label if flat else None,
          resident_name=user.full_name if user else None,
     )


def _build_payment_response(transaction: PaymentTransaction, message: str) -> PaymentResponse:
     return PaymentResponse(
          transaction=TransactionResponse(
               id=transaction.id,
               bill_id=transaction.bill_id,
               user_id=transaction.user_id,
               amount_paid=float(transaction.amount_paid),
               payment_method=transaction.payment_method,
               transaction_ref=transaction.transaction_ref,
               status=transaction.status,
               payment_date=transaction.payment_date,
          ),
          bill_status=transaction.bill.status,
          message=message,
     )
