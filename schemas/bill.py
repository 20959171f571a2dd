# schemas/bill.py
"""
Pydantic schemas for Bill API request/response validation.
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import ConfigDict, Field

from models.bill import BillStatus
from .base import CamelModel


class BulkGenerateRequest(CamelModel):
     """Schema for generating bills for every flat of the society."""
     billing_period: str = Field(..., min_length=1, max_length=50, description="Period label, e.g. 'March 2026'")
     due_date: date = Field(..., description="Payment due date for every generated bill")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "billingPeriod": "March 2026",
                    "dueDate": "2026-03-10",
               }
          }
     )


class BulkGenerateResponse(CamelModel):
     generated: int
     skipped: int
     total_units: int
     message: Optional[str] = None


class BreakdownLineIn(CamelModel):
     charge_name: str = Field(..., min_length=1, max_length=100)
     amount: int = Field(..., ge=0, description="Whole currency units")


class BillCreate(CamelModel):
     """Schema for generating a bill for one flat."""
     flat_id: int = Field(..., gt=0)
     billing_period: str = Field(..., min_length=1, max_length=50)
     due_date: date
     user_id: Optional[int] = Field(None, gt=0, description="Defaults to the flat's owner, else occupant")
     breakdown: Optional[List[BreakdownLineIn]] = Field(
          None, description="Computed from the billing configuration when omitted"
     )


class BreakdownLineResponse(CamelModel):
     charge_name: str
     amount: int
     is_reserve_fund: bool = False


class BillResponse(CamelModel):
     """Schema for bill response."""
     id: int
     flat_id: int
     user_id: Optional[int] = None
     billing_period: str
     due_date: date
     total_amount: int
     status: BillStatus
     breakdown: List[BreakdownLineResponse]
     late_fee: int = 0
     created_at: Optional[datetime] = None

     # Optional related data
     flat_label: Optional[str] = None
     resident_name: Optional[str] = None


class BillListResponse(CamelModel):
     """Schema for paginated bill list response."""
     bills: List[BillResponse]
     total: int
     page: int = 1
     page_size: int = 50


class MarkOverdueResponse(CamelModel):
     updated: int


class ChargeTotal(CamelModel):
     charge_name: str
     amount: float


class PeriodTotal(CamelModel):
     billing_period: str
     bills: int
     billed: float
     collected: float


class BillingStatsResponse(CamelModel):
     total_bills: int
     total_billed: float
     total_collected: float
     total_pending: float
     collection_rate: float
     reserve_fund_collected: float
     charge_breakdown: List[ChargeTotal]
     period_trend: List[PeriodTotal]
