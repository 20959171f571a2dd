# schemas/billing_config.py
"""
Pydantic schemas for the billing configuration API.
"""
from decimal import Decimal
from typing import List, Optional
from pydantic import ConfigDict, Field, model_validator

from models.billing_config import ComputationType, LateFeeType
from .base import CamelModel


class ChargeHeadIn(CamelModel):
     """One charge head as submitted by an administrator."""
     name: str = Field(..., min_length=1, max_length=100, description="Charge head name")
     computation_type: ComputationType = Field(..., description="per_area, fixed or percentage_of")
     rate: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2,
                           description="Per sq.ft rate, flat amount, or percentage points")
     percentage_of_name: Optional[str] = Field(None, max_length=100,
                                               description="Charge head this percentage applies to")
     is_non_occupancy_only: bool = False
     is_reserve_fund: bool = False
     is_active: bool = True

     @model_validator(mode="after")
     def _percentage_needs_target(self):
          if self.computation_type == ComputationType.PERCENTAGE_OF and not self.percentage_of_name:
               raise ValueError("percentageOfName is required for percentage_of charge heads")
          return self


class ChargeHeadResponse(CamelModel):
     id: int
     name: str
     computation_type: ComputationType
     rate: float
     percentage_of_name: Optional[str] = None
     is_non_occupancy_only: bool
     is_reserve_fund: bool
     is_active: bool


class LateFeeRule(CamelModel):
     enabled: bool = False
     amount: float = 0
     type: LateFeeType = LateFeeType.FIXED
     grace_days: int = 15


class LateFeeUpdate(CamelModel):
     """Late fee fields to change; omitted fields keep their value."""
     enabled: Optional[bool] = None
     amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     type: Optional[LateFeeType] = None
     grace_days: Optional[int] = Field(None, ge=0, le=365)


class BillingConfigUpdate(CamelModel):
     """Schema for updating a society's billing configuration."""
     charge_heads: Optional[List[ChargeHeadIn]] = Field(
          None, description="Replaces the whole charge head list when given"
     )
     default_due_day: Optional[int] = Field(None, ge=1, le=28)
     late_fee: Optional[LateFeeUpdate] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "chargeHeads": [
                         {"name": "Maintenance", "computationType": "per_area", "rate": 5},
                         {"name": "Sinking Fund", "computationType": "percentage_of", "rate": 10,
                          "percentageOfName": "Maintenance", "isReserveFund": True},
                    ],
                    "defaultDueDay": 10,
                    "lateFee": {"enabled": True, "amount": 100},
               }
          }
     )


class BillingConfigResponse(CamelModel):
     society_id: int
     charge_heads: List[ChargeHeadResponse]
     default_due_day: int
     late_fee: LateFeeRule
