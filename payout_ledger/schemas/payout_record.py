"""Pydantic schemas for the payout ledger."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import Field, field_validator

from payout_ledger.models.payout_record import PaymentReceived, BusinessRemark
from payout_ledger.schemas.base import BaseCreateSchema, BaseUpdateSchema, BaseResponseSchema
from payout_ledger.services.commission_calculator import to_decimal


NUMERIC_INPUT_FIELDS = (
    "total_premium_with_gst",
    "premium_amount",
    "net_premium",
    "od_premium",
    "tp_premium",
    "points",
    "commission_rate",
    "od_percentage",
    "tp_percentage",
    "tds_rate",
    "discount",
    "broker_payment",
    "other_expense",
)


def coerce_amount(value):
    """Blank stays unset; anything else non-numeric becomes 0 instead of a 422."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_decimal(value)


# ==================== Commission Input Schemas ====================

class CommissionInputs(BaseCreateSchema):
    """Financial inputs the commission calculator reads."""
    commission_on: str = "N/A"
    premium_amount: Optional[Decimal] = Decimal("0")
    net_premium: Optional[Decimal] = None
    od_premium: Optional[Decimal] = None
    tp_premium: Optional[Decimal] = None
    points: Optional[Decimal] = None

    commission_rate: Optional[Decimal] = Decimal("0")
    od_percentage: Optional[Decimal] = None
    tp_percentage: Optional[Decimal] = None
    tds_rate: Optional[Decimal] = None

    discount: Optional[Decimal] = Decimal("0")
    broker_payment: Optional[Decimal] = Decimal("0")
    other_expense: Optional[Decimal] = None

    coerce_numbers = field_validator(
        *(f for f in NUMERIC_INPUT_FIELDS if f != "total_premium_with_gst"),
        mode="before",
    )(coerce_amount)

    @field_validator("commission_on", mode="before")
    @classmethod
    def default_commission_on(cls, v):
        if v is None:
            return "N/A"
        return str(v)


class PayoutRecordSave(CommissionInputs):
    """Full payout record as submitted from the edit form. Derived figures are ignored."""
    id: str = Field(..., min_length=1, max_length=100)
    timestamp: Optional[str] = None

    customer_name: str = "N/A"
    vehicle_number: str = "N/A"
    insurance_company: str = "N/A"
    aggregator_name: str = "N/A"
    policy_type: str = "N/A"
    total_premium_with_gst: Optional[Decimal] = None

    payment_received: PaymentReceived = PaymentReceived.NO
    remarks: BusinessRemark = BusinessRemark.NEW

    @field_validator("total_premium_with_gst", mode="before")
    @classmethod
    def coerce_gst_premium(cls, v):
        return coerce_amount(v)


class PayoutRecordUpdate(BaseUpdateSchema):
    """Partial edit of a payout record."""
    customer_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    insurance_company: Optional[str] = None
    aggregator_name: Optional[str] = None
    policy_type: Optional[str] = None

    commission_on: Optional[str] = None
    total_premium_with_gst: Optional[Decimal] = None
    premium_amount: Optional[Decimal] = None
    net_premium: Optional[Decimal] = None
    od_premium: Optional[Decimal] = None
    tp_premium: Optional[Decimal] = None
    points: Optional[Decimal] = None
    commission_rate: Optional[Decimal] = None
    od_percentage: Optional[Decimal] = None
    tp_percentage: Optional[Decimal] = None
    tds_rate: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    broker_payment: Optional[Decimal] = None
    other_expense: Optional[Decimal] = None

    payment_received: Optional[PaymentReceived] = None
    remarks: Optional[BusinessRemark] = None

    coerce_numbers = field_validator(*NUMERIC_INPUT_FIELDS, mode="before")(coerce_amount)


class LeadFinalization(BaseCreateSchema):
    """Lead details handed over when a lead is finalized."""
    id: str = Field(..., min_length=1, max_length=100)
    timestamp: Optional[str] = None
    customer_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    insurance_company: Optional[str] = None
    aggregator_name: Optional[str] = None
    policy_type: Optional[str] = None
    premium_amount: Optional[Decimal] = None

    coerce_premium = field_validator("premium_amount", mode="before")(coerce_amount)


# ==================== Response Schemas ====================

class CommissionBreakdown(BaseResponseSchema):
    """Derived figures for a set of commission inputs."""
    commission_on: str
    earning: Decimal
    tds_rate: Decimal
    tds: Decimal
    amount_after_tds: Decimal
    net_profit: Decimal
    is_loss: bool


class PayoutRecordResponse(BaseResponseSchema):
    """Response schema for PayoutRecord."""
    id: str
    timestamp: str
    customer_name: Optional[str] = None
    vehicle_number: Optional[str] = None
    insurance_company: Optional[str] = None
    aggregator_name: Optional[str] = None
    policy_type: Optional[str] = None

    total_premium_with_gst: Optional[Decimal] = None
    premium_amount: Optional[Decimal] = None
    commission_on: str
    net_premium: Optional[Decimal] = None
    od_premium: Optional[Decimal] = None
    tp_premium: Optional[Decimal] = None
    points: Optional[Decimal] = None
    commission_rate: Optional[Decimal] = None
    od_percentage: Optional[Decimal] = None
    tp_percentage: Optional[Decimal] = None

    earning: Decimal
    tds_rate: Decimal
    tds: Decimal
    amount_after_tds: Decimal

    discount: Optional[Decimal] = None
    broker_payment: Optional[Decimal] = None
    other_expense: Optional[Decimal] = None
    net_profit: Decimal

    payment_received: str
    remarks: str
    last_updated: datetime


class PayoutRecordListResponse(BaseResponseSchema):
    """Response for listing payout records."""
    items: List[PayoutRecordResponse]
    total: int
    skip: int = 0
    limit: int = 50


class PayoutLedgerSummary(BaseResponseSchema):
    """Ledger totals over the filtered records."""
    record_count: int
    total_income: Decimal
    total_discounts: Decimal
    total_brokerage: Decimal
    net_profit: Decimal
