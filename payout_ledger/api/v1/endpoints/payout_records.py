"""API endpoints for the admin payout ledger."""
from datetime import date
from typing import Optional, Literal

from fastapi import APIRouter, HTTPException, status, Query, Response

from payout_ledger.api.deps import PayoutService
from payout_ledger.schemas.payout_record import (
    CommissionInputs,
    CommissionBreakdown,
    PayoutRecordSave,
    PayoutRecordUpdate,
    LeadFinalization,
    PayoutRecordResponse,
    PayoutRecordListResponse,
    PayoutLedgerSummary,
)
from payout_ledger.services import commission_calculator
from payout_ledger.services.payout_record_service import (
    PayoutLedgerFilters,
    PayoutRecordNotFoundError,
    fit_inputs_to_columns,
)

router = APIRouter()


def _ledger_filters(
    search: Optional[str],
    policy_type: Optional[str],
    aggregator: Optional[str],
    payment_status: Optional[str],
    start_date: Optional[date],
    end_date: Optional[date],
) -> PayoutLedgerFilters:
    return PayoutLedgerFilters(
        search=search,
        policy_type=policy_type,
        aggregator=aggregator,
        status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )


# ==================== Calculation ====================

@router.post("/calculate", response_model=CommissionBreakdown)
async def calculate_commission(inputs: CommissionInputs):
    """
    Preview the derived figures for a set of commission inputs.

    Nothing is stored. Inputs and figures are rounded the way a save would
    store them. The edit form calls this on every field change.
    """
    figures = commission_calculator.calculate(fit_inputs_to_columns(inputs)).rounded()
    return CommissionBreakdown(
        commission_on=inputs.commission_on,
        earning=figures.earning,
        tds_rate=figures.tds_rate,
        tds=figures.tds,
        amount_after_tds=figures.amount_after_tds,
        net_profit=figures.net_profit,
        is_loss=figures.is_loss,
    )


# ==================== Ledger ====================

@router.get("", response_model=PayoutRecordListResponse)
async def list_payout_records(
    service: PayoutService,
    search: Optional[str] = Query(None, description="Lead ID, vehicle number or customer name"),
    policy_type: Optional[str] = None,
    aggregator: Optional[str] = None,
    payment_status: Optional[Literal["all", "received", "pending"]] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """List payout records, most recently updated first."""
    filters = _ledger_filters(search, policy_type, aggregator, payment_status, start_date, end_date)
    records, total = await service.list_records(filters, skip=skip, limit=limit)

    return PayoutRecordListResponse(
        items=[PayoutRecordResponse.model_validate(r) for r in records],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/summary", response_model=PayoutLedgerSummary)
async def get_ledger_summary(
    service: PayoutService,
    search: Optional[str] = None,
    policy_type: Optional[str] = None,
    aggregator: Optional[str] = None,
    payment_status: Optional[Literal["all", "received", "pending"]] = Query(None, alias="status"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Gross income, discounts, brokerage and net profit for the filtered ledger."""
    filters = _ledger_filters(search, policy_type, aggregator, payment_status, start_date, end_date)
    return PayoutLedgerSummary(**await service.summarize(filters))


# ==================== Payout Records ====================

@router.post("/from-lead", response_model=PayoutRecordResponse, status_code=status.HTTP_201_CREATED)
async def sync_payout_record_from_lead(
    lead_in: LeadFinalization,
    service: PayoutService,
    response: Response,
):
    """Create the payout record for a finalized lead, or refresh its lead details."""
    record, created = await service.sync_from_lead(lead_in)
    if not created:
        response.status_code = status.HTTP_200_OK
    return record


@router.get("/{record_id}", response_model=PayoutRecordResponse)
async def get_payout_record(record_id: str, service: PayoutService):
    """Get payout record by lead ID."""
    record = await service.get_record(record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Payout record not found")
    return record


@router.post("", response_model=PayoutRecordResponse, status_code=status.HTTP_201_CREATED)
async def save_payout_record(record_in: PayoutRecordSave, service: PayoutService):
    """
    Save a payout record.

    Derived figures (earning, tds, amountAfterTds, netProfit) in the payload
    are ignored and recomputed from the inputs.
    """
    return await service.save_record(record_in)


@router.patch("/{record_id}", response_model=PayoutRecordResponse)
async def update_payout_record(
    record_id: str,
    record_in: PayoutRecordUpdate,
    service: PayoutService,
):
    """Edit commission inputs or status and recompute."""
    try:
        return await service.update_record(record_id, record_in)
    except PayoutRecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payout_record(record_id: str, service: PayoutService):
    """Delete a payout record."""
    try:
        await service.delete_record(record_id)
    except PayoutRecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
