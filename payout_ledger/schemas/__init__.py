from payout_ledger.schemas.payout_record import (
    CommissionInputs,
    PayoutRecordSave,
    PayoutRecordUpdate,
    LeadFinalization,
    CommissionBreakdown,
    PayoutRecordResponse,
    PayoutRecordListResponse,
    PayoutLedgerSummary,
)

__all__ = [
    "CommissionInputs",
    "PayoutRecordSave",
    "PayoutRecordUpdate",
    "LeadFinalization",
    "CommissionBreakdown",
    "PayoutRecordResponse",
    "PayoutRecordListResponse",
    "PayoutLedgerSummary",
]
