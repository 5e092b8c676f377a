from payout_ledger.models.payout_record import PayoutRecord, PaymentReceived, BusinessRemark

__all__ = [
    "PayoutRecord",
    "PaymentReceived",
    "BusinessRemark",
]
