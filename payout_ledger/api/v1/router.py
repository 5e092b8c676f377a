from fastapi import APIRouter

from payout_ledger.api.v1.endpoints import payout_records


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Payout Ledger ====================
api_router.include_router(
    payout_records.router,
    prefix="/payout-records",
    tags=["Payout Records"]
)
