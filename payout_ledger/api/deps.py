from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from payout_ledger.database import get_db
from payout_ledger.services.payout_record_service import PayoutRecordService


def get_payout_record_service(db: Annotated[AsyncSession, Depends(get_db)]) -> PayoutRecordService:
    return PayoutRecordService(db)


PayoutService = Annotated[PayoutRecordService, Depends(get_payout_record_service)]
