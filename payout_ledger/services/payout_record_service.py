"""
Payout Record Service

Handles the admin payout ledger:
- Saving payout records (recompute on every save)
- Editing commission inputs
- Creating/refreshing records when a lead is finalized
- Ledger filtering and summary totals
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, List, Tuple, Dict, Any

from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from payout_ledger.models.payout_record import PayoutRecord, PaymentReceived, BusinessRemark
from payout_ledger.schemas.payout_record import (
    NUMERIC_INPUT_FIELDS,
    PayoutRecordSave,
    PayoutRecordUpdate,
    LeadFinalization,
)
from payout_ledger.services import commission_calculator
from payout_ledger.services.commission_calculator import (
    DEFAULT_TDS_RATE,
    RECOMPUTE_TRIGGER_FIELDS,
    ZERO,
    to_decimal,
)


logger = logging.getLogger(__name__)

# Copied from the lead on every sync when the lead supplies them
LEAD_IDENTITY_FIELDS = (
    "customer_name",
    "vehicle_number",
    "insurance_company",
    "aggregator_name",
    "policy_type",
)

# Columns that cannot be cleared through a partial update
NON_NULLABLE_FIELDS = frozenset(LEAD_IDENTITY_FIELDS) | {"commission_on", "payment_received", "remarks"}


def fit_to_column(field: str, value: Any) -> Optional[Decimal]:
    """
    Round a numeric input half-up to the scale of its column.

    Values too large for the column count as 0, like any other invalid number.
    """
    if value is None:
        return None
    column_type = PayoutRecord.__table__.c[field].type
    limit = Decimal(10) ** (column_type.precision - column_type.scale)

    amount = to_decimal(value)
    if abs(amount) >= limit:
        return ZERO
    rounded = amount.quantize(Decimal(1).scaleb(-column_type.scale), rounding=ROUND_HALF_UP)
    return rounded if abs(rounded) < limit else ZERO


def fit_inputs_to_columns(target: Any) -> Any:
    """
    Round the numeric inputs on a record or schema to what the database stores.

    Derived figures are always computed from the rounded values.
    """
    for field in NUMERIC_INPUT_FIELDS:
        if hasattr(target, field):
            setattr(target, field, fit_to_column(field, getattr(target, field)))
    return target


class PayoutRecordError(Exception):
    """Base exception for payout ledger errors."""
    def __init__(self, message: str, details: Dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PayoutRecordNotFoundError(PayoutRecordError):
    """Raised when a payout record does not exist."""
    def __init__(self, record_id: str):
        super().__init__(f"Payout record not found: {record_id}", {"id": record_id})
        self.record_id = record_id


@dataclass
class PayoutLedgerFilters:
    """Ledger filters. None means no filtering on that field."""
    search: Optional[str] = None
    policy_type: Optional[str] = None
    aggregator: Optional[str] = None
    status: Optional[str] = None        # "received" or "pending"
    start_date: Optional[date] = None
    end_date: Optional[date] = None     # inclusive

    def conditions(self) -> list:
        filters = []

        if self.search:
            pattern = f"%{self.search.strip()}%"
            filters.append(or_(
                PayoutRecord.id.ilike(pattern),
                PayoutRecord.vehicle_number.ilike(pattern),
                PayoutRecord.customer_name.ilike(pattern),
            ))

        if self.policy_type and self.policy_type.lower() != "all":
            filters.append(func.upper(PayoutRecord.policy_type) == self.policy_type.upper())

        if self.aggregator and self.aggregator.lower() != "all":
            filters.append(PayoutRecord.aggregator_name == self.aggregator)

        if self.status == "received":
            filters.append(PayoutRecord.payment_received == PaymentReceived.YES.value)
        elif self.status == "pending":
            filters.append(PayoutRecord.payment_received != PaymentReceived.YES.value)

        if self.start_date:
            filters.append(
                PayoutRecord.last_updated >= datetime.combine(self.start_date, time.min, tzinfo=timezone.utc)
            )
        if self.end_date:
            filters.append(
                PayoutRecord.last_updated <= datetime.combine(self.end_date, time.max, tzinfo=timezone.utc)
            )

        return filters


class PayoutRecordService:
    """
    Service for the payout ledger.

    Derived figures are recomputed before every commit, so a stored record
    always agrees with its inputs.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_record(self, record_id: str) -> Optional[PayoutRecord]:
        result = await self.db.execute(
            select(PayoutRecord).where(PayoutRecord.id == record_id)
        )
        return result.scalar_one_or_none()

    async def get_record_or_raise(self, record_id: str) -> PayoutRecord:
        record = await self.get_record(record_id)
        if not record:
            logger.warning(f"Payout record {record_id} not found")
            raise PayoutRecordNotFoundError(record_id)
        return record

    async def _commit(self, record: PayoutRecord) -> PayoutRecord:
        """Recompute derived figures, stamp and persist the record."""
        fit_inputs_to_columns(record)
        commission_calculator.recompute(record)
        record.last_updated = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def save_record(self, record_in: PayoutRecordSave) -> PayoutRecord:
        """
        Save a payout record submitted from the edit form.

        Creates the record if the lead has none yet, otherwise overwrites the
        fields present in the payload.
        """
        record = await self.get_record(record_in.id)

        if record is None:
            data = record_in.model_dump()
            if not data.get("timestamp"):
                data["timestamp"] = datetime.now(timezone.utc).isoformat()
            record = PayoutRecord(**data)
            self.db.add(record)
            created = True
        else:
            update_data = record_in.model_dump(exclude_unset=True, exclude={"id", "timestamp"})
            for field, value in update_data.items():
                setattr(record, field, value)
            created = False

        record = await self._commit(record)
        logger.info(
            f"{'Created' if created else 'Saved'} payout record {record.id}: "
            f"commission_on={record.commission_on} net_profit={record.net_profit}"
        )
        return record

    async def update_record(self, record_id: str, record_in: PayoutRecordUpdate) -> PayoutRecord:
        """Apply a partial edit and recompute."""
        record = await self.get_record_or_raise(record_id)

        update_data = record_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field in NON_NULLABLE_FIELDS:
                continue
            setattr(record, field, value)

        changed_inputs = sorted(set(update_data) & set(RECOMPUTE_TRIGGER_FIELDS))
        record = await self._commit(record)
        logger.info(
            f"Updated payout record {record.id}: fields={sorted(update_data)} "
            f"commission_inputs={changed_inputs} net_profit={record.net_profit}"
        )
        return record

    async def delete_record(self, record_id: str) -> None:
        record = await self.get_record_or_raise(record_id)
        await self.db.delete(record)
        await self.db.commit()
        logger.info(f"Deleted payout record {record_id}")

    async def sync_from_lead(self, lead: LeadFinalization) -> Tuple[PayoutRecord, bool]:
        """
        Create or refresh the payout record for a finalized lead.

        A new record starts with zeroed commission inputs and the default TDS
        rate. An existing record only picks up identity fields the lead
        supplies; its commission inputs are left alone.

        Returns:
            (record, created)
        """
        record = await self.get_record(lead.id)

        if record is None:
            record = PayoutRecord(
                id=lead.id,
                timestamp=lead.timestamp or datetime.now(timezone.utc).isoformat(),
                customer_name=lead.customer_name or "N/A",
                vehicle_number=lead.vehicle_number or "N/A",
                insurance_company=lead.insurance_company or "N/A",
                aggregator_name=lead.aggregator_name or "N/A",
                policy_type=lead.policy_type or "N/A",
                premium_amount=lead.premium_amount if lead.premium_amount is not None else Decimal("0"),
                commission_rate=Decimal("0"),
                commission_on="N/A",
                tds_rate=DEFAULT_TDS_RATE,
                discount=Decimal("0"),
                broker_payment=Decimal("0"),
                payment_received=PaymentReceived.NO.value,
                remarks=BusinessRemark.NEW.value,
            )
            self.db.add(record)
            created = True
        else:
            for field in LEAD_IDENTITY_FIELDS:
                value = getattr(lead, field)
                if value:
                    setattr(record, field, value)
            created = False

        record = await self._commit(record)
        logger.info(f"Synced payout record from lead {lead.id} (created={created})")
        return record, created

    async def list_records(
        self,
        filters: Optional[PayoutLedgerFilters] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[PayoutRecord], int]:
        """List ledger records, most recently updated first."""
        conditions = (filters or PayoutLedgerFilters()).conditions()

        query = select(PayoutRecord)
        count_query = select(func.count(PayoutRecord.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(PayoutRecord.last_updated.desc()).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def summarize(self, filters: Optional[PayoutLedgerFilters] = None) -> Dict[str, Any]:
        """
        Ledger totals over the filtered records.

        Gross income is what the company took in before giving away
        discounts and brokerage: net_profit + discount + broker_payment.
        """
        conditions = (filters or PayoutLedgerFilters()).conditions()
        query = select(PayoutRecord)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.db.execute(query)
        records = result.scalars().all()

        total_income = Decimal("0")
        total_discounts = Decimal("0")
        total_brokerage = Decimal("0")
        net_profit = Decimal("0")
        for record in records:
            profit = to_decimal(record.net_profit)
            discount = to_decimal(record.discount)
            brokerage = to_decimal(record.broker_payment)

            total_income += profit + discount + brokerage
            total_discounts += discount
            total_brokerage += brokerage
            net_profit += profit

        return {
            "record_count": len(records),
            "total_income": total_income,
            "total_discounts": total_discounts,
            "total_brokerage": total_brokerage,
            "net_profit": net_profit,
        }
