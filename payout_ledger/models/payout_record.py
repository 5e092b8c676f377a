"""Payout record model for the admin payout ledger.

One record per finalized lead. Holds:
- Lead identity (customer, vehicle, insurer, aggregator, policy type)
- Commission inputs entered by admins
- Derived commission, TDS and profit figures
- Settlement status
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, Numeric, Index
from sqlalchemy.orm import Mapped, mapped_column

from payout_ledger.database import Base


class PaymentReceived(str, Enum):
    """Whether the insurer/aggregator has paid out the commission."""
    YES = "Yes"     # Received
    NO = "No"       # Pending


class BusinessRemark(str, Enum):
    """New business or renewal."""
    NEW = "New"
    RENEWAL = "Renewal"


class PayoutRecord(Base):
    """
    Commission ledger entry for a finalized lead.

    earning, tds, amount_after_tds and net_profit are derived by the
    commission calculator and are never written from client input.
    """
    __tablename__ = "payout_records"
    __table_args__ = (
        Index('ix_payout_records_last_updated', 'last_updated'),
        Index('ix_payout_records_aggregator', 'aggregator_name'),
    )

    # Same as the lead ID
    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    timestamp: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Lead creation timestamp, immutable"
    )

    # Lead Details (denormalized for reporting)
    customer_name: Mapped[str] = mapped_column(String(200), default="N/A")
    vehicle_number: Mapped[str] = mapped_column(String(50), default="N/A")
    insurance_company: Mapped[str] = mapped_column(String(200), default="N/A")
    aggregator_name: Mapped[str] = mapped_column(String(200), default="N/A")
    policy_type: Mapped[str] = mapped_column(String(50), default="N/A")

    # Premium
    total_premium_with_gst: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True
    )
    premium_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True,
        default=Decimal("0"),
        comment="Policy amount without GST"
    )
    net_premium: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    od_premium: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    tp_premium: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    points: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    # Commission Basis & Rates
    commission_on: Mapped[str] = mapped_column(
        String(30),
        default="N/A",
        comment="Net, OD, TP, OD+TP, ONLINE POINTS, Fixed, N/A, NOT KNOWN"
    )
    commission_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(7, 3),
        nullable=True,
        default=Decimal("0")
    )
    od_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 3), nullable=True)
    tp_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(7, 3), nullable=True)
    tds_rate: Mapped[Decimal] = mapped_column(
        Numeric(7, 3),
        nullable=False,
        default=Decimal("2"),
        comment="TDS percentage"
    )

    # Deductions
    discount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True,
        default=Decimal("0")
    )
    broker_payment: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True,
        default=Decimal("0")
    )
    other_expense: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    # Derived
    earning: Mapped[Decimal] = mapped_column(
        Numeric(16, 4),
        nullable=False,
        default=Decimal("0"),
        comment="Gross commission before TDS"
    )
    tds: Mapped[Decimal] = mapped_column(
        Numeric(16, 4),
        nullable=False,
        default=Decimal("0")
    )
    amount_after_tds: Mapped[Decimal] = mapped_column(
        Numeric(16, 4),
        nullable=False,
        default=Decimal("0"),
        comment="earning - tds"
    )
    net_profit: Mapped[Decimal] = mapped_column(
        Numeric(16, 4),
        nullable=False,
        default=Decimal("0"),
        comment="amount_after_tds - (discount + broker_payment + other_expense)"
    )

    # Status
    payment_received: Mapped[str] = mapped_column(
        String(10),
        default="No",
        comment="Yes=Received, No=Pending"
    )
    remarks: Mapped[str] = mapped_column(String(20), default="New")

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<PayoutRecord(id='{self.id}', commission_on='{self.commission_on}', net_profit={self.net_profit})>"
