"""
Commission Calculator for payout records.

Derives the computed fields of a payout record from its financial inputs:
- earning: gross commission before TDS
- tds: tax deducted at source on the gross commission
- amount_after_tds: earning - tds
- net_profit: amount_after_tds - (discount + broker_payment + other_expense)

Commission basis rules:
- ONLINE POINTS: points are a flat commission amount, no rate applied
- OD+TP: OD and TP commissions at their own rates, summed
- Net / Fixed: net premium x commission rate
- OD / TP: the matching premium component x commission rate
- anything else: premium amount x commission rate

The calculator never raises. Missing or non-numeric inputs count as zero,
and so does any intermediate figure that overflows.
"""
import logging
import math
from dataclasses import dataclass, fields
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from enum import Enum
from typing import Any, Optional


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_TDS_RATE = Decimal("2")

# Net profit changes smaller than this are floating-point noise, not edits
NET_PROFIT_TOLERANCE = Decimal("0.01")

# Derived columns hold 4 decimal places; written figures are rounded to match
FIGURE_QUANTUM = Decimal("0.0001")

# Overflow and invalid operations give Infinity/NaN here instead of raising
_QUIET_CONTEXT = Context(traps=[])

# Inputs the derived figures depend on. Every save recomputes regardless;
# update logs use this to report which commission inputs were edited.
RECOMPUTE_TRIGGER_FIELDS = (
    "premium_amount",
    "net_premium",
    "points",
    "commission_rate",
    "commission_on",
    "od_premium",
    "tp_premium",
    "od_percentage",
    "tp_percentage",
    "discount",
    "broker_payment",
    "other_expense",
    "tds_rate",
)


class CommissionBasis(str, Enum):
    """Which premium figure(s) a commission is computed on."""
    NET = "Net"
    OD = "OD"                           # Own Damage
    TP = "TP"                           # Third Party
    OD_TP = "OD+TP"                     # Split rates on OD and TP
    ONLINE_POINTS = "ONLINE POINTS"     # Flat amount
    FIXED = "Fixed"
    NOT_APPLICABLE = "N/A"
    NOT_KNOWN = "NOT KNOWN"

    @classmethod
    def resolve(cls, value: Any) -> Optional["CommissionBasis"]:
        """Map a raw commission_on value to a basis, None when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class CommissionFigures:
    """Derived figures for one payout record."""
    earning: Decimal
    tds_rate: Decimal
    tds: Decimal
    amount_after_tds: Decimal
    net_profit: Decimal

    @property
    def is_loss(self) -> bool:
        return self.net_profit < ZERO

    def rounded(self, quantum: Decimal = FIGURE_QUANTUM) -> "CommissionFigures":
        """Figures rounded half-up to the stored precision."""
        with localcontext(_QUIET_CONTEXT):
            return CommissionFigures(**{
                f.name: _finite(getattr(self, f.name).quantize(quantum, rounding=ROUND_HALF_UP))
                for f in fields(self)
            })


def _finite(value: Decimal) -> Decimal:
    return value if value.is_finite() else ZERO


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a numeric input to Decimal.

    None, empty strings, non-numeric text, NaN and infinity all become 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        return Decimal(str(value))

    text = str(value).strip().replace(",", "")
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return ZERO
    return amount if amount.is_finite() else ZERO


def _percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * (rate / HUNDRED)


def _input(record: Any, field: str) -> Decimal:
    return to_decimal(getattr(record, field, None))


def effective_tds_rate(record: Any) -> Decimal:
    """TDS rate on the record, or the 2% default when none is set."""
    raw = getattr(record, "tds_rate", None)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return DEFAULT_TDS_RATE
    return to_decimal(raw)


def calculate_earning(record: Any) -> Decimal:
    """Gross commission before TDS for the record's commission basis."""
    with localcontext(_QUIET_CONTEXT):
        return _finite(_earning(record))


def _earning(record: Any) -> Decimal:
    basis = CommissionBasis.resolve(getattr(record, "commission_on", None))

    if basis == CommissionBasis.ONLINE_POINTS:
        return _input(record, "points")

    if basis == CommissionBasis.OD_TP:
        od_commission = _percent_of(_input(record, "od_premium"), _input(record, "od_percentage"))
        tp_commission = _percent_of(_input(record, "tp_premium"), _input(record, "tp_percentage"))
        return od_commission + tp_commission

    if basis in (CommissionBasis.NET, CommissionBasis.FIXED):
        base_amount = _input(record, "net_premium")
    elif basis == CommissionBasis.OD:
        base_amount = _input(record, "od_premium")
    elif basis == CommissionBasis.TP:
        base_amount = _input(record, "tp_premium")
    else:
        # N/A, NOT KNOWN and unrecognized values
        base_amount = _input(record, "premium_amount")

    return _percent_of(base_amount, _input(record, "commission_rate"))


def calculate(record: Any) -> CommissionFigures:
    """
    Compute the derived figures for a record without modifying it.

    Args:
        record: Any object exposing the payout input attributes
            (ORM row, Pydantic schema, namespace).
    """
    earning = calculate_earning(record)

    with localcontext(_QUIET_CONTEXT):
        tds_rate = effective_tds_rate(record)
        tds = _finite(_percent_of(earning, tds_rate))

        amount_after_tds = _finite(earning - tds)

        expenses = _finite(
            _input(record, "discount")
            + _input(record, "broker_payment")
            + _input(record, "other_expense")
        )
        net_profit = _finite(amount_after_tds - expenses)

    return CommissionFigures(
        earning=earning,
        tds_rate=tds_rate,
        tds=tds,
        amount_after_tds=amount_after_tds,
        net_profit=net_profit,
    )


def _differs(current: Any, new: Decimal) -> bool:
    return current is None or current != new


def needs_update(record: Any, figures: CommissionFigures) -> bool:
    """Whether writing figures onto the record would change anything."""
    if (
        _differs(getattr(record, "earning", None), figures.earning)
        or _differs(getattr(record, "tds", None), figures.tds)
        or _differs(getattr(record, "tds_rate", None), figures.tds_rate)
        or _differs(getattr(record, "amount_after_tds", None), figures.amount_after_tds)
    ):
        return True

    current_profit = getattr(record, "net_profit", None)
    if current_profit is None:
        return True
    with localcontext(_QUIET_CONTEXT):
        return abs(to_decimal(current_profit) - figures.net_profit) > NET_PROFIT_TOLERANCE


def apply_figures(record: Any) -> bool:
    """
    Recompute and write the derived fields onto the record.

    Figures are rounded to 4 decimal places, the precision they are stored
    at. The effective TDS rate is written back too, so a record saved
    without one carries the default from then on. Nothing is written when
    the values are already current.

    Returns:
        True if the record was modified.
    """
    figures = calculate(record).rounded()
    if not needs_update(record, figures):
        return False

    record.earning = figures.earning
    record.tds = figures.tds
    record.tds_rate = figures.tds_rate
    record.amount_after_tds = figures.amount_after_tds
    record.net_profit = figures.net_profit

    logger.debug(
        "Recomputed payout figures for %s: earning=%s tds=%s net_profit=%s",
        getattr(record, "id", "<unsaved>"),
        figures.earning,
        figures.tds,
        figures.net_profit,
    )
    return True


def recompute(record: Any) -> Any:
    """Refresh the record's derived fields in place and return the same record."""
    apply_figures(record)
    return record
