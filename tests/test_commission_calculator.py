"""
Tests for the commission calculator.
Run with: python -m pytest tests/test_commission_calculator.py -v
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from payout_ledger.schemas.payout_record import CommissionInputs
from payout_ledger.services.commission_calculator import (
    CommissionBasis,
    DEFAULT_TDS_RATE,
    apply_figures,
    calculate,
    calculate_earning,
    needs_update,
    recompute,
    to_decimal,
)


def make_record(**fields):
    """Payout record stand-in with every input defaulted to zero."""
    values = {
        "id": "LEAD-001",
        "commission_on": "Net",
        "premium_amount": 0,
        "net_premium": 0,
        "od_premium": 0,
        "tp_premium": 0,
        "points": 0,
        "commission_rate": 0,
        "od_percentage": 0,
        "tp_percentage": 0,
        "tds_rate": 2,
        "discount": 0,
        "broker_payment": 0,
        "other_expense": 0,
    }
    values.update(fields)
    return SimpleNamespace(**values)


class TestCommissionBasis:
    """Commission basis selection."""

    def test_points_ignore_commission_rate(self):
        record = make_record(commission_on="ONLINE POINTS", points=500, commission_rate=35, net_premium=9000)
        assert calculate_earning(record) == Decimal("500")

    def test_od_tp_split(self):
        record = make_record(
            commission_on="OD+TP",
            od_premium=1000,
            od_percentage=10,
            tp_premium=2000,
            tp_percentage=5,
            commission_rate=50,
        )
        assert calculate_earning(record) == Decimal("200")

    @pytest.mark.parametrize("basis,expected", [
        ("Net", Decimal("500")),
        ("Fixed", Decimal("500")),
        ("OD", Decimal("200")),
        ("TP", Decimal("100")),
    ])
    def test_single_rate_bases(self, basis, expected):
        record = make_record(
            commission_on=basis,
            premium_amount=9000,
            net_premium=5000,
            od_premium=2000,
            tp_premium=1000,
            commission_rate=10,
        )
        assert calculate_earning(record) == expected

    @pytest.mark.parametrize("basis", ["N/A", "NOT KNOWN", "Something else", "", None])
    def test_unrecognized_basis_uses_premium_amount(self, basis):
        record = make_record(commission_on=basis, premium_amount=3000, net_premium=5000, commission_rate=10)
        assert calculate_earning(record) == Decimal("300")

    def test_resolve(self):
        assert CommissionBasis.resolve("OD+TP") is CommissionBasis.OD_TP
        assert CommissionBasis.resolve(CommissionBasis.NET) is CommissionBasis.NET
        assert CommissionBasis.resolve("net") is None
        assert CommissionBasis.resolve(None) is None


class TestCalculate:
    """Full figure derivation."""

    def test_net_basis_worked_example(self):
        record = make_record(
            commission_on="Net",
            net_premium=5000,
            commission_rate=10,
            tds_rate=2,
            discount=50,
            broker_payment=20,
            other_expense=0,
        )
        figures = calculate(record)

        assert figures.earning == Decimal("500")
        assert figures.tds == Decimal("10")
        assert figures.amount_after_tds == Decimal("490")
        assert figures.net_profit == Decimal("420")
        assert not figures.is_loss

    def test_negative_profit_is_not_clamped(self):
        record = make_record(
            commission_on="ONLINE POINTS",
            points=100,
            tds_rate=0,
            discount=100,
            broker_payment=150,
            other_expense=50,
        )
        figures = calculate(record)

        assert figures.amount_after_tds == Decimal("100")
        assert figures.net_profit == Decimal("-200")
        assert figures.is_loss

    def test_default_tds_rate_when_absent(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10, tds_rate=None)
        figures = calculate(record)

        assert figures.tds_rate == DEFAULT_TDS_RATE
        assert figures.tds == figures.earning * Decimal("0.02")

    def test_zero_tds_rate_is_respected(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10, tds_rate=0)
        figures = calculate(record)

        assert figures.tds == Decimal("0")
        assert figures.amount_after_tds == Decimal("500")

    def test_missing_attributes_count_as_zero(self):
        record = SimpleNamespace(commission_on="OD+TP", od_premium=1000, od_percentage=10)
        figures = calculate(record)

        assert figures.earning == Decimal("100")
        assert figures.tds == Decimal("2")
        assert figures.net_profit == Decimal("98")

    def test_invalid_numbers_coerced_to_zero(self):
        record = make_record(
            commission_on="Net",
            net_premium="5000",
            commission_rate="ten",
            discount=float("nan"),
            broker_payment=float("inf"),
        )
        figures = calculate(record)

        assert figures.earning == Decimal("0")
        assert figures.net_profit == Decimal("0")

    def test_accepts_schema_inputs(self):
        inputs = CommissionInputs(commissionOn="TP", tpPremium="1500", commissionRate="20", discount=10)
        figures = calculate(inputs)

        assert figures.earning == Decimal("300")
        assert figures.tds == Decimal("6")
        assert figures.net_profit == Decimal("284")

    def test_deterministic(self):
        record = make_record(commission_on="OD+TP", od_premium=1234.5, od_percentage=12.5, tp_premium=678, tp_percentage=2.5)
        assert calculate(record) == calculate(record)


class TestRecompute:
    """Writing derived figures back onto a record."""

    def test_writes_derived_fields_and_returns_same_record(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10, discount=50, broker_payment=20)
        result = recompute(record)

        assert result is record
        assert record.earning == Decimal("500")
        assert record.tds == Decimal("10")
        assert record.amount_after_tds == Decimal("490")
        assert record.net_profit == Decimal("420")

    def test_persists_default_tds_rate(self):
        record = make_record(commission_on="Net", net_premium=1000, commission_rate=10)
        del record.tds_rate
        recompute(record)

        assert record.tds_rate == Decimal("2")
        assert record.tds == record.earning * Decimal("0.02")

    def test_repeated_recompute_is_stable(self):
        record = make_record(commission_on="OD+TP", od_premium=1000, od_percentage=10, tp_premium=2000, tp_percentage=5)

        assert apply_figures(record) is True
        snapshot = dict(vars(record))

        for _ in range(5):
            assert apply_figures(record) is False
            assert recompute(record) is record
        assert vars(record) == snapshot

    def test_input_change_triggers_full_recompute(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10)
        recompute(record)

        record.commission_on = "ONLINE POINTS"
        record.points = 750
        assert apply_figures(record) is True
        assert record.earning == Decimal("750")
        assert record.tds == Decimal("15")
        assert record.net_profit == Decimal("735")

    def test_net_profit_noise_within_tolerance_is_not_written(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10)
        figures = calculate(record)
        record.earning = figures.earning
        record.tds = figures.tds
        record.tds_rate = figures.tds_rate
        record.amount_after_tds = figures.amount_after_tds
        record.net_profit = figures.net_profit + Decimal("0.005")

        assert needs_update(record, figures) is False
        assert apply_figures(record) is False

    def test_stale_derived_values_are_overwritten(self):
        record = make_record(commission_on="Net", net_premium=5000, commission_rate=10)
        record.earning = Decimal("999")
        record.tds = Decimal("1")
        record.amount_after_tds = Decimal("998")
        record.net_profit = Decimal("998")

        recompute(record)
        assert record.earning == Decimal("500")
        assert record.net_profit == Decimal("490")


class TestToDecimal:

    @pytest.mark.parametrize("value,expected", [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("  ", Decimal("0")),
        ("abc", Decimal("0")),
        ("1,250.50", Decimal("1250.50")),
        (12, Decimal("12")),
        (0.1, Decimal("0.1")),
        (float("nan"), Decimal("0")),
        (Decimal("Infinity"), Decimal("0")),
        (True, Decimal("0")),
    ])
    def test_coercion(self, value, expected):
        assert to_decimal(value) == expected


class TestOverflow:
    """Absurdly large inputs never raise."""

    def test_overflowing_earning_counts_as_zero(self):
        record = make_record(commission_on="Net", net_premium="1e999999", commission_rate="1e9", discount=10)
        figures = calculate(record)

        assert figures.earning == Decimal("0")
        assert figures.tds == Decimal("0")
        assert figures.net_profit == Decimal("-10")

    def test_overflowing_expenses_count_as_zero(self):
        record = make_record(
            commission_on="ONLINE POINTS",
            points=100,
            tds_rate=0,
            discount="9e999999",
            broker_payment="9e999999",
        )
        figures = calculate(record)

        assert figures.amount_after_tds == Decimal("100")
        assert figures.net_profit == Decimal("100")

    def test_recompute_with_overflowing_inputs(self):
        record = make_record(commission_on="OD+TP", od_premium="1e999999", od_percentage="1e999999")
        recompute(record)

        assert record.earning == Decimal("0")
        assert record.net_profit == Decimal("0")


class TestRounding:
    """Written figures are rounded to the stored precision."""

    def test_calculate_does_not_round(self):
        record = make_record(commission_on="Net", net_premium=Decimal("1000.01"), commission_rate=Decimal("12.346"))
        assert calculate(record).earning == Decimal("123.4612346")

    def test_recompute_writes_four_decimal_places(self):
        record = make_record(commission_on="Net", net_premium=Decimal("1000.01"), commission_rate=Decimal("12.346"))
        recompute(record)

        assert record.earning == Decimal("123.4612")
        assert record.tds == Decimal("2.4692")
        assert record.amount_after_tds == Decimal("120.9919")
        assert record.net_profit == Decimal("120.9919")

    def test_rounded_record_needs_no_rewrite(self):
        record = make_record(commission_on="Net", net_premium=Decimal("1000.01"), commission_rate=Decimal("12.346"))
        assert apply_figures(record) is True
        assert apply_figures(record) is False
