"""Payout ledger backend: commission calculation and payout record API."""

__version__ = "1.0.0"
