"""Utility functions for ledgerkit."""

from ledgerkit.utils.date_parser import parse_instant, to_utc_instant
from ledgerkit.utils.amount_parser import parse_amount

__all__ = ["parse_instant", "to_utc_instant", "parse_amount"]
