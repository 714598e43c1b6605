"""Utility functions for platecount."""

from platecount.utils.date_parser import parse_date
from platecount.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
