"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

CENTS = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a donation amount typed by an usher into a Decimal.

    Handles various formats:
    - "50"
    - "50.00"
    - "$1,250.00"
    - " 75.5 "

    Donation amounts are always positive and in whole cents.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount with two decimal places

    Raises:
        ValueError: If the string is not a positive amount in cents
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = re.sub(r"[$\s]", "", amount_str).replace(",", "")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str.strip()}'")

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str.strip()}'")
    if amount <= 0:
        raise ValueError(f"Amount must be greater than zero, got '{amount_str.strip()}'")
    if amount != amount.quantize(CENTS):
        raise ValueError(f"Amount '{amount_str.strip()}' has more than two decimal places")
    return amount.quantize(CENTS)
