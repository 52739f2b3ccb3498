"""Amount parsing and ETH/USD conversion at the fixed reference price."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from core.errors import InvalidAmount


def parse_amount(value: Any, field: str = "amount") -> Optional[Decimal]:
    """Parse a request amount into a Decimal.

    Accepts numbers and numeric strings. Missing values and empty strings
    become None.

    Raises:
        InvalidAmount: If the value is present but not a finite number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidAmount(f"Invalid {field}: {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmount(f"Invalid {field}: {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"Invalid {field}: {value!r}")
    return amount


def first_amount(*values: Optional[Decimal]) -> Optional[Decimal]:
    """First non-zero amount among several accepted input fields."""
    for value in values:
        if value:
            return value
    return None


def eth_to_usd(amount_eth: Decimal, eth_price: Decimal) -> Decimal:
    return amount_eth * eth_price


def usd_to_eth(amount_usd: Decimal, eth_price: Decimal) -> Decimal:
    return amount_usd / eth_price
