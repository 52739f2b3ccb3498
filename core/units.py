"""ETH / wei unit helpers."""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

WEI_PER_ETH = 10 ** 18

_SIX_PLACES = Decimal("0.000001")
_TWO_PLACES = Decimal("0.01")


def to_wei(amount_eth: Decimal) -> int:
    """Convert ETH to wei, truncating anything below one wei."""
    return int((amount_eth * WEI_PER_ETH).to_integral_value(rounding=ROUND_DOWN))


def from_wei(amount_wei: int) -> Decimal:
    """Convert wei to ETH."""
    return Decimal(amount_wei) / WEI_PER_ETH


def format_eth(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(_SIX_PLACES, rounding=ROUND_HALF_UP))


def format_usd(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
