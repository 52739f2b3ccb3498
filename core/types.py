"""Core types for the treasury service."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NewType, Optional

# Type aliases
Address = NewType("Address", str)  # 0x-prefixed EVM account address
TxHash = NewType("TxHash", str)


@dataclass(frozen=True)
class Endpoint:
    """A candidate JSON-RPC node and the chain it is expected to serve."""
    url: str
    chain_id: int


class ConnectionState(Enum):
    """Chain connection state reported to callers."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class TransferRequest:
    """Represents a request to move ETH out of the treasury."""
    destination: str
    amount_eth: Optional[Decimal] = None
    amount_usd: Optional[Decimal] = None
    send_max: bool = False  # non-positive or missing amount means "everything above the reserve"

    def resolve_amount(self, eth_price: Decimal) -> Optional[Decimal]:
        """ETH amount requested, preferring a direct amount over a USD one.

        Returns:
            The ETH amount, or None when the request carries no amount
        """
        if self.amount_eth:
            return self.amount_eth
        if self.amount_usd:
            return self.amount_usd / eth_price
        return None


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a confirmed treasury transfer."""
    tx_hash: str
    block_number: int
    success: bool
    from_address: str
    to_address: str
    amount_eth: Decimal
    amount_usd: Decimal


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of the ledger totals (USD)."""
    total_earnings: Decimal
    total_withdrawn_external: Decimal
    total_allocated_internal: Decimal
    total_recycled: Decimal


class RecycleState(Enum):
    """Auto-recycle controller state."""
    IDLE = "idle"
    RECYCLING = "recycling"


@dataclass(frozen=True)
class RecycleOutcome:
    """Result of one auto-recycle evaluation."""
    recycled: bool
    reason: str  # "recycled", "disabled", "sufficient-balance", "insufficient-earnings", "disconnected"
    recycled_eth: Decimal = Decimal(0)
    recycled_usd: Decimal = Decimal(0)
    remaining_earnings: Optional[Decimal] = None
