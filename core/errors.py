"""Error types for the treasury service."""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from core.units import format_eth, format_usd


class TreasuryError(Exception):
    """Base exception for all treasury errors."""

    kind = "treasury_error"

    def details(self) -> Dict[str, Any]:
        """Extra figures to surface to the caller alongside the message."""
        return {}


class ConfigurationError(TreasuryError):
    """Errors related to configuration."""

    kind = "configuration_error"


class ChainError(TreasuryError):
    """Errors related to chain RPC operations."""

    kind = "chain_error"


class RPCError(ChainError):
    """Errors returned by a JSON-RPC endpoint."""

    kind = "rpc_error"

    def __init__(self, message: str, method: str = "", code: Optional[int] = None):
        self.method = method
        self.code = code
        super().__init__(f"RPC Error [{method}]: {message}")


class NodeUnreachable(ChainError):
    """Transport-level failure talking to an endpoint."""

    kind = "node_unreachable"


class ChainConnectionError(ChainError):
    """Every endpoint in the pool failed its liveness probe."""

    kind = "connection_error"

    def __init__(self, attempts: List[Tuple[str, str]]):
        self.attempts = attempts
        tried = ", ".join(url for url, _ in attempts) or "none"
        super().__init__(f"All RPC endpoints failed (tried: {tried})")

    def details(self) -> Dict[str, Any]:
        return {"attempts": [{"endpoint": url, "error": err} for url, err in self.attempts]}


class ValidationError(TreasuryError):
    """Request input rejected before any chain interaction."""

    kind = "validation_error"


class InvalidAmount(ValidationError):
    kind = "invalid_amount"


class InvalidAddress(ValidationError):
    kind = "invalid_address"


class InsufficientReserve(TreasuryError):
    """Requested amount would dip into the fee reserve."""

    kind = "insufficient_reserve"

    def __init__(
        self,
        balance: Decimal,
        max_withdrawable: Decimal,
        requested: Optional[Decimal] = None,
    ):
        self.balance = balance
        self.max_withdrawable = max_withdrawable
        self.requested = requested
        super().__init__("Insufficient treasury balance (reserving gas fee)")

    def details(self) -> Dict[str, Any]:
        figures = {
            "treasuryBalance": format_eth(self.balance),
            "maxWithdrawable": format_eth(self.max_withdrawable),
        }
        if self.requested is not None:
            figures["requested"] = format_eth(self.requested)
        return figures


class InsufficientEarnings(TreasuryError):
    """Ledger reallocation larger than the earnings pool."""

    kind = "insufficient_earnings"

    def __init__(self, available_usd: Decimal, requested_usd: Decimal):
        self.available_usd = available_usd
        self.requested_usd = requested_usd
        super().__init__("Insufficient earnings")

    def details(self) -> Dict[str, Any]:
        return {
            "totalEarnings": format_usd(self.available_usd),
            "requestedUSD": format_usd(self.requested_usd),
        }


class ServiceUnavailable(TreasuryError):
    """No usable connection or no signing identity configured."""

    kind = "service_unavailable"


class TransactionFailed(TreasuryError):
    """Submission or confirmation failed after validation passed."""

    kind = "transaction_failed"

    def __init__(self, message: str, tx_hash: Optional[str] = None, cause: Optional[Exception] = None):
        self.tx_hash = tx_hash
        self.cause = cause
        super().__init__(f"Transaction failed: {message}")

    def details(self) -> Dict[str, Any]:
        return {"txHash": self.tx_hash} if self.tx_hash else {}


class DeadlineExceeded(TreasuryError):
    """Caller deadline fired during the probe or the confirmation wait."""

    kind = "timeout"

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {"txHash": self.tx_hash} if self.tx_hash else {}


class NotFound(TreasuryError):
    kind = "not_found"
