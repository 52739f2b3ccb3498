"""Core types and errors for the treasury service."""

from core.errors import (
    TreasuryError,
    ConfigurationError,
    ChainError,
    RPCError,
    NodeUnreachable,
    ChainConnectionError,
    ValidationError,
    InvalidAmount,
    InvalidAddress,
    InsufficientReserve,
    InsufficientEarnings,
    ServiceUnavailable,
    TransactionFailed,
    DeadlineExceeded,
    NotFound,
)
from core.types import (
    Address,
    TxHash,
    Endpoint,
    ConnectionState,
    TransferRequest,
    TransferResult,
    LedgerSnapshot,
    RecycleState,
    RecycleOutcome,
)

__all__ = [
    "TreasuryError",
    "ConfigurationError",
    "ChainError",
    "RPCError",
    "NodeUnreachable",
    "ChainConnectionError",
    "ValidationError",
    "InvalidAmount",
    "InvalidAddress",
    "InsufficientReserve",
    "InsufficientEarnings",
    "ServiceUnavailable",
    "TransactionFailed",
    "DeadlineExceeded",
    "NotFound",
    "Address",
    "TxHash",
    "Endpoint",
    "ConnectionState",
    "TransferRequest",
    "TransferResult",
    "LedgerSnapshot",
    "RecycleState",
    "RecycleOutcome",
]
