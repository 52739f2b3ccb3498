"""Pydantic models for API requests and responses."""

from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# Amounts arrive as JSON numbers or numeric strings
AmountInput = Optional[Union[int, float, str]]


class CreditEarningsRequest(BaseModel):
    """Request to add to the earnings pool."""
    amount: AmountInput = None
    amountUSD: AmountInput = None


class SendToCoinbaseRequest(BaseModel):
    """Request to withdraw earnings on chain."""
    amountETH: AmountInput = None
    amount: AmountInput = None
    amountUSD: AmountInput = None
    to: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)  # seconds to wait for confirmation


class SendToBackendRequest(BaseModel):
    """Request to reallocate earnings to the backend wallet (ledger only)."""
    amountETH: AmountInput = None
    amountUSD: AmountInput = None


class BackendToCoinbaseRequest(BaseModel):
    """Request to move treasury funds to the coinbase wallet."""
    amountETH: AmountInput = None
    amount: AmountInput = None
    timeout: Optional[float] = Field(default=None, gt=0)


class IndexResponse(BaseModel):
    """Service description."""
    name: str
    version: str
    status: str
    coinbaseWallet: str
    treasuryWallet: str
    endpoints: Dict[str, List[str]]


class RecycleResponse(BaseModel):
    """Outcome of an auto-recycle evaluation."""
    success: bool
    reason: str
    recycledETH: Optional[str] = None
    recycledUSD: Optional[str] = None
    remainingEarnings: Optional[str] = None
    autoRecycleEnabled: bool


class StatusResponse(BaseModel):
    """Full service status."""
    status: str
    blockchain: str
    activeEndpoint: Optional[str] = None
    coinbaseWallet: str
    treasuryWallet: str
    treasuryBalance: str
    treasuryBalanceUSD: str
    canTrade: bool
    canWithdraw: bool
    minGasRequired: str
    feeReserve: str
    totalEarnings: str
    totalWithdrawnToCoinbase: str
    totalSentToBackend: str
    totalRecycled: str
    autoRecycleEnabled: bool
    recycle: RecycleResponse
    availableETH: str
    rpcEndpoints: int
    timestamp: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    blockchain: str
    treasuryBalance: str
    canWithdraw: bool


class BalanceResponse(BaseModel):
    """Treasury balance and withdrawal ceiling."""
    treasuryWallet: str
    blockchain: str
    balanceETH: str
    balanceUSD: str
    maxWithdrawable: str
    feeReserve: str
    canWithdraw: bool


class EarningsResponse(BaseModel):
    """Ledger totals."""
    totalEarnings: str
    totalWithdrawnToCoinbase: str
    totalSentToBackend: str
    totalRecycled: str
    availableETH: str
    ethPrice: str


class CreditEarningsResponse(BaseModel):
    success: bool
    credited: str
    totalEarnings: str


class SendToBackendResponse(BaseModel):
    """Result of a ledger-only reallocation."""
    success: bool
    amountETH: str
    amountUSD: str
    totalEarnings: str
    totalSentToBackend: str


class TransferResponse(BaseModel):
    """Result of a confirmed on-chain transfer."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    txHash: str
    amount: str
    amountUSD: str
    from_address: str = Field(alias="from")
    to: str
    blockNumber: int
    etherscanUrl: str


class ToggleResponse(BaseModel):
    autoRecycleEnabled: bool


class TransactionStatus(BaseModel):
    """Status of a submitted transaction."""
    txHash: str
    status: str  # "pending", "confirmed", "failed"
    blockNumber: Optional[int] = None
    etherscanUrl: str


class ErrorResponse(BaseModel):
    """Structured failure body."""
    model_config = ConfigDict(extra="allow")

    error: str  # error kind, e.g. "insufficient_reserve"
    message: str
