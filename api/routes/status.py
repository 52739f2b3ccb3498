"""Read-only status endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.dependencies import get_service
from api.models import BalanceResponse, EarningsResponse, HealthResponse, RecycleResponse, StatusResponse
from core.types import RecycleOutcome
from core.units import format_eth, format_usd
from service import TreasuryService
from treasury.amounts import eth_to_usd, usd_to_eth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["status"])


def recycle_response(outcome: RecycleOutcome, enabled: bool) -> RecycleResponse:
    """Shape a recycle outcome for the API."""
    if not outcome.recycled:
        return RecycleResponse(success=False, reason=outcome.reason, autoRecycleEnabled=enabled)
    return RecycleResponse(
        success=True,
        reason=outcome.reason,
        recycledETH=format_eth(outcome.recycled_eth),
        recycledUSD=format_usd(outcome.recycled_usd),
        remainingEarnings=format_usd(outcome.remaining_earnings),
        autoRecycleEnabled=enabled,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(service: TreasuryService = Depends(get_service)):
    """Full service status.

    Runs an auto-recycle evaluation first; that is the only ledger change a
    read endpoint may make.
    """
    config = service.config
    outcome = await service.recycle()

    balance = await service.treasury_balance()
    ledger = await service.ledger.snapshot()
    connection = service.connections.connection

    return StatusResponse(
        status="online",
        blockchain=service.connections.state.value,
        activeEndpoint=connection.endpoint.url if connection else None,
        coinbaseWallet=config.coinbase_address,
        treasuryWallet=service.treasury_address,
        treasuryBalance=format_eth(balance),
        treasuryBalanceUSD=format_usd(eth_to_usd(balance, config.eth_price)),
        canTrade=balance >= config.min_gas_eth,
        canWithdraw=balance >= config.fee_reserve_eth,
        minGasRequired=format_eth(config.min_gas_eth),
        feeReserve=format_eth(config.fee_reserve_eth),
        totalEarnings=format_usd(ledger.total_earnings),
        totalWithdrawnToCoinbase=format_usd(ledger.total_withdrawn_external),
        totalSentToBackend=format_usd(ledger.total_allocated_internal),
        totalRecycled=format_usd(ledger.total_recycled),
        autoRecycleEnabled=service.recycler.enabled,
        recycle=recycle_response(outcome, service.recycler.enabled),
        availableETH=format_eth(usd_to_eth(ledger.total_earnings, config.eth_price)),
        rpcEndpoints=len(config.rpc_urls),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(service: TreasuryService = Depends(get_service)):
    """Simple health check for monitoring."""
    balance = await service.treasury_balance()
    return HealthResponse(
        status="healthy",
        blockchain=service.connections.state.value,
        treasuryBalance=format_eth(balance),
        canWithdraw=balance >= service.config.fee_reserve_eth,
    )


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(service: TreasuryService = Depends(get_service)):
    """Treasury balance and how much of it can be withdrawn."""
    balance, max_withdrawable = await service.ceiling()
    return BalanceResponse(
        treasuryWallet=service.treasury_address,
        blockchain=service.connections.state.value,
        balanceETH=format_eth(balance),
        balanceUSD=format_usd(eth_to_usd(balance, service.config.eth_price)),
        maxWithdrawable=format_eth(max_withdrawable),
        feeReserve=format_eth(service.config.fee_reserve_eth),
        canWithdraw=max_withdrawable > 0,
    )


@router.get("/earnings", response_model=EarningsResponse)
async def get_earnings(service: TreasuryService = Depends(get_service)):
    """Ledger totals."""
    ledger = await service.ledger.snapshot()
    price = service.config.eth_price
    return EarningsResponse(
        totalEarnings=format_usd(ledger.total_earnings),
        totalWithdrawnToCoinbase=format_usd(ledger.total_withdrawn_external),
        totalSentToBackend=format_usd(ledger.total_allocated_internal),
        totalRecycled=format_usd(ledger.total_recycled),
        availableETH=format_eth(usd_to_eth(ledger.total_earnings, price)),
        ethPrice=format_usd(price),
    )
