"""Earnings and withdrawal endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_service
from api.models import (
    BackendToCoinbaseRequest,
    CreditEarningsRequest,
    CreditEarningsResponse,
    SendToBackendRequest,
    SendToBackendResponse,
    SendToCoinbaseRequest,
    TransferResponse,
)
from core.types import TransferResult
from core.units import format_eth, format_usd
from service import TreasuryService
from treasury.amounts import first_amount, parse_amount, usd_to_eth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transfers"])


def transfer_response(result: TransferResult, explorer_tx_url: str) -> TransferResponse:
    return TransferResponse(
        success=result.success,
        txHash=result.tx_hash,
        amount=format_eth(result.amount_eth),
        amountUSD=format_usd(result.amount_usd),
        from_address=result.from_address,
        to=result.to_address,
        blockNumber=result.block_number,
        etherscanUrl=explorer_tx_url + result.tx_hash,
    )


@router.post("/credit-earnings", response_model=CreditEarningsResponse)
async def credit_earnings(
    request: Optional[CreditEarningsRequest] = None,
    service: TreasuryService = Depends(get_service),
):
    """Add trading profit to the earnings pool. Non-positive amounts are ignored."""
    request = request or CreditEarningsRequest()
    amount = first_amount(
        parse_amount(request.amount, "amount"),
        parse_amount(request.amountUSD, "amountUSD"),
    )
    credited = amount if amount and amount > 0 else 0

    ledger = await service.credit_earnings(amount_usd=amount)
    return CreditEarningsResponse(
        success=True,
        credited=format_usd(credited),
        totalEarnings=format_usd(ledger.total_earnings),
    )


@router.post("/send-to-coinbase", response_model=TransferResponse)
@router.post("/coinbase-withdraw", response_model=TransferResponse)
@router.post("/withdraw", response_model=TransferResponse)
@router.post("/send-eth", response_model=TransferResponse)
@router.post("/transfer", response_model=TransferResponse)
async def send_to_coinbase(
    request: Optional[SendToCoinbaseRequest] = None,
    service: TreasuryService = Depends(get_service),
):
    """Withdraw earnings from the treasury to the coinbase wallet (or `to`)."""
    request = request or SendToCoinbaseRequest()
    amount_eth = first_amount(
        parse_amount(request.amountETH, "amountETH"),
        parse_amount(request.amount, "amount"),
    )
    amount_usd = parse_amount(request.amountUSD, "amountUSD")

    result = await service.send_to_coinbase(
        amount_eth=amount_eth,
        amount_usd=amount_usd,
        to=request.to,
        deadline=request.timeout,
    )
    return transfer_response(result, service.config.explorer_tx_url)


@router.post("/send-to-backend", response_model=SendToBackendResponse)
@router.post("/fund-backend", response_model=SendToBackendResponse)
@router.post("/fund-from-earnings", response_model=SendToBackendResponse)
async def send_to_backend(
    request: Optional[SendToBackendRequest] = None,
    service: TreasuryService = Depends(get_service),
):
    """Reallocate earnings to the backend wallet. Ledger only, nothing moves on chain."""
    request = request or SendToBackendRequest()
    amount_eth = parse_amount(request.amountETH, "amountETH")
    amount_usd = parse_amount(request.amountUSD, "amountUSD")

    moved_usd, ledger = await service.send_to_backend(amount_eth=amount_eth, amount_usd=amount_usd)

    return SendToBackendResponse(
        success=True,
        amountETH=format_eth(usd_to_eth(moved_usd, service.config.eth_price)),
        amountUSD=format_usd(moved_usd),
        totalEarnings=format_usd(ledger.total_earnings),
        totalSentToBackend=format_usd(ledger.total_allocated_internal),
    )


@router.post("/backend-to-coinbase", response_model=TransferResponse)
@router.post("/transfer-to-coinbase", response_model=TransferResponse)
@router.post("/treasury-to-coinbase", response_model=TransferResponse)
async def backend_to_coinbase(
    request: Optional[BackendToCoinbaseRequest] = None,
    service: TreasuryService = Depends(get_service),
):
    """Move treasury funds to the coinbase wallet; no amount sends the maximum."""
    request = request or BackendToCoinbaseRequest()
    amount_eth = first_amount(
        parse_amount(request.amountETH, "amountETH"),
        parse_amount(request.amount, "amount"),
    )

    result = await service.backend_to_coinbase(amount_eth=amount_eth, deadline=request.timeout)
    return transfer_response(result, service.config.explorer_tx_url)
