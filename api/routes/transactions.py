"""Transaction lookup endpoints."""

import logging

from fastapi import APIRouter, Depends

from api.dependencies import get_service
from api.models import TransactionStatus
from core.errors import NotFound
from service import TreasuryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transactions"])


@router.get("/transactions/{tx_hash}", response_model=TransactionStatus)
async def get_transaction_status(
    tx_hash: str,
    service: TreasuryService = Depends(get_service),
):
    """Get status of a submitted transfer.

    Callers poll this after a transfer timed out waiting for confirmation.
    """
    status = await service.withdrawals.get_transfer_status(tx_hash)
    if status is None:
        raise NotFound(f"Transaction {tx_hash} not found")

    return TransactionStatus(
        txHash=status["txHash"],
        status=status["status"],
        blockNumber=status["blockNumber"],
        etherscanUrl=service.config.explorer_tx_url + tx_hash,
    )
