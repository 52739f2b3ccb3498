"""Gas-reserve-aware withdrawals from the treasury."""

import asyncio
import logging
from decimal import Decimal
from typing import Optional, Tuple

from eth_utils import is_address

from chain.connection import Connection, ConnectionManager
from core.errors import (
    ChainConnectionError,
    ChainError,
    DeadlineExceeded,
    InsufficientReserve,
    InvalidAddress,
    InvalidAmount,
    NodeUnreachable,
    ServiceUnavailable,
    TransactionFailed,
)
from core.types import TransferRequest, TransferResult
from core.units import from_wei, to_wei
from treasury.amounts import eth_to_usd
from treasury.balance import AccountQueryService
from treasury.ledger import Ledger

logger = logging.getLogger(__name__)


class WithdrawalEngine:
    """Moves ETH out of the treasury while keeping a fee reserve behind."""

    def __init__(
        self,
        connections: ConnectionManager,
        balances: AccountQueryService,
        ledger: Ledger,
        fee_reserve_eth: Decimal,
        eth_price: Decimal,
        confirmation_timeout: float = 120.0,
    ):
        """Initialize withdrawal engine.

        Args:
            connections: Connection manager for the treasury's chain
            balances: Balance reader
            ledger: Ledger booked after each confirmed transfer
            fee_reserve_eth: ETH kept unspent so the treasury can always pay gas
            eth_price: Fixed USD price used for ledger bookkeeping
            confirmation_timeout: Default bound on the confirmation wait, in seconds
        """
        self.connections = connections
        self.balances = balances
        self.ledger = ledger
        self.fee_reserve_eth = fee_reserve_eth
        self.eth_price = eth_price
        self.confirmation_timeout = confirmation_timeout

    @property
    def fee_reserve_wei(self) -> int:
        return to_wei(self.fee_reserve_eth)

    async def ceiling(self, connection: Optional[Connection], address: Optional[str]) -> Tuple[Decimal, Decimal]:
        """Current balance and the most that can be sent, both in ETH.

        The ceiling is floored at zero.
        """
        balance_wei = await self.balances.get_balance_wei(connection, address)
        max_wei = max(0, balance_wei - self.fee_reserve_wei)
        return from_wei(balance_wei), from_wei(max_wei)

    def _validate(self, request: TransferRequest) -> Optional[int]:
        """Check a request before any I/O.

        Returns:
            Requested amount in wei, or None for send-max
        """
        if not request.destination or not is_address(request.destination):
            raise InvalidAddress(f"Invalid destination address: {request.destination!r}")

        amount = request.resolve_amount(self.eth_price)
        if amount is None or amount <= 0:
            if request.send_max:
                return None
            raise InvalidAmount("Invalid amount")

        amount_wei = to_wei(amount)
        if amount_wei <= 0:
            raise InvalidAmount(f"Amount {amount} ETH is below the smallest transferable unit")
        return amount_wei

    async def withdraw(self, request: TransferRequest, deadline: Optional[float] = None) -> TransferResult:
        """Send ETH from the treasury to the request's destination.

        The ledger is booked only after the transfer is confirmed on chain.

        Args:
            request: Destination and amount
            deadline: Seconds the caller is willing to wait for connection and
                confirmation; defaults to the engine's confirmation timeout

        Returns:
            Result of the confirmed transfer

        Raises:
            InvalidAmount, InvalidAddress: Input rejected before any I/O
            ServiceUnavailable: No connection or no signing key
            InsufficientReserve: Amount would breach the fee reserve
            TransactionFailed: Submission or confirmation failed
            DeadlineExceeded: Deadline fired before confirmation
        """
        requested_wei = self._validate(request)

        loop = asyncio.get_running_loop()
        expires_at = loop.time() + (deadline if deadline is not None else self.confirmation_timeout)

        def remaining() -> float:
            return max(0.0, expires_at - loop.time())

        try:
            connection = await asyncio.wait_for(self.connections.acquire(), timeout=remaining())
        except asyncio.TimeoutError:
            raise DeadlineExceeded("Timed out waiting for an RPC connection")
        except ChainConnectionError as e:
            raise ServiceUnavailable(f"RPC not initialized: {e}")

        if connection.address is None:
            raise ServiceUnavailable("Wallet not initialized (no signing key configured)")

        try:
            balance_wei = await asyncio.wait_for(
                self.balances.get_balance_wei(connection, connection.address), timeout=remaining()
            )
        except asyncio.TimeoutError:
            raise DeadlineExceeded("Timed out reading the treasury balance")

        max_wei = balance_wei - self.fee_reserve_wei
        amount_wei = max_wei if requested_wei is None else requested_wei

        if max_wei <= 0 or amount_wei > max_wei:
            raise InsufficientReserve(
                balance=from_wei(balance_wei),
                max_withdrawable=from_wei(max(0, max_wei)),
                requested=None if requested_wei is None else from_wei(requested_wei),
            )

        amount_eth = from_wei(amount_wei)
        logger.info(f"Sending {amount_eth} ETH from {connection.address} to {request.destination}")

        try:
            raw_tx, tx_hash = await asyncio.wait_for(
                connection.sign_value(request.destination, amount_wei), timeout=remaining()
            )
        except asyncio.TimeoutError:
            raise DeadlineExceeded("Timed out preparing transaction")
        except NodeUnreachable as e:
            await self.connections.invalidate()
            raise TransactionFailed(str(e), cause=e)
        except ChainError as e:
            raise TransactionFailed(str(e), cause=e)

        # From here on the transaction may be on chain, so every failure carries its hash
        try:
            tx_hash = await asyncio.wait_for(connection.broadcast(raw_tx), timeout=remaining())
        except asyncio.TimeoutError:
            logger.warning(f"Submission of {tx_hash} timed out; ledger left unchanged")
            raise DeadlineExceeded("Timed out submitting transaction", tx_hash=tx_hash)
        except NodeUnreachable as e:
            await self.connections.invalidate()
            raise TransactionFailed(str(e), tx_hash=tx_hash, cause=e)
        except ChainError as e:
            raise TransactionFailed(str(e), tx_hash=tx_hash, cause=e)

        try:
            receipt = await asyncio.wait_for(connection.wait_for_receipt(tx_hash), timeout=remaining())
        except asyncio.TimeoutError:
            logger.warning(f"Confirmation of {tx_hash} timed out; ledger left unchanged")
            raise DeadlineExceeded("Timed out waiting for confirmation", tx_hash=tx_hash)
        except NodeUnreachable as e:
            await self.connections.invalidate()
            raise TransactionFailed(str(e), tx_hash=tx_hash, cause=e)
        except ChainError as e:
            raise TransactionFailed(str(e), tx_hash=tx_hash, cause=e)

        block_number = int(receipt.get("blockNumber") or "0x0", 16)
        if int(receipt.get("status") or "0x0", 16) != 1:
            logger.error(f"Transaction {tx_hash} reverted in block {block_number}")
            raise TransactionFailed("reverted on chain", tx_hash=tx_hash)

        amount_usd = eth_to_usd(amount_eth, self.eth_price)
        await self.ledger.record_external_withdrawal(amount_usd)

        logger.info(f"Sent {amount_eth} ETH to {request.destination}: {tx_hash}")

        return TransferResult(
            tx_hash=tx_hash,
            block_number=block_number,
            success=True,
            from_address=connection.address,
            to_address=request.destination,
            amount_eth=amount_eth,
            amount_usd=amount_usd,
        )

    async def get_transfer_status(self, tx_hash: str) -> Optional[dict]:
        """Look up a submitted transfer.

        Returns:
            Receipt-derived status, or None if the chain does not know the hash

        Raises:
            ServiceUnavailable: If no connection can be acquired
        """
        try:
            connection = await self.connections.acquire()
        except ChainConnectionError as e:
            raise ServiceUnavailable(f"RPC not initialized: {e}")

        try:
            receipt = await connection.node.get_transaction_receipt(tx_hash)
            if receipt is None:
                tx = await connection.node.get_transaction(tx_hash)
                if tx is None:
                    return None
                return {"txHash": tx_hash, "status": "pending", "blockNumber": None}
        except ChainError as e:
            raise ServiceUnavailable(f"Failed to look up {tx_hash}: {e}")

        succeeded = int(receipt.get("status") or "0x0", 16) == 1
        return {
            "txHash": tx_hash,
            "status": "confirmed" if succeeded else "failed",
            "blockNumber": int(receipt.get("blockNumber") or "0x0", 16),
        }
