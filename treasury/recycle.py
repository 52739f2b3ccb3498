"""Auto-recycle: fund the treasury's gas floor from the earnings pool."""

import asyncio
import logging
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from core.types import RecycleOutcome, RecycleState
from treasury.amounts import eth_to_usd
from treasury.ledger import Ledger

logger = logging.getLogger(__name__)

BalanceReader = Callable[[], Awaitable[Optional[Decimal]]]


class AutoRecycleController:
    """Tops up the treasury's gas allocation from earnings when it runs low.

    Accounting only: the treasury is its own destination, so recycling books
    earnings as authorized gas spend instead of moving anything on chain.
    """

    def __init__(
        self,
        ledger: Ledger,
        read_balance: BalanceReader,
        min_gas_eth: Decimal,
        eth_price: Decimal,
        min_earnings_usd: Decimal = Decimal(0),
        enabled: bool = True,
    ):
        """Initialize the controller.

        Args:
            ledger: Ledger holding the earnings pool
            read_balance: Returns the treasury's current balance in ETH, or
                None when there is no live connection to read it from
            min_gas_eth: Operational floor for the treasury balance
            eth_price: Fixed USD price of ETH
            min_earnings_usd: Earnings the pool must hold before recycling
            enabled: Initial state of the feature flag
        """
        self.ledger = ledger
        self.read_balance = read_balance
        self.min_gas_eth = min_gas_eth
        self.eth_price = eth_price
        self.min_earnings_usd = min_earnings_usd
        self.enabled = enabled
        self.state = RecycleState.IDLE
        self._lock = asyncio.Lock()

    def toggle(self) -> bool:
        """Flip the feature flag and return the new value."""
        self.enabled = not self.enabled
        logger.info(f"Auto-recycle {'enabled' if self.enabled else 'disabled'}")
        return self.enabled

    async def maybe_recycle(self) -> RecycleOutcome:
        """Recycle earnings into gas if the treasury is below its floor.

        Never raises: every reason not to recycle is a no-op outcome.
        """
        async with self._lock:
            if not self.enabled:
                return RecycleOutcome(recycled=False, reason="disabled")

            self.state = RecycleState.RECYCLING
            try:
                return await self._evaluate()
            finally:
                self.state = RecycleState.IDLE

    async def _evaluate(self) -> RecycleOutcome:
        balance = await self.read_balance()
        if balance is None:
            return RecycleOutcome(recycled=False, reason="disconnected")

        if balance >= self.min_gas_eth:
            return RecycleOutcome(recycled=False, reason="sufficient-balance")

        recycle_eth = self.min_gas_eth - balance
        recycle_usd = eth_to_usd(recycle_eth, self.eth_price)

        snapshot = await self.ledger.recycle(recycle_usd, self.min_earnings_usd)
        if snapshot is None:
            needed = max(recycle_usd, self.min_earnings_usd)
            logger.info(f"Insufficient earnings to recycle (need ${needed:.2f}+)")
            return RecycleOutcome(recycled=False, reason="insufficient-earnings")

        logger.info(f"Auto-recycled ${recycle_usd:.2f} -> {recycle_eth:.6f} ETH to backend")
        return RecycleOutcome(
            recycled=True,
            reason="recycled",
            recycled_eth=recycle_eth,
            recycled_usd=recycle_usd,
            remaining_earnings=snapshot.total_earnings,
        )
