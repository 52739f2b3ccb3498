"""In-memory earnings ledger."""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from core.errors import InsufficientEarnings, InvalidAmount
from core.types import LedgerSnapshot

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


class Ledger:
    """Running USD totals for earnings and where they went.

    All mutations happen under one lock, and every debit of total_earnings is
    credited to one of the other totals inside the same critical section.
    State lives only as long as the process.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._total_earnings = ZERO
        self._total_withdrawn_external = ZERO
        self._total_allocated_internal = ZERO
        self._total_recycled = ZERO

    def _snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            total_earnings=self._total_earnings,
            total_withdrawn_external=self._total_withdrawn_external,
            total_allocated_internal=self._total_allocated_internal,
            total_recycled=self._total_recycled,
        )

    async def snapshot(self) -> LedgerSnapshot:
        async with self._lock:
            return self._snapshot()

    async def credit_earnings(self, amount_usd: Decimal) -> LedgerSnapshot:
        """Add to the earnings pool. Non-positive amounts are ignored."""
        async with self._lock:
            if amount_usd > 0:
                self._total_earnings += amount_usd
                logger.info(f"Credited ${amount_usd:.2f} earnings (total ${self._total_earnings:.2f})")
            return self._snapshot()

    async def allocate_internal(self, amount_usd: Decimal) -> LedgerSnapshot:
        """Move earnings to the internal (backend) allocation.

        Raises:
            InvalidAmount: If the amount is not positive
            InsufficientEarnings: If the pool cannot cover the amount
        """
        if amount_usd <= 0:
            raise InvalidAmount("Invalid amount")

        async with self._lock:
            if amount_usd > self._total_earnings:
                raise InsufficientEarnings(self._total_earnings, amount_usd)
            self._total_earnings -= amount_usd
            self._total_allocated_internal += amount_usd
            logger.info(f"Allocated ${amount_usd:.2f} from earnings to backend")
            return self._snapshot()

    async def record_external_withdrawal(self, amount_usd: Decimal) -> LedgerSnapshot:
        """Book a confirmed on-chain withdrawal; earnings are floored at zero."""
        async with self._lock:
            self._total_withdrawn_external += amount_usd
            self._total_earnings = max(ZERO, self._total_earnings - amount_usd)
            return self._snapshot()

    async def recycle(self, amount_usd: Decimal, min_earnings_usd: Decimal = ZERO) -> Optional[LedgerSnapshot]:
        """Move earnings to the recycled total if the pool can fund it in full.

        Args:
            amount_usd: Amount to recycle
            min_earnings_usd: Earnings the pool must hold before any recycling

        Returns:
            The new snapshot, or None if earnings are insufficient
        """
        async with self._lock:
            if self._total_earnings < max(amount_usd, min_earnings_usd):
                return None
            self._total_earnings -= amount_usd
            self._total_recycled += amount_usd
            return self._snapshot()
