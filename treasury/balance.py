"""Account balance queries that fail safe to zero."""

import logging
from decimal import Decimal
from typing import Optional

from chain.connection import Connection
from core.units import from_wei

logger = logging.getLogger(__name__)


class AccountQueryService:
    """Reads spendable balances through the active connection.

    Any failure reads as a zero balance so that reserve checks downstream
    block the operation instead of letting it through.
    """

    async def get_balance_wei(self, connection: Optional[Connection], address: Optional[str]) -> int:
        """Get an account balance in wei, or 0 if it cannot be read.

        Args:
            connection: Active connection, or None when disconnected
            address: Account to query
        """
        if connection is None or not address:
            return 0

        try:
            return await connection.node.get_balance(address)
        except Exception as e:
            logger.warning(f"Failed to get balance for {address} via {connection.endpoint.url}: {e}")
            return 0

    async def get_balance(self, connection: Optional[Connection], address: Optional[str]) -> Decimal:
        """Get an account balance in ETH, or 0 if it cannot be read."""
        return from_wei(await self.get_balance_wei(connection, address))
