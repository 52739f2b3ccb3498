"""Treasury service: wires the connection layer, ledger and engines together."""

import logging
from decimal import Decimal
from typing import Optional, Tuple

from chain.connection import ConnectionManager, NodeFactory
from chain.node import EthereumNode
from config import TreasuryConfig
from core.errors import InvalidAmount
from core.types import LedgerSnapshot, RecycleOutcome, TransferRequest, TransferResult
from treasury.amounts import eth_to_usd, first_amount
from treasury.balance import AccountQueryService
from treasury.ledger import Ledger
from treasury.recycle import AutoRecycleController
from treasury.withdrawal import WithdrawalEngine

logger = logging.getLogger(__name__)


class TreasuryService:
    """Earnings ledger plus treasury withdrawals over a failover RPC pool."""

    def __init__(self, config: TreasuryConfig, node_factory: NodeFactory = EthereumNode):
        """Initialize the service.

        Args:
            config: Service configuration
            node_factory: Builds the RPC client for an endpoint
        """
        self.config = config

        self.connections = ConnectionManager(
            endpoints=config.endpoints,
            private_key=config.private_key or None,
            probe_timeout=config.probe_timeout,
            receipt_poll_interval=config.receipt_poll_interval,
            node_factory=node_factory,
        )
        self.balances = AccountQueryService()
        self.ledger = Ledger()

        self.withdrawals = WithdrawalEngine(
            connections=self.connections,
            balances=self.balances,
            ledger=self.ledger,
            fee_reserve_eth=config.fee_reserve_eth,
            eth_price=config.eth_price,
            confirmation_timeout=config.confirmation_timeout,
        )

        self.recycler = AutoRecycleController(
            ledger=self.ledger,
            read_balance=self._live_balance,
            min_gas_eth=config.min_gas_eth,
            eth_price=config.eth_price,
            min_earnings_usd=config.recycle_min_earnings_usd,
            enabled=config.auto_recycle_enabled,
        )

        logger.info(f"Initialized treasury service with {len(config.rpc_urls)} RPC endpoints")

    async def start(self) -> None:
        """Connect to the pool with the startup retry policy.

        Connection failure is not fatal; the service runs disconnected.
        """
        logger.info("Starting treasury service...")
        self.config.validate()

        await self.connections.connect(
            attempts=self.config.connect_attempts,
            backoff=self.config.connect_backoff,
        )

        balance = await self.treasury_balance()
        logger.info(
            f"Treasury {self.treasury_address} | Balance {balance:.6f} ETH | "
            f"RPC {self.connections.state.value}"
        )

    async def stop(self) -> None:
        """Stop the service."""
        logger.info("Stopping treasury service...")
        await self.connections.close()
        logger.info("Treasury service stopped")

    @property
    def treasury_address(self) -> str:
        """Signer address when a key is configured, else the configured treasury."""
        connection = self.connections.connection
        if connection and connection.address:
            return connection.address
        return self.config.treasury_address

    async def treasury_balance(self) -> Decimal:
        """Treasury balance in ETH; zero when disconnected."""
        connection = await self.connections.get_or_none()
        address = connection.address if connection and connection.address else self.config.treasury_address
        return await self.balances.get_balance(connection, address)

    async def _live_balance(self) -> Optional[Decimal]:
        """Treasury balance in ETH, or None when no endpoint is reachable."""
        connection = await self.connections.get_or_none()
        if connection is None:
            return None
        address = connection.address or self.config.treasury_address
        return await self.balances.get_balance(connection, address)

    async def ceiling(self) -> Tuple[Decimal, Decimal]:
        """Treasury balance and max withdrawable, in ETH."""
        connection = await self.connections.get_or_none()
        address = connection.address if connection and connection.address else self.config.treasury_address
        return await self.withdrawals.ceiling(connection, address)

    async def credit_earnings(
        self,
        amount_usd: Optional[Decimal] = None,
        amount: Optional[Decimal] = None,
    ) -> LedgerSnapshot:
        """Add to the earnings pool; non-positive amounts are a no-op."""
        value = first_amount(amount, amount_usd) or Decimal(0)
        return await self.ledger.credit_earnings(value)

    async def send_to_backend(
        self,
        amount_eth: Optional[Decimal] = None,
        amount_usd: Optional[Decimal] = None,
    ) -> Tuple[Decimal, LedgerSnapshot]:
        """Reallocate earnings to the backend wallet's allocation (ledger only).

        Returns:
            USD amount moved and the resulting ledger snapshot
        """
        if amount_eth:
            value_usd = eth_to_usd(amount_eth, self.config.eth_price)
        elif amount_usd:
            value_usd = amount_usd
        else:
            raise InvalidAmount("Invalid amount")
        return value_usd, await self.ledger.allocate_internal(value_usd)

    async def send_to_coinbase(
        self,
        amount_eth: Optional[Decimal] = None,
        amount_usd: Optional[Decimal] = None,
        to: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> TransferResult:
        """Withdraw earnings on chain to `to`, defaulting to the coinbase wallet."""
        request = TransferRequest(
            destination=to or self.config.coinbase_address,
            amount_eth=amount_eth,
            amount_usd=amount_usd,
        )
        return await self.withdrawals.withdraw(request, deadline=deadline)

    async def backend_to_coinbase(
        self,
        amount_eth: Optional[Decimal] = None,
        deadline: Optional[float] = None,
    ) -> TransferResult:
        """Drain the treasury to the coinbase wallet; no amount means send max."""
        request = TransferRequest(
            destination=self.config.coinbase_address,
            amount_eth=amount_eth,
            send_max=True,
        )
        return await self.withdrawals.withdraw(request, deadline=deadline)

    async def recycle(self) -> RecycleOutcome:
        return await self.recycler.maybe_recycle()
