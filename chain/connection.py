"""Lazily-bound, cached connection to the first live endpoint in the pool."""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex

from chain.node import EthereumNode, TRANSFER_GAS
from chain.selector import select_endpoint
from core.errors import ChainConnectionError, ConfigurationError, RPCError, ServiceUnavailable
from core.types import ConnectionState, Endpoint

logger = logging.getLogger(__name__)

NodeFactory = Callable[[Endpoint], EthereumNode]


def _derive_signer(private_key: Optional[str]) -> Optional[LocalAccount]:
    if not private_key:
        return None
    try:
        return Account.from_key(private_key)
    except Exception as e:
        raise ConfigurationError(f"Unusable signing key: {e}") from e


class Connection:
    """A live node binding plus the signing identity, if one is configured."""

    def __init__(
        self,
        node: EthereumNode,
        signer: Optional[LocalAccount] = None,
        receipt_poll_interval: float = 2.0,
    ):
        self.node = node
        self.signer = signer
        self.receipt_poll_interval = receipt_poll_interval

    @property
    def endpoint(self) -> Endpoint:
        return self.node.endpoint

    @property
    def address(self) -> Optional[str]:
        """Signer address, or None in read-only mode."""
        return self.signer.address if self.signer else None

    async def sign_value(self, to: str, value_wei: int) -> Tuple[str, str]:
        """Build and sign an EIP-1559 value transfer.

        Args:
            to: Destination address
            value_wei: Amount to send, in wei

        Returns:
            Raw signed transaction and its hash, both hex encoded
        """
        if self.signer is None:
            raise ServiceUnavailable("No signing key configured (read-only mode)")

        to = to_checksum_address(to)
        nonce = await self.node.get_transaction_count(self.signer.address, "pending")
        base_fee = await self.node.get_base_fee()
        priority_fee = await self.node.get_max_priority_fee()

        try:
            gas = await self.node.estimate_gas(
                {"from": self.signer.address, "to": to, "value": hex(value_wei)}
            )
        except RPCError as e:
            logger.warning(f"Gas estimation failed, using {TRANSFER_GAS}: {e}")
            gas = TRANSFER_GAS

        tx: Dict[str, Any] = {
            "type": 2,
            "chainId": self.node.chain_id,
            "nonce": nonce,
            "to": to,
            "value": value_wei,
            "gas": gas,
            "maxFeePerGas": base_fee * 2 + priority_fee,
            "maxPriorityFeePerGas": priority_fee,
        }
        signed = self.signer.sign_transaction(tx)
        return to_hex(signed.raw_transaction), to_hex(signed.hash)

    async def broadcast(self, raw_tx: str) -> str:
        """Submit a signed transaction, returning the hash the node reports."""
        return await self.node.send_raw_transaction(raw_tx)

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Poll until the transaction is mined.

        Not bounded here; callers wrap this in their own timeout.
        """
        while True:
            receipt = await self.node.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            await asyncio.sleep(self.receipt_poll_interval)


class ConnectionManager:
    """Selects a working endpoint from the pool and caches the result.

    Concurrent callers that find no connection share a single pool sweep.
    A failed sweep is not cached; the next call sweeps again.
    """

    def __init__(
        self,
        endpoints: List[Endpoint],
        private_key: Optional[str] = None,
        probe_timeout: float = 6.0,
        receipt_poll_interval: float = 2.0,
        node_factory: NodeFactory = EthereumNode,
    ):
        """Initialize the connection manager.

        Args:
            endpoints: Candidate endpoints in priority order
            private_key: Treasury signing key; None for read-only mode
            probe_timeout: Liveness probe timeout per endpoint, in seconds
            receipt_poll_interval: Delay between receipt polls, in seconds
            node_factory: Builds the RPC client for an endpoint

        Raises:
            ConfigurationError: If the signing key is not a valid secp256k1 key
        """
        self.endpoints = list(endpoints)
        self.probe_timeout = probe_timeout
        self.receipt_poll_interval = receipt_poll_interval
        self.signer = _derive_signer(private_key)
        self._node_factory = node_factory
        self._connection: Optional[Connection] = None
        self._sweep: Optional[asyncio.Task] = None

    @property
    def connection(self) -> Optional[Connection]:
        """The active connection, without attempting to acquire one."""
        return self._connection

    @property
    def state(self) -> ConnectionState:
        if self._connection:
            return ConnectionState.CONNECTED
        return ConnectionState.DISCONNECTED

    async def acquire(self) -> Connection:
        """Return the active connection, sweeping the pool if there is none.

        Raises:
            ChainConnectionError: If every endpoint failed its probe
        """
        if self._connection:
            return self._connection

        if self._sweep is None:
            self._sweep = asyncio.ensure_future(self._sweep_pool())
            self._sweep.add_done_callback(self._sweep_finished)

        # Shielded so one caller's deadline does not cancel the sweep for the rest
        return await asyncio.shield(self._sweep)

    async def get_or_none(self) -> Optional[Connection]:
        """Acquire a connection, returning None when the pool is exhausted."""
        try:
            return await self.acquire()
        except ChainConnectionError:
            return None

    async def connect(self, attempts: int = 3, backoff: float = 1.0) -> Optional[Connection]:
        """Startup connect: retry full pool sweeps with a fixed backoff.

        Returns:
            The connection, or None if every attempt failed
        """
        for attempt in range(1, attempts + 1):
            try:
                return await self.acquire()
            except ChainConnectionError as e:
                logger.warning(f"Connection attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    await asyncio.sleep(backoff)

        logger.error("All RPC endpoints failed to connect; running in disconnected mode")
        return None

    async def invalidate(self) -> None:
        """Drop the active connection so the next acquire sweeps the pool."""
        connection = self._connection
        self._connection = None
        if connection:
            logger.warning(f"Invalidating connection to {connection.endpoint.url}")
            await connection.node.stop()

    async def close(self) -> None:
        """Shut down, cancelling any in-flight sweep."""
        if self._sweep and not self._sweep.done():
            self._sweep.cancel()
        await self.invalidate()

    def _sweep_finished(self, task: asyncio.Task) -> None:
        self._sweep = None
        # Mark the exception retrieved when every waiter has already given up
        if not task.cancelled():
            task.exception()

    async def _open(self, endpoint: Endpoint) -> EthereumNode:
        """Bind a node to the endpoint and check that it answers."""
        node = self._node_factory(endpoint)
        await node.start()
        try:
            height = await node.get_block_number()
        except BaseException:
            await node.stop()
            raise
        logger.debug(f"{endpoint.url} is live at height {height}")
        return node

    async def _sweep_pool(self) -> Connection:
        """Probe the pool in order and bind the first live endpoint."""
        endpoint, node = await select_endpoint(self.endpoints, self._open, timeout=self.probe_timeout)

        if self.signer:
            logger.info(f"Treasury wallet: {self.signer.address}")
        else:
            logger.warning("No signing key configured; transfers are disabled")

        self._connection = Connection(node, self.signer, self.receipt_poll_interval)
        logger.info(f"Connected to {endpoint.url} ({len(self.endpoints)} endpoints in pool)")
        return self._connection
