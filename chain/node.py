"""Ethereum JSON-RPC client for a single endpoint."""

import asyncio
import itertools
import logging
from typing import Optional, Dict, Any, List

import aiohttp

from core.errors import ChainError, NodeUnreachable, RPCError
from core.types import Endpoint

logger = logging.getLogger(__name__)

# Gas used by a plain value transfer to an externally owned account
TRANSFER_GAS = 21000


def _to_int(value: Optional[str]) -> int:
    """Decode a JSON-RPC hex quantity."""
    if value is None:
        return 0
    return int(value, 16)


class EthereumNode:
    """Manages a connection to one Ethereum node via JSON-RPC.

    The node is bound to the chain id it is expected to serve; it never asks the
    endpoint which network it is on.
    """

    def __init__(self, endpoint: Endpoint, request_timeout: float = 30.0):
        """Create a new JSON-RPC client.

        Args:
            endpoint: Endpoint url and expected chain id
            request_timeout: Total timeout for a single HTTP request, in seconds
        """
        self.endpoint = endpoint
        self.request_timeout = request_timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def chain_id(self) -> int:
        return self.endpoint.chain_id

    async def start(self) -> None:
        """Open the HTTP session. No network traffic happens here."""
        if self._session:
            return

        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        self._session = aiohttp.ClientSession(timeout=timeout)
        logger.debug(f"Opened RPC session for {self.url}")

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.debug(f"Closed RPC session for {self.url}")

    def is_running(self) -> bool:
        """Check if the session is open."""
        return self._session is not None

    async def _rpc_call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make a JSON-RPC call to the node.

        Args:
            method: RPC method name
            params: Positional parameters for the RPC call

        Returns:
            The result from the RPC response

        Raises:
            ChainError: If the session is not initialized
            NodeUnreachable: If the request could not be completed
            RPCError: If the RPC call returns an error
        """
        if not self._session:
            raise ChainError("Session not initialized - call start() first")

        request_body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            async with self._session.post(self.url, json=request_body) as response:
                response.raise_for_status()
                response_data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise NodeUnreachable(f"{method} to {self.url} failed: {e or type(e).__name__}")

        if not isinstance(response_data, dict):
            raise RPCError("Malformed RPC response", method=method)

        if response_data.get("error"):
            error = response_data["error"]
            if isinstance(error, dict):
                raise RPCError(error.get("message", str(error)), method=method, code=error.get("code"))
            raise RPCError(str(error), method=method)

        if "result" not in response_data:
            raise RPCError("Missing result in RPC response", method=method)

        return response_data["result"]

    async def get_block_number(self) -> int:
        """Get current chain height."""
        return _to_int(await self._rpc_call("eth_blockNumber"))

    async def get_balance(self, address: str, block: str = "latest") -> int:
        """Get account balance in wei."""
        return _to_int(await self._rpc_call("eth_getBalance", [address, block]))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Get the next nonce for an account."""
        return _to_int(await self._rpc_call("eth_getTransactionCount", [address, block]))

    async def get_base_fee(self) -> int:
        """Get the base fee per gas of the latest block, in wei."""
        block = await self._rpc_call("eth_getBlockByNumber", ["latest", False])
        if not block:
            raise RPCError("Latest block unavailable", method="eth_getBlockByNumber")
        return _to_int(block.get("baseFeePerGas"))

    async def get_max_priority_fee(self) -> int:
        """Get the suggested priority fee per gas, in wei."""
        return _to_int(await self._rpc_call("eth_maxPriorityFeePerGas"))

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        """Estimate gas for a call object."""
        return _to_int(await self._rpc_call("eth_estimateGas", [tx]))

    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Broadcast a signed transaction.

        Returns:
            Transaction hash
        """
        return await self._rpc_call("eth_sendRawTransaction", [raw_tx])

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Get a transaction by hash, or None if the node does not know it."""
        return await self._rpc_call("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Get a transaction receipt, or None while still pending."""
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def __aenter__(self) -> "EthereumNode":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
