"""Shared fixtures: an in-memory chain standing in for the RPC pool."""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import keccak, to_hex

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import TreasuryConfig
from core.errors import NodeUnreachable
from core.types import Endpoint
from service import TreasuryService

# Well-known throwaway key from the eth-account documentation
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

COINBASE = "0x4024fd78e2ad5532fbf3ec2b3ec83870fae45fc7"
OTHER_WALLET = "0x1111111111111111111111111111111111111111"

URL_A = "https://a.example"
URL_B = "https://b.example"
URL_C = "https://c.example"
URL_D = "https://d.example"

ONE_ETH = 10 ** 18


def eth(amount: str) -> int:
    """ETH string to wei."""
    return int(Decimal(amount) * ONE_ETH)


class FakeChain:
    """Shared state behind every FakeNode built for one test."""

    def __init__(
        self,
        balance_wei: int = 0,
        down=(),
        hanging=(),
    ):
        self.balance_wei = balance_wei
        self.down = set(down)
        self.hanging = set(hanging)
        self.probed: List[str] = []
        self.sent: List[str] = []
        self.known_hashes: List[str] = []
        self.mine = True
        self.receipt_status = "0x1"
        self.balance_error: Optional[Exception] = None
        self.send_error: Optional[Exception] = None
        self.broadcast_hangs = False
        self.balance_hangs = False
        self.nodes: List["FakeNode"] = []

    def node_factory(self, endpoint: Endpoint) -> "FakeNode":
        node = FakeNode(endpoint, self)
        self.nodes.append(node)
        return node


class FakeNode:
    """Duck-typed stand-in for chain.node.EthereumNode."""

    def __init__(self, endpoint: Endpoint, chain: FakeChain):
        self.endpoint = endpoint
        self.chain = chain
        self.running = False

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def chain_id(self) -> int:
        return self.endpoint.chain_id

    async def start(self) -> None:
        self.running = True

    async def stop(self) -> None:
        self.running = False

    def is_running(self) -> bool:
        return self.running

    async def get_block_number(self) -> int:
        self.chain.probed.append(self.url)
        if self.url in self.chain.hanging:
            await asyncio.sleep(3600)
        if self.url in self.chain.down:
            raise NodeUnreachable(f"{self.url} refused connection")
        return 19_000_000

    async def get_balance(self, address: str, block: str = "latest") -> int:
        if self.chain.balance_hangs:
            await asyncio.sleep(3600)
        if self.chain.balance_error:
            raise self.chain.balance_error
        return self.chain.balance_wei

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return len(self.chain.sent)

    async def get_base_fee(self) -> int:
        return 10 * 10 ** 9

    async def get_max_priority_fee(self) -> int:
        return 10 ** 9

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return 21000

    async def send_raw_transaction(self, raw_tx: str) -> str:
        if self.chain.send_error:
            raise self.chain.send_error
        self.chain.sent.append(raw_tx)
        tx_hash = to_hex(keccak(hexstr=raw_tx))
        self.chain.known_hashes.append(tx_hash)
        if self.chain.broadcast_hangs:
            await asyncio.sleep(3600)
        return tx_hash

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        if tx_hash in self.chain.known_hashes:
            return {"hash": tx_hash}
        return None

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        if not self.chain.mine or tx_hash not in self.chain.known_hashes:
            return None
        return {"transactionHash": tx_hash, "blockNumber": hex(19_000_001), "status": self.chain.receipt_status}


def make_config(**overrides) -> TreasuryConfig:
    """Config tuned for fast tests."""
    values = dict(
        rpc_urls=[URL_A, URL_B, URL_C],
        private_key=TEST_KEY,
        coinbase_address=COINBASE,
        probe_timeout=0.2,
        connect_attempts=1,
        connect_backoff=0.0,
        confirmation_timeout=1.0,
        receipt_poll_interval=0.01,
    )
    values.update(overrides)
    return TreasuryConfig(**values)


@pytest.fixture
def chain():
    """Pool [A down, B down, C up] holding 0.01 ETH."""
    return FakeChain(balance_wei=eth("0.01"), down=[URL_A, URL_B])


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def service(config, chain):
    return TreasuryService(config, node_factory=chain.node_factory)
