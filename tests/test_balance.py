"""Tests for the fail-safe balance reader."""

from decimal import Decimal

import pytest

from chain.connection import Connection
from core.errors import NodeUnreachable
from core.types import Endpoint
from tests.conftest import FakeChain, OTHER_WALLET, eth
from treasury.balance import AccountQueryService


def _connection(chain):
    return Connection(chain.node_factory(Endpoint(url="https://c.example", chain_id=1)))


@pytest.mark.asyncio
async def test_reads_balance_in_eth():
    chain = FakeChain(balance_wei=eth("1.25"))
    balances = AccountQueryService()

    assert await balances.get_balance(_connection(chain), OTHER_WALLET) == Decimal("1.25")
    assert await balances.get_balance_wei(_connection(chain), OTHER_WALLET) == eth("1.25")


@pytest.mark.asyncio
async def test_missing_connection_reads_zero():
    assert await AccountQueryService().get_balance(None, OTHER_WALLET) == 0


@pytest.mark.asyncio
async def test_missing_address_reads_zero():
    chain = FakeChain(balance_wei=eth("1"))
    assert await AccountQueryService().get_balance(_connection(chain), None) == 0


@pytest.mark.asyncio
async def test_rpc_failure_reads_zero():
    chain = FakeChain(balance_wei=eth("1"))
    chain.balance_error = NodeUnreachable("connection reset")

    assert await AccountQueryService().get_balance_wei(_connection(chain), OTHER_WALLET) == 0
