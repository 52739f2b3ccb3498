"""Tests for ConnectionManager: binding, caching, single-flight and retry."""

import asyncio

import pytest

from chain.connection import ConnectionManager
from core.errors import ChainConnectionError, ConfigurationError
from core.types import ConnectionState, Endpoint
from tests.conftest import FakeChain, TEST_KEY, URL_A, URL_B, URL_C, URL_D


def _manager(chain, urls=(URL_A, URL_B, URL_C, URL_D), private_key=TEST_KEY, probe_timeout=0.2):
    return ConnectionManager(
        endpoints=[Endpoint(url=u, chain_id=1) for u in urls],
        private_key=private_key,
        probe_timeout=probe_timeout,
        receipt_poll_interval=0.01,
        node_factory=chain.node_factory,
    )


@pytest.mark.asyncio
async def test_binds_third_endpoint_and_never_probes_the_rest():
    chain = FakeChain(down=[URL_A, URL_B])
    manager = _manager(chain)

    connection = await manager.acquire()

    assert connection.endpoint.url == URL_C
    assert chain.probed == [URL_A, URL_B, URL_C]
    assert URL_D not in chain.probed
    assert manager.state == ConnectionState.CONNECTED


@pytest.mark.asyncio
async def test_failed_probes_close_their_nodes():
    chain = FakeChain(down=[URL_A, URL_B])
    await _manager(chain).acquire()

    running = {node.url: node.running for node in chain.nodes}
    assert running == {URL_A: False, URL_B: False, URL_C: True}


@pytest.mark.asyncio
async def test_connection_is_cached():
    chain = FakeChain()
    manager = _manager(chain)

    first = await manager.acquire()
    second = await manager.acquire()

    assert first is second
    assert chain.probed == [URL_A]


@pytest.mark.asyncio
async def test_concurrent_first_use_sweeps_once():
    chain = FakeChain(down=[URL_A, URL_B])
    manager = _manager(chain)

    results = await asyncio.gather(*(manager.acquire() for _ in range(5)))

    assert all(r is results[0] for r in results)
    assert chain.probed == [URL_A, URL_B, URL_C]


@pytest.mark.asyncio
async def test_hanging_endpoint_is_skipped_after_timeout():
    chain = FakeChain(hanging=[URL_A])
    manager = _manager(chain, probe_timeout=0.05)

    connection = await manager.acquire()

    assert connection.endpoint.url == URL_B


@pytest.mark.asyncio
async def test_failure_is_not_cached():
    chain = FakeChain(down=[URL_A, URL_B, URL_C, URL_D])
    manager = _manager(chain)

    with pytest.raises(ChainConnectionError):
        await manager.acquire()
    assert manager.state == ConnectionState.DISCONNECTED
    assert await manager.get_or_none() is None

    chain.down.discard(URL_D)
    connection = await manager.acquire()
    assert connection.endpoint.url == URL_D


@pytest.mark.asyncio
async def test_connect_retries_whole_pool_then_gives_up():
    chain = FakeChain(down=[URL_A, URL_B])
    manager = _manager(chain, urls=(URL_A, URL_B))

    result = await manager.connect(attempts=3, backoff=0)

    assert result is None
    assert chain.probed == [URL_A, URL_B] * 3


@pytest.mark.asyncio
async def test_read_only_mode_has_no_signer():
    chain = FakeChain()
    connection = await _manager(chain, private_key=None).acquire()

    assert connection.signer is None
    assert connection.address is None


@pytest.mark.asyncio
async def test_signer_is_derived_from_key():
    chain = FakeChain()
    connection = await _manager(chain).acquire()

    assert connection.address.startswith("0x")
    assert len(connection.address) == 42


@pytest.mark.asyncio
async def test_invalidate_forces_a_new_sweep():
    chain = FakeChain()
    manager = _manager(chain)

    first = await manager.acquire()
    await manager.invalidate()

    assert manager.connection is None
    assert first.node.running is False

    chain.down.add(URL_A)
    second = await manager.acquire()
    assert second.endpoint.url == URL_B


def test_unusable_key_is_rejected_before_any_probe():
    chain = FakeChain()

    with pytest.raises(ConfigurationError):
        _manager(chain, private_key="0x" + "f" * 64)

    assert chain.nodes == []
