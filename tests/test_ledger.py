"""Tests for the in-memory ledger."""

import asyncio
from decimal import Decimal

import pytest

from core.errors import InsufficientEarnings, InvalidAmount
from treasury.ledger import Ledger


@pytest.mark.asyncio
async def test_credit_ignores_non_positive_amounts():
    ledger = Ledger()

    await ledger.credit_earnings(Decimal("0"))
    await ledger.credit_earnings(Decimal("-5"))
    snapshot = await ledger.credit_earnings(Decimal("12.5"))

    assert snapshot.total_earnings == Decimal("12.5")


@pytest.mark.asyncio
async def test_allocate_moves_earnings_to_internal_total():
    ledger = Ledger()
    await ledger.credit_earnings(Decimal("100"))

    snapshot = await ledger.allocate_internal(Decimal("0.01") * Decimal("3450"))

    assert snapshot.total_allocated_internal == Decimal("34.50")
    assert snapshot.total_earnings == Decimal("65.50")


@pytest.mark.asyncio
async def test_allocate_more_than_earnings_is_rejected_without_change():
    ledger = Ledger()
    await ledger.credit_earnings(Decimal("10"))

    with pytest.raises(InsufficientEarnings):
        await ledger.allocate_internal(Decimal("10.01"))

    snapshot = await ledger.snapshot()
    assert snapshot.total_earnings == Decimal("10")
    assert snapshot.total_allocated_internal == 0


@pytest.mark.asyncio
async def test_allocate_rejects_non_positive():
    with pytest.raises(InvalidAmount):
        await Ledger().allocate_internal(Decimal("0"))


@pytest.mark.asyncio
async def test_external_withdrawal_floors_earnings_at_zero():
    ledger = Ledger()
    await ledger.credit_earnings(Decimal("20"))

    snapshot = await ledger.record_external_withdrawal(Decimal("24.15"))

    assert snapshot.total_earnings == 0
    assert snapshot.total_withdrawn_external == Decimal("24.15")


@pytest.mark.asyncio
async def test_recycle_is_all_or_nothing():
    ledger = Ledger()
    await ledger.credit_earnings(Decimal("30"))

    assert await ledger.recycle(Decimal("34.50")) is None
    assert await ledger.recycle(Decimal("10"), min_earnings_usd=Decimal("35")) is None

    snapshot = await ledger.snapshot()
    assert snapshot.total_earnings == Decimal("30")
    assert snapshot.total_recycled == 0

    snapshot = await ledger.recycle(Decimal("10"))
    assert snapshot.total_earnings == Decimal("20")
    assert snapshot.total_recycled == Decimal("10")


@pytest.mark.asyncio
async def test_concurrent_allocations_never_overdraw():
    ledger = Ledger()
    await ledger.credit_earnings(Decimal("100"))

    results = await asyncio.gather(
        *(ledger.allocate_internal(Decimal("30")) for _ in range(5)),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, InsufficientEarnings)]
    assert len(failures) == 2

    snapshot = await ledger.snapshot()
    assert snapshot.total_earnings == Decimal("10")
    assert snapshot.total_allocated_internal == Decimal("90")
