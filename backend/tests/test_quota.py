"""Tests for the per-user storage quota ledger."""

from __future__ import annotations

import asyncio

import pytest

from app.services.quota import STORAGE_LIMIT, QuotaLedger

MIB = 1024 * 1024


@pytest.mark.asyncio
async def test_new_user_starts_empty(ledger: QuotaLedger, accounts) -> None:
    assert await ledger.used_bytes("fresh") == 0
    assert accounts.used == {"fresh": 0}


@pytest.mark.asyncio
async def test_admit_within_limit(ledger: QuotaLedger) -> None:
    assert await ledger.admit("u1", 3 * MIB)
    assert await ledger.used_bytes("u1") == 3 * MIB


@pytest.mark.asyncio
async def test_admit_up_to_exact_limit(ledger: QuotaLedger) -> None:
    assert await ledger.admit("u1", STORAGE_LIMIT)
    assert not await ledger.admit("u1", 1)
    assert await ledger.used_bytes("u1") == STORAGE_LIMIT


@pytest.mark.asyncio
async def test_admit_over_limit_leaves_usage_unchanged(ledger: QuotaLedger, accounts) -> None:
    accounts.used["u1"] = 49 * MIB

    assert not await ledger.admit("u1", 2 * MIB)
    assert await ledger.used_bytes("u1") == 49 * MIB


@pytest.mark.asyncio
async def test_admit_then_release_round_trips(ledger: QuotaLedger) -> None:
    await ledger.admit("u1", 12345)
    before = await ledger.used_bytes("u1")

    await ledger.admit("u1", 777_777)
    await ledger.release("u1", 777_777)

    assert await ledger.used_bytes("u1") == before


@pytest.mark.asyncio
async def test_release_clamps_at_zero(ledger: QuotaLedger) -> None:
    await ledger.admit("u1", 100)
    await ledger.release("u1", 1000)

    assert await ledger.used_bytes("u1") == 0


@pytest.mark.asyncio
async def test_release_for_unknown_user_creates_account(ledger: QuotaLedger, accounts) -> None:
    await ledger.release("ghost", 10)

    assert accounts.used["ghost"] == 0


@pytest.mark.asyncio
async def test_negative_deltas_are_rejected(ledger: QuotaLedger) -> None:
    with pytest.raises(ValueError):
        await ledger.admit("u1", -1)
    with pytest.raises(ValueError):
        await ledger.release("u1", -1)


@pytest.mark.asyncio
async def test_concurrent_admits_never_exceed_limit(ledger: QuotaLedger) -> None:
    results = await asyncio.gather(*(ledger.admit("u1", 20 * MIB) for _ in range(5)))

    assert results.count(True) == 2
    assert await ledger.used_bytes("u1") == 40 * MIB
    assert 0 <= await ledger.used_bytes("u1") <= STORAGE_LIMIT
