"""Tests for the photo catalog: upload admission, listing and owner-checked delete."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from app.models.geometry import Point
from app.services.catalog import PhotoCatalog
from fakes import MemoryPhotoStore

MIB = 1024 * 1024
BOX = [Point(x=1, y=1), Point(x=5, y=1), Point(x=5, y=5)]


def _ticking_clock():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = iter(range(1000))
    return lambda: start + timedelta(seconds=next(ticks))


@pytest.fixture
def catalog(photo_store, ledger, blobs) -> PhotoCatalog:
    return PhotoCatalog(photo_store, ledger, blobs, clock=_ticking_clock())


async def _stored(blobs, catalog, owner: str, size: int = 10):
    ref = await blobs.put(b"x" * size, content_type="image/png")
    return await catalog.upload(owner, ref, size, [BOX])


@pytest.mark.asyncio
async def test_upload_then_list_returns_it_first(catalog, blobs) -> None:
    await _stored(blobs, catalog, "alice")
    record = await _stored(blobs, catalog, "alice")

    latest = await catalog.list_photos("alice", 1)

    assert [r.id for r in latest] == [record.id]
    assert latest[0].polygons == [BOX]


@pytest.mark.asyncio
async def test_upload_charges_ledger(catalog, blobs, ledger) -> None:
    await _stored(blobs, catalog, "alice", size=1234)

    assert await ledger.used_bytes("alice") == 1234


@pytest.mark.asyncio
async def test_upload_over_quota_is_rejected(catalog, blobs, accounts, photo_store) -> None:
    accounts.used["alice"] = 49 * MIB
    ref = await blobs.put(b"img", content_type="image/jpeg")

    result = await catalog.upload("alice", ref, 2 * MIB, [])

    assert result is None
    assert photo_store.docs == {}
    assert accounts.used["alice"] == 49 * MIB


@pytest.mark.asyncio
async def test_failed_insert_releases_admission(catalog, blobs, photo_store, ledger) -> None:
    photo_store.fail_insert = True
    ref = await blobs.put(b"img")

    with pytest.raises(Exception):
        await catalog.upload("alice", ref, 500, [])

    assert await ledger.used_bytes("alice") == 0


@pytest.mark.asyncio
async def test_list_is_newest_first_and_per_owner(catalog, blobs) -> None:
    first = await _stored(blobs, catalog, "alice")
    await _stored(blobs, catalog, "bob")
    second = await _stored(blobs, catalog, "alice")

    records = await catalog.list_photos("alice")

    assert [r.id for r in records] == [second.id, first.id]


@pytest.mark.asyncio
async def test_list_limits(catalog, blobs) -> None:
    for _ in range(3):
        await _stored(blobs, catalog, "alice")

    assert await catalog.list_photos("alice", -5) == []
    assert await catalog.list_photos("alice", 0) == []
    assert len(await catalog.list_photos("alice", 2)) == 2
    assert len(await catalog.list_photos("alice", None)) == 3


@pytest.mark.asyncio
async def test_delete_by_owner_releases_and_removes(catalog, blobs, ledger, photo_store) -> None:
    record = await _stored(blobs, catalog, "alice", size=300)

    assert await catalog.delete("alice", record.id)

    assert await ledger.used_bytes("alice") == 0
    assert record.object_ref not in blobs.objects
    assert photo_store.docs == {}


@pytest.mark.asyncio
async def test_delete_by_other_user_is_denied(catalog, blobs, ledger) -> None:
    record = await _stored(blobs, catalog, "alice", size=300)

    assert not await catalog.delete("bob", record.id)

    assert await ledger.used_bytes("alice") == 300
    assert [r.id for r in await catalog.list_photos("alice")] == [record.id]
    assert record.object_ref in blobs.objects


@pytest.mark.asyncio
async def test_delete_twice_reports_not_found(catalog, blobs) -> None:
    record = await _stored(blobs, catalog, "alice")

    assert await catalog.delete("alice", record.id)
    assert not await catalog.delete("alice", record.id)


@pytest.mark.asyncio
async def test_delete_unknown_id(catalog) -> None:
    assert not await catalog.delete("alice", str(ObjectId()))


@pytest.mark.asyncio
async def test_blob_failure_still_removes_record(catalog, blobs, ledger, photo_store) -> None:
    record = await _stored(blobs, catalog, "alice", size=300)
    blobs.fail_delete = True

    assert await catalog.delete("alice", record.id)

    assert photo_store.docs == {}
    assert await ledger.used_bytes("alice") == 0


class _YieldingPhotoStore(MemoryPhotoStore):
    # 조회 중 이벤트 루프에 양보: 실제 DB 왕복처럼 다른 요청이 끼어든다
    async def claim_owned(self, owner_id, photo_id):
        await asyncio.sleep(0)
        return await super().claim_owned(owner_id, photo_id)


@pytest.mark.asyncio
async def test_concurrent_deletes_release_once(ledger, blobs) -> None:
    catalog = PhotoCatalog(_YieldingPhotoStore(), ledger, blobs, clock=_ticking_clock())
    first = await _stored(blobs, catalog, "alice", size=300)
    await _stored(blobs, catalog, "alice", size=500)

    results = await asyncio.gather(
        catalog.delete("alice", first.id),
        catalog.delete("alice", first.id),
    )

    assert sorted(results) == [False, True]
    assert await ledger.used_bytes("alice") == 500
