from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.deps import get_blob_store, get_catalog, get_ledger, get_vision_client_factory
from app.main import app
from app.services.catalog import PhotoCatalog
from app.services.quota import QuotaLedger
from fakes import FakeVisionClient, MemoryAccountStore, MemoryBlobStore, MemoryPhotoStore, encode_image


@pytest.fixture
def jpeg_bytes() -> bytes:
    return encode_image()


@pytest.fixture
def accounts() -> MemoryAccountStore:
    return MemoryAccountStore()


@pytest.fixture
def photo_store() -> MemoryPhotoStore:
    return MemoryPhotoStore()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def ledger(accounts: MemoryAccountStore) -> QuotaLedger:
    return QuotaLedger(accounts)


@pytest.fixture
def catalog(photo_store: MemoryPhotoStore, ledger: QuotaLedger, blobs: MemoryBlobStore) -> PhotoCatalog:
    return PhotoCatalog(photo_store, ledger, blobs)


@pytest.fixture
def vision() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def client(blobs, ledger, catalog, vision):
    # lifespan(startup) is not entered: no Mongo needed
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_ledger] = lambda: ledger
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_vision_client_factory] = lambda: vision
    yield TestClient(app)
    app.dependency_overrides.clear()
