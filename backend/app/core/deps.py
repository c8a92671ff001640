# 공용 의존성. 코어 서비스는 생성자로 협력자를 받고, 조립은 여기서만 한다
from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.core.identity import CurrentUser, HeaderIdentityProvider
from app.db.blobstore import GridFSBlobStore
from app.db.indexes import PHOTOS, USERS
from app.db.init import get_db
from app.db.repositories import MongoAccountStore, MongoPhotoStore
from app.services.catalog import PhotoCatalog
from app.services.quota import QuotaLedger
from app.services.vision_google import ClientFactory, open_client

def get_identity_provider() -> HeaderIdentityProvider:
    return HeaderIdentityProvider(settings.USER_ID_HEADER, settings.LOGIN_URL, settings.LOGOUT_URL)

def get_current_user(
    request: Request,
    identity: HeaderIdentityProvider = Depends(get_identity_provider),
) -> CurrentUser:
    return identity.current_user(request)

def get_blob_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> GridFSBlobStore:
    return GridFSBlobStore(db, settings.BLOB_BUCKET, settings.BLOB_FETCH_SIZE)

def get_ledger(db: AsyncIOMotorDatabase = Depends(get_db)) -> QuotaLedger:
    return QuotaLedger(MongoAccountStore(db[USERS]))

def get_catalog(
    db: AsyncIOMotorDatabase = Depends(get_db),
    ledger: QuotaLedger = Depends(get_ledger),
    blobs: GridFSBlobStore = Depends(get_blob_store),
) -> PhotoCatalog:
    return PhotoCatalog(MongoPhotoStore(db[PHOTOS]), ledger, blobs)

def get_vision_client_factory() -> ClientFactory:
    return open_client
