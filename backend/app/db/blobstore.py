# app/db/blobstore.py
# GridFS 기반 바이너리 저장소
# - 읽기는 BLOB_FETCH_SIZE 단위 범위 읽기를 이어붙여 원본 바이트를 그대로 복원
# - 없는 객체는 BlobNotFound, 그 외 Mongo 장애는 StoreError로 감싼다

from __future__ import annotations
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket
from pymongo.errors import PyMongoError

from app.core.errors import BlobNotFound, StoreError

log = logging.getLogger(__name__)

# 업로드 원본 content type 보관 위치 (GridFS metadata)
CONTENT_TYPE_KEY = "contentType"


async def read_in_ranges(fetch: Callable[[int, int], Awaitable[bytes]], fetch_size: int) -> bytes:
    """fetch(start, size)를 fetch_size 단위로 반복 호출해 전체 바이트를 모은다.
    요청보다 적게 읽히면 끝."""
    if fetch_size <= 0:
        raise ValueError("fetch_size must be positive")
    parts: List[bytes] = []
    start = 0
    while True:
        chunk = await fetch(start, fetch_size)
        parts.append(chunk)
        start += len(chunk)
        if len(chunk) < fetch_size:
            break
    return b"".join(parts)


def _oid(ref: str) -> ObjectId:
    try:
        return ObjectId(ref)
    except (InvalidId, TypeError):
        raise BlobNotFound(f"invalid blob ref: {ref!r}")


class GridFSBlobStore:
    def __init__(self, db: AsyncIOMotorDatabase, bucket_name: str, fetch_size: int):
        self.bucket = AsyncIOMotorGridFSBucket(db, bucket_name=bucket_name)
        self.fetch_size = fetch_size

    async def _open(self, ref: str):
        try:
            return await self.bucket.open_download_stream(_oid(ref))
        except NoFile:
            raise BlobNotFound(f"no blob {ref}")
        except PyMongoError as e:
            raise StoreError(f"blob open failed: {e}") from e

    async def put(self, data: bytes, filename: Optional[str] = None,
                  content_type: Optional[str] = None) -> str:
        try:
            oid = await self.bucket.upload_from_stream(
                filename or "upload",
                data,
                metadata={CONTENT_TYPE_KEY: content_type},
            )
        except PyMongoError as e:
            raise StoreError(f"blob upload failed: {e}") from e
        log.debug("stored blob %s (%d bytes)", oid, len(data))
        return str(oid)

    async def get(self, ref: str) -> bytes:
        grid_out = await self._open(ref)

        async def fetch(start: int, size: int) -> bytes:
            grid_out.seek(start)
            return await grid_out.read(size)

        try:
            return await read_in_ranges(fetch, self.fetch_size)
        except PyMongoError as e:
            raise StoreError(f"blob read failed: {e}") from e

    async def size(self, ref: str) -> int:
        grid_out = await self._open(ref)
        return int(grid_out.length)

    async def content_type(self, ref: str) -> Optional[str]:
        grid_out = await self._open(ref)
        return (grid_out.metadata or {}).get(CONTENT_TYPE_KEY)

    async def open_stream(self, ref: str) -> AsyncIterator[bytes]:
        # 서빙용: 첫 open에서 BlobNotFound가 나도록 제너레이터 밖에서 연다
        grid_out = await self._open(ref)

        async def chunks() -> AsyncIterator[bytes]:
            while True:
                chunk = await grid_out.readchunk()
                if not chunk:
                    break
                yield chunk

        return chunks()

    async def delete(self, ref: str) -> None:
        try:
            await self.bucket.delete(_oid(ref))
        except (NoFile, BlobNotFound):
            # 이미 지워진 객체, 재시도 안전
            log.info("blob %s already gone", ref)
        except PyMongoError as e:
            raise StoreError(f"blob delete failed: {e}") from e
