# app/db/ports.py
# 코어 서비스가 의존하는 저장소 인터페이스
# 구현: Mongo(repositories.py), GridFS(blobstore.py), 테스트는 인메모리 가짜

from __future__ import annotations
from datetime import datetime
from typing import AsyncIterator, List, Optional, Protocol

from app.db.models.photo import PhotoRecord
from app.db.models.user import UserAccount
from app.models.geometry import Polygon


class AccountStore(Protocol):
    async def get_or_create(self, user_id: str) -> UserAccount: ...

    # used_bytes + delta <= limit 일 때만 원자적으로 증가. 성공 여부 반환
    async def increment_within(self, user_id: str, delta: int, limit: int) -> bool: ...

    # used_bytes = max(0, used_bytes - delta) 원자적 갱신
    async def decrement_clamped(self, user_id: str, delta: int) -> None: ...


class PhotoStore(Protocol):
    async def insert(
        self,
        owner_id: str,
        object_ref: str,
        size_bytes: int,
        polygons: List[Polygon],
        created_at: datetime,
    ) -> PhotoRecord: ...

    async def find_by_owner(self, owner_id: str, limit: Optional[int]) -> List[PhotoRecord]: ...

    # 본인 사진을 원자적으로 삭제 선점. 없거나 남의 것이거나 이미 선점됐으면 None
    async def claim_owned(self, owner_id: str, photo_id: str) -> Optional[PhotoRecord]: ...

    async def remove(self, photo_id: str) -> bool: ...


class BlobStore(Protocol):
    async def put(self, data: bytes, filename: Optional[str] = None,
                  content_type: Optional[str] = None) -> str: ...

    async def get(self, ref: str) -> bytes: ...

    async def size(self, ref: str) -> int: ...

    async def content_type(self, ref: str) -> Optional[str]: ...

    async def open_stream(self, ref: str) -> AsyncIterator[bytes]: ...

    async def delete(self, ref: str) -> None: ...
