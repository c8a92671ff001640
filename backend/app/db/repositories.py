# app/db/repositories.py
# Mongo(motor) 기반 계정/사진 저장소
# - 사용자별 quota 갱신은 문서 단위 원자 연산(조건부 $inc, 파이프라인 $set)으로 직렬화
# - 전역 락 없음: 서로 다른 사용자는 서로 간섭하지 않는다
# - Mongo 장애는 StoreError로 감싼다 (blobstore.py와 같은 규칙)

from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.errors import StoreError
from app.db.models.photo import PhotoRecord, photo_doc
from app.db.models.user import UserAccount
from app.models.geometry import Polygon

# 삭제 진행 중 표시. 먼저 선점한 요청만 quota 반환/삭제를 진행한다
DELETING = "deleting"


class MongoAccountStore:
    def __init__(self, users: AsyncIOMotorCollection):
        self.users = users

    async def get_or_create(self, user_id: str) -> UserAccount:
        # 조건부 insert(upsert + $setOnInsert): 읽고 쓰는 사이 경쟁 없음
        try:
            try:
                doc = await self.users.find_one_and_update(
                    {"id": user_id},
                    {"$setOnInsert": {"id": user_id, "used_bytes": 0}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                # 동시 upsert 경합에서 진 쪽: 이미 만들어진 문서를 읽는다
                doc = await self.users.find_one({"id": user_id})
        except PyMongoError as e:
            raise StoreError(f"account load failed: {e}") from e
        return UserAccount(id=doc["id"], used_bytes=int(doc.get("used_bytes", 0)))

    async def increment_within(self, user_id: str, delta: int, limit: int) -> bool:
        # 한도 여유가 있는 문서만 매칭 → 매칭 실패면 변경 없음
        try:
            result = await self.users.update_one(
                {"id": user_id, "used_bytes": {"$lte": limit - delta}},
                {"$inc": {"used_bytes": delta}},
            )
        except PyMongoError as e:
            raise StoreError(f"quota admit failed: {e}") from e
        return result.matched_count == 1

    async def decrement_clamped(self, user_id: str, delta: int) -> None:
        try:
            await self.users.update_one(
                {"id": user_id},
                [{"$set": {"used_bytes": {"$max": [0, {"$subtract": ["$used_bytes", delta]}]}}}],
            )
        except PyMongoError as e:
            raise StoreError(f"quota release failed: {e}") from e


class MongoPhotoStore:
    def __init__(self, photos: AsyncIOMotorCollection):
        self.photos = photos

    async def insert(
        self,
        owner_id: str,
        object_ref: str,
        size_bytes: int,
        polygons: List[Polygon],
        created_at: datetime,
    ) -> PhotoRecord:
        doc = photo_doc(owner_id, object_ref, size_bytes, polygons, created_at)
        try:
            result = await self.photos.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(f"photo insert failed: {e}") from e
        doc["_id"] = result.inserted_id
        return PhotoRecord.from_doc(doc)

    async def find_by_owner(self, owner_id: str, limit: Optional[int]) -> List[PhotoRecord]:
        # Mongo limit(0)은 "무제한"이라 0건 요청은 여기서 끊는다
        if limit is not None and limit <= 0:
            return []
        cursor = self.photos.find({"owner_id": owner_id}).sort("created_at", -1)
        if limit is not None:
            cursor = cursor.limit(limit)
        try:
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"photo list failed: {e}") from e
        return [PhotoRecord.from_doc(d) for d in docs]

    async def claim_owned(self, owner_id: str, photo_id: str) -> Optional[PhotoRecord]:
        # id만으로 찾지 않는다: id AND owner_id 복합 조건 (타인 사진 삭제 방지)
        # 조회와 삭제 표시를 한 번에: 동시 삭제 요청 중 하나만 문서를 받는다
        if not ObjectId.is_valid(photo_id):
            return None
        try:
            doc = await self.photos.find_one_and_update(
                {"_id": ObjectId(photo_id), "owner_id": owner_id, DELETING: {"$ne": True}},
                {"$set": {DELETING: True}},
            )
        except PyMongoError as e:
            raise StoreError(f"photo lookup failed: {e}") from e
        return PhotoRecord.from_doc(doc) if doc else None

    async def remove(self, photo_id: str) -> bool:
        if not ObjectId.is_valid(photo_id):
            return False
        try:
            result = await self.photos.delete_one({"_id": ObjectId(photo_id)})
        except PyMongoError as e:
            raise StoreError(f"photo remove failed: {e}") from e
        return result.deleted_count == 1
