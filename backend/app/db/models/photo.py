# app/db/models/photo.py
from __future__ import annotations
from datetime import datetime
from typing import Any, List, Mapping

from pydantic import BaseModel, Field

from app.models.geometry import Polygon, polygon_to_doc

class PhotoRecord(BaseModel):
    # id: Mongo ObjectId 문자열 (저장소가 발급)
    id: str
    owner_id: str
    object_ref: str  # GridFS 파일 id
    polygons: List[Polygon] = Field(default_factory=list)
    created_at: datetime
    size_bytes: int  # 업로드 시점 크기 캐시 (삭제 시 quota 반환에 사용)

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> "PhotoRecord":
        return cls(
            id=str(doc["_id"]),
            owner_id=doc["owner_id"],
            object_ref=doc["object_ref"],
            polygons=doc.get("polygons") or [],
            created_at=doc["created_at"],
            size_bytes=int(doc.get("size_bytes", 0)),
        )

def photo_doc(owner_id: str, object_ref: str, size_bytes: int,
              polygons: List[Polygon], created_at: datetime) -> dict:
    # Mongo 저장 문서 (_id는 insert 시 발급)
    return {
        "owner_id": owner_id,
        "object_ref": object_ref,
        "size_bytes": size_bytes,
        "polygons": [polygon_to_doc(p) for p in polygons],
        "created_at": created_at,
    }
