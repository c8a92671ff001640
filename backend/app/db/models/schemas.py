# app/db/models/schemas.py
# 프론트 응답 스키마
# PhotoOut: 히스토리 카드 (단일 표현만 사용: blurRectangles는 JSON 배열)
# UserOut: 로그인 상태/사용량
from __future__ import annotations
from typing import List, Optional
from urllib.parse import quote
from pydantic import BaseModel
from datetime import datetime

from app.db.models.photo import PhotoRecord
from app.models.geometry import Polygon

# 저장 객체 서빙 경로
PHOTO_URL = "/photo?blob-key={}"

class PhotoOut(BaseModel):
    # 프론트 필드명/타입과 완전 일치
    id: str
    userId: str
    url: str
    blurRectangles: List[Polygon]
    dateCreated: datetime

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoOut":
        return cls(
            id=record.id,
            userId=record.owner_id,
            url=PHOTO_URL.format(quote(record.object_ref)),
            blurRectangles=record.polygons,
            dateCreated=record.created_at,
        )

class UserOut(BaseModel):
    loggedIn: bool
    loginURL: Optional[str] = None
    id: Optional[str] = None
    usedSpace: Optional[int] = None
    USER_STORAGE_LIMIT: Optional[int] = None
    logoutURL: Optional[str] = None
