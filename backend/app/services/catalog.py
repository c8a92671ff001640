# app/services/catalog.py
# 사진 카탈로그 — (사용자, 사진 id) → 저장 객체/폴리곤/생성 시각
# quota 장부, 바이너리 저장소와 함께 업로드/목록/삭제 일관성을 맞춘다

from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, List, Optional
import logging

from app.core.errors import StoreError
from app.db.models.photo import PhotoRecord
from app.db.ports import BlobStore, PhotoStore
from app.models.geometry import Polygon
from app.services.quota import QuotaLedger

log = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhotoCatalog:
    def __init__(
        self,
        photos: PhotoStore,
        ledger: QuotaLedger,
        blobs: BlobStore,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.photos = photos
        self.ledger = ledger
        self.blobs = blobs
        self.clock = clock

    async def upload(
        self,
        owner_id: str,
        object_ref: str,
        size_bytes: int,
        polygons: List[Polygon],
    ) -> Optional[PhotoRecord]:
        """
        quota 승인 후 사진 기록 저장. 한도 초과면 None(거절).
        거절 시 object_ref 삭제는 호출 측 책임 (카탈로그는 객체 수명을 갖지 않는다).
        """
        if not await self.ledger.admit(owner_id, size_bytes):
            return None

        try:
            record = await self.photos.insert(owner_id, object_ref, size_bytes, polygons, self.clock())
        except Exception:
            # 기록이 안 남았으면 승인한 바이트도 돌려놓는다
            log.exception("photo insert failed, releasing %d bytes for %s", size_bytes, owner_id)
            await self.ledger.release(owner_id, size_bytes)
            raise

        log.info("photo stored: id=%s owner=%s size=%d polygons=%d",
                 record.id, owner_id, size_bytes, len(polygons))
        return record

    async def list_photos(self, owner_id: str, max_results: Optional[int] = None) -> List[PhotoRecord]:
        # 최신순. 음수는 0, None은 무제한
        if max_results is not None and max_results < 0:
            max_results = 0
        return await self.photos.find_by_owner(owner_id, max_results)

    async def delete(self, owner_id: str, photo_id: str) -> bool:
        """
        본인 사진만 삭제. 없거나 남의 사진이면 False.
        순서: 기록 선점 → quota 반환 → 객체 삭제 → 기록 삭제.
        선점은 원자적이라 같은 사진을 동시에 지워도 quota는 한 번만 반환된다.
        객체 삭제가 실패해도 기록은 지운다 (고아 객체 < 닿을 수 없는 기록).
        """
        record = await self.photos.claim_owned(owner_id, photo_id)
        if record is None:
            return False

        await self.ledger.release(owner_id, record.size_bytes)

        try:
            await self.blobs.delete(record.object_ref)
        except StoreError:
            log.exception("blob delete failed for photo %s (ref=%s)", record.id, record.object_ref)

        await self.photos.remove(record.id)
        log.info("photo deleted: id=%s owner=%s", record.id, owner_id)
        return True
