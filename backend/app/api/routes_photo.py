# app/api/routes_photo.py
# 사진 업로드/블러 영역 검출, 히스토리 목록/삭제, 저장 객체 서빙

from __future__ import annotations
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse, StreamingResponse
from bson import ObjectId

from app.core.deps import (
    get_blob_store,
    get_catalog,
    get_current_user,
    get_vision_client_factory,
)
from app.core.errors import AuthorizationError, BlobNotFound, InputError, ProviderError
from app.core.identity import Authenticated, CurrentUser
from app.db.models.schemas import PhotoOut
from app.db.ports import BlobStore
from app.models.categories import BlurCategory
from app.models.geometry import Polygon
from app.services.blur_areas import detect_regions
from app.services.catalog import PhotoCatalog
from app.services.vision_google import ClientFactory

log = logging.getLogger(__name__)

router = APIRouter(tags=["photo"])

# 업로드 허용 타입
SUPPORTED_TYPES = ["image/jpeg", "image/png"]

def parse_max_photos(value: Optional[str]) -> Optional[int]:
    # 숫자가 아니거나 없으면 무제한(None), 음수는 0
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return max(n, 0)

@router.post("/get-blur-areas", response_model=List[Polygon])
async def get_blur_areas(
    image: Optional[UploadFile] = File(None),
    face_blur: Optional[str] = Form(None, alias="face-blur"),
    plate_blur: Optional[str] = Form(None, alias="plate-blur"),
    logo_blur: Optional[str] = Form(None, alias="logo-blur"),
    user: CurrentUser = Depends(get_current_user),
    blobs: BlobStore = Depends(get_blob_store),
    catalog: PhotoCatalog = Depends(get_catalog),
    client_factory: ClientFactory = Depends(get_vision_client_factory),
):
    """
    이미지 업로드 → 블러 영역 폴리곤 배열 반환.
    로그인 사용자는 quota 안이면 히스토리에 저장, 넘으면 조용히 버린다(객체 삭제).
    비로그인 업로드는 저장하지 않고 객체를 바로 지운다.
    """
    if image is None:
        raise InputError("Please upload an image file.")
    data = await image.read()
    if not data:
        raise InputError("Please upload an image file.")

    if image.content_type not in SUPPORTED_TYPES:
        raise InputError(
            f"Image type <{image.content_type}> not supported. Types supported: {SUPPORTED_TYPES}"
        )

    object_ref = await blobs.put(data, filename=image.filename, content_type=image.content_type)
    try:
        # 저장된 객체에서 다시 읽는다 (범위 읽기로 원본 복원)
        image_bytes = await blobs.get(object_ref)
        categories = BlurCategory.from_form(face_blur, plate_blur, logo_blur)

        try:
            polygons = await run_in_threadpool(detect_regions, image_bytes, categories, client_factory)
        except ProviderError:
            # Vision 장애는 빈 결과로 복구 (업로드 자체는 실패시키지 않음)
            log.exception("Vision 분석 실패, 빈 결과로 진행 (ref=%s)", object_ref)
            polygons = []

        # 비로그인 또는 quota 초과: 실패로 알리지 않고 저장만 하지 않는다
        kept = False
        if isinstance(user, Authenticated):
            size_bytes = await blobs.size(object_ref)
            kept = await catalog.upload(user.id, object_ref, size_bytes, polygons) is not None
    except Exception:
        await blobs.delete(object_ref)
        raise

    # 정리 삭제는 한 번만 시도 (실패하면 그대로 올린다)
    if not kept:
        await blobs.delete(object_ref)

    return polygons

@router.get("/photos", response_model=List[PhotoOut])
async def list_photos(
    max_photos: Optional[str] = Query(None, alias="max-photos"),
    user: CurrentUser = Depends(get_current_user),
    catalog: PhotoCatalog = Depends(get_catalog),
):
    """사용자의 사진 목록 (최신순, 최대 max-photos개)"""
    if not isinstance(user, Authenticated):
        return RedirectResponse("/", status_code=302)

    records = await catalog.list_photos(user.id, parse_max_photos(max_photos))
    return [PhotoOut.from_record(r) for r in records]

@router.delete("/photos")
async def delete_photo(
    photo_id: Optional[str] = Query(None, alias="photo-id"),
    user: CurrentUser = Depends(get_current_user),
    catalog: PhotoCatalog = Depends(get_catalog),
):
    """본인 사진 삭제 (quota 반환 + 객체 삭제 + 기록 삭제)"""
    if not isinstance(user, Authenticated):
        raise AuthorizationError("You must be logged in to delete photos!")

    if not photo_id or not ObjectId.is_valid(photo_id):
        raise InputError(f"Parameter photo-id must be a valid photo id. Received: {photo_id}")

    # 남의 사진/없는 사진 구분 없이 같은 응답
    if not await catalog.delete(user.id, photo_id):
        raise AuthorizationError(f"The current user has no photo with id: {photo_id}")

    return {"ok": True, "id": photo_id}

@router.get("/photo")
async def get_photo(
    blob_key: Optional[str] = Query(None, alias="blob-key"),
    blobs: BlobStore = Depends(get_blob_store),
):
    """저장 객체 그대로 서빙"""
    if not blob_key:
        raise InputError("Please provide the blob-key parameter.")

    try:
        content_type = await blobs.content_type(blob_key)
        chunks = await blobs.open_stream(blob_key)
    except BlobNotFound:
        raise HTTPException(status_code=404, detail="사진을 찾을 수 없습니다")

    return StreamingResponse(chunks, media_type=content_type or "application/octet-stream")
