# app/services/blur_areas.py
# 블러 영역 집계 — 카테고리 플래그 → Vision 배치 요청 1회 → 픽셀 좌표 폴리곤 리스트
# 병합 순서: 얼굴 → 번호판 → 로고 (각각 Vision 반환 순서 유지, 정렬/중복제거 없음)
# 블로킹 호출이므로 라우터에서는 스레드풀로 돌린다

from __future__ import annotations
from io import BytesIO
from typing import Iterable, List, Optional, Tuple
import logging
import math

from PIL import Image, UnidentifiedImageError

from app.core.errors import InputError
from app.models.categories import BlurCategory
from app.models.geometry import Point, Polygon
from app.services.vision_google import (
    PLATE_LABEL,
    ClientFactory,
    annotate,
    build_request,
    open_client,
)

logger = logging.getLogger(__name__)


def image_size(image_bytes: bytes) -> Tuple[int, int]:
    """(width, height). 헤더만 읽는다"""
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise InputError(f"이미지를 해석할 수 없습니다: {e}") from e


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def denormalize(vertices: Iterable, width: int, height: int) -> Polygon:
    # 객체 검출 좌표는 [0, 1] 정규화 값 → 실제 픽셀로 환산
    return [Point(x=_round_half_up(v.x * width), y=_round_half_up(v.y * height)) for v in vertices]


def _points(vertices: Iterable) -> Polygon:
    return [Point(x=v.x, y=v.y) for v in vertices]


def collect_polygons(
    responses: Iterable,
    categories: BlurCategory,
    size: Optional[Tuple[int, int]] = None,
) -> List[Polygon]:
    """Vision 응답들을 하나의 폴리곤 리스트로 병합. 오류 응답은 로그만 남기고 건너뛴다"""
    polygons: List[Polygon] = []
    for res in responses:
        if res.error.message:
            logger.warning("Vision 이미지 오류, 건너뜀: %s", res.error.message)
            continue

        if BlurCategory.FACE in categories:
            for face in res.face_annotations:
                polygons.append(_points(face.fd_bounding_poly.vertices))

        if BlurCategory.PLATE in categories and size is not None:
            width, height = size
            for obj in res.localized_object_annotations:
                if obj.name == PLATE_LABEL:
                    polygons.append(denormalize(obj.bounding_poly.normalized_vertices, width, height))

        if BlurCategory.LOGO in categories:
            for logo in res.logo_annotations:
                polygons.append(_points(logo.bounding_poly.vertices))
    return polygons


def detect_regions(
    image_bytes: bytes,
    categories: BlurCategory,
    client_factory: ClientFactory = open_client,
) -> List[Polygon]:
    """
    이미지에서 블러할 영역(폴리곤) 검출.
    - categories가 비어 있으면 Vision을 호출하지 않고 [] 반환
    - 요청 실패는 ProviderError
    """
    if not categories:
        return []

    # 번호판 좌표 환산에 실제 크기가 필요. 요청 전에 디코딩해 실패를 빨리 낸다
    size = image_size(image_bytes) if BlurCategory.PLATE in categories else None

    request = build_request(image_bytes, categories)
    with client_factory() as client:
        responses = annotate(client, [request])

    polygons = collect_polygons(responses, categories, size)
    logger.info("blur areas detected: %d (categories=%s)", len(polygons), categories)
    return polygons
