# app/services/vision_google.py
# Google Cloud Vision API 어댑터
# - 요청한 카테고리만 feature로 담은 단일 배치 요청 생성
# - 클라이언트는 호출마다 열고 with 블록으로 반드시 닫는다

from __future__ import annotations
from typing import Callable, ContextManager, List, Sequence

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import vision

from app.core.errors import ProviderError
from app.models.categories import BlurCategory


# 번호판은 일반 객체 검출 결과 중 이 라벨만 사용
PLATE_LABEL = "License plate"

# 카테고리 → Vision feature 타입 (응답 병합 순서와 같음)
FEATURE_TYPES = (
    (BlurCategory.FACE, vision.Feature.Type.FACE_DETECTION),
    (BlurCategory.PLATE, vision.Feature.Type.OBJECT_LOCALIZATION),
    (BlurCategory.LOGO, vision.Feature.Type.LOGO_DETECTION),
)

# 테스트에서 가짜 클라이언트로 바꿔 끼우는 지점
ClientFactory = Callable[[], ContextManager]


def open_client() -> vision.ImageAnnotatorClient:
    """Google Cloud Vision 클라이언트 생성 (인증 정보 없으면 ProviderError)"""
    try:
        return vision.ImageAnnotatorClient()
    except auth_exceptions.DefaultCredentialsError as e:
        raise ProviderError(f"Google Cloud Vision 클라이언트 생성 실패: {e}") from e


def build_request(image_bytes: bytes, categories: BlurCategory) -> vision.AnnotateImageRequest:
    # max_results=0 → 결과 개수 제한 없음
    features = [
        vision.Feature(type_=feature_type, max_results=0)
        for category, feature_type in FEATURE_TYPES
        if category in categories
    ]
    return vision.AnnotateImageRequest(
        image=vision.Image(content=image_bytes),
        features=features,
    )


def annotate(client, requests: List[vision.AnnotateImageRequest]) -> Sequence:
    """batch_annotate_images 호출. 요청 자체 실패만 ProviderError로 올린다
    (이미지별 오류는 응답 안의 error 필드로 온다)"""
    try:
        response = client.batch_annotate_images(requests=requests)
    except google_exceptions.GoogleAPIError as e:
        raise ProviderError(f"Vision 요청 실패: {e}") from e
    return list(response.responses)
