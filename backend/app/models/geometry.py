# app/models/geometry.py
# 블러 영역 좌표 모델 (순수 값 타입)
# - Point: 픽셀 정수 좌표
# - Polygon: 검출기가 돌려준 순서 그대로의 Point 리스트 (회전 방향 보장 없음)

from __future__ import annotations
from typing import List

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int


# 빈 폴리곤도 유효 ("영역 없음")
Polygon = List[Point]


def polygon_to_doc(polygon: Polygon) -> List[dict]:
    # Mongo 저장/JSON 응답 공통 형태: [{"x":..,"y":..}, ...]
    return [p.model_dump() for p in polygon]
