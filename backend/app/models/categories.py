# app/models/categories.py
# 블러 대상 카테고리 (얼굴/번호판/로고) 플래그 타입

from __future__ import annotations
from enum import Flag, auto
from typing import Optional

# 프론트 체크박스 값
FORM_ON = "on"


class BlurCategory(Flag):
    FACE = auto()
    PLATE = auto()
    LOGO = auto()

    @classmethod
    def none(cls) -> "BlurCategory":
        return cls(0)

    @classmethod
    def from_form(
        cls,
        face_blur: Optional[str] = None,
        plate_blur: Optional[str] = None,
        logo_blur: Optional[str] = None,
    ) -> "BlurCategory":
        """폼 체크박스(face-blur/plate-blur/logo-blur == "on")를 플래그 조합으로 변환"""
        mask = cls.none()
        for flag, value in (
            (cls.FACE, face_blur),
            (cls.PLATE, plate_blur),
            (cls.LOGO, logo_blur),
        ):
            if value == FORM_ON:
                mask |= flag
        return mask
