# app/core/identity.py
# 현재 사용자 식별: 인증 자체는 상위 프록시 담당, 여기서는 헤더만 읽는다
# 로그인/비로그인은 상속이 아니라 태그드 유니온으로 구분 (라우터에서 isinstance 분기)

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from fastapi import Request


@dataclass(frozen=True)
class Anonymous:
    login_url: str


@dataclass(frozen=True)
class Authenticated:
    id: str
    logout_url: str


CurrentUser = Union[Anonymous, Authenticated]


class HeaderIdentityProvider:
    """인증 프록시가 채워주는 불투명 사용자 id 헤더 기반 식별"""

    def __init__(self, header: str, login_url: str, logout_url: str):
        self.header = header
        self.login_url = login_url
        self.logout_url = logout_url

    def current_user(self, request: Request) -> CurrentUser:
        user_id = (request.headers.get(self.header) or "").strip()
        if not user_id:
            return Anonymous(login_url=self.login_url)
        return Authenticated(id=user_id, logout_url=self.logout_url)
