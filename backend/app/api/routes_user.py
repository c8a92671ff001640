# app/api/routes_user.py
# 현재 사용자 정보 / 서버 시간

from __future__ import annotations
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.deps import get_current_user, get_ledger
from app.core.identity import Authenticated, CurrentUser
from app.db.models.schemas import UserOut
from app.services.quota import STORAGE_LIMIT, QuotaLedger

router = APIRouter(tags=["user"])

@router.get("/user", response_model=UserOut, response_model_exclude_none=True)
async def get_user(
    user: CurrentUser = Depends(get_current_user),
    ledger: QuotaLedger = Depends(get_ledger),
):
    """로그인 여부 + (로그인 시) 사용량/한도/로그아웃 URL"""
    if not isinstance(user, Authenticated):
        return UserOut(loggedIn=False, loginURL=user.login_url)

    return UserOut(
        loggedIn=True,
        id=user.id,
        usedSpace=await ledger.used_bytes(user.id),
        USER_STORAGE_LIMIT=STORAGE_LIMIT,
        logoutURL=user.logout_url,
    )

@router.get("/server-time")
async def server_time() -> str:
    return datetime.now(timezone.utc).isoformat()
