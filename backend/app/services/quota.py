# app/services/quota.py
# 사용자별 저장공간 장부 (quota ledger)
# - 모든 연산 전에 계정을 get-or-create (첫 조회 시 0바이트)
# - used_bytes는 admit/release로만 바뀐다. 0 <= used_bytes <= STORAGE_LIMIT

from __future__ import annotations
import logging

from app.db.ports import AccountStore

log = logging.getLogger(__name__)

# 사용자 1명이 사진 저장에 쓸 수 있는 바이트 (50 MiB, 사용자별 설정 없음)
STORAGE_LIMIT = 50 * 1024 * 1024


class QuotaLedger:
    limit = STORAGE_LIMIT

    def __init__(self, accounts: AccountStore):
        self.accounts = accounts

    async def admit(self, user_id: str, delta: int) -> bool:
        """delta만큼 더 써도 한도 이내면 반영하고 True, 넘으면 변경 없이 False"""
        if delta < 0:
            raise ValueError(f"admit delta must be >= 0, got {delta}")
        await self.accounts.get_or_create(user_id)
        admitted = await self.accounts.increment_within(user_id, delta, self.limit)
        if not admitted:
            log.info("quota exceeded: user=%s delta=%d", user_id, delta)
        return admitted

    async def release(self, user_id: str, delta: int) -> None:
        # 음수로 내려가지 않게 0에서 멈춘다
        if delta < 0:
            raise ValueError(f"release delta must be >= 0, got {delta}")
        await self.accounts.get_or_create(user_id)
        await self.accounts.decrement_clamped(user_id, delta)

    async def used_bytes(self, user_id: str) -> int:
        account = await self.accounts.get_or_create(user_id)
        return account.used_bytes
