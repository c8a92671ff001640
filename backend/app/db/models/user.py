# app/db/models/user.py
from pydantic import BaseModel, Field

# 사용자 저장공간 계정 (첫 조회 시 used_bytes=0으로 생성)
class UserAccount(BaseModel):
    id: str
    used_bytes: int = Field(0, ge=0)
