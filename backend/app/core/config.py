# 환경변수 로딩 (.env)
from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"  # 필요 시 prod/staging로 분리
    MONGO_DB: str = "blurphotos"

    # GridFS 버킷 / 범위 읽기 단위(바이트)
    BLOB_BUCKET: str = "blobs"
    BLOB_FETCH_SIZE: int = 1015808

    # 상위 인증 프록시가 넘겨주는 사용자 id 헤더 + 로그인/로그아웃 리다이렉트
    USER_ID_HEADER: str = "X-User-Id"
    LOGIN_URL: str = "/login?continue=/"
    LOGOUT_URL: str = "/logout?continue=/"

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
