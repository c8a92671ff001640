# 컬렉션 인덱스 생성
# 앱 스타트업에서 한 번 ensure_indexes()를 await로 호출한다.

from app.db.init import get_db

USERS = "users"
PHOTOS = "photos"

async def ensure_indexes():
    db = get_db()

    # 사용자 계정: get-or-create upsert가 중복 문서를 만들지 않도록 unique
    await db[USERS].create_index("id", unique=True)

    # 사진 목록: 사용자별 최신순 조회
    await db[PHOTOS].create_index([("owner_id", 1), ("created_at", -1)])
