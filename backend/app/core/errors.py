# app/core/errors.py
# 서비스 공통 예외. 라우터 예외 핸들러에서 HTTP 상태로 매핑된다
# InputError → 400, AuthorizationError → 403, StoreError → 500 (그대로 전파)


class InputError(Exception):
    """업로드 누락/형식 오류, 잘못된 숫자 파라미터, 지원하지 않는 타입"""
    pass


class AuthorizationError(Exception):
    """로그아웃 상태 또는 남의 사진 삭제 시도. 사진 존재 여부는 노출하지 않는다"""
    pass


class ProviderError(Exception):
    """Vision 호출 자체 실패. 호출 측에서 빈 검출 결과로 복구"""
    pass


class StoreError(Exception):
    """Mongo/GridFS 사용 불가"""
    pass


class BlobNotFound(StoreError):
    pass
