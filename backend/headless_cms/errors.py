"""API 오류 분류. 서비스 레이어가 직접 raise 하고, 앱의 예외 핸들러가 응답 envelope 로 변환합니다."""

from fastapi import HTTPException, status


class CMSError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "서버 내부 오류가 발생했습니다."

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class NotFoundError(CMSError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "대상을 찾을 수 없습니다."


class ValidationError(CMSError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "잘못된 요청입니다."


class ForbiddenError(CMSError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "허용되지 않는 작업입니다."


class ConflictError(CMSError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "요청이 현재 상태와 충돌합니다."


class InternalError(CMSError):
    pass


class UnauthorizedError(CMSError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "인증이 필요합니다."
