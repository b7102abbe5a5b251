"""전역 예외 정의 및 핸들러

모든 API 에러는 ``{"success": false, "message", "error": {...}}`` 형태로 응답합니다.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """전역 에러 코드"""

    # 공통 에러
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    BAD_REQUEST = "BAD_REQUEST"
    CONFLICT = "CONFLICT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    GATEWAY_TIMEOUT = "GATEWAY_TIMEOUT"

    # 인증 관련
    INVALID_API_KEY = "INVALID_API_KEY"


class BaseAPIException(HTTPException):
    """기본 API 예외 클래스"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        detail: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.detail_info = detail or {}
        super().__init__(status_code=status_code, detail=message)


class BadRequestException(BaseAPIException):
    """400 Bad Request"""

    def __init__(
        self,
        message: str = "잘못된 요청입니다.",
        error_code: str = ErrorCode.BAD_REQUEST,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class UnauthorizedException(BaseAPIException):
    """401 Unauthorized"""

    def __init__(
        self,
        message: str = "인증이 필요합니다.",
        error_code: str = ErrorCode.UNAUTHORIZED,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class ForbiddenException(BaseAPIException):
    """403 Forbidden"""

    def __init__(
        self,
        message: str = "접근 권한이 없습니다.",
        error_code: str = ErrorCode.FORBIDDEN,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class NotFoundException(BaseAPIException):
    """404 Not Found"""

    def __init__(
        self,
        message: str = "리소스를 찾을 수 없습니다.",
        error_code: str = ErrorCode.NOT_FOUND,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class ConflictException(BaseAPIException):
    """409 Conflict"""

    def __init__(
        self,
        message: str = "리소스 충돌이 발생했습니다.",
        error_code: str = ErrorCode.CONFLICT,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class InternalServerException(BaseAPIException):
    """500 Internal Server Error"""

    def __init__(
        self,
        message: str = "서버 내부 오류가 발생했습니다.",
        error_code: str = ErrorCode.INTERNAL_ERROR,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class ServiceUnavailableException(BaseAPIException):
    """503 Service Unavailable"""

    def __init__(
        self,
        message: str = "일시적으로 서비스를 이용할 수 없습니다.",
        error_code: str = ErrorCode.SERVICE_UNAVAILABLE,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class GatewayTimeoutException(BaseAPIException):
    """504 Gateway Timeout"""

    def __init__(
        self,
        message: str = "요청 처리 시간이 초과되었습니다.",
        error_code: str = ErrorCode.GATEWAY_TIMEOUT,
        detail: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            error_code=error_code,
            message=message,
            detail=detail,
        )


# HTTPException 상태 코드 → 에러 코드
_STATUS_ERROR_CODES: Dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    status.HTTP_503_SERVICE_UNAVAILABLE: ErrorCode.SERVICE_UNAVAILABLE,
    status.HTTP_504_GATEWAY_TIMEOUT: ErrorCode.GATEWAY_TIMEOUT,
}


def _error_content(
    code: str, message: str, detail: Optional[Any] = None
) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
    }


async def base_exception_handler(
    request: Request, exc: BaseAPIException
) -> JSONResponse:
    """BaseAPIException 핸들러"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.error_code, exc.message, exc.detail_info),
    )


async def http_exception_handler(
    request: Request, exc: HTTPException
) -> JSONResponse:
    """HTTPException 핸들러"""
    code = _STATUS_ERROR_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(code, str(exc.detail)),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """요청 검증 실패 핸들러 (422)"""
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_content(
            ErrorCode.VALIDATION_ERROR,
            "요청 값이 올바르지 않습니다.",
            {"errors": errors},
        ),
    )


async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """일반 예외 핸들러"""
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path}: {exc}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(
            ErrorCode.INTERNAL_ERROR, "서버 내부 오류가 발생했습니다."
        ),
    )
