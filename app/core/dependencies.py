"""공통 의존성 함수 정의

이 모듈은 FastAPI 엔드포인트에서 사용되는 공통 의존성 함수들을 정의합니다.
사용자 인증은 블로그 게이트웨이가 담당하며, 인증된 사용자 ID와 세션 ID를
각각 ``X-User-Id``, ``X-Session-Id`` 헤더로 전달합니다.
"""

from typing import Optional

from fastapi import Header

from app.core.config import settings
from app.core.exceptions import UnauthorizedException


async def verify_internal_api_key(
    x_internal_api_key: str = Header(..., alias="X-Internal-Api-Key")
) -> None:
    """내부 API Key 검증 (블로그 게이트웨이 통신용)

    Args:
        x_internal_api_key: 요청 헤더의 X-Internal-Api-Key 값

    Raises:
        UnauthorizedException: API Key가 유효하지 않은 경우

    Example:
        @router.get("/recommend", dependencies=[Depends(verify_internal_api_key)])
        async def recommend():
            ...
    """
    if x_internal_api_key != settings.internal_api_key:
        raise UnauthorizedException(
            message="유효하지 않은 API 키입니다.",
            error_code="INVALID_API_KEY",
        )


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")
) -> Optional[str]:
    """게이트웨이가 전달한 사용자 ID (없으면 익명)"""
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


async def get_session_id(
    x_session_id: Optional[str] = Header(default=None, alias="X-Session-Id")
) -> Optional[str]:
    """게이트웨이가 전달한 세션 ID"""
    if x_session_id is None:
        return None
    x_session_id = x_session_id.strip()
    return x_session_id or None
