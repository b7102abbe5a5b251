"""Recommendation 도메인 예외 정의"""

from enum import Enum
from typing import Any, Optional

from app.core.exceptions import (
    BadRequestException,
    GatewayTimeoutException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
)


class RecommendationErrorCode(str, Enum):
    """추천 도메인 에러 코드"""

    INVALID_COUNT = "INVALID_COUNT"
    INVALID_OFFSET = "INVALID_OFFSET"
    INVALID_ACTION_TYPE = "INVALID_ACTION_TYPE"
    TARGET_ID_REQUIRED = "TARGET_ID_REQUIRED"
    INVALID_SCENARIOS = "INVALID_SCENARIOS"
    BATCH_TOO_LARGE = "BATCH_TOO_LARGE"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    RECOMMENDATION_TIMEOUT = "RECOMMENDATION_TIMEOUT"


class InvalidCountException(BadRequestException):
    """요청 개수가 허용 범위를 벗어난 경우"""

    def __init__(self, count: int, min_count: int, max_count: int):
        super().__init__(
            message=f"count는 {min_count}~{max_count} 사이여야 합니다.",
            error_code=RecommendationErrorCode.INVALID_COUNT,
            detail={"count": count, "min": min_count, "max": max_count},
        )


class InvalidOffsetException(BadRequestException):
    """offset이 음수인 경우"""

    def __init__(self, offset: int):
        super().__init__(
            message="offset은 0 이상이어야 합니다.",
            error_code=RecommendationErrorCode.INVALID_OFFSET,
            detail={"offset": offset},
        )


class InvalidActionTypeException(BadRequestException):
    """지원하지 않는 행동 유형"""

    def __init__(self, action_type: Any, allowed: Optional[list[str]] = None):
        detail: dict[str, Any] = {"action_type": action_type}
        if allowed:
            detail["allowed"] = allowed
        super().__init__(
            message="지원하지 않는 행동 유형입니다.",
            error_code=RecommendationErrorCode.INVALID_ACTION_TYPE,
            detail=detail,
        )


class TargetIdRequiredException(BadRequestException):
    """target_id 누락"""

    def __init__(self):
        super().__init__(
            message="target_id는 필수입니다.",
            error_code=RecommendationErrorCode.TARGET_ID_REQUIRED,
        )


class InvalidScenariosException(BadRequestException):
    """배치 시나리오 구성이 잘못된 경우"""

    def __init__(self, reason: str, detail: Optional[dict[str, Any]] = None):
        super().__init__(
            message=reason,
            error_code=RecommendationErrorCode.INVALID_SCENARIOS,
            detail=detail,
        )


class BatchTooLargeException(BadRequestException):
    """배치 크기 초과"""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            message=f"한 번에 최대 {max_size}개까지 처리할 수 있습니다.",
            error_code=RecommendationErrorCode.BATCH_TOO_LARGE,
            detail={"size": size, "max": max_size},
        )


class SeedContentNotFoundException(NotFoundException):
    """기준 콘텐츠를 찾을 수 없는 경우"""

    def __init__(self, content_id: str):
        super().__init__(
            message="기준 콘텐츠를 찾을 수 없습니다.",
            error_code=RecommendationErrorCode.CONTENT_NOT_FOUND,
            detail={"content_id": content_id},
        )


class AuthRequiredException(UnauthorizedException):
    """로그인이 필요한 작업"""

    def __init__(self):
        super().__init__(
            message="로그인이 필요합니다.",
            error_code=RecommendationErrorCode.AUTH_REQUIRED,
        )


class UpstreamException(ServiceUnavailableException):
    """이벤트 저장소 / 콘텐츠 저장소 장애"""

    def __init__(self, operation: str):
        super().__init__(
            message="추천 데이터 저장소를 사용할 수 없습니다.",
            error_code=RecommendationErrorCode.UPSTREAM_UNAVAILABLE,
            detail={"operation": operation},
        )


class RecommendationTimeoutException(GatewayTimeoutException):
    """요청 처리 시간 초과"""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message="추천 처리 시간이 초과되었습니다.",
            error_code=RecommendationErrorCode.RECOMMENDATION_TIMEOUT,
            detail={"timeout_seconds": timeout_seconds},
        )
