"""Recommendation 도메인 모듈

블로그 글 추천을 위한 도메인입니다. 사용자 행동을 기록하고,
행동 이력으로 관심사 프로필을 만들어 콘텐츠 기반 추천을 제공합니다.

구조:
    - types.py: 도메인 타입 (UserAction, ContentFeatures, UserProfile, etc.)
    - weights.py: 점수 가중치 설정 (SCORING_ 환경변수)
    - ports.py: 저장소 인터페이스 (EventStore, ContentFeatureRepository,
      ProfileStore)
    - models.py: SQLAlchemy 모델 정의 (Post, UserActionRecord,
      UserProfileRecord)
    - repository.py: PostgreSQL 저장소 구현
    - profile_builder.py: 행동 이력 → 사용자 프로필
    - scorer.py: 후보 점수 계산
    - ranking.py: 정렬, 다양성 보정, 페이지 자르기
    - engine.py: 추천 파이프라인 (추천, 유사 콘텐츠, 배치)
    - recorder.py: 행동 기록
    - service.py: 프로필 조회/재구성/삭제, 행동 이력 조회
    - router.py: API 엔드포인트 (API Key 인증 포함)
    - exceptions.py: 도메인 예외
"""

from app.domains.recommendation.engine import RecommendationEngine
from app.domains.recommendation.exceptions import (
    AuthRequiredException,
    InvalidActionTypeException,
    InvalidCountException,
    RecommendationErrorCode,
    SeedContentNotFoundException,
)
from app.domains.recommendation.models import Post, UserActionRecord, UserProfileRecord
from app.domains.recommendation.recorder import ActionRecorder
from app.domains.recommendation.router import router
from app.domains.recommendation.service import ProfileService
from app.domains.recommendation.types import (
    ActionType,
    ContentFeatures,
    UserAction,
    UserProfile,
)
from app.domains.recommendation.weights import ScoringWeights

__all__ = [
    "Post",
    "UserActionRecord",
    "UserProfileRecord",
    "ActionType",
    "UserAction",
    "ContentFeatures",
    "UserProfile",
    "ScoringWeights",
    "RecommendationEngine",
    "ActionRecorder",
    "ProfileService",
    "router",
    "RecommendationErrorCode",
    "InvalidCountException",
    "InvalidActionTypeException",
    "SeedContentNotFoundException",
    "AuthRequiredException",
]
