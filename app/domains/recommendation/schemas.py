"""Recommendation 도메인 스키마 정의

API 요청/응답용 Pydantic 스키마입니다.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domains.recommendation.types import (
    ActionFailure,
    ActionInput,
    BatchScenario,
    Candidate,
    ContentFeatures,
    ProfilePreferences,
    ProfileStats,
    UserAction,
    UserProfile,
)


class RecommendationItem(BaseModel):
    """추천 항목"""

    content_id: str
    rank: int
    score: float
    reason: str
    source: str

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "RecommendationItem":
        return cls(
            content_id=candidate.content_id,
            rank=candidate.rank,
            score=round(candidate.score, 6),
            reason=candidate.reason,
            source=candidate.source.value,
        )


class RecommendationResponse(BaseModel):
    """추천 응답

    has_more는 반환 개수가 요청 개수와 같을 때 True인 근사값입니다.
    """

    recommendations: list[RecommendationItem]
    session_id: str
    has_more: bool
    debug: Optional[dict[str, Any]] = None


class BatchRecommendRequest(BaseModel):
    """배치 추천 요청"""

    scenarios: list[BatchScenario] = Field(..., min_length=1)


class BatchRecommendResponse(BaseModel):
    """배치 추천 응답 (실패한 시나리오는 빈 목록)"""

    results: dict[str, list[RecommendationItem]]


class SimilarItem(BaseModel):
    """유사 콘텐츠 항목"""

    content_id: str
    rank: int
    score: float
    reasons: list[str]
    features: dict[str, float]

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "SimilarItem":
        return cls(
            content_id=candidate.content_id,
            rank=candidate.rank,
            score=round(candidate.score, 6),
            reasons=candidate.reasons,
            features=candidate.features,
        )


class SeedSummary(BaseModel):
    """기준 콘텐츠 요약"""

    model_config = ConfigDict(from_attributes=True)

    content_id: str
    title: str
    author: Optional[str] = None
    categories: list[str]
    tags: list[str]
    published_at: Optional[datetime] = None

    @classmethod
    def from_features(cls, features: ContentFeatures) -> "SeedSummary":
        return cls.model_validate(features)


class SimilarResponse(BaseModel):
    """유사 콘텐츠 응답"""

    similar: list[SimilarItem]
    seed: SeedSummary
    debug: Optional[dict[str, Any]] = None


class ActionCreate(ActionInput):
    """행동 기록 요청

    action_type은 서버에서 검증합니다 (INVALID_ACTION_TYPE).
    read_time의 value는 체류 시간(초)입니다.
    """


class ActionBatchCreate(BaseModel):
    """배치 행동 기록 요청

    항목별 검증은 서버에서 개별적으로 수행합니다.
    """

    actions: list[dict[str, Any]] = Field(..., min_length=1)


class ActionRecordedResponse(BaseModel):
    action_id: str


class ActionBatchResponse(BaseModel):
    """배치 행동 기록 응답"""

    recorded_count: int
    failed_count: int
    action_ids: list[str]
    failures: list[ActionFailure]


class ActionResponse(BaseModel):
    """행동 이력 항목"""

    id: str
    action_type: str
    target_id: str
    target_type: str
    value: Optional[float] = None
    context: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_action(cls, action: UserAction) -> "ActionResponse":
        return cls(
            id=action.id,
            action_type=action.action_type.value,
            target_id=action.target_id,
            target_type=action.target_type,
            value=action.value,
            context=action.context,
            created_at=action.created_at,
        )


class ActionHistoryResponse(BaseModel):
    """행동 이력 응답 (total은 정확한 전체 개수)"""

    actions: list[ActionResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class ProfileResponse(BaseModel):
    """사용자 프로필 응답"""

    user_id: str
    interests: dict[str, float]
    preferences: ProfilePreferences
    stats: ProfileStats
    segments: list[str]
    updated_at: datetime

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        return cls(**profile.model_dump())


class ProfileRefreshResponse(BaseModel):
    profile: Optional[ProfileResponse] = None
    refreshed: bool


class ProfileDeleteResponse(BaseModel):
    profile_deleted: bool
    actions_deleted: int
