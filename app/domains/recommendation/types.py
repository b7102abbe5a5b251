"""추천 도메인 타입 정의

행동 이벤트, 콘텐츠 특징, 사용자 프로필, 추천 요청/결과를 표현하는
Pydantic 모델입니다. ORM 모델과 분리되어 있어 엔진과 테스트는
저장소 구현과 무관하게 동작합니다.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# 분당 읽기 단어 수 (read_time 미지정 시 추정용)
WORDS_PER_MINUTE = 200


class ActionType(str, Enum):
    """사용자 행동 유형"""

    VIEW = "view"
    LIKE = "like"
    UNLIKE = "unlike"
    COLLECT = "collect"
    COMMENT = "comment"
    SHARE = "share"
    CLICK = "click"
    READ_TIME = "read_time"

    @classmethod
    def _missing_(cls, value: object) -> Optional["ActionType"]:
        # 북마크는 collect와 같은 행동으로 취급
        if isinstance(value, str) and value.lower() == "bookmark":
            return cls.COLLECT
        return None


class LengthBand(str, Enum):
    """콘텐츠 길이 구간"""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"

    @classmethod
    def from_word_count(cls, word_count: float) -> "LengthBand":
        if word_count < 500:
            return cls.SHORT
        if word_count < 1500:
            return cls.MEDIUM
        return cls.LONG


class CandidateSource(str, Enum):
    """추천 후보를 만든 주된 점수 항목"""

    CONTENT_BASED = "content_based"
    SIMILAR = "similar"
    TRENDING = "trending"
    RECENT = "recent"
    QUALITY = "quality"


def _unique(values: Any) -> list[str]:
    """공백 제거 후 순서를 유지하며 중복 제거"""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    seen: dict[str, None] = {}
    for value in values:
        text = str(value).strip()
        if text:
            seen.setdefault(text, None)
    return list(seen)


class UserAction(BaseModel):
    """사용자 행동 이벤트 (불변)"""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    user_id: str
    action_type: ActionType
    target_id: str
    target_type: str = "post"
    value: Optional[float] = None
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ActionInput(BaseModel):
    """기록 요청된 행동 (검증 전)

    action_type은 문자열로 받아 ActionRecorder에서 검증합니다.
    """

    action_type: str
    target_id: Optional[str] = None
    target_type: str = "post"
    value: Optional[float] = Field(default=None, ge=0)
    context: dict[str, Any] = Field(default_factory=dict)


class Engagement(BaseModel):
    """콘텐츠 참여 지표"""

    model_config = ConfigDict(from_attributes=True)

    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    collects: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)
    avg_read_ratio: float = Field(default=0.0, ge=0.0, le=1.0)


class ContentFeatures(BaseModel):
    """추천에 사용하는 콘텐츠 특징"""

    model_config = ConfigDict(from_attributes=True)

    content_id: str
    title: str = ""
    author: Optional[str] = None
    published_at: Optional[datetime] = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    word_count: int = Field(default=0, ge=0)
    read_time: Optional[int] = None
    quality_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    engagement: Engagement = Field(default_factory=Engagement)
    updated_at: Optional[datetime] = None

    @field_validator("categories", "tags", "keywords", mode="before")
    @classmethod
    def dedupe_labels(cls, v: Any) -> list[str]:
        return _unique(v)

    @model_validator(mode="after")
    def derive_read_time(self) -> "ContentFeatures":
        if self.read_time is None or self.read_time < 1:
            self.read_time = max(1, math.ceil(self.word_count / WORDS_PER_MINUTE))
        return self

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None

    def labels(self) -> list[str]:
        """카테고리와 태그 (중복 제거)"""
        return _unique([*self.categories, *self.tags])


class ProfilePreferences(BaseModel):
    """행동 통계로부터 유도한 선호 정보"""

    preferred_authors: list[str] = Field(default_factory=list)
    preferred_categories: list[str] = Field(default_factory=list)
    median_word_count: Optional[float] = None
    preferred_length: Optional[LengthBand] = None
    reading_speed: Optional[float] = Field(
        default=None, description="분당 읽은 단어 수"
    )
    preferred_time_slots: list[int] = Field(
        default_factory=list, description="활동이 많은 UTC 시간대 (0~23)"
    )


class ProfileStats(BaseModel):
    """행동 통계"""

    action_counts: dict[str, int] = Field(default_factory=dict)
    total_actions: int = 0
    avg_read_time: float = 0.0
    active_days: int = 0
    last_active: Optional[datetime] = None


class UserProfile(BaseModel):
    """사용자 관심사 프로필

    interests의 가중치는 0 이상이며 합이 1이 되도록 정규화됩니다.
    재구성 시 기존 프로필에 병합하지 않고 덮어씁니다.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    interests: dict[str, float] = Field(default_factory=dict)
    preferences: ProfilePreferences = Field(default_factory=ProfilePreferences)
    stats: ProfileStats = Field(default_factory=ProfileStats)
    segments: list[str] = Field(default_factory=list)
    updated_at: datetime

    def top_interests(self, n: int = 5) -> list[tuple[str, float]]:
        ranked = sorted(self.interests.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[:n]


class RecommendationContext(BaseModel):
    """추천 요청 컨텍스트"""

    current_post_id: Optional[str] = None
    source: Optional[str] = None
    session_id: Optional[str] = None
    device_type: Optional[str] = None


class RecommendationRequest(BaseModel):
    """추천 요청

    count / offset 범위는 엔진에서 검증합니다 (값을 보정하지 않음).
    """

    user_id: Optional[str] = None
    count: int = 10
    offset: int = 0
    exclude_ids: set[str] = Field(default_factory=set)
    context: RecommendationContext = Field(default_factory=RecommendationContext)


class Candidate(BaseModel):
    """점수가 매겨진 추천 후보"""

    content_id: str
    score: float
    rank: int = 0
    reason: str
    reasons: list[str] = Field(default_factory=list)
    source: CandidateSource
    features: dict[str, float] = Field(default_factory=dict)


class RecommendationResult(BaseModel):
    """단일 추천 결과 페이지

    has_more는 반환 개수가 요청 개수와 같은지로만 판단하는 근사값입니다.
    """

    recommendations: list[Candidate] = Field(default_factory=list)
    session_id: str
    has_more: bool = False
    debug: Optional[dict[str, Any]] = None


class SimilarResult(BaseModel):
    """유사 콘텐츠 결과"""

    seed: ContentFeatures
    similar: list[Candidate] = Field(default_factory=list)
    debug: Optional[dict[str, Any]] = None


class BatchScenario(BaseModel):
    """배치 추천의 개별 시나리오"""

    key: str = Field(..., min_length=1, max_length=64)
    count: int = 10
    offset: int = 0
    exclude_ids: set[str] = Field(default_factory=set)
    context: RecommendationContext = Field(default_factory=RecommendationContext)


class ActionFailure(BaseModel):
    """배치 기록 중 실패한 항목"""

    index: int
    code: str
    message: str


class BatchRecordResult(BaseModel):
    """배치 행동 기록 결과"""

    recorded_count: int = 0
    failed_count: int = 0
    action_ids: list[str] = Field(default_factory=list)
    failures: list[ActionFailure] = Field(default_factory=list)


class ActionHistory(BaseModel):
    """행동 이력 페이지 (total은 정확한 전체 개수)"""

    actions: list[UserAction] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int
    has_more: bool = False
