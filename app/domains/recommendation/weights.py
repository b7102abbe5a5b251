"""추천 점수 가중치 설정

모든 가중치와 계수는 ``SCORING_`` 접두사의 환경 변수로 조정할 수 있습니다.

Example::

    SCORING_LIKE=6.0
    SCORING_INTEREST_HALFLIFE_DAYS=14
    SCORING_MAX_CONSECUTIVE_SAME_CATEGORY=0  # 다양성 규칙 비활성화
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domains.recommendation.types import ActionType


class ScoringWeights(BaseSettings):
    """프로필 구성 및 후보 점수 계산용 가중치"""

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 행동 유형별 가중치
    view: float = Field(default=1.0, ge=0)
    like: float = Field(default=5.0, ge=0)
    unlike: float = Field(default=-5.0, le=0)
    collect: float = Field(default=3.0, ge=0)
    comment: float = Field(default=4.0, ge=0)
    share: float = Field(default=4.0, ge=0)
    click: float = Field(default=1.5, ge=0)
    read_time_per_second: float = Field(default=0.01, ge=0)

    # 키워드는 카테고리/태그보다 약하게 반영
    keyword_factor: float = Field(default=0.3, ge=0)

    # 관심사 감쇠 (지수 반감기)
    decay_enabled: bool = True
    interest_halflife_days: float = Field(default=30.0, gt=0)
    min_decay: float = Field(default=0.1, ge=0, le=1)

    # 점수 항목별 계수
    interest_coeff: float = Field(default=1.0, ge=0)
    quality_coeff: float = Field(default=0.3, ge=0)
    popularity_coeff: float = Field(default=0.2, ge=0)
    recency_coeff: float = Field(default=0.1, ge=0)
    author_coeff: float = Field(default=0.1, ge=0)
    length_coeff: float = Field(default=0.05, ge=0)
    seed_overlap_coeff: float = Field(default=1.0, ge=0)
    seed_proximity_coeff: float = Field(default=0.2, ge=0)

    # 품질 점수가 이 값 미만인 글은 후보에서 제외 (품질 점수가 없는 글은 통과)
    min_quality_score: float = Field(default=0.6, ge=0, le=1)
    # 프로필 개인화에 필요한 최소 행동 수 (미만이면 익명 추천)
    personalization_min_actions: int = Field(default=5, ge=0)

    default_quality: float = Field(default=0.5, ge=0, le=1)
    recency_halflife_days: float = Field(default=30.0, gt=0)
    seed_proximity_halflife_days: float = Field(default=30.0, gt=0)

    # 인기도 기준치 (이 값에 도달하면 해당 항목 1.0)
    popularity_views_benchmark: float = Field(default=1000, gt=0)
    popularity_likes_benchmark: float = Field(default=100, gt=0)
    popularity_collects_benchmark: float = Field(default=50, gt=0)
    popularity_comments_benchmark: float = Field(default=20, gt=0)
    popularity_views_weight: float = Field(default=0.2, ge=0)
    popularity_likes_weight: float = Field(default=0.3, ge=0)
    popularity_collects_weight: float = Field(default=0.3, ge=0)
    popularity_comments_weight: float = Field(default=0.2, ge=0)
    popularity_cap: float = Field(default=2.0, gt=0)

    # 추천 사유 임계값
    trending_threshold: float = Field(default=0.5, ge=0)
    recent_threshold: float = Field(default=0.85, ge=0, le=1)
    high_quality_threshold: float = Field(default=0.8, ge=0, le=1)

    # 같은 카테고리 연속 허용 개수 (0이면 비활성화)
    max_consecutive_same_category: int = Field(default=3, ge=0)

    def action_weight(
        self, action_type: ActionType, value: Optional[float] = None
    ) -> float:
        """행동 한 건의 기본 가중치

        read_time은 체류 시간(초) × read_time_per_second 입니다.
        """
        if action_type == ActionType.READ_TIME:
            return max(value or 0.0, 0.0) * self.read_time_per_second
        return float(getattr(self, action_type.value))


@lru_cache
def get_scoring_weights() -> ScoringWeights:
    """가중치 설정 인스턴스를 반환 (캐싱됨)"""
    return ScoringWeights()
