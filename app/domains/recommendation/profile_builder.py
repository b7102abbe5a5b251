"""사용자 프로필 구성

행동 이벤트 목록과 대상 콘텐츠 특징으로부터 관심사 프로필을 만듭니다.

관심사 가중치:
    weight(action) = action_weight(type, value) × decay(age)
    decay(age)     = max(0.5 ** (age_days / half_life), min_decay)

각 행동의 가중치는 대상 콘텐츠의 모든 카테고리와 태그에 그대로 더해지고
(나누지 않음), 키워드에는 keyword_factor만큼 더해집니다. 누적 후 음수는 0으로
자른 뒤 합이 1이 되도록 정규화합니다.

나이(age)는 호출 시각이 아니라 윈도 안에서 가장 최근 행동 시각을 기준으로
계산하므로, 같은 입력에 대해 항상 같은 프로필이 만들어집니다.
new_user와 활동량(heavy_user 등) 분류도 같은 기준 시각을 씁니다. 즉 new_user는
"첫 행동이 마지막 행동으로부터 NEW_USER_DAYS 이내"라는 뜻이며, 현재 시각
기준으로 판정하려면 build(..., now=...)를 넘깁니다.
"""

from collections import Counter, defaultdict
from datetime import datetime
from typing import Mapping, Optional, Sequence

import numpy as np

from app.core.utils.datetime import days_before, days_between, ensure_utc
from app.domains.recommendation.types import (
    ActionType,
    ContentFeatures,
    LengthBand,
    ProfilePreferences,
    ProfileStats,
    UserAction,
    UserProfile,
)
from app.domains.recommendation.weights import ScoringWeights

# 선호 작가 / 카테고리 / 시간대 상위 개수
TOP_PREFERENCES = 3

# 관심사 기반 분류에 사용하는 상위 관심사 개수
TOP_INTERESTS_FOR_SEGMENTS = 5

# 세그먼트 임계값
POWER_READER_MIN_ACTIONS = 50
ACTIVITY_WINDOW_DAYS = 7
ACTIVITY_TIERS = (
    ("heavy_user", 50),
    ("medium_user", 20),
    ("light_user", 5),
)
NEW_USER_DAYS = 7
DEEP_READER_MIN_SECONDS = 180.0
ACTIVE_ENGAGER_MIN_RATIO = 0.2

INTEREST_SEGMENTS: dict[str, frozenset[str]] = {
    "tech_enthusiast": frozenset(
        {"기술", "개발", "프로그래밍", "tech", "technology", "programming", "development"}
    ),
    "business_minded": frozenset(
        {"비즈니스", "창업", "경영", "business", "startup", "management"}
    ),
    "creative_soul": frozenset(
        {"디자인", "예술", "창작", "design", "art", "creative"}
    ),
    "knowledge_seeker": frozenset(
        {"학습", "교육", "지식", "learning", "education", "knowledge"}
    ),
}

# 선호 작가 집계 대상 (적극적 참여)
ENGAGED_ACTIONS = frozenset(
    {ActionType.LIKE, ActionType.COLLECT, ActionType.COMMENT, ActionType.SHARE}
)


class ProfileBuilder:
    """행동 이력 → UserProfile 변환기 (상태 없음)"""

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def build(
        self,
        user_id: str,
        actions: Sequence[UserAction],
        content: Mapping[str, ContentFeatures],
        now: Optional[datetime] = None,
    ) -> Optional[UserProfile]:
        """프로필 구성

        Args:
            user_id: 사용자 ID
            actions: 행동 목록 (순서 무관)
            content: target_id → 콘텐츠 특징
            now: 감쇠와 분류(new_user, 활동량) 기준 시각 (기본: 가장 최근 행동 시각)

        Returns:
            UserProfile, 행동이 없으면 None
        """
        if not actions:
            return None

        # 입력 순서와 무관하게 같은 합산 순서를 보장
        ordered = sorted(
            actions, key=lambda a: (ensure_utc(a.created_at), a.id)
        )
        as_of = ensure_utc(now) if now else ensure_utc(ordered[-1].created_at)

        stats = self._build_stats(ordered)
        interests = self._build_interests(ordered, content, as_of)
        preferences = self._build_preferences(ordered, content)
        segments = self._build_segments(ordered, interests, stats, as_of)

        return UserProfile(
            user_id=user_id,
            interests=interests,
            preferences=preferences,
            stats=stats,
            segments=segments,
            updated_at=as_of,
        )

    def decay(self, created_at: datetime, as_of: datetime) -> float:
        if not self.weights.decay_enabled:
            return 1.0
        age_days = max(days_between(created_at, as_of), 0.0)
        factor = 0.5 ** (age_days / self.weights.interest_halflife_days)
        return max(factor, self.weights.min_decay)

    def _build_interests(
        self,
        actions: Sequence[UserAction],
        content: Mapping[str, ContentFeatures],
        as_of: datetime,
    ) -> dict[str, float]:
        raw: dict[str, float] = defaultdict(float)

        for action in actions:
            features = content.get(action.target_id)
            if features is None:
                continue

            weight = self.weights.action_weight(
                action.action_type, action.value
            ) * self.decay(action.created_at, as_of)
            if weight == 0:
                continue

            labels = features.labels()
            for label in labels:
                raw[label] += weight

            label_set = set(labels)
            keyword_weight = weight * self.weights.keyword_factor
            for keyword in features.keywords:
                if keyword not in label_set:
                    raw[keyword] += keyword_weight

        positive = {key: value for key, value in raw.items() if value > 0}
        total = sum(positive.values())
        if total <= 0:
            return {}

        ranked = sorted(positive.items(), key=lambda kv: (-kv[1], kv[0]))
        return {key: value / total for key, value in ranked}

    def _build_stats(self, actions: Sequence[UserAction]) -> ProfileStats:
        counts = Counter(action.action_type.value for action in actions)
        read_times = [
            action.value
            for action in actions
            if action.action_type == ActionType.READ_TIME and action.value
        ]
        active_days = {ensure_utc(action.created_at).date() for action in actions}

        return ProfileStats(
            action_counts=dict(sorted(counts.items())),
            total_actions=len(actions),
            avg_read_time=round(float(np.mean(read_times)), 2) if read_times else 0.0,
            active_days=len(active_days),
            last_active=ensure_utc(actions[-1].created_at),
        )

    def _build_preferences(
        self,
        actions: Sequence[UserAction],
        content: Mapping[str, ContentFeatures],
    ) -> ProfilePreferences:
        author_counts: Counter[str] = Counter()
        category_counts: Counter[str] = Counter()
        engaged: dict[str, ContentFeatures] = {}
        speeds: list[float] = []

        for action in actions:
            if action.action_type == ActionType.UNLIKE:
                continue
            features = content.get(action.target_id)
            if features is None:
                continue

            engaged.setdefault(features.content_id, features)
            category_counts.update(features.categories)
            if action.action_type in ENGAGED_ACTIONS and features.author:
                author_counts[features.author] += 1

            if (
                action.action_type == ActionType.READ_TIME
                and action.value
                and features.word_count > 0
            ):
                speeds.append(features.word_count / (action.value / 60.0))

        word_counts = [f.word_count for f in engaged.values()]
        median_word_count = float(np.median(word_counts)) if word_counts else None

        hour_counts = Counter(
            ensure_utc(action.created_at).hour for action in actions
        )

        return ProfilePreferences(
            preferred_authors=_top(author_counts),
            preferred_categories=_top(category_counts),
            median_word_count=median_word_count,
            preferred_length=(
                LengthBand.from_word_count(median_word_count)
                if median_word_count is not None
                else None
            ),
            reading_speed=round(float(np.mean(speeds)), 1) if speeds else None,
            preferred_time_slots=sorted(_top(hour_counts)),
        )

    def _build_segments(
        self,
        actions: Sequence[UserAction],
        interests: Mapping[str, float],
        stats: ProfileStats,
        as_of: datetime,
    ) -> list[str]:
        segments: set[str] = set()

        if stats.total_actions >= POWER_READER_MIN_ACTIONS:
            segments.add("power_reader")

        window_start = days_before(as_of, ACTIVITY_WINDOW_DAYS)
        recent = sum(
            1 for action in actions if ensure_utc(action.created_at) >= window_start
        )
        for name, min_actions in ACTIVITY_TIERS:
            if recent >= min_actions:
                segments.add(name)
                break

        first_seen = ensure_utc(actions[0].created_at)
        if first_seen >= days_before(as_of, NEW_USER_DAYS):
            segments.add("new_user")

        if stats.avg_read_time > DEEP_READER_MIN_SECONDS:
            segments.add("deep_reader")

        counts = stats.action_counts
        views = counts.get(ActionType.VIEW.value, 0)
        engaged = sum(
            counts.get(t.value, 0)
            for t in (ActionType.LIKE, ActionType.COLLECT, ActionType.COMMENT)
        )
        if views > 0 and engaged / views > ACTIVE_ENGAGER_MIN_RATIO:
            segments.add("active_engager")

        top_keys = [key.lower() for key in list(interests)[:TOP_INTERESTS_FOR_SEGMENTS]]
        for name, keys in INTEREST_SEGMENTS.items():
            if any(key in keys for key in top_keys):
                segments.add(name)

        return sorted(segments)


def _top(counter: Counter, n: int = TOP_PREFERENCES) -> list:
    """빈도 내림차순, 동률은 값 오름차순"""
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    return [key for key, _ in ranked[:n]]
