"""콘텐츠 기반 후보 점수 계산

세 가지 모드로 동작합니다.

- profile: 사용자 관심사 프로필과 후보의 카테고리/태그/키워드 겹침
- seed: 기준 콘텐츠와 공유하는 카테고리/태그/키워드 수, 같은 작가, 발행 시점 근접도
- anonymous: 관심사 없이 품질/인기도/최신성만 사용

최종 점수는 각 항목 × 계수의 합입니다::

    score = interest_coeff × interest          (profile)
          | seed_overlap_coeff × overlap
            + seed_proximity_coeff × proximity (seed)
          + quality_coeff × quality
          + popularity_coeff × popularity
          + recency_coeff × recency
          + author_coeff × author_match
          + length_coeff × length_match        (profile)
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from app.core.utils.datetime import days_between
from app.domains.recommendation.types import (
    Candidate,
    CandidateSource,
    ContentFeatures,
    Engagement,
    LengthBand,
    UserProfile,
)
from app.domains.recommendation.weights import ScoringWeights

DEFAULT_REASON = "추천 콘텐츠"


class ScoringMode(str, Enum):
    PROFILE = "profile"
    SEED = "seed"
    ANONYMOUS = "anonymous"


@dataclass
class ScoringContext:
    """점수 계산 컨텍스트"""

    now: datetime
    exclude_ids: frozenset[str] = field(default_factory=frozenset)
    exclude_same_author: bool = False


class ContentScorer:
    """후보 콘텐츠 점수 계산기 (상태 없음)"""

    def __init__(self, weights: Optional[ScoringWeights] = None):
        self.weights = weights or ScoringWeights()

    def score(
        self,
        candidates: Iterable[ContentFeatures],
        context: ScoringContext,
        profile: Optional[UserProfile] = None,
        seed: Optional[ContentFeatures] = None,
    ) -> list[Candidate]:
        """후보 점수 계산

        seed가 주어지면 seed 모드, profile만 있으면 profile 모드,
        둘 다 없으면 anonymous 모드로 동작합니다. exclude_ids에 속하거나
        seed와 같은 후보, min_quality_score 미만인 후보는 결과에서 빠집니다.
        결과는 정렬하지 않습니다.
        """
        mode = self.resolve_mode(profile, seed)
        scored: list[Candidate] = []

        for features in candidates:
            if features.content_id in context.exclude_ids:
                continue
            if not self.meets_quality(features):
                continue
            if seed is not None:
                if features.content_id == seed.content_id:
                    continue
                if (
                    context.exclude_same_author
                    and seed.author is not None
                    and features.author == seed.author
                ):
                    continue

            if mode == ScoringMode.SEED and seed is not None:
                scored.append(self._score_seed(features, seed, context))
            elif mode == ScoringMode.PROFILE and profile is not None:
                scored.append(self._score_profile(features, profile, context))
            else:
                scored.append(self._score_anonymous(features, context))

        return scored

    def resolve_mode(
        self, profile: Optional[UserProfile], seed: Optional[ContentFeatures]
    ) -> ScoringMode:
        """seed > profile > anonymous

        행동 수가 personalization_min_actions 미만인 프로필은 쓰지 않습니다.
        """
        if seed is not None:
            return ScoringMode.SEED
        if (
            profile is not None
            and profile.interests
            and profile.stats.total_actions
            >= self.weights.personalization_min_actions
        ):
            return ScoringMode.PROFILE
        return ScoringMode.ANONYMOUS

    def meets_quality(self, features: ContentFeatures) -> bool:
        if features.quality_score is None:
            return True
        return features.quality_score >= self.weights.min_quality_score

    # ------------------------------------------------------------------
    # 공통 항목
    # ------------------------------------------------------------------

    def quality(self, features: ContentFeatures) -> float:
        if features.quality_score is None:
            return self.weights.default_quality
        return features.quality_score

    def popularity(self, engagement: Engagement) -> float:
        """참여 지표의 가중 평균

        각 지표는 log1p(count) / log1p(benchmark)로 정규화하고 popularity_cap에서 자릅니다.
        """
        w = self.weights
        parts = (
            (engagement.views, w.popularity_views_benchmark, w.popularity_views_weight),
            (engagement.likes, w.popularity_likes_benchmark, w.popularity_likes_weight),
            (
                engagement.collects,
                w.popularity_collects_benchmark,
                w.popularity_collects_weight,
            ),
            (
                engagement.comments,
                w.popularity_comments_benchmark,
                w.popularity_comments_weight,
            ),
        )
        total = 0.0
        for count, benchmark, weight in parts:
            normalized = math.log1p(count) / math.log1p(benchmark)
            total += min(normalized, w.popularity_cap) * weight
        return total

    def recency(self, features: ContentFeatures, now: datetime) -> float:
        """발행 시점 기준 지수 감쇠 (발행일 없으면 0)"""
        if features.published_at is None:
            return 0.0
        age_days = max(days_between(features.published_at, now), 0.0)
        return 0.5 ** (age_days / self.weights.recency_halflife_days)

    def _base_terms(
        self, features: ContentFeatures, now: datetime
    ) -> dict[str, float]:
        return {
            "quality": self.quality(features),
            "popularity": self.popularity(features.engagement),
            "recency": self.recency(features, now),
        }

    def _base_contributions(self, terms: dict[str, float]) -> dict[str, float]:
        w = self.weights
        return {
            "quality": w.quality_coeff * terms["quality"],
            "popularity": w.popularity_coeff * terms["popularity"],
            "recency": w.recency_coeff * terms["recency"],
        }

    # ------------------------------------------------------------------
    # 모드별 점수
    # ------------------------------------------------------------------

    def _score_profile(
        self,
        features: ContentFeatures,
        profile: UserProfile,
        context: ScoringContext,
    ) -> Candidate:
        w = self.weights
        terms = self._base_terms(features, context.now)

        matched: list[tuple[str, float]] = []
        for key in _unique_keys(features):
            weight = profile.interests.get(key)
            if weight:
                matched.append((key, weight))
        terms["interest"] = sum(weight for _, weight in matched)

        author_match = bool(
            features.author
            and features.author in profile.preferences.preferred_authors
        )
        length_match = (
            profile.preferences.preferred_length is not None
            and LengthBand.from_word_count(features.word_count)
            == profile.preferences.preferred_length
        )
        terms["author"] = 1.0 if author_match else 0.0
        terms["length"] = 1.0 if length_match else 0.0

        contributions = self._base_contributions(terms)
        contributions["interest"] = w.interest_coeff * terms["interest"]
        contributions["author"] = w.author_coeff * terms["author"]
        contributions["length"] = w.length_coeff * terms["length"]

        reasons: list[tuple[float, str]] = []
        if matched:
            top_key = max(matched, key=lambda kv: (kv[1], -len(kv[0])))[0]
            reasons.append(
                (contributions["interest"], f"관심사 '{top_key}'와 관련된 글")
            )
        if author_match:
            reasons.append(
                (contributions["author"], f"자주 읽는 작가 {features.author}의 글")
            )
        if length_match:
            reasons.append((contributions["length"], "선호하는 분량의 글"))
        reasons.extend(self._base_reasons(terms, contributions))

        return self._candidate(features, terms, contributions, reasons)

    def _score_seed(
        self,
        features: ContentFeatures,
        seed: ContentFeatures,
        context: ScoringContext,
    ) -> Candidate:
        w = self.weights
        terms = self._base_terms(features, context.now)

        seed_labels = set(seed.labels())
        shared_labels = [
            label for label in features.labels() if label in seed_labels
        ]
        seed_keywords = set(seed.keywords) - seed_labels
        shared_keywords = [
            kw
            for kw in features.keywords
            if kw in seed_keywords and kw not in shared_labels
        ]
        terms["overlap"] = len(shared_labels) + w.keyword_factor * len(
            shared_keywords
        )

        same_author = bool(seed.author and features.author == seed.author)
        terms["author"] = 1.0 if same_author else 0.0

        if seed.published_at is not None and features.published_at is not None:
            gap_days = abs(days_between(seed.published_at, features.published_at))
            terms["proximity"] = 0.5 ** (gap_days / w.seed_proximity_halflife_days)
        else:
            terms["proximity"] = 0.0

        contributions = self._base_contributions(terms)
        contributions["overlap"] = w.seed_overlap_coeff * terms["overlap"]
        contributions["author"] = w.author_coeff * terms["author"]
        contributions["proximity"] = w.seed_proximity_coeff * terms["proximity"]

        reasons: list[tuple[float, str]] = []
        if shared_labels:
            topics = ", ".join(f"'{label}'" for label in shared_labels[:2])
            reasons.append((contributions["overlap"], f"{topics} 주제를 함께 다룸"))
        elif shared_keywords:
            reasons.append(
                (contributions["overlap"], f"'{shared_keywords[0]}' 키워드가 겹침")
            )
        if same_author:
            reasons.append((contributions["author"], "같은 작가의 다른 글"))
        reasons.extend(self._base_reasons(terms, contributions))

        return self._candidate(features, terms, contributions, reasons)

    def _score_anonymous(
        self, features: ContentFeatures, context: ScoringContext
    ) -> Candidate:
        terms = self._base_terms(features, context.now)
        contributions = self._base_contributions(terms)
        reasons = self._base_reasons(terms, contributions)
        return self._candidate(features, terms, contributions, reasons)

    # ------------------------------------------------------------------
    # 사유 / 결과 조립
    # ------------------------------------------------------------------

    def _base_reasons(
        self, terms: dict[str, float], contributions: dict[str, float]
    ) -> list[tuple[float, str]]:
        w = self.weights
        reasons: list[tuple[float, str]] = []
        if terms["popularity"] >= w.trending_threshold:
            reasons.append((contributions["popularity"], "지금 많이 읽히는 글"))
        if terms["recency"] >= w.recent_threshold:
            reasons.append((contributions["recency"], "최근 발행된 글"))
        if terms["quality"] >= w.high_quality_threshold:
            reasons.append((contributions["quality"], "완성도 높은 글"))
        return reasons

    def _candidate(
        self,
        features: ContentFeatures,
        terms: dict[str, float],
        contributions: dict[str, float],
        reasons: list[tuple[float, str]],
    ) -> Candidate:
        # 기여도 내림차순, 동률은 추가된 순서
        ranked = sorted(
            enumerate(reasons), key=lambda item: (-item[1][0], item[0])
        )
        ordered = [text for _, (_, text) in ranked]
        if not ordered:
            ordered = [DEFAULT_REASON]

        return Candidate(
            content_id=features.content_id,
            score=max(sum(contributions.values()), 0.0),
            reason=ordered[0],
            reasons=ordered,
            source=_dominant_source(contributions),
            features={key: round(value, 6) for key, value in terms.items()},
        )


# 점수 항목 → 추천 출처
_TERM_SOURCES = {
    "interest": CandidateSource.CONTENT_BASED,
    "author": CandidateSource.CONTENT_BASED,
    "length": CandidateSource.CONTENT_BASED,
    "overlap": CandidateSource.SIMILAR,
    "proximity": CandidateSource.SIMILAR,
    "popularity": CandidateSource.TRENDING,
    "recency": CandidateSource.RECENT,
    "quality": CandidateSource.QUALITY,
}


def _dominant_source(contributions: dict[str, float]) -> CandidateSource:
    # 동률이면 dict 순서상 먼저 나온 항목 (공통 항목 → 모드별 항목)
    best = max(contributions, key=lambda key: contributions[key])
    if contributions[best] <= 0:
        return CandidateSource.QUALITY
    return _TERM_SOURCES[best]


def _unique_keys(features: ContentFeatures) -> list[str]:
    keys = features.labels()
    known = set(keys)
    keys.extend(kw for kw in features.keywords if kw not in known)
    return keys
