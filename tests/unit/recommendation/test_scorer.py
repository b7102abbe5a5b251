"""ContentScorer 단위 테스트"""

from datetime import timedelta

import pytest

from app.domains.recommendation.profile_builder import ProfileBuilder
from app.domains.recommendation.scorer import (
    DEFAULT_REASON,
    ContentScorer,
    ScoringContext,
    ScoringMode,
)
from app.domains.recommendation.types import (
    ActionType,
    CandidateSource,
    Engagement,
    UserProfile,
)
from app.domains.recommendation.weights import ScoringWeights


@pytest.fixture
def scorer():
    return ContentScorer(ScoringWeights())


def by_id(candidates):
    return {c.content_id: c for c in candidates}


class TestProfileMode:
    """프로필 모드 테스트"""

    @pytest.fixture
    def scorer(self):
        return ContentScorer(ScoringWeights(personalization_min_actions=1))

    def test_like_interest_ranks_above_view_interest(
        self, scorer, make_post, make_action, now
    ):
        """tech(like) > life(view) > sports(없음)"""
        # Given
        builder = ProfileBuilder(ScoringWeights(decay_enabled=False))
        profile = builder.build(
            "user-1",
            [
                make_action(ActionType.LIKE, "p1"),
                make_action(ActionType.VIEW, "p2"),
            ],
            {
                "p1": make_post("p1", categories=["tech"]),
                "p2": make_post("p2", categories=["life"]),
            },
        )
        pool = [
            make_post("p3", categories=["tech"]),
            make_post("p4", categories=["life"]),
            make_post("p5", categories=["sports"]),
        ]

        # When
        scored = by_id(scorer.score(pool, ScoringContext(now=now), profile=profile))

        # Then
        assert scored["p3"].score > scored["p4"].score > scored["p5"].score
        assert scored["p3"].reason == "관심사 'tech'와 관련된 글"
        assert scored["p3"].source == CandidateSource.CONTENT_BASED
        assert scored["p3"].features["interest"] == pytest.approx(5 / 6, abs=1e-6)

    def test_preferred_author_and_length_bonus(self, scorer, make_post, now):
        profile = UserProfile(
            user_id="user-1",
            interests={"tech": 1.0},
            preferences={"preferred_authors": ["kim"], "preferred_length": "medium"},
            stats={"total_actions": 10},
            updated_at=now,
        )
        pool = [
            make_post("a", categories=["tech"], author="kim", word_count=800),
            make_post("b", categories=["tech"], author="lee", word_count=3000),
        ]

        scored = by_id(scorer.score(pool, ScoringContext(now=now), profile=profile))

        assert scored["a"].features["author"] == 1.0
        assert scored["a"].features["length"] == 1.0
        assert scored["b"].features["author"] == 0.0
        assert scored["a"].score > scored["b"].score
        assert "자주 읽는 작가 kim의 글" in scored["a"].reasons

    def test_empty_interests_falls_back_to_anonymous(self, scorer, now):
        profile = UserProfile(user_id="user-1", updated_at=now)

        assert scorer.resolve_mode(profile, None) == ScoringMode.ANONYMOUS
        assert scorer.resolve_mode(None, None) == ScoringMode.ANONYMOUS

    def test_profile_below_min_actions_is_not_used(self, now):
        """행동 수가 기준 미만이면 관심사가 있어도 anonymous 모드"""
        # Given
        scorer = ContentScorer(ScoringWeights(personalization_min_actions=5))
        few = UserProfile(
            user_id="user-1",
            interests={"tech": 1.0},
            stats={"total_actions": 4},
            updated_at=now,
        )
        enough = UserProfile(
            user_id="user-1",
            interests={"tech": 1.0},
            stats={"total_actions": 5},
            updated_at=now,
        )

        # When / Then
        assert scorer.resolve_mode(few, None) == ScoringMode.ANONYMOUS
        assert scorer.resolve_mode(enough, None) == ScoringMode.PROFILE


class TestSeedMode:
    """유사 콘텐츠(seed) 모드 테스트"""

    @pytest.fixture
    def seed(self, make_post):
        return make_post("p1", categories=["tech", "web"], author="A")

    def test_same_author_excluded_when_requested(self, scorer, make_post, seed, now):
        """exclude_same_author면 겹침이 더 많아도 같은 작가 글은 제외"""
        pool = [
            make_post("p2", categories=["tech"], author="B"),
            make_post("p3", categories=["tech", "web"], author="A"),
        ]

        scored = scorer.score(
            pool, ScoringContext(now=now, exclude_same_author=True), seed=seed
        )

        assert [c.content_id for c in scored] == ["p2"]

    def test_overlap_ranks_higher_without_exclusion(
        self, scorer, make_post, seed, now
    ):
        pool = [
            make_post("p2", categories=["tech"], author="B"),
            make_post("p3", categories=["tech", "web"], author="A"),
        ]

        scored = by_id(scorer.score(pool, ScoringContext(now=now), seed=seed))

        assert scored["p3"].score > scored["p2"].score
        assert scored["p3"].features["overlap"] == 2.0
        assert scored["p3"].features["author"] == 1.0
        assert scored["p3"].source == CandidateSource.SIMILAR
        assert scored["p3"].reason == "'tech', 'web' 주제를 함께 다룸"

    def test_seed_itself_is_dropped(self, scorer, make_post, seed, now):
        pool = [seed, make_post("p2", categories=["tech"])]

        scored = scorer.score(pool, ScoringContext(now=now), seed=seed)

        assert [c.content_id for c in scored] == ["p2"]

    def test_temporal_proximity(self, scorer, make_post, seed, now):
        close = make_post("near", published_at=seed.published_at)
        far = make_post("far", published_at=seed.published_at - timedelta(days=60))

        scored = by_id(scorer.score([close, far], ScoringContext(now=now), seed=seed))

        assert scored["near"].features["proximity"] == pytest.approx(1.0)
        assert scored["far"].features["proximity"] == pytest.approx(0.25)


class TestCommonTerms:
    """품질/인기도/최신성 테스트"""

    def test_exclude_ids_are_dropped(self, scorer, make_post, now):
        pool = [make_post("p1"), make_post("p2")]

        scored = scorer.score(pool, ScoringContext(now=now, exclude_ids=frozenset({"p1"})))

        assert [c.content_id for c in scored] == ["p2"]

    def test_low_quality_is_dropped(self, scorer, make_post, now):
        """min_quality_score(0.6) 미만만 제외, 품질 점수 없음은 통과"""
        # Given
        pool = [
            make_post("low", quality_score=0.4),
            make_post("edge", quality_score=0.6),
            make_post("unknown", quality_score=None),
        ]

        # When
        scored = scorer.score(pool, ScoringContext(now=now))

        # Then
        assert sorted(c.content_id for c in scored) == ["edge", "unknown"]

    def test_low_quality_is_dropped_in_seed_mode(self, scorer, make_post, now):
        seed = make_post("seed", categories=["tech"])
        pool = [
            make_post("low", categories=["tech"], quality_score=0.1),
            make_post("ok", categories=["tech"], quality_score=0.8),
        ]

        scored = scorer.score(pool, ScoringContext(now=now), seed=seed)

        assert [c.content_id for c in scored] == ["ok"]

    def test_missing_fields_use_neutral_defaults(self, scorer, make_post, now):
        """품질 없음 → 0.5, 발행일 없음 → 최신성 0, 예외 없음"""
        item = make_post("p1", published_at=None, author=None)

        (candidate,) = scorer.score([item], ScoringContext(now=now))

        assert candidate.features["quality"] == 0.5
        assert candidate.features["recency"] == 0.0
        assert candidate.reason == DEFAULT_REASON
        assert candidate.score >= 0

    def test_popularity_is_monotonic_and_capped(self, scorer):
        cold = scorer.popularity(Engagement())
        warm = scorer.popularity(Engagement(views=100, likes=10))
        benchmark = scorer.popularity(
            Engagement(views=1000, likes=100, collects=50, comments=20)
        )
        viral = scorer.popularity(
            Engagement(views=10**9, likes=10**9, collects=10**9, comments=10**9)
        )

        assert cold == 0.0
        assert cold < warm < benchmark
        assert benchmark == pytest.approx(1.0)
        assert viral == pytest.approx(2.0)

    def test_recency_half_life(self, scorer, make_post, now):
        fresh = make_post("fresh", published_at=now)
        month_old = make_post("old", published_at=now - timedelta(days=30))

        assert scorer.recency(fresh, now) == pytest.approx(1.0)
        assert scorer.recency(month_old, now) == pytest.approx(0.5)

    def test_base_reasons(self, scorer, make_post, now):
        item = make_post(
            "hot",
            published_at=now,
            quality_score=0.9,
            engagement=Engagement(views=1000, likes=100, collects=50, comments=20),
        )

        (candidate,) = scorer.score([item], ScoringContext(now=now))

        assert set(candidate.reasons) == {
            "지금 많이 읽히는 글",
            "최근 발행된 글",
            "완성도 높은 글",
        }
        # 기여도: quality 0.27 > popularity 0.2 > recency 0.1
        assert candidate.reasons[0] == "완성도 높은 글"
        assert candidate.source == CandidateSource.QUALITY
