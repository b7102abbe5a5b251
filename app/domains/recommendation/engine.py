"""추천 엔진 (오케스트레이터)

요청 하나는 아래 단계를 순서대로 거칩니다::

    RESOLVE_INPUTS → LOAD_PROFILE_OR_SEED → FETCH_CANDIDATE_POOL
        → SCORE → RANK_AND_DIVERSIFY → PAGINATE → RESPOND

검증 실패나 저장소 오류는 FAIL로 끝나며 예외로 호출자에게 전달됩니다.
배치 추천은 시나리오마다 이 파이프라인을 따로 실행하고, 실패한 시나리오는
빈 목록으로 대체하여 나머지 결과를 그대로 반환합니다.
"""

import asyncio
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from app.core.logging import get_logger
from app.core.middlewares.context import get_request_id
from app.core.utils.datetime import now_utc
from app.core.utils.time import measure_time
from app.domains.recommendation.exceptions import (
    InvalidCountException,
    InvalidOffsetException,
    InvalidScenariosException,
    RecommendationTimeoutException,
    SeedContentNotFoundException,
)
from app.domains.recommendation.ports import (
    ContentFeatureRepository,
    ContentFilter,
    EventStore,
    ProfileStore,
)
from app.domains.recommendation.ranking import diversify, paginate, sort_candidates
from app.domains.recommendation.scorer import (
    ContentScorer,
    ScoringContext,
    ScoringMode,
)
from app.domains.recommendation.types import (
    ActionType,
    BatchScenario,
    Candidate,
    ContentFeatures,
    RecommendationRequest,
    RecommendationResult,
    SimilarResult,
    UserProfile,
)
from app.domains.recommendation.weights import ScoringWeights

logger = get_logger(__name__)

MIN_COUNT = 1
MAX_RECOMMEND_COUNT = 50
MAX_SIMILAR_COUNT = 20


class PipelineStage(str, Enum):
    """요청 처리 단계"""

    RESOLVE_INPUTS = "resolve_inputs"
    LOAD_PROFILE_OR_SEED = "load_profile_or_seed"
    FETCH_CANDIDATE_POOL = "fetch_candidate_pool"
    SCORE = "score"
    RANK_AND_DIVERSIFY = "rank_and_diversify"
    PAGINATE = "paginate"
    RESPOND = "respond"
    FAIL = "fail"


class PipelineTrace:
    """단계 진행 기록 (디버그 정보)"""

    def __init__(self) -> None:
        self.stages: list[str] = []
        self.mode: Optional[ScoringMode] = None
        self.candidates_count = 0
        self.scored_count = 0
        self.profile: Optional[UserProfile] = None

    def enter(self, stage: PipelineStage) -> None:
        self.stages.append(stage.value)

    def to_dict(self, elapsed_ms: float) -> dict[str, Any]:
        profile = self.profile
        return {
            "stages": list(self.stages),
            "mode": self.mode.value if self.mode else None,
            "candidates_count": self.candidates_count,
            "scored_count": self.scored_count,
            "elapsed_ms": round(elapsed_ms, 2),
            "top_interests": (
                [
                    {"key": key, "weight": round(weight, 6)}
                    for key, weight in profile.top_interests()
                ]
                if profile
                else []
            ),
            "segments": list(profile.segments) if profile else [],
        }


def validate_count(count: int, max_count: int) -> None:
    if count < MIN_COUNT or count > max_count:
        raise InvalidCountException(count, MIN_COUNT, max_count)


def validate_offset(offset: int) -> None:
    if offset < 0:
        raise InvalidOffsetException(offset)


class RecommendationEngine:
    """추천 요청 처리기

    저장소와 가중치를 생성자로 주입받으며, 요청 사이에 공유하는 가변 상태가
    없으므로 여러 요청에서 동시에 사용해도 안전합니다.
    """

    def __init__(
        self,
        events: EventStore,
        contents: ContentFeatureRepository,
        profiles: ProfileStore,
        weights: Optional[ScoringWeights] = None,
        *,
        candidate_pool_size: int = 200,
        seen_window: int = 100,
        exclude_seen: bool = True,
        timeout_seconds: Optional[float] = 2.0,
        max_batch_scenarios: int = 10,
        include_debug: bool = False,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.events = events
        self.contents = contents
        self.profiles = profiles
        self.weights = weights or ScoringWeights()
        self.scorer = ContentScorer(self.weights)
        self.candidate_pool_size = candidate_pool_size
        self.seen_window = seen_window
        self.exclude_seen = exclude_seen
        self.timeout_seconds = timeout_seconds
        self.max_batch_scenarios = max_batch_scenarios
        self.include_debug = include_debug
        self.clock = clock

    # ------------------------------------------------------------------
    # 단일 추천
    # ------------------------------------------------------------------

    async def recommend(
        self, request: RecommendationRequest
    ) -> RecommendationResult:
        """개인화 / 익명 / 현재 글 기반 추천

        Raises:
            InvalidCountException: count가 1~50 범위를 벗어난 경우
            InvalidOffsetException: offset이 음수인 경우
            SeedContentNotFoundException: current_post_id의 콘텐츠가 없는 경우
            RecommendationTimeoutException: 처리 시간 초과
        """
        validate_count(request.count, MAX_RECOMMEND_COUNT)
        validate_offset(request.offset)
        return await self._with_timeout(self._recommend(request))

    async def _recommend(
        self, request: RecommendationRequest
    ) -> RecommendationResult:
        trace = PipelineTrace()
        trace.enter(PipelineStage.RESOLVE_INPUTS)
        session_id = request.context.session_id or str(uuid.uuid4())
        now = self.clock()

        with measure_time() as timer:
            try:
                trace.enter(PipelineStage.LOAD_PROFILE_OR_SEED)
                seed = (
                    await self._load_seed(request.context.current_post_id)
                    if request.context.current_post_id
                    else None
                )
                profile = (
                    await self.profiles.get(request.user_id)
                    if request.user_id
                    else None
                )
                trace.profile = profile

                trace.enter(PipelineStage.FETCH_CANDIDATE_POOL)
                exclude_ids = set(request.exclude_ids)
                if seed is not None:
                    exclude_ids.add(seed.content_id)
                if request.user_id and self.exclude_seen:
                    exclude_ids |= await self._recently_viewed(request.user_id)
                pool = await self.contents.list(
                    ContentFilter(
                        published_only=True, exclude_ids=frozenset(exclude_ids)
                    ),
                    limit=self.candidate_pool_size,
                )
                trace.candidates_count = len(pool)

                trace.enter(PipelineStage.SCORE)
                trace.mode = self.scorer.resolve_mode(profile, seed)
                scored = self.scorer.score(
                    pool,
                    ScoringContext(now=now, exclude_ids=frozenset(exclude_ids)),
                    profile=profile,
                    seed=seed,
                )
                trace.scored_count = len(scored)

                page, has_more = self._rank_and_paginate(
                    scored, pool, request.count, request.offset, trace
                )
                trace.enter(PipelineStage.RESPOND)
            except Exception:
                failed_at = trace.stages[-1]
                trace.enter(PipelineStage.FAIL)
                logger.warning(
                    f"Recommendation failed at {failed_at}: "
                    f"user={request.user_id or 'anonymous'}",
                    extra={"request_id": get_request_id(), "stages": trace.stages},
                )
                raise

        logger.info(
            f"Recommendation served: user={request.user_id or 'anonymous'} "
            f"mode={trace.mode.value if trace.mode else None} "
            f"pool={trace.candidates_count} returned={len(page)} "
            f"({timer['elapsed_ms']:.2f}ms)",
            extra={
                "request_id": get_request_id(),
                "user_id": request.user_id,
                "session_id": session_id,
            },
        )

        return RecommendationResult(
            recommendations=page,
            session_id=session_id,
            has_more=has_more,
            debug=trace.to_dict(timer["elapsed_ms"]) if self.include_debug else None,
        )

    # ------------------------------------------------------------------
    # 유사 콘텐츠
    # ------------------------------------------------------------------

    async def similar(
        self,
        seed_id: str,
        count: int = 5,
        exclude_same_author: bool = False,
        exclude_ids: Sequence[str] = (),
    ) -> SimilarResult:
        """기준 콘텐츠와 유사한 글 추천

        Raises:
            InvalidCountException: count가 1~20 범위를 벗어난 경우
            SeedContentNotFoundException: 기준 콘텐츠가 없는 경우
        """
        validate_count(count, MAX_SIMILAR_COUNT)
        return await self._with_timeout(
            self._similar(seed_id, count, exclude_same_author, exclude_ids)
        )

    async def _similar(
        self,
        seed_id: str,
        count: int,
        exclude_same_author: bool,
        exclude_ids: Sequence[str],
    ) -> SimilarResult:
        trace = PipelineTrace()
        trace.enter(PipelineStage.RESOLVE_INPUTS)
        now = self.clock()

        with measure_time() as timer:
            trace.enter(PipelineStage.LOAD_PROFILE_OR_SEED)
            seed = await self._load_seed(seed_id)

            trace.enter(PipelineStage.FETCH_CANDIDATE_POOL)
            excluded = frozenset({*exclude_ids, seed.content_id})
            pool = await self.contents.list(
                ContentFilter(
                    published_only=True,
                    exclude_ids=excluded,
                    exclude_author=seed.author if exclude_same_author else None,
                ),
                limit=self.candidate_pool_size,
            )
            trace.candidates_count = len(pool)

            trace.enter(PipelineStage.SCORE)
            trace.mode = ScoringMode.SEED
            scored = self.scorer.score(
                pool,
                ScoringContext(
                    now=now,
                    exclude_ids=excluded,
                    exclude_same_author=exclude_same_author,
                ),
                seed=seed,
            )
            trace.scored_count = len(scored)

            page, _ = self._rank_and_paginate(scored, pool, count, 0, trace)
            trace.enter(PipelineStage.RESPOND)

        logger.info(
            f"Similar content served: seed={seed_id} pool={len(pool)} "
            f"returned={len(page)} ({timer['elapsed_ms']:.2f}ms)",
            extra={"request_id": get_request_id(), "seed_id": seed_id},
        )

        return SimilarResult(
            seed=seed,
            similar=page,
            debug=trace.to_dict(timer["elapsed_ms"]) if self.include_debug else None,
        )

    # ------------------------------------------------------------------
    # 배치
    # ------------------------------------------------------------------

    async def recommend_batch(
        self,
        scenarios: Sequence[BatchScenario],
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> dict[str, list[Candidate]]:
        """여러 시나리오를 한 번에 추천

        시나리오는 같은 DB 세션을 공유하므로 순차 실행합니다.
        실패한 시나리오는 빈 목록을 반환합니다.

        Raises:
            InvalidScenariosException: 시나리오가 없거나, 너무 많거나, key가 중복된 경우
        """
        if not scenarios:
            raise InvalidScenariosException("시나리오가 비어 있습니다.")
        if len(scenarios) > self.max_batch_scenarios:
            raise InvalidScenariosException(
                f"시나리오는 최대 {self.max_batch_scenarios}개까지 요청할 수 있습니다.",
                detail={"size": len(scenarios), "max": self.max_batch_scenarios},
            )
        keys = [scenario.key for scenario in scenarios]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise InvalidScenariosException(
                "시나리오 key가 중복되었습니다.", detail={"duplicates": duplicates}
            )

        results: dict[str, list[Candidate]] = {}
        for scenario in scenarios:
            context = scenario.context
            if context.session_id is None and session_id is not None:
                context = context.model_copy(update={"session_id": session_id})
            request = RecommendationRequest(
                user_id=user_id,
                count=scenario.count,
                offset=scenario.offset,
                exclude_ids=scenario.exclude_ids,
                context=context,
            )
            try:
                result = await self.recommend(request)
                results[scenario.key] = result.recommendations
            except Exception:
                logger.exception(
                    f"Batch scenario failed: key={scenario.key}",
                    extra={
                        "request_id": get_request_id(),
                        "scenario": scenario.key,
                        "user_id": user_id,
                    },
                )
                results[scenario.key] = []
        return results

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    async def _with_timeout(self, coro: Any) -> Any:
        if self.timeout_seconds is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning(
                f"Recommendation timed out after {self.timeout_seconds}s",
                extra={"request_id": get_request_id()},
            )
            raise RecommendationTimeoutException(self.timeout_seconds) from e

    async def _load_seed(self, content_id: str) -> ContentFeatures:
        seed = await self.contents.get(content_id)
        if seed is None:
            raise SeedContentNotFoundException(content_id)
        return seed

    async def _recently_viewed(self, user_id: str) -> set[str]:
        views = await self.events.query(
            user_id, limit=self.seen_window, action_type=ActionType.VIEW
        )
        return {action.target_id for action in views}

    def _rank_and_paginate(
        self,
        scored: list[Candidate],
        pool: Sequence[ContentFeatures],
        count: int,
        offset: int,
        trace: PipelineTrace,
    ) -> tuple[list[Candidate], bool]:
        features = {item.content_id: item for item in pool}

        trace.enter(PipelineStage.RANK_AND_DIVERSIFY)
        ranked = diversify(
            sort_candidates(scored, features),
            features,
            self.weights.max_consecutive_same_category,
        )

        trace.enter(PipelineStage.PAGINATE)
        return paginate(ranked, count, offset)
