"""Recommendation 도메인 의존성

요청마다 DB 세션으로 저장소를 만들고, 엔진/기록기/서비스에 주입합니다.
테스트에서는 get_event_store 등을 app.dependency_overrides로 교체합니다.
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.dependencies import get_current_user_id
from app.domains.recommendation.engine import RecommendationEngine
from app.domains.recommendation.exceptions import AuthRequiredException
from app.domains.recommendation.ports import (
    ContentFeatureRepository,
    EventStore,
    ProfileStore,
)
from app.domains.recommendation.recorder import ActionRecorder
from app.domains.recommendation.repository import (
    SQLAlchemyContentRepository,
    SQLAlchemyEventStore,
    SQLAlchemyProfileStore,
)
from app.domains.recommendation.service import ProfileService
from app.domains.recommendation.weights import ScoringWeights, get_scoring_weights


def get_event_store(session: AsyncSession = Depends(get_db)) -> EventStore:
    return SQLAlchemyEventStore(session)


def get_content_repository(
    session: AsyncSession = Depends(get_db),
) -> ContentFeatureRepository:
    return SQLAlchemyContentRepository(session)


def get_profile_store(session: AsyncSession = Depends(get_db)) -> ProfileStore:
    return SQLAlchemyProfileStore(session)


def get_weights() -> ScoringWeights:
    return get_scoring_weights()


def get_recommendation_engine(
    events: EventStore = Depends(get_event_store),
    contents: ContentFeatureRepository = Depends(get_content_repository),
    profiles: ProfileStore = Depends(get_profile_store),
    weights: ScoringWeights = Depends(get_weights),
    settings: Settings = Depends(get_settings),
) -> RecommendationEngine:
    """RecommendationEngine 의존성"""
    return RecommendationEngine(
        events,
        contents,
        profiles,
        weights,
        candidate_pool_size=settings.candidate_pool_size,
        seen_window=settings.seen_window,
        exclude_seen=settings.exclude_seen,
        timeout_seconds=settings.recommendation_timeout_seconds,
        max_batch_scenarios=settings.max_batch_scenarios,
        include_debug=settings.debug_trace_enabled,
    )


def get_action_recorder(
    events: EventStore = Depends(get_event_store),
    contents: ContentFeatureRepository = Depends(get_content_repository),
    settings: Settings = Depends(get_settings),
) -> ActionRecorder:
    """ActionRecorder 의존성"""
    return ActionRecorder(
        events,
        contents,
        allow_anonymous=settings.allow_anonymous_tracking,
        max_batch_actions=settings.max_batch_actions,
    )


def get_profile_service(
    events: EventStore = Depends(get_event_store),
    contents: ContentFeatureRepository = Depends(get_content_repository),
    profiles: ProfileStore = Depends(get_profile_store),
    weights: ScoringWeights = Depends(get_weights),
    settings: Settings = Depends(get_settings),
) -> ProfileService:
    """ProfileService 의존성"""
    return ProfileService(
        events,
        contents,
        profiles,
        weights,
        action_window=settings.profile_action_window,
    )


async def require_user_id(
    user_id: Optional[str] = Depends(get_current_user_id),
) -> str:
    """로그인 사용자 ID (없으면 AUTH_REQUIRED)"""
    if not user_id:
        raise AuthRequiredException()
    return user_id
