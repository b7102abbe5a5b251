"""Recommendation 도메인 서비스

프로필 조회/재구성/삭제와 행동 이력 조회를 담당합니다.
"""

from typing import Optional

from app.core.logging import get_logger
from app.core.middlewares.context import get_request_id
from app.domains.recommendation.ports import (
    ContentFeatureRepository,
    EventStore,
    ProfileStore,
)
from app.domains.recommendation.profile_builder import ProfileBuilder
from app.domains.recommendation.recorder import parse_action_type
from app.domains.recommendation.types import ActionHistory, UserProfile
from app.domains.recommendation.weights import ScoringWeights

logger = get_logger(__name__)


class ProfileService:
    """프로필 서비스"""

    def __init__(
        self,
        events: EventStore,
        contents: ContentFeatureRepository,
        profiles: ProfileStore,
        weights: Optional[ScoringWeights] = None,
        *,
        action_window: int = 1000,
    ):
        self.events = events
        self.contents = contents
        self.profiles = profiles
        self.builder = ProfileBuilder(weights)
        self.action_window = action_window

    async def build_profile(self, user_id: str) -> Optional[UserProfile]:
        """최근 행동 윈도로 프로필 구성 (저장하지 않음)

        Returns:
            UserProfile, 행동이 없으면 None
        """
        actions = await self.events.query(user_id, limit=self.action_window)
        if not actions:
            return None

        target_ids = {
            action.target_id for action in actions if action.target_type == "post"
        }
        content = await self.contents.get_many(target_ids)
        return self.builder.build(user_id, actions, content)

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """저장된 프로필 조회, 없으면 즉석 구성 (저장하지 않음)"""
        stored = await self.profiles.get(user_id)
        if stored is not None:
            return stored
        return await self.build_profile(user_id)

    async def refresh_profile(
        self, user_id: str
    ) -> tuple[Optional[UserProfile], bool]:
        """프로필 재구성 후 저장 (기존 프로필은 덮어씀)

        Returns:
            (프로필, 갱신 여부) 튜플. 행동이 없으면 (None, False)
        """
        profile = await self.build_profile(user_id)
        if profile is None:
            logger.info(
                f"Profile refresh skipped (no actions): user={user_id}",
                extra={"request_id": get_request_id(), "user_id": user_id},
            )
            return None, False

        await self.profiles.put(profile)
        logger.info(
            f"Profile refreshed: user={user_id} "
            f"interests={len(profile.interests)} segments={profile.segments}",
            extra={"request_id": get_request_id(), "user_id": user_id},
        )
        return profile, True

    async def delete_profile(
        self, user_id: str, delete_actions: bool = False
    ) -> dict[str, int | bool]:
        """프로필 삭제 (선택적으로 행동 이력도 삭제)"""
        profile_deleted = await self.profiles.delete(user_id)
        actions_deleted = 0
        if delete_actions:
            actions_deleted = await self.events.delete_by_user(user_id)

        logger.info(
            f"Profile deleted: user={user_id} profile={profile_deleted} "
            f"actions={actions_deleted}",
            extra={"request_id": get_request_id(), "user_id": user_id},
        )
        return {
            "profile_deleted": profile_deleted,
            "actions_deleted": actions_deleted,
        }

    async def list_actions(
        self,
        user_id: str,
        action_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ActionHistory:
        """행동 이력 조회 (최신순)

        Raises:
            InvalidActionTypeException: 지원하지 않는 action_type 필터
        """
        parsed = parse_action_type(action_type) if action_type else None
        actions = await self.events.query(
            user_id, limit=limit, offset=offset, action_type=parsed
        )
        total = await self.events.count(user_id, action_type=parsed)
        return ActionHistory(
            actions=actions,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(actions) < total,
        )
