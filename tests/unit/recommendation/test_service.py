"""ProfileService 단위 테스트"""

from datetime import timedelta

import pytest
import pytest_asyncio

from app.domains.recommendation.exceptions import InvalidActionTypeException
from app.domains.recommendation.service import ProfileService
from app.domains.recommendation.types import ActionType
from tests.fakes import InMemoryContentRepository


@pytest.fixture
def contents(make_post):
    return InMemoryContentRepository(
        [
            make_post("p1", categories=["tech"]),
            make_post("p2", categories=["life"]),
        ]
    )


@pytest.fixture
def service(event_store, contents, profile_store):
    return ProfileService(event_store, contents, profile_store)


@pytest_asyncio.fixture
async def seeded(event_store, make_action, now):
    for minutes, (action_type, target) in enumerate(
        [
            (ActionType.VIEW, "p1"),
            (ActionType.LIKE, "p1"),
            (ActionType.VIEW, "p2"),
            (ActionType.COLLECT, "p1"),
        ]
    ):
        await event_store.append(
            make_action(
                action_type, target, created_at=now - timedelta(minutes=minutes)
            )
        )
    return event_store


class TestGetProfile:
    """프로필 조회 테스트"""

    @pytest.mark.asyncio
    async def test_no_actions_no_profile(self, service):
        assert await service.get_profile("user-1") is None

    @pytest.mark.asyncio
    async def test_builds_on_the_fly_without_saving(
        self, service, profile_store, event_store, make_action
    ):
        await event_store.append(make_action(ActionType.LIKE, "p1"))

        profile = await service.get_profile("user-1")

        assert profile is not None
        assert profile.interests == pytest.approx({"tech": 1.0})
        assert profile_store.put_calls == 0

    @pytest.mark.asyncio
    async def test_stored_profile_is_preferred(
        self, service, profile_store, event_store, make_action
    ):
        # Given: 저장 후 새 행동이 추가됨
        await event_store.append(make_action(ActionType.LIKE, "p1"))
        await service.refresh_profile("user-1")
        await event_store.append(make_action(ActionType.LIKE, "p2"))

        # When
        profile = await service.get_profile("user-1")

        # Then: 저장된 프로필 그대로 반환
        assert set(profile.interests) == {"tech"}


class TestRefreshProfile:
    """프로필 재구성 테스트"""

    @pytest.mark.asyncio
    async def test_refresh_persists_profile(self, service, profile_store, seeded):
        profile, updated = await service.refresh_profile("user-1")

        assert updated is True
        assert profile_store.profiles["user-1"] == profile
        assert profile.stats.total_actions == 4
        assert profile.interests["tech"] > profile.interests["life"]

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, service, profile_store, seeded):
        """같은 이력이면 같은 프로필"""
        first, _ = await service.refresh_profile("user-1")
        second, _ = await service.refresh_profile("user-1")

        assert first.interests == second.interests
        assert first.segments == second.segments
        assert profile_store.put_calls == 2

    @pytest.mark.asyncio
    async def test_refresh_without_actions(self, service, profile_store):
        profile, updated = await service.refresh_profile("user-1")

        assert profile is None
        assert updated is False
        assert profile_store.put_calls == 0


class TestDeleteProfile:
    """프로필 삭제 테스트"""

    @pytest.mark.asyncio
    async def test_delete_profile_only(self, service, profile_store, seeded):
        await service.refresh_profile("user-1")

        result = await service.delete_profile("user-1")

        assert result == {"profile_deleted": True, "actions_deleted": 0}
        assert "user-1" not in profile_store.profiles
        assert len(seeded.actions) == 4

    @pytest.mark.asyncio
    async def test_delete_with_actions(self, service, seeded, make_action):
        await seeded.append(make_action(ActionType.VIEW, "p1", user_id="user-2"))

        result = await service.delete_profile("user-1", delete_actions=True)

        assert result == {"profile_deleted": False, "actions_deleted": 4}
        assert [a.user_id for a in seeded.actions] == ["user-2"]


class TestListActions:
    """행동 이력 조회 테스트"""

    @pytest.mark.asyncio
    async def test_newest_first_with_total(self, service, seeded):
        history = await service.list_actions("user-1", limit=3)

        assert [a.action_type for a in history.actions] == [
            ActionType.VIEW,
            ActionType.LIKE,
            ActionType.VIEW,
        ]
        assert history.total == 4
        assert history.has_more is True

    @pytest.mark.asyncio
    async def test_last_page(self, service, seeded):
        history = await service.list_actions("user-1", limit=3, offset=3)

        assert len(history.actions) == 1
        assert history.has_more is False

    @pytest.mark.asyncio
    async def test_filter_by_type(self, service, seeded):
        history = await service.list_actions("user-1", action_type="view")

        assert history.total == 2
        assert {a.target_id for a in history.actions} == {"p1", "p2"}

    @pytest.mark.asyncio
    async def test_invalid_type_filter(self, service):
        with pytest.raises(InvalidActionTypeException):
            await service.list_actions("user-1", action_type="purchase")
