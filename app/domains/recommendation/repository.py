"""Recommendation 도메인 리포지토리

이벤트 저장소, 콘텐츠 특징 저장소, 프로필 저장소의 PostgreSQL 구현입니다.
모든 작업은 SAVEPOINT 안에서 실행되며, DB 오류(SQLAlchemyError)는 해당
SAVEPOINT만 롤백한 뒤 UpstreamException으로 변환됩니다. 배치 추천처럼 한
요청 세션을 여러 작업이 공유해도 실패한 작업이 이후 작업의 트랜잭션을
깨뜨리지 않습니다.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, cast

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.core.middlewares.context import get_request_id
from app.domains.recommendation.exceptions import UpstreamException
from app.domains.recommendation.models import (
    Post,
    PostStatus,
    UserActionRecord,
    UserProfileRecord,
)
from app.domains.recommendation.ports import (
    ContentFeatureRepository,
    ContentFilter,
    EngagementField,
    EventStore,
    ProfileStore,
)
from app.domains.recommendation.types import (
    ActionType,
    ContentFeatures,
    Engagement,
    ProfilePreferences,
    ProfileStats,
    UserAction,
    UserProfile,
)

logger = get_logger(__name__)

ENGAGEMENT_FIELDS = frozenset({"views", "likes", "collects", "comments", "shares"})


@asynccontextmanager
async def _upstream(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """SAVEPOINT 안에서 실행하고 DB 오류를 UpstreamException으로 변환

    취소(시간 초과)로 빠져나가는 경우에도 SAVEPOINT는 롤백됩니다.
    """
    try:
        async with session.begin_nested():
            yield
    except SQLAlchemyError as e:
        logger.error(
            f"Storage operation failed: {operation}: {e}",
            extra={"request_id": get_request_id(), "operation": operation},
        )
        raise UpstreamException(operation) from e


def _to_action(record: UserActionRecord) -> UserAction:
    return UserAction(
        id=record.id,
        user_id=record.user_id,
        action_type=ActionType(record.action_type),
        target_id=record.target_id,
        target_type=record.target_type,
        value=record.value,
        context=dict(record.context or {}),
        created_at=record.created_at,
    )


def _to_features(post: Post) -> ContentFeatures:
    return ContentFeatures(
        content_id=post.id,
        title=post.title,
        author=post.author,
        published_at=post.published_at,
        categories=post.categories or [],
        tags=post.tags or [],
        keywords=post.keywords or [],
        summary=post.summary,
        word_count=post.word_count,
        read_time=post.read_time,
        quality_score=post.quality_score,
        engagement=Engagement(
            views=post.views,
            likes=post.likes,
            collects=post.collects,
            comments=post.comments,
            shares=post.shares,
            avg_read_ratio=post.avg_read_ratio,
        ),
        updated_at=post.updated_at,
    )


def _to_profile(record: UserProfileRecord) -> UserProfile:
    return UserProfile(
        user_id=record.user_id,
        interests=dict(record.interests or {}),
        preferences=ProfilePreferences.model_validate(record.preferences or {}),
        stats=ProfileStats.model_validate(record.stats or {}),
        segments=list(record.segments or []),
        updated_at=record.updated_at,
    )


class SQLAlchemyEventStore(EventStore):
    """user_actions 테이블 기반 이벤트 저장소"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, action: UserAction) -> None:
        """행동 추가 (flush까지 수행하여 중복 ID 등은 즉시 실패)"""
        record = UserActionRecord(
            id=action.id,
            user_id=action.user_id,
            action_type=action.action_type.value,
            target_id=action.target_id,
            target_type=action.target_type,
            value=action.value,
            context=dict(action.context),
            created_at=action.created_at,
        )
        async with _upstream(self.session, "event_store.append"):
            self.session.add(record)
            await self.session.flush()

    async def query(
        self,
        user_id: str,
        limit: int,
        offset: int = 0,
        action_type: Optional[ActionType] = None,
    ) -> list[UserAction]:
        stmt = select(UserActionRecord).where(
            UserActionRecord.user_id == user_id
        )
        if action_type is not None:
            stmt = stmt.where(UserActionRecord.action_type == action_type.value)
        stmt = (
            stmt.order_by(
                UserActionRecord.created_at.desc(), UserActionRecord.id.desc()
            )
            .offset(offset)
            .limit(limit)
        )

        async with _upstream(self.session, "event_store.query"):
            result = await self.session.execute(stmt)
            records = result.scalars().all()
        return [_to_action(record) for record in records]

    async def count(
        self, user_id: str, action_type: Optional[ActionType] = None
    ) -> int:
        stmt = select(func.count(UserActionRecord.id)).where(
            UserActionRecord.user_id == user_id
        )
        if action_type is not None:
            stmt = stmt.where(UserActionRecord.action_type == action_type.value)

        async with _upstream(self.session, "event_store.count"):
            result = await self.session.execute(stmt)
            total = result.scalar_one()
        return int(total)

    async def delete_by_user(self, user_id: str) -> int:
        stmt = (
            delete(UserActionRecord)
            .where(UserActionRecord.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        async with _upstream(self.session, "event_store.delete_by_user"):
            result = await self.session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0)


class SQLAlchemyContentRepository(ContentFeatureRepository):
    """posts 테이블 기반 콘텐츠 특징 저장소"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, content_id: str) -> Optional[ContentFeatures]:
        stmt = (
            select(Post)
            .where(Post.id == content_id)
            .execution_options(populate_existing=True)
        )
        async with _upstream(self.session, "content_repository.get"):
            result = await self.session.execute(stmt)
            post = cast(Optional[Post], result.scalar_one_or_none())
        return _to_features(post) if post else None

    async def get_many(
        self, content_ids: Iterable[str]
    ) -> dict[str, ContentFeatures]:
        ids = sorted(set(content_ids))
        if not ids:
            return {}

        stmt = select(Post).where(Post.id.in_(ids))
        async with _upstream(self.session, "content_repository.get_many"):
            result = await self.session.execute(stmt)
            posts = result.scalars().all()
        return {post.id: _to_features(post) for post in posts}

    async def increment_engagement(
        self, content_id: str, field_name: EngagementField, delta: int = 1
    ) -> None:
        if field_name not in ENGAGEMENT_FIELDS:
            raise ValueError(f"Unknown engagement field: {field_name}")

        column = getattr(Post, field_name)
        stmt = (
            update(Post)
            .where(Post.id == content_id)
            .values({field_name: func.greatest(column + delta, 0)})
            .execution_options(synchronize_session=False)
        )
        async with _upstream(
            self.session, "content_repository.increment_engagement"
        ):
            await self.session.execute(stmt)

    async def list(
        self, content_filter: ContentFilter, limit: int
    ) -> list[ContentFeatures]:
        stmt = select(Post)
        if content_filter.published_only:
            stmt = stmt.where(Post.status == PostStatus.PUBLISHED.value)
        if content_filter.exclude_ids:
            stmt = stmt.where(Post.id.not_in(sorted(content_filter.exclude_ids)))
        if content_filter.exclude_author is not None:
            stmt = stmt.where(
                or_(
                    Post.author.is_(None),
                    Post.author != content_filter.exclude_author,
                )
            )
        stmt = stmt.order_by(
            Post.published_at.desc().nulls_last(), Post.id
        ).limit(limit)

        async with _upstream(self.session, "content_repository.list"):
            result = await self.session.execute(stmt)
            posts = result.scalars().all()
        return [_to_features(post) for post in posts]


class SQLAlchemyProfileStore(ProfileStore):
    """user_profiles 테이블 기반 프로필 저장소"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, user_id: str) -> Optional[UserProfile]:
        stmt = (
            select(UserProfileRecord)
            .where(UserProfileRecord.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        async with _upstream(self.session, "profile_store.get"):
            result = await self.session.execute(stmt)
            record = cast(Optional[UserProfileRecord], result.scalar_one_or_none())
        return _to_profile(record) if record else None

    async def put(self, profile: UserProfile) -> None:
        values = {
            "user_id": profile.user_id,
            "interests": dict(profile.interests),
            "preferences": profile.preferences.model_dump(mode="json"),
            "stats": profile.stats.model_dump(mode="json"),
            "segments": list(profile.segments),
            "updated_at": profile.updated_at,
        }
        insert_stmt = pg_insert(UserProfileRecord).values(**values)
        stmt = insert_stmt.on_conflict_do_update(
            index_elements=[UserProfileRecord.user_id],
            set_={
                key: insert_stmt.excluded[key]
                for key in values
                if key != "user_id"
            },
        )
        async with _upstream(self.session, "profile_store.put"):
            await self.session.execute(stmt)

    async def delete(self, user_id: str) -> bool:
        stmt = (
            delete(UserProfileRecord)
            .where(UserProfileRecord.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        async with _upstream(self.session, "profile_store.delete"):
            result = await self.session.execute(stmt)
        return bool(getattr(result, "rowcount", 0))
