"""추천 엔진이 의존하는 저장소 인터페이스

엔진은 범용 DB 클라이언트 대신 아래 세 가지 좁은 인터페이스만 사용합니다.
PostgreSQL 구현은 repository.py, 테스트용 인메모리 구현은 tests/fakes.py에 있습니다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional

from app.domains.recommendation.types import (
    ActionType,
    ContentFeatures,
    UserAction,
    UserProfile,
)

EngagementField = Literal["views", "likes", "collects", "comments", "shares"]


@dataclass(frozen=True)
class ContentFilter:
    """후보 콘텐츠 조회 조건"""

    published_only: bool = True
    exclude_ids: frozenset[str] = field(default_factory=frozenset)
    exclude_author: Optional[str] = None


class EventStore(ABC):
    """행동 이벤트 저장소 (append-only)"""

    @abstractmethod
    async def append(self, action: UserAction) -> None:
        """행동 이벤트 추가"""
        ...

    @abstractmethod
    async def query(
        self,
        user_id: str,
        limit: int,
        offset: int = 0,
        action_type: Optional[ActionType] = None,
    ) -> list[UserAction]:
        """사용자 행동을 최신순으로 조회"""
        ...

    @abstractmethod
    async def count(
        self, user_id: str, action_type: Optional[ActionType] = None
    ) -> int:
        """사용자 행동 수"""
        ...

    @abstractmethod
    async def delete_by_user(self, user_id: str) -> int:
        """사용자 행동 전체 삭제, 삭제 건수 반환"""
        ...


class ContentFeatureRepository(ABC):
    """콘텐츠 특징 조회"""

    @abstractmethod
    async def get(self, content_id: str) -> Optional[ContentFeatures]:
        ...

    @abstractmethod
    async def get_many(
        self, content_ids: Iterable[str]
    ) -> dict[str, ContentFeatures]:
        """존재하는 콘텐츠만 content_id → 특징 매핑으로 반환"""
        ...

    @abstractmethod
    async def list(
        self, content_filter: ContentFilter, limit: int
    ) -> list[ContentFeatures]:
        """후보 풀 조회 (최신 발행순, 최대 limit개)"""
        ...

    @abstractmethod
    async def increment_engagement(
        self, content_id: str, field_name: EngagementField, delta: int = 1
    ) -> None:
        """참여 카운터 증감 (0 미만으로 내려가지 않음)"""
        ...


class ProfileStore(ABC):
    """사용자 프로필 저장소"""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    async def put(self, profile: UserProfile) -> None:
        """프로필 저장 (마지막 쓰기가 우선)"""
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        ...
