"""테스트 설정"""

import itertools
import os
from datetime import datetime, timedelta
from typing import Any, Generator, Optional

import pytest
import pytest_asyncio
from docker import from_env
from docker.errors import DockerException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from app.core.config import settings
from app.core.database import Base
from app.core.utils.datetime import UTC
from app.domains.recommendation.dependencies import (
    get_content_repository,
    get_event_store,
    get_profile_store,
)
from app.domains.recommendation.types import (
    ActionType,
    ContentFeatures,
    Engagement,
    UserAction,
)
from app.main import app
from tests.fakes import (
    InMemoryContentRepository,
    InMemoryEventStore,
    InMemoryProfileStore,
)

# 테스트 기준 시각 (모든 시간 계산은 이 값을 기준으로 함)
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _is_docker_available() -> bool:
    """로컬 환경에서 Docker 접근 가능 여부 확인"""
    if os.getenv("FORCE_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return True
    if os.getenv("SKIP_DOCKER_TESTS", "").lower() in {"1", "true"}:
        return False

    try:
        client = from_env()
        client.ping()
        return True
    except DockerException:
        return False
    except Exception:
        return False


DOCKER_AVAILABLE = _is_docker_available()


def pytest_configure(config):
    """pytest marker 등록"""
    config.addinivalue_line(
        "markers", "docker: PostgreSQL 컨테이너가 필요한 테스트"
    )


# ----------------------------------------------------------------------
# 도메인 데이터 팩토리
# ----------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_post():
    """ContentFeatures 팩토리 (기본값은 점수에 중립적인 값)"""

    def _factory(
        content_id: str,
        categories: Optional[list[str]] = None,
        tags: Optional[list[str]] = None,
        keywords: Optional[list[str]] = None,
        author: Optional[str] = "writer",
        published_at: Optional[datetime] = NOW - timedelta(days=10),
        word_count: int = 800,
        **kwargs: Any,
    ) -> ContentFeatures:
        kwargs.setdefault("engagement", Engagement())
        return ContentFeatures(
            content_id=content_id,
            title=f"Post {content_id}",
            author=author,
            published_at=published_at,
            categories=categories or [],
            tags=tags or [],
            keywords=keywords or [],
            word_count=word_count,
            **kwargs,
        )

    return _factory


@pytest.fixture
def make_action():
    """UserAction 팩토리 (ID는 순번으로 생성)"""
    counter = itertools.count(1)

    def _factory(
        action_type: ActionType,
        target_id: str,
        user_id: str = "user-1",
        created_at: datetime = NOW,
        value: Optional[float] = None,
        **kwargs: Any,
    ) -> UserAction:
        return UserAction(
            id=f"a{next(counter):04d}",
            user_id=user_id,
            action_type=action_type,
            target_id=target_id,
            value=value,
            created_at=created_at,
            **kwargs,
        )

    return _factory


# ----------------------------------------------------------------------
# 인메모리 저장소
# ----------------------------------------------------------------------


@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def content_repo() -> InMemoryContentRepository:
    return InMemoryContentRepository()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


# NOTE:
# pytest-asyncio(0.21+)는 기본적으로 테스트마다 독립적인 event loop를 생성
# session 스코프 async fixture는 이 구조와 충돌하여 ScopeMismatch 에러를 유발할 수 있음
# 이를 방지하기 위해 async fixture는 모두 function 스코프로 유지
@pytest_asyncio.fixture
async def client(event_store, content_repo, profile_store):
    """비동기 테스트 클라이언트 (인메모리 저장소 사용)"""
    app.dependency_overrides[get_event_store] = lambda: event_store
    app.dependency_overrides[get_content_repository] = lambda: content_repo
    app.dependency_overrides[get_profile_store] = lambda: profile_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def api_key_header():
    """Internal API Key 헤더"""
    return {"X-Internal-Api-Key": settings.internal_api_key}


@pytest.fixture
def user_headers(api_key_header):
    """로그인 사용자 헤더"""
    return {**api_key_header, "X-User-Id": "user-1", "X-Session-Id": "sess-1"}


# ----------------------------------------------------------------------
# PostgreSQL (Docker)
# ----------------------------------------------------------------------


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """PostgreSQL 테스트 컨테이너"""
    if not DOCKER_AVAILABLE:
        pytest.skip("Docker is not available; skipping container-based tests.")

    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def test_database_url(postgres_container: PostgresContainer) -> str:
    """테스트 데이터베이스 URL (asyncpg)"""
    return str(
        postgres_container.get_connection_url().replace(
            "postgresql+psycopg2://", "postgresql+asyncpg://"
        )
    )


@pytest_asyncio.fixture
async def db_session(test_database_url: str):
    """테스트 데이터베이스 세션 (테스트마다 스키마 재생성)"""
    engine = create_async_engine(test_database_url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    await engine.dispose()
