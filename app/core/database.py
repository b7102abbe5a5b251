from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

# 비동기 엔진 생성
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_pre_ping=True,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

# 비동기 세션 팩토리
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """SQLAlchemy 모델 베이스 클래스"""

    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 세션 의존성

    요청이 정상 종료되면 커밋하고, 예외가 나면 롤백합니다.
    배치 기록의 항목별 실패는 저장소의 SAVEPOINT에서 처리됩니다.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """데이터베이스 연결 종료"""
    await engine.dispose()
