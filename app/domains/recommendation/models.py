"""추천 도메인 모델 정의

- posts: 블로그 글의 추천용 특징과 참여 카운터
- user_actions: 사용자 행동 이벤트 로그 (append-only)
- user_profiles: 사용자별 관심사 프로필 캐시
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    ARRAY,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class PostStatus(str, Enum):
    """게시 상태"""

    DRAFT = "draft"
    PUBLISHED = "published"


class Post(Base):
    """블로그 글 (추천 후보)"""

    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="게시글 ID (블로그 CMS에서 제공)",
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
        server_default="",
        comment="제목",
    )
    author: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="작성자",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PostStatus.PUBLISHED.value,
        server_default="published",
        comment="게시 상태 (draft/published)",
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="발행 일시",
    )

    # 분류
    categories: Mapped[list[str]] = mapped_column(
        ARRAY(String),
        nullable=False,
        default=list,
        server_default="{}",
        comment="카테고리 목록",
    )
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String),
        nullable=False,
        default=list,
        server_default="{}",
        comment="태그 목록",
    )
    keywords: Mapped[list[str]] = mapped_column(
        ARRAY(String),
        nullable=False,
        default=list,
        server_default="{}",
        comment="키워드 목록",
    )
    summary: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="요약",
    )
    word_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="단어 수",
    )
    read_time: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="예상 읽기 시간(분), 없으면 단어 수로 계산",
    )
    quality_score: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="품질 점수 (0~1, 편집자 지정)",
    )

    # 참여 카운터
    views: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    likes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    collects: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    comments: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    shares: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    avg_read_ratio: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default="0",
        comment="평균 완독 비율 (0~1)",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="생성 일시",
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
        comment="수정 일시",
    )

    __table_args__ = (
        Index("ix_posts_status_published_at", "status", "published_at"),
        Index("ix_posts_author", "author"),
    )

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, status={self.status}, "
            f"published_at={self.published_at})>"
        )


class UserActionRecord(Base):
    """사용자 행동 이벤트 (수정하지 않음)"""

    __tablename__ = "user_actions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="행동 ID (UUID)",
    )
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="사용자 ID (익명은 anon:<session_id>)",
    )
    action_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="행동 유형",
    )
    target_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="대상 ID",
    )
    target_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="post",
        server_default="post",
        comment="대상 유형",
    )
    value: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment="수치 값 (read_time은 초 단위)",
    )
    context: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
        comment="session_id, source, device_type 등",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="발생 일시",
    )

    __table_args__ = (
        Index("ix_user_actions_user_id_created_at", "user_id", "created_at"),
        Index("ix_user_actions_target_id", "target_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<UserActionRecord(id={self.id}, user_id={self.user_id}, "
            f"action_type={self.action_type}, target_id={self.target_id})>"
        )


class UserProfileRecord(Base):
    """사용자 프로필 캐시 (재구성 시 덮어씀)"""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        comment="사용자 ID",
    )
    interests: Mapped[dict[str, float]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
        comment="관심사 가중치 (합계 1)",
    )
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
    )
    stats: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default="{}",
    )
    segments: Mapped[list[str]] = mapped_column(
        ARRAY(String),
        nullable=False,
        default=list,
        server_default="{}",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="프로필 기준 시점",
    )

    def __repr__(self) -> str:
        return (
            f"<UserProfileRecord(user_id={self.user_id}, "
            f"segments={self.segments}, updated_at={self.updated_at})>"
        )
