"""create_recommendation_tables

Revision ID: 7c2e41a9d5b3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "7c2e41a9d5b3"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def upgrade() -> None:
    """업그레이드 마이그레이션: posts, user_actions, user_profiles 테이블 생성"""
    op.create_table(
        "posts",
        sa.Column(
            "id",
            sa.String(length=64),
            nullable=False,
            comment="게시글 ID (블로그 CMS에서 제공)",
        ),
        sa.Column(
            "title",
            sa.String(length=500),
            nullable=False,
            server_default="",
            comment="제목",
        ),
        sa.Column("author", sa.String(length=100), nullable=True, comment="작성자"),
        sa.Column(
            "status",
            sa.String(length=20),
            nullable=False,
            server_default="published",
            comment="게시 상태 (draft/published)",
        ),
        sa.Column(
            "published_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="발행 일시",
        ),
        sa.Column(
            "categories",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
            comment="카테고리 목록",
        ),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
            comment="태그 목록",
        ),
        sa.Column(
            "keywords",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
            comment="키워드 목록",
        ),
        sa.Column("summary", sa.Text(), nullable=True, comment="요약"),
        sa.Column(
            "word_count",
            sa.Integer(),
            nullable=False,
            server_default="0",
            comment="단어 수",
        ),
        sa.Column(
            "read_time",
            sa.Integer(),
            nullable=True,
            comment="예상 읽기 시간(분), 없으면 단어 수로 계산",
        ),
        sa.Column(
            "quality_score",
            sa.Float(),
            nullable=True,
            comment="품질 점수 (0~1, 편집자 지정)",
        ),
        _counter("views"),
        _counter("likes"),
        _counter("collects"),
        _counter("comments"),
        _counter("shares"),
        sa.Column(
            "avg_read_ratio",
            sa.Float(),
            nullable=False,
            server_default="0",
            comment="평균 완독 비율 (0~1)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="생성 일시",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="수정 일시",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_posts_status_published_at", "posts", ["status", "published_at"]
    )
    op.create_index("ix_posts_author", "posts", ["author"])

    op.create_table(
        "user_actions",
        sa.Column(
            "id", sa.String(length=36), nullable=False, comment="행동 ID (UUID)"
        ),
        sa.Column(
            "user_id",
            sa.String(length=128),
            nullable=False,
            comment="사용자 ID (익명은 anon:<session_id>)",
        ),
        sa.Column(
            "action_type", sa.String(length=20), nullable=False, comment="행동 유형"
        ),
        sa.Column(
            "target_id", sa.String(length=64), nullable=False, comment="대상 ID"
        ),
        sa.Column(
            "target_type",
            sa.String(length=20),
            nullable=False,
            server_default="post",
            comment="대상 유형",
        ),
        sa.Column(
            "value",
            sa.Float(),
            nullable=True,
            comment="수치 값 (read_time은 초 단위)",
        ),
        sa.Column(
            "context",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
            comment="session_id, source, device_type 등",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
            comment="발생 일시",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_actions_user_id_created_at",
        "user_actions",
        ["user_id", "created_at"],
    )
    op.create_index("ix_user_actions_target_id", "user_actions", ["target_id"])

    op.create_table(
        "user_profiles",
        sa.Column(
            "user_id", sa.String(length=128), nullable=False, comment="사용자 ID"
        ),
        sa.Column(
            "interests",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
            comment="관심사 가중치 (합계 1)",
        ),
        sa.Column(
            "preferences",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "stats",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "segments",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="프로필 기준 시점",
        ),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    """다운그레이드 마이그레이션: 추천 테이블 삭제"""
    op.drop_table("user_profiles")
    op.drop_index("ix_user_actions_target_id", table_name="user_actions")
    op.drop_index("ix_user_actions_user_id_created_at", table_name="user_actions")
    op.drop_table("user_actions")
    op.drop_index("ix_posts_author", table_name="posts")
    op.drop_index("ix_posts_status_published_at", table_name="posts")
    op.drop_table("posts")
