"""마이그레이션 자동 실행 유틸리티

서버 시작 시 Alembic 리비전을 확인하고, auto_migrate가 켜져 있으면
posts / user_actions / user_profiles 스키마를 head까지 올립니다.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class MigrationStatus:
    """현재/최신 리비전"""

    current: Optional[str]
    head: Optional[str]

    @property
    def is_up_to_date(self) -> bool:
        return self.current is not None and self.current == self.head


def sync_database_url(url: Optional[str] = None) -> str:
    """asyncpg URL → psycopg2 URL (alembic은 동기 연결 사용)"""
    url = url or settings.database_url
    return url.replace("+asyncpg", "+psycopg2")


def get_alembic_config() -> Config:
    """Alembic 설정 객체 반환"""
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", sync_database_url())
    return config


def get_current_revision() -> Optional[str]:
    """데이터베이스에 기록된 리비전 (조회 실패 시 None)"""
    engine = create_engine(sync_database_url())
    try:
        with engine.connect() as conn:
            rev = MigrationContext.configure(conn).get_current_revision()
            return str(rev) if rev else None
    except SQLAlchemyError as e:
        logger.warning(f"현재 마이그레이션 버전 조회 실패: {e}")
        return None
    finally:
        engine.dispose()


def get_head_revision() -> Optional[str]:
    head = ScriptDirectory.from_config(get_alembic_config()).get_current_head()
    return str(head) if head else None


def check_migration_status() -> MigrationStatus:
    return MigrationStatus(current=get_current_revision(), head=get_head_revision())


def run_migrations(status: Optional[MigrationStatus] = None) -> bool:
    """head까지 업그레이드

    Returns:
        bool: 성공 여부
    """
    status = status or check_migration_status()
    if status.is_up_to_date:
        logger.info(f"✅ 마이그레이션이 최신 상태입니다 (revision: {status.current})")
        return True

    logger.info(f"🔄 마이그레이션 업데이트 중... ({status.current} → {status.head})")
    try:
        command.upgrade(get_alembic_config(), "head")
    except Exception as e:
        logger.error(f"❌ 마이그레이션 실행 실패: {e}")
        return False

    logger.info(f"✅ 마이그레이션 완료 (revision: {status.head})")
    return True


def run_migrations_on_startup(auto_migrate: bool = True) -> None:
    """서버 시작 시 마이그레이션 확인 및 실행

    프로덕션에서는 확인/업그레이드 실패 시 서버 시작을 중단합니다.
    """
    try:
        status = check_migration_status()
        if status.is_up_to_date:
            logger.info(f"✅ 마이그레이션 상태: 최신 (revision: {status.current})")
            return

        logger.warning(
            f"⚠️ 마이그레이션이 최신 상태가 아닙니다. "
            f"(현재: {status.current}, 최신: {status.head})"
        )
        if auto_migrate and not run_migrations(status) and settings.is_production:
            raise RuntimeError("프로덕션 환경에서 마이그레이션 실패")

    except Exception as e:
        logger.error(f"❌ 마이그레이션 상태 확인 실패: {e}")
        if settings.is_production:
            raise RuntimeError("프로덕션 환경에서 마이그레이션 확인 실패") from e
        logger.warning("⚠️ 개발 환경이므로 서버를 계속 시작합니다.")
