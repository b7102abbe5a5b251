"""날짜/시간 유틸리티"""

from datetime import datetime, timedelta, timezone

UTC = timezone.utc
SECONDS_PER_DAY = 86400.0


def now_utc() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """timezone 정보가 없는 datetime은 UTC로 간주하여 변환"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def days_between(earlier: datetime, later: datetime) -> float:
    """두 시점 사이의 경과 일수 (소수점 포함, 음수 가능)"""
    delta = ensure_utc(later) - ensure_utc(earlier)
    return delta.total_seconds() / SECONDS_PER_DAY


def days_before(dt: datetime, days: float) -> datetime:
    """기준 시점으로부터 n일 전"""
    return ensure_utc(dt) - timedelta(days=days)
