"""시간 유틸리티 테스트"""

import time
from datetime import datetime, timedelta, timezone

import pytest

from app.core.utils.datetime import (
    UTC,
    days_before,
    days_between,
    ensure_utc,
)
from app.core.utils.time import measure_time


def test_measure_time_context_manager():
    """measure_time 컨텍스트 매니저 테스트"""
    with measure_time() as timer:
        # 초기값은 0
        assert timer["elapsed_ms"] == 0.0
        time.sleep(0.03)  # 30ms 대기

    # 컨텍스트 종료 후 경과 시간이 기록됨
    assert timer["elapsed_ms"] >= 30


def test_measure_time_with_exception():
    """예외 발생 시에도 시간이 측정되는지 테스트"""
    with pytest.raises(ValueError):
        with measure_time() as timer:
            time.sleep(0.02)  # 20ms 대기
            raise ValueError("Test error")

    assert timer["elapsed_ms"] >= 20


def test_ensure_utc_assumes_naive_is_utc():
    naive = datetime(2026, 1, 1, 9, 0)

    result = ensure_utc(naive)

    assert result.tzinfo == UTC
    assert result.hour == 9


def test_ensure_utc_converts_other_timezone():
    kst = timezone(timedelta(hours=9))
    aware = datetime(2026, 1, 1, 9, 0, tzinfo=kst)

    assert ensure_utc(aware).hour == 0


def test_days_between_fractional_and_signed():
    start = datetime(2026, 1, 1, tzinfo=UTC)

    assert days_between(start, start + timedelta(hours=36)) == pytest.approx(1.5)
    assert days_between(start + timedelta(days=2), start) == pytest.approx(-2.0)


def test_days_before():
    base = datetime(2026, 1, 8, tzinfo=UTC)

    assert days_before(base, 7) == datetime(2026, 1, 1, tzinfo=UTC)
