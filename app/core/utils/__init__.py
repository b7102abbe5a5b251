"""유틸리티 모듈"""

from app.core.utils.datetime import (
    UTC,
    days_before,
    days_between,
    ensure_utc,
    now_utc,
)
from app.core.utils.time import measure_time

__all__ = [
    # datetime
    "UTC",
    "now_utc",
    "ensure_utc",
    "days_between",
    "days_before",
    # time
    "measure_time",
]
