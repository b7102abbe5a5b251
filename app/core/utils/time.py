"""처리 시간 측정"""

import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def measure_time() -> Generator[dict[str, float], None, None]:
    """블록 실행 시간을 밀리초로 측정

    예외가 나도 elapsed_ms는 채워집니다.

        with measure_time() as timer:
            ...
        timer["elapsed_ms"]
    """
    timer = {"elapsed_ms": 0.0}
    start = time.perf_counter()
    try:
        yield timer
    finally:
        timer["elapsed_ms"] = (time.perf_counter() - start) * 1000
