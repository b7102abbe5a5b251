"""요청/응답 로깅 미들웨어"""

from typing import Callable, cast

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger
from app.core.middlewares.context import reset_request_id, set_request_id
from app.core.utils.time import measure_time

logger = get_logger(__name__)

# 로깅 제외 경로
EXCLUDE_PATHS = {"/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"}

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청 ID 전파, 처리 시간 측정, 요청/응답 로깅"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXCLUDE_PATHS:
            return cast(Response, await call_next(request))

        request_id, token = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        user_id = request.headers.get("X-User-Id") or "-"
        extra = {"request_id": request_id, "user_id": user_id}
        try:
            logger.info(
                f"→ {request.method} {request.url.path} | user={user_id}",
                extra=extra,
            )

            with measure_time() as timer:
                try:
                    response = await call_next(request)
                except Exception as e:
                    logger.error(
                        f"✗ {request.method} {request.url.path} "
                        f"| Error: {e} | Time: {timer['elapsed_ms']:.2f}ms",
                        extra=extra,
                    )
                    raise

            process_time = timer["elapsed_ms"]
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

            ok = response.status_code < 400
            log_method = logger.info if ok else logger.warning
            log_method(
                f"{'✓' if ok else '✗'} {request.method} {request.url.path} "
                f"| Status: {response.status_code} | Time: {process_time:.2f}ms",
                extra=extra,
            )
            return cast(Response, response)
        finally:
            reset_request_id(token)
