"""
요청 로깅 미들웨어
- 메서드, 경로, 상태 코드, 처리 시간 기록
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("learnloop.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    """모든 요청의 처리 결과를 로그로 남김"""

    def __init__(self, app, excluded_paths: tuple[str, ...] = ("/health",)):
        super().__init__(app)
        self.excluded_paths = excluded_paths

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"
        if request.url.path not in self.excluded_paths:
            client_ip = request.client.host if request.client else "unknown"
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({elapsed_ms:.1f}ms, {client_ip})"
            )
        return response
