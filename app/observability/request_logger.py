"""
请求日志中间件：记录每个 HTTP 请求的开始/结束，并注入 trace_id

调用方可通过 X-Trace-ID 请求头透传链路 ID，未传时服务端生成。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.observability.context import new_trace_id, trace_id_var

log = structlog.get_logger()

TRACE_HEADER = "X-Trace-ID"
DURATION_HEADER = "X-Duration-Ms"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """HTTP 请求日志 + trace_id 上下文注入"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get(TRACE_HEADER) or new_trace_id()
        trace_id_var.set(trace_id)

        # 绑定到 structlog 上下文，处理器里的日志自动带 trace_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)

        start = time.monotonic()
        log.info("请求开始", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "请求处理异常",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            raise

        duration_ms = int((time.monotonic() - start) * 1000)
        log.info(
            "请求结束",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers[TRACE_HEADER] = trace_id
        response.headers[DURATION_HEADER] = str(duration_ms)
        return response
