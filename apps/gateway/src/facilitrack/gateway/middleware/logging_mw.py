"""LoggingMiddleware

每个请求生成 request_id 并绑定到 structlog contextvars，响应头 X-Request-ID 返回。
完成日志带路由模板（/api/plans/{plan_id} 等）与耗时；
4xx 记 warning，5xx 与未处理异常记 error。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID


def route_template(request: Request) -> str | None:
    """匹配到的路由模板；未匹配（404）时为 None"""
    route = request.scope.get("route")
    return getattr(route, "path", None)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        start_time = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()

        try:
            response = await call_next(request)
        except Exception:
            await log.aerror(
                "request_failed",
                route=route_template(request),
                elapsed_ms=int((time.monotonic() - start_time) * 1000),
                exc_info=True,
            )
            raise

        fields = {
            "route": route_template(request),
            "status_code": response.status_code,
            "elapsed_ms": int((time.monotonic() - start_time) * 1000),
        }
        if response.status_code >= 500:
            await log.aerror("request_completed", **fields)
        elif response.status_code >= 400:
            await log.awarning("request_completed", **fields)
        else:
            await log.ainfo("request_completed", **fields)

        response.headers["X-Request-ID"] = request_id
        return response
