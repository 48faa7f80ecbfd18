"""TraceMiddleware

为计划与任务实例操作绑定 trace_id，贯穿生成/归档/级联删除日志。
trace_id 从路径参数中的 plan_id 或 task_id 生成。
"""

import structlog
from facilitrack.core.logging_config import trace_id_for
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# 路径段 -> trace 前缀
_TRACED_COLLECTIONS = {
    "plans": "plan",
    "task-instances": "task",
}


def extract_trace_id(path: str) -> str | None:
    """从 /api/plans/{plan_id}... 或 /api/task-instances/{task_id}... 提取 trace_id"""
    parts = [p for p in path.split("/") if p]
    for i, part in enumerate(parts):
        prefix = _TRACED_COLLECTIONS.get(part)
        if prefix and i + 1 < len(parts):
            return trace_id_for(prefix, parts[i + 1])
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """计划/任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = extract_trace_id(request.url.path)
        if trace_id:
            structlog.contextvars.bind_contextvars(trace_id=trace_id)

        return await call_next(request)
