"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 引擎配置加载 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from facilitrack.core.config import get_db_path, load_engine_config
from facilitrack.core.store import create_store_group
from fastapi import FastAPI

from .middleware.logging_config import setup_gateway_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import dashboard, health, jobs, plans, task_instances, work_orders

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与配置，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    engine_config = load_engine_config()
    app.state.engine_config = engine_config
    log.info(
        "engine_config_loaded",
        db_path=db_path,
        **engine_config.model_dump(),
    )

    yield

    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Facilitrack Gateway",
        version="0.1.0",
        description="维护计划重复生成与生命周期引擎的触发入口",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_gateway_logging(app)

    app.include_router(plans.router, tags=["plans"])
    app.include_router(task_instances.router, tags=["task-instances"])
    app.include_router(work_orders.router, tags=["work-orders"])
    app.include_router(dashboard.router, tags=["dashboard"])
    app.include_router(jobs.router, tags=["jobs"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
