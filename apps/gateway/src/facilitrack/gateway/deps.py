"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与引擎配置

二者均通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from facilitrack.core.config import EngineConfig, load_engine_config
from facilitrack.core.store import StoreGroup
from fastapi import Request


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine_config(request: Request) -> EngineConfig:
    """从 app.state 获取引擎配置；未初始化时从环境变量加载"""
    config = getattr(request.app.state, "engine_config", None)
    if config is None:
        config = load_engine_config()
        request.app.state.engine_config = config
    return config
