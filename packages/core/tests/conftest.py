"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from facilitrack.core.config import EngineConfig
from facilitrack.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "sqlite" / "core_test.db"


@pytest_asyncio.fixture
async def store_group(core_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化的 Store 实例组"""
    group = await create_store_group(str(core_db_path))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def engine_config() -> EngineConfig:
    """默认引擎配置（不读取环境变量）"""
    return EngineConfig()
