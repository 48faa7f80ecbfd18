"""apps/gateway 测试配置 -- httpx AsyncClient + 临时 DB fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from facilitrack.core.config import EngineConfig
from facilitrack.core.store import create_store_group
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（绕过 lifespan，手动初始化）"""
    os.environ["FACILITRACK_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from facilitrack.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    application.state.store_group = store_group
    application.state.engine_config = EngineConfig()

    yield application

    await store_group.conn.close()
    for key in ["FACILITRACK_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
