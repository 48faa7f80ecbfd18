"""Facilitrack Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .document_store import SqliteDocumentStore
from .plan_store import SqlitePlanStore
from .sqlite_init import init_db
from .task_instance_store import SqliteTaskInstanceStore
from .transaction import commit_generation_batch, delete_instances_batch
from .work_order_store import SqliteUserStore, SqliteWorkOrderStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    事务属于连接：一个工作单元的 commit/rollback 会一并提交或丢弃
    同一连接上其他工作单元未完成的写入。所有写入及其 commit/rollback
    必须在持有 write_lock 时执行；write_lock 不可重入。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.plan_store = SqlitePlanStore(conn)
        self.task_store = SqliteTaskInstanceStore(conn)
        self.work_order_store = SqliteWorkOrderStore(conn)
        self.user_store = SqliteUserStore(conn)
        self.document_store = SqliteDocumentStore(conn)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqlitePlanStore",
    "SqliteTaskInstanceStore",
    "SqliteWorkOrderStore",
    "SqliteUserStore",
    "SqliteDocumentStore",
    "init_db",
    "commit_generation_batch",
    "delete_instances_batch",
]
