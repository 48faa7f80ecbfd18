"""WorkOrderStore / UserStore SQLite 实现

工单与用户不归引擎所有：这里只提供汇总所需的读取，
以及测试与 gateway 触发入口需要的最小写入。
"""

import aiosqlite

from ..models.work_order import User, WorkOrder
from .codec import to_db_ts


class SqliteWorkOrderStore:
    """WorkOrderStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_work_order(self, order: WorkOrder) -> None:
        """创建或覆盖工单（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO work_orders (work_order_id, status, due_date)
            VALUES (?, ?, ?)
            ON CONFLICT(work_order_id) DO UPDATE SET
                status = excluded.status,
                due_date = excluded.due_date
            """,
            (order.work_order_id, order.status, order.due_date),
        )

    async def delete_work_order(self, work_order_id: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM work_orders WHERE work_order_id = ?",
            (work_order_id,),
        )
        return cursor.rowcount > 0

    async def list_page(
        self,
        after_id: str | None,
        limit: int,
    ) -> list[WorkOrder]:
        """按 work_order_id 键集分页读取

        Args:
            after_id: 上一页最后一条的 ID；None 表示第一页
            limit: 每页条数
        """
        if after_id is None:
            cursor = await self._conn.execute(
                """
                SELECT work_order_id, status, due_date FROM work_orders
                ORDER BY work_order_id ASC LIMIT ?
                """,
                (limit,),
            )
        else:
            cursor = await self._conn.execute(
                """
                SELECT work_order_id, status, due_date FROM work_orders
                WHERE work_order_id > ?
                ORDER BY work_order_id ASC LIMIT ?
                """,
                (after_id, limit),
            )
        rows = await cursor.fetchall()
        return [
            WorkOrder(work_order_id=row[0], status=row[1] or "", due_date=row[2])
            for row in rows
        ]


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, user: User) -> None:
        """写入用户（不自动提交）"""
        await self._conn.execute(
            "INSERT INTO users (user_id, display_name, created_at) VALUES (?, ?, ?)",
            (user.user_id, user.display_name, to_db_ts(user.created_at)),
        )

    async def count_users(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM users")
        row = await cursor.fetchone()
        return row[0] if row else 0
