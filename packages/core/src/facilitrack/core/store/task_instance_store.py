"""TaskInstanceStore SQLite 实现

写方法均不自动提交，由 transaction 模块或调用方管理事务。
"""

from datetime import datetime

import aiosqlite

from ..models.task_instance import TaskInstance
from .codec import from_db_ts, to_db_ts

_COLUMNS = (
    "task_id, plan_id, asset_id, task_description, due_date, status, "
    "archived, archived_at, type, assigned_to, priority, created_at, "
    "created_by, updated_at"
)


class SqliteTaskInstanceStore:
    """TaskInstanceStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_instance(self, instance: TaskInstance) -> None:
        """写入任务实例"""
        await self._conn.execute(
            f"""
            INSERT INTO task_instances ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                instance.task_id,
                instance.plan_id,
                instance.asset_id,
                instance.task_description,
                to_db_ts(instance.due_date),
                instance.status.value,
                1 if instance.archived else 0,
                to_db_ts(instance.archived_at),
                instance.type.value,
                instance.assigned_to,
                instance.priority.value,
                to_db_ts(instance.created_at),
                instance.created_by,
                to_db_ts(instance.updated_at),
            ),
        )

    async def get_instance(self, task_id: str) -> TaskInstance | None:
        """根据 task_id 查询任务实例"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM task_instances WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_instance(row)

    async def list_instances(
        self,
        plan_id: str | None = None,
        archived: bool | None = None,
    ) -> list[TaskInstance]:
        """查询任务实例，按 due_date 升序"""
        clauses: list[str] = []
        params: list = []
        if plan_id is not None:
            clauses.append("plan_id = ?")
            params.append(plan_id)
        if archived is not None:
            clauses.append("archived = ?")
            params.append(1 if archived else 0)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM task_instances {where} "
            "ORDER BY due_date ASC, task_id ASC",
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_instance(row) for row in rows]

    async def existing_keys(
        self,
        plan_id: str,
        since: datetime,
    ) -> set[tuple[str, str]]:
        """查询计划在 since 之后已存在的 (due_date, task_description) 组合

        用于生成前的 check-then-skip 去重。
        """
        cursor = await self._conn.execute(
            """
            SELECT due_date, task_description FROM task_instances
            WHERE plan_id = ? AND due_date >= ?
            """,
            (plan_id, to_db_ts(since)),
        )
        rows = await cursor.fetchall()
        return {(row[0], row[1]) for row in rows}

    async def update_status(self, task_id: str, status: str, updated_at: str) -> bool:
        """更新状态

        Returns:
            False 如果实例已不存在（被并发删除），视为良性空操作
        """
        cursor = await self._conn.execute(
            "UPDATE task_instances SET status = ?, updated_at = ? WHERE task_id = ?",
            (status, updated_at, task_id),
        )
        return cursor.rowcount > 0

    async def mark_archived(self, task_id: str, archived_at: str) -> bool:
        """archived false -> true，同时写入 archived_at

        条件写入（archived = 0），保证每个实例最多翻转一次。

        Returns:
            True 如果本次写入完成了翻转
        """
        cursor = await self._conn.execute(
            """
            UPDATE task_instances
            SET archived = 1, archived_at = ?, updated_at = ?
            WHERE task_id = ? AND archived = 0
            """,
            (archived_at, archived_at, task_id),
        )
        return cursor.rowcount > 0

    async def list_ids_for_plan(self, plan_id: str) -> list[str]:
        """查询计划下所有实例 ID（不区分归档状态）"""
        cursor = await self._conn.execute(
            "SELECT task_id FROM task_instances WHERE plan_id = ?",
            (plan_id,),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_orphan_ids(self) -> list[str]:
        """查询 plan_id 指向不存在计划的实例 ID"""
        cursor = await self._conn.execute(
            """
            SELECT t.task_id FROM task_instances t
            LEFT JOIN maintenance_plans p ON p.plan_id = t.plan_id
            WHERE p.plan_id IS NULL
            """
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_expired_archived(self, cutoff: datetime, limit: int) -> list[str]:
        """查询 archived_at 早于 cutoff 的已归档实例 ID，最旧优先，最多 limit 条

        archived_at 为空的记录不参与（显式时间戳契约）。
        """
        cursor = await self._conn.execute(
            """
            SELECT task_id FROM task_instances
            WHERE archived = 1 AND archived_at IS NOT NULL AND archived_at < ?
            ORDER BY archived_at ASC, task_id ASC
            LIMIT ?
            """,
            (to_db_ts(cutoff), limit),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def delete_instances(self, task_ids: list[str]) -> int:
        """按 ID 批量删除

        Returns:
            实际删除的行数
        """
        if not task_ids:
            return 0
        placeholders = ", ".join("?" for _ in task_ids)
        cursor = await self._conn.execute(
            f"DELETE FROM task_instances WHERE task_id IN ({placeholders})",
            task_ids,
        )
        return cursor.rowcount

    async def count_instances(self) -> int:
        cursor = await self._conn.execute("SELECT COUNT(*) FROM task_instances")
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_instance(row: aiosqlite.Row) -> TaskInstance:
        """将数据库行转换为 TaskInstance 模型"""
        return TaskInstance(
            task_id=row[0],
            plan_id=row[1],
            asset_id=row[2],
            task_description=row[3],
            due_date=from_db_ts(row[4]),
            status=row[5],
            archived=bool(row[6]),
            archived_at=from_db_ts(row[7]),
            type=row[8],
            assigned_to=row[9],
            priority=row[10],
            created_at=from_db_ts(row[11]),
            created_by=row[12],
            updated_at=from_db_ts(row[13]),
        )
