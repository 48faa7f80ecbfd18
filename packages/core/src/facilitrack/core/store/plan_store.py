"""PlanStore SQLite 实现

计划由外部编辑流程写入；引擎只读取，并在生成时更新 last_generated。
"""

import json

import aiosqlite
import structlog
from pydantic import ValidationError

from ..models.plan import MaintenancePlan
from .codec import from_db_ts, to_db_ts

log = structlog.get_logger()

_COLUMNS = (
    "plan_id, asset_id, plan_name, frequency, start_date, tasks, "
    "is_active, assigned_to, last_generated"
)


class SqlitePlanStore:
    """PlanStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_plan(self, plan: MaintenancePlan) -> None:
        """创建或覆盖计划记录

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"""
            INSERT INTO maintenance_plans ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(plan_id) DO UPDATE SET
                asset_id = excluded.asset_id,
                plan_name = excluded.plan_name,
                frequency = excluded.frequency,
                start_date = excluded.start_date,
                tasks = excluded.tasks,
                is_active = excluded.is_active,
                assigned_to = excluded.assigned_to
            """,
            (
                plan.plan_id,
                plan.asset_id,
                plan.plan_name,
                plan.frequency.value if plan.frequency else None,
                to_db_ts(plan.start_date, keep_offset=True),
                json.dumps(plan.tasks, ensure_ascii=False),
                1 if plan.is_active else 0,
                plan.assigned_to,
                to_db_ts(plan.last_generated),
            ),
        )

    async def get_plan(self, plan_id: str) -> MaintenancePlan | None:
        """根据 plan_id 查询计划；记录损坏时返回 None 并记录警告"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM maintenance_plans WHERE plan_id = ?",
            (plan_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return self._row_to_plan(row)
        except (ValidationError, ValueError) as e:
            log.warning("plan_record_invalid", plan_id=plan_id, error=str(e))
            return None

    async def list_plans(self, active_only: bool = False) -> list[MaintenancePlan]:
        """查询计划列表

        无法解析的记录属于可跳过的数据错误：记录警告后跳过。
        """
        if active_only:
            cursor = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM maintenance_plans "
                "WHERE is_active = 1 ORDER BY plan_id"
            )
        else:
            cursor = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM maintenance_plans ORDER BY plan_id"
            )
        rows = await cursor.fetchall()

        plans: list[MaintenancePlan] = []
        for row in rows:
            try:
                plans.append(self._row_to_plan(row))
            except (ValidationError, ValueError) as e:
                log.warning("plan_record_invalid", plan_id=row[0], error=str(e))
        return plans

    async def delete_plan(self, plan_id: str) -> bool:
        """删除计划记录（不自动提交）

        Returns:
            True 如果确实删除了记录
        """
        cursor = await self._conn.execute(
            "DELETE FROM maintenance_plans WHERE plan_id = ?",
            (plan_id,),
        )
        return cursor.rowcount > 0

    async def mark_generated(self, plan_id: str, generated_at: str) -> None:
        """更新 last_generated（不自动提交）"""
        await self._conn.execute(
            "UPDATE maintenance_plans SET last_generated = ? WHERE plan_id = ?",
            (generated_at, plan_id),
        )

    @staticmethod
    def _row_to_plan(row: aiosqlite.Row) -> MaintenancePlan:
        """将数据库行转换为 MaintenancePlan 模型"""
        tasks = json.loads(row[5]) if row[5] else []
        return MaintenancePlan(
            plan_id=row[0],
            asset_id=row[1],
            plan_name=row[2],
            frequency=row[3],
            start_date=from_db_ts(row[4], keep_offset=True),
            tasks=tasks,
            is_active=bool(row[6]),
            assigned_to=row[7],
            last_generated=from_db_ts(row[8]),
        )
