"""MaintenanceService -- 记录变更与引擎反应的编排

gateway 是引擎的触发面：记录变更先持久化，再同步调用对应的工作单元。
- 计划创建/更新 -> TaskGenerator（仅该计划）
- 计划删除 -> CascadeDeleter
- 任务实例状态变更 -> LifecycleManager
- 工单创建/更新/删除 -> StatsAggregator
"""

from datetime import UTC, datetime

import structlog
from facilitrack.core.aggregation import recompute_dashboard_stats
from facilitrack.core.cascade import delete_plan
from facilitrack.core.checklist import ChecklistGrid, build_checklist
from facilitrack.core.config import EngineConfig
from facilitrack.core.generation import generate_all, generate_for_plan
from facilitrack.core.lifecycle import change_status
from facilitrack.core.models import (
    AggregateSnapshot,
    CascadeResult,
    GenerationResult,
    LifecycleOutcome,
    MaintenancePlan,
    SweepResult,
    TaskInstance,
    TaskInstanceStatus,
    WorkOrder,
)
from facilitrack.core.retention import sweep_expired
from facilitrack.core.store import StoreGroup

log = structlog.get_logger()


class MaintenanceService:
    """维护业务服务"""

    def __init__(self, store_group: StoreGroup, config: EngineConfig) -> None:
        self._stores = store_group
        self._config = config

    async def save_plan(
        self,
        plan: MaintenancePlan,
        skip_existing: bool = True,
    ) -> GenerationResult:
        """写入计划并为其生成任务实例"""
        async with self._stores.write_lock:
            try:
                await self._stores.plan_store.upsert_plan(plan)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise
        await log.ainfo("plan_saved", plan_id=plan.plan_id)

        return await generate_for_plan(
            self._stores,
            plan,
            config=self._config,
            skip_existing=skip_existing,
        )

    async def remove_plan(self, plan_id: str) -> tuple[bool, CascadeResult]:
        return await delete_plan(self._stores, plan_id)

    async def get_checklist(
        self,
        plan_id: str,
        today: datetime | None = None,
    ) -> ChecklistGrid | None:
        """构建计划的清单网格；计划不存在时返回 None"""
        plan = await self._stores.plan_store.get_plan(plan_id)
        if plan is None:
            return None
        instances = await self._stores.task_store.list_instances(plan_id=plan_id)
        return build_checklist(plan, instances, today or datetime.now(UTC))

    async def list_task_instances(
        self,
        plan_id: str | None = None,
        archived: bool | None = None,
    ) -> list[TaskInstance]:
        return await self._stores.task_store.list_instances(
            plan_id=plan_id, archived=archived
        )

    async def change_task_status(
        self,
        task_id: str,
        status: TaskInstanceStatus,
    ) -> tuple[TaskInstance | None, LifecycleOutcome]:
        """变更状态并执行归档策略

        Raises:
            TaskInstanceNotFoundError / InvalidTransitionError
        """
        return await change_status(
            self._stores, task_id, status, config=self._config
        )

    async def save_work_order(self, order: WorkOrder) -> AggregateSnapshot | None:
        """写入工单并重算汇总；重算失败不影响工单写入"""
        async with self._stores.write_lock:
            try:
                await self._stores.work_order_store.upsert_work_order(order)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise
        return await recompute_dashboard_stats(self._stores, config=self._config)

    async def remove_work_order(
        self,
        work_order_id: str,
    ) -> tuple[bool, AggregateSnapshot | None]:
        async with self._stores.write_lock:
            try:
                removed = await self._stores.work_order_store.delete_work_order(work_order_id)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise
        if not removed:
            return False, None
        snapshot = await recompute_dashboard_stats(self._stores, config=self._config)
        return True, snapshot

    async def run_generation(self, skip_existing: bool = True) -> GenerationResult:
        """手动触发全量生成"""
        if not skip_existing:
            await log.awarning("manual_generation_without_dedup")
        return await generate_all(
            self._stores, config=self._config, skip_existing=skip_existing
        )

    async def run_retention_sweep(self) -> SweepResult:
        return await sweep_expired(self._stores, config=self._config)
