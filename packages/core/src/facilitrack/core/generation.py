"""任务生成模块

把维护计划展开为具体、带日期的任务实例：
1. 从计划 start_date 起按重复规则推进，直到 due >= now
2. 在 due <= now + horizon 内，为每条任务描述生成一个 Pending 实例
3. 本次运行所有计划的全部实例在一个批次内提交

默认按 (plan_id, due_date, task_description) 做 check-then-skip 去重；
skip_existing=False 时不去重，重复调用会产生重复实例，调用方需保证单次投递。
"""

import time
from datetime import UTC, datetime, timedelta

import aiosqlite
import structlog
from ulid import ULID

from .config import TASK_GENERATION_STATS_DOC, EngineConfig, load_engine_config
from .exceptions import RecurrenceStalledError
from .models.enums import TaskInstanceStatus
from .models.plan import MaintenancePlan
from .models.results import GenerationResult, PlanDiagnostic
from .models.stats import GenerationRunStats
from .models.task_instance import TaskInstance
from .recurrence import next_due_date, plan_timezone, to_plan_local
from .store import StoreGroup
from .store.codec import ensure_utc, to_db_ts
from .store.transaction import commit_generation_batch

log = structlog.get_logger()


def plan_due_dates(
    plan: MaintenancePlan,
    now: datetime,
    horizon_end: datetime,
) -> list[datetime]:
    """计算计划在 [now, horizon_end] 内的到期日序列

    Raises:
        RecurrenceStalledError: 重复规则未推进日期
    """
    # 在 start_date 的本地日历上推进
    due = to_plan_local(plan.start_date, plan_timezone(plan.start_date))

    # 推进到第一个 >= now 的日期
    while due < now:
        following = next_due_date(due, plan.frequency)
        if following <= due:
            raise RecurrenceStalledError(plan.plan_id, plan.frequency)
        due = following

    dates: list[datetime] = []
    while due <= horizon_end:
        dates.append(due)
        following = next_due_date(due, plan.frequency)
        if following <= due:
            raise RecurrenceStalledError(plan.plan_id, plan.frequency)
        due = following
    return dates


def _check_plan(plan: MaintenancePlan) -> PlanDiagnostic | None:
    """检查计划是否具备生成条件；不具备时返回诊断"""
    if not plan.is_active:
        return PlanDiagnostic(plan_id=plan.plan_id, reason="plan_inactive")
    if plan.start_date is None:
        return PlanDiagnostic(plan_id=plan.plan_id, reason="missing_start_date")
    if plan.frequency is None:
        return PlanDiagnostic(plan_id=plan.plan_id, reason="missing_frequency")
    if not plan.tasks:
        return PlanDiagnostic(plan_id=plan.plan_id, reason="no_tasks")
    return None


async def generate_for_plans(
    store_group: StoreGroup,
    plans: list[MaintenancePlan],
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
    skip_existing: bool = True,
) -> GenerationResult:
    """为一组计划生成任务实例，单批次提交

    Args:
        store_group: Store 实例组
        plans: 待处理计划
        now: 基准时间（默认当前 UTC 时间）
        config: 引擎配置（默认从环境变量加载）
        skip_existing: 是否跳过已存在的 (plan_id, due_date, task_description)

    Returns:
        GenerationResult

    Raises:
        BatchCommitError: 批量提交失败，本次运行未写入任何实例
    """
    start_time = time.monotonic()
    now = ensure_utc(now or datetime.now(UTC))
    config = config or load_engine_config()
    horizon_end = now + timedelta(days=config.horizon_days)

    result = GenerationResult()
    instances: list[TaskInstance] = []
    generated_plan_ids: list[str] = []

    await log.ainfo(
        "task_generation_started",
        plan_count=len(plans),
        horizon_end=horizon_end.isoformat(),
        skip_existing=skip_existing,
    )

    for plan in plans:
        diagnostic = _check_plan(plan)
        if diagnostic is None:
            try:
                due_dates = plan_due_dates(plan, now, horizon_end)
            except RecurrenceStalledError as e:
                diagnostic = PlanDiagnostic(
                    plan_id=plan.plan_id,
                    reason="recurrence_stalled",
                    detail=str(e),
                )

        if diagnostic is not None:
            await log.awarning(
                "plan_skipped",
                plan_id=diagnostic.plan_id,
                reason=diagnostic.reason,
            )
            result.diagnostics.append(diagnostic)
            result.plans_skipped += 1
            continue

        existing: set[tuple[str, str]] = set()
        if skip_existing:
            existing = await store_group.task_store.existing_keys(plan.plan_id, now)

        plan_count = 0
        for due in due_dates:
            due_key = to_db_ts(due)
            for description in plan.tasks:
                if (due_key, description) in existing:
                    result.duplicates_skipped += 1
                    continue
                instances.append(
                    TaskInstance(
                        task_id=str(ULID()),
                        plan_id=plan.plan_id,
                        asset_id=plan.asset_id,
                        task_description=description,
                        due_date=due,
                        status=TaskInstanceStatus.PENDING,
                        archived=False,
                        assigned_to=plan.assigned_to,
                        created_at=now,
                        updated_at=now,
                    )
                )
                plan_count += 1

        result.plans_processed += 1
        if plan_count:
            generated_plan_ids.append(plan.plan_id)
        log.debug("plan_expanded", plan_id=plan.plan_id, instance_count=plan_count)

    if instances:
        async with store_group.write_lock:
            await commit_generation_batch(
                store_group.conn,
                store_group.task_store,
                store_group.plan_store,
                instances,
                generated_plan_ids,
                to_db_ts(now),
            )
    result.tasks_generated = len(instances)

    await _record_run_stats(store_group, result, now, horizon_end)

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "task_generation_completed",
        tasks_generated=result.tasks_generated,
        duplicates_skipped=result.duplicates_skipped,
        plans_processed=result.plans_processed,
        plans_skipped=result.plans_skipped,
        elapsed_ms=elapsed_ms,
    )
    return result


async def generate_for_plan(
    store_group: StoreGroup,
    plan: MaintenancePlan,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
    skip_existing: bool = True,
) -> GenerationResult:
    """计划创建/更新触发：只为该计划生成"""
    return await generate_for_plans(
        store_group,
        [plan],
        now=now,
        config=config,
        skip_existing=skip_existing,
    )


async def generate_all(
    store_group: StoreGroup,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
    skip_existing: bool = True,
) -> GenerationResult:
    """定时/手动触发：为所有启用的计划生成"""
    plans = await store_group.plan_store.list_plans(active_only=True)
    if not plans:
        await log.ainfo("no_active_plans")
    return await generate_for_plans(
        store_group,
        plans,
        now=now,
        config=config,
        skip_existing=skip_existing,
    )


async def _record_run_stats(
    store_group: StoreGroup,
    result: GenerationResult,
    now: datetime,
    horizon_end: datetime,
) -> None:
    """写入 system_stats/task_generation（尽力而为，失败不影响生成结果）"""
    stats = GenerationRunStats(
        last_run=now,
        tasks_generated=result.tasks_generated,
        plans_processed=result.plans_processed,
        plans_skipped=result.plans_skipped,
        horizon_start=now,
        horizon_end=horizon_end,
    )
    async with store_group.write_lock:
        try:
            await store_group.document_store.merge_document(
                TASK_GENERATION_STATS_DOC,
                stats.model_dump(mode="json"),
                to_db_ts(now),
            )
            await store_group.conn.commit()
        except aiosqlite.Error as e:
            await store_group.conn.rollback()
            log.warning("generation_stats_write_failed", error=str(e))
