"""任务实例生命周期模块

状态机：Pending -> Completed | Skipped（单向，终态不可再流转）。

归档策略仅在状态从其他值变为 Completed/Skipped、且 archived 为 false 时触发：
now - due_date >= archive_after_days 则置 archived = true，并在同一次写入中
记录 archived_at（RetentionSweeper 依赖该时间戳计算过期）。

本模块只处理单个文档，不扫描其他实例。
"""

from datetime import UTC, datetime

import aiosqlite
import structlog

from .config import ARCHIVE_STATS_DOC, EngineConfig, load_engine_config
from .exceptions import InvalidTransitionError, TaskInstanceNotFoundError
from .models.enums import ARCHIVABLE_STATES, TaskInstanceStatus, validate_transition
from .models.results import LifecycleOutcome
from .models.task_instance import TaskInstance
from .store import StoreGroup
from .store.codec import ensure_utc, to_db_ts

log = structlog.get_logger()

_SECONDS_PER_DAY = 86400


def age_in_days(due_date: datetime, now: datetime) -> float:
    """now - due_date，单位天（可为负）"""
    return (ensure_utc(now) - ensure_utc(due_date)).total_seconds() / _SECONDS_PER_DAY


async def on_status_changed(
    store_group: StoreGroup,
    before: TaskInstance,
    after: TaskInstance,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
) -> LifecycleOutcome:
    """响应一次状态变更，按需归档

    Args:
        store_group: Store 实例组
        before: 变更前快照
        after: 变更后快照
        now: 基准时间（默认当前 UTC 时间）
        config: 引擎配置

    Returns:
        LifecycleOutcome，archived=True 表示本次完成了归档翻转
    """
    now = ensure_utc(now or datetime.now(UTC))
    config = config or load_engine_config()
    task_id = after.task_id

    if after.status not in ARCHIVABLE_STATES:
        return LifecycleOutcome(task_id=task_id, archived=False, reason="not_archivable_status")
    if before.status == after.status:
        return LifecycleOutcome(task_id=task_id, archived=False, reason="status_unchanged")
    if after.archived:
        return LifecycleOutcome(task_id=task_id, archived=False, reason="already_archived")

    age_days = age_in_days(after.due_date, now)
    if age_days < config.archive_after_days:
        log.info(
            "archive_deferred",
            task_id=task_id,
            age_days=round(age_days, 2),
            archive_after_days=config.archive_after_days,
        )
        return LifecycleOutcome(
            task_id=task_id,
            archived=False,
            age_days=age_days,
            reason="too_recent",
        )

    async with store_group.write_lock:
        try:
            flipped = await store_group.task_store.mark_archived(task_id, to_db_ts(now))
            await store_group.conn.commit()
        except aiosqlite.Error:
            await store_group.conn.rollback()
            raise

    if not flipped:
        # 已被并发归档或已删除：良性空操作
        await log.ainfo("archive_noop", task_id=task_id)
        return LifecycleOutcome(
            task_id=task_id,
            archived=False,
            age_days=age_days,
            reason="already_archived_or_deleted",
        )

    await log.ainfo("task_archived", task_id=task_id, age_days=round(age_days, 2))
    await _record_archive_stats(store_group, now)
    return LifecycleOutcome(task_id=task_id, archived=True, age_days=age_days)


async def change_status(
    store_group: StoreGroup,
    task_id: str,
    new_status: TaskInstanceStatus | str,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
) -> tuple[TaskInstance | None, LifecycleOutcome]:
    """校验并持久化状态变更，然后执行归档策略

    Returns:
        (变更后的实例, LifecycleOutcome)；实例在写入前被并发删除时返回 None

    Raises:
        TaskInstanceNotFoundError: 实例不存在
        InvalidTransitionError: 非法流转
        ValueError: 未知状态值
    """
    now = ensure_utc(now or datetime.now(UTC))
    target = TaskInstanceStatus(new_status)

    # 读取、校验与写入在同一锁内完成
    async with store_group.write_lock:
        before = await store_group.task_store.get_instance(task_id)
        if before is None:
            raise TaskInstanceNotFoundError(task_id)

        if not validate_transition(before.status, target):
            raise InvalidTransitionError(task_id, before.status.value, target.value)

        try:
            updated = await store_group.task_store.update_status(
                task_id, target.value, to_db_ts(now)
            )
            await store_group.conn.commit()
        except aiosqlite.Error:
            await store_group.conn.rollback()
            raise

    if not updated:
        await log.ainfo("status_update_noop_deleted", task_id=task_id)
        return None, LifecycleOutcome(
            task_id=task_id,
            archived=False,
            reason="instance_deleted",
        )

    await log.ainfo(
        "task_status_changed",
        task_id=task_id,
        from_status=before.status.value,
        to_status=target.value,
    )

    after = before.model_copy(update={"status": target, "updated_at": now})
    outcome = await on_status_changed(
        store_group, before, after, now=now, config=config
    )
    if outcome.archived:
        after = after.model_copy(update={"archived": True, "archived_at": now})
    return after, outcome


async def _record_archive_stats(store_group: StoreGroup, now: datetime) -> None:
    """更新 system_stats/archive_stats

    失败只记录日志，不影响归档本身。
    """
    async with store_group.write_lock:
        try:
            await store_group.document_store.increment_archive_counters(
                ARCHIVE_STATS_DOC,
                day=now.date().isoformat(),
                last_archived=now.isoformat(),
                updated_at=to_db_ts(now),
            )
            await store_group.conn.commit()
        except aiosqlite.Error as e:
            await store_group.conn.rollback()
            log.error("archive_stats_update_failed", error=str(e))
