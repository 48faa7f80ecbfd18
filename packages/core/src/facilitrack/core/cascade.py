"""级联删除模块

计划删除后，删除所有引用该计划的任务实例（无论是否已归档）。
完成后不存在任何引用该 plan_id 的实例；无匹配时为正常的空操作。
"""

import structlog

from .models.results import CascadeResult
from .store import StoreGroup
from .store.transaction import delete_instances_batch

log = structlog.get_logger()


async def delete_plan_tasks(store_group: StoreGroup, plan_id: str) -> CascadeResult:
    """删除计划下的全部任务实例

    Raises:
        BatchCommitError: 批量删除失败，已回滚
    """
    task_ids = await store_group.task_store.list_ids_for_plan(plan_id)
    if not task_ids:
        await log.ainfo("cascade_no_tasks", plan_id=plan_id)
        return CascadeResult(plan_id=plan_id, deleted=0)

    async with store_group.write_lock:
        deleted = await delete_instances_batch(
            store_group.conn,
            store_group.task_store,
            task_ids,
            operation="delete_plan_tasks",
        )
    await log.ainfo("cascade_completed", plan_id=plan_id, deleted=deleted)
    return CascadeResult(plan_id=plan_id, deleted=deleted)


async def delete_plan(store_group: StoreGroup, plan_id: str) -> tuple[bool, CascadeResult]:
    """删除计划记录，然后级联删除其实例

    计划记录不存在时仍执行级联（清理可能残留的实例）。

    Returns:
        (计划记录是否被删除, CascadeResult)
    """
    async with store_group.write_lock:
        try:
            removed = await store_group.plan_store.delete_plan(plan_id)
            await store_group.conn.commit()
        except Exception:
            await store_group.conn.rollback()
            raise

    if not removed:
        await log.ainfo("plan_not_found_for_delete", plan_id=plan_id)

    cascade = await delete_plan_tasks(store_group, plan_id)
    return removed, cascade


async def cleanup_orphan_tasks(store_group: StoreGroup) -> CascadeResult:
    """删除 plan_id 指向不存在计划的实例

    用于修复级联删除窗口内中断留下的悬空实例。
    """
    orphan_ids = await store_group.task_store.list_orphan_ids()
    if not orphan_ids:
        await log.ainfo("orphan_cleanup_nothing_to_do")
        return CascadeResult(deleted=0)

    async with store_group.write_lock:
        deleted = await delete_instances_batch(
            store_group.conn,
            store_group.task_store,
            orphan_ids,
            operation="cleanup_orphan_tasks",
        )
    await log.ainfo("orphan_cleanup_completed", deleted=deleted)
    return CascadeResult(deleted=deleted)
