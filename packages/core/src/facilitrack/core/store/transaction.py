"""批量写入事务封装

生成、级联删除、保留期清理都以"一批一次提交"的方式落盘：
批内任一写入失败即整体回滚，并以 BatchCommitError 上报给调度层。
"""

import aiosqlite

from ..exceptions import BatchCommitError
from ..models.task_instance import TaskInstance
from .plan_store import SqlitePlanStore
from .task_instance_store import SqliteTaskInstanceStore

# 单条 DELETE ... IN (...) 的最大参数数（低于旧版 SQLite 的 999 限制）
DELETE_CHUNK_SIZE = 500


async def commit_generation_batch(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskInstanceStore,
    plan_store: SqlitePlanStore,
    instances: list[TaskInstance],
    generated_plan_ids: list[str],
    generated_at: str,
) -> None:
    """在同一事务内写入本次生成的全部实例，并更新各计划的 last_generated

    调用方需持有 StoreGroup.write_lock。

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskInstanceStore 实例
        plan_store: PlanStore 实例
        instances: 本次运行生成的全部实例
        generated_plan_ids: 产生了实例的计划 ID
        generated_at: 生成时间（ISO 字符串）

    Raises:
        BatchCommitError: 提交失败，已回滚，未写入任何实例
    """
    try:
        for instance in instances:
            await task_store.create_instance(instance)

        for plan_id in generated_plan_ids:
            await plan_store.mark_generated(plan_id, generated_at)

        # 原子提交
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        raise BatchCommitError("generate_tasks", e) from e


async def delete_instances_batch(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskInstanceStore,
    task_ids: list[str],
    operation: str,
) -> int:
    """在同一事务内删除一批实例

    调用方需持有 StoreGroup.write_lock。

    Args:
        conn: 数据库连接
        task_store: TaskInstanceStore 实例
        task_ids: 要删除的实例 ID
        operation: 操作名（写入错误信息）

    Returns:
        实际删除的行数（并发删除过的实例不计入）

    Raises:
        BatchCommitError: 提交失败，已回滚
    """
    deleted = 0
    try:
        for start in range(0, len(task_ids), DELETE_CHUNK_SIZE):
            chunk = task_ids[start : start + DELETE_CHUNK_SIZE]
            deleted += await task_store.delete_instances(chunk)

        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        raise BatchCommitError(operation, e) from e

    return deleted
