"""CLI 入口模块 -- python -m facilitrack.core <command>

供外部调度器（cron 等）调用的定时入口。支持的命令：
  generate-tasks [--allow-duplicates]  为所有启用计划生成任务实例（每周）
  sweep-retention                      清理过期的已归档实例（每日）
  recompute-stats                      重算工单汇总快照
  cleanup-orphans                      删除计划已不存在的实例
"""

import asyncio
import sys

import structlog
from ulid import ULID

from .config import get_db_path, load_engine_config
from .logging_config import setup_logging

SCHEDULER_COMPONENT = "scheduler"

_USAGE = """用法: python -m facilitrack.core <command>
命令:
  generate-tasks [--allow-duplicates]  为所有启用计划生成任务实例
  sweep-retention                      清理过期的已归档实例
  recompute-stats                      重算工单汇总快照
  cleanup-orphans                      删除计划已不存在的实例"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    options = sys.argv[2:]

    setup_logging(component=SCHEDULER_COMPONENT)
    # 同一次调度的全部日志共享 job 与 run_id
    structlog.contextvars.bind_contextvars(job=command, run_id=str(ULID()))

    if command == "generate-tasks":
        allow_duplicates = "--allow-duplicates" in options
        asyncio.run(generate_tasks(skip_existing=not allow_duplicates))
    elif command == "sweep-retention":
        asyncio.run(sweep_retention())
    elif command == "recompute-stats":
        ok = asyncio.run(recompute_stats())
        if not ok:
            sys.exit(1)
    elif command == "cleanup-orphans":
        asyncio.run(cleanup_orphans())
    else:
        print(f"未知命令: {command}")
        print("可用命令: generate-tasks, sweep-retention, recompute-stats, cleanup-orphans")
        sys.exit(1)


async def generate_tasks(skip_existing: bool = True) -> None:
    """执行一次任务生成"""
    from .generation import generate_all
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    if not skip_existing:
        print("警告: 已关闭去重，重复执行会产生重复的任务实例")

    store_group = await create_store_group(db_path)
    try:
        result = await generate_all(
            store_group,
            config=load_engine_config(),
            skip_existing=skip_existing,
        )
        print(
            f"生成完成: {result.tasks_generated} 个实例，"
            f"处理 {result.plans_processed} 个计划，跳过 {result.plans_skipped} 个，"
            f"去重跳过 {result.duplicates_skipped} 个"
        )
        for diagnostic in result.diagnostics:
            print(f"  跳过计划 {diagnostic.plan_id}: {diagnostic.reason}")
    finally:
        await store_group.conn.close()


async def sweep_retention() -> None:
    """执行一次有界清理"""
    from .retention import sweep_expired
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        result = await sweep_expired(store_group, config=load_engine_config())
        print(f"清理完成: 删除 {result.deleted} 个实例（上限 {result.limit}）")
        if result.has_more:
            print("仍有过期实例，将在下次调度时继续")
    finally:
        await store_group.conn.close()


async def recompute_stats() -> bool:
    """重算汇总快照，返回是否成功"""
    from .aggregation import recompute_dashboard_stats
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        snapshot = await recompute_dashboard_stats(store_group, config=load_engine_config())
        if snapshot is None:
            print("重算失败，详见日志")
            return False
        print(
            f"重算完成: 工单 {snapshot.total_work_orders}，开放 {snapshot.open_orders}，"
            f"逾期 {snapshot.overdue_orders}，完成率 {snapshot.completion_rate}%"
        )
        return True
    finally:
        await store_group.conn.close()


async def cleanup_orphans() -> None:
    """删除孤儿实例"""
    from .cascade import cleanup_orphan_tasks
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        result = await cleanup_orphan_tasks(store_group)
        print(f"清理完成: 删除 {result.deleted} 个孤儿实例")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
