"""保留期清理模块

每日调度：删除 archived = true 且 archived_at 早于 now - retention_days 的实例，
单次最多删除 sweep_batch_limit 条，剩余部分由下一次调度继续处理。
"""

import time
from datetime import UTC, datetime, timedelta

import structlog

from .config import EngineConfig, load_engine_config
from .models.results import SweepResult
from .store import StoreGroup
from .store.codec import ensure_utc
from .store.transaction import delete_instances_batch

log = structlog.get_logger()


async def sweep_expired(
    store_group: StoreGroup,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
) -> SweepResult:
    """执行一次有界清理

    Returns:
        SweepResult；has_more=True 表示仍有过期实例待下次处理

    Raises:
        BatchCommitError: 删除失败，已回滚
    """
    start_time = time.monotonic()
    now = ensure_utc(now or datetime.now(UTC))
    config = config or load_engine_config()
    limit = config.sweep_batch_limit
    cutoff = now - timedelta(days=config.retention_days)

    # 多取一条用于判断是否还有剩余
    candidates = await store_group.task_store.list_expired_archived(cutoff, limit + 1)
    has_more = len(candidates) > limit
    batch = candidates[:limit]

    if not batch:
        await log.ainfo("retention_sweep_nothing_to_do", cutoff=cutoff.isoformat())
        return SweepResult(deleted=0, limit=limit, has_more=False)

    async with store_group.write_lock:
        deleted = await delete_instances_batch(
            store_group.conn,
            store_group.task_store,
            batch,
            operation="retention_sweep",
        )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "retention_sweep_completed",
        deleted=deleted,
        limit=limit,
        has_more=has_more,
        cutoff=cutoff.isoformat(),
        elapsed_ms=elapsed_ms,
    )
    return SweepResult(deleted=deleted, limit=limit, has_more=has_more)
