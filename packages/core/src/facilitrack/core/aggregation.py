"""统计汇总模块

工单变更后全量重扫工单集合（分页读取），按小写状态分类计数，
再加上用户总数与任务实例总数，合并写入 dashboard_stats/summary。

重算失败只记录日志并吞掉：旧快照保持陈旧，不阻塞触发它的工单变更。
外部通过 last_updated 判断快照是否陈旧。
"""

import math
import time
from datetime import UTC, datetime

import structlog

from .config import DASHBOARD_SUMMARY_DOC, EngineConfig, load_engine_config
from .models.stats import AggregateSnapshot
from .models.work_order import WorkOrder
from .store import StoreGroup
from .store.codec import ensure_utc, to_db_ts

log = structlog.get_logger()

# 小写状态 -> 计数字段；开放类状态同时计入 open_orders
_STATUS_COUNTERS: dict[str, tuple[str, bool]] = {
    "completed": ("completed_orders", False),
    "in progress": ("in_progress_orders", True),
    "in_progress": ("in_progress_orders", True),
    "scheduled": ("scheduled_orders", True),
    "pending": ("pending_orders", True),
    "open": ("open_orders", False),
}


def parse_due_date(value: str | None) -> datetime | None:
    """解析工单到期日；无法解析时返回 None（不计入逾期）"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return ensure_utc(parsed)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(numerator: int, denominator: int) -> int:
    """四舍五入的百分比；分母为 0 时返回 0"""
    if denominator == 0:
        return 0
    return round_half_up(numerator / denominator * 100)


class _Tally:
    """逐页累加的工单计数"""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {
            "total_work_orders": 0,
            "open_orders": 0,
            "completed_orders": 0,
            "in_progress_orders": 0,
            "overdue_orders": 0,
            "scheduled_orders": 0,
            "pending_orders": 0,
        }
        self.unparseable_due_dates = 0

    def add(self, order: WorkOrder, now: datetime) -> None:
        status = order.status.strip().lower()
        self.counts["total_work_orders"] += 1

        counter = _STATUS_COUNTERS.get(status)
        if counter is not None:
            field, also_open = counter
            self.counts[field] += 1
            if also_open:
                self.counts["open_orders"] += 1

        if status == "completed" or not order.due_date:
            return
        due = parse_due_date(order.due_date)
        if due is None:
            self.unparseable_due_dates += 1
            return
        if due < now:
            self.counts["overdue_orders"] += 1


def compute_snapshot(
    orders: list[WorkOrder],
    *,
    now: datetime,
    total_users: int = 0,
    total_tasks: int = 0,
) -> AggregateSnapshot:
    """对一组工单做分类计数（纯函数）"""
    now = ensure_utc(now)
    tally = _Tally()
    for order in orders:
        tally.add(order, now)
    return _build_snapshot(tally, now, total_users, total_tasks)


def _build_snapshot(
    tally: _Tally,
    now: datetime,
    total_users: int,
    total_tasks: int,
) -> AggregateSnapshot:
    counts = tally.counts
    return AggregateSnapshot(
        **counts,
        total_users=total_users,
        total_tasks=total_tasks,
        completion_rate=percentage(counts["completed_orders"], counts["total_work_orders"]),
        overdue_rate=percentage(counts["overdue_orders"], counts["open_orders"]),
        last_updated=datetime.now(UTC),
        last_calculated=now,
    )


async def recompute_dashboard_stats(
    store_group: StoreGroup,
    *,
    now: datetime | None = None,
    config: EngineConfig | None = None,
) -> AggregateSnapshot | None:
    """全量重算并合并写入汇总快照

    Returns:
        写入的快照；失败时返回 None（已记录日志）
    """
    start_time = time.monotonic()
    now = ensure_utc(now or datetime.now(UTC))
    try:
        config = config or load_engine_config()
        tally = _Tally()
        after_id: str | None = None
        pages = 0
        while True:
            page = await store_group.work_order_store.list_page(
                after_id, config.stats_page_size
            )
            pages += 1
            for order in page:
                tally.add(order, now)
            if len(page) < config.stats_page_size:
                break
            after_id = page[-1].work_order_id

        if tally.unparseable_due_dates:
            await log.awarning(
                "work_order_due_date_unparseable",
                count=tally.unparseable_due_dates,
            )

        total_users = await store_group.user_store.count_users()
        total_tasks = await store_group.task_store.count_instances()
        snapshot = _build_snapshot(tally, now, total_users, total_tasks)

        async with store_group.write_lock:
            try:
                await store_group.document_store.merge_document(
                    DASHBOARD_SUMMARY_DOC,
                    snapshot.model_dump(mode="json"),
                    to_db_ts(snapshot.last_updated),
                )
                await store_group.conn.commit()
            except Exception:
                await _rollback_quietly(store_group)
                raise
    except Exception:
        log.error("dashboard_stats_update_failed", exc_info=True)
        return None

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "dashboard_stats_updated",
        total_work_orders=snapshot.total_work_orders,
        open_orders=snapshot.open_orders,
        overdue_orders=snapshot.overdue_orders,
        pages=pages,
        elapsed_ms=elapsed_ms,
    )
    return snapshot


async def get_dashboard_summary(store_group: StoreGroup) -> AggregateSnapshot | None:
    """读取当前快照；尚未计算过时返回 None"""
    data = await store_group.document_store.get_document(DASHBOARD_SUMMARY_DOC)
    if not data:
        return None
    return AggregateSnapshot.model_validate(data)


async def _rollback_quietly(store_group: StoreGroup) -> None:
    try:
        await store_group.conn.rollback()
    except Exception:
        log.warning("dashboard_stats_rollback_failed", exc_info=True)
