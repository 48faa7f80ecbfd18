"""汇总快照与系统统计文档

AggregateSnapshot 是缓存而非账本：每次重算整体合并写入，无历史、无版本。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class AggregateSnapshot(BaseModel):
    """dashboard_stats/summary 单例文档"""

    # 工单
    total_work_orders: int = 0
    open_orders: int = 0
    completed_orders: int = 0
    in_progress_orders: int = 0
    overdue_orders: int = 0
    scheduled_orders: int = 0
    pending_orders: int = 0

    # 全局计数
    total_users: int = 0
    total_tasks: int = 0

    # 百分比（四舍五入取整）
    completion_rate: int = 0
    overdue_rate: int = 0

    # 更新信息，外部据此判断快照是否陈旧
    last_updated: datetime = Field(description="写入时间")
    last_calculated: datetime = Field(description="计算基准时间（now）")


class GenerationRunStats(BaseModel):
    """system_stats/task_generation 文档"""

    last_run: datetime
    tasks_generated: int
    plans_processed: int
    plans_skipped: int
    horizon_start: datetime
    horizon_end: datetime
