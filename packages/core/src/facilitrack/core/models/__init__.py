"""Facilitrack Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    ARCHIVABLE_STATES,
    VALID_TRANSITIONS,
    Frequency,
    Priority,
    TaskInstanceStatus,
    TaskType,
    validate_transition,
)
from .plan import MaintenancePlan
from .results import (
    CascadeResult,
    GenerationResult,
    LifecycleOutcome,
    PlanDiagnostic,
    SweepResult,
)
from .stats import AggregateSnapshot, GenerationRunStats
from .task_instance import TaskInstance
from .work_order import User, WorkOrder

__all__ = [
    # 枚举
    "Frequency",
    "TaskInstanceStatus",
    "TaskType",
    "Priority",
    # 状态机
    "VALID_TRANSITIONS",
    "ARCHIVABLE_STATES",
    "validate_transition",
    # 记录
    "MaintenancePlan",
    "TaskInstance",
    "WorkOrder",
    "User",
    # 统计
    "AggregateSnapshot",
    "GenerationRunStats",
    # 结果
    "PlanDiagnostic",
    "GenerationResult",
    "LifecycleOutcome",
    "CascadeResult",
    "SweepResult",
]
