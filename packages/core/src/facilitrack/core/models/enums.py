"""枚举定义

包含 Frequency 计划频率、TaskInstanceStatus 状态机、TaskType，
以及 VALID_TRANSITIONS 合法流转映射和 ARCHIVABLE_STATES 可归档状态集合。
"""

from enum import StrEnum


class Frequency(StrEnum):
    """维护计划频率"""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "Semi-annually"
    ANNUALLY = "Annually"


class TaskInstanceStatus(StrEnum):
    """任务实例状态机"""

    PENDING = "Pending"
    COMPLETED = "Completed"
    SKIPPED = "Skipped"


class TaskType(StrEnum):
    """任务实例类型标签"""

    PREVENTIVE = "Preventive"


class Priority(StrEnum):
    """任务优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


# 合法状态流转：单向，Completed/Skipped 为终态（重新打开不在引擎范围内）
VALID_TRANSITIONS: dict[TaskInstanceStatus, set[TaskInstanceStatus]] = {
    TaskInstanceStatus.PENDING: {
        TaskInstanceStatus.COMPLETED,
        TaskInstanceStatus.SKIPPED,
    },
    TaskInstanceStatus.COMPLETED: set(),
    TaskInstanceStatus.SKIPPED: set(),
}

# 进入这些状态时触发归档策略
ARCHIVABLE_STATES: set[TaskInstanceStatus] = {
    TaskInstanceStatus.COMPLETED,
    TaskInstanceStatus.SKIPPED,
}


def validate_transition(
    from_status: TaskInstanceStatus,
    to_status: TaskInstanceStatus,
) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
