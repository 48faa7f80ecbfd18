"""引擎异常体系

可跳过的数据错误只记录日志，不在此列；
这里的异常用于需要调用方（调度层 / gateway）感知的失败。
"""


class EngineError(Exception):
    """引擎基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可由调度层重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class BatchCommitError(EngineError):
    """批量提交失败（已回滚）

    属于瞬时基础设施错误，由调度层负责重试语义。
    注意：生成任务非幂等，关闭去重时重试可能产生重复实例。
    """

    def __init__(self, operation: str, original_error: Exception) -> None:
        super().__init__(
            f"批量提交失败: {operation} -- {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.original_error = original_error


class InvalidTransitionError(EngineError):
    """非法的任务实例状态流转"""

    def __init__(self, task_id: str, from_status: str, to_status: str) -> None:
        super().__init__(
            f"Task instance {task_id} cannot transition {from_status} -> {to_status}",
            recoverable=False,
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status


class TaskInstanceNotFoundError(EngineError):
    """任务实例不存在（可能已被级联删除或清理）"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task instance {task_id} does not exist", recoverable=False)
        self.task_id = task_id


class RecurrenceStalledError(EngineError):
    """重复规则未推进日期（未知频率或异常数据）

    仅作为计划诊断记录，不会中断整次生成。
    """

    def __init__(self, plan_id: str, frequency: object) -> None:
        super().__init__(
            f"Recurrence for plan {plan_id} did not advance (frequency={frequency!r})",
            recoverable=False,
        )
        self.plan_id = plan_id
        self.frequency = frequency
