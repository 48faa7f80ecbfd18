"""引擎运行结果类型

每个工作单元返回结构化结果，供 CLI / gateway 回报给调度层。
"""

from pydantic import BaseModel, Field


class PlanDiagnostic(BaseModel):
    """单个计划被跳过的诊断信息（非错误）"""

    plan_id: str
    reason: str = Field(description="跳过原因代码")
    detail: str = Field(default="")


class GenerationResult(BaseModel):
    """TaskGenerator 单次运行结果"""

    tasks_generated: int = 0
    duplicates_skipped: int = 0
    plans_processed: int = 0
    plans_skipped: int = 0
    diagnostics: list[PlanDiagnostic] = Field(default_factory=list)


class LifecycleOutcome(BaseModel):
    """LifecycleManager 对一次状态变更的处理结果"""

    task_id: str
    archived: bool = Field(description="本次是否发生归档翻转")
    age_days: float | None = Field(default=None, description="now - due_date（天）")
    reason: str = Field(default="", description="未归档时的原因代码")


class CascadeResult(BaseModel):
    """CascadeDeleter 结果"""

    plan_id: str | None = None
    deleted: int = 0


class SweepResult(BaseModel):
    """RetentionSweeper 单次运行结果"""

    deleted: int = 0
    limit: int = 0
    has_more: bool = Field(default=False, description="是否仍有待清理的过期实例")
