"""TaskInstance Domain Model

由 TaskGenerator 批量创建；状态由外部操作修改，archived 仅由 LifecycleManager 修改；
由 CascadeDeleter（计划删除）或 RetentionSweeper（过期）销毁。

不变量：
- archived 只能 false -> true 一次，永不回退
- due_date 创建后不可变
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Priority, TaskInstanceStatus, TaskType


class TaskInstance(BaseModel):
    """任务实例 -- 计划的一次具体、带日期的发生"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    plan_id: str = Field(description="所属计划 ID")
    asset_id: str = Field(description="资产 ID（生成时从计划复制）")
    task_description: str = Field(description="任务描述（复制，非引用）")
    due_date: datetime = Field(description="到期日")
    status: TaskInstanceStatus = Field(
        default=TaskInstanceStatus.PENDING,
        description="当前状态",
    )
    archived: bool = Field(default=False, description="是否已归档")
    archived_at: datetime | None = Field(default=None, description="归档时间")
    type: TaskType = Field(default=TaskType.PREVENTIVE, description="类型标签")
    assigned_to: str | None = Field(default=None, description="负责人")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    created_at: datetime = Field(description="创建时间")
    created_by: str = Field(default="system_scheduler", description="创建者")
    updated_at: datetime = Field(description="更新时间")
