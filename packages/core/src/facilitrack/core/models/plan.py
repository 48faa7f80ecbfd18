"""MaintenancePlan Domain Model

计划由外部的计划编辑流程创建，对引擎只读（last_generated 除外）。
删除计划必须级联删除其任务实例。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Frequency


class MaintenancePlan(BaseModel):
    """维护计划 -- 每条任务描述按 frequency 独立重复"""

    plan_id: str = Field(description="唯一标识")
    asset_id: str = Field(description="关联资产 ID（引用，非持有）")
    plan_name: str = Field(default="", description="计划名称")
    frequency: Frequency | None = Field(default=None, description="重复频率")
    start_date: datetime | None = Field(default=None, description="首次到期日")
    tasks: list[str] = Field(default_factory=list, description="任务描述列表")
    is_active: bool = Field(default=True, description="是否启用")
    assigned_to: str | None = Field(default=None, description="默认负责人")
    last_generated: datetime | None = Field(
        default=None,
        description="最近一次生成任务实例的时间",
    )
