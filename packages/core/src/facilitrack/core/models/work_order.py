"""WorkOrder / User Domain Model

两者均不归本引擎所有：WorkOrder 仅被 StatsAggregator 读取，User 仅被计数。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class WorkOrder(BaseModel):
    """工单 -- status 为自由文本，汇总时大小写不敏感"""

    work_order_id: str = Field(description="唯一标识")
    status: str = Field(default="", description="状态（自由文本）")
    due_date: str | None = Field(
        default=None,
        description="到期日原始值，可能缺失或无法解析",
    )


class User(BaseModel):
    """用户"""

    user_id: str
    display_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
