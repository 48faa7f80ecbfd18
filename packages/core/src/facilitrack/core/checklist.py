"""清单网格

按计划频率把任务实例放入 任务描述 x 列 的网格，供渲染层使用。
列索引由 slot_index 计算，与生成时的日期运算一致；
同一格有多个实例时取最早到期的一个。
到期日与 today 都先换算到计划时区再取槽位。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .aggregation import percentage
from .models.enums import TaskInstanceStatus
from .models.plan import MaintenancePlan
from .models.task_instance import TaskInstance
from .recurrence import column_headers, plan_timezone, slot_index, to_plan_local


class ChecklistCell(BaseModel):
    task_id: str
    status: TaskInstanceStatus
    due_date: datetime


class ChecklistRow(BaseModel):
    task_description: str
    cells: list[ChecklistCell | None] = Field(description="与 headers 逐列对应，空格为 None")


class ChecklistGrid(BaseModel):
    """计划的清单网格"""

    plan_id: str
    frequency: str | None
    headers: list[str]
    rows: list[ChecklistRow] = Field(default_factory=list)
    unplaced: list[str] = Field(
        default_factory=list,
        description="无法放入任何列的实例 ID（未知频率或越界槽位）",
    )
    progress: int = Field(default=0, description="已完成实例占比（百分比）")


def build_checklist(
    plan: MaintenancePlan,
    instances: list[TaskInstance],
    today: datetime,
) -> ChecklistGrid:
    """构建清单网格

    Args:
        plan: 计划（决定频率与行顺序）
        instances: 该计划的任务实例
        today: 渲染基准日（决定 Daily 周与 Annually 年份标题）；naive 视为计划时区的本地时间
    """
    tz = plan_timezone(plan.start_date)
    headers = column_headers(plan.frequency, to_plan_local(today, tz))

    # 行顺序：计划中的描述优先，其余按首次出现追加
    descriptions = list(dict.fromkeys(plan.tasks))
    for instance in instances:
        if instance.task_description not in descriptions:
            descriptions.append(instance.task_description)

    grid: dict[str, list[ChecklistCell | None]] = {
        desc: [None] * len(headers) for desc in descriptions
    }
    unplaced: list[str] = []

    for instance in sorted(instances, key=lambda i: (i.due_date, i.task_id)):
        local_due = to_plan_local(instance.due_date, tz)
        slot = slot_index(local_due, plan.frequency)
        if slot is None or slot >= len(headers):
            unplaced.append(instance.task_id)
            continue
        row = grid[instance.task_description]
        if row[slot] is None:
            row[slot] = ChecklistCell(
                task_id=instance.task_id,
                status=instance.status,
                due_date=local_due,
            )

    completed = sum(1 for i in instances if i.status == TaskInstanceStatus.COMPLETED)
    return ChecklistGrid(
        plan_id=plan.plan_id,
        frequency=plan.frequency.value if plan.frequency else None,
        headers=headers,
        rows=[ChecklistRow(task_description=d, cells=grid[d]) for d in descriptions],
        unplaced=unplaced,
        progress=percentage(completed, len(instances)),
    )
