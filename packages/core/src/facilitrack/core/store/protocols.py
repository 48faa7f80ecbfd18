"""Store Protocol 接口定义

定义引擎依赖的存储抽象接口，使用 Python Protocol 实现结构化子类型（duck typing）。
SQLite 实现见同包各模块。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.plan import MaintenancePlan
from ..models.task_instance import TaskInstance
from ..models.work_order import WorkOrder


class PlanStore(Protocol):
    """计划存储接口"""

    async def upsert_plan(self, plan: MaintenancePlan) -> None:
        """创建或覆盖计划"""
        ...

    async def get_plan(self, plan_id: str) -> MaintenancePlan | None:
        """根据 plan_id 查询计划"""
        ...

    async def list_plans(self, active_only: bool = False) -> list[MaintenancePlan]:
        """查询计划列表"""
        ...

    async def delete_plan(self, plan_id: str) -> bool:
        """删除计划"""
        ...

    async def mark_generated(self, plan_id: str, generated_at: str) -> None:
        """更新 last_generated"""
        ...


class TaskInstanceStore(Protocol):
    """任务实例存储接口"""

    async def create_instance(self, instance: TaskInstance) -> None:
        """写入任务实例"""
        ...

    async def get_instance(self, task_id: str) -> TaskInstance | None:
        """根据 task_id 查询"""
        ...

    async def list_instances(
        self,
        plan_id: str | None = None,
        archived: bool | None = None,
    ) -> list[TaskInstance]:
        """查询任务实例"""
        ...

    async def existing_keys(
        self,
        plan_id: str,
        since: datetime,
    ) -> set[tuple[str, str]]:
        """查询已存在的 (due_date, task_description) 组合"""
        ...

    async def update_status(self, task_id: str, status: str, updated_at: str) -> bool:
        """更新状态"""
        ...

    async def mark_archived(self, task_id: str, archived_at: str) -> bool:
        """条件翻转 archived"""
        ...

    async def list_ids_for_plan(self, plan_id: str) -> list[str]:
        """查询计划下所有实例 ID"""
        ...

    async def list_orphan_ids(self) -> list[str]:
        """查询孤儿实例 ID"""
        ...

    async def list_expired_archived(self, cutoff: datetime, limit: int) -> list[str]:
        """查询过期的已归档实例 ID"""
        ...

    async def delete_instances(self, task_ids: list[str]) -> int:
        """批量删除"""
        ...

    async def count_instances(self) -> int:
        """实例总数"""
        ...


class WorkOrderStore(Protocol):
    """工单存储接口（只读视角）"""

    async def list_page(self, after_id: str | None, limit: int) -> list[WorkOrder]:
        """键集分页读取"""
        ...


class DocumentStore(Protocol):
    """单例文档存储接口"""

    async def merge_document(
        self,
        doc_id: str,
        data: dict[str, Any],
        updated_at: str,
    ) -> None:
        """合并写入文档"""
        ...

    async def get_document(self, doc_id: str) -> dict[str, Any] | None:
        """读取文档"""
        ...

    async def increment_archive_counters(
        self,
        doc_id: str,
        day: str,
        last_archived: str,
        updated_at: str,
    ) -> None:
        """原子递增归档计数"""
        ...
