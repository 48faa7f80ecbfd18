"""维护计划路由

PUT /api/plans/{plan_id}: 创建/更新计划，并为该计划生成任务实例。
DELETE /api/plans/{plan_id}: 删除计划并级联删除其任务实例。
GET /api/plans/{plan_id}/checklist: 计划的清单网格。
"""

from datetime import date, datetime

from facilitrack.core.exceptions import BatchCommitError
from facilitrack.core.models import Frequency, MaintenancePlan
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_engine_config, get_store_group
from ..services.maintenance_service import MaintenanceService

router = APIRouter()


class PlanRequest(BaseModel):
    """计划写入请求体"""

    asset_id: str = Field(description="关联资产 ID")
    plan_name: str = Field(default="", description="计划名称")
    frequency: Frequency | None = Field(default=None, description="重复频率")
    start_date: datetime | None = Field(default=None, description="首次到期日")
    tasks: list[str] = Field(default_factory=list, description="任务描述列表")
    is_active: bool = Field(default=True, description="是否启用")
    assigned_to: str | None = Field(default=None, description="默认负责人")


def _batch_failed(e: BatchCommitError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={
            "error": {
                "code": "BATCH_COMMIT_FAILED",
                "message": str(e),
            }
        },
    )


@router.put("/api/plans/{plan_id}")
async def save_plan(
    plan_id: str,
    body: PlanRequest,
    allow_duplicates: bool = Query(default=False, description="关闭 check-then-skip 去重"),
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    """写入计划并触发生成

    缺少 start_date / frequency 的计划照常保存，生成结果中带诊断信息。
    """
    plan = MaintenancePlan(plan_id=plan_id, **body.model_dump())
    service = MaintenanceService(store_group, config)

    try:
        result = await service.save_plan(plan, skip_existing=not allow_duplicates)
    except BatchCommitError as e:
        return _batch_failed(e)

    return {
        "plan_id": plan_id,
        "generation": result.model_dump(mode="json"),
    }


@router.delete("/api/plans/{plan_id}")
async def delete_plan(
    plan_id: str,
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    """删除计划并级联删除任务实例

    计划与实例均不存在时返回 404。
    """
    service = MaintenanceService(store_group, config)
    try:
        removed, cascade = await service.remove_plan(plan_id)
    except BatchCommitError as e:
        return _batch_failed(e)

    if not removed and cascade.deleted == 0:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "PLAN_NOT_FOUND",
                    "message": f"Plan with id {plan_id} does not exist",
                }
            },
        )

    return {
        "plan_id": plan_id,
        "plan_deleted": removed,
        "tasks_deleted": cascade.deleted,
    }


@router.get("/api/plans/{plan_id}/checklist")
async def get_checklist(
    plan_id: str,
    today: date | None = Query(default=None, description="渲染基准日，默认今天"),
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    """按计划频率放置任务实例的清单网格"""
    service = MaintenanceService(store_group, config)
    # 查询日期按计划时区的本地日期解释
    reference = datetime(today.year, today.month, today.day) if today else None
    grid = await service.get_checklist(plan_id, today=reference)

    if grid is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "PLAN_NOT_FOUND",
                    "message": f"Plan with id {plan_id} does not exist",
                }
            },
        )

    return grid.model_dump(mode="json")
