"""任务实例路由

GET /api/task-instances: 任务实例列表，支持 plan_id / archived 筛选。
POST /api/task-instances/{task_id}/status: 状态变更，触发归档策略。
- 200: 变更成功
- 404: 实例不存在
- 409: 非法流转（终态不可再变更）
"""

from facilitrack.core.exceptions import InvalidTransitionError, TaskInstanceNotFoundError
from facilitrack.core.models import TaskInstanceStatus
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_engine_config, get_store_group
from ..services.maintenance_service import MaintenanceService

router = APIRouter()


class StatusChangeRequest(BaseModel):
    """状态变更请求体"""

    status: TaskInstanceStatus = Field(description="目标状态")


def _not_found(task_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": {
                "code": "TASK_INSTANCE_NOT_FOUND",
                "message": f"Task instance with id {task_id} does not exist",
            }
        },
    )


@router.get("/api/task-instances")
async def list_task_instances(
    plan_id: str | None = Query(default=None, description="按计划筛选"),
    archived: bool | None = Query(default=None, description="按归档状态筛选"),
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    """查询任务实例，按 due_date 升序"""
    service = MaintenanceService(store_group, config)
    instances = await service.list_task_instances(plan_id=plan_id, archived=archived)
    return {"task_instances": [i.model_dump(mode="json") for i in instances]}


@router.post("/api/task-instances/{task_id}/status")
async def change_task_status(
    task_id: str,
    body: StatusChangeRequest,
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    """变更任务实例状态"""
    service = MaintenanceService(store_group, config)

    try:
        instance, outcome = await service.change_task_status(task_id, body.status)
    except TaskInstanceNotFoundError:
        return _not_found(task_id)
    except InvalidTransitionError as e:
        return JSONResponse(
            status_code=409,
            content={
                "error": {
                    "code": "INVALID_STATUS_TRANSITION",
                    "message": str(e),
                }
            },
        )

    if instance is None:
        return _not_found(task_id)

    return {
        "task_instance": instance.model_dump(mode="json"),
        "lifecycle": outcome.model_dump(mode="json"),
    }
