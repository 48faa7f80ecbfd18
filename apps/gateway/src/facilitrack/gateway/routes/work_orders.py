"""工单路由

工单不归引擎所有；这里的写入只是 StatsAggregator 的触发入口。
PUT /api/work-orders/{work_order_id}: 创建/更新工单，重算汇总。
DELETE /api/work-orders/{work_order_id}: 删除工单，重算汇总。

汇总重算失败不影响工单写入，响应中 stats_updated=false。
"""

from facilitrack.core.models import WorkOrder
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_engine_config, get_store_group
from ..services.maintenance_service import MaintenanceService

router = APIRouter()


class WorkOrderRequest(BaseModel):
    """工单写入请求体"""

    status: str = Field(default="", description="状态（自由文本）")
    due_date: str | None = Field(default=None, description="到期日（ISO 8601）")


@router.put("/api/work-orders/{work_order_id}")
async def save_work_order(
    work_order_id: str,
    body: WorkOrderRequest,
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    service = MaintenanceService(store_group, config)
    order = WorkOrder(work_order_id=work_order_id, **body.model_dump())
    snapshot = await service.save_work_order(order)
    return {
        "work_order_id": work_order_id,
        "stats_updated": snapshot is not None,
    }


@router.delete("/api/work-orders/{work_order_id}")
async def delete_work_order(
    work_order_id: str,
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    service = MaintenanceService(store_group, config)
    removed, snapshot = await service.remove_work_order(work_order_id)
    if not removed:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "WORK_ORDER_NOT_FOUND",
                    "message": f"Work order with id {work_order_id} does not exist",
                }
            },
        )
    return {
        "work_order_id": work_order_id,
        "stats_updated": snapshot is not None,
    }
