"""调度任务路由 -- 外部调度器 / 管理员的手动触发入口

POST /api/jobs/generate: 为所有启用计划生成任务实例。
POST /api/jobs/retention-sweep: 执行一次有界保留期清理。

调用方负责串行化：并发的生成请求在关闭去重时会产生重复实例。
"""

from facilitrack.core.exceptions import BatchCommitError
from fastapi import APIRouter, Depends, Query
from starlette.responses import JSONResponse

from ..deps import get_engine_config, get_store_group
from ..services.maintenance_service import MaintenanceService

router = APIRouter()

NON_IDEMPOTENT_WARNING = (
    "Generation ran without duplicate detection; "
    "invoking it again will create duplicate task instances."
)


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


@router.post("/api/jobs/generate")
async def run_generation(
    allow_duplicates: bool = Query(default=False, description="关闭 check-then-skip 去重"),
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    service = MaintenanceService(store_group, config)
    try:
        result = await service.run_generation(skip_existing=not allow_duplicates)
    except BatchCommitError as e:
        return _batch_failed(e)

    warnings = [NON_IDEMPOTENT_WARNING] if allow_duplicates else []
    return {
        "result": result.model_dump(mode="json"),
        "warnings": warnings,
    }


@router.post("/api/jobs/retention-sweep")
async def run_retention_sweep(
    store_group=Depends(get_store_group),
    config=Depends(get_engine_config),
):
    service = MaintenanceService(store_group, config)
    try:
        result = await service.run_retention_sweep()
    except BatchCommitError as e:
        return _batch_failed(e)
    return result.model_dump(mode="json")
