"""汇总快照路由

GET /api/dashboard/summary: 读取 dashboard_stats/summary。
调用方通过 last_updated 判断快照是否陈旧。
"""

from facilitrack.core.aggregation import get_dashboard_summary
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from ..deps import get_store_group

router = APIRouter()


@router.get("/api/dashboard/summary")
async def dashboard_summary(store_group=Depends(get_store_group)):
    snapshot = await get_dashboard_summary(store_group)
    if snapshot is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "SUMMARY_NOT_COMPUTED",
                    "message": "Dashboard summary has not been computed yet",
                }
            },
        )
    return snapshot.model_dump(mode="json")
