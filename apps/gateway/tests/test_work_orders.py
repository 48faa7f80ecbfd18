"""工单路由与汇总快照测试

测试内容：
1. 工单写入后汇总快照自动重算
2. [Completed, Scheduled, Pending(逾期), In Progress] 汇总数值
3. 删除工单后重算；不存在时 404
4. 尚未计算过快照时 404
"""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient


async def _put(client: AsyncClient, work_order_id: str, status: str, days: int) -> None:
    due = (datetime.now(UTC) + timedelta(days=days)).isoformat()
    resp = await client.put(
        f"/api/work-orders/{work_order_id}",
        json={"status": status, "due_date": due},
    )
    assert resp.status_code == 200
    assert resp.json()["stats_updated"] is True


class TestDashboardSummary:
    async def test_summary_not_computed(self, client: AsyncClient):
        resp = await client.get("/api/dashboard/summary")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "SUMMARY_NOT_COMPUTED"

    async def test_recomputed_on_each_mutation(self, client: AsyncClient):
        await _put(client, "wo-1", "Completed", -2)
        await _put(client, "wo-2", "Scheduled", 5)
        await _put(client, "wo-3", "Pending", -2)
        await _put(client, "wo-4", "In Progress", 5)

        resp = await client.get("/api/dashboard/summary")

        assert resp.status_code == 200
        summary = resp.json()
        assert summary["total_work_orders"] == 4
        assert summary["completed_orders"] == 1
        assert summary["open_orders"] == 3
        assert summary["overdue_orders"] == 1
        assert summary["completion_rate"] == 25
        assert summary["overdue_rate"] == 33
        assert summary["last_updated"]
        assert summary["last_calculated"]

    async def test_status_update_moves_counts(self, client: AsyncClient):
        await _put(client, "wo-1", "Open", -1)
        await _put(client, "wo-1", "completed", -1)

        summary = (await client.get("/api/dashboard/summary")).json()
        assert summary["total_work_orders"] == 1
        assert summary["completed_orders"] == 1
        assert summary["open_orders"] == 0
        assert summary["overdue_orders"] == 0

    async def test_unparseable_due_date_tolerated(self, client: AsyncClient):
        resp = await client.put(
            "/api/work-orders/wo-x",
            json={"status": "Open", "due_date": "sometime soon"},
        )
        assert resp.json()["stats_updated"] is True

        summary = (await client.get("/api/dashboard/summary")).json()
        assert summary["open_orders"] == 1
        assert summary["overdue_orders"] == 0


class TestDeleteWorkOrder:
    async def test_delete_recomputes(self, client: AsyncClient):
        await _put(client, "wo-1", "Open", 3)
        await _put(client, "wo-2", "Open", 3)

        resp = await client.delete("/api/work-orders/wo-1")

        assert resp.status_code == 200
        summary = (await client.get("/api/dashboard/summary")).json()
        assert summary["total_work_orders"] == 1

    async def test_delete_missing(self, client: AsyncClient):
        resp = await client.delete("/api/work-orders/none")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "WORK_ORDER_NOT_FOUND"
