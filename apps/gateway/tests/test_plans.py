"""计划路由测试

测试内容：
1. PUT 计划触发生成，重复 PUT 不产生重复实例
2. 缺少字段的计划保存成功，生成结果带诊断
3. DELETE 级联删除，不存在时 404
4. 清单网格（带 UTC 偏移的计划按本地月份落列）
"""

from datetime import UTC, datetime, timedelta, timezone

from httpx import AsyncClient


def _plan_body(**overrides) -> dict:
    body = {
        "asset_id": "asset-001",
        "plan_name": "Chiller weekly",
        "frequency": "Weekly",
        "start_date": (datetime.now(UTC) - timedelta(days=3)).isoformat(),
        "tasks": ["Check refrigerant", "Clean coils"],
    }
    body.update(overrides)
    return body


class TestSavePlan:
    async def test_put_generates_instances(self, client: AsyncClient):
        resp = await client.put("/api/plans/plan-001", json=_plan_body())

        assert resp.status_code == 200
        generation = resp.json()["generation"]
        assert generation["plans_processed"] == 1
        assert generation["tasks_generated"] == 104

        listing = await client.get("/api/task-instances", params={"plan_id": "plan-001"})
        instances = listing.json()["task_instances"]
        assert len(instances) == 104
        assert all(i["status"] == "Pending" and i["archived"] is False for i in instances)

    async def test_repeated_put_is_deduplicated(self, client: AsyncClient):
        await client.put("/api/plans/plan-001", json=_plan_body())
        resp = await client.put("/api/plans/plan-001", json=_plan_body())

        generation = resp.json()["generation"]
        assert generation["tasks_generated"] == 0
        assert generation["duplicates_skipped"] == 104

    async def test_allow_duplicates(self, client: AsyncClient):
        await client.put("/api/plans/plan-001", json=_plan_body(tasks=["Check refrigerant"]))
        resp = await client.put(
            "/api/plans/plan-001",
            params={"allow_duplicates": "true"},
            json=_plan_body(tasks=["Check refrigerant"]),
        )

        assert resp.json()["generation"]["tasks_generated"] == 52

    async def test_plan_without_frequency_is_inert(self, client: AsyncClient):
        resp = await client.put("/api/plans/plan-002", json=_plan_body(frequency=None))

        assert resp.status_code == 200
        generation = resp.json()["generation"]
        assert generation["tasks_generated"] == 0
        assert generation["diagnostics"][0]["reason"] == "missing_frequency"

    async def test_invalid_frequency_rejected(self, client: AsyncClient):
        resp = await client.put("/api/plans/plan-003", json=_plan_body(frequency="Hourly"))
        assert resp.status_code == 422


class TestDeletePlan:
    async def test_delete_cascades(self, client: AsyncClient):
        await client.put("/api/plans/plan-a", json=_plan_body())
        await client.put("/api/plans/plan-b", json=_plan_body(tasks=["Check refrigerant"]))

        resp = await client.delete("/api/plans/plan-a")

        assert resp.status_code == 200
        data = resp.json()
        assert data["plan_deleted"] is True
        assert data["tasks_deleted"] == 104

        remaining_a = await client.get("/api/task-instances", params={"plan_id": "plan-a"})
        remaining_b = await client.get("/api/task-instances", params={"plan_id": "plan-b"})
        assert remaining_a.json()["task_instances"] == []
        assert len(remaining_b.json()["task_instances"]) == 52

    async def test_delete_missing_plan(self, client: AsyncClient):
        resp = await client.delete("/api/plans/nope")

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "PLAN_NOT_FOUND"


class TestChecklist:
    async def test_quarterly_grid(self, client: AsyncClient):
        await client.put(
            "/api/plans/plan-q",
            json=_plan_body(
                frequency="Quarterly",
                start_date=(datetime.now(UTC) + timedelta(days=1)).isoformat(),
                tasks=["Inspect roof"],
            ),
        )

        resp = await client.get("/api/plans/plan-q/checklist", params={"today": "2024-06-05"})

        assert resp.status_code == 200
        grid = resp.json()
        assert grid["headers"] == ["Q1", "Q2", "Q3", "Q4"]
        row = grid["rows"][0]
        assert row["task_description"] == "Inspect roof"
        # 一年视界内的四个季度实例各占一列
        assert all(cell is not None for cell in row["cells"])
        assert grid["unplaced"] == []

    async def test_monthly_grid_for_offset_start_date(self, client: AsyncClient):
        plus3 = timezone(timedelta(hours=3))
        anchor = datetime.now(UTC) + timedelta(days=40)
        start = datetime(anchor.year, anchor.month, 1, tzinfo=plus3)
        await client.put(
            "/api/plans/plan-m",
            json=_plan_body(
                frequency="Monthly",
                start_date=start.isoformat(),
                tasks=["Test alarms"],
            ),
        )

        resp = await client.get("/api/plans/plan-m/checklist")

        assert resp.status_code == 200
        cells = resp.json()["rows"][0]["cells"]
        placed = [(i, datetime.fromisoformat(c["due_date"])) for i, c in enumerate(cells) if c]
        assert placed
        for index, due in placed:
            assert due.utcoffset() == timedelta(hours=3)
            assert due.day == 1
            assert index == due.month - 1

    async def test_checklist_missing_plan(self, client: AsyncClient):
        resp = await client.get("/api/plans/nope/checklist")
        assert resp.status_code == 404
