"""调度任务路由测试"""

from datetime import UTC, datetime, timedelta

from facilitrack.core.models import TaskInstance, TaskInstanceStatus
from httpx import AsyncClient


class TestGenerateJob:
    async def test_generate_all_active_plans(self, client: AsyncClient):
        start = (datetime.now(UTC) + timedelta(days=1)).isoformat()
        await client.put(
            "/api/plans/plan-a",
            json={"asset_id": "a1", "frequency": "Monthly", "start_date": start, "tasks": ["A"]},
        )
        await client.put(
            "/api/plans/plan-b",
            json={
                "asset_id": "a2",
                "frequency": "Monthly",
                "start_date": start,
                "tasks": ["B"],
                "is_active": False,
            },
        )

        resp = await client.post("/api/jobs/generate")

        assert resp.status_code == 200
        data = resp.json()
        # plan-a 已在 PUT 时生成，全部命中去重
        assert data["result"]["tasks_generated"] == 0
        assert data["result"]["plans_processed"] == 1
        assert data["warnings"] == []

    async def test_allow_duplicates_warns(self, client: AsyncClient):
        resp = await client.post("/api/jobs/generate", params={"allow_duplicates": "true"})

        assert resp.status_code == 200
        assert len(resp.json()["warnings"]) == 1


class TestRetentionSweepJob:
    async def test_sweep_deletes_expired_archived(self, client: AsyncClient, app):
        store_group = app.state.store_group
        now = datetime.now(UTC)
        for i in range(3):
            await store_group.task_store.create_instance(
                TaskInstance(
                    task_id=f"01JSWEEP00000000000000000{i}",
                    plan_id="plan-001",
                    asset_id="asset-001",
                    task_description="Check filters",
                    due_date=now - timedelta(days=60),
                    status=TaskInstanceStatus.COMPLETED,
                    archived=True,
                    archived_at=now - timedelta(days=30 if i < 2 else 1),
                    created_at=now - timedelta(days=90),
                    updated_at=now - timedelta(days=30),
                )
            )
        await store_group.conn.commit()

        resp = await client.post("/api/jobs/retention-sweep")

        assert resp.status_code == 200
        assert resp.json() == {"deleted": 2, "limit": 100, "has_more": False}
        assert await store_group.task_store.count_instances() == 1
