"""SQLite Store 单元测试

测试内容：
1. WAL 模式
2. 计划读写（start_date 保留 UTC 偏移）与损坏记录跳过
3. 去重键查询
4. 单例文档合并写入与归档计数原子递增
5. 工单键集分页
"""

from datetime import UTC, datetime, timedelta, timezone

from facilitrack.core.models import Frequency, MaintenancePlan, TaskInstance, WorkOrder
from facilitrack.core.store.sqlite_init import verify_wal_mode

NOW = datetime(2024, 1, 10, tzinfo=UTC)


def _plan(plan_id: str = "plan-001", **kwargs) -> MaintenancePlan:
    return MaintenancePlan(
        plan_id=plan_id,
        asset_id="asset-001",
        plan_name="HVAC quarterly",
        frequency=kwargs.pop("frequency", Frequency.QUARTERLY),
        start_date=kwargs.pop("start_date", NOW),
        tasks=kwargs.pop("tasks", ["Replace filter", "Inspect ducts"]),
        **kwargs,
    )


class TestSqliteInit:
    async def test_wal_enabled(self, store_group):
        assert await verify_wal_mode(store_group.conn) is True


class TestPlanStore:
    async def test_roundtrip(self, store_group):
        await store_group.plan_store.upsert_plan(_plan(assigned_to="tech-1"))
        await store_group.conn.commit()

        plan = await store_group.plan_store.get_plan("plan-001")

        assert plan.frequency == Frequency.QUARTERLY
        assert plan.start_date == NOW
        assert plan.tasks == ["Replace filter", "Inspect ducts"]
        assert plan.is_active is True
        assert plan.assigned_to == "tech-1"

    async def test_start_date_keeps_utc_offset(self, store_group):
        start = datetime(2024, 2, 1, tzinfo=timezone(timedelta(hours=3)))
        await store_group.plan_store.upsert_plan(_plan(start_date=start))
        await store_group.conn.commit()

        plan = await store_group.plan_store.get_plan("plan-001")

        assert plan.start_date == start
        assert plan.start_date.utcoffset() == timedelta(hours=3)
        assert plan.start_date.day == 1

    async def test_upsert_overwrites(self, store_group):
        await store_group.plan_store.upsert_plan(_plan())
        await store_group.plan_store.upsert_plan(_plan(tasks=["Only task"], is_active=False))
        await store_group.conn.commit()

        plan = await store_group.plan_store.get_plan("plan-001")
        assert plan.tasks == ["Only task"]
        assert plan.is_active is False
        assert await store_group.plan_store.list_plans(active_only=True) == []

    async def test_invalid_row_is_skipped(self, store_group):
        await store_group.plan_store.upsert_plan(_plan("plan-ok"))
        await store_group.conn.execute(
            """
            INSERT INTO maintenance_plans (plan_id, asset_id, frequency, tasks)
            VALUES ('plan-bad', 'asset-9', 'Fortnightly', '[]')
            """
        )
        await store_group.conn.commit()

        plans = await store_group.plan_store.list_plans()

        assert [p.plan_id for p in plans] == ["plan-ok"]
        assert await store_group.plan_store.get_plan("plan-bad") is None

    async def test_delete(self, store_group):
        await store_group.plan_store.upsert_plan(_plan())
        await store_group.conn.commit()

        assert await store_group.plan_store.delete_plan("plan-001") is True
        assert await store_group.plan_store.delete_plan("plan-001") is False


class TestTaskInstanceStore:
    async def test_existing_keys_since(self, store_group):
        for task_id, due in [
            ("t-old", datetime(2024, 1, 1, tzinfo=UTC)),
            ("t-new", datetime(2024, 1, 15, tzinfo=UTC)),
        ]:
            await store_group.task_store.create_instance(
                TaskInstance(
                    task_id=task_id,
                    plan_id="plan-001",
                    asset_id="asset-001",
                    task_description="Replace filter",
                    due_date=due,
                    created_at=NOW,
                    updated_at=NOW,
                )
            )
        await store_group.conn.commit()

        keys = await store_group.task_store.existing_keys("plan-001", NOW)

        assert keys == {("2024-01-15T00:00:00+00:00", "Replace filter")}

    async def test_filter_by_archived(self, store_group):
        await store_group.task_store.create_instance(
            TaskInstance(
                task_id="t1",
                plan_id="plan-001",
                asset_id="asset-001",
                task_description="Replace filter",
                due_date=NOW,
                created_at=NOW,
                updated_at=NOW,
            )
        )
        await store_group.conn.commit()
        assert await store_group.task_store.mark_archived("t1", NOW.isoformat()) is True
        await store_group.conn.commit()

        assert len(await store_group.task_store.list_instances(archived=True)) == 1
        assert await store_group.task_store.list_instances(archived=False) == []


class TestDocumentStore:
    async def test_merge_keeps_unmentioned_keys(self, store_group):
        docs = store_group.document_store
        await docs.merge_document("system_stats/x", {"a": 1, "nested": {"d1": 1}}, NOW.isoformat())
        await docs.merge_document("system_stats/x", {"b": 2, "nested": {"d2": 5}}, NOW.isoformat())
        await store_group.conn.commit()

        assert await docs.get_document("system_stats/x") == {
            "a": 1,
            "b": 2,
            "nested": {"d1": 1, "d2": 5},
        }

    async def test_missing_document(self, store_group):
        assert await store_group.document_store.get_document("nope/none") is None

    async def test_archive_counters_create_document(self, store_group):
        docs = store_group.document_store
        await docs.increment_archive_counters(
            "system_stats/archive", "2024-03-01", NOW.isoformat(), NOW.isoformat()
        )
        await store_group.conn.commit()

        assert await docs.get_document("system_stats/archive") == {
            "daily": {"2024-03-01": 1},
            "total_archived": 1,
            "last_archived": NOW.isoformat(),
        }

    async def test_archive_counters_increment_in_place(self, store_group):
        docs = store_group.document_store
        await docs.merge_document(
            "system_stats/archive",
            {"daily": {"2024-02-29": 4}, "total_archived": 10, "note": "kept"},
            NOW.isoformat(),
        )
        for _ in range(2):
            await docs.increment_archive_counters(
                "system_stats/archive", "2024-03-01", NOW.isoformat(), NOW.isoformat()
            )
        await store_group.conn.commit()

        stats = await docs.get_document("system_stats/archive")
        assert stats["daily"] == {"2024-02-29": 4, "2024-03-01": 2}
        assert stats["total_archived"] == 12
        assert stats["last_archived"] == NOW.isoformat()
        assert stats["note"] == "kept"


class TestWorkOrderStore:
    async def test_keyset_pages(self, store_group):
        for i in range(7):
            await store_group.work_order_store.upsert_work_order(
                WorkOrder(work_order_id=f"wo-{i}", status="Open")
            )
        await store_group.conn.commit()

        first = await store_group.work_order_store.list_page(None, 3)
        second = await store_group.work_order_store.list_page(first[-1].work_order_id, 3)
        third = await store_group.work_order_store.list_page(second[-1].work_order_id, 3)

        assert [o.work_order_id for o in first + second + third] == [f"wo-{i}" for i in range(7)]
        assert len(third) == 1

    async def test_delete(self, store_group):
        await store_group.work_order_store.upsert_work_order(WorkOrder(work_order_id="wo-1"))
        await store_group.conn.commit()

        assert await store_group.work_order_store.delete_work_order("wo-1") is True
        assert await store_group.work_order_store.delete_work_order("wo-1") is False
