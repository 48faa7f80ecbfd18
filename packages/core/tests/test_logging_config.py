"""日志处理器链测试"""

import logging

import pytest
import structlog
from facilitrack.core.logging_config import (
    add_trace_id,
    component_adder,
    setup_logging,
    trace_id_for,
)


class TestAddTraceId:
    def test_task_id_wins_over_plan_id(self):
        event = add_trace_id(None, "info", {"event": "task_archived", "task_id": "T1", "plan_id": "P1"})
        assert event["trace_id"] == "task-T1"

    def test_plan_id(self):
        event = add_trace_id(None, "info", {"event": "cascade_completed", "plan_id": "P1"})
        assert event["trace_id"] == "plan-P1"

    def test_bound_trace_id_is_kept(self):
        event = add_trace_id(
            None, "info", {"event": "task_archived", "task_id": "T1", "trace_id": "plan-P9"}
        )
        assert event["trace_id"] == "plan-P9"

    def test_events_without_ids_are_untouched(self):
        event = add_trace_id(None, "info", {"event": "retention_sweep_completed", "deleted": 3})
        assert "trace_id" not in event

    def test_format_matches_gateway(self):
        assert trace_id_for("plan", "plan-001") == "plan-plan-001"


def test_component_does_not_override_explicit_value():
    add_component = component_adder("scheduler")
    assert add_component(None, "info", {"event": "x"})["component"] == "scheduler"
    assert add_component(None, "info", {"event": "x", "component": "gateway"})["component"] == "gateway"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        structlog.reset_defaults()

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("FACILITRACK_LOG_LEVEL", "warning")
        setup_logging(component="scheduler")

        assert logging.getLogger().level == logging.WARNING
        assert structlog.is_configured()

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("FACILITRACK_LOG_LEVEL", "chatty")
        setup_logging(component="scheduler")

        assert logging.getLogger().level == logging.INFO
