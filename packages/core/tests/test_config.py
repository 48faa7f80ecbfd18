"""配置加载单元测试"""

import pytest
from facilitrack.core.config import (
    DEFAULT_ARCHIVE_AFTER_DAYS,
    DEFAULT_HORIZON_DAYS,
    get_db_path,
    load_engine_config,
)


class TestLoadEngineConfig:
    def test_defaults(self, monkeypatch):
        for name in (
            "FACILITRACK_ARCHIVE_AFTER_DAYS",
            "FACILITRACK_RETENTION_DAYS",
            "FACILITRACK_SWEEP_BATCH_LIMIT",
            "FACILITRACK_HORIZON_DAYS",
            "FACILITRACK_STATS_PAGE_SIZE",
        ):
            monkeypatch.delenv(name, raising=False)

        config = load_engine_config()

        assert config.archive_after_days == 14
        assert config.retention_days == 14
        assert config.sweep_batch_limit == 100
        assert config.horizon_days == 365
        assert config.stats_page_size == 500

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FACILITRACK_SWEEP_BATCH_LIMIT", "25")
        monkeypatch.setenv("FACILITRACK_ARCHIVE_AFTER_DAYS", "0")

        config = load_engine_config()

        assert config.sweep_batch_limit == 25
        assert config.archive_after_days == 0

    @pytest.mark.parametrize("value", ["abc", "-1", "1.5"])
    def test_invalid_value_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("FACILITRACK_ARCHIVE_AFTER_DAYS", value)
        assert load_engine_config().archive_after_days == DEFAULT_ARCHIVE_AFTER_DAYS

    def test_horizon_must_be_positive(self, monkeypatch):
        monkeypatch.setenv("FACILITRACK_HORIZON_DAYS", "0")
        assert load_engine_config().horizon_days == DEFAULT_HORIZON_DAYS


class TestDbPath:
    def test_explicit_path(self, monkeypatch):
        monkeypatch.setenv("FACILITRACK_DB_PATH", "/tmp/x/engine.db")
        assert get_db_path() == "/tmp/x/engine.db"

    def test_derived_from_data_dir(self, monkeypatch):
        monkeypatch.delenv("FACILITRACK_DB_PATH", raising=False)
        monkeypatch.setenv("FACILITRACK_DATA_DIR", "/srv/facilitrack")
        assert get_db_path() == "/srv/facilitrack/sqlite/facilitrack.db"
