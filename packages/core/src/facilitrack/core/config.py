"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、归档/保留窗口、批量上限、生成视界等可配置常量，
以及 EngineConfig 配置模型。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("FACILITRACK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "FACILITRACK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "facilitrack.db"),
    )


# 完成/跳过后距 due_date 达到该天数即归档
DEFAULT_ARCHIVE_AFTER_DAYS: int = 14

# archived_at 之后保留的天数，超过后由 RetentionSweeper 删除
DEFAULT_RETENTION_DAYS: int = 14

# 单次清理最多删除的行数
DEFAULT_SWEEP_BATCH_LIMIT: int = 100

# 任务生成视界（天）
DEFAULT_HORIZON_DAYS: int = 365

# 统计全量重扫的分页大小
DEFAULT_STATS_PAGE_SIZE: int = 500

# 汇总快照文档键
DASHBOARD_SUMMARY_DOC: str = "dashboard_stats/summary"
TASK_GENERATION_STATS_DOC: str = "system_stats/task_generation"
ARCHIVE_STATS_DOC: str = "system_stats/archive_stats"


class EngineConfig(BaseModel):
    """引擎配置 -- 从环境变量加载

    环境变量:
        FACILITRACK_ARCHIVE_AFTER_DAYS: 归档年龄阈值（默认 14）
        FACILITRACK_RETENTION_DAYS: 归档后保留天数（默认 14）
        FACILITRACK_SWEEP_BATCH_LIMIT: 单次清理上限（默认 100）
        FACILITRACK_HORIZON_DAYS: 生成视界（默认 365）
        FACILITRACK_STATS_PAGE_SIZE: 统计分页大小（默认 500）
    """

    archive_after_days: int = Field(default=DEFAULT_ARCHIVE_AFTER_DAYS, ge=0)
    retention_days: int = Field(default=DEFAULT_RETENTION_DAYS, ge=0)
    sweep_batch_limit: int = Field(default=DEFAULT_SWEEP_BATCH_LIMIT, ge=1)
    horizon_days: int = Field(default=DEFAULT_HORIZON_DAYS, ge=1)
    stats_page_size: int = Field(default=DEFAULT_STATS_PAGE_SIZE, ge=1)


# 环境变量 -> (字段名, 最小值)
_ENV_FIELDS: dict[str, tuple[str, int]] = {
    "FACILITRACK_ARCHIVE_AFTER_DAYS": ("archive_after_days", 0),
    "FACILITRACK_RETENTION_DAYS": ("retention_days", 0),
    "FACILITRACK_SWEEP_BATCH_LIMIT": ("sweep_batch_limit", 1),
    "FACILITRACK_HORIZON_DAYS": ("horizon_days", 1),
    "FACILITRACK_STATS_PAGE_SIZE": ("stats_page_size", 1),
}


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    非法整数值回退为默认值并记录警告，不阻塞启动。
    """
    kwargs: dict = {}
    defaults = EngineConfig()

    for env_var, (field_name, minimum) in _ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            parsed = int(val)
        except ValueError:
            parsed = None
        if parsed is None or parsed < minimum:
            log.warning(
                "invalid_engine_config",
                env_var=env_var,
                value=val,
                fallback=getattr(defaults, field_name),
            )
            continue
        kwargs[field_name] = parsed

    return EngineConfig(**kwargs)
