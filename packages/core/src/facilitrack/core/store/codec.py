"""时间戳编解码

所有时间统一转为 UTC 后以 ISO-8601 存储，保证 TEXT 列的字典序即时间序，
且同一时刻总是编码为同一字符串（去重查询依赖这一点）。

例外：计划的 start_date 保留原始 UTC 偏移（keep_offset=True），
重复规则在该偏移的本地日历上推进。该列不参与排序或去重。
"""

from datetime import UTC, datetime


def ensure_utc(value: datetime) -> datetime:
    """naive 时间视为 UTC；aware 时间转换到 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_db_ts(value: datetime | None, keep_offset: bool = False) -> str | None:
    if value is None:
        return None
    if keep_offset and value.tzinfo is not None:
        return value.isoformat()
    return ensure_utc(value).isoformat()


def from_db_ts(value: str | None, keep_offset: bool = False) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if keep_offset and parsed.tzinfo is not None:
        return parsed
    return ensure_utc(parsed)
