"""重复规则与槽位映射

next_due_date: 给定日期与频率，返回下一次发生日期（严格晚于输入）。
slot_index: 给定日期与频率，返回清单网格中的列索引。

两者必须一致：对 next_due_date 在频率 F 下产生的任意日期，
slot_index(date, F) 确定且可被任何渲染器独立复现。

月/年运算使用 dateutil.relativedelta 的月末截断语义：
Jan 31 + 1 个月 = Feb 28/29。由于每一步都作用在上一步的结果上，
截断后的日会延续下去（Jan 31 -> Feb 29 -> Mar 29）。

日历运算与槽位都以计划 start_date 自带的 UTC 偏移为准（naive 视为 UTC），
只在存储时转换为 UTC。
"""

from datetime import UTC, datetime, timedelta, tzinfo

from dateutil.relativedelta import relativedelta

from .models.enums import Frequency

_STEPS: dict[Frequency, relativedelta] = {
    Frequency.DAILY: relativedelta(days=1),
    Frequency.WEEKLY: relativedelta(days=7),
    Frequency.MONTHLY: relativedelta(months=1),
    Frequency.QUARTERLY: relativedelta(months=3),
    Frequency.SEMI_ANNUALLY: relativedelta(months=6),
    Frequency.ANNUALLY: relativedelta(years=1),
}

_WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# Weekly 网格的列数：29-31 日落入第 5 列，不截断
WEEKS_PER_MONTH_COLUMNS = 5


def plan_timezone(start_date: datetime | None) -> tzinfo:
    """计划的日历时区：start_date 的偏移；缺失或 naive 时为 UTC"""
    if start_date is None or start_date.tzinfo is None:
        return UTC
    return start_date.tzinfo


def to_plan_local(value: datetime, tz: tzinfo) -> datetime:
    """把时间换算到计划时区；naive 时间视为已是该时区的本地时间"""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _coerce_frequency(frequency: Frequency | str | None) -> Frequency | None:
    if frequency is None:
        return None
    try:
        return Frequency(frequency)
    except ValueError:
        return None


def next_due_date(current: datetime, frequency: Frequency | str | None) -> datetime:
    """计算下一次到期日

    未知频率原样返回输入日期；调用方需检测不推进的情况并中止循环。
    """
    freq = _coerce_frequency(frequency)
    if freq is None:
        return current
    return current + _STEPS[freq]


def day_of_week(value: datetime) -> int:
    """星期索引：0=Sunday .. 6=Saturday"""
    return value.isoweekday() % 7


def slot_index(due: datetime, frequency: Frequency | str | None) -> int | None:
    """计算到期日在清单网格中的列索引

    - Daily: 星期（0=Sunday）
    - Weekly: 月内周序 (day - 1) // 7，29-31 日为 4
    - Monthly: 月份 0-11
    - Quarterly: 季度 0-3
    - Semi-annually: 半年 0-1
    - Annually: 恒为 0（只有"今年"一列，跨年实例无法按槽位区分，已知限制）

    due 需先用 to_plan_local 换算到计划时区。

    Returns:
        列索引；未知频率返回 None
    """
    freq = _coerce_frequency(frequency)
    if freq is None:
        return None

    month0 = due.month - 1
    if freq == Frequency.DAILY:
        return day_of_week(due)
    if freq == Frequency.WEEKLY:
        return (due.day - 1) // 7
    if freq == Frequency.MONTHLY:
        return month0
    if freq == Frequency.QUARTERLY:
        return month0 // 3
    if freq == Frequency.SEMI_ANNUALLY:
        return month0 // 6
    # Annually
    return 0


def column_headers(frequency: Frequency | str | None, today: datetime) -> list[str]:
    """清单网格的列标题，与 slot_index 的取值逐列对应

    Daily 列为 today 所在周（周日起）的七天。
    """
    freq = _coerce_frequency(frequency)
    if freq is None:
        return []

    if freq == Frequency.DAILY:
        start_of_week = today - timedelta(days=day_of_week(today))
        headers = []
        for offset in range(7):
            day = start_of_week + timedelta(days=offset)
            headers.append(f"{_WEEKDAY_LABELS[day_of_week(day)]} {day.day}")
        return headers
    if freq == Frequency.WEEKLY:
        return [f"Week {i + 1}" for i in range(WEEKS_PER_MONTH_COLUMNS)]
    if freq == Frequency.MONTHLY:
        return list(_MONTH_LABELS)
    if freq == Frequency.QUARTERLY:
        return ["Q1", "Q2", "Q3", "Q4"]
    if freq == Frequency.SEMI_ANNUALLY:
        return ["First Half", "Second Half"]
    return [str(today.year)]
