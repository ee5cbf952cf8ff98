"""
日期/时间工具：Gateway 的日期字段格式不统一（YYYY-MM-DD、带 Z 的 ISO、带时区偏移的 ISO），
这里统一解析为 UTC 的 datetime；解析失败一律返回 None，不抛异常
"""
import re
from datetime import date, datetime, time, timedelta, timezone

_YMD_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Go 后端可能返回纳秒精度，fromisoformat 最多接受 6 位小数
_FRACTION_PATTERN = re.compile(r"\.(\d{6})\d+")


def parse_datetime(value) -> datetime | None:
    """
    解析为带时区（UTC）的 datetime
    支持 datetime / date / ISO 字符串 / YYYY-MM-DD；非法值返回 None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None
    if _YMD_PATTERN.match(s):
        try:
            return datetime.strptime(s, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None

    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"
    s = _FRACTION_PATTERN.sub(r".\1", s)
    try:
        return _as_utc(datetime.fromisoformat(s))
    except ValueError:
        return None


def parse_date(value) -> date | None:
    dt = parse_datetime(value)
    return dt.date() if dt else None


def format_ymd(value) -> str | None:
    """写回 Gateway 用的 YYYY-MM-DD；非法值返回 None（字段不写）"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.isoformat()
    dt = parse_datetime(value)
    return dt.strftime("%Y-%m-%d") if dt else None


def format_iso_utc(dt: datetime) -> str:
    """2024-03-10T14:30:00.000Z（毫秒精度，Z 结尾）"""
    dt = _as_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def split_time(dt: datetime) -> str:
    """24 小时制 HH:MM（UTC）"""
    return _as_utc(dt).strftime("%H:%M")


def resolve_day(value) -> datetime | None:
    """
    把表单里的日期值解析成 datetime
    - datetime / date 对象
    - ISO 字符串（含 T 或 Z）
    - YYYY-MM-DD：按 UTC 零点构造，避免本地时区导致日期偏移
    """
    if isinstance(value, str):
        s = value.strip()
        if "T" in s or "Z" in s:
            return parse_datetime(s)
        parts = s.split("-")
        if len(parts) == 3:
            try:
                year, month, day = (int(p) for p in parts)
                return datetime(year, month, day, tzinfo=timezone.utc)
            except ValueError:
                return None
    return parse_datetime(value)


def combine_date_time(day, hhmm: str | None = None) -> datetime | None:
    """
    日期 + HH:MM 合并为一个 UTC 时间戳
    时间超出范围时按分钟数顺延（与前端 setHours 行为一致）
    """
    dt = resolve_day(day)
    if dt is None:
        return None
    if hhmm and isinstance(hhmm, str):
        hours, minutes = _parse_hhmm(hhmm)
        dt = dt.replace(hour=0, minute=0, second=0, microsecond=0)
        dt += timedelta(hours=hours, minutes=minutes)
    return dt


def _parse_hhmm(hhmm: str) -> tuple[int, int]:
    parts = hhmm.strip().split(":")
    values = []
    for part in parts[:2]:
        try:
            values.append(int(part))
        except ValueError:
            values.append(0)
    while len(values) < 2:
        values.append(0)
    return values[0], values[1]


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
