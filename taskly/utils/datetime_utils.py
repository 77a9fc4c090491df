# taskly/utils/datetime_utils.py

import re
from datetime import datetime, timedelta, date
from typing import Optional

import pytz

DEFAULT_TZ = "UTC"

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

def get_timezone(tz_name: Optional[str] = None):
    try:
        return pytz.timezone(tz_name or DEFAULT_TZ)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(DEFAULT_TZ)

def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(get_timezone(tz_name))

def now_iso(tz_name: Optional[str] = None) -> str:
    return now_local(tz_name).isoformat()

def today_str(tz_name: Optional[str] = None) -> str:
    """Сегодняшняя дата в формате YYYY-MM-DD по часовому поясу пользователя"""
    return now_local(tz_name).strftime("%Y-%m-%d")

def add_days(day: str, days: int) -> str:
    return (parse_date(day) + timedelta(days=days)).isoformat()

def parse_date(date_str: str) -> date:
    return datetime.strptime(date_str, "%Y-%m-%d").date()

def is_valid_date(date_str: str) -> bool:
    if not isinstance(date_str, str) or not _ISO_DATE_RE.match(date_str):
        return False
    try:
        parse_date(date_str)
    except ValueError:
        return False
    return True

def days_between(start: str, end: str) -> int:
    return (parse_date(end) - parse_date(start)).days
