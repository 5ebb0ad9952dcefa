from datetime import date, datetime, time
from typing import Optional

import pytz

UTC = pytz.utc

WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday"
]

END_OF_DAY = time(23, 59, 59, 999999)

def utc_now() -> datetime:
    return datetime.now(UTC)

def get_timezone(tz_name: str):
    return pytz.timezone(tz_name)

def ensure_aware(dt: datetime) -> datetime:
    """Наивные datetime считаем UTC"""
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)

def to_local(dt: datetime, tz_name: str) -> datetime:
    return ensure_aware(dt).astimezone(get_timezone(tz_name))

def local_datetime(day: date, at: time, tz_name: str) -> datetime:
    """Локальные дата и время пользователя -> UTC"""
    tz = get_timezone(tz_name)
    return tz.localize(datetime.combine(day, at)).astimezone(UTC)

def start_of_day(day: date, tz_name: str) -> datetime:
    return local_datetime(day, time(0, 0), tz_name)

def parse_time(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()

def weekday_index(name: str) -> int:
    return WEEKDAY_NAMES.index(name)

def isoformat(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None

def parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return ensure_aware(value) if value else None
    return ensure_aware(datetime.fromisoformat(value))

def parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)
