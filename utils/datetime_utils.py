from datetime import datetime, date
from typing import Optional, Union
import pytz

DEFAULT_TZ = "UTC"

def get_timezone(tz: Optional[Union[str, pytz.BaseTzInfo]] = None):
    if tz is None:
        from config import config
        tz = config.streaks.timezone or DEFAULT_TZ
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz

def now_local(tz=None) -> datetime:
    return datetime.now(get_timezone(tz))

def today_local(tz=None) -> date:
    return now_local(tz).date()

def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))

def local_day(dt: datetime, tz=None) -> date:
    # naive timestamps are already local
    if dt.tzinfo is None:
        return dt.date()
    return dt.astimezone(get_timezone(tz)).date()

def localize(dt: datetime, tz=None) -> datetime:
    """naive время считается локальным для tz"""
    if dt.tzinfo is None:
        return get_timezone(tz).localize(dt)
    return dt
