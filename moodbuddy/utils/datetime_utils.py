from datetime import date, datetime, timedelta
from typing import List, Optional, Union

import pytz

from moodbuddy.config import config

DateLike = Union[date, datetime]

def get_timezone(name: Optional[str] = None):
    return pytz.timezone(name or config.tracking.timezone)

def now_local(tz_name: Optional[str] = None) -> datetime:
    return datetime.now(get_timezone(tz_name))

def now_utc() -> datetime:
    return datetime.now(pytz.utc)

def calendar_day(value: Optional[DateLike] = None, tz_name: Optional[str] = None) -> date:
    # Aware datetimes are converted to the tracking zone, naive ones are taken as local wall-clock time
    if value is None:
        return now_local(tz_name).date()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(get_timezone(tz_name))
        return value.date()
    return value

def day_range(end: date, days: int) -> List[date]:
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]

def start_of_day(day: date, tz_name: Optional[str] = None) -> datetime:
    return get_timezone(tz_name).localize(datetime(day.year, day.month, day.day))
