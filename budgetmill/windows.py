"""Calendar windows: the half-open [start, end) range of the day, week,
month or year that contains a reference moment."""

from datetime import date, datetime, timedelta
from typing import Tuple, Union

from budgetmill import config

DateLike = Union[date, datetime]


def _midnight(d: DateLike) -> datetime:
    return datetime(d.year, d.month, d.day)


def _add_month(d: datetime) -> datetime:
    if d.month == 12:
        return d.replace(year=d.year + 1, month=1)
    return d.replace(month=d.month + 1)


def start_of(unit: str, reference: DateLike, week_start: int = None) -> datetime:
    day = _midnight(reference)
    if unit == "day":
        return day
    if unit == "week":
        ws = config.WEEK_START if week_start is None else week_start
        return day - timedelta(days=(day.weekday() - ws) % 7)
    if unit == "month":
        return day.replace(day=1)
    if unit == "year":
        return day.replace(month=1, day=1)
    raise ValueError(f"Unknown calendar unit {unit!r}")


def next_start(unit: str, start: datetime) -> datetime:
    if unit == "day":
        return start + timedelta(days=1)
    if unit == "week":
        return start + timedelta(days=7)
    if unit == "month":
        return _add_month(start)
    if unit == "year":
        return start.replace(year=start.year + 1)
    raise ValueError(f"Unknown calendar unit {unit!r}")


def window(unit: str, reference: DateLike, week_start: int = None) -> Tuple[datetime, datetime]:
    start = start_of(unit, reference, week_start)
    return start, next_start(unit, start)

