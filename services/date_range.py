from datetime import datetime, timedelta, timezone
from typing import NamedTuple

DEFAULT_RANGE = "last7"

DATE_RANGE_LABELS = {
    "last7": "Last 7 days",
    "thisWeek": "This week",
    "thisMonth": "This month",
    "last30": "Last 30 days",
}


class DateRange(NamedTuple):
    start: datetime
    end: datetime


def get_date_range_label(key: str) -> str:
    return DATE_RANGE_LABELS.get(key, DATE_RANGE_LABELS[DEFAULT_RANGE])


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def compute_date_range(key: str, now: datetime | None = None) -> DateRange:
    """
    Resolve a named reporting window to [start, now].

    Windows start at midnight; "thisWeek" starts on Sunday. Unknown keys fall
    back to the last 7 days.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    if key == "thisWeek":
        # Monday is weekday 0, so Sunday is (weekday + 1) % 7 days back
        start = _midnight(now - timedelta(days=(now.weekday() + 1) % 7))
    elif key == "thisMonth":
        start = _midnight(now.replace(day=1))
    elif key == "last30":
        start = _midnight(now - timedelta(days=30))
    else:
        start = _midnight(now - timedelta(days=7))

    return DateRange(start=start, end=now)
