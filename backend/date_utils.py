"""Week arithmetic. Schedule weeks run Sunday to Saturday."""
import re
from datetime import date, datetime, timedelta

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def _days_since_sunday(value: date) -> int:
    # date.weekday() is 0 for Monday
    return (value.weekday() + 1) % 7


def get_week_start(today: date | None = None) -> str:
    """Get the Sunday of the week containing `today`."""
    today = today or datetime.now().date()
    return format_date(today - timedelta(days=_days_since_sunday(today)))


def get_week_end(today: date | None = None) -> str:
    """Get the Saturday of the week containing `today`."""
    today = today or datetime.now().date()
    return format_date(today + timedelta(days=6 - _days_since_sunday(today)))


def add_days(value: str, days: int) -> str:
    return format_date(parse_date(value) + timedelta(days=days))


def get_adjacent_weeks(week_start: str) -> tuple[str, str]:
    """Return (previous_week_start, next_week_start)."""
    return add_days(week_start, -7), add_days(week_start, 7)


def get_three_week_range(today: date | None = None) -> list[str]:
    """Previous, current and next week starts around `today`."""
    current = get_week_start(today)
    previous, following = get_adjacent_weeks(current)
    return [previous, current, following]


def is_valid_date_string(value: str) -> bool:
    if not _DATE_PATTERN.match(value):
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def is_sunday(value: str) -> bool:
    return parse_date(value).weekday() == 6


def get_week_difference(first: str, second: str) -> int:
    """Whole weeks from `first` to `second` (negative if `second` is earlier)."""
    return (parse_date(second) - parse_date(first)).days // 7
