from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union

MIN_WEEK = 1
MAX_WEEK = 20
DOWS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    # datetimes are UTC-anchored; only the calendar day matters
    if isinstance(value, datetime):
        return value.date()
    return value


def clamp_week(week: int) -> int:
    """Clamp a week number into the academic range 1-20"""
    return max(MIN_WEEK, min(MAX_WEEK, week))


def start_of_monday_week(value: DateLike) -> date:
    d = _as_date(value)
    return d - timedelta(days=d.weekday())


def start_of_sunday_week(value: DateLike) -> date:
    d = _as_date(value)
    return d - timedelta(days=(d.weekday() + 1) % 7)


def weeks_elapsed_by_sunday_boundary(start: DateLike, end: DateLike) -> int:
    """Count how many Sunday week boundaries lie between two dates"""
    diff = (start_of_sunday_week(end) - start_of_sunday_week(start)).days
    if diff <= 0:
        return 0
    return diff // 7


def compute_effective_current_week(
    current_week: Optional[int],
    created_at: DateLike,
    current_week_set_at: Optional[DateLike] = None,
    now: Optional[DateLike] = None
) -> Optional[int]:
    """
    Advance the stored current week by the weeks elapsed since it was set.

    Returns None when the class has no stored current week.
    """
    if not current_week:
        return None

    anchor = current_week_set_at or created_at
    elapsed = weeks_elapsed_by_sunday_boundary(anchor, now or date.today())
    return clamp_week(current_week + elapsed)


def resolve_term_start(anchor: DateLike, current_week: int) -> date:
    """Monday of week 1, walking back from the anchor's Monday"""
    anchor_monday = start_of_monday_week(anchor)
    return anchor_monday - timedelta(weeks=max(1, current_week) - 1)


def compute_week_start_end(week: int, term_start: DateLike) -> Tuple[str, str]:
    """ISO start (Monday) and end (Sunday) dates of a semester week"""
    term_monday = start_of_monday_week(term_start)
    week_start = term_monday + timedelta(weeks=max(1, week) - 1)
    week_end = week_start + timedelta(days=6)
    return week_start.isoformat(), week_end.isoformat()


def week_dates(week_start_iso: str) -> Tuple[str, ...]:
    start = date.fromisoformat(week_start_iso)
    return tuple((start + timedelta(days=offset)).isoformat() for offset in range(7))


def to_dow(date_iso: str) -> str:
    return DOWS[date.fromisoformat(date_iso).weekday()]


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def format_due_dow_label(due_date_iso: str, week_start_iso: str, week_end_iso: str) -> str:
    """Weekday name inside the week window, "Next <weekday>" outside it"""
    due = parse_iso_date(due_date_iso)
    if due is None:
        return ""

    weekday = DOWS[due.weekday()]
    if date.fromisoformat(week_start_iso) <= due <= date.fromisoformat(week_end_iso):
        return weekday
    return f"Next {weekday}"
