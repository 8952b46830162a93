from datetime import date, datetime

from weekdigest.week_dates import (
    clamp_week,
    compute_effective_current_week,
    compute_week_start_end,
    format_due_dow_label,
    parse_iso_date,
    resolve_term_start,
    start_of_monday_week,
    start_of_sunday_week,
    to_dow,
    week_dates,
    weeks_elapsed_by_sunday_boundary,
)


def test_clamp_week():
    assert clamp_week(0) == 1
    assert clamp_week(7) == 7
    assert clamp_week(25) == 20


def test_week_starts():
    sunday = date(2024, 3, 10)
    assert start_of_monday_week(sunday) == date(2024, 3, 4)
    assert start_of_sunday_week(sunday) == sunday
    assert start_of_sunday_week(date(2024, 3, 9)) == date(2024, 3, 3)


def test_weeks_elapsed_counts_sunday_crossings():
    tuesday = date(2024, 3, 5)
    assert weeks_elapsed_by_sunday_boundary(tuesday, date(2024, 3, 9)) == 0
    assert weeks_elapsed_by_sunday_boundary(tuesday, date(2024, 3, 10)) == 1
    assert weeks_elapsed_by_sunday_boundary(tuesday, date(2024, 3, 24)) == 3
    assert weeks_elapsed_by_sunday_boundary(date(2024, 3, 24), tuesday) == 0


def test_effective_current_week_advances_and_clamps():
    created = datetime(2024, 1, 8, 12, 0)
    set_at = datetime(2024, 3, 5, 9, 0)

    assert compute_effective_current_week(3, created, set_at, now=date(2024, 3, 6)) == 3
    assert compute_effective_current_week(3, created, set_at, now=date(2024, 3, 20)) == 5
    assert compute_effective_current_week(19, created, set_at, now=date(2024, 4, 20)) == 20
    assert compute_effective_current_week(None, created, set_at, now=date(2024, 3, 20)) is None


def test_effective_current_week_falls_back_to_creation_date():
    created = datetime(2024, 1, 8, 12, 0)
    assert compute_effective_current_week(1, created, now=date(2024, 1, 22)) == 3


def test_term_start_and_week_range():
    term_start = resolve_term_start(datetime(2024, 3, 5, 9, 0), 3)
    assert term_start == date(2024, 2, 19)
    assert compute_week_start_end(3, term_start) == ("2024-03-04", "2024-03-10")
    assert compute_week_start_end(1, term_start) == ("2024-02-19", "2024-02-25")


def test_week_dates_and_weekday():
    days = week_dates("2024-03-04")
    assert len(days) == 7
    assert days[0] == "2024-03-04"
    assert days[-1] == "2024-03-10"
    assert [to_dow(day) for day in days] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def test_due_label_relative_to_week_window():
    assert format_due_dow_label("2024-03-06", "2024-03-04", "2024-03-10") == "Wed"
    assert format_due_dow_label("2024-03-13", "2024-03-04", "2024-03-10") == "Next Wed"
    assert format_due_dow_label("not a date", "2024-03-04", "2024-03-10") == ""


def test_parse_iso_date():
    assert parse_iso_date("2024-03-06T10:00:00Z") == date(2024, 3, 6)
    assert parse_iso_date("March 6") is None
