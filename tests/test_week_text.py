from weekdigest.week_text import (
    find_week_markers,
    get_exact_week_block,
    normalize_schedule_text,
    slice_week_block,
)


def test_normalize_moves_week_markers_to_line_start():
    raw = "Math 31B Schedule Week 1 8-Jan Intro Week 2 15-Jan Limits"
    normalized = normalize_schedule_text(raw)
    assert normalized.splitlines() == [
        "Math 31B Schedule",
        "Week 1 8-Jan Intro",
        "Week 2 15-Jan Limits",
    ]


def test_normalize_splits_merged_week_and_date():
    assert normalize_schedule_text("Week12-Feb Lecture 1.1") == "Week1 2-Feb Lecture 1.1"


def test_normalize_collapses_whitespace_and_blank_lines():
    raw = "Week 1  8-Jan\t\tIntro\r\n\r\n\r\n\r\nWeek 2   15-Jan"
    assert normalize_schedule_text(raw) == "Week 1 8-Jan Intro\n\nWeek 2 15-Jan"


def test_normalize_without_markers_only_tidies_spacing():
    assert normalize_schedule_text("  Office hours  Tue 3pm ") == "Office hours Tue 3pm"
    assert normalize_schedule_text("") == ""


def test_find_week_markers_accepts_wk_and_ignores_out_of_range():
    markers = find_week_markers("Wk 2 intro\nWeek 21 nothing\nweek 03 more")
    assert [marker.week for marker in markers] == [2, 3]


def test_block_spans_exact_marker_to_next_marker():
    text = "Week 1 8-Jan A\nWeek 2 15-Jan B\nWeek 3 22-Jan C"
    assert slice_week_block(text, 2) == "Week 2 15-Jan B\n"
    assert slice_week_block(text, 3) == "Week 3 22-Jan C"


def test_block_uses_first_exact_marker():
    text = "Week 2 first\nWeek 5 other\nWeek 2 again"
    assert slice_week_block(text, 2) == "Week 2 first\n"


def test_missing_week_has_no_fallback():
    text = "Week 1 8-Jan A\nWeek 3 22-Jan C"
    assert slice_week_block(text, 2) == ""


def test_exact_week_block_normalizes_first():
    raw = "Schedule Week 4 29-Jan Lecture 4.1 Week 5 5-Feb Lecture 5.1"
    assert get_exact_week_block(raw, 4) == "Week 4 29-Jan Lecture 4.1\n"
