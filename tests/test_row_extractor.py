from datetime import date

from weekdigest.row_extractor import (
    extract_rows_from_block,
    extract_syllabus_hints,
    extract_week_rows,
    parse_date_token,
)
from weekdigest.week_text import get_exact_week_block

SCHEDULE = (
    "Math 31B Winter Schedule\n"
    "Week 2 15-Jan Lecture 1.1 Discussion 1.2 Quiz 1.3\n"
    "Week 3 4-Mar Lecture 2.1 Discussion 2.2 6-Mar Lecture 2.3 Midterm review "
    "10-Mar Lecture 3.1 Discussion 3.2 Quiz: No Quiz\n"
    "Week 4 11-Mar MLK Day no class 13-Mar 3.3 3.4 3.5 3.6"
)


def test_parse_date_token_picks_year_closest_to_reference():
    assert parse_date_token("10-Mar", date(2024, 3, 4)) == date(2024, 3, 10)
    assert parse_date_token("30-Dec", date(2025, 1, 6)) == date(2024, 12, 30)
    assert parse_date_token("2-Jan", date(2024, 12, 30)) == date(2025, 1, 2)


def test_parse_date_token_explicit_year_and_month_first():
    assert parse_date_token("10 March, 2023") == date(2023, 3, 10)
    assert parse_date_token("Sept 5", date(2024, 9, 1)) == date(2024, 9, 5)
    assert parse_date_token("31-Feb", date(2024, 2, 1)) is None
    assert parse_date_token("no date here") is None


def test_rows_are_keyed_by_date_tokens():
    rows = extract_week_rows(SCHEDULE, 3, reference=date(2024, 3, 4))
    assert [row.date_iso for row in rows] == ["2024-03-04", "2024-03-06", "2024-03-10"]
    assert [row.date_token for row in rows] == ["4-Mar", "6-Mar", "10-Mar"]


def test_section_tokens_fill_columns_positionally():
    rows = extract_week_rows(SCHEDULE, 3, reference=date(2024, 3, 4))
    first, second, third = rows

    assert (first.lecture_cell, first.discussion_cell, first.quiz_cell) == ("2.1", "2.2", None)
    assert second.lecture_cell == "2.3"
    assert second.notes == "Midterm review"
    assert (third.lecture_cell, third.discussion_cell) == ("3.1", "3.2")


def test_no_quiz_phrase_claims_the_quiz_slot():
    rows = extract_week_rows(SCHEDULE, 3, reference=date(2024, 3, 4))
    last = rows[-1]
    assert last.quiz_cell == "No Quiz"
    assert last.notes == "No Quiz"


def test_four_sections_and_notes():
    rows = extract_week_rows(SCHEDULE, 4, reference=date(2024, 3, 11))
    holiday, busy = rows

    assert holiday.notes == "MLK Day no class"
    assert holiday.lecture_cell is None
    assert (busy.lecture_cell, busy.discussion_cell, busy.quiz_cell, busy.section_cell) == (
        "3.3", "3.4", "3.5", "3.6"
    )


def test_missing_week_yields_no_rows():
    assert extract_week_rows(SCHEDULE, 9) == []
    assert extract_week_rows("", 3) == []


def test_extraction_is_idempotent_on_its_own_block():
    reference = date(2024, 3, 4)
    block = get_exact_week_block(SCHEDULE, 3)
    first_pass = extract_rows_from_block(block, reference)
    second_pass = extract_rows_from_block(get_exact_week_block(block, 3), reference)
    assert first_pass == second_pass


def test_syllabus_hints_keep_schedule_relevant_lines():
    syllabus = "\n".join([
        "Welcome to Math 31B",
        "Quizzes are given in discussion every Thursday",
        "Office hours: MS 6000",
        "Homework is due Sunday night",
    ])
    hints = extract_syllabus_hints(syllabus)
    assert hints == "Quizzes are given in discussion every Thursday\nHomework is due Sunday night"
    assert extract_syllabus_hints(None) == ""
    assert len(extract_syllabus_hints("Lecture notes " * 400, max_chars=50)) == 50


def test_date_token_glued_to_weekday_still_starts_a_row():
    rows = extract_week_rows("Week 3 Mon4-Mar Lecture 2.1 Sun10-Mar Lecture 3.1", 3, reference=date(2024, 3, 4))
    assert [row.date_iso for row in rows] == ["2024-03-04", "2024-03-10"]
    assert rows[1].lecture_cell == "3.1"


def test_date_token_does_not_split_longer_numbers():
    rows = extract_rows_from_block("Room 110-Mar building 10-Mar Lecture 3.1", reference=date(2024, 3, 4))
    assert [row.date_token for row in rows] == ["10-Mar"]
