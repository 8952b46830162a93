import re
from datetime import date
from typing import List, Optional

from weekdigest.schemas import WeekRawRow
from weekdigest.week_text import MONTHS, get_exact_week_block

MONTH_NAMES = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]

ROW_DATE = re.compile(rf"(?<!\d)(\d{{1,2}})\s*[-/]\s*({MONTHS})[a-z]*", re.IGNORECASE)
DAY_MONTH = re.compile(rf"(\d{{1,2}})[\s\-]({MONTHS})[a-z]*(?:,?\s*(\d{{4}}))?", re.IGNORECASE)
MONTH_DAY = re.compile(rf"({MONTHS})[a-z]*(?:\s+|-)(\d{{1,2}})(?:,?\s*(\d{{4}}))?", re.IGNORECASE)
WEEK_WORD = re.compile(r"\bweek\s*\d+\b", re.IGNORECASE)
SECTION_LIKE = re.compile(r"\b\d+(?:\.\d+)?(?:\s*[-–&]\s*\d+(?:\.\d+)?)*\b")
NOTE_PHRASE = re.compile(
    r"\b(?:no\s+quiz|no\s+class|holiday|mlk\s+day|exam|midterm|final|review)\b[^.,;]*",
    re.IGNORECASE,
)
NO_QUIZ = re.compile(r"\bno\s+quiz\b", re.IGNORECASE)
SYLLABUS_HINT = re.compile(
    r"\b(quiz|exam|midterm|final|discussion|lecture|reading|homework|assignment|lab|project|due|section)\b",
    re.IGNORECASE,
)
MAX_HINT_LINES = 16


def _closest_date(day: int, month: int, reference: date) -> Optional[date]:
    # Tokens carry no year: pick the one that lands nearest the reference week
    candidates = []
    for year in (reference.year - 1, reference.year, reference.year + 1):
        try:
            candidates.append(date(year, month, day))
        except ValueError:
            continue
    if not candidates:
        return None
    return min(candidates, key=lambda candidate: abs((candidate - reference).days))


def parse_date_token(token: str, reference: Optional[date] = None) -> Optional[date]:
    """
    Parse "10-Mar", "10 March, 2025" or "Mar 10" style tokens.

    An explicit four-digit year wins; otherwise the year closest to
    ``reference`` (default: today) is used.
    """
    value = token.strip()
    reference = reference or date.today()

    match = DAY_MONTH.search(value)
    if match:
        day, month_name, year = match.group(1), match.group(2), match.group(3)
    else:
        match = MONTH_DAY.search(value)
        if not match:
            return None
        month_name, day, year = match.group(1), match.group(2), match.group(3)

    month = MONTH_NAMES.index(month_name.lower()[:3]) + 1
    if year:
        try:
            return date(int(year), month, int(day))
        except ValueError:
            return None
    return _closest_date(int(day), month, reference)


def clean_segment_text(segment: str) -> str:
    return re.sub(r"\s+", " ", WEEK_WORD.sub(" ", segment)).strip()


def extract_section_like_tokens(segment: str) -> List[str]:
    return [token.strip() for token in SECTION_LIKE.findall(segment)]


def extract_notes(segment: str) -> Optional[str]:
    phrases = [match.group(0).strip() for match in NOTE_PHRASE.finditer(segment)]
    if not phrases:
        return None
    return "; ".join(phrases)


def extract_rows_from_block(week_block: str, reference: Optional[date] = None) -> List[WeekRawRow]:
    """One row per date token; the row text runs up to the next date token"""
    matches = list(ROW_DATE.finditer(week_block))
    rows = []

    for position, match in enumerate(matches):
        end = matches[position + 1].start() if position + 1 < len(matches) else len(week_block)
        date_token = f"{match.group(1)}-{match.group(2)}"
        row_date = parse_date_token(date_token, reference)
        if row_date is None:
            continue

        segment = clean_segment_text(week_block[match.end():end])
        sections = extract_section_like_tokens(segment)

        row = WeekRawRow(
            date_iso=row_date.isoformat(),
            date_token=date_token,
            notes=extract_notes(segment),
        )
        if NO_QUIZ.search(segment):
            row.quiz_cell = "No Quiz"

        # Columns are positional: lecture, discussion, quiz, section
        if len(sections) > 0:
            row.lecture_cell = sections[0]
        if len(sections) > 1:
            row.discussion_cell = sections[1]
        if len(sections) > 2 and not row.quiz_cell:
            row.quiz_cell = sections[2]
        if len(sections) > 3:
            row.section_cell = sections[3]

        rows.append(row)

    return rows


def extract_week_rows(schedule_text: str, week: int, reference: Optional[date] = None) -> List[WeekRawRow]:
    """Deterministic rows for one week of a schedule document"""
    week_block = get_exact_week_block(schedule_text, week)
    if not week_block:
        return []
    return extract_rows_from_block(week_block, reference)


def extract_syllabus_hints(syllabus_text: Optional[str], max_chars: int = 1800) -> str:
    """Schedule-relevant syllabus lines passed to the model as context"""
    if not syllabus_text:
        return ""

    lines = [line.strip() for line in syllabus_text.splitlines()]
    hints = [line for line in lines if line and SYLLABUS_HINT.search(line)][:MAX_HINT_LINES]
    return "\n".join(hints)[:max_chars]
