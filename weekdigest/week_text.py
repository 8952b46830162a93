"""
Normalize extracted course document text and slice it into week blocks.

Text extracted from PDF/DOCX schedules is noisy: table cells collapse into
long lines, "Week 3" markers are glued to the first date ("Week12-Feb") and
non-breaking spaces survive extraction. The helpers here rewrite the text so
that every "Week N" marker starts its own line, then locate the block that
belongs to a single week number.
"""
import re
from typing import List, NamedTuple

MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"

# "Week12-Feb" -> "Week1 2-Feb"
MERGED_WEEK_DATE = re.compile(
    rf"(Week\s*)([1-9]|1\d|20)((?:0?[1-9]|[12]\d|3[01])\s*[-/](?:{MONTHS})[a-z]*)",
    re.IGNORECASE,
)
LINE_WEEK_MARKER = re.compile(r"(?<!\n)\b(Week\s*\d{1,2}\b)", re.IGNORECASE)
WEEK_MARKER = re.compile(r"\b(?:week|wk)\s*0?([1-9]|1\d|20)\b", re.IGNORECASE)
HORIZONTAL_SPACE = re.compile(r"[^\S\n]+")
SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
BLANK_LINES = re.compile(r"\n{3,}")


class WeekMarker(NamedTuple):
    week: int
    index: int


def normalize_schedule_text(text: str) -> str:
    """Rewrite raw text so week markers are line-initial and spacing is uniform"""
    if not text:
        return ""

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = MERGED_WEEK_DATE.sub(r"\1\2 \3", normalized)
    normalized = LINE_WEEK_MARKER.sub(r"\n\1", normalized)
    # \s also matches the non-breaking space
    normalized = HORIZONTAL_SPACE.sub(" ", normalized)
    normalized = SPACE_AROUND_NEWLINE.sub("\n", normalized)
    normalized = BLANK_LINES.sub("\n\n", normalized)
    return normalized.strip()


def find_week_markers(text: str) -> List[WeekMarker]:
    """All week/wk markers numbered 1-20, in document order"""
    return [WeekMarker(int(match.group(1)), match.start()) for match in WEEK_MARKER.finditer(text)]


def slice_week_block(normalized: str, week: int) -> str:
    """
    Block of already-normalized text starting at the first exact marker for
    ``week`` and ending at the next marker of any week number.

    There is no nearest-week fallback: a missing marker yields "".
    """
    markers = find_week_markers(normalized)
    for position, marker in enumerate(markers):
        if marker.week != week:
            continue
        end = markers[position + 1].index if position + 1 < len(markers) else len(normalized)
        return normalized[marker.index:end]
    return ""


def get_exact_week_block(text: str, week: int) -> str:
    return slice_week_block(normalize_schedule_text(text), week)
