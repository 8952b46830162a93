"""
Topic mining for weekly resource recommendations.

Topics come from three places: the raw week block of a schedule or syllabus,
the labels of an already finalized weekly schedule, and section numbers in
the schedule mapped to section titles found in the course documents.
"""
import re
from typing import Dict, Iterable, List, Optional

from weekdigest.schemas import TopicSelection, WeekScheduleDay
from weekdigest.week_text import MONTHS, get_exact_week_block

MAX_TOPICS = 10
MAX_TOPIC_CHARS = 180

WEEK_TOKEN = re.compile(r"\b(?:week|wk)\s*\d{1,2}\b", re.IGNORECASE)
DAY_MONTH_TOKEN = re.compile(rf"\b\d{{1,2}}\s*[-/]\s*(?:{MONTHS})[a-z]*\b", re.IGNORECASE)
MONTH_DAY_TOKEN = re.compile(rf"\b(?:{MONTHS})[a-z]*\s+\d{{1,2}}(?:,\s*\d{{4}})?\b", re.IGNORECASE)
BULLETS = re.compile(r"[\t•·|]+")
LEADING_PUNCTUATION = re.compile(r"^[\-–—:;,.\s]+")

CATEGORY_WORD = re.compile(
    r"^(lecture|discussion|quiz|exam|review|reading|homework|assignment|lab|project|section)$",
    re.IGNORECASE,
)
SENTINEL = re.compile(r"^(no items|no class)$", re.IGNORECASE)
BARE_SECTION = re.compile(r"^\d+(?:\.\d+)?(?:\s*[-–&]\s*\d+(?:\.\d+)?)*$")
HEADER_LINE = re.compile(r"^(lecture|discussion|quiz|section|topic)\s*$", re.IGNORECASE)
DAY_LABEL_PREFIX = re.compile(r"^(lecture|discussion|quiz|exam|homework|reading|review)\s*:\s*", re.IGNORECASE)

DOTTED_SECTION = re.compile(r"\b\d+(?:\.\d+)+\b")
SECTION_TITLE = re.compile(
    r"(\d+(?:\.\d+)+)\s+([A-Za-z][A-Za-z0-9'(),:&\-/. ]{3,120}?)"
    r"(?=\s+\d+(?:\.\d+)+(?:\s|$)|\s+\d{1,2}-[A-Za-z]{3}\b"
    r"|\s+Sunday,\s+[A-Za-z]+\s+\d{1,2},\s+\d{4}\b|\s+None\b|$)"
)


def clean_topic_line(line: str) -> str:
    """Strip week/date tokens, bullets and leading punctuation from a candidate"""
    value = WEEK_TOKEN.sub(" ", line)
    value = DAY_MONTH_TOKEN.sub(" ", value)
    value = MONTH_DAY_TOKEN.sub(" ", value)
    value = BULLETS.sub(" ", value)
    value = LEADING_PUNCTUATION.sub("", value)
    return re.sub(r"\s+", " ", value).strip()


def is_low_signal_topic(value: str) -> bool:
    normalized = value.strip().lower()
    if not normalized:
        return True
    return bool(
        CATEGORY_WORD.match(normalized)
        or SENTINEL.match(normalized)
        or BARE_SECTION.match(normalized)
    )


def dedupe_topics(topics: Iterable[str]) -> List[str]:
    """Clean, drop low-signal entries and dedupe case-insensitively (max 10)"""
    seen = set()
    result = []

    for raw in topics:
        cleaned = clean_topic_line(raw)
        if not cleaned or is_low_signal_topic(cleaned):
            continue

        key = cleaned.lower()
        if key in seen:
            continue

        seen.add(key)
        result.append(cleaned[:MAX_TOPIC_CHARS])
        if len(result) >= MAX_TOPICS:
            break

    return result


def normalize_section_token(value: str) -> str:
    """'03.2' -> '3.2'; anything without a dotted part is not a section"""
    token = re.sub(r"[^0-9.]", "", value.strip())
    parts = [part for part in token.split(".") if part]
    if len(parts) < 2:
        return ""
    return f"{int(parts[0])}.{'.'.join(parts[1:])}"


def extract_section_tokens(value: str) -> List[str]:
    tokens = []
    for raw in DOTTED_SECTION.findall(value):
        token = normalize_section_token(raw)
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def build_section_title_map(text: Optional[str]) -> Dict[str, str]:
    """Map "3.2" -> "Integration by parts" from "<number> <title>" phrases"""
    titles: Dict[str, str] = {}
    if not text:
        return titles

    for raw_line in text.splitlines():
        line = re.sub(r"\s+", " ", raw_line).strip()
        if len(line) < 8:
            continue

        for match in SECTION_TITLE.finditer(line):
            token = normalize_section_token(match.group(1))
            title = clean_topic_line(match.group(2))
            if not token or not title or is_low_signal_topic(title):
                continue
            # Keep the most descriptive title seen for a section
            if len(titles.get(token, "")) < len(title):
                titles[token] = title

    return titles


def contextualize_section_topics(week_text: Optional[str], section_titles: Dict[str, str]) -> List[str]:
    if not week_text:
        return []

    topics = [
        f"Section {token}: {section_titles[token]}"
        for token in extract_section_tokens(week_text)
        if token in section_titles
    ]
    return dedupe_topics(topics)


def extract_topics_from_week_block(text: Optional[str], week: int) -> List[str]:
    if not text:
        return []

    week_block = get_exact_week_block(text, week)
    if not week_block:
        return []

    lines = []
    for raw_line in week_block.splitlines():
        line = clean_topic_line(raw_line)
        if not 4 <= len(line) <= MAX_TOPIC_CHARS:
            continue
        if line.lower().startswith("date") or HEADER_LINE.match(line):
            continue
        lines.append(line)

    return dedupe_topics(lines)


def extract_topics_from_schedule_days(days: Iterable[WeekScheduleDay]) -> List[str]:
    topics = []
    for day in days:
        label = day.primary.strip()
        if not label or SENTINEL.match(label):
            continue
        topics.append(DAY_LABEL_PREFIX.sub("", label))
    return dedupe_topics(topics)


def pick_topic_source(schedule_topics: Iterable[str], syllabus_topics: Iterable[str]) -> TopicSelection:
    """Syllabus topics win over schedule topics; nothing found means no topics"""
    syllabus = dedupe_topics(syllabus_topics)
    if syllabus:
        return TopicSelection(source="syllabus", topics=syllabus)

    schedule = dedupe_topics(schedule_topics)
    if schedule:
        return TopicSelection(source="schedule", topics=schedule)

    return TopicSelection(source="combined", topics=[])
