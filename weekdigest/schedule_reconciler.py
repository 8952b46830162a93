import json
import logging
import re
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from weekdigest.errors import CompletionError
from weekdigest.llm import CompletionClient
from weekdigest.output_parsing import keep_valid_items, parse_model_output
from weekdigest.schemas import WeekRawRow, WeekScheduleDay, WeekScheduleUpcoming
from weekdigest.week_dates import format_due_dow_label, parse_iso_date, to_dow, week_dates

logger = logging.getLogger(__name__)

NO_ITEMS = "No items"
NO_CLASS = "No class"
MAX_PRIMARY_WORDS = 6
MAX_UPCOMING = 3

NO_CLASS_NOTE = re.compile(r"no\s+class|holiday|mlk\s+day", re.IGNORECASE)
NO_QUIZ = re.compile(r"no\s+quiz", re.IGNORECASE)
DOW_LABEL = re.compile(r"^(Next )?(Mon|Tue|Wed|Thu|Fri|Sat|Sun)$")


class CompletionDay(BaseModel):
    """Schema for one day card returned by the model"""
    date: str = Field(description="Date in YYYY-MM-DD format")
    primary: str = Field(description="2-5 word action-oriented label")
    dow: Optional[str] = Field(default=None, description="Mon..Sun (recomputed locally)")
    tags: Optional[List[str]] = Field(default=None, description="Optional short tags")

    @field_validator("tags", mode="before")
    @classmethod
    def _string_tags(cls, value: Any) -> Optional[List[str]]:
        if not isinstance(value, list):
            return None
        return [tag for tag in value if isinstance(tag, str)]


class CompletionUpcoming(BaseModel):
    """Schema for one upcoming due item returned by the model"""
    title: str = Field(description="Short title")
    dueDate: str = Field(description="Due date in YYYY-MM-DD format")
    dueDowLabel: Optional[str] = Field(default=None, description="Mon|Tue|...|Next Wed")


class ScheduleCompletion(BaseModel):
    """Schema for the model's weekly dashboard JSON"""
    days: List[CompletionDay] = Field(default_factory=list)
    upcoming: List[CompletionUpcoming] = Field(default_factory=list)

    @field_validator("days", mode="before")
    @classmethod
    def _valid_days(cls, value: Any) -> List[CompletionDay]:
        return keep_valid_items(value, CompletionDay)

    @field_validator("upcoming", mode="before")
    @classmethod
    def _valid_upcoming(cls, value: Any) -> List[CompletionUpcoming]:
        return keep_valid_items(value, CompletionUpcoming)


class ReconciledWeek(BaseModel):
    """Finalized days and upcoming items for one week"""
    days: List[WeekScheduleDay]
    upcoming: List[WeekScheduleUpcoming]
    used_model_output: bool = False
    degraded: bool = False  # collaborator failed; deterministic rows only


def compact_primary(value: str) -> str:
    """Collapse whitespace and keep at most six words"""
    words = value.split()
    if not words:
        return NO_ITEMS
    return " ".join(words[:MAX_PRIMARY_WORDS])


def primary_from_row(row: Optional[WeekRawRow]) -> str:
    """No class > quiz > lecture > discussion > sentinel"""
    if row is None:
        return NO_ITEMS
    if row.notes and NO_CLASS_NOTE.search(row.notes):
        return NO_CLASS
    if row.quiz_cell and not NO_QUIZ.search(row.quiz_cell):
        return f"Quiz: {row.quiz_cell}"
    if row.lecture_cell:
        return f"Lecture: {row.lecture_cell}"
    if row.discussion_cell:
        return f"Discussion: {row.discussion_cell}"
    return NO_ITEMS


def normalize_days(
    week_start_iso: str,
    model_days: List[CompletionDay],
    week_rows: List[WeekRawRow]
) -> List[WeekScheduleDay]:
    """
    Build exactly seven Mon..Sun days for the week.

    Model entries win for their date; other days fall back to the
    deterministic row for that date. The weekday is always recomputed.
    """
    rows_by_date = {row.date_iso: row for row in week_rows}
    model_by_date: Dict[str, CompletionDay] = {}
    for entry in model_days:
        entry_date = parse_iso_date(entry.date)
        if entry_date is not None:
            model_by_date[entry_date.isoformat()] = entry

    days = []
    for date_iso in week_dates(week_start_iso):
        from_model = model_by_date.get(date_iso)
        if from_model is not None:
            primary = from_model.primary
            tags = from_model.tags
        else:
            primary = primary_from_row(rows_by_date.get(date_iso))
            tags = None

        days.append(WeekScheduleDay(
            date_iso=date_iso,
            dow=to_dow(date_iso),
            primary=compact_primary(primary),
            tags=tags or None,
        ))

    return days


def normalize_upcoming(
    model_upcoming: List[CompletionUpcoming],
    days: List[WeekScheduleDay],
    week_start_iso: str,
    week_end_iso: str
) -> List[WeekScheduleUpcoming]:
    """Up to three model items, padded from the finalized days"""
    items: List[WeekScheduleUpcoming] = []

    for entry in model_upcoming:
        if not entry.title.strip():
            continue
        due = parse_iso_date(entry.dueDate)
        if due is None:
            continue
        due_iso = due.isoformat()
        label = (entry.dueDowLabel or "").strip()
        if not DOW_LABEL.match(label):
            label = format_due_dow_label(due_iso, week_start_iso, week_end_iso)
        items.append(WeekScheduleUpcoming(
            title=compact_primary(entry.title),
            due_date_iso=due_iso,
            due_dow_label=label,
        ))
        if len(items) >= MAX_UPCOMING:
            return items

    seen = {(item.title.lower(), item.due_date_iso) for item in items}
    for day in days:
        if len(items) >= MAX_UPCOMING:
            break
        if day.primary.lower() == NO_ITEMS.lower():
            continue
        key = (day.primary.lower(), day.date_iso)
        if key in seen:
            continue
        seen.add(key)
        items.append(WeekScheduleUpcoming(
            title=day.primary,
            due_date_iso=day.date_iso,
            due_dow_label=format_due_dow_label(day.date_iso, week_start_iso, week_end_iso),
        ))

    return items


class WeekScheduleReconciler:
    """Merge deterministic week rows with a model pass into a 7-day schedule"""

    def __init__(self, completion: CompletionClient):
        self.completion = completion

    @property
    def model_name(self) -> str:
        return getattr(self.completion, "model_name", "unknown")

    async def reconcile(
        self,
        week: int,
        week_start_iso: str,
        week_end_iso: str,
        week_rows: List[WeekRawRow],
        syllabus_hints: str
    ) -> ReconciledWeek:
        """
        Ask the model for dashboard cards, then normalize against the rows.

        Never raises for bad model output: unparsable JSON and collaborator
        failures both fall back to the deterministic rows.
        """
        prompt = self._build_full_prompt(week, week_start_iso, week_end_iso, week_rows, syllabus_hints)

        degraded = False
        parsed = None
        try:
            raw = await self.completion.complete(prompt, self._build_system_prompt())
        except CompletionError as e:
            logger.warning("Week %s schedule generation failed, using rows only: %s", week, e)
            degraded = True
        else:
            parsed = parse_model_output(raw, ScheduleCompletion)
            if parsed is None:
                logger.warning(
                    "Model returned invalid or empty JSON for week %s; using structured rows "
                    "(model=%s, length=%d, preview=%r)",
                    week, self.model_name, len(raw or ""), (raw or "")[:300]
                )

        payload = parsed or ScheduleCompletion()
        days = normalize_days(week_start_iso, payload.days, week_rows)
        upcoming = normalize_upcoming(payload.upcoming, days, week_start_iso, week_end_iso)

        return ReconciledWeek(
            days=days,
            upcoming=upcoming,
            used_model_output=parsed is not None,
            degraded=degraded,
        )

    def _build_system_prompt(self) -> str:
        return (
            "You are a schedule planner that converts structured weekly rows into dashboard-ready cards. "
            "You MUST return valid JSON only with no markdown or commentary. NEVER return an empty string."
        )

    def _build_full_prompt(
        self,
        week: int,
        week_start_iso: str,
        week_end_iso: str,
        week_rows: List[WeekRawRow],
        syllabus_hints: str
    ) -> str:
        rows_json = json.dumps([row.model_dump(by_alias=True, exclude_none=True) for row in week_rows])

        return f"""Build a weekly dashboard schedule for Week {week} ({week_start_iso} to {week_end_iso}).

You are given:
1) weekRows: structured rows for this week from the official course schedule
2) syllabusHints: brief context about course format and what lecture/discussion/quiz/sections usually mean

OUTPUT (JSON only) must match this schema exactly:
{{
  "days": [
    {{ "date": "YYYY-MM-DD", "dow": "Mon", "primary": "2-5 words", "tags": ["..."] }}
  ],
  "upcoming": [
    {{ "title": "short title", "dueDate": "YYYY-MM-DD", "dueDowLabel": "Mon|Tue|...|Next Wed" }}
  ]
}}

RULES:
- days must include ALL 7 days in the week (Mon-Sun) in chronological order.
- primary must be compact, action-oriented.
- Do NOT include dates inside primary.
- Use syllabusHints to interpret whether section numbers imply reading or problem sets.
- If row contains "No Quiz" or "No class", primary should reflect that.
- For days with no row, set primary to "{NO_ITEMS}".
- upcoming: include the next 3 meaningful due items.
- dueDowLabel: use "Mon/Tue/..." if within this week; use "Next Mon/Next Tue/..." if outside this week.

weekRows JSON:
{rows_json}

syllabusHints:
{syllabus_hints or "(none)"}

Return JSON only."""
