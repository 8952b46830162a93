from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional
from datetime import datetime

DayOfWeek = Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
ResourceType = Literal["Article", "Video", "Course Notes"]
TopicSource = Literal["schedule", "syllabus", "combined"]
DocType = Literal["syllabus", "schedule", "other"]

class CamelModel(BaseModel):
    """Base schema serialized with the camelCase keys stored in JSON columns"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class ClassCreate(BaseModel):
    """Schema for creating a class"""
    user_id: str
    title: str
    current_week: Optional[int] = Field(default=None, ge=1, le=20)

class DocumentCreate(BaseModel):
    """Schema for registering an uploaded document"""
    class_id: int
    user_id: str
    filename: str
    mime_type: str
    doc_type: DocType = "other"

class ClassTexts(BaseModel):
    """Extracted source texts resolved for one class"""
    class_id: int
    user_id: str
    title: str
    current_week: Optional[int] = None
    current_week_set_at: Optional[datetime] = None
    created_at: datetime
    schedule_text: Optional[str] = None
    syllabus_text: Optional[str] = None

class WeekRawRow(CamelModel):
    """One calendar entry found inside a week block (never persisted)"""
    date_iso: str = Field(alias="dateISO")
    date_token: str
    lecture_cell: Optional[str] = None
    discussion_cell: Optional[str] = None
    quiz_cell: Optional[str] = None
    section_cell: Optional[str] = None
    notes: Optional[str] = None

class WeekScheduleDay(CamelModel):
    date_iso: str = Field(alias="dateISO")
    dow: DayOfWeek
    primary: str
    tags: Optional[List[str]] = None
    source: Literal["ai"] = "ai"

class WeekScheduleUpcoming(CamelModel):
    title: str
    due_date_iso: str = Field(alias="dueDateISO")
    due_dow_label: str

class WeekSchedule(CamelModel):
    """Finalized weekly schedule, cached per content fingerprint"""
    class_id: int
    week: int = Field(ge=1, le=20)
    week_start_iso: str = Field(alias="weekStartISO")
    week_end_iso: str = Field(alias="weekEndISO")
    days: List[WeekScheduleDay]
    upcoming: List[WeekScheduleUpcoming] = Field(default_factory=list, max_length=3)
    generated_at_iso: str = Field(alias="generatedAtISO")
    schedule_fingerprint: str
    syllabus_fingerprint: str
    model: str

class CuratedResource(CamelModel):
    title: str
    type: ResourceType
    source: str
    url: str
    summary: str

class WeekRecommendation(CamelModel):
    """Curated resources for a class week, cached per content fingerprint"""
    class_id: int
    week: int = Field(ge=1, le=20)
    topic_source: TopicSource
    topic_summary: str
    topics: List[str]
    resources: List[CuratedResource] = Field(default_factory=list)
    generated_at_iso: str = Field(alias="generatedAtISO")
    schedule_fingerprint: str
    syllabus_fingerprint: str
    model: str

class TopicSelection(BaseModel):
    """Topics chosen for resource curation and where they came from"""
    source: TopicSource
    topics: List[str]
