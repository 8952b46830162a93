from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from datetime import datetime, timezone
from weekdigest.database import Base

class WeekScheduleRecord(Base):
    """Generated 7-day schedule, one row per content fingerprint"""
    __tablename__ = "week_schedules"
    __table_args__ = (
        UniqueConstraint(
            "class_id", "week", "schedule_fingerprint", "syllabus_fingerprint",
            name="uq_week_schedules_fingerprint",
        ),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, nullable=False, index=True)
    week = Column(Integer, nullable=False)
    week_start_iso = Column(String(10), nullable=False)
    week_end_iso = Column(String(10), nullable=False)
    days = Column(JSON, nullable=False)  # exactly 7 WeekScheduleDay dicts
    upcoming = Column(JSON, nullable=False)  # at most 3 WeekScheduleUpcoming dicts
    generated_at_iso = Column(String, nullable=False)
    schedule_fingerprint = Column(String(16), nullable=False)
    syllabus_fingerprint = Column(String(16), nullable=False)
    model = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
