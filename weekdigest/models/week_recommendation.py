from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, UniqueConstraint
from datetime import datetime, timezone
from weekdigest.database import Base

class WeekRecommendationRecord(Base):
    """Curated resources for a class week, one row per content fingerprint"""
    __tablename__ = "week_recommendations"
    __table_args__ = (
        UniqueConstraint(
            "class_id", "week", "schedule_fingerprint", "syllabus_fingerprint",
            name="uq_week_recommendations_fingerprint",
        ),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, nullable=False, index=True)
    week = Column(Integer, nullable=False)
    topic_source = Column(String, nullable=False)  # schedule, syllabus, combined
    topic_summary = Column(Text, nullable=False)
    topics = Column(JSON, nullable=False)
    resources = Column(JSON, nullable=False)  # exactly 3 resources or []
    generated_at_iso = Column(String, nullable=False)
    schedule_fingerprint = Column(String(16), nullable=False)
    syllabus_fingerprint = Column(String(16), nullable=False)
    model = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
