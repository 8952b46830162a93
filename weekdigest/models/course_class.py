from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from weekdigest.database import Base

class CourseClass(Base):
    """A class a student follows week by week"""
    __tablename__ = "classes"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    current_week = Column(Integer)  # week the student confirmed, 1-20
    current_week_set_at = Column(DateTime)  # anchor for automatic week advance
    schedule_document_id = Column(Integer)  # document flagged as the official schedule
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    
    documents = relationship("SourceDocument", back_populates="course_class", cascade="all, delete-orphan")
