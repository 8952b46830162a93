from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from weekdigest.database import Base

class SourceDocument(Base):
    """Uploaded course document and its extracted text"""
    __tablename__ = "documents"
    
    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    filename = Column(String, nullable=False)
    mime_type = Column(String, nullable=False)
    doc_type = Column(String, nullable=False, default="other")  # syllabus, schedule, other
    status = Column(String, nullable=False, default="pending")  # pending, processing, done, failed
    extracted_text = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    processed_at = Column(DateTime)
    
    course_class = relationship("CourseClass", back_populates="documents")
