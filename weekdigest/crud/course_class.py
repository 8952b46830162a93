from sqlalchemy.orm import Session
from weekdigest.models import CourseClass
from weekdigest.schemas import ClassCreate
from datetime import datetime, timezone
from typing import List, Optional

def create_class(db: Session, course_class: ClassCreate) -> CourseClass:
    """Create a new class"""
    db_class = CourseClass(**course_class.model_dump())
    if db_class.current_week:
        db_class.current_week_set_at = datetime.now(timezone.utc)
    db.add(db_class)
    db.commit()
    db.refresh(db_class)
    return db_class

def get_owned_class(db: Session, class_id: int, user_id: str) -> Optional[CourseClass]:
    """Get class by ID, only if it belongs to the user"""
    return db.query(CourseClass).filter(
        CourseClass.id == class_id,
        CourseClass.user_id == user_id
    ).first()

def set_current_week(
    db: Session,
    class_id: int,
    user_id: str,
    week: int,
    set_at: Optional[datetime] = None
) -> Optional[CourseClass]:
    """Store the student's current week and restart the automatic advance from now"""
    db_class = get_owned_class(db, class_id, user_id)
    if db_class:
        db_class.current_week = week
        db_class.current_week_set_at = set_at or datetime.now(timezone.utc)
        db.commit()
        db.refresh(db_class)
    return db_class

def flag_schedule_document(db: Session, class_id: int, user_id: str, document_id: int) -> Optional[CourseClass]:
    """Mark a document as the class's official schedule"""
    db_class = get_owned_class(db, class_id, user_id)
    if db_class:
        db_class.schedule_document_id = document_id
        db.commit()
        db.refresh(db_class)
    return db_class

def list_classes_with_current_week(db: Session) -> List[CourseClass]:
    """Classes whose current week has been set"""
    return db.query(CourseClass).filter(
        CourseClass.current_week != None  # noqa: E711
    ).order_by(CourseClass.id).all()
