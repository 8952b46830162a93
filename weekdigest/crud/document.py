import re
from sqlalchemy.orm import Session
from weekdigest.models import CourseClass, SourceDocument
from weekdigest.schemas import ClassTexts, DocumentCreate
from typing import List, Optional

SCHEDULE_FILENAME = re.compile(r"schedule|calendar|week|timetable", re.IGNORECASE)
SYLLABUS_FILENAME = re.compile(r"syllabus", re.IGNORECASE)

def create_document(db: Session, document: DocumentCreate) -> SourceDocument:
    """Register an uploaded document (status pending)"""
    db_document = SourceDocument(**document.model_dump(), status="pending")
    db.add(db_document)
    db.commit()
    db.refresh(db_document)
    return db_document

def get_document(db: Session, document_id: int) -> Optional[SourceDocument]:
    """Get document by ID"""
    return db.query(SourceDocument).filter(SourceDocument.id == document_id).first()

def update_document(db: Session, document_id: int, document_data: dict) -> Optional[SourceDocument]:
    """Update document status, text or type"""
    db_document = get_document(db, document_id)
    if db_document:
        for key, value in document_data.items():
            setattr(db_document, key, value)
        db.commit()
        db.refresh(db_document)
    return db_document

def get_processed_documents(db: Session, class_id: int) -> List[SourceDocument]:
    """Finished documents with extracted text, newest first"""
    return db.query(SourceDocument).filter(
        SourceDocument.class_id == class_id,
        SourceDocument.status == "done",
        SourceDocument.extracted_text != None  # noqa: E711
    ).order_by(SourceDocument.created_at.desc(), SourceDocument.id.desc()).all()

def _is_schedule_document(document: SourceDocument) -> bool:
    return document.doc_type == "schedule" or bool(SCHEDULE_FILENAME.search(document.filename or ""))

def _is_syllabus_document(document: SourceDocument) -> bool:
    return document.doc_type == "syllabus" or bool(SYLLABUS_FILENAME.search(document.filename or ""))

def resolve_class_texts(db: Session, class_id: int, user_id: str) -> Optional[ClassTexts]:
    """
    Resolve the schedule and syllabus texts for a class.

    The flagged schedule document wins; otherwise the newest finished document
    that looks like a schedule (by type or filename). The syllabus is the newest
    finished document that looks like a syllabus. Returns None when the class
    does not exist or is not owned by the user.
    """
    db_class = db.query(CourseClass).filter(
        CourseClass.id == class_id,
        CourseClass.user_id == user_id
    ).first()
    if not db_class:
        return None

    documents = get_processed_documents(db, class_id)

    schedule_text = None
    if db_class.schedule_document_id:
        flagged = next((d for d in documents if d.id == db_class.schedule_document_id), None)
        if flagged:
            schedule_text = flagged.extracted_text
    if schedule_text is None:
        schedule_doc = next((d for d in documents if _is_schedule_document(d)), None)
        if schedule_doc:
            schedule_text = schedule_doc.extracted_text

    syllabus_doc = next((d for d in documents if _is_syllabus_document(d)), None)

    return ClassTexts(
        class_id=db_class.id,
        user_id=db_class.user_id,
        title=db_class.title,
        current_week=db_class.current_week,
        current_week_set_at=db_class.current_week_set_at,
        created_at=db_class.created_at,
        schedule_text=schedule_text,
        syllabus_text=syllabus_doc.extracted_text if syllabus_doc else None,
    )
