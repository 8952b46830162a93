from datetime import datetime

from weekdigest.crud import (
    create_class,
    flag_schedule_document,
    get_owned_class,
    list_classes_with_current_week,
    resolve_class_texts,
    set_current_week,
)
from weekdigest.models import SourceDocument
from weekdigest.schemas import ClassCreate


def _add_document(db, class_id, filename, text, doc_type="other", status="done", created_at=None):
    document = SourceDocument(
        class_id=class_id, user_id="student-1", filename=filename, mime_type="text/plain",
        doc_type=doc_type, status=status, extracted_text=text,
        created_at=created_at or datetime(2024, 3, 1),
    )
    db.add(document)
    db.commit()
    return document


def test_class_ownership_and_current_week(session_factory):
    db = session_factory()
    try:
        course_class = create_class(db, ClassCreate(user_id="student-1", title="Math 31B"))
        assert course_class.current_week is None
        assert course_class.current_week_set_at is None
        assert get_owned_class(db, course_class.id, "someone-else") is None
        assert list_classes_with_current_week(db) == []

        updated = set_current_week(db, course_class.id, "student-1", 4, set_at=datetime(2024, 3, 5))
        assert updated.current_week == 4
        assert updated.current_week_set_at == datetime(2024, 3, 5)
        assert [c.id for c in list_classes_with_current_week(db)] == [course_class.id]
        assert set_current_week(db, course_class.id, "someone-else", 5) is None
    finally:
        db.close()


def test_resolve_texts_by_type_and_filename(session_factory):
    db = session_factory()
    try:
        course_class = create_class(db, ClassCreate(user_id="student-1", title="Math 31B", current_week=2))
        _add_document(db, course_class.id, "Week-by-week plan.txt", "old schedule", created_at=datetime(2024, 1, 1))
        _add_document(db, course_class.id, "calendar.txt", "new schedule", created_at=datetime(2024, 2, 1))
        _add_document(db, course_class.id, "outline.txt", "course syllabus", doc_type="syllabus")
        _add_document(db, course_class.id, "syllabus-v2.txt", None, status="processing")

        texts = resolve_class_texts(db, course_class.id, "student-1")

        assert texts.schedule_text == "new schedule"
        assert texts.syllabus_text == "course syllabus"
        assert texts.current_week == 2
        assert resolve_class_texts(db, course_class.id, "someone-else") is None
    finally:
        db.close()


def test_flagged_schedule_document_wins(session_factory):
    db = session_factory()
    try:
        course_class = create_class(db, ClassCreate(user_id="student-1", title="Math 31B"))
        flagged = _add_document(db, course_class.id, "handout.txt", "official", created_at=datetime(2024, 1, 1))
        _add_document(db, course_class.id, "schedule.txt", "newer guess", created_at=datetime(2024, 2, 1))
        flag_schedule_document(db, course_class.id, "student-1", flagged.id)

        texts = resolve_class_texts(db, course_class.id, "student-1")

        assert texts.schedule_text == "official"
        assert texts.syllabus_text is None
    finally:
        db.close()
