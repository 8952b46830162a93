import io

import pytest
from docx import Document

from weekdigest.crud import create_class, create_document, get_document
from weekdigest.document_processor import (
    DOCX_MIME,
    clean_text,
    extract_text,
    guess_doc_type,
    guess_mime_type,
    process_document,
)
from weekdigest.errors import DocumentExtractionError
from weekdigest.schemas import ClassCreate, DocumentCreate


def test_clean_text():
    assert clean_text("Week 1\t\t8-Jan\r\n\r\n\r\n\r\nIntro  ") == "Week 1 8-Jan\n\nIntro"


def test_guessing_from_filename():
    assert guess_mime_type("schedule.CSV") == "text/csv"
    assert guess_mime_type("scan.png") == "application/octet-stream"
    assert guess_doc_type("Math31B_Syllabus.pdf") == "syllabus"
    assert guess_doc_type("Week_calendar.xlsx") == "schedule"
    assert guess_doc_type("notes.txt") == "other"


def test_plain_text():
    assert extract_text(b"Week 1  8-Jan\r\nIntro", "text/plain") == "Week 1 8-Jan\nIntro"
    assert extract_text("Semaine 1 café".encode("latin-1"), "text/plain") == "Semaine 1 café"


def test_mime_type_guessed_when_missing():
    assert extract_text(b"Week 2 Limits", "application/octet-stream", "notes.txt") == "Week 2 Limits"


def test_csv_rows_become_lines():
    content = b"Week,Date,Topic\n1,8-Jan,Limits\n2,,Continuity\n"
    assert extract_text(content, "text/csv") == "Week Date Topic\n1 8-Jan Limits\n2 Continuity"


def test_docx_paragraphs_and_tables():
    doc = Document()
    doc.add_paragraph("Math 31B Schedule")
    table = doc.add_table(rows=1, cols=3)
    for cell, value in zip(table.rows[0].cells, ("Week 1", "8-Jan", "Limits")):
        cell.text = value
    buffer = io.BytesIO()
    doc.save(buffer)

    assert extract_text(buffer.getvalue(), DOCX_MIME) == "Math 31B Schedule\nWeek 1 | 8-Jan | Limits"


def test_unsupported_and_empty_documents():
    with pytest.raises(DocumentExtractionError):
        extract_text(b"\x89PNG", "image/png")
    with pytest.raises(DocumentExtractionError):
        extract_text(b"   \n  ", "text/plain")
    with pytest.raises(DocumentExtractionError):
        extract_text(b"not really a pdf", "application/pdf", "broken.pdf")


def _new_document(db, filename, mime_type):
    course_class = create_class(db, ClassCreate(user_id="student-1", title="Math 31B", current_week=2))
    return create_document(db, DocumentCreate(
        class_id=course_class.id, user_id="student-1", filename=filename, mime_type=mime_type,
        doc_type=guess_doc_type(filename),
    ))


def test_process_document_stores_text(session_factory):
    db = session_factory()
    try:
        document = _new_document(db, "schedule.txt", "text/plain")
        assert document.status == "pending"

        text = process_document(db, document.id, b"Week 2 15-Jan Lecture 1.1")

        stored = get_document(db, document.id)
        assert text == "Week 2 15-Jan Lecture 1.1"
        assert stored.status == "done"
        assert stored.extracted_text == text
        assert stored.processed_at is not None
        assert stored.doc_type == "schedule"
    finally:
        db.close()


def test_process_document_marks_failures(session_factory):
    db = session_factory()
    try:
        document = _new_document(db, "scan.png", "image/png")
        with pytest.raises(DocumentExtractionError):
            process_document(db, document.id, b"\x89PNG")
        assert get_document(db, document.id).status == "failed"
        assert process_document(db, 9999, b"") is None
    finally:
        db.close()
