"""
Turn uploaded course documents into plain text.

PDFs go through pdfplumber (page text plus tables), Word files through
python-docx, spreadsheets through pandas. The extracted text is stored on the
document row; the week pipeline only ever reads that text.
"""
import io
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd
import pdfplumber
from docx import Document
from sqlalchemy.orm import Session

from weekdigest.crud import get_document, update_document
from weekdigest.errors import DocumentExtractionError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIME = "text/csv"
TEXT_MIME = "text/plain"

MIME_BY_EXTENSION = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".xlsx": XLSX_MIME,
    ".xls": "application/vnd.ms-excel",
    ".csv": CSV_MIME,
    ".txt": TEXT_MIME,
    ".md": "text/markdown",
}

TEXT_ENCODINGS = ("utf-8", "cp1252")


def guess_mime_type(filename: str) -> str:
    return MIME_BY_EXTENSION.get(Path(filename).suffix.lower(), "application/octet-stream")


def guess_doc_type(filename: str) -> str:
    """syllabus / schedule / other, from the filename"""
    name = filename.lower()
    if "syllabus" in name:
        return "syllabus"
    if any(word in name for word in ("schedule", "calendar", "timetable", "week")):
        return "schedule"
    return "other"


def clean_text(text: str) -> str:
    value = text.replace("\r\n", "\n").replace("\r", "\n")
    value = re.sub(r"\n{3,}", "\n\n", value)
    value = re.sub(r"[ \t]+", " ", value)
    return value.strip()


def extract_text_from_pdf(content: bytes) -> str:
    """Page text followed by each page's tables as pipe-joined rows"""
    parts = []
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text() or ""
            if page_text.strip():
                parts.append(page_text)

            for table in page.extract_tables():
                for row in table:
                    cells = [str(cell).strip() for cell in row if cell]
                    if cells:
                        parts.append(" | ".join(cells))

    return "\n".join(parts)


def extract_text_from_docx(content: bytes) -> str:
    doc = Document(io.BytesIO(content))

    parts = [paragraph.text for paragraph in doc.paragraphs if paragraph.text.strip()]

    # Schedules are often laid out as Word tables
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))

    return "\n".join(parts)


def extract_text_from_table(content: bytes, mime_type: str) -> str:
    """One line per spreadsheet row, cells joined by spaces"""
    if mime_type == CSV_MIME:
        df = pd.read_csv(io.BytesIO(content), header=None, dtype=str)
    else:
        df = pd.read_excel(io.BytesIO(content), header=None, dtype=str)

    lines = []
    for _, row in df.iterrows():
        cells = [str(value).strip() for value in row if not pd.isna(value) and str(value).strip()]
        if cells:
            lines.append(" ".join(cells))
    return "\n".join(lines)


def extract_text_from_plain(content: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte
    return content.decode("latin-1")


def extract_text(content: bytes, mime_type: str, filename: str = "") -> str:
    """
    Extract cleaned plain text from an uploaded document.

    Raises DocumentExtractionError for unsupported types, unreadable files
    or documents without any text.
    """
    if not mime_type or mime_type == "application/octet-stream":
        mime_type = guess_mime_type(filename)

    try:
        if mime_type == PDF_MIME:
            raw = extract_text_from_pdf(content)
        elif mime_type == DOCX_MIME:
            raw = extract_text_from_docx(content)
        elif mime_type in (CSV_MIME, XLSX_MIME, "application/vnd.ms-excel"):
            raw = extract_text_from_table(content, mime_type)
        elif mime_type.startswith("text/"):
            raw = extract_text_from_plain(content)
        else:
            raise DocumentExtractionError(f"Unsupported document type: {mime_type}")
    except DocumentExtractionError:
        raise
    except Exception as e:
        logger.error("Failed to extract text from %s (%s): %s", filename or "upload", mime_type, e)
        raise DocumentExtractionError(f"Could not extract text from {filename or mime_type}: {e}") from e

    text = clean_text(raw)
    if not text:
        raise DocumentExtractionError(f"No text found in {filename or mime_type}")
    return text


def process_document(db: Session, document_id: int, content: bytes) -> Optional[str]:
    """Extract and store a document's text, tracking its processing status"""
    document = get_document(db, document_id)
    if not document:
        return None

    logger.info("Processing document %s (%s)", document.id, document.filename)
    update_document(db, document.id, {"status": "processing"})

    try:
        text = extract_text(content, document.mime_type, document.filename)
    except DocumentExtractionError as e:
        logger.error("Document %s failed: %s", document.id, e)
        update_document(db, document.id, {"status": "failed", "processed_at": datetime.now(timezone.utc)})
        raise

    update_document(db, document.id, {
        "status": "done",
        "extracted_text": text,
        "processed_at": datetime.now(timezone.utc),
    })
    logger.info("Document %s processed (%d characters)", document.id, len(text))
    return text
