from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weekdigest.database import Base, init_db
from weekdigest.models import CourseClass, SourceDocument


class FakeCompletion:
    """Stands in for the model client: replays canned responses"""

    def __init__(self, *responses, model_name="fake-model"):
        self.responses = list(responses) or [""]
        self.model_name = model_name
        self.prompts = []

    async def complete(self, prompt, system):
        self.prompts.append(prompt)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self):
        return len(self.prompts)


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def fake_completion():
    return FakeCompletion


@pytest.fixture
def engine():
    engine = _memory_engine()
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def bare_engine():
    """Only the class and document tables; the cache tables are missing"""
    engine = _memory_engine()
    Base.metadata.create_all(bind=engine, tables=[CourseClass.__table__, SourceDocument.__table__])
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def bare_session_factory(bare_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=bare_engine)


@pytest.fixture
def add_class():
    """Insert a class with processed documents; returns the class id"""

    def _add(session_factory, schedule_text=None, syllabus_text=None, current_week=3,
             set_at=datetime(2024, 3, 5, 9, 0), user_id="student-1", title="Math 31B"):
        db = session_factory()
        try:
            course_class = CourseClass(
                user_id=user_id,
                title=title,
                current_week=current_week,
                current_week_set_at=set_at if current_week else None,
                created_at=datetime(2024, 1, 8, 12, 0),
            )
            db.add(course_class)
            db.commit()

            for filename, doc_type, text in (
                ("schedule.pdf", "schedule", schedule_text),
                ("syllabus.pdf", "syllabus", syllabus_text),
            ):
                if text is None:
                    continue
                db.add(SourceDocument(
                    class_id=course_class.id,
                    user_id=user_id,
                    filename=filename,
                    mime_type="application/pdf",
                    doc_type=doc_type,
                    status="done",
                    extracted_text=text,
                ))
            db.commit()
            return course_class.id
        finally:
            db.close()

    return _add
