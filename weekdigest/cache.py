"""
Fingerprint-keyed cache for generated schedules and recommendations.

Rows are keyed by ``(class_id, week, schedule_fingerprint, syllabus_fingerprint)``
and never updated: a content change produces a new fingerprint and a new row.
Stores expose ``put_if_absent`` so concurrent writers for the same key collapse
into the first stored value.
"""
import hashlib
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from weekdigest.errors import CacheUnavailableError
from weekdigest.models import WeekRecommendationRecord, WeekScheduleRecord
from weekdigest.schemas import WeekRecommendation, WeekSchedule

logger = logging.getLogger(__name__)

MISSING_SOURCE = "none"

ValueT = TypeVar("ValueT", WeekSchedule, WeekRecommendation)


def fingerprint(text: Optional[str]) -> str:
    """First 16 hex chars of SHA-256; absent text hashes the literal "none" """
    source = text if text else MISSING_SOURCE
    return hashlib.sha256(source.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class CacheKey:
    class_id: int
    week: int
    schedule_fingerprint: str
    syllabus_fingerprint: str


class WeekCacheStore(ABC, Generic[ValueT]):
    """Get / put-if-absent store for one kind of generated week output"""

    @abstractmethod
    def is_available(self) -> bool:
        """Capability probe: can this store persist anything right now?"""

    @abstractmethod
    def get(self, key: CacheKey) -> Optional[ValueT]:
        ...

    @abstractmethod
    def put_if_absent(self, key: CacheKey, value: ValueT) -> ValueT:
        """Store value unless the key exists; return whatever is stored"""


class InMemoryWeekCache(WeekCacheStore[ValueT]):
    """Process-local store, used in tests and when no database is configured"""

    def __init__(self):
        self._items: Dict[CacheKey, ValueT] = {}
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        return True

    def get(self, key: CacheKey) -> Optional[ValueT]:
        with self._lock:
            return self._items.get(key)

    def put_if_absent(self, key: CacheKey, value: ValueT) -> ValueT:
        with self._lock:
            return self._items.setdefault(key, value)

    def __len__(self) -> int:
        return len(self._items)


class SqlWeekCache(WeekCacheStore[ValueT]):
    """
    SQLAlchemy-backed store over one of the week output tables.

    The table is probed through the inspector instead of parsing
    driver-specific "relation does not exist" messages. While it is missing
    every call raises CacheUnavailableError and callers skip persistence; a
    missing table is probed again on the next call, so one created later is
    picked up. A table dropped after a successful probe is reported the same
    way once a query fails.
    """

    record_class: Type = None
    schema_class: Type[ValueT] = None

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self._available: Optional[bool] = None

    @property
    def table_name(self) -> str:
        return self.record_class.__tablename__

    def _has_table(self) -> bool:
        db = self.session_factory()
        try:
            return inspect(db.get_bind()).has_table(self.table_name)
        finally:
            db.close()

    def is_available(self) -> bool:
        if not self._available:
            available = self._has_table()
            if not available and self._available is None:
                logger.warning("Cache table %s is missing; generated results will not be persisted", self.table_name)
            elif available and self._available is False:
                logger.info("Cache table %s is now available", self.table_name)
            self._available = available
        return self._available

    def _check_dropped_table(self, db: Session, error: OperationalError):
        """Raise CacheUnavailableError if a failed query was caused by the table going away"""
        db.rollback()
        if self._has_table():
            return
        logger.warning("Cache table %s was dropped; generated results will not be persisted", self.table_name)
        self._available = False
        raise CacheUnavailableError(self.table_name) from error

    def _require_table(self):
        if not self.is_available():
            raise CacheUnavailableError(self.table_name)

    def _lookup(self, db: Session, key: CacheKey):
        record = self.record_class
        return db.query(record).filter(
            record.class_id == key.class_id,
            record.week == key.week,
            record.schedule_fingerprint == key.schedule_fingerprint,
            record.syllabus_fingerprint == key.syllabus_fingerprint
        ).order_by(record.created_at.desc()).first()

    def _to_value(self, row) -> ValueT:
        return self.schema_class.model_validate(row)

    def _to_row(self, value: ValueT):
        data = {}
        for name in type(value).model_fields:
            field_value = getattr(value, name)
            if isinstance(field_value, list):
                # JSON columns keep the camelCase keys of the public payload
                field_value = [
                    item.model_dump(mode="json", by_alias=True, exclude_none=True)
                    if isinstance(item, BaseModel) else item
                    for item in field_value
                ]
            data[name] = field_value
        return self.record_class(**data)

    def get(self, key: CacheKey) -> Optional[ValueT]:
        self._require_table()
        db = self.session_factory()
        try:
            row = self._lookup(db, key)
            return self._to_value(row) if row else None
        except OperationalError as e:
            self._check_dropped_table(db, e)
            raise
        finally:
            db.close()

    def put_if_absent(self, key: CacheKey, value: ValueT) -> ValueT:
        self._require_table()
        db = self.session_factory()
        try:
            existing = self._lookup(db, key)
            if existing:
                return self._to_value(existing)

            row = self._to_row(value)
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.info(
                    "Concurrent write for class %s week %s in %s; keeping first stored row",
                    key.class_id, key.week, self.table_name
                )
                existing = self._lookup(db, key)
                if existing is None:
                    raise
                return self._to_value(existing)

            db.refresh(row)
            return self._to_value(row)
        except OperationalError as e:
            self._check_dropped_table(db, e)
            raise
        finally:
            db.close()


class SqlWeekScheduleCache(SqlWeekCache[WeekSchedule]):
    record_class = WeekScheduleRecord
    schema_class = WeekSchedule


class SqlWeekRecommendationCache(SqlWeekCache[WeekRecommendation]):
    record_class = WeekRecommendationRecord
    schema_class = WeekRecommendation
