import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session

from weekdigest.cache import CacheKey, SqlWeekScheduleCache, WeekCacheStore, fingerprint
from weekdigest.config import settings
from weekdigest.crud import list_classes_with_current_week, resolve_class_texts
from weekdigest.errors import CacheUnavailableError
from weekdigest.row_extractor import extract_syllabus_hints, extract_week_rows
from weekdigest.schedule_reconciler import WeekScheduleReconciler
from weekdigest.schemas import ClassTexts, WeekSchedule
from weekdigest.week_dates import (
    MAX_WEEK,
    clamp_week,
    compute_effective_current_week,
    compute_week_start_end,
    resolve_term_start,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def load_class_texts(session_factory: SessionFactory, class_id: int, user_id: str) -> Optional[ClassTexts]:
    db = session_factory()
    try:
        return resolve_class_texts(db, class_id, user_id)
    finally:
        db.close()


def load_scheduled_classes(session_factory: SessionFactory) -> List[Tuple]:
    db = session_factory()
    try:
        return [
            (c.id, c.user_id, c.current_week, c.created_at, c.current_week_set_at)
            for c in list_classes_with_current_week(db)
        ]
    finally:
        db.close()


def resolve_target_week(texts: ClassTexts, week: Optional[int], now: datetime) -> Optional[int]:
    """Explicit week clamped to 1-20, else the effective current week"""
    if week is not None:
        return clamp_week(week)
    return compute_effective_current_week(
        texts.current_week,
        texts.created_at,
        texts.current_week_set_at,
        now=now,
    )


def resolve_week_window(texts: ClassTexts, week: int) -> Tuple[str, str]:
    """Calendar range of a week, anchored on when the current week was set"""
    anchor = texts.current_week_set_at or texts.created_at
    term_start = resolve_term_start(anchor, texts.current_week or week)
    return compute_week_start_end(week, term_start)


def source_fingerprints(texts: ClassTexts) -> Tuple[str, str]:
    return fingerprint(texts.schedule_text), fingerprint(texts.syllabus_text)


def read_cached(cache: WeekCacheStore, key: CacheKey) -> Tuple[bool, Optional[Any]]:
    """
    Look up a cached result. Returns ``(can_persist, value)``; a store without
    its backing table reports False and the caller skips persistence.
    """
    if not cache.is_available():
        return False, None
    try:
        return True, cache.get(key)
    except CacheUnavailableError as e:
        logger.warning("Skipping cache lookup: %s", e)
        return False, None


class WeekScheduleService:
    """Get-or-create the 7-day schedule of a class week"""

    def __init__(
        self,
        session_factory: SessionFactory,
        reconciler: WeekScheduleReconciler,
        cache: WeekCacheStore,
        now: Optional[Clock] = None
    ):
        self.session_factory = session_factory
        self.reconciler = reconciler
        self.cache = cache
        self.now = now or utc_now

    async def get_week_schedule(
        self,
        class_id: int,
        user_id: str,
        week: Optional[int] = None
    ) -> Optional[WeekSchedule]:
        """
        Return the schedule for a class week, generating it on a cache miss.

        Returns None when the class is unknown, has no processed schedule
        document, or no week can be resolved.
        """
        # Sessions are synchronous; keep them off the event loop
        texts = await asyncio.to_thread(load_class_texts, self.session_factory, class_id, user_id)
        if texts is None or not texts.schedule_text:
            return None

        now = self.now()
        target_week = resolve_target_week(texts, week, now)
        if target_week is None:
            return None

        schedule_fingerprint, syllabus_fingerprint = source_fingerprints(texts)
        key = CacheKey(texts.class_id, target_week, schedule_fingerprint, syllabus_fingerprint)

        can_persist, cached = await asyncio.to_thread(read_cached, self.cache, key)
        if cached is not None:
            logger.debug("Week schedule cache hit for class %s week %s", class_id, target_week)
            return cached
        logger.debug("Week schedule cache miss for class %s week %s", class_id, target_week)

        week_start_iso, week_end_iso = resolve_week_window(texts, target_week)
        week_rows = extract_week_rows(
            texts.schedule_text,
            target_week,
            reference=date.fromisoformat(week_start_iso),
        )
        syllabus_hints = extract_syllabus_hints(texts.syllabus_text, settings.syllabus_hint_chars)

        reconciled = await self.reconciler.reconcile(
            target_week, week_start_iso, week_end_iso, week_rows, syllabus_hints
        )

        schedule = WeekSchedule(
            class_id=texts.class_id,
            week=target_week,
            week_start_iso=week_start_iso,
            week_end_iso=week_end_iso,
            days=reconciled.days,
            upcoming=reconciled.upcoming,
            generated_at_iso=now.isoformat(),
            schedule_fingerprint=schedule_fingerprint,
            syllabus_fingerprint=syllabus_fingerprint,
            model=self.reconciler.model_name,
        )

        # A degraded result is returned but left uncached so the next request retries
        if reconciled.degraded or not can_persist:
            return schedule

        try:
            return await asyncio.to_thread(self.cache.put_if_absent, key, schedule)
        except CacheUnavailableError as e:
            logger.warning("Skipping week schedule persistence: %s", e)
            return schedule

    async def prime_current_week(self, class_id: int, user_id: str) -> Dict[str, Any]:
        """Warm the cache for the class's current week (e.g. after an upload)"""
        schedule = await self.get_week_schedule(class_id, user_id)
        if schedule is None:
            return {"primed": False, "reason": "missing-input-data", "entry_count": 0}
        return {"primed": True, "reason": "generated", "entry_count": len(schedule.days)}

    async def precompute_next_week_schedules(self) -> Dict[str, int]:
        """Generate next week's schedule for every class with a current week"""
        classes = await asyncio.to_thread(load_scheduled_classes, self.session_factory)

        generated_count = 0
        for class_id, user_id, current_week, created_at, current_week_set_at in classes:
            effective_week = compute_effective_current_week(
                current_week, created_at, current_week_set_at, now=self.now()
            )
            if not effective_week:
                continue

            target_week = min(MAX_WEEK, effective_week + 1)
            try:
                schedule = await self.get_week_schedule(class_id, user_id, target_week)
            except Exception as e:
                logger.error("Failed to precompute class %s week %s: %s", class_id, target_week, e)
                continue

            if schedule is not None:
                generated_count += 1

        return {"generated_count": generated_count, "scanned_classes": len(classes)}


def get_default_service() -> WeekScheduleService:
    """Service wired to the configured database and model provider"""
    from weekdigest.database import SessionLocal
    from weekdigest.llm import get_completion_client

    return WeekScheduleService(
        SessionLocal,
        WeekScheduleReconciler(get_completion_client("schedule")),
        SqlWeekScheduleCache(SessionLocal),
    )


async def get_week_schedule(class_id: int, user_id: str, week: Optional[int] = None) -> Optional[WeekSchedule]:
    return await get_default_service().get_week_schedule(class_id, user_id, week)
