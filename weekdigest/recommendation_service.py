import asyncio
import logging
from typing import List, Optional

from weekdigest.cache import CacheKey, SqlWeekRecommendationCache, WeekCacheStore
from weekdigest.errors import CacheUnavailableError, CompletionError
from weekdigest.resource_curator import CuratedResourcePayload, ResourceCurator
from weekdigest.schemas import ClassTexts, TopicSelection, WeekRecommendation
from weekdigest.topic_extractor import (
    build_section_title_map,
    contextualize_section_topics,
    extract_topics_from_schedule_days,
    extract_topics_from_week_block,
    pick_topic_source,
)
from weekdigest.week_schedule_service import (
    Clock,
    SessionFactory,
    WeekScheduleService,
    load_class_texts,
    read_cached,
    resolve_target_week,
    source_fingerprints,
    utc_now,
)
from weekdigest.week_text import get_exact_week_block

logger = logging.getLogger(__name__)


class WeekRecommendationService:
    """Get-or-create curated learning resources for a class week"""

    def __init__(
        self,
        session_factory: SessionFactory,
        schedule_service: WeekScheduleService,
        curator: ResourceCurator,
        cache: WeekCacheStore,
        now: Optional[Clock] = None
    ):
        self.session_factory = session_factory
        self.schedule_service = schedule_service
        self.curator = curator
        self.cache = cache
        self.now = now or utc_now

    async def select_topics(self, texts: ClassTexts, week: int) -> TopicSelection:
        """
        Mine topics for a week from both documents.

        Schedule topics combine the finalized day labels, the schedule week
        block and section numbers mapped to section titles. Syllabus topics
        come from the syllabus week block and win when present.
        """
        schedule = await self.schedule_service.get_week_schedule(texts.class_id, texts.user_id, week)

        section_titles = build_section_title_map(texts.schedule_text)
        # Syllabus titles are more descriptive than ones mined from the schedule grid
        section_titles.update(build_section_title_map(texts.syllabus_text))

        schedule_block = get_exact_week_block(texts.schedule_text, week) if texts.schedule_text else ""

        schedule_topics: List[str] = []
        schedule_topics.extend(extract_topics_from_schedule_days(schedule.days if schedule else []))
        schedule_topics.extend(extract_topics_from_week_block(texts.schedule_text, week))
        schedule_topics.extend(contextualize_section_topics(schedule_block, section_titles))

        syllabus_topics = extract_topics_from_week_block(texts.syllabus_text, week)

        return pick_topic_source(schedule_topics, syllabus_topics)

    async def get_week_recommendation(
        self,
        class_id: int,
        user_id: str,
        week: Optional[int] = None
    ) -> Optional[WeekRecommendation]:
        """
        Return curated resources for a class week, generating them on a cache miss.

        None means no weekly content was detected (unknown class, no week,
        or no topics); callers report it apart from failures.
        """
        texts = await asyncio.to_thread(load_class_texts, self.session_factory, class_id, user_id)
        if texts is None:
            return None

        now = self.now()
        target_week = resolve_target_week(texts, week, now)
        if target_week is None:
            return None

        schedule_fingerprint, syllabus_fingerprint = source_fingerprints(texts)
        key = CacheKey(texts.class_id, target_week, schedule_fingerprint, syllabus_fingerprint)

        can_persist, cached = await asyncio.to_thread(read_cached, self.cache, key)
        if cached is not None:
            logger.debug("Week recommendation cache hit for class %s week %s", class_id, target_week)
            return cached

        selection = await self.select_topics(texts, target_week)
        if not selection.topics:
            logger.info("No weekly topics found for class %s week %s", class_id, target_week)
            return None

        degraded = False
        try:
            payload = await self.curator.curate_weekly_topics(
                texts.title, target_week, selection.source, selection.topics
            )
        except CompletionError as e:
            logger.warning("Resource curation failed for class %s week %s: %s", class_id, target_week, e)
            payload = CuratedResourcePayload()
            degraded = True

        recommendation = WeekRecommendation(
            class_id=texts.class_id,
            week=target_week,
            topic_source=selection.source,
            topic_summary=payload.concept_title or selection.topics[0],
            topics=selection.topics,
            resources=payload.resources,
            generated_at_iso=now.isoformat(),
            schedule_fingerprint=schedule_fingerprint,
            syllabus_fingerprint=syllabus_fingerprint,
            model=self.curator.model_name,
        )

        if degraded or not can_persist:
            return recommendation

        try:
            return await asyncio.to_thread(self.cache.put_if_absent, key, recommendation)
        except CacheUnavailableError as e:
            logger.warning("Skipping week recommendation persistence: %s", e)
            return recommendation


def get_default_service() -> WeekRecommendationService:
    """Service wired to the configured database and model provider"""
    from weekdigest.database import SessionLocal
    from weekdigest.llm import get_completion_client
    from weekdigest.week_schedule_service import get_default_service as get_schedule_service

    return WeekRecommendationService(
        SessionLocal,
        get_schedule_service(),
        ResourceCurator(get_completion_client("resources")),
        SqlWeekRecommendationCache(SessionLocal),
    )


async def get_week_recommendation(
    class_id: int,
    user_id: str,
    week: Optional[int] = None
) -> Optional[WeekRecommendation]:
    return await get_default_service().get_week_recommendation(class_id, user_id, week)
