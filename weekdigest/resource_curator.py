import logging
import re
from typing import Any, Iterable, List, Optional
from urllib.parse import urlparse
from pydantic import BaseModel, Field, field_validator

from weekdigest.config import settings
from weekdigest.llm import CompletionClient
from weekdigest.output_parsing import parse_model_output
from weekdigest.schemas import CuratedResource, TopicSource

logger = logging.getLogger(__name__)

ALLOWED_RESOURCE_TYPES = {"Article", "Video", "Course Notes"}
REQUIRED_RESOURCES = 3
MAX_PROMPT_TOPICS = 8
MAX_SUMMARY_SENTENCES = 3
MAX_SUMMARY_CHARS = 420
MAX_TITLE_CHARS = 180
MAX_SOURCE_CHARS = 120

SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


class CandidateResource(BaseModel):
    """Schema for one resource as claimed by the model (unchecked)"""
    title: str = Field(default="", description="Resource title")
    type: str = Field(default="", description="Article | Video | Course Notes")
    source: str = Field(default="", description="Publisher or platform")
    url: str = Field(default="", description="HTTPS link")
    summary: str = Field(default="", description="2-3 sentence summary")

    @field_validator("title", "type", "source", "url", "summary", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            return ""
        return str(value).strip()


class ResourceCompletion(BaseModel):
    """Schema for the curator's JSON response"""
    concept_title: str = Field(default="", description="Primary concept of the week")
    resources: List[Any] = Field(default_factory=list, description="Exactly 3 resources")

    @field_validator("concept_title", mode="before")
    @classmethod
    def _concept_text(cls, value: Any) -> str:
        return value.strip()[:MAX_TITLE_CHARS] if isinstance(value, str) else ""

    @field_validator("resources", mode="before")
    @classmethod
    def _resource_list(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []


class CuratedResourcePayload(BaseModel):
    concept_title: str = ""
    resources: List[CuratedResource] = Field(default_factory=list)


def limit_summary(summary: str) -> str:
    """At most three sentences and 420 characters"""
    cleaned = " ".join(summary.split())
    if not cleaned:
        return ""
    sentences = [part.strip() for part in SENTENCE_BREAK.split(cleaned) if part.strip()]
    return " ".join(sentences[:MAX_SUMMARY_SENTENCES])[:MAX_SUMMARY_CHARS]


def is_trusted_host(hostname: str, trusted_hosts: Iterable[str]) -> bool:
    host = hostname.lower().rstrip(".")
    for suffix in trusted_hosts:
        suffix = suffix.lower().lstrip(".")
        if host == suffix or host.endswith("." + suffix):
            return True
    return False


def is_trusted_url(value: str, trusted_hosts: Iterable[str]) -> bool:
    """HTTPS and hosted on an allowlisted domain"""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    return is_trusted_host(parsed.hostname, trusted_hosts)


def sanitize_resources(candidates: List[Any], trusted_hosts: Iterable[str]) -> List[CuratedResource]:
    """
    Keep the first three valid, unique, trusted resources.

    All-or-nothing: anything short of exactly three returns an empty list.
    """
    trusted_hosts = list(trusted_hosts)
    resources: List[CuratedResource] = []
    seen_urls = set()

    for item in candidates:
        if not isinstance(item, dict):
            continue
        candidate = CandidateResource.model_validate(item)
        summary = limit_summary(candidate.summary)

        if not candidate.title or not candidate.source or not summary:
            continue
        if candidate.type not in ALLOWED_RESOURCE_TYPES:
            continue
        if not is_trusted_url(candidate.url, trusted_hosts):
            continue

        url_key = candidate.url.lower()
        if url_key in seen_urls:
            continue
        seen_urls.add(url_key)

        resources.append(CuratedResource(
            title=candidate.title[:MAX_TITLE_CHARS],
            type=candidate.type,
            source=candidate.source[:MAX_SOURCE_CHARS],
            url=candidate.url,
            summary=summary,
        ))
        if len(resources) == REQUIRED_RESOURCES:
            return resources

    return []


class ResourceCurator:
    """Ask the model for three learning resources and keep only verified ones"""

    def __init__(self, completion: CompletionClient, trusted_hosts: Optional[Iterable[str]] = None):
        self.completion = completion
        self.trusted_hosts = list(trusted_hosts if trusted_hosts is not None else settings.trusted_resource_hosts)

    @property
    def model_name(self) -> str:
        return getattr(self.completion, "model_name", "unknown")

    async def curate_weekly_topics(
        self,
        class_title: str,
        week: int,
        topic_source: TopicSource,
        topics: List[str]
    ) -> CuratedResourcePayload:
        """
        Curate resources for a week's topics.

        Unparsable or invalid output yields an empty resource list.
        CompletionError from the model call propagates to the caller.
        """
        normalized_topics = [topic.strip() for topic in topics if topic.strip()][:MAX_PROMPT_TOPICS]
        if not normalized_topics:
            return CuratedResourcePayload()

        prompt = self._build_prompt(class_title, week, topic_source, normalized_topics)
        raw = await self.completion.complete(prompt, self._build_system_prompt())

        parsed = parse_model_output(raw, ResourceCompletion)
        if parsed is None:
            logger.warning(
                "Resource curator returned unparsable output for week %s (length=%d)", week, len(raw or "")
            )
            return CuratedResourcePayload()

        resources = sanitize_resources(parsed.resources, self.trusted_hosts)
        if not resources:
            logger.info(
                "Discarded curated resources for week %s: fewer than %d passed validation",
                week, REQUIRED_RESOURCES
            )
        return CuratedResourcePayload(concept_title=parsed.concept_title, resources=resources)

    def _build_system_prompt(self) -> str:
        return (
            "You are a strict JSON generator. Return only a valid JSON object with no markdown, "
            "commentary, or extra keys."
        )

    def _build_prompt(
        self,
        class_title: str,
        week: int,
        topic_source: TopicSource,
        topics: List[str]
    ) -> str:
        topic_context = "\n".join(f"{index}. {topic}" for index, topic in enumerate(topics, 1))[:4000]

        return f"""You are an academic resource curator.

Task:
Given a class's current week topics, recommend exactly 3 high-quality external learning resources ranked by relevance.

Rules:
- Work for any subject area (STEM, humanities, social sciences, business, arts, etc.).
- Prioritize reputable educational sources: universities (.edu), MIT OCW, OpenStax, Khan Academy, and high-quality instructor lectures on YouTube.
- Avoid low-quality or random blogs.
- URLs must be realistic HTTPS links.
- Keep each summary concise and useful (2-3 sentences max).
- Return resources in descending relevance order to this specific week.
- Infer the exact course domain from class title + topics.
- Never return generic concept titles such as "math", "science", or "engineering".
- Prefer section-title context over bare section-number matches.

Output format requirements:
- Return JSON only with keys: concept_title, resources.
- resources must contain exactly 3 items.
- Each item must include: title, type, source, url, summary.
- type must be one of: Article | Video | Course Notes.
- If you cannot confidently provide 3 quality resources, return resources as an empty array.

Class title: {class_title.strip() or "(unknown)"}
Current week: {week}
Topic source preference used: {topic_source}

Week topics:
{topic_context}"""
