import json
import re
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def _strip_code_fence(content: str) -> str:
    # Extract JSON from response (handle markdown code blocks)
    if "```json" in content:
        return content.split("```json")[1].split("```")[0]
    if content.count("```") >= 2:
        return content.split("```")[1].split("```")[0]
    return content


def _load_object(raw: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Permissively parse a JSON object out of model output.

    Accepts a bare object, a fenced code block, or an object embedded in
    surrounding prose. Anything else (arrays, scalars, garbage) is absent.
    """
    if not text or not text.strip():
        return None

    raw = _strip_code_fence(text).strip()
    parsed = _load_object(raw)
    if parsed is not None:
        return parsed

    match = OBJECT_SPAN.search(raw)
    if not match:
        return None
    return _load_object(match.group(0))


def parse_model_output(text: Optional[str], schema: Type[ModelT]) -> Optional[ModelT]:
    """Parse then validate; any failure means the model output is absent"""
    payload = parse_json_object(text)
    if payload is None:
        return None

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        logger.warning("Model output failed %s validation: %s", schema.__name__, e.error_count())
        return None


def keep_valid_items(items: Any, schema: Type[ModelT]) -> List[ModelT]:
    """Validate list entries one by one, dropping the malformed ones"""
    if not isinstance(items, list):
        return []

    kept = []
    for item in items:
        try:
            kept.append(schema.model_validate(item))
        except ValidationError:
            continue
    return kept
