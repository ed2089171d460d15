from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from pydantic import ValidationError

from careerdeck.ai.types import GroundingChunk
from careerdeck.core.errors import ResponseParseError
from careerdeck.schemas.career import (
    DEFAULT_EXPERIENCE_LEVEL,
    EXTRACTED_EXPERIENCE_LEVELS,
    CareerAnalysis,
    GroundingUrl,
    InterviewPrepData,
    ProfileMetadata,
)

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")

# extractor vocabulary -> form vocabulary
EXPERIENCE_LEVEL_FORM_VALUES = {
    "student": "student",
    "fresher": "fresher",
    "1-3_years": "early-career",
    "3-5_years": "mid-career",
    "5_plus_years": "mid-career",
    "career-switcher": "career-switcher",
}


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
        cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def load_json_object(text: str) -> dict[str, Any]:
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseParseError("Model returned an empty response.")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Model response was not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ResponseParseError("Model response JSON must be an object.")
    return data


def collect_grounding_urls(chunks: Iterable[GroundingChunk]) -> list[GroundingUrl]:
    urls: list[GroundingUrl] = []
    seen: set[str] = set()
    for chunk in chunks:
        uri = (chunk.uri or "").strip()
        if not uri or uri in seen:
            continue
        seen.add(uri)
        title = (chunk.title or "").strip() or None
        urls.append(GroundingUrl(uri=uri, title=title))
    return urls


def parse_career_analysis(
    text: str,
    *,
    grounding_chunks: Iterable[GroundingChunk] = (),
    search_used: bool = False,
) -> CareerAnalysis:
    data = load_json_object(text)
    # grounding only ever comes from response metadata, never from the model's own JSON
    data.pop("grounding_urls", None)
    try:
        analysis = CareerAnalysis.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError("Model response did not match the analysis shape.") from exc

    if search_used:
        urls = collect_grounding_urls(grounding_chunks)
        analysis = analysis.model_copy(update={"grounding_urls": urls})
    logger.info(
        "analysis_parsed cards=%s audit=%s grounding=%s",
        len(analysis.flashcards),
        analysis.resume_audit is not None,
        len(analysis.grounding_urls),
    )
    return analysis


def parse_interview_prep(text: str) -> InterviewPrepData:
    data = load_json_object(text)
    try:
        return InterviewPrepData.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError("Model response did not match the interview prep shape.") from exc


def coerce_experience_level(value: Any) -> str:
    level = str(value or "").strip()
    if level not in EXTRACTED_EXPERIENCE_LEVELS:
        level = DEFAULT_EXPERIENCE_LEVEL
    return EXPERIENCE_LEVEL_FORM_VALUES[level]


def parse_profile_metadata(text: str) -> ProfileMetadata:
    data = load_json_object(text)
    city = str(data.get("city") or "").strip()
    years = str(data.get("yearsExperience") or data.get("years_experience") or "").strip()
    raw_level = data.get("experienceLevel", data.get("experience_level"))
    return ProfileMetadata(
        city=city,
        experience_level=coerce_experience_level(raw_level),
        years_experience=years,
    )
