from __future__ import annotations

import logging

from careerdeck.ai.types import GenerationRequest, GenerativeClient, TextPart
from careerdeck.core.config import Settings, settings
from careerdeck.schemas.career import ProfileMetadata, UserInput
from careerdeck.services.prompts import build_metadata_prompt
from careerdeck.services.response_parser import parse_profile_metadata

logger = logging.getLogger(__name__)


async def extract_profile_metadata(
    text: str,
    client: GenerativeClient,
    *,
    cfg: Settings | None = None,
) -> ProfileMetadata:
    """Best-effort city/experience inference. Any failure yields an empty result."""
    cfg = cfg or settings
    request = GenerationRequest(
        model=cfg.ai_fast_model,
        parts=[TextPart(build_metadata_prompt(text, cfg.metadata_max_chars))],
        json_output=True,
    )
    try:
        response = await client.generate(request)
        metadata = parse_profile_metadata(response.text or "{}")
    except Exception as exc:  # noqa: BLE001 - auto-fill is advisory only
        logger.warning("metadata_extract_failed chars=%s: %s", len(text), exc)
        return ProfileMetadata()
    logger.info(
        "metadata_extracted city=%s level=%s years=%s",
        bool(metadata.city),
        metadata.experience_level,
        bool(metadata.years_experience),
    )
    return metadata


def merge_profile_metadata(user_input: UserInput, metadata: ProfileMetadata) -> UserInput:
    """Overwrite only the fields the extractor actually filled in."""
    update: dict[str, str] = {}
    if metadata.city:
        update["city"] = metadata.city
    if metadata.experience_level:
        update["experience_level"] = metadata.experience_level
    if metadata.years_experience:
        update["years_experience"] = metadata.years_experience
    if not update:
        return user_input
    return user_input.model_copy(update=update)
