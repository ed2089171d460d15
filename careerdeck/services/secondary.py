from __future__ import annotations

import logging

from careerdeck.ai.types import GenerationRequest, GenerativeClient, TextPart
from careerdeck.core.config import Settings, settings
from careerdeck.core.errors import SecondaryGenerationError
from careerdeck.schemas.career import InterviewPrepData
from careerdeck.services.prompts import build_cover_letter_prompt, build_interview_prep_prompt
from careerdeck.services.response_parser import parse_interview_prep, strip_code_fences

logger = logging.getLogger(__name__)

INTERVIEW_PREP_FAILED_MESSAGE = "Could not generate interview questions."
COVER_LETTER_FAILED_MESSAGE = "Could not generate cover letter."


async def generate_interview_prep(
    role: str,
    resume_text: str,
    client: GenerativeClient,
    *,
    cfg: Settings | None = None,
) -> InterviewPrepData:
    cfg = cfg or settings
    request = GenerationRequest(
        model=cfg.ai_fast_model,
        parts=[TextPart(build_interview_prep_prompt(role, resume_text, cfg.secondary_resume_max_chars))],
        json_output=True,
    )
    try:
        response = await client.generate(request)
        return parse_interview_prep(response.text or "{}")
    except Exception as exc:
        logger.warning("interview_prep_failed role=%s: %s", role, exc)
        raise SecondaryGenerationError(INTERVIEW_PREP_FAILED_MESSAGE, code="interview_prep_failed") from exc


async def generate_cover_letter(
    role: str,
    resume_text: str,
    client: GenerativeClient,
    *,
    cfg: Settings | None = None,
) -> str:
    cfg = cfg or settings
    request = GenerationRequest(
        model=cfg.ai_fast_model,
        parts=[TextPart(build_cover_letter_prompt(role, resume_text, cfg.secondary_resume_max_chars))],
    )
    try:
        response = await client.generate(request)
    except Exception as exc:
        logger.warning("cover_letter_failed role=%s: %s", role, exc)
        raise SecondaryGenerationError(COVER_LETTER_FAILED_MESSAGE, code="cover_letter_failed") from exc
    letter = strip_code_fences(response.text or "")
    if not letter:
        raise SecondaryGenerationError(COVER_LETTER_FAILED_MESSAGE, code="cover_letter_empty")
    return letter
