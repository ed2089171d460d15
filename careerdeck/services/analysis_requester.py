from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass

from careerdeck.ai.types import (
    ContentPart,
    GenerationRequest,
    GenerativeClient,
    InlineDataPart,
    TextPart,
    ToolName,
)
from careerdeck.core.config import Settings, settings
from careerdeck.core.errors import AnalysisFailedError, EmptySubmissionError
from careerdeck.schemas.career import AnalysisMode, CareerAnalysis, UserInput
from careerdeck.services.prompts import SYSTEM_PROMPT, build_analysis_prompt
from careerdeck.services.response_parser import parse_career_analysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelPlan:
    model: str
    tools: tuple[ToolName, ...]
    json_output: bool


def _short_hash(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def select_model_plan(mode: AnalysisMode, cfg: Settings | None = None) -> ModelPlan:
    cfg = cfg or settings
    if mode == "deep":
        return ModelPlan(model=cfg.ai_deep_model, tools=(), json_output=True)
    if mode == "search":
        return ModelPlan(model=cfg.ai_fast_model, tools=("web_search",), json_output=False)
    return ModelPlan(model=cfg.ai_fast_model, tools=(), json_output=True)


def build_analysis_request(user_input: UserInput, cfg: Settings | None = None) -> GenerationRequest:
    plan = select_model_plan(user_input.mode, cfg)
    parts: list[ContentPart] = [TextPart(build_analysis_prompt(user_input))]
    if user_input.has_image:
        parts.append(InlineDataPart(mime_type=user_input.image_mime_type or "", data=user_input.image_data or ""))
    return GenerationRequest(
        model=plan.model,
        parts=parts,
        system_instruction=SYSTEM_PROMPT,
        tools=plan.tools,
        json_output=plan.json_output,
    )


async def analyze_resume(
    user_input: UserInput,
    client: GenerativeClient,
    *,
    cfg: Settings | None = None,
) -> CareerAnalysis:
    if not user_input.is_submittable():
        raise EmptySubmissionError()

    request = build_analysis_request(user_input, cfg)
    started = time.perf_counter()
    logger.info(
        json.dumps(
            {
                "event": "analysis_request",
                "model": request.model,
                "mode": user_input.mode,
                "more_roles": user_input.more_roles,
                "tools": list(request.tools),
                "json_output": request.json_output,
                "resume_len": len(user_input.resume_text),
                "resume_hash": _short_hash(user_input.resume_text),
                "has_image": user_input.has_image,
            }
        )
    )
    try:
        response = await client.generate(request)
        if not (response.text or "").strip():
            raise AnalysisFailedError()
        analysis = parse_career_analysis(
            response.text,
            grounding_chunks=response.grounding_chunks,
            search_used=user_input.mode == "search",
        )
    except Exception as exc:
        logger.warning(
            "analysis_failed model=%s mode=%s duration_ms=%s: %s",
            request.model,
            user_input.mode,
            int((time.perf_counter() - started) * 1000),
            exc,
        )
        raise AnalysisFailedError() from exc

    logger.info(
        "analysis_complete model=%s mode=%s cards=%s duration_ms=%s",
        request.model,
        user_input.mode,
        len(analysis.flashcards),
        int((time.perf_counter() - started) * 1000),
    )
    return analysis
