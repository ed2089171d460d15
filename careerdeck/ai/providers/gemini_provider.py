from __future__ import annotations

import base64
import logging
import os
from typing import Any, Optional

from google import genai
from google.genai import types

from careerdeck.ai.types import (
    GenerationRequest,
    GenerationResponse,
    GroundingChunk,
    InlineDataPart,
    TextPart,
)
from careerdeck.core.errors import ProviderConfigurationError

logger = logging.getLogger(__name__)


def _to_part(part: TextPart | InlineDataPart) -> types.Part:
    if isinstance(part, InlineDataPart):
        return types.Part.from_bytes(data=base64.b64decode(part.data), mime_type=part.mime_type)
    return types.Part(text=part.text)


def _grounding_chunks(response: Any) -> list[GroundingChunk]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    raw_chunks = getattr(metadata, "grounding_chunks", None) or []
    chunks: list[GroundingChunk] = []
    for raw in raw_chunks:
        web = getattr(raw, "web", None)
        if web is None:
            chunks.append(GroundingChunk())
            continue
        chunks.append(GroundingChunk(uri=getattr(web, "uri", None), title=getattr(web, "title", None)))
    return chunks


class GeminiProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout_s: float = 90.0,
        max_retries: int = 0,
    ):
        key = (api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "").strip()
        if not key:
            raise ProviderConfigurationError("GEMINI_API_KEY is missing")

        self._client = genai.Client(
            api_key=key,
            http_options=types.HttpOptions(
                timeout=int(timeout_s * 1000),
                retry_options=types.HttpRetryOptions(attempts=max_retries + 1),
            ),
        )

    def _build_config(self, request: GenerationRequest) -> types.GenerateContentConfig:
        config_kwargs: dict[str, Any] = {}
        if request.system_instruction:
            config_kwargs["system_instruction"] = request.system_instruction
        if "web_search" in request.tools:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        elif request.json_output:
            config_kwargs["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(**config_kwargs)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        contents = [types.Content(role="user", parts=[_to_part(p) for p in request.parts])]
        response = await self._client.aio.models.generate_content(
            model=request.model,
            contents=contents,
            config=self._build_config(request),
        )
        text = response.text or ""
        chunks = _grounding_chunks(response) if request.tools else []
        logger.debug("gemini_generate model=%s chars=%s grounding=%s", request.model, len(text), len(chunks))
        return GenerationResponse(text=text, grounding_chunks=chunks)
