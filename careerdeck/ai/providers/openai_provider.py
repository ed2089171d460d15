from __future__ import annotations

import logging
import os
from typing import Any, Optional

from openai import AsyncOpenAI

from careerdeck.ai.types import GenerationRequest, GenerationResponse, InlineDataPart
from careerdeck.core.errors import ProviderConfigurationError

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Chat-completions backend. Web search grounding is not available here."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 90.0,
        max_retries: int = 0,
        temperature: float = 0.4,
    ):
        self._temperature = temperature
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise ProviderConfigurationError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=max_retries,
        )

    @staticmethod
    def _user_content(request: GenerationRequest) -> list[dict[str, Any]]:
        content: list[dict[str, Any]] = []
        for part in request.parts:
            if isinstance(part, InlineDataPart):
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{part.mime_type};base64,{part.data}"},
                    }
                )
            else:
                content.append({"type": "text", "text": part.text})
        return content

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        messages: list[dict[str, Any]] = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})
        messages.append({"role": "user", "content": self._user_content(request)})

        if request.tools:
            logger.warning("openai_tools_unsupported model=%s tools=%s", request.model, list(request.tools))

        create_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": messages,
            "temperature": self._temperature,
        }
        if request.json_output:
            create_kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**create_kwargs)
        text = response.choices[0].message.content if response.choices else ""
        return GenerationResponse(text=text or "")
