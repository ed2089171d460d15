from careerdeck.ai.config import load_ai_config
from careerdeck.ai.types import GenerativeClient
from careerdeck.core.config import Settings

from careerdeck.ai.providers.gemini_provider import GeminiProvider
from careerdeck.ai.providers.openai_provider import OpenAIProvider


def get_ai_client(cfg: Settings | None = None) -> GenerativeClient:
    ai = load_ai_config(cfg)

    if ai.provider == "gemini":
        return GeminiProvider(api_key=ai.gemini_api_key, timeout_s=ai.timeout_s, max_retries=ai.max_retries)

    if ai.provider == "openai":
        return OpenAIProvider(
            api_key=ai.openai_api_key,
            base_url=ai.openai_base_url,
            timeout_s=ai.timeout_s,
            max_retries=ai.max_retries,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{ai.provider}'")
