from dataclasses import dataclass

from careerdeck.core.config import Settings, settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    timeout_s: float
    max_retries: int
    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    openai_base_url: str | None = None


def load_ai_config(cfg: Settings | None = None) -> AIConfig:
    cfg = cfg or settings
    return AIConfig(
        provider=cfg.ai_provider,
        timeout_s=cfg.ai_timeout_s,
        max_retries=cfg.ai_max_retries,
        gemini_api_key=cfg.gemini_api_key,
        openai_api_key=cfg.openai_api_key,
        openai_base_url=cfg.openai_base_url,
    )
