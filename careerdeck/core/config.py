from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    ai_provider: str
    gemini_api_key: str | None
    openai_api_key: str | None
    openai_base_url: str | None
    ai_fast_model: str
    ai_deep_model: str
    ai_timeout_s: float
    ai_max_retries: int
    max_resume_length: int
    max_file_size_mb: int
    max_image_size_mb: int
    metadata_max_chars: int
    secondary_resume_max_chars: int
    autofill_min_chars: int
    loading_message_interval_s: float
    score_reveal_duration_s: float
    score_reveal_steps: int
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    session_ttl_minutes: int
    session_sweep_interval_s: float
    theme_cookie_name: str

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_mb * 1024 * 1024


def load_settings() -> Settings:
    return Settings(
        ai_provider=(_get_env("AI_PROVIDER", "gemini") or "gemini").strip().lower(),
        gemini_api_key=_get_env("GEMINI_API_KEY") or _get_env("API_KEY"),
        openai_api_key=_get_env("OPENAI_API_KEY"),
        openai_base_url=_get_env("OPENAI_BASE_URL"),
        ai_fast_model=(_get_env("AI_FAST_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash").strip(),
        ai_deep_model=(_get_env("AI_DEEP_MODEL", "gemini-3-pro-preview") or "gemini-3-pro-preview").strip(),
        ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 90.0),
        ai_max_retries=_get_env_int("AI_MAX_RETRIES", 0),
        max_resume_length=_get_env_int("MAX_RESUME_LENGTH", 15000),
        max_file_size_mb=_get_env_int("MAX_FILE_SIZE_MB", 2),
        max_image_size_mb=_get_env_int("MAX_IMAGE_SIZE_MB", 4),
        metadata_max_chars=_get_env_int("METADATA_MAX_CHARS", 5000),
        secondary_resume_max_chars=_get_env_int("SECONDARY_RESUME_MAX_CHARS", 3000),
        autofill_min_chars=_get_env_int("AUTOFILL_MIN_CHARS", 50),
        loading_message_interval_s=_get_env_float("LOADING_MESSAGE_INTERVAL_S", 3.0),
        score_reveal_duration_s=_get_env_float("SCORE_REVEAL_DURATION_S", 1.5),
        score_reveal_steps=_get_env_int("SCORE_REVEAL_STEPS", 60),
        rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
                "http://localhost:3000",
            ],
        ),
        session_ttl_minutes=_get_env_int("SESSION_TTL_MINUTES", 120),
        session_sweep_interval_s=_get_env_float("SESSION_SWEEP_INTERVAL_S", 600.0),
        theme_cookie_name=_get_env("THEME_COOKIE_NAME", "theme") or "theme",
    )


settings = load_settings()

if settings.ai_provider not in {"gemini", "openai"}:
    raise RuntimeError("AI_PROVIDER must be either 'gemini' or 'openai'.")
