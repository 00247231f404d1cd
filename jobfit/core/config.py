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
    ai_model: str
    ai_fast_model: str
    gemini_api_key: str | None
    openai_api_key: str | None
    analysis_temperature: float
    analysis_seed: int
    max_upload_bytes: int
    pdf_max_pages: int
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    rate_limit: str
    rate_limit_enabled: bool
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    admin_api_key: str | None

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // (1024 * 1024)


settings = Settings(
    ai_provider=(_get_env("AI_PROVIDER", "gemini") or "gemini").strip().lower(),
    ai_model=(_get_env("AI_MODEL", "gemini-3-pro-preview") or "gemini-3-pro-preview").strip(),
    ai_fast_model=(_get_env("AI_FAST_MODEL", "gemini-3-flash-preview") or "gemini-3-flash-preview").strip(),
    gemini_api_key=_get_env("GEMINI_API_KEY") or _get_env("API_KEY"),
    openai_api_key=_get_env("OPENAI_API_KEY"),
    analysis_temperature=_get_env_float("ANALYSIS_TEMPERATURE", 0.0),
    analysis_seed=_get_env_int("ANALYSIS_SEED", 42),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
    pdf_max_pages=_get_env_int("PDF_MAX_PAGES", 10),
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
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 90),
    admin_api_key=_get_env("ADMIN_API_KEY"),
)

if settings.ai_provider not in {"gemini", "openai"}:
    raise RuntimeError("AI_PROVIDER must be either 'gemini' or 'openai'.")


def require_ai_credentials(current: Settings | None = None) -> None:
    """Fail at startup when the selected provider has no API key."""
    cfg = current or settings
    if cfg.ai_provider == "gemini" and not cfg.gemini_api_key:
        raise RuntimeError("AI_PROVIDER=gemini requires GEMINI_API_KEY (or API_KEY) to be set.")
    if cfg.ai_provider == "openai" and not cfg.openai_api_key:
        raise RuntimeError("AI_PROVIDER=openai requires OPENAI_API_KEY to be set.")
