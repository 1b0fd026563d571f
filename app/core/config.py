from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "y", "on"}


def _env(name: str, default: str | None = None) -> str | None:
    """Environment value with empty strings treated as unset."""
    return os.getenv(name) or default


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    return default if not raw else raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name) or default)
    except ValueError:
        return default


def _env_csv(name: str, default: list[str]) -> tuple[str, ...]:
    items = tuple(part.strip() for part in (os.getenv(name) or "").split(",") if part.strip())
    return items or tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    host: str
    port: int
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    store_path: str
    pdf_output_dir: str
    upload_dir: str
    temp_dir: str
    latex_compiler: str
    latex_timeout_s: int
    cleanup_enabled: bool
    cleanup_interval_s: int
    cleanup_max_age_s: int
    max_upload_mb: int
    default_user_id: str
    route_rate_limit_db_path: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    ai_provider: str
    ai_model: str
    gemini_api_key: str | None


settings = Settings(
    api_key=_env("API_KEY"),
    rate_limit=_env_str("RATE_LIMIT", "60/minute"),
    rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_env_str("LOG_LEVEL", "INFO"),
    host=_env_str("HOST", "0.0.0.0"),
    port=_env_int("PORT", 5000),
    sentry_dsn=_env("SENTRY_DSN"),
    cors_allowed_origins=_env_csv(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:5000",
            "http://127.0.0.1:5000",
        ],
    ),
    cors_allow_origin_regex=_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_env_bool("CORS_ALLOW_CREDENTIALS", True),
    store_path=_env_str("STORE_PATH", "data/db.json"),
    pdf_output_dir=_env_str("PDF_OUTPUT_DIR", "data/pdfs"),
    upload_dir=_env_str("UPLOAD_DIR", "data/uploads"),
    temp_dir=_env_str("TEMP_DIR", "data/temp"),
    latex_compiler=_env_str("LATEX_COMPILER", "pdflatex"),
    latex_timeout_s=_env_int("LATEX_TIMEOUT_S", 30),
    cleanup_enabled=_env_bool("CLEANUP_ENABLED", True),
    cleanup_interval_s=_env_int("CLEANUP_INTERVAL_S", 1800),
    cleanup_max_age_s=_env_int("CLEANUP_MAX_AGE_S", 3600),
    max_upload_mb=_env_int("MAX_UPLOAD_MB", 10),
    default_user_id=_env_str("DEFAULT_USER_ID", "default-user"),
    route_rate_limit_db_path=_env_str("ROUTE_RATE_LIMIT_DB_PATH", "data/route_rate_limit.db"),
    analytics_enabled=_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_env_str("ANALYTICS_DB_PATH", "data/analytics.db"),
    analytics_retention_days=_env_int("ANALYTICS_RETENTION_DAYS", 180),
    ai_provider=_env_str("AI_PROVIDER", "gemini").lower(),
    ai_model=_env_str("AI_MODEL", "gemini-2.5-flash"),
    gemini_api_key=_env("GEMINI_API_KEY"),
)

if settings.ai_provider not in {"gemini", "openai"}:
    raise RuntimeError("AI_PROVIDER must be either 'gemini' or 'openai'.")
