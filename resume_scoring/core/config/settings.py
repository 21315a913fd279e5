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
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    resume_db_path: str
    resume_storage_dir: str
    max_upload_bytes: int
    content_preview_chars: int
    analysis_delay_seconds: float
    analysis_max_sessions: int
    keyword_profile: str


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    resume_db_path=_get_env("RESUME_DB_PATH", "data/resumes.db") or "data/resumes.db",
    resume_storage_dir=_get_env("RESUME_STORAGE_DIR", "data/resumes") or "data/resumes",
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    content_preview_chars=_get_env_int("CONTENT_PREVIEW_CHARS", 1000),
    analysis_delay_seconds=_get_env_float("ANALYSIS_DELAY_SECONDS", 1.5),
    analysis_max_sessions=_get_env_int("ANALYSIS_MAX_SESSIONS", 1000),
    keyword_profile=(_get_env("KEYWORD_PROFILE", "default") or "default").strip().lower(),
)

if settings.analysis_delay_seconds < 0:
    raise RuntimeError("ANALYSIS_DELAY_SECONDS must not be negative.")

if settings.analysis_max_sessions < 1:
    raise RuntimeError("ANALYSIS_MAX_SESSIONS must be at least 1.")
