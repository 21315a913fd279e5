from __future__ import annotations

from fastapi import Header, Request

from resume_scoring.core.config import settings
from resume_scoring.core.security import check_api_key
from resume_scoring.services.analysis_scheduler import SessionRegistry
from resume_scoring.services.analysis_service import analyze_with_profile
from resume_scoring.storage import ResumeStore, get_resume_store


def build_session_registry() -> SessionRegistry:
    return SessionRegistry(
        delay_seconds=settings.analysis_delay_seconds,
        max_sessions=settings.analysis_max_sessions,
        analyzer=analyze_with_profile,
    )


def get_session_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        registry = build_session_registry()
        request.app.state.sessions = registry
    return registry


def get_store() -> ResumeStore:
    return get_resume_store()


def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    accept_language: str | None = Header(default=None, alias="Accept-Language"),
) -> None:
    check_api_key(x_api_key, accept_language)
