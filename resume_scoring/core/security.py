from __future__ import annotations

from fastapi import HTTPException, status

from resume_scoring.core.config import settings


def _normalize_lang(lang: str | None) -> str:
    """Reduce an Accept-Language value such as ``de-DE,de;q=0.9`` to ``de``."""
    if not lang:
        return "en"
    first = lang.split(",")[0].split(";")[0].strip().lower()
    return first.split("-")[0] or "en"


def _auth_error_message(lang: str | None) -> str:
    key = _normalize_lang(lang)
    messages = {
        "en": "Please provide a valid API key to access stored resumes.",
        "de": "Bitte gib einen gültigen API-Schlüssel an, um auf gespeicherte Lebensläufe zuzugreifen.",
    }
    return messages.get(key, messages["en"])


def check_api_key(x_api_key: str | None, lang: str | None = None) -> None:
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_auth_error_message(lang),
        )
