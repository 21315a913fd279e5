from functools import lru_cache

from resume_scoring.core.config import settings

from .resume_store import ResumeStore


@lru_cache(maxsize=1)
def get_resume_store() -> ResumeStore:
    return ResumeStore(db_path=settings.resume_db_path, storage_dir=settings.resume_storage_dir)


__all__ = ["ResumeStore", "get_resume_store"]
