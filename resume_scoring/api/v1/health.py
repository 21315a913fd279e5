from fastapi import APIRouter

from resume_scoring.core.config import settings

router = APIRouter()

@router.get("/health", summary="Health Check", description="Check the health status of the resume scoring service.")
async def health_check():
    return {"status": "healthy", "keyword_profile": settings.keyword_profile}
