from fastapi import APIRouter, Request

from resume_scoring.core.rate_limit import rate_limit
from resume_scoring.schemas.analysis import AnalysisInput, AnalysisResponse
from resume_scoring.services.analysis_service import build_analysis_response

router = APIRouter()


@router.post("/analysis", response_model=AnalysisResponse)
@rate_limit()
async def analyze_resume(request: Request, payload: AnalysisInput):
    _ = request
    return build_analysis_response(payload.text, payload.filename)
