from __future__ import annotations

from resume_scoring.core.config import settings
from resume_scoring.core.config.scoring import get_keyword_vocabulary
from resume_scoring.schemas.analysis import AnalysisResponse, AnalysisResult, AnalysisState
from resume_scoring.scoring.heuristics import analyze, breakdown_bands, overall_label


def analyze_with_profile(text: str) -> AnalysisResult:
    return analyze(text, get_keyword_vocabulary(settings.keyword_profile))


def result_response(result: AnalysisResult, filename: str | None = None) -> AnalysisResponse:
    return AnalysisResponse(
        status="ready",
        filename=filename,
        result=result,
        label=overall_label(result.overall),
        bands=breakdown_bands(result.breakdown),
    )


def build_analysis_response(text: str, filename: str | None = None) -> AnalysisResponse:
    """Analyse text immediately; blank text means "no analysis" rather than a zero score."""
    if not text.strip():
        return AnalysisResponse(status="empty")
    return result_response(analyze_with_profile(text), filename)


def state_response(state: AnalysisState) -> AnalysisResponse:
    if state.status == "ready" and state.result is not None:
        return result_response(state.result, state.filename)
    return AnalysisResponse(status=state.status, filename=state.filename)
