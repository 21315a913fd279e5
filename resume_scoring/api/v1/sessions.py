from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from resume_scoring.api.deps import get_session_registry
from resume_scoring.core.rate_limit import rate_limit
from resume_scoring.schemas.analysis import AnalysisResponse
from resume_scoring.schemas.resume import SessionContentRequest
from resume_scoring.services.analysis_scheduler import SessionRegistry
from resume_scoring.services.analysis_service import state_response

router = APIRouter()

SessionId = Annotated[str, Path(min_length=8, max_length=200, pattern=r"^[A-Za-z0-9_.\-]+$")]


@router.put("/sessions/{session_id}/content", response_model=AnalysisResponse)
@rate_limit()
async def submit_session_content(
    request: Request,
    payload: SessionContentRequest,
    session_id: SessionId,
    registry: SessionRegistry = Depends(get_session_registry),
):
    _ = request
    scheduler = registry.get_or_create(session_id)
    return state_response(scheduler.submit(payload.text, payload.filename))


@router.get("/sessions/{session_id}/analysis", response_model=AnalysisResponse)
async def get_session_analysis(
    session_id: SessionId,
    wait: bool = Query(default=False),
    registry: SessionRegistry = Depends(get_session_registry),
):
    scheduler = registry.get(session_id)
    if scheduler is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown session.")
    state = await scheduler.wait() if wait else scheduler.snapshot()
    return state_response(state)


@router.delete("/sessions/{session_id}")
async def clear_session(
    session_id: SessionId,
    registry: SessionRegistry = Depends(get_session_registry),
):
    if not await registry.drop(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown session.")
    return {"status": "cleared", "session_id": session_id}
