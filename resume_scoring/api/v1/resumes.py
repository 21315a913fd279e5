import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status

from resume_scoring.api.deps import get_store, require_api_key
from resume_scoring.core.config import settings
from resume_scoring.core.exceptions import ExtractionError, StorageError, UploadTooLarge
from resume_scoring.core.rate_limit import rate_limit
from resume_scoring.schemas.resume import (
    PasteRequest,
    ResumeIntakeResponse,
    ResumeListResponse,
    ResumeRecord,
)
from resume_scoring.services.analysis_service import build_analysis_response
from resume_scoring.services.resume_service import (
    UploadOutcome,
    error_notice,
    process_upload,
    submit_pasted_text,
)
from resume_scoring.storage import ResumeStore

logger = logging.getLogger(__name__)

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


def _notice_error(status_code: int, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=error_notice(message).model_dump())


def _intake_response(outcome: UploadOutcome) -> ResumeIntakeResponse:
    return ResumeIntakeResponse(
        filename=outcome.filename,
        text=outcome.text,
        characters=len(outcome.text),
        record=outcome.record,
        analysis=build_analysis_response(outcome.text, outcome.filename),
        notice=outcome.notice,
    )


async def _read_limited(file: UploadFile, limit_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit_bytes:
            raise UploadTooLarge(limit_bytes)
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/resumes/upload", response_model=ResumeIntakeResponse)
@rate_limit("20/minute")
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    store: ResumeStore = Depends(get_store),
):
    _ = request
    filename = file.filename or "uploaded-file"
    try:
        content = await _read_limited(file, settings.max_upload_bytes)
        outcome = process_upload(
            store,
            filename=filename,
            content=content,
            content_type=file.content_type,
        )
    except UploadTooLarge as exc:
        raise _notice_error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, str(exc)) from exc
    except ExtractionError as exc:
        logger.warning("resume_upload_rejected filename=%s reason=%s", filename, exc)
        raise _notice_error(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    except StorageError as exc:
        logger.exception("resume_upload_storage_failed filename=%s", filename)
        raise _notice_error(status.HTTP_502_BAD_GATEWAY, str(exc)) from exc
    return _intake_response(outcome)


@router.post("/resumes/paste", response_model=ResumeIntakeResponse)
@rate_limit()
async def paste_resume(request: Request, payload: PasteRequest):
    _ = request
    try:
        outcome = submit_pasted_text(payload.text)
    except ValueError as exc:
        raise _notice_error(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    return _intake_response(outcome)


@router.get("/resumes", response_model=ResumeListResponse)
def list_resumes(
    limit: int = Query(default=50, ge=1, le=500),
    store: ResumeStore = Depends(get_store),
    _: None = Depends(require_api_key),
):
    try:
        items = store.list_records(limit=limit)
    except StorageError as exc:
        logger.exception("resume_list_failed")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return ResumeListResponse(items=items)


@router.get("/resumes/{record_id}", response_model=ResumeRecord)
def get_resume(
    record_id: str,
    store: ResumeStore = Depends(get_store),
    _: None = Depends(require_api_key),
):
    try:
        record = store.get_record(record_id)
    except StorageError as exc:
        logger.exception("resume_get_failed record_id=%s", record_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume record not found.")
    return record


@router.delete("/resumes/{record_id}")
def delete_resume(
    record_id: str,
    store: ResumeStore = Depends(get_store),
    _: None = Depends(require_api_key),
):
    try:
        deleted = store.delete_record(record_id)
    except StorageError as exc:
        logger.exception("resume_delete_failed record_id=%s", record_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume record not found.")
    return {"status": "deleted", "id": record_id}
