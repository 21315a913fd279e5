from __future__ import annotations

import logging
from dataclasses import dataclass

from resume_scoring.core.config import settings
from resume_scoring.core.exceptions import StorageError
from resume_scoring.parsing.extract import extract_text_from_upload
from resume_scoring.schemas.resume import Notice, ResumeRecord
from resume_scoring.storage import ResumeStore

logger = logging.getLogger(__name__)

PASTED_RESUME_FILENAME = "Pasted Resume"


@dataclass(frozen=True)
class UploadOutcome:
    text: str
    filename: str
    notice: Notice
    record: ResumeRecord | None = None


def success_notice(description: str) -> Notice:
    return Notice(title="Success", description=description, variant="default")


def error_notice(description: str) -> Notice:
    return Notice(title="Error", description=description, variant="destructive")


def _rollback_upload(store: ResumeStore, file_path: str, created: ResumeRecord | None) -> None:
    logger.warning("resume_upload_rollback file_path=%s record_created=%s", file_path, created is not None)
    if created is not None:
        try:
            store.delete_record(created.id)
        except StorageError as exc:
            logger.warning("resume_upload_rollback_failed record_id=%s error=%s", created.id, exc)
    store.discard_file(file_path)


def process_upload(
    store: ResumeStore,
    *,
    filename: str,
    content: bytes,
    content_type: str | None = None,
    user_id: str | None = None,
) -> UploadOutcome:
    """Extract text from an uploaded resume, store the file and its metadata record.

    The record is written without a preview first and the preview is filled in
    once extraction succeeded, mirroring how the browser client used the store.
    """
    extracted = extract_text_from_upload(filename, content, content_type)

    file_path = store.save_file(filename, content)
    created: ResumeRecord | None = None
    try:
        created = store.create_record(
            filename=filename,
            file_path=file_path,
            file_size=len(content),
            content_preview=None,
            user_id=user_id,
        )
        record = store.update_preview(file_path, extracted.text[: settings.content_preview_chars])
    except StorageError:
        _rollback_upload(store, file_path, created)
        raise

    logger.info(
        "resume_upload_processed file_path=%s source_type=%s characters=%s",
        file_path,
        extracted.source_type,
        extracted.characters,
    )
    return UploadOutcome(
        text=extracted.text,
        filename=filename,
        record=record,
        notice=success_notice(f'Resume "{filename}" uploaded and saved successfully!'),
    )


def submit_pasted_text(text: str) -> UploadOutcome:
    if not text.strip():
        raise ValueError("Resume text is empty.")
    return UploadOutcome(
        text=text,
        filename=PASTED_RESUME_FILENAME,
        notice=success_notice("Resume text submitted successfully!"),
    )
