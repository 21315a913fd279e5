from __future__ import annotations

from io import BytesIO
import logging
from typing import Any

from docx import Document
from pypdf import PdfReader

from resume_scoring.core.exceptions import ExtractionError
from resume_scoring.services.file_security import resolve_extension, validate_upload_signature

from .models import ExtractedText

logger = logging.getLogger(__name__)

TEXT_ENCODINGS = ("utf-8-sig", "latin-1")


def _decode_text(content: bytes) -> tuple[str, str]:
    encodings = TEXT_ENCODINGS
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        encodings = ("utf-16",) + TEXT_ENCODINGS
    for encoding in encodings:
        try:
            return content.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    # latin-1 decodes any byte sequence, so this is unreachable in practice.
    raise ExtractionError("Unable to decode this text file.")


def _extract_pdf(content: bytes) -> tuple[str, dict[str, Any]]:
    try:
        reader = PdfReader(BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        raise ExtractionError("Unable to extract text from this PDF file.") from exc
    text = "".join(f"{page_text}\n" for page_text in pages)
    return text, {"pages": len(pages), "parser": "pypdf"}


def _extract_docx(content: bytes) -> tuple[str, dict[str, Any]]:
    try:
        document = Document(BytesIO(content))
    except Exception as exc:
        raise ExtractionError("Unable to extract text from this Word document.") from exc
    paragraphs = [p.text for p in document.paragraphs if p.text and p.text.strip()]
    details = {
        "paragraphs": len(document.paragraphs),
        "tables": len(document.tables),
        "parser": "python-docx",
    }
    return "\n".join(paragraphs), details


def extract_text_from_upload(
    filename: str,
    content: bytes,
    content_type: str | None = None,
) -> ExtractedText:
    """Convert an uploaded PDF, DOCX or plain-text resume into a plain string.

    The format comes from ``content_type`` when it names a supported MIME type,
    otherwise from the filename extension. The payload signature has to agree
    with that format.
    """
    ext = resolve_extension(filename, content_type)
    validate_upload_signature(ext=ext, content=content)

    details: dict[str, Any] = {"extension": ext, "bytes": len(content)}
    if ext == "pdf":
        source_type = "pdf"
        text, extra = _extract_pdf(content)
    elif ext == "docx":
        source_type = "word"
        text, extra = _extract_docx(content)
    else:
        source_type = "text"
        text, encoding = _decode_text(content)
        extra = {"encoding": encoding}
    details.update(extra)

    if not text.strip():
        logger.info("resume_extract_empty filename=%s source_type=%s", filename, source_type)

    return ExtractedText(
        filename=filename,
        source_type=source_type,
        text=text,
        characters=len(text),
        details=details,
    )
