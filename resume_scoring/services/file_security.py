from __future__ import annotations

from io import BytesIO
from pathlib import PurePosixPath, PureWindowsPath
import re
from zipfile import BadZipFile, ZipFile

from resume_scoring.core.exceptions import ExtractionError, UnsupportedFileType

RESUME_CONTENT_TYPE_EXTENSION_HINTS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}

SUPPORTED_EXTENSIONS = frozenset(RESUME_CONTENT_TYPE_EXTENSION_HINTS.values())

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format. Please use PDF, DOCX, or TXT files."

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ ()\-]+")


def extension_from_filename(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()[:20]


def resolve_extension(filename: str, content_type: str | None = None) -> str:
    """Pick the resume format from the MIME type first, then the filename extension."""
    sanitized = (content_type or "").split(";")[0].strip().lower()
    hinted = RESUME_CONTENT_TYPE_EXTENSION_HINTS.get(sanitized)
    if hinted:
        return hinted

    ext = extension_from_filename(filename)
    if ext == "doc":
        raise UnsupportedFileType("Legacy .doc is not supported. Convert to .docx.")
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileType(UNSUPPORTED_FORMAT_MESSAGE)
    return ext


def safe_storage_filename(filename: str) -> str:
    base = PureWindowsPath(PurePosixPath(filename or "").name).name.strip()
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip(" .")
    return cleaned[:200] or "resume"


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
    except BadZipFile:
        return False
    return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return True
    sample = content[:4096]
    if sample.startswith((b"\xff\xfe", b"\xfe\xff")):
        return True
    if b"\x00" in sample:
        return False
    try:
        sample.decode("utf-8")
        return True
    except UnicodeDecodeError as exc:
        # A multi-byte character cut off at the sample boundary is still text.
        if exc.start >= len(sample) - 3:
            return True
    printable = 0
    for byte in sample:
        if byte in (9, 10, 13) or 32 <= byte <= 126 or byte >= 160:
            printable += 1
    return (printable / len(sample)) >= 0.75


def validate_upload_signature(*, ext: str, content: bytes) -> None:
    if ext == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise ExtractionError("File signature does not match .pdf content.")
        return

    if ext == "docx":
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise ExtractionError("File signature does not match .docx content.")
        return

    if ext == "txt":
        if not _is_probably_text_payload(content):
            raise ExtractionError("File signature does not match .txt text content.")
        return

    raise UnsupportedFileType(UNSUPPORTED_FORMAT_MESSAGE)
