from __future__ import annotations

import logging
import sqlite3
import threading
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

from resume_scoring.core.exceptions import StorageError
from resume_scoring.schemas.resume import ResumeRecord
from resume_scoring.services.file_security import safe_storage_filename

logger = logging.getLogger(__name__)

SAVE_FILE_ATTEMPTS = 50

_RECORD_COLUMNS = (
    "id, user_id, filename, file_path, file_size, content_preview, uploaded_at, updated_at"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_record(row: tuple) -> ResumeRecord:
    return ResumeRecord(
        id=row[0],
        user_id=row[1],
        filename=row[2],
        file_path=row[3],
        file_size=row[4],
        content_preview=row[5],
        uploaded_at=datetime.fromisoformat(row[6]),
        updated_at=datetime.fromisoformat(row[7]),
    )


class ResumeStore:
    """Stores uploaded resume files on disk and their metadata in SQLite."""

    def __init__(self, db_path: str | Path, storage_dir: str | Path) -> None:
        self.db_path = Path(db_path)
        self.storage_dir = Path(storage_dir)
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._conn_lock:
            if self._conn is not None:
                return self._conn

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS resumes (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    filename TEXT NOT NULL,
                    file_path TEXT NOT NULL,
                    file_size INTEGER NOT NULL,
                    content_preview TEXT,
                    uploaded_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_resumes_file_path
                ON resumes (file_path);
                """
            )
            self._conn = conn
            return conn

    def init(self) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self._get_connection()

    def close(self) -> None:
        with self._conn_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _resolve_file(self, file_path: str) -> Path:
        target = (self.storage_dir / file_path).resolve()
        if self.storage_dir.resolve() not in target.parents:
            raise StorageError(f"Invalid storage path '{file_path}'.")
        return target

    def save_file(self, filename: str, content: bytes) -> str:
        """Write the upload as ``{epoch_ms}_{name}``.

        Name clashes within the same millisecond move on to the next free
        millisecond instead of failing the upload.
        """
        safe_name = safe_storage_filename(filename)
        stamp = int(time.time() * 1000)
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Upload failed: {exc}") from exc

        for attempt in range(SAVE_FILE_ATTEMPTS):
            file_path = f"{stamp + attempt}_{safe_name}"
            target = self._resolve_file(file_path)
            try:
                with target.open("xb") as handle:
                    handle.write(content)
            except FileExistsError:
                continue
            except OSError as exc:
                raise StorageError(f"Upload failed: {exc}") from exc
            logger.info("resume_file_stored file_path=%s size=%s", file_path, len(content))
            return file_path
        raise StorageError(f"Upload failed: no free storage name for '{safe_name}'.")

    def discard_file(self, file_path: str) -> None:
        """Remove a stored file that has no record, e.g. after a failed insert."""
        try:
            self._resolve_file(file_path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("resume_file_discard_failed file_path=%s error=%s", file_path, exc)

    def read_file(self, file_path: str) -> bytes:
        try:
            return self._resolve_file(file_path).read_bytes()
        except OSError as exc:
            raise StorageError(f"Unable to read stored file '{file_path}': {exc}") from exc

    def create_record(
        self,
        *,
        filename: str,
        file_path: str,
        file_size: int,
        content_preview: str | None = None,
        user_id: str | None = None,
    ) -> ResumeRecord:
        now = _utc_now()
        record = ResumeRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            filename=filename,
            file_path=file_path,
            file_size=file_size,
            content_preview=content_preview,
            uploaded_at=now,
            updated_at=now,
        )
        try:
            conn = self._get_connection()
            with self._conn_lock:
                conn.execute(
                    f"""
                    INSERT INTO resumes ({_RECORD_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.user_id,
                        record.filename,
                        record.file_path,
                        record.file_size,
                        record.content_preview,
                        record.uploaded_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        return record

    def update_preview(self, file_path: str, content_preview: str | None) -> ResumeRecord | None:
        try:
            conn = self._get_connection()
            with self._conn_lock:
                conn.execute(
                    "UPDATE resumes SET content_preview = ?, updated_at = ? WHERE file_path = ?",
                    (content_preview, _utc_now().isoformat(), file_path),
                )
                row = conn.execute(
                    f"SELECT {_RECORD_COLUMNS} FROM resumes WHERE file_path = ?",
                    (file_path,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        return _row_to_record(row) if row else None

    def get_record(self, record_id: str) -> ResumeRecord | None:
        try:
            conn = self._get_connection()
            with self._conn_lock:
                row = conn.execute(
                    f"SELECT {_RECORD_COLUMNS} FROM resumes WHERE id = ?",
                    (record_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        return _row_to_record(row) if row else None

    def list_records(self, limit: int = 50) -> list[ResumeRecord]:
        try:
            conn = self._get_connection()
            with self._conn_lock:
                rows = conn.execute(
                    f"""
                    SELECT {_RECORD_COLUMNS}
                    FROM resumes
                    ORDER BY uploaded_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (max(1, int(limit)),),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        return [_row_to_record(row) for row in rows]

    def delete_record(self, record_id: str) -> bool:
        record = self.get_record(record_id)
        if record is None:
            return False

        try:
            conn = self._get_connection()
            with self._conn_lock:
                conn.execute("DELETE FROM resumes WHERE id = ?", (record_id,))
        except sqlite3.Error as exc:
            raise StorageError(f"Database error: {exc}") from exc
        self.discard_file(record.file_path)
        return True
