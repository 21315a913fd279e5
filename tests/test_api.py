import os
import shutil
import sys
import tempfile
import unittest
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from unittest.mock import patch

# Keep API tests isolated from local data and fast by default.
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="resume-scoring-api-")
os.environ.setdefault("RESUME_DB_PATH", os.path.join(_TEST_DATA_DIR, "resumes.db"))
os.environ.setdefault("RESUME_STORAGE_DIR", os.path.join(_TEST_DATA_DIR, "files"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("ANALYSIS_DELAY_SECONDS", "0")

from docx import Document
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_scoring.api.deps import get_session_registry, get_store  # noqa: E402
from resume_scoring.core import security  # noqa: E402
from resume_scoring.core.exceptions import StorageError  # noqa: E402
from resume_scoring.main import app  # noqa: E402
from resume_scoring.services.analysis_scheduler import SessionRegistry  # noqa: E402
from resume_scoring.storage import ResumeStore  # noqa: E402

API_KEY = "test-api-key"

RESUME_TEXT = (
    "Jane Doe\n"
    "Email jane@example.com\n"
    "Senior Python developer since 2016 with react, docker and aws experience.\n"
    "Led an agile team through a cloud migration project.\n"
)


def _docx_bytes(*paragraphs: str) -> bytes:
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = Path(tempfile.mkdtemp(prefix="resume-scoring-api-case-"))
        self.store = ResumeStore(db_path=self.tmp_dir / "resumes.db", storage_dir=self.tmp_dir / "files")
        self.registry = SessionRegistry(delay_seconds=0, max_sessions=10)
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_session_registry] = lambda: self.registry

        key_patch = patch.object(security, "settings", replace(security.settings, api_key=API_KEY))
        key_patch.start()
        self.addCleanup(key_patch.stop)

        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)
        app.dependency_overrides.clear()
        self.store.close()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)


class AnalysisApiTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

    def test_analysis_contract_shape(self):
        response = self.client.post(
            "/v1/analysis",
            json={"text": "I am a software engineer with experience in react and python.", "filename": "cv.txt"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ready")
        self.assertEqual(body["filename"], "cv.txt")
        self.assertEqual(body["label"], "Good")

        result = body["result"]
        self.assertEqual(result["overall"], 60)
        self.assertEqual(
            result["breakdown"],
            {"formatting": 50, "keywords": 11, "grammar": 100, "readability": 78},
        )
        self.assertEqual(result["matched_keywords"], ["react", "python", "experience"])
        self.assertEqual(result["grammar_issues"], [])
        self.assertEqual(len(result["suggestions"]), 3)
        self.assertEqual(
            result["readability_metrics"],
            {"sentences": 1, "avg_words_per_sentence": 11.0, "complex_words": 3},
        )
        self.assertEqual(body["bands"]["grammar"], "success")

    def test_blank_text_is_reported_as_empty(self):
        for text in ("", "   \n"):
            with self.subTest(text=text):
                response = self.client.post("/v1/analysis", json={"text": text})
                self.assertEqual(response.status_code, 200)
                body = response.json()
                self.assertEqual(body["status"], "empty")
                self.assertIsNone(body["result"])

    def test_negative_readability_is_returned_as_is(self):
        response = self.client.post("/v1/analysis", json={"text": " ".join(["word"] * 100)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["result"]["breakdown"]["readability"], -70)


class ResumeIntakeApiTests(ApiTestCase):
    def test_upload_txt_stores_record_and_returns_analysis(self):
        response = self.client.post(
            "/v1/resumes/upload",
            files={"file": ("jane.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["filename"], "jane.txt")
        self.assertEqual(body["text"], RESUME_TEXT)
        self.assertEqual(body["notice"]["title"], "Success")
        self.assertEqual(body["analysis"]["status"], "ready")
        self.assertIn("python", body["analysis"]["result"]["matched_keywords"])

        record = body["record"]
        self.assertEqual(record["filename"], "jane.txt")
        self.assertEqual(record["file_size"], len(RESUME_TEXT.encode("utf-8")))
        self.assertEqual(record["content_preview"], RESUME_TEXT)
        self.assertEqual(len(self.store.list_records()), 1)

    def test_upload_docx(self):
        response = self.client.post(
            "/v1/resumes/upload",
            files={
                "file": (
                    "jane.docx",
                    _docx_bytes("Jane Doe", "Python developer since 2019."),
                    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                )
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["text"], "Jane Doe\nPython developer since 2019.")

    def test_upload_rejects_unsupported_type_with_error_notice(self):
        response = self.client.post(
            "/v1/resumes/upload",
            files={"file": ("malware.exe", b"MZ\x90\x00", "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 400)
        detail = response.json()["detail"]
        self.assertEqual(detail["title"], "Error")
        self.assertEqual(detail["variant"], "destructive")
        self.assertIn("unsupported", detail["description"].lower())
        self.assertEqual(self.store.list_records(), [])

    def test_upload_rejects_signature_mismatch(self):
        response = self.client.post(
            "/v1/resumes/upload",
            files={"file": ("resume.pdf", b"plain text pretending to be a pdf", "application/pdf")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("signature", response.json()["detail"]["description"].lower())

    def test_upload_rejects_oversized_file(self):
        from resume_scoring.api.v1 import resumes as resumes_api

        small_limit = replace(resumes_api.settings, max_upload_bytes=1024)
        with patch.object(resumes_api, "settings", small_limit):
            response = self.client.post(
                "/v1/resumes/upload",
                files={"file": ("huge.txt", b"x" * 2048, "text/plain")},
            )
        self.assertEqual(response.status_code, 413)
        self.assertIn("too large", response.json()["detail"]["description"].lower())

    def test_paste(self):
        response = self.client.post("/v1/resumes/paste", json={"text": RESUME_TEXT})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["filename"], "Pasted Resume")
        self.assertIsNone(body["record"])
        self.assertEqual(body["notice"]["description"], "Resume text submitted successfully!")
        self.assertEqual(body["analysis"]["filename"], "Pasted Resume")

        response = self.client.post("/v1/resumes/paste", json={"text": "  "})
        self.assertEqual(response.status_code, 400)

    def test_records_require_api_key(self):
        upload = self.client.post(
            "/v1/resumes/upload",
            files={"file": ("jane.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
        )
        record_id = upload.json()["record"]["id"]

        self.assertEqual(self.client.get("/v1/resumes").status_code, 401)

        headers = {"X-API-Key": API_KEY}
        listing = self.client.get("/v1/resumes", headers=headers)
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([item["id"] for item in listing.json()["items"]], [record_id])

        single = self.client.get(f"/v1/resumes/{record_id}", headers=headers)
        self.assertEqual(single.status_code, 200)
        self.assertEqual(single.json()["filename"], "jane.txt")

        deleted = self.client.delete(f"/v1/resumes/{record_id}", headers=headers)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(self.client.get(f"/v1/resumes/{record_id}", headers=headers).status_code, 404)
        self.assertEqual(self.client.delete(f"/v1/resumes/{record_id}", headers=headers).status_code, 404)


    def test_missing_api_key_message_follows_accept_language(self):
        german = self.client.get("/v1/resumes", headers={"Accept-Language": "de-DE,de;q=0.9,en;q=0.8"})
        self.assertEqual(german.status_code, 401)
        self.assertIn("API-Schlüssel", german.json()["detail"])

        fallback = self.client.get("/v1/resumes", headers={"Accept-Language": "fr-FR"})
        self.assertEqual(fallback.status_code, 401)
        self.assertIn("valid API key", fallback.json()["detail"])

    def test_record_routes_report_database_errors_as_502(self):
        headers = {"X-API-Key": API_KEY}
        broken = StorageError("Database error: disk I/O error")
        with patch.object(self.store, "list_records", side_effect=broken):
            self.assertEqual(self.client.get("/v1/resumes", headers=headers).status_code, 502)
        with patch.object(self.store, "get_record", side_effect=broken):
            self.assertEqual(self.client.get("/v1/resumes/some-id", headers=headers).status_code, 502)
            self.assertEqual(self.client.delete("/v1/resumes/some-id", headers=headers).status_code, 502)


class SessionApiTests(ApiTestCase):
    session_id = "session-abcdef123"

    def test_submit_then_wait_for_analysis(self):
        response = self.client.put(
            f"/v1/sessions/{self.session_id}/content",
            json={"text": RESUME_TEXT, "filename": "jane.txt"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn(response.json()["status"], {"analyzing", "ready"})

        response = self.client.get(f"/v1/sessions/{self.session_id}/analysis", params={"wait": "true"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ready")
        self.assertEqual(body["filename"], "jane.txt")
        self.assertIsNotNone(body["result"])

    def test_latest_submission_wins(self):
        url = f"/v1/sessions/{self.session_id}/content"
        self.client.put(url, json={"text": "Old resume text about python."})
        self.client.put(url, json={"text": RESUME_TEXT, "filename": "new.txt"})

        body = self.client.get(f"/v1/sessions/{self.session_id}/analysis", params={"wait": "true"}).json()
        self.assertEqual(body["filename"], "new.txt")
        self.assertIn("docker", body["result"]["matched_keywords"])

    def test_blank_submission_clears_session(self):
        url = f"/v1/sessions/{self.session_id}/content"
        self.client.put(url, json={"text": RESUME_TEXT})
        response = self.client.put(url, json={"text": "   "})
        self.assertEqual(response.json()["status"], "empty")

        body = self.client.get(f"/v1/sessions/{self.session_id}/analysis", params={"wait": "true"}).json()
        self.assertEqual(body["status"], "empty")
        self.assertIsNone(body["result"])

    def test_unknown_and_deleted_sessions(self):
        self.assertEqual(self.client.get("/v1/sessions/unknown-session/analysis").status_code, 404)

        self.client.put(f"/v1/sessions/{self.session_id}/content", json={"text": RESUME_TEXT})
        self.assertEqual(self.client.delete(f"/v1/sessions/{self.session_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/v1/sessions/{self.session_id}/analysis").status_code, 404)

    def test_session_id_is_validated(self):
        response = self.client.put("/v1/sessions/short/content", json={"text": RESUME_TEXT})
        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
