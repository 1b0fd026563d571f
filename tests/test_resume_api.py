import json
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from docx import Document
from fastapi.testclient import TestClient

from app.core.resume_store import JsonFileStore, get_store
from app.core.route_rate_limit import clear_route_rate_limit_events
from app import main
from app.main import app

LATEX = "\n".join(
    [
        r"\documentclass{article}",
        r"\begin{document}",
        r"\section{Experience}",
        "Built APIs",
        r"\section{Skills}",
        "Python",
        r"\end{document}",
    ]
)


class FakeClient:
    provider_name = "fake"
    model = "fake-model"

    def __init__(self, *replies):
        self.replies = list(replies)

    async def generate(self, system_instruction, prompt, params):
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class ResumeApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        clear_route_rate_limit_events()
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonFileStore(Path(self._tmp.name) / "db.json")
        app.dependency_overrides[get_store] = lambda: self.store

    def tearDown(self):
        app.dependency_overrides.pop(get_store, None)
        self._tmp.cleanup()

    def _create(self, name="Main", headers=None):
        response = self.client.post(
            "/api/resumes", json={"name": name, "latex_content": LATEX}, headers=headers or {}
        )
        self.assertEqual(response.status_code, 200)
        return response.json()

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_run_serves_app_with_configured_bind(self):
        bind = SimpleNamespace(host="127.0.0.1", port=8123, log_level="INFO")
        with patch("app.main.settings", bind), patch("app.main.uvicorn.run") as serve:
            main.run()
        serve.assert_called_once_with(app, host="127.0.0.1", port=8123, log_level="info")

    def test_create_requires_name_and_content(self):
        response = self.client.post("/api/resumes", json={"name": " ", "latex_content": LATEX})
        self.assertEqual(response.status_code, 400)
        response = self.client.post("/api/resumes", json={"name": "Main"})
        self.assertEqual(response.status_code, 400)

    def test_crud_flow(self):
        created = self._create()
        self.assertEqual(created["template"], "modern")
        self.assertEqual([s["name"] for s in created["sections"]], ["Experience", "Skills"])
        self.assertEqual(created["user_id"], "default-user")

        listing = self.client.get("/api/resumes").json()
        self.assertEqual([r["id"] for r in listing], [created["id"]])

        updated_latex = LATEX.replace(r"\section{Skills}", r"\section{Tools}")
        response = self.client.put(
            f"/api/resumes/{created['id']}", json={"latex_content": updated_latex, "name": "Renamed"}
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["name"], "Renamed")
        self.assertEqual([s["name"] for s in body["sections"]], ["Experience", "Tools"])

        self.assertEqual(self.client.put(f"/api/resumes/{created['id']}", json={}).status_code, 400)

        self.assertEqual(self.client.delete(f"/api/resumes/{created['id']}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/resumes/{created['id']}").status_code, 404)

    def test_resumes_are_scoped_by_user_header(self):
        created = self._create(headers={"X-User-Id": "alice"})
        self.assertEqual(self.client.get("/api/resumes", headers={"X-User-Id": "bob"}).json(), [])
        response = self.client.get(f"/api/resumes/{created['id']}", headers={"X-User-Id": "bob"})
        self.assertEqual(response.status_code, 404)
        response = self.client.get(f"/api/resumes/{created['id']}", headers={"X-User-Id": "alice"})
        self.assertEqual(response.status_code, 200)

    def test_missing_resume_is_404(self):
        self.assertEqual(self.client.get("/api/resumes/nope").status_code, 404)
        self.assertEqual(self.client.post("/api/resumes/nope/compile").status_code, 404)

    def test_compile_preview_and_download(self):
        created = self._create(name="Jane Resume")
        resume_id = created["id"]

        self.assertEqual(self.client.get(f"/api/resumes/{resume_id}/preview").status_code, 404)

        response = self.client.post(f"/api/resumes/{resume_id}/compile")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["success"], True)
        self.assertEqual(response.json()["pdf_url"], f"/api/pdfs/{resume_id}.pdf")
        self.assertEqual(self.store.get_resume(resume_id).pdf_url, f"/api/pdfs/{resume_id}.pdf")

        preview = self.client.get(f"/api/resumes/{resume_id}/preview")
        self.assertEqual(preview.status_code, 200)
        self.assertEqual(preview.headers["content-type"], "application/pdf")
        self.assertTrue(preview.content.startswith(b"%PDF-"))

        download = self.client.get(f"/api/resumes/{resume_id}/download")
        self.assertEqual(download.status_code, 200)
        self.assertIn("Jane Resume.pdf", download.headers["content-disposition"])

        served = self.client.get(f"/api/pdfs/{resume_id}.pdf")
        self.assertEqual(served.status_code, 200)

    def test_compile_failure_returns_400_with_error_fields(self):
        created = self._create()
        failed = SimpleNamespace(
            success=False,
            public_url=None,
            error="Undefined control sequence.",
            error_line=4,
            error_message="Undefined control sequence.",
            logs="! Undefined control sequence.\nl.4",
        )
        with patch("app.api.routes.resumes.compile_latex", return_value=failed):
            response = self.client.post(f"/api/resumes/{created['id']}/compile")
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error_line"], 4)
        self.assertEqual(body["error_message"], "Undefined control sequence.")

    def test_adhoc_compile_and_pdf_name_validation(self):
        response = self.client.post("/api/latex/compile", json={"latex_content": LATEX})
        self.assertEqual(response.status_code, 200)
        url = response.json()["pdf_url"]
        self.assertTrue(url.startswith("/api/pdfs/temp-"))
        self.assertEqual(self.client.get(url).status_code, 200)
        self.assertEqual(self.client.get("/api/pdfs/..%2Fdb.json").status_code, 404)
        self.assertEqual(self.client.get("/api/pdfs/missing.pdf").status_code, 404)

    def test_compile_rate_limit_on_one_resume(self):
        resume_id = self._create()["id"]
        statuses = [self.client.post(f"/api/resumes/{resume_id}/compile").status_code for _ in range(21)]
        self.assertEqual(statuses[:20], [200] * 20)
        self.assertEqual(statuses[20], 429)

    def test_compile_rate_limit_spans_resumes(self):
        resume_ids = [self._create(name=f"Resume {index}")["id"] for index in range(21)]
        statuses = [self.client.post(f"/api/resumes/{rid}/compile").status_code for rid in resume_ids]
        self.assertEqual(statuses[:20], [200] * 20)
        self.assertEqual(statuses[20], 429)

        # Ad-hoc compiles keep their own window.
        response = self.client.post("/api/latex/compile", json={"latex_content": LATEX})
        self.assertEqual(response.status_code, 200)

    def test_optimize_section_records_history_and_apply(self):
        created = self._create()
        resume_id = created["id"]
        reply = json.dumps({"optimized_content": "Python, Go, Kubernetes", "changes": ["added Go"]})
        payload = {
            "section": "Skills",
            "current_content": "Python",
            "job_description": "Go and Kubernetes backend role",
        }

        with patch("app.services.generation.get_ai_client", return_value=FakeClient(reply)):
            response = self.client.post(
                f"/api/resumes/{resume_id}/optimize-section",
                json=payload,
                headers={"X-Gemini-Api-Key": "caller-key"},
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["optimized_content"], "Python, Go, Kubernetes")

        history = self.client.get(f"/api/resumes/{resume_id}/optimization-history").json()
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["original_content"], "Python")

        response = self.client.post(
            f"/api/resumes/{resume_id}/apply-optimization",
            json={"section_name": "Skills", "optimized_content": "Python, Go, Kubernetes"},
        )
        self.assertEqual(response.status_code, 200)
        skills = [s for s in response.json()["sections"] if s["name"] == "Skills"][0]
        self.assertEqual(skills["content"], "Python, Go, Kubernetes")
        self.assertTrue(response.json()["latex_content"].endswith("\\end{document}"))

    def test_optimize_without_api_key_is_400(self):
        created = self._create()
        response = self.client.post(
            f"/api/resumes/{created['id']}/optimize-section",
            json={"section": "Skills", "current_content": "Python", "job_description": "Go role"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "API key is required")

    def test_provider_failure_is_502(self):
        created = self._create()
        with patch("app.services.generation.get_ai_client", return_value=FakeClient(RuntimeError("quota"))):
            response = self.client.post(
                f"/api/resumes/{created['id']}/optimize-full",
                json={"job_description": "Go role"},
            )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Failed to optimize full resume: quota")


class UploadApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        clear_route_rate_limit_events()

    @staticmethod
    def _docx() -> bytes:
        document = Document()
        for line in ("Jane Doe", "Experience", "Acme Corp", "Skills", "Python"):
            document.add_paragraph(line)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cv.docx"
            document.save(str(path))
            return path.read_bytes()

    def test_docx_upload(self):
        response = self.client.post(
            "/api/upload-resume",
            files={"resume": ("cv.docx", self._docx(), "application/octet-stream")},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([s["name"] for s in body["sections"]], ["Work Experience", "Skills"])
        self.assertIn("\\section*{Work Experience}", body["latex_content"])

    def test_rejects_unsupported_extension(self):
        response = self.client.post("/api/upload-resume", files={"resume": ("cv.txt", b"text", "text/plain")})
        self.assertEqual(response.status_code, 400)

    def test_rejects_legacy_doc_content(self):
        response = self.client.post(
            "/api/upload-resume", files={"resume": ("cv.doc", b"\xd0\xcf\x11\xe0", "application/msword")}
        )
        self.assertEqual(response.status_code, 400)

    def test_missing_file(self):
        self.assertEqual(self.client.post("/api/upload-resume").status_code, 400)

    def test_too_large(self):
        with patch("app.api.routes.optimize.settings", SimpleNamespace(max_upload_mb=0)):
            response = self.client.post(
                "/api/upload-resume", files={"resume": ("cv.pdf", b"%PDF-1.4 data", "application/pdf")}
            )
        self.assertEqual(response.status_code, 413)

    def test_upload_rate_limit(self):
        files = {"resume": ("cv.txt", b"text", "text/plain")}
        statuses = [self.client.post("/api/upload-resume", files=files).status_code for _ in range(11)]
        self.assertEqual(statuses[:10], [400] * 10)
        self.assertEqual(statuses[10], 429)


if __name__ == "__main__":
    unittest.main()
