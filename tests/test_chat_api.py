import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.core.resume_store import JsonFileStore, get_store
from app.main import app


class FakeClient:
    provider_name = "fake"
    model = "fake-model"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, system_instruction, prompt, params):
        self.calls.append((system_instruction, prompt, params))
        return self.replies.pop(0)


class ChatApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonFileStore(Path(self._tmp.name) / "db.json")
        app.dependency_overrides[get_store] = lambda: self.store

    def tearDown(self):
        app.dependency_overrides.pop(get_store, None)
        self._tmp.cleanup()

    def test_stateless_message(self):
        fake = FakeClient("Quantify your impact.")
        with patch("app.services.generation.get_ai_client", return_value=fake) as factory:
            response = self.client.post(
                "/api/chat/message",
                json={
                    "message": "Review my summary",
                    "persona": "strict_hr",
                    "conversation_history": [{"role": "user", "content": "hello"}],
                    "user_context": {"resume_text": "Python dev"},
                },
                headers={"X-Gemini-Api-Key": "user-key"},
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Quantify your impact.", "persona": "strict_hr"})
        factory.assert_called_once_with("user-key")

    def test_unknown_persona_is_rejected(self):
        response = self.client.post("/api/chat/message", json={"message": "hi", "persona": "pirate"})
        self.assertEqual(response.status_code, 422)

    def test_message_without_key_is_400(self):
        response = self.client.post("/api/chat/message", json={"message": "hi"})
        self.assertEqual(response.status_code, 400)

    def test_onboarding_questions_fall_back_on_bad_reply(self):
        with patch("app.services.generation.get_ai_client", return_value=FakeClient("sorry, no json")):
            response = self.client.post("/api/chat/onboarding-questions", json={"goal": "switch to data"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["questions"]), 3)

    def test_conversation_lifecycle(self):
        created = self.client.post("/api/chat/conversations", json={"persona": "friend"})
        self.assertEqual(created.status_code, 200)
        conversation_id = created.json()["id"]
        self.assertEqual(created.json()["title"], "New Conversation")

        self.client.put("/api/chat/context", json={"job_description": "Data analyst role"})

        fake = FakeClient("You've got this!", "Data Analyst Prep")
        with patch("app.services.generation.get_ai_client", return_value=fake):
            response = self.client.post(
                f"/api/chat/conversations/{conversation_id}/messages", json={"message": "I'm nervous"}
            )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["assistant_message"]["content"], "You've got this!")
        self.assertEqual(body["conversation"]["title"], "Data Analyst Prep")
        self.assertIn("TARGET JOB DESCRIPTION:\nData analyst role", fake.calls[0][0])

        detail = self.client.get(f"/api/chat/conversations/{conversation_id}").json()
        self.assertEqual([m["role"] for m in detail["messages"]], ["user", "assistant"])

        listing = self.client.get("/api/chat/conversations").json()
        self.assertEqual([c["id"] for c in listing], [conversation_id])
        self.assertEqual(self.client.get("/api/chat/conversations", headers={"X-User-Id": "other"}).json(), [])

        self.assertEqual(self.client.delete(f"/api/chat/conversations/{conversation_id}").status_code, 204)
        self.assertEqual(self.client.get(f"/api/chat/conversations/{conversation_id}").status_code, 404)

    def test_message_to_unknown_conversation(self):
        response = self.client.post("/api/chat/conversations/missing/messages", json={"message": "hi"})
        self.assertEqual(response.status_code, 404)

    def test_context_round_trip(self):
        self.assertEqual(self.client.get("/api/chat/context").json()["resume_text"], None)
        response = self.client.put(
            "/api/chat/context",
            json={"resume_text": "Python dev", "current_qualification": "BSc"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user_id"], "default-user")
        body = self.client.get("/api/chat/context").json()
        self.assertEqual(body["resume_text"], "Python dev")
        self.assertEqual(body["current_qualification"], "BSc")

    def test_context_put_updates_only_sent_fields(self):
        self.client.put("/api/chat/context", json={"resume_text": "Python dev", "current_qualification": "BSc"})

        self.client.put("/api/chat/context", json={"job_description": "Backend role"})
        body = self.client.get("/api/chat/context").json()
        self.assertEqual(body["resume_text"], "Python dev")
        self.assertEqual(body["job_description"], "Backend role")

        response = self.client.put("/api/chat/context", json={"resume_text": None})
        self.assertEqual(response.status_code, 200)
        body = self.client.get("/api/chat/context").json()
        self.assertIsNone(body["resume_text"])
        self.assertEqual(body["current_qualification"], "BSc")


class AnalyticsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_summary_is_open_without_configured_key(self):
        response = self.client.get("/api/analytics/summary")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["enabled"])

    def test_summary_requires_admin_key_when_configured(self):
        with patch("app.core.security.settings", SimpleNamespace(api_key="secret")):
            self.assertEqual(self.client.get("/api/analytics/summary").status_code, 401)
            response = self.client.get("/api/analytics/summary", headers={"X-API-Key": "secret"})
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
