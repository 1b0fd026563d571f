import asyncio
import unittest
from unittest.mock import patch

from app.ai.types import GenerationParams, MissingAPIKeyError
from app.analytics import db as analytics_db
from app.services.generation import GenerationError, generate_json, generate_text, strip_code_fences, truncate


class FakeClient:
    provider_name = "fake"
    model = "fake-model"

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, system_instruction, prompt, params):
        self.calls.append((system_instruction, prompt, params))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _run(coro):
    return asyncio.run(coro)


class HelperTests(unittest.TestCase):
    def test_strip_code_fences(self):
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fences("```latex\n\\section{A}\n```"), "\\section{A}")
        self.assertEqual(strip_code_fences("  plain  "), "plain")
        self.assertEqual(strip_code_fences(None), "")

    def test_truncate(self):
        self.assertEqual(truncate("abcdef", 3), "abc...")
        self.assertEqual(truncate("abc", 3), "abc")


class GenerateTextTests(unittest.TestCase):
    def test_returns_provider_text_and_records_run(self):
        client = FakeClient("Hello there")
        before = analytics_db.get_summary()["total"]
        with patch("app.services.generation.get_ai_client", return_value=client) as factory:
            text = _run(
                generate_text(
                    task="unit_test",
                    system_instruction="sys",
                    prompt="hi",
                    params=GenerationParams(temperature=0.3, max_output_tokens=10),
                    api_key="caller-key",
                )
            )
        self.assertEqual(text, "Hello there")
        factory.assert_called_once_with("caller-key")
        self.assertEqual(client.calls[0][2].temperature, 0.3)
        self.assertEqual(analytics_db.get_summary()["total"], before + 1)

    def test_missing_key_maps_to_missing_api_key_code(self):
        with patch("app.services.generation.get_ai_client", side_effect=MissingAPIKeyError("API key is required")):
            with self.assertRaises(GenerationError) as ctx:
                _run(generate_text(task="t", system_instruction="s", prompt="p", params=GenerationParams()))
        self.assertEqual(ctx.exception.code, "missing_api_key")
        self.assertEqual(str(ctx.exception), "API key is required")

    def test_provider_failure_is_wrapped_with_label(self):
        client = FakeClient(RuntimeError("quota exceeded"))
        with patch("app.services.generation.get_ai_client", return_value=client):
            with self.assertRaises(GenerationError) as ctx:
                _run(
                    generate_text(
                        task="t",
                        system_instruction="s",
                        prompt="p",
                        params=GenerationParams(),
                        failure_label="optimize resume section",
                    )
                )
        self.assertEqual(ctx.exception.code, "provider_error")
        self.assertEqual(str(ctx.exception), "Failed to optimize resume section: quota exceeded")

    def test_blank_reply_is_an_error(self):
        with patch("app.services.generation.get_ai_client", return_value=FakeClient("   ")):
            with self.assertRaises(GenerationError) as ctx:
                _run(generate_text(task="t", system_instruction="s", prompt="p", params=GenerationParams()))
        self.assertEqual(ctx.exception.code, "empty_response")


class GenerateJsonTests(unittest.TestCase):
    def test_fenced_json_is_decoded(self):
        with patch("app.services.generation.get_ai_client", return_value=FakeClient('```json\n{"ok": true}\n```')):
            payload = _run(generate_json(task="t", system_instruction="s", prompt="p", params=GenerationParams()))
        self.assertEqual(payload, {"ok": True})

    def test_invalid_json(self):
        with patch("app.services.generation.get_ai_client", return_value=FakeClient("not json")):
            with self.assertRaises(GenerationError) as ctx:
                _run(generate_json(task="t", system_instruction="s", prompt="p", params=GenerationParams()))
        self.assertEqual(ctx.exception.code, "invalid_json")
        self.assertTrue(str(ctx.exception).startswith("Failed to t: "))


if __name__ == "__main__":
    unittest.main()
