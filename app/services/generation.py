from __future__ import annotations

import json
import logging
import re
import time
import uuid
from typing import Any

from app.ai.factory import get_ai_client
from app.ai.types import AIClient, GenerationParams, MissingAPIKeyError
from app.analytics.db import log_ai_generation_run

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|latex|tex)?\s*|\s*```", re.IGNORECASE)


class GenerationError(RuntimeError):
    def __init__(self, message: str, *, code: str = "generation_failed"):
        super().__init__(message)
        self.code = code


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _log_run(
    *,
    run_id: str,
    task: str,
    client: AIClient | None,
    status: str,
    started: float,
    prompt_chars: int,
    error_code: str | None = None,
) -> None:
    try:
        log_ai_generation_run(
            run_id=run_id,
            task=task,
            provider=getattr(client, "provider_name", "unknown"),
            model=getattr(client, "model", "unknown"),
            status=status,
            error_code=error_code,
            prompt_chars=prompt_chars,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
    except Exception:  # pragma: no cover - analytics must not break AI responses
        logger.debug("ai_run_logging_failed", exc_info=True)


async def generate_text(
    *,
    task: str,
    system_instruction: str,
    prompt: str,
    params: GenerationParams,
    api_key: str | None = None,
    failure_label: str | None = None,
) -> str:
    """Single provider call; every failure surfaces as ``GenerationError("Failed to <label>: ...")``."""
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    label = failure_label or task.replace("_", " ")
    client: AIClient | None = None

    try:
        client = get_ai_client(api_key)
    except MissingAPIKeyError as exc:
        _log_run(run_id=run_id, task=task, client=None, status="skipped", started=started,
                 prompt_chars=len(prompt), error_code="missing_api_key")
        raise GenerationError(str(exc), code="missing_api_key") from exc

    try:
        text = await client.generate(system_instruction, prompt, params)
    except Exception as exc:  # noqa: BLE001 - provider SDKs raise their own hierarchies
        logger.warning("ai_generation_failed task=%s model=%s: %s", task, client.model, exc)
        _log_run(run_id=run_id, task=task, client=client, status="error", started=started,
                 prompt_chars=len(prompt), error_code="provider_error")
        raise GenerationError(f"Failed to {label}: {exc}", code="provider_error") from exc

    if not (text or "").strip():
        _log_run(run_id=run_id, task=task, client=client, status="empty", started=started,
                 prompt_chars=len(prompt), error_code="empty_response")
        raise GenerationError(f"Failed to {label}: Empty response from Gemini", code="empty_response")

    _log_run(run_id=run_id, task=task, client=client, status="success", started=started, prompt_chars=len(prompt))
    return text


async def generate_json(
    *,
    task: str,
    system_instruction: str,
    prompt: str,
    params: GenerationParams,
    api_key: str | None = None,
    failure_label: str | None = None,
) -> Any:
    label = failure_label or task.replace("_", " ")
    raw = await generate_text(
        task=task,
        system_instruction=system_instruction,
        prompt=prompt,
        params=params,
        api_key=api_key,
        failure_label=label,
    )
    cleaned = strip_code_fences(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.warning("ai_generation_invalid_json task=%s len=%s", task, len(cleaned))
        raise GenerationError(f"Failed to {label}: {exc}", code="invalid_json") from exc
