from __future__ import annotations

import os
from typing import Optional

from openai import AsyncOpenAI

from app.ai.types import GenerationParams, MissingAPIKeyError


class OpenAIProvider:
    provider_name = "openai"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 2,
    ):
        self.model = model
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise MissingAPIKeyError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        params: GenerationParams,
    ) -> str:
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            temperature=params.temperature,
            max_tokens=params.max_output_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
