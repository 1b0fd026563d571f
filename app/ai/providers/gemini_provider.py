from __future__ import annotations

import os

from google import genai
from google.genai import types

from app.ai.types import GenerationParams, MissingAPIKeyError
from app.core.config import settings


class GeminiProvider:
    provider_name = "gemini"

    def __init__(self, model: str, api_key: str | None = None):
        self.model = model
        key = (api_key or settings.gemini_api_key or os.getenv("GOOGLE_API_KEY") or "").strip()
        if not key:
            raise MissingAPIKeyError("API key is required")
        self._client = genai.Client(api_key=key)

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        params: GenerationParams,
    ) -> str:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=params.temperature,
                max_output_tokens=params.max_output_tokens,
            ),
        )
        return response.text or ""
