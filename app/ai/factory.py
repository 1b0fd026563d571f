from app.ai.config import load_ai_config
from app.ai.types import AIClient

from app.ai.providers.gemini_provider import GeminiProvider
from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client(api_key: str | None = None) -> AIClient:
    """Build a client per request; ``api_key`` is a caller-supplied Gemini key."""
    cfg = load_ai_config()

    if cfg.provider == "gemini":
        return GeminiProvider(model=cfg.model, api_key=api_key)

    if cfg.provider == "openai":
        # OpenAI credentials stay server-side.
        return OpenAIProvider(model=cfg.model)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
