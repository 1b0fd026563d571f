from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class GenerationParams:
    temperature: float = 0.7
    max_output_tokens: int = 1000


class AIClient(Protocol):
    provider_name: str
    model: str

    async def generate(
        self,
        system_instruction: str,
        prompt: str,
        params: GenerationParams,
    ) -> str: ...


class MissingAPIKeyError(RuntimeError):
    pass
