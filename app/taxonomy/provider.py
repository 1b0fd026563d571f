from __future__ import annotations

from typing import Protocol


class TaxonomyProvider(Protocol):
    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        """Return normalized text and optional canonical skill name."""

    def aliases(self) -> dict[str, tuple[str, ...]]:
        """Canonical skill -> alias spellings, canonical order preserved."""

    def roles(self) -> list[str]:
        ...

    def role_core_skills(self, role: str | None) -> list[str]:
        ...

    def certifications_for(self, skill: str) -> list[str]:
        ...

    def projects_for(self, skill: str) -> list[str]:
        ...
