from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .provider import TaxonomyProvider


class LocalTaxonomy(TaxonomyProvider):
    def __init__(self, tables_path: str | Path | None = None) -> None:
        path = Path(tables_path) if tables_path else Path(__file__).with_name("skills.json")
        raw = self._load_tables(path)
        self._aliases: dict[str, tuple[str, ...]] = {
            str(canonical).strip().lower(): tuple(str(alias).strip().lower() for alias in aliases)
            for canonical, aliases in (raw.get("aliases") or {}).items()
        }
        self._alias_index: dict[str, str] = {}
        for canonical, aliases in self._aliases.items():
            for alias in aliases:
                self._alias_index.setdefault(alias, canonical)
        self._roles = self._lower_table(raw.get("role_core_skills"), lower_values=True)
        self._certs = self._lower_table(raw.get("certifications"))
        self._projects = self._lower_table(raw.get("projects"))

    @staticmethod
    def _load_tables(path: Path) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict):
            raise ValueError(f"Skill tables at '{path}' must be a JSON object.")
        return raw

    @staticmethod
    def _lower_table(table: Any, lower_values: bool = False) -> dict[str, list[str]]:
        output: dict[str, list[str]] = {}
        for key, values in (table or {}).items():
            items = [str(value) for value in values]
            if lower_values:
                items = [item.lower() for item in items]
            output[str(key).strip().lower()] = items
        return output

    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        normalized = " ".join(raw.strip().lower().split())
        return normalized, self._alias_index.get(normalized)

    def aliases(self) -> dict[str, tuple[str, ...]]:
        return dict(self._aliases)

    def roles(self) -> list[str]:
        return list(self._roles)

    def role_core_skills(self, role: str | None) -> list[str]:
        if not role:
            return []
        return list(self._roles.get(role.strip().lower(), []))

    def certifications_for(self, skill: str) -> list[str]:
        return list(self._certs.get(skill.strip().lower(), []))

    def projects_for(self, skill: str) -> list[str]:
        return list(self._projects.get(skill.strip().lower(), []))
