from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

SCORING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "scoring.yaml"

_MISSING = object()


@lru_cache(maxsize=1)
def get_scoring_config() -> dict[str, Any]:
    """Matcher weights and ATS thresholds from ``config/scoring.yaml``, read once per process."""
    try:
        raw = SCORING_CONFIG_PATH.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise RuntimeError(f"Scoring config not found at '{SCORING_CONFIG_PATH}'.") from exc
    except OSError as exc:
        raise RuntimeError(f"Failed to read scoring config '{SCORING_CONFIG_PATH}': {exc}") from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in scoring config '{SCORING_CONFIG_PATH}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Scoring config '{SCORING_CONFIG_PATH}' must be a mapping at the top level.")
    return parsed


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Dotted lookup, e.g. ``get_scoring_value("matching.weights.skill_overlap", 0.7)``."""
    if not path:
        return default
    node: Any = get_scoring_config()
    for key in path.split("."):
        node = node.get(key, _MISSING) if isinstance(node, dict) else _MISSING
        if node is _MISSING:
            return default
    return node
