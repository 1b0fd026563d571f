from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS ai_generation_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        run_id TEXT NOT NULL,
        task TEXT NOT NULL,
        provider TEXT NOT NULL,
        model TEXT NOT NULL,
        status TEXT NOT NULL,
        error_code TEXT,
        prompt_chars INTEGER,
        latency_ms INTEGER
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ai_generation_runs_created_at ON ai_generation_runs (created_at)",
)

_RUN_COLUMNS = ("created_at", "run_id", "task", "provider", "model", "status", "error_code", "prompt_chars", "latency_ms")


def _timestamp() -> str:
    # Matches sqlite's datetime('now') so retention comparisons work on strings.
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@contextmanager
def _connect() -> Iterator[sqlite3.Connection]:
    db_path = Path(settings.analytics_db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        for statement in _SCHEMA:
            conn.execute(statement)
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db() -> None:
    if settings.analytics_enabled:
        with _connect():
            pass


def log_ai_generation_run(
    *,
    run_id: str,
    task: str,
    provider: str,
    model: str,
    status: str,
    error_code: str | None = None,
    prompt_chars: int | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    values = (_timestamp(), run_id, task, provider, model, status, error_code, prompt_chars, latency_ms)
    placeholders = ", ".join("?" for _ in _RUN_COLUMNS)
    with _connect() as conn:
        conn.execute(f"INSERT INTO ai_generation_runs ({', '.join(_RUN_COLUMNS)}) VALUES ({placeholders})", values)


def purge_old_records() -> dict[str, int]:
    """Drop generation runs older than ``ANALYTICS_RETENTION_DAYS``."""
    if not settings.analytics_enabled:
        return {"ai_generation_runs": 0}
    days = max(1, int(settings.analytics_retention_days))
    with _connect() as conn:
        cur = conn.execute(
            "DELETE FROM ai_generation_runs WHERE created_at < datetime('now', ?)",
            (f"-{days} days",),
        )
        return {"ai_generation_runs": int(cur.rowcount or 0)}


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with _connect() as conn:
        (total,) = conn.execute("SELECT COUNT(*) FROM ai_generation_runs").fetchone()
        (total_7d,) = conn.execute(
            "SELECT COUNT(*) FROM ai_generation_runs WHERE created_at >= datetime('now', '-7 days')"
        ).fetchone()
        rows = conn.execute(
            """
            SELECT task, status, COUNT(*) AS count, CAST(AVG(latency_ms) AS INTEGER) AS avg_latency_ms
            FROM ai_generation_runs
            GROUP BY task, status
            ORDER BY task, status
            """
        ).fetchall()
    return {
        "enabled": True,
        "total": total,
        "total_7d": total_7d,
        "by_task": [dict(row) for row in rows],
    }
