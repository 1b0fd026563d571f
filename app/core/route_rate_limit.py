from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path

from app.core.config import settings


class RouteRateLimitExceeded(Exception):
    pass


class RouteRateLimiter:
    """Sliding-window counter per (client, route) for heavy routes such as uploads and compiles.

    Events live in sqlite so every worker process sees the same window.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=5, isolation_level=None)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS route_hits (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_key TEXT NOT NULL,
                    route_key TEXT NOT NULL,
                    hit_at REAL NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_route_hits_lookup ON route_hits (client_key, route_key, hit_at)")
            self._conn = conn
        return self._conn

    def hit(self, client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> None:
        now = time.time()
        cutoff = now - window_seconds
        with self._lock:
            conn = self._connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute("DELETE FROM route_hits WHERE hit_at < ?", (cutoff,))
                (count,) = conn.execute(
                    "SELECT COUNT(1) FROM route_hits WHERE client_key = ? AND route_key = ? AND hit_at >= ?",
                    (client_key, route_key, cutoff),
                ).fetchone()
                if int(count or 0) >= limit:
                    raise RouteRateLimitExceeded(route_key)
                conn.execute(
                    "INSERT INTO route_hits (client_key, route_key, hit_at) VALUES (?, ?, ?)",
                    (client_key, route_key, now),
                )
            except Exception:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def clear(self) -> None:
        with self._lock:
            self._connection().execute("DELETE FROM route_hits")


_limiter = RouteRateLimiter(settings.route_rate_limit_db_path)


def enforce_route_rate_limit(client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> None:
    _limiter.hit(client_key, route_key, limit, window_seconds)


def clear_route_rate_limit_events() -> None:
    _limiter.clear()
