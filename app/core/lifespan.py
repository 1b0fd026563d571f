import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.analytics.db import init_db, purge_old_records
from app.core.config import settings
from app.core.resume_store import get_store
from app.services.cleanup import cleanup_all_temp_files

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    get_store()
    init_db()
    purge_old_records()

    stop_event = asyncio.Event()

    async def periodic_maintenance() -> None:
        while not stop_event.is_set():
            if settings.cleanup_enabled:
                try:
                    removed = await asyncio.to_thread(cleanup_all_temp_files)
                    if any(removed.values()):
                        logger.info("temp_cleanup removed=%s", removed)
                except Exception as exc:  # pragma: no cover - defensive guard
                    logger.warning("temp_cleanup_failed: %s", exc)
            try:
                deleted = purge_old_records()
                if any(deleted.values()):
                    logger.info("analytics_retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - defensive guard
                logger.warning("analytics_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=max(60, settings.cleanup_interval_s))
            except asyncio.TimeoutError:
                continue

    maintenance_task = asyncio.create_task(periodic_maintenance())
    yield
    stop_event.set()
    if not maintenance_task.done():
        maintenance_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await maintenance_task
