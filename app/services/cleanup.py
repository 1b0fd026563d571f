from __future__ import annotations

import logging
import time
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)

_KEEP_FILES = {".gitkeep"}


def temp_directories() -> list[Path]:
    return [Path(settings.pdf_output_dir), Path(settings.upload_dir), Path(settings.temp_dir)]


def cleanup_directory(directory: str | Path, max_age_s: float = 3600, dry_run: bool = False) -> int:
    """Delete regular files older than ``max_age_s``; returns how many were (or would be) removed."""
    path = Path(directory)
    if not path.is_dir():
        return 0

    deleted = 0
    now = time.time()
    try:
        entries = list(path.iterdir())
    except OSError as exc:
        logger.error("cleanup_failed dir=%s: %s", path, exc)
        return 0

    for entry in entries:
        if entry.name in _KEEP_FILES:
            continue
        try:
            if not entry.is_file():
                continue
            age = now - entry.stat().st_mtime
            if age <= max_age_s:
                continue
            if dry_run:
                logger.info("[DRY RUN] Would delete: %s (age: %ss)", entry.name, round(age))
            else:
                entry.unlink()
                logger.info("Deleted old file: %s (age: %ss)", entry.name, round(age))
            deleted += 1
        except OSError as exc:
            # Another worker may have removed it first.
            logger.warning("Failed to process file %s: %s", entry.name, exc)

    if deleted:
        logger.info(
            "Cleanup complete: %s files %sdeleted from %s", deleted, "would be " if dry_run else "", path
        )
    return deleted


def cleanup_all_temp_files(max_age_s: float | None = None, dry_run: bool = False) -> dict[str, int]:
    age = settings.cleanup_max_age_s if max_age_s is None else max_age_s
    return {str(directory): cleanup_directory(directory, age, dry_run) for directory in temp_directories()}


def cleanup_resume_files(resume_id: str) -> int:
    """Remove every compiled artifact of a resume (``<resume_id>.pdf``, ``.tex`` ...)."""
    pdf_dir = Path(settings.pdf_output_dir)
    if not resume_id or not pdf_dir.is_dir():
        return 0
    removed = 0
    for entry in pdf_dir.iterdir():
        if not entry.name.startswith(resume_id) or not entry.is_file():
            continue
        try:
            entry.unlink()
            removed += 1
            logger.info("Deleted resume file: %s", entry.name)
        except OSError as exc:
            logger.error("Failed to cleanup files for resume %s: %s", resume_id, exc)
    return removed
