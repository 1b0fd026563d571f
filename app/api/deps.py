from __future__ import annotations

import logging

from fastapi import HTTPException, Request, UploadFile, status

from app.core.resume_store import JsonFileStore
from app.core.route_rate_limit import RouteRateLimitExceeded, enforce_route_rate_limit
from app.schemas.resume import Resume
from app.services.generation import GenerationError

logger = logging.getLogger(__name__)

_READ_CHUNK = 1024 * 64


def client_key(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_heavy_route_limit(request: Request, route_key: str, limit: int, window_seconds: int = 60) -> None:
    # route_key names the operation, not the URL, so path parameters share one window.
    try:
        enforce_route_rate_limit(
            client_key=client_key(request),
            route_key=route_key,
            limit=limit,
            window_seconds=window_seconds,
        )
    except RouteRateLimitExceeded as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a minute and try again.",
        ) from exc


def raise_generation_http_error(exc: GenerationError) -> None:
    if exc.code == "missing_api_key":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logger.warning("generation_http_error code=%s: %s", exc.code, exc)
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


def load_owned_resume(store: JsonFileStore, resume_id: str, user_id: str) -> Resume:
    resume = store.get_resume(resume_id)
    if resume is None or (resume.user_id is not None and resume.user_id != user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found")
    return resume


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_READ_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)
