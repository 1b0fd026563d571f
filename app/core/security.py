from __future__ import annotations

from fastapi import Header, HTTPException, status

from app.core.config import settings


def check_api_key(x_api_key: str | None) -> None:
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please provide a valid API key.",
        )


def require_admin(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)


def current_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """Owner for stored records; identity itself is delegated to the frontend auth provider."""
    user_id = (x_user_id or "").strip()
    return user_id[:128] if user_id else settings.default_user_id


def gemini_api_key(x_gemini_api_key: str | None = Header(default=None, alias="X-Gemini-Api-Key")) -> str | None:
    """Caller-supplied key wins over the server key so users can bring their own quota."""
    key = (x_gemini_api_key or "").strip()
    return key or settings.gemini_api_key
