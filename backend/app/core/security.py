from __future__ import annotations

import hashlib

from fastapi import Cookie, Header, HTTPException, Request, status

from ..services.storage import StorageService

SESSION_COOKIE = "daybook_session"


def hash_identifier(value: int | str) -> str:
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:12]


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return token or None
    return None


async def resolve_authenticated_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
) -> int:
    """Resolve the calling user from a bearer token or the session cookie."""

    storage: StorageService = request.app.state.storage_service
    token = _bearer_token(authorization) or session_token
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
        )

    user = await storage.get_user_by_session(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="session invalid or expired",
        )

    request.state.current_user_id = user.id
    request.state.session_token = token
    request.state.telemetry_user = hash_identifier(user.id)
    return user.id
