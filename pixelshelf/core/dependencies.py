"""Application-wide FastAPI dependencies.

These helpers are imported by individual routers to
  • extract the session token (bearer header or session cookie)
  • resolve the calling user from the database
  • inject configured services (AuthService, …)

Having them in *core* keeps the `api/` layer focused purely on HTTP handling.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import Settings, settings
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.services.auth_service import AuthService

# ─────────────────────────────── Settings helper ─────────────────────────────

def get_core_settings() -> Settings:  # pragma: no cover
    """Return the singleton `Settings` instance for DI."""
    return settings


# ─────────────────────────────── Token helpers ───────────────────────────────

def get_session_token(request: Request) -> Optional[str]:
    """Return the raw JWT from the *Authorization* header or the session cookie.

    A malformed *Authorization* header counts as no token at all.
    """
    authorization = request.headers.get("authorization")
    if authorization:
        if authorization.lower().startswith("bearer "):
            return authorization.split(" ", 1)[1].strip() or None
        return None
    return request.cookies.get(settings.session_cookie_name)


# ─────────────────────────────── Service helpers ─────────────────────────────

def get_auth_service(
    settings: Settings = Depends(get_core_settings),
    db: AsyncSession = Depends(get_db),
) -> AuthService:
    return AuthService(settings=settings, db=db)


# ─────────────────────────────── User helpers ────────────────────────────────

async def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """Return the calling `User`, or ``None`` for anonymous requests."""
    if not token:
        return None
    user_id = auth_service.decode_token(token)
    if user_id is None:
        return None
    return await auth_service.db.get(User, user_id)


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
