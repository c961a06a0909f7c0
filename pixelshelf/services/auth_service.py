# pixelshelf/services/auth_service.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import Settings
from pixelshelf.models import User
from pixelshelf.schemas.auth import LoginIn, RegisterIn

log = logging.getLogger(__name__)

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed_password = bcrypt.hashpw(password.encode(), salt)
    return hashed_password.decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


class AuthService:
    def __init__(self, settings: Settings, db: Optional[AsyncSession] = None):
        self.settings = settings
        self.db = db

    # ─────────────────────────────── tokens ───────────────────────────────
    def create_access_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode = {"sub": user_id, "exp": expire}
        return jwt.encode(to_encode, self.settings.SECRET_KEY.get_secret_value(), algorithm=ALGORITHM)

    def decode_token(self, token: str) -> Optional[str]:
        """Return the user id carried by ``token``, or ``None`` when it is invalid or expired."""
        try:
            payload = jwt.decode(token, self.settings.SECRET_KEY.get_secret_value(), algorithms=[ALGORITHM])
        except JWTError:
            return None
        return payload.get("sub")

    # ─────────────────────────────── credentials ──────────────────────────
    async def _unique_username(self, base: str) -> str:
        stem = re.sub(r"[^a-zA-Z0-9_]", "", base)[:40] or "user"
        if len(stem) < 3:
            stem = f"{stem}user"
        candidate, n = stem, 1
        while await self.db.scalar(select(User.id).where(User.username == candidate)):
            n += 1
            candidate = f"{stem}{n}"
        return candidate

    async def register(self, user_in: RegisterIn) -> User:
        email = user_in.email.lower()
        if await self.db.scalar(select(User.id).where(User.email == email)):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
        if user_in.username:
            if await self.db.scalar(select(User.id).where(User.username == user_in.username)):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already taken")
            username = user_in.username
        else:
            username = await self._unique_username(email.split("@", 1)[0])

        user = User(
            name=user_in.name,
            email=email,
            username=username,
            password_hash=hash_password(user_in.password.get_secret_value()),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email or username already registered")
        log.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, user_in: LoginIn) -> User:
        user = await self.db.scalar(select(User).where(User.email == user_in.email.lower()))
        if (
            user is None
            or not user.password_hash
            or not verify_password(user_in.password.get_secret_value(), user.password_hash)
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return user
