from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from pixelshelf.core.config import settings

# Database URL sourced from settings; local SQLite for dev/testing, asyncpg in production
DATABASE_URL = settings.database_url

# SQLite connections are not shared between event loops
_engine_kwargs = {"poolclass": NullPool} if DATABASE_URL.startswith("sqlite") else {"pool_pre_ping": True}

# Non-ASCII text stays literal in JSON columns so LIKE matches against it
engine = create_async_engine(
    DATABASE_URL,
    future=True,
    echo=False,
    json_serializer=lambda obj: json.dumps(obj, ensure_ascii=False),
    **_engine_kwargs,
)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape ``term`` so LIKE treats its ``%`` and ``_`` literally; pair with ``escape=LIKE_ESCAPE``."""
    return term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%").replace("_", LIKE_ESCAPE + "_")


def contains_pattern(term: str) -> str:
    return f"%{escape_like(term)}%"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


async def get_db() -> AsyncSession:
    """Yield an async SQLAlchemy session."""
    async with AsyncSessionLocal() as session:
        yield session


async def create_all() -> None:
    """Create every table registered on ``Base.metadata``."""
    import pixelshelf.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
