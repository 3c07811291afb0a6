"""
onedosh_api.db.init_db

DB initialization helpers (dev/test convenience).

Responsibilities:
- Create tables for local development and tests.
- Seed reference data (roles, permissions, dosh point events).
- Keep production migration workflow separate (Alembic).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from onedosh_api.db import models  # noqa: F401  # register models on Base.metadata
from onedosh_api.db.base import Base
from onedosh_api.db.seeds import seed_reference_data
from onedosh_api.db.session import session_scope


async def init_db(engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist, then seed reference rows.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_scope(session_factory) as session:
        await seed_reference_data(session)


# --- Module Notes -----------------------------------------------------------
# Production runs `alembic upgrade head` followed by `python -m onedosh_api.db.seeds`.
