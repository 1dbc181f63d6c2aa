"""Schema Bootstrap — create tables on an async engine outside migrations.

Invariants:
    - Meant for local runs and test fixtures; production schemas are managed elsewhere
    - Models are imported first so Base.metadata is complete

Design Decisions:
    - Separate from infrastructure/database.py: test fixtures own their engine
      and need no session manager
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from member_query.db.base import Base


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables registered on Base.metadata."""
    import member_query.models  # noqa: F401  registers mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
