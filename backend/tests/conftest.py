"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - seed_members inserts the four-member / two-team scenario and commits
    - statements records every SQL statement sent to the driver

Design Decisions:
    - SQLite in-memory: fast, no external dependency, supports count(*) OVER ()
    - Statement capture via before_cursor_execute: counts real round trips
      without mocking the session
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from member_query.db.base import Base
from member_query.db.session import create_schema
from member_query.models.member import Member
from member_query.models.team import Team


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    await create_schema(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def seed_members(test_db):
    """member1..member4 aged 10..40; 1-2 in teamA, 3-4 in teamB."""
    team_a = Team(name="teamA")
    team_b = Team(name="teamB")
    members = [
        Member("member1", 10, team_a),
        Member("member2", 20, team_a),
        Member("member3", 30, team_b),
        Member("member4", 40, team_b),
    ]
    test_db.add_all([team_a, team_b, *members])
    await test_db.commit()
    return {"teamA": team_a, "teamB": team_b, "members": members}


class StatementLog(list):
    """SQL statements in execution order."""

    def selects(self) -> list[str]:
        return [s for s in self if s.lstrip().upper().startswith("SELECT")]


@pytest.fixture
def statements(test_engine):
    """Live StatementLog of everything executed on test_engine."""
    log = StatementLog()

    def _record(conn, cursor, statement, parameters, context, executemany):
        log.append(statement)

    event.listen(test_engine.sync_engine, "before_cursor_execute", _record)
    yield log
    event.remove(test_engine.sync_engine, "before_cursor_execute", _record)

