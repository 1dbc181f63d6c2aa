"""Member Repository — filtered, paged member/team reads plus persistence and bulk mutations.

Invariants:
    - Validation (condition, page request, sort) completes before any statement executes
    - Content and count statements are built from the same predicate fragments
    - Content is always left-joined to Team: members without a team are returned
    - Count joins Team only when a Team column filters (count_requires_team_join)
    - A paged read issues at most two round trips (content, then optionally count)
    - A counted total is never below offset + len(content) (reconcile_total)
    - Never commits: the session owner demarcates transactions

Design Decisions:
    - Two page strategies behind search_page(): SIMPLE carries the total on every
      row via count(*) OVER (); SPLIT runs content first and skips the count when
      core.pagination.known_total() proves the total from the slice
    - Unordered searches are ordered by member id so pages partition the result set
    - Bulk statements use synchronize_session=False: instances already loaded in
      the session keep their old values until refreshed (callers are warned)
"""

import logging
from typing import Sequence

from sqlalchemy import Row, Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from member_query.core.domain_types import MemberId, PageStrategy, SortDirection
from member_query.core.errors import ValidationError
from member_query.core.pagination import (
    Page, PageRequest, SortOrder, known_total, reconcile_total,
)
from member_query.core.search_condition import (
    MemberSearchCondition, count_requires_team_join, validate_condition,
)
from member_query.models.member import Member
from member_query.models.team import Team
from member_query.repositories.member_predicates import (
    Fragment, apply_predicate, condition_predicate,
)
from member_query.schemas.member import MemberTeamDto

logger = logging.getLogger(__name__)

_SORTABLE = {
    "id": Member.id,
    "member_id": Member.id,
    "username": Member.username,
    "age": Member.age,
    "team_id": Team.id,
    "team_name": Team.name,
}


def _order_by(sort: Sequence[SortOrder]) -> list:
    """ORDER BY clauses for sort, always ending with member id as tiebreaker."""
    clauses = []
    for order in sort:
        column = _SORTABLE.get(order.property)
        if column is None:
            raise ValidationError(
                f"Unknown sort property '{order.property}' "
                f"(expected one of {', '.join(sorted(_SORTABLE))})",
                "sort",
            )
        clauses.append(
            column.desc() if order.direction is SortDirection.DESC else column.asc(),
        )
    if not any(_SORTABLE[o.property] is Member.id for o in sort):
        clauses.append(Member.id.asc())
    return clauses


def _projection(*extra) -> Select:
    """member LEFT OUTER JOIN team, projected onto MemberTeamDto columns."""
    return (
        select(
            Member.id.label("member_id"),
            Member.username.label("username"),
            Member.age.label("age"),
            Team.id.label("team_id"),
            Team.name.label("team_name"),
            *extra,
        )
        .select_from(Member)
        .outerjoin(Member.team)
    )


def _to_dto(row: Row) -> MemberTeamDto:
    return MemberTeamDto(
        member_id=row.member_id,
        username=row.username,
        age=row.age,
        team_id=row.team_id,
        team_name=row.team_name,
    )


class MemberRepository:
    """Member data access over a caller-provided AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Persistence ─────────────────────────────────────────────

    async def save_team(self, team: Team) -> Team:
        self.db.add(team)
        await self.db.flush()
        return team

    async def save(self, member: Member) -> Member:
        self.db.add(member)
        await self.db.flush()
        return member

    async def save_all(self, members: Sequence[Member]) -> list[Member]:
        self.db.add_all(members)
        await self.db.flush()
        return list(members)

    async def find_by_id(self, member_id: MemberId) -> Member | None:
        return await self.db.get(Member, member_id)

    async def find_all(self) -> list[Member]:
        result = await self.db.execute(select(Member).order_by(Member.id))
        return list(result.scalars().all())

    async def find_by_username(self, username: str) -> list[Member]:
        result = await self.db.execute(
            select(Member)
            .where(Member.username == username)
            .order_by(Member.id),
        )
        return list(result.scalars().all())

    async def find_projection(self, member_id: MemberId) -> MemberTeamDto | None:
        """Single member/team projection by id."""
        result = await self.db.execute(_projection().where(Member.id == member_id))
        row = result.one_or_none()
        return _to_dto(row) if row is not None else None

    # ─── Search ──────────────────────────────────────────────────

    async def search(
        self,
        condition: MemberSearchCondition,
        sort: Sequence[SortOrder] = (),
    ) -> list[MemberTeamDto]:
        """All members matching condition, left-joined to their team."""
        validate_condition(condition)
        order = _order_by(sort)
        stmt = apply_predicate(_projection(), condition_predicate(condition))
        result = await self.db.execute(stmt.order_by(*order))
        return [_to_dto(row) for row in result.all()]

    async def count(self, condition: MemberSearchCondition) -> int:
        """Number of members matching condition, ignoring any page window."""
        validate_condition(condition)
        return await self._count(condition, condition_predicate(condition))

    async def search_page(
        self,
        condition: MemberSearchCondition,
        page_request: PageRequest,
        strategy: PageStrategy = PageStrategy.SPLIT,
    ) -> Page[MemberTeamDto]:
        if strategy is PageStrategy.SIMPLE:
            return await self.search_page_simple(condition, page_request)
        return await self.search_page_complex(condition, page_request)

    async def search_page_simple(
        self, condition: MemberSearchCondition, page_request: PageRequest,
    ) -> Page[MemberTeamDto]:
        """One statement returns the slice and the full match count.

        The count is a window over the filtered rows, so it is only observable
        when the slice is non-empty. An empty slice at offset 0 means no
        matches; an empty slice further on needs an explicit count.
        """
        validate_condition(condition)
        order = _order_by(page_request.sort)
        predicate = condition_predicate(condition)

        stmt = apply_predicate(
            _projection(func.count().over().label("total")), predicate,
        )
        stmt = (
            stmt.order_by(*order)
            .offset(page_request.offset)
            .limit(page_request.limit)
        )
        rows = (await self.db.execute(stmt)).all()
        content = [_to_dto(row) for row in rows]

        if rows:
            total = rows[0].total
        elif page_request.offset == 0:
            total = 0
        else:
            total = await self._count(condition, predicate)
        total = reconcile_total(page_request, len(content), total)

        logger.debug(
            "Paged member search",
            extra={
                "strategy": PageStrategy.SIMPLE.value,
                "offset": page_request.offset,
                "limit": page_request.limit,
                "total": total,
            },
        )
        return Page.of(content, page_request, total)

    async def search_page_complex(
        self, condition: MemberSearchCondition, page_request: PageRequest,
    ) -> Page[MemberTeamDto]:
        """Content and count as separate statements; count skipped when provable."""
        validate_condition(condition)
        order = _order_by(page_request.sort)
        predicate = condition_predicate(condition)

        stmt = apply_predicate(_projection(), predicate)
        stmt = (
            stmt.order_by(*order)
            .offset(page_request.offset)
            .limit(page_request.limit)
        )
        result = await self.db.execute(stmt)
        content = [_to_dto(row) for row in result.all()]

        total = known_total(page_request, len(content))
        count_skipped = total is not None
        if total is None:
            total = reconcile_total(
                page_request, len(content), await self._count(condition, predicate),
            )

        logger.debug(
            "Paged member search",
            extra={
                "strategy": PageStrategy.SPLIT.value,
                "offset": page_request.offset,
                "limit": page_request.limit,
                "total": total,
                "count_skipped": count_skipped,
            },
        )
        return Page.of(content, page_request, total)

    async def _count(
        self, condition: MemberSearchCondition, predicate: Fragment,
    ) -> int:
        stmt = select(func.count(Member.id)).select_from(Member)
        if count_requires_team_join(condition):
            stmt = stmt.outerjoin(Member.team)
        stmt = apply_predicate(stmt, predicate)
        return (await self.db.execute(stmt)).scalar_one()

    # ─── Bulk mutations ──────────────────────────────────────────
    # These bypass the session's identity map. Member instances loaded
    # before the call keep stale values until db.refresh()/expire_all().

    async def bulk_add_age(self, amount: int) -> int:
        """Add amount to every member's age. Returns rows affected."""
        stmt = (
            update(Member)
            .values(age=Member.age + amount)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_bulk(stmt, "bulk_add_age")

    async def bulk_rename_younger_than(self, age: int, username: str) -> int:
        """Set username on every member strictly younger than age."""
        stmt = (
            update(Member)
            .where(Member.age < age)
            .values(username=username)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_bulk(stmt, "bulk_rename_younger_than")

    async def bulk_delete_younger_than(self, age: int) -> int:
        """Delete every member strictly younger than age."""
        stmt = (
            delete(Member)
            .where(Member.age < age)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_bulk(stmt, "bulk_delete_younger_than")

    async def _execute_bulk(self, stmt, operation: str) -> int:
        result = await self.db.execute(stmt)
        rows_affected = result.rowcount
        logger.info(
            f"{operation} affected {rows_affected} row(s); "
            "loaded Member instances are stale until refreshed",
            extra={"operation": operation, "rows_affected": rows_affected},
        )
        return rows_affected
