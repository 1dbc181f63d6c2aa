"""Member Search Routes — HTTP adapter over MemberRepository.

Invariants:
    - Query parameters are parsed into MemberSearchCondition / PageRequest before
      the repository runs; invalid pagination is a 400 and issues no statement
    - An omitted limit uses settings.default_page_size; an explicit bad limit is rejected
    - No business logic here: filtering and counting live in repositories/

Design Decisions:
    - v1 unpaged, v2 single-statement paging, v3 split content/count paging,
      plus /api/v1/members/page with a selectable strategy for comparison
"""

import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from member_query.config import get_settings
from member_query.core.domain_types import (
    MAX_STORE_INT, MIN_STORE_INT, MemberId, PageStrategy,
)
from member_query.core.errors import ResourceNotFoundError
from member_query.core.pagination import PageRequest, SortOrder, parse_sort
from member_query.core.search_condition import MemberSearchCondition
from member_query.infrastructure.database import get_db
from member_query.repositories.member_repository import MemberRepository
from member_query.schemas.member import MemberTeamDto, PageResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["members"])


def search_condition(
    username: str | None = None,
    team_name: str | None = Query(None, alias="teamName"),
    age_goe: int | None = Query(None, alias="ageGoe"),
    age_loe: int | None = Query(None, alias="ageLoe"),
) -> MemberSearchCondition:
    return MemberSearchCondition(
        username=username, team_name=team_name,
        age_goe=age_goe, age_loe=age_loe,
    )


def sort_orders(
    sort: list[str] | None = Query(None, description="property[,asc|desc]"),
) -> tuple[SortOrder, ...]:
    return parse_sort(sort)


def page_request(
    offset: int = 0,
    limit: int | None = None,
    sort: tuple[SortOrder, ...] = Depends(sort_orders),
) -> PageRequest:
    settings = get_settings()
    return PageRequest.of(
        offset,
        settings.default_page_size if limit is None else limit,
        sort,
        max_limit=settings.max_page_size,
    )


@router.get("/api/v1/members", response_model=list[MemberTeamDto])
async def search_members(
    condition: MemberSearchCondition = Depends(search_condition),
    sort: tuple[SortOrder, ...] = Depends(sort_orders),
    db: AsyncSession = Depends(get_db),
):
    """Unpaged search."""
    return await MemberRepository(db).search(condition, sort)


@router.get("/api/v1/members/page", response_model=PageResponse)
async def search_members_page(
    condition: MemberSearchCondition = Depends(search_condition),
    pageable: PageRequest = Depends(page_request),
    strategy: PageStrategy | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Paged search with an explicit or configured count strategy."""
    strategy = strategy or get_settings().default_page_strategy
    page = await MemberRepository(db).search_page(condition, pageable, strategy)
    return PageResponse.from_page(page)


@router.get("/api/v1/members/{member_id}", response_model=MemberTeamDto)
async def get_member(
    member_id: int = Path(ge=MIN_STORE_INT, le=MAX_STORE_INT),
    db: AsyncSession = Depends(get_db),
):
    dto = await MemberRepository(db).find_projection(MemberId(member_id))
    if dto is None:
        raise ResourceNotFoundError("Member", str(member_id))
    return dto


@router.get("/api/v2/members", response_model=PageResponse)
async def search_members_v2(
    condition: MemberSearchCondition = Depends(search_condition),
    pageable: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
):
    """Paged search, content and total from one statement."""
    page = await MemberRepository(db).search_page_simple(condition, pageable)
    return PageResponse.from_page(page)


@router.get("/api/v3/members", response_model=PageResponse)
async def search_members_v3(
    condition: MemberSearchCondition = Depends(search_condition),
    pageable: PageRequest = Depends(page_request),
    db: AsyncSession = Depends(get_db),
):
    """Paged search, count statement skipped when the slice proves the total."""
    page = await MemberRepository(db).search_page_complex(condition, pageable)
    return PageResponse.from_page(page)
