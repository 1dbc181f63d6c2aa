"""Member Schemas — the member/team read projection and paged responses.

Invariants:
    - MemberTeamDto is flat and immutable; team_id/team_name are None for a member without a team
    - PageResponse mirrors core.pagination.Page plus its derived metadata

Design Decisions:
    - Frozen models: projections have no identity beyond structural equality
"""

from pydantic import BaseModel, ConfigDict

from member_query.core.pagination import Page


class MemberTeamDto(BaseModel):
    """Flat member + team projection produced by the content query."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    member_id: int
    username: str | None = None
    age: int
    team_id: int | None = None
    team_name: str | None = None


class PageResponse(BaseModel):
    """Paged member search response."""
    content: list[MemberTeamDto]
    total: int
    offset: int
    limit: int
    page_number: int
    total_pages: int
    number_of_elements: int
    is_first: bool
    is_last: bool
    has_next: bool

    @classmethod
    def from_page(cls, page: Page[MemberTeamDto]) -> "PageResponse":
        return cls(
            content=list(page.content),
            total=page.total,
            offset=page.offset,
            limit=page.limit,
            page_number=page.page_number,
            total_pages=page.total_pages,
            number_of_elements=page.number_of_elements,
            is_first=page.is_first,
            is_last=page.is_last,
            has_next=page.has_next,
        )
