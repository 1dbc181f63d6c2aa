"""Pagination — page requests, page results, and the count short-circuit rule.

Invariants:
    - PageRequest.offset >= 0 and PageRequest.limit > 0 (checked on construction)
    - Page: 0 <= len(content) <= limit and len(content) <= total
    - known_total() never guesses: it returns None unless the content proves the total
    - offset and limit never exceed MAX_STORE_INT (the store's integer range)

Design Decisions:
    - Validation runs in __post_init__, so an invalid request never reaches a query
    - known_total is pure; the repository decides whether to pay for a count round trip
"""

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from member_query.core.domain_types import MAX_STORE_INT, SortDirection
from member_query.core.errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class SortOrder:
    """One ORDER BY term, by public property name."""
    property: str
    direction: SortDirection = SortDirection.ASC


def parse_sort(values: Sequence[str] | None) -> tuple[SortOrder, ...]:
    """Parse "property[,asc|desc]" strings into sort orders."""
    orders = []
    for value in values or ():
        prop, _, direction = value.partition(",")
        prop = prop.strip()
        if not prop:
            raise ValidationError(f"Invalid sort term '{value}'", "sort")
        direction = direction.strip().lower() or SortDirection.ASC.value
        try:
            orders.append(SortOrder(prop, SortDirection(direction)))
        except ValueError:
            raise ValidationError(
                f"Invalid sort direction '{direction}' (expected asc or desc)",
                "sort",
            ) from None
    return tuple(orders)


@dataclass(frozen=True)
class PageRequest:
    """Offset/limit window over an ordered result set."""
    offset: int
    limit: int
    sort: tuple[SortOrder, ...] = ()

    def __post_init__(self):
        if self.offset < 0:
            raise ValidationError(f"offset must be >= 0, got {self.offset}", "offset")
        if self.offset > MAX_STORE_INT:
            raise ValidationError(
                f"offset must be <= {MAX_STORE_INT}, got {self.offset}", "offset",
            )
        if self.limit <= 0:
            raise ValidationError(f"limit must be > 0, got {self.limit}", "limit")
        if self.limit > MAX_STORE_INT:
            raise ValidationError(
                f"limit must be <= {MAX_STORE_INT}, got {self.limit}", "limit",
            )

    @classmethod
    def of(
        cls,
        offset: int,
        limit: int,
        sort: Sequence[SortOrder] = (),
        max_limit: int | None = None,
    ) -> "PageRequest":
        """Build a validated page request. Raises ValidationError on bad input."""
        if max_limit is not None and limit > max_limit:
            raise ValidationError(
                f"limit must be <= {max_limit}, got {limit}", "limit",
            )
        return cls(offset=offset, limit=limit, sort=tuple(sort))

    @classmethod
    def of_page(
        cls, page: int, size: int, sort: Sequence[SortOrder] = (),
    ) -> "PageRequest":
        """Build from a zero-based page number and page size."""
        if page < 0:
            raise ValidationError(f"page must be >= 0, got {page}", "page")
        if size <= 0:
            raise ValidationError(f"size must be > 0, got {size}", "size")
        return cls.of(page * size, size, sort)


def known_total(page_request: PageRequest, content_size: int) -> int | None:
    """Total implied by a content slice, or None when a count is required.

    A slice shorter than the limit is the tail of the result set: on the first
    page it is the whole set, on a later page it ends at offset + size. An
    empty slice past the first page proves nothing (the offset may overshoot).
    """
    if content_size >= page_request.limit:
        return None
    if page_request.offset == 0:
        return content_size
    if content_size > 0:
        return page_request.offset + content_size
    return None


def reconcile_total(page_request: PageRequest, content_size: int, total: int) -> int:
    """Raise a counted total to cover the rows already fetched.

    Content and count are separate reads; rows deleted in between leave the
    count below offset + content_size. The fetched slice wins.
    """
    if content_size == 0:
        return total
    return max(total, page_request.offset + content_size)


@dataclass(frozen=True)
class Page(Generic[T]):
    """A content slice plus the total count and the request that produced it."""
    content: tuple[T, ...]
    total: int
    offset: int
    limit: int

    def __post_init__(self):
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if len(self.content) > self.limit:
            raise ValueError(
                f"content size {len(self.content)} exceeds limit {self.limit}",
            )
        if len(self.content) > self.total:
            raise ValueError(
                f"content size {len(self.content)} exceeds total {self.total}",
            )

    @classmethod
    def of(cls, content: Sequence[T], page_request: PageRequest, total: int) -> "Page[T]":
        return cls(
            content=tuple(content), total=total,
            offset=page_request.offset, limit=page_request.limit,
        )

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @property
    def page_number(self) -> int:
        return self.offset // self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def is_first(self) -> bool:
        return self.offset == 0

    @property
    def is_last(self) -> bool:
        return self.offset + self.limit >= self.total

    @property
    def has_next(self) -> bool:
        return not self.is_last

    @property
    def has_previous(self) -> bool:
        return self.offset > 0
