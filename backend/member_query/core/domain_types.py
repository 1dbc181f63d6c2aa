"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - MemberId wraps the integer member primary key
    - Integers bound into statements fit MIN_STORE_INT..MAX_STORE_INT
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: parse straight from query strings and settings
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

MemberId = NewType("MemberId", int)


# ─── Enums ───────────────────────────────────────────────────────

class SortDirection(str, Enum):
    """Ordering direction for a sort property."""
    ASC = "asc"
    DESC = "desc"


class PageStrategy(str, Enum):
    """How a paged search obtains its total count.

    SIMPLE: one statement slices the rows and carries the total alongside.
    SPLIT: content and count are separate statements; the count is skipped
    when the content already determines the total.
    """
    SIMPLE = "simple"
    SPLIT = "split"


# ─── Bounds ──────────────────────────────────────────────────────

# Integer columns and bind parameters are signed 64-bit in every supported store.
MIN_STORE_INT = -(2**63)
MAX_STORE_INT = 2**63 - 1
