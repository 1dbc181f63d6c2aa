"""Search Condition — the optional filters of a member search, and their validation.

Invariants:
    - Every field is independently optional; None means "do not filter"
    - Blank strings (empty or whitespace-only) are treated exactly like None
    - Pure: no IO, no SQLAlchemy — predicates are built in repositories/

Design Decisions:
    - Frozen dataclass: the condition is a transient value object, hashable and comparable
    - age_goe > age_loe is rejected rather than silently returning an empty result
    - Age bounds outside the store integer range are rejected before any statement binds them
"""

from dataclasses import dataclass

from member_query.core.domain_types import MAX_STORE_INT, MIN_STORE_INT
from member_query.core.errors import ValidationError


def has_text(value: str | None) -> bool:
    """True when value contains at least one non-whitespace character."""
    return value is not None and value.strip() != ""


@dataclass(frozen=True)
class MemberSearchCondition:
    """Optional search criteria over members and their team."""
    username: str | None = None
    team_name: str | None = None
    age_goe: int | None = None
    age_loe: int | None = None

    def is_empty(self) -> bool:
        """True when no field would contribute a filter."""
        return (
            not has_text(self.username)
            and not has_text(self.team_name)
            and self.age_goe is None
            and self.age_loe is None
        )


def validate_condition(condition: MemberSearchCondition) -> MemberSearchCondition:
    """Reject out-of-range or inverted age bounds. Returns the condition for chaining."""
    for name in ("age_goe", "age_loe"):
        bound = getattr(condition, name)
        if bound is not None and not MIN_STORE_INT <= bound <= MAX_STORE_INT:
            raise ValidationError(
                f"{name} must be within {MIN_STORE_INT}..{MAX_STORE_INT}, got {bound}",
                name,
            )
    if (
        condition.age_goe is not None
        and condition.age_loe is not None
        and condition.age_goe > condition.age_loe
    ):
        raise ValidationError(
            f"age_goe ({condition.age_goe}) must not exceed "
            f"age_loe ({condition.age_loe})",
            "age_goe",
        )
    return condition


def count_requires_team_join(condition: MemberSearchCondition) -> bool:
    """Decide whether a count query must join Team.

    Member -> Team is a to-one left join, so it never changes the number of
    member rows. The join is only needed when a Team column filters.
    """
    return has_text(condition.team_name)
