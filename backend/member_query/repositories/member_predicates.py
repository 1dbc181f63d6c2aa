"""Member Predicates — optional filter fragments over Member (left-joined to Team).

Invariants:
    - Each builder returns a boolean clause, or None when its input is absent
    - None is never placed inside an expression tree: combine() drops it before and_()
    - combine() of nothing is None, which apply_predicate() treats as "match all rows"
    - Blank strings count as absent (core.search_condition.has_text)

Design Decisions:
    - None as the absent fragment instead of true(): the AND list simply omits it,
      so a fully empty condition yields a statement with no WHERE clause at all
    - Team columns are referenced directly; callers must join Team when
      team_name_eq() contributes a fragment
"""

from typing import TypeVar

from sqlalchemy import ColumnElement, Select, and_

from member_query.core.search_condition import MemberSearchCondition, has_text
from member_query.models.member import Member
from member_query.models.team import Team

Fragment = ColumnElement[bool] | None
StmtT = TypeVar("StmtT", bound=Select)


def username_eq(username: str | None) -> Fragment:
    return Member.username == username if has_text(username) else None


def team_name_eq(team_name: str | None) -> Fragment:
    return Team.name == team_name if has_text(team_name) else None


def age_goe(lower: int | None) -> Fragment:
    return Member.age >= lower if lower is not None else None


def age_loe(upper: int | None) -> Fragment:
    return Member.age <= upper if upper is not None else None


def age_between(lower: int | None, upper: int | None) -> Fragment:
    """Inclusive age range; either bound may be absent."""
    return combine(age_goe(lower), age_loe(upper))


def combine(*fragments: Fragment) -> Fragment:
    """AND together the present fragments. Returns None when none are present."""
    present = [f for f in fragments if f is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return and_(*present)


def condition_fragments(condition: MemberSearchCondition) -> list[Fragment]:
    """The four per-field fragments of a search condition, absent ones included."""
    return [
        username_eq(condition.username),
        team_name_eq(condition.team_name),
        age_goe(condition.age_goe),
        age_loe(condition.age_loe),
    ]


def condition_predicate(condition: MemberSearchCondition) -> Fragment:
    return combine(*condition_fragments(condition))


def apply_predicate(stmt: StmtT, predicate: Fragment) -> StmtT:
    """Attach the predicate as a WHERE clause, or leave stmt unfiltered."""
    if predicate is None:
        return stmt
    return stmt.where(predicate)
