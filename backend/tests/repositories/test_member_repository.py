"""Member Repository — search, both paging strategies, count short-circuit, bulk mutations.

Tests cover:
    - Unfiltered search returns every member, including members without a team
    - Age range 20..40 returns member2..member4; first page of 2 is member2, member3, total 3
    - len(content) == min(limit, max(0, total - offset)) for both strategies
    - Pages of a fixed size partition the unpaged result (no duplicates, no gaps)
    - SPLIT skips the count statement when the slice proves the total
    - A count smaller than the fetched slice is raised to cover it
    - The count statement joins Team only for a team-name filter
    - Invalid pagination / condition / sort fail before any statement executes
    - Bulk statements leave already-loaded instances stale until refreshed
"""

import pytest

from member_query.core.domain_types import MemberId, PageStrategy, SortDirection
from member_query.core.errors import ValidationError
from member_query.core.pagination import PageRequest, SortOrder
from member_query.core.search_condition import MemberSearchCondition
from member_query.models.member import Member
from member_query.models.team import Team
from member_query.repositories.member_repository import MemberRepository

AGE_20_TO_40 = MemberSearchCondition(age_goe=20, age_loe=40)
STRATEGIES = [PageStrategy.SIMPLE, PageStrategy.SPLIT]


@pytest.fixture
def repo(test_db):
    return MemberRepository(test_db)


@pytest.fixture
async def teamless_member(test_db, seed_members):
    loner = Member("loner", 50)
    test_db.add(loner)
    await test_db.commit()
    return loner


def _names(rows) -> list[str]:
    return [r.username for r in rows]


# ─── search ──────────────────────────────────────────────────────

async def test_empty_condition_returns_all_members(repo, seed_members):
    result = await repo.search(MemberSearchCondition())
    assert _names(result) == ["member1", "member2", "member3", "member4"]


async def test_blank_fields_return_all_members(repo, seed_members):
    result = await repo.search(MemberSearchCondition(username=" ", team_name=""))
    assert len(result) == 4


async def test_age_range_scenario(repo, seed_members):
    result = await repo.search(AGE_20_TO_40)
    assert _names(result) == ["member2", "member3", "member4"]


async def test_projection_carries_team_columns(repo, seed_members):
    result = await repo.search(MemberSearchCondition(username="member3"))
    assert len(result) == 1
    dto = result[0]
    assert dto.member_id == seed_members["members"][2].id
    assert dto.age == 30
    assert dto.team_id == seed_members["teamB"].id
    assert dto.team_name == "teamB"


async def test_team_name_filter(repo, seed_members):
    result = await repo.search(MemberSearchCondition(team_name="teamB"))
    assert _names(result) == ["member3", "member4"]


async def test_all_filters_combined(repo, seed_members):
    condition = MemberSearchCondition(
        username="member2", team_name="teamA", age_goe=10, age_loe=20,
    )
    assert _names(await repo.search(condition)) == ["member2"]


async def test_member_without_team_is_left_joined(repo, teamless_member):
    result = await repo.search(MemberSearchCondition())
    assert len(result) == 5
    loner = result[-1]
    assert loner.username == "loner"
    assert loner.team_id is None
    assert loner.team_name is None


async def test_team_filter_excludes_member_without_team(repo, teamless_member):
    result = await repo.search(MemberSearchCondition(team_name="teamA"))
    assert "loner" not in _names(result)


async def test_member_without_team_has_no_team(repo, teamless_member):
    loaded = await repo.find_by_id(MemberId(teamless_member.id))
    assert loaded.team is None
    assert loaded.team_id is None


async def test_no_match_is_empty_not_error(repo, seed_members):
    assert await repo.search(MemberSearchCondition(username="nobody")) == []


async def test_search_sorted_descending(repo, seed_members):
    result = await repo.search(
        MemberSearchCondition(), sort=[SortOrder("age", SortDirection.DESC)],
    )
    assert _names(result) == ["member4", "member3", "member2", "member1"]


async def test_search_sorted_by_team_then_age(repo, seed_members):
    result = await repo.search(
        MemberSearchCondition(),
        sort=[
            SortOrder("team_name", SortDirection.DESC),
            SortOrder("age", SortDirection.DESC),
        ],
    )
    assert _names(result) == ["member4", "member3", "member2", "member1"]


async def test_unknown_sort_property_rejected_before_query(repo, seed_members, statements):
    statements.clear()
    with pytest.raises(ValidationError) as exc:
        await repo.search(MemberSearchCondition(), sort=[SortOrder("password")])
    assert exc.value.field == "sort"
    assert statements.selects() == []


async def test_inverted_age_range_rejected_before_query(repo, seed_members, statements):
    statements.clear()
    with pytest.raises(ValidationError):
        await repo.search(MemberSearchCondition(age_goe=40, age_loe=20))
    assert statements.selects() == []


async def test_count_matches_search(repo, seed_members):
    assert await repo.count(AGE_20_TO_40) == 3
    assert await repo.count(MemberSearchCondition()) == 4
    assert await repo.count(MemberSearchCondition(team_name="teamA")) == 2


# ─── paging: shared properties ───────────────────────────────────

@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_first_page_scenario(repo, seed_members, strategy):
    page = await repo.search_page(AGE_20_TO_40, PageRequest.of(0, 2), strategy)
    assert _names(page.content) == ["member2", "member3"]
    assert page.total == 3
    assert page.offset == 0
    assert page.limit == 2


@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_content_length_matches_window(repo, seed_members, strategy):
    for condition in (MemberSearchCondition(), AGE_20_TO_40):
        expected_total = await repo.count(condition)
        for limit in range(1, 6):
            for offset in range(0, 7):
                page = await repo.search_page(
                    condition, PageRequest.of(offset, limit), strategy,
                )
                assert page.total == expected_total
                assert len(page.content) == min(
                    limit, max(0, expected_total - offset),
                )


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize("size", [1, 2, 3, 5])
async def test_pages_partition_the_result(repo, teamless_member, strategy, size):
    condition = MemberSearchCondition(age_goe=15)
    expected = [dto.member_id for dto in await repo.search(condition)]

    seen = []
    offset = 0
    while True:
        page = await repo.search_page(condition, PageRequest.of(offset, size), strategy)
        seen.extend(dto.member_id for dto in page.content)
        if page.is_last:
            break
        offset += size

    assert seen == expected
    assert len(set(seen)) == len(seen)


@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_no_match_page_is_empty_with_zero_total(repo, seed_members, strategy):
    page = await repo.search_page(
        MemberSearchCondition(username="nobody"), PageRequest.of(0, 10), strategy,
    )
    assert page.content == ()
    assert page.total == 0


@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_negative_offset_fails_before_query(repo, seed_members, statements, strategy):
    statements.clear()
    with pytest.raises(ValidationError):
        await repo.search_page(MemberSearchCondition(), PageRequest.of(-1, 10), strategy)
    assert statements.selects() == []


@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_inverted_range_page_fails_before_query(repo, seed_members, statements, strategy):
    statements.clear()
    with pytest.raises(ValidationError):
        await repo.search_page(
            MemberSearchCondition(age_goe=40, age_loe=20), PageRequest.of(0, 10), strategy,
        )
    assert statements.selects() == []


@pytest.mark.parametrize("strategy", STRATEGIES)
async def test_age_beyond_store_range_fails_before_query(repo, seed_members, statements, strategy):
    statements.clear()
    with pytest.raises(ValidationError) as exc:
        await repo.search_page(
            MemberSearchCondition(age_goe=2**63), PageRequest.of(0, 10), strategy,
        )
    assert exc.value.field == "age_goe"
    assert statements.selects() == []


# ─── SPLIT strategy: count short-circuit ─────────────────────────

async def test_split_skips_count_when_first_page_not_full(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_complex(AGE_20_TO_40, PageRequest.of(0, 10))
    assert page.total == 3
    assert len(page.content) == 3
    assert len(statements.selects()) == 1


async def test_split_skips_count_on_short_last_page(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_complex(AGE_20_TO_40, PageRequest.of(2, 2))
    assert _names(page.content) == ["member4"]
    assert page.total == 3
    assert len(statements.selects()) == 1


async def test_split_counts_when_page_is_full(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_complex(AGE_20_TO_40, PageRequest.of(0, 2))
    assert page.total == 3
    assert len(statements.selects()) == 2


async def test_split_counts_when_offset_overshoots(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_complex(AGE_20_TO_40, PageRequest.of(10, 2))
    assert page.content == ()
    assert page.total == 3
    assert len(statements.selects()) == 2


async def test_split_total_covers_rows_deleted_before_count(repo, seed_members, monkeypatch):
    async def shrunk_count(condition, predicate):
        return 1

    monkeypatch.setattr(repo, "_count", shrunk_count)
    page = await repo.search_page_complex(MemberSearchCondition(), PageRequest.of(0, 2))
    assert _names(page.content) == ["member1", "member2"]
    assert page.total == 2
    assert page.is_last


async def test_split_later_page_total_covers_offset(repo, seed_members, monkeypatch):
    async def shrunk_count(condition, predicate):
        return 0

    monkeypatch.setattr(repo, "_count", shrunk_count)
    page = await repo.search_page_complex(MemberSearchCondition(), PageRequest.of(2, 2))
    assert _names(page.content) == ["member3", "member4"]
    assert page.total == 4


async def test_count_omits_team_join_without_team_filter(repo, seed_members, statements):
    statements.clear()
    await repo.search_page_complex(AGE_20_TO_40, PageRequest.of(0, 1))
    content_sql, count_sql = statements.selects()
    assert "JOIN" in content_sql.upper()
    assert "JOIN" not in count_sql.upper()
    assert "teams" not in count_sql


async def test_count_joins_team_for_team_filter(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_complex(
        MemberSearchCondition(team_name="teamA"), PageRequest.of(0, 1),
    )
    assert page.total == 2
    count_sql = statements.selects()[1]
    assert "JOIN" in count_sql.upper()


async def test_count_without_join_still_counts_teamless_members(repo, teamless_member):
    page = await repo.search_page_complex(
        MemberSearchCondition(age_goe=20), PageRequest.of(0, 1),
    )
    assert page.total == 4


# ─── SIMPLE strategy: one statement ──────────────────────────────

async def test_simple_uses_one_statement(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_simple(AGE_20_TO_40, PageRequest.of(0, 2))
    assert page.total == 3
    assert len(statements.selects()) == 1


async def test_simple_counts_when_offset_overshoots(repo, seed_members, statements):
    statements.clear()
    page = await repo.search_page_simple(AGE_20_TO_40, PageRequest.of(10, 2))
    assert page.content == ()
    assert page.total == 3
    assert len(statements.selects()) == 2


async def test_simple_respects_sort(repo, seed_members):
    page = await repo.search_page_simple(
        MemberSearchCondition(),
        PageRequest.of(0, 2, sort=[SortOrder("age", SortDirection.DESC)]),
    )
    assert _names(page.content) == ["member4", "member3"]
    assert page.total == 4


# ─── persistence ─────────────────────────────────────────────────

async def test_find_by_username(repo, seed_members):
    found = await repo.find_by_username("member1")
    assert [m.age for m in found] == [10]


async def test_find_all_in_id_order(repo, seed_members):
    assert [m.username for m in await repo.find_all()] == [
        "member1", "member2", "member3", "member4",
    ]


async def test_find_projection(repo, seed_members):
    member = seed_members["members"][0]
    dto = await repo.find_projection(MemberId(member.id))
    assert dto.username == "member1"
    assert dto.team_name == "teamA"
    assert await repo.find_projection(MemberId(9999)) is None


async def test_save_and_change_team(repo, test_db, seed_members):
    team_c = await repo.save_team(Team(name="teamC"))
    member = await repo.save(Member("member5", 55, team_c))
    await test_db.commit()

    assert member in team_c.members
    member.change_team(seed_members["teamA"])
    await test_db.commit()

    result = await repo.search(MemberSearchCondition(team_name="teamA"))
    assert "member5" in _names(result)


async def test_save_all(repo, test_db):
    team = await repo.save_team(Team(name="teamZ"))
    saved = await repo.save_all([Member("z1", 1, team), Member("z2", 2, team)])
    await test_db.commit()
    assert all(m.id is not None for m in saved)
    assert await repo.count(MemberSearchCondition(team_name="teamZ")) == 2


# ─── bulk mutations ──────────────────────────────────────────────

async def test_bulk_add_age_leaves_loaded_instances_stale(repo, test_db, seed_members):
    member1 = seed_members["members"][0]

    assert await repo.bulk_add_age(1) == 4
    await test_db.commit()

    # identity map still holds the pre-update value
    assert member1.age == 10
    assert (await repo.find_by_id(MemberId(member1.id))).age == 10

    await test_db.refresh(member1)
    assert member1.age == 11


async def test_bulk_add_age_visible_to_projection_queries(repo, test_db, seed_members):
    await repo.bulk_add_age(1)
    await test_db.commit()
    result = await repo.search(MemberSearchCondition(age_goe=41))
    assert _names(result) == ["member4"]


async def test_bulk_rename_younger_than(repo, test_db, seed_members):
    assert await repo.bulk_rename_younger_than(25, "non-member") == 2
    await test_db.commit()
    assert await repo.count(MemberSearchCondition(username="non-member")) == 2


async def test_bulk_delete_younger_than(repo, test_db, seed_members):
    assert await repo.bulk_delete_younger_than(20) == 1
    await test_db.commit()
    assert _names(await repo.search(MemberSearchCondition())) == [
        "member2", "member3", "member4",
    ]
