from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from dealtracker.errors import RecalculationFailed
from dealtracker.models import Startup
from dealtracker.services.ranking import (
    StartupFilters,
    coerce_positive_int,
    query_startups,
    recalculate_ranks,
)


async def _seed(session, rows):
    session.add_all([Startup(id=sid, name=name, score=score, sector=sector) for sid, name, score, sector in rows])
    await session.commit()


async def _ranks(session) -> dict:
    result = await session.execute(select(Startup.id, Startup.rank))
    return {sid: rank for sid, rank in result.all()}


SEED = [
    ("c", "Gamma", 70.0, "Fintech"),
    ("a", "Alpha", 90.0, "Health"),
    ("b", "Beta", 90.0, "Fintech"),
    ("d", "Delta", 10.0, "Climate"),
    ("e", "Echo", 55.5, "Fintech"),
]


@pytest.mark.asyncio
async def test_recalculate_assigns_dense_ranks_by_score_then_name(session):
    await _seed(session, SEED)

    result = await recalculate_ranks(session)

    assert result.count == len(SEED)
    assert result.duration_seconds >= 0
    assert await _ranks(session) == {"a": 1, "b": 2, "c": 3, "e": 4, "d": 5}


@pytest.mark.asyncio
async def test_identical_score_and_name_fall_back_to_id(session):
    await _seed(session, [("z2", "Twin", 40.0, ""), ("z1", "Twin", 40.0, ""), ("top", "Zed", 99.0, "")])

    await recalculate_ranks(session)

    assert await _ranks(session) == {"top": 1, "z1": 2, "z2": 3}


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(session):
    await _seed(session, SEED)

    await recalculate_ranks(session)
    first = await _ranks(session)
    await recalculate_ranks(session)

    assert await _ranks(session) == first


@pytest.mark.asyncio
async def test_recalculate_on_empty_collection(session):
    result = await recalculate_ranks(session)
    assert result.count == 0


@pytest.mark.asyncio
async def test_failed_recalculation_leaves_ranks_untouched(session, monkeypatch):
    await _seed(session, SEED)
    await recalculate_ranks(session)
    before = await _ranks(session)

    async def broken_execute(*args, **kwargs):
        raise OperationalError("UPDATE startups ...", {}, Exception("database is locked"))

    monkeypatch.setattr(session, "execute", broken_execute)
    with pytest.raises(RecalculationFailed) as excinfo:
        await recalculate_ranks(session)
    monkeypatch.undo()

    body = excinfo.value.to_dict()
    assert body["success"] is False
    assert body["error"]
    assert "durationSeconds" in body
    assert await _ranks(session) == before


@pytest.mark.asyncio
async def test_query_orders_by_rank_and_pages(session):
    await _seed(session, SEED)
    await recalculate_ranks(session)

    page1 = await query_startups(session, page=1, limit=2)
    page3 = await query_startups(session, page=3, limit=2)

    assert [s.id for s in page1.startups] == ["a", "b"]
    assert [s.id for s in page3.startups] == ["d"]
    assert page1.pagination.total == 5
    assert page1.pagination.total_pages == 3


@pytest.mark.asyncio
async def test_query_filters_are_combined(session):
    await _seed(session, SEED)
    await recalculate_ranks(session)

    page = await query_startups(session, StartupFilters(sector="Fintech", min_score=60))

    assert [s.id for s in page.startups] == ["b", "c"]
    assert page.pagination.total == 2


@pytest.mark.asyncio
async def test_unranked_startups_are_listed_last(session):
    await _seed(session, SEED[:2])
    await recalculate_ranks(session)
    await _seed(session, [("new", "Aardvark", 100.0, "")])

    page = await query_startups(session)

    assert [s.id for s in page.startups] == ["a", "c", "new"]
    assert page.startups[-1].rank is None


@pytest.mark.parametrize(
    "value, expected",
    [(None, 50), ("", 50), ("abc", 50), ("0", 1), ("-4", 1), ("7", 7), (" 3 ", 3)],
)
def test_coerce_positive_int(value, expected):
    assert coerce_positive_int(value, 50) == expected
