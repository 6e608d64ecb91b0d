"""
Ranking & query service over the startup collection.

    recalculate_ranks(session)  -> dense ranks 1..N in one UPDATE statement
    query_startups(session, ..) -> filtered, rank-ordered page + pagination meta

Ranks are ordered by score DESC, then name ASC, then id ASC so that rows with
identical score and name still get a reproducible position. They are only
refreshed on demand (single inserts and the recalculate endpoint); score edits
leave them stale until then.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealtracker.config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from dealtracker.errors import RecalculationFailed
from dealtracker.models import Startup, UserShortlist
from dealtracker.schemas import Pagination, StartupOut, StartupPage

logger = logging.getLogger(__name__)

RANK_ORDER = (Startup.score.desc(), Startup.name.asc(), Startup.id.asc())


@dataclass
class RankRecalculation:
    count: int
    duration_seconds: float


@dataclass
class StartupFilters:
    sector: Optional[str] = None
    pipeline_stage: Optional[str] = None
    search: Optional[str] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None

    def conditions(self) -> list:
        conds = []
        if self.sector:
            conds.append(Startup.sector == self.sector)
        if self.pipeline_stage:
            conds.append(Startup.pipeline_stage == self.pipeline_stage)
        if self.search:
            conds.append(
                or_(
                    Startup.name.icontains(self.search, autoescape=True),
                    Startup.description.icontains(self.search, autoescape=True),
                )
            )
        if self.min_score is not None:
            conds.append(Startup.score >= self.min_score)
        if self.max_score is not None:
            conds.append(Startup.score <= self.max_score)
        return conds


# ---------------------------------------------------------------------------
# Rank recalculation
# ---------------------------------------------------------------------------

async def apply_ranks(session: AsyncSession) -> int:
    """Rewrite every rank inside the caller's transaction; returns rows updated."""
    ordered = select(
        Startup.id.label("startup_id"),
        func.row_number().over(order_by=RANK_ORDER).label("new_rank"),
    ).subquery("ordered")

    stmt = (
        update(Startup)
        .where(Startup.id == ordered.c.startup_id)
        .values(rank=ordered.c.new_rank)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount or 0


async def recalculate_ranks(session: AsyncSession) -> RankRecalculation:
    """Recompute all ranks atomically. Raises RecalculationFailed on storage errors."""
    started = time.perf_counter()
    try:
        count = await apply_ranks(session)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        duration = time.perf_counter() - started
        logger.error("Rank recalculation failed after %.3fs: %s", duration, e)
        raise RecalculationFailed(duration_seconds=duration) from e

    duration = time.perf_counter() - started
    logger.info("Recalculated ranks for %d startups in %.3fs", count, duration)
    return RankRecalculation(count=count, duration_seconds=duration)


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

def coerce_positive_int(value, default: int) -> int:
    """Parse a query-string number; junk falls back to default, <1 clamps to 1."""
    if value is None:
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return max(number, 1)


async def shortlisted_ids(
    session: AsyncSession, user_id: Optional[str], startup_ids: list[str]
) -> set[str]:
    if not user_id or not startup_ids:
        return set()
    rows = await session.execute(
        select(UserShortlist.startup_id).where(
            UserShortlist.user_id == user_id,
            UserShortlist.startup_id.in_(startup_ids),
        )
    )
    return set(rows.scalars().all())


async def query_startups(
    session: AsyncSession,
    filters: Optional[StartupFilters] = None,
    page=None,
    limit=None,
    user_id: Optional[str] = None,
) -> StartupPage:
    filters = filters or StartupFilters()
    page = coerce_positive_int(page, DEFAULT_PAGE)
    limit = min(coerce_positive_int(limit, DEFAULT_PAGE_LIMIT), MAX_PAGE_LIMIT)
    conds = filters.conditions()

    total = (
        await session.execute(select(func.count()).select_from(Startup).where(*conds))
    ).scalar() or 0
    total_pages = math.ceil(total / limit)
    pagination = Pagination(page=page, limit=limit, total=total, total_pages=total_pages)

    # Past the last page: nothing to fetch, and the offset may not fit in the driver
    if page > max(total_pages, 1):
        return StartupPage(startups=[], pagination=pagination)

    stmt = (
        select(Startup)
        .where(*conds)
        .options(selectinload(Startup.threshold_issues))
        .order_by(Startup.rank.asc().nulls_last(), Startup.name.asc(), Startup.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        # ranks are written by bulk UPDATEs that bypass the identity map
        .execution_options(populate_existing=True)
    )
    rows = (await session.execute(stmt)).scalars().all()

    marked = await shortlisted_ids(session, user_id, [s.id for s in rows])
    startups = [
        StartupOut.model_validate(s).model_copy(update={"shortlisted": s.id in marked})
        for s in rows
    ]
    return StartupPage(startups=startups, pagination=pagination)
