"""Per-user shortlist toggling. Both directions are idempotent."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.database import upsert_insert
from dealtracker.errors import NotFound
from dealtracker.models import Startup, UserShortlist

logger = logging.getLogger(__name__)


async def set_shortlisted(
    session: AsyncSession, user_id: str, startup_id: str, shortlisted: bool
) -> bool:
    if shortlisted:
        if await session.get(Startup, startup_id) is None:
            raise NotFound("Startup not found")
        stmt = (
            upsert_insert(session, UserShortlist.__table__)
            .values(user_id=user_id, startup_id=startup_id)
            .on_conflict_do_nothing(index_elements=["user_id", "startup_id"])
        )
        await session.execute(stmt)
    else:
        await session.execute(
            delete(UserShortlist)
            .where(UserShortlist.user_id == user_id, UserShortlist.startup_id == startup_id)
            .execution_options(synchronize_session=False)
        )
    await session.commit()
    logger.info("User %s %s startup %s", user_id, "shortlisted" if shortlisted else "unshortlisted", startup_id)
    return shortlisted


async def list_shortlisters(session: AsyncSession, startup_id: str) -> list[UserShortlist]:
    rows = await session.execute(
        select(UserShortlist)
        .where(UserShortlist.startup_id == startup_id)
        .order_by(UserShortlist.created_at.desc(), UserShortlist.id.desc())
    )
    return list(rows.scalars().all())
