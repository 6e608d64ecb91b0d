"""Startup persistence: single / bulk create, read, partial update, delete."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealtracker.config import UPLOAD_BATCH_SIZE
from dealtracker.database import upsert_insert
from dealtracker.errors import Conflict, NotFound
from dealtracker.models import Startup
from dealtracker.schemas import StartupCreate, StartupDetails, StartupUpdate
from dealtracker.services.ranking import apply_ranks

logger = logging.getLogger(__name__)

# JSON columns may be cleared with an explicit null; everything else may not
CLEARABLE_FIELDS = set(StartupDetails.model_fields)


def _startup_row(payload: StartupCreate) -> dict:
    row = payload.model_dump()
    if not row.get("id"):
        row["id"] = uuid.uuid4().hex
    return row


def _insert_ignoring_duplicates(session: AsyncSession):
    return (
        upsert_insert(session, Startup.__table__)
        .on_conflict_do_nothing(index_elements=["id"])
        .returning(Startup.__table__.c.id)
    )


async def get_startup(session: AsyncSession, startup_id: str) -> Startup:
    startup = await session.get(
        Startup,
        startup_id,
        options=[selectinload(Startup.threshold_issues)],
        populate_existing=True,
    )
    if startup is None:
        raise NotFound("Startup not found")
    return startup


async def create_startup(session: AsyncSession, payload: StartupCreate) -> Startup:
    """Insert one startup and refresh all ranks in the same transaction."""
    row = _startup_row(payload)
    if await session.get(Startup, row["id"]) is not None:
        raise Conflict(f"Startup with id '{row['id']}' already exists")

    startup = Startup(**row)
    session.add(startup)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        # Only a concurrent insert of the same id is a conflict
        if await session.get(Startup, row["id"]) is not None:
            logger.warning("Startup insert raced on id %s: %s", row["id"], e.orig)
            raise Conflict(f"Startup with id '{row['id']}' already exists") from e
        raise

    await apply_ranks(session)
    await session.commit()
    logger.info("Created startup %s and recalculated ranks", startup.id)
    return await get_startup(session, startup.id)


async def bulk_create_startups(
    session: AsyncSession,
    payloads: list[StartupCreate],
    batch_size: int = UPLOAD_BATCH_SIZE,
) -> int:
    """
    Insert many startups, silently skipping ids that already exist.

    Returns the number of rows actually inserted. Ranks are left for the
    explicit recalculation endpoint.
    """
    rows = [_startup_row(p) for p in payloads]
    if not rows:
        return 0

    stmt = _insert_ignoring_duplicates(session)
    inserted = 0
    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        result = await session.execute(stmt, batch)
        batch_inserted = len(result.all())
        inserted += batch_inserted
        logger.debug(
            "Inserted batch %d: %d / %d rows",
            start // batch_size + 1, batch_inserted, len(batch),
        )

    await session.commit()
    logger.info("Bulk inserted %d of %d startups (rank recalculation deferred)", inserted, len(rows))
    return inserted


async def update_startup(
    session: AsyncSession, startup_id: str, payload: StartupUpdate
) -> Startup:
    startup = await get_startup(session, startup_id)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if value is None and key not in CLEARABLE_FIELDS:
            continue
        setattr(startup, key, value)
    await session.commit()
    return await get_startup(session, startup_id)


async def delete_startup(session: AsyncSession, startup_id: str) -> None:
    """Delete a startup; its issues and shortlist rows go with it (FK cascade)."""
    result = await session.execute(
        delete(Startup)
        .where(Startup.id == startup_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        await session.rollback()
        raise NotFound("Startup not found")
    await session.commit()
    logger.info("Deleted startup %s", startup_id)
