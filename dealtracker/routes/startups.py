"""Startup endpoints -- filtered listing, create (single / bulk / CSV), rank recalculation."""

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.auth import get_current_user_id
from dealtracker.database import get_session
from dealtracker.schemas import (
    BulkCreateResponse,
    CsvUploadRequest,
    CsvUploadResponse,
    MessageResponse,
    RecalculateResponse,
    StartupCreate,
    StartupOut,
    StartupPage,
    StartupUpdate,
)
from dealtracker.services import csv_import, ranking, startups as startup_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/startups", tags=["startups"])


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


@router.get("", response_model=StartupPage)
async def list_startups(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sector: Optional[str] = None,
    pipeline_stage: Optional[str] = Query(default=None, alias="pipelineStage"),
    search: Optional[str] = None,
    min_score: Optional[str] = Query(default=None, alias="minScore"),
    max_score: Optional[str] = Query(default=None, alias="maxScore"),
    session: AsyncSession = Depends(get_session),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    """Rank-ordered page of startups; page/limit junk falls back to defaults."""
    filters = ranking.StartupFilters(
        sector=sector or None,
        pipeline_stage=pipeline_stage or None,
        search=search or None,
        min_score=_optional_float(min_score),
        max_score=_optional_float(max_score),
    )
    return await ranking.query_startups(session, filters, page=page, limit=limit, user_id=user_id)


@router.post("", status_code=201, response_model=Union[StartupOut, BulkCreateResponse])
async def create_startups(
    body: Union[list[StartupCreate], StartupCreate] = Body(...),
    session: AsyncSession = Depends(get_session),
):
    """
    A JSON array is a bulk insert (existing ids skipped, ranks deferred);
    a single object is inserted and all ranks are recalculated.
    """
    if isinstance(body, list):
        logger.info("Bulk inserting %d startups ...", len(body))
        count = await startup_store.bulk_create_startups(session, body)
        return BulkCreateResponse(message=f"Successfully created {count} startups", count=count)

    startup = await startup_store.create_startup(session, body)
    return StartupOut.model_validate(startup)


@router.post("/recalculate-ranks", response_model=RecalculateResponse)
async def recalculate_ranks(session: AsyncSession = Depends(get_session)):
    result = await ranking.recalculate_ranks(session)
    return RecalculateResponse(
        message=f"Successfully recalculated ranks for {result.count} startups",
        count=result.count,
        duration_seconds=round(result.duration_seconds, 3),
    )


@router.post("/upload", status_code=201, response_model=CsvUploadResponse)
async def upload_csv(req: CsvUploadRequest, session: AsyncSession = Depends(get_session)):
    result = await csv_import.import_csv(session, req.csv_text, req.mapping)
    return CsvUploadResponse(**result)


@router.get("/{startup_id}", response_model=StartupOut)
async def get_startup(
    startup_id: str,
    session: AsyncSession = Depends(get_session),
    user_id: Optional[str] = Depends(get_current_user_id),
):
    startup = await startup_store.get_startup(session, startup_id)
    marked = await ranking.shortlisted_ids(session, user_id, [startup.id])
    return StartupOut.model_validate(startup).model_copy(update={"shortlisted": startup.id in marked})


@router.put("/{startup_id}", response_model=StartupOut)
async def update_startup(
    startup_id: str,
    req: StartupUpdate,
    session: AsyncSession = Depends(get_session),
):
    startup = await startup_store.update_startup(session, startup_id, req)
    return StartupOut.model_validate(startup)


@router.delete("/{startup_id}", response_model=MessageResponse)
async def delete_startup(startup_id: str, session: AsyncSession = Depends(get_session)):
    await startup_store.delete_startup(session, startup_id)
    return MessageResponse(message="Startup deleted successfully")
