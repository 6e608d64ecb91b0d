"""Shortlist endpoints -- who shortlisted a startup, toggle for the current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.auth import require_user
from dealtracker.database import get_session
from dealtracker.schemas import (
    Shortlister,
    ShortlistersResponse,
    ShortlistToggle,
    ShortlistToggleResponse,
)
from dealtracker.services import shortlist

router = APIRouter(prefix="/shortlist", tags=["shortlist"])


@router.get("", response_model=ShortlistersResponse)
async def get_shortlisters(
    startup_id: str = Query(..., alias="startupId", min_length=1),
    session: AsyncSession = Depends(get_session),
):
    rows = await shortlist.list_shortlisters(session, startup_id)
    return ShortlistersResponse(
        count=len(rows),
        shortlisted_by=[Shortlister(user_id=r.user_id, shortlisted_at=r.created_at) for r in rows],
    )


@router.post("", response_model=ShortlistToggleResponse)
async def toggle_shortlist(
    req: ShortlistToggle,
    user_id: str = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    state = await shortlist.set_shortlisted(session, user_id, req.startup_id, req.shortlisted)
    return ShortlistToggleResponse(shortlisted=state)
