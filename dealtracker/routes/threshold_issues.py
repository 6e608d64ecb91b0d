"""Threshold issue endpoints. All writes require an authenticated user."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.auth import require_user
from dealtracker.database import get_session
from dealtracker.llm_client import LLMClient, get_llm_client
from dealtracker.schemas import (
    GenerateIssuesResponse,
    MessageResponse,
    ThresholdIssueCreate,
    ThresholdIssueOut,
    ThresholdIssueUpdate,
)
from dealtracker.services import threshold_issues

router = APIRouter(tags=["threshold-issues"], dependencies=[Depends(require_user)])


@router.post("/threshold-issues", status_code=201, response_model=ThresholdIssueOut)
async def create_issue(req: ThresholdIssueCreate, session: AsyncSession = Depends(get_session)):
    issue = await threshold_issues.create_issue(session, req)
    return ThresholdIssueOut.model_validate(issue)


@router.put("/threshold-issues/{issue_id}", response_model=ThresholdIssueOut)
async def update_issue(
    issue_id: str,
    req: ThresholdIssueUpdate,
    session: AsyncSession = Depends(get_session),
):
    issue = await threshold_issues.update_issue(session, issue_id, req)
    return ThresholdIssueOut.model_validate(issue)


@router.delete("/threshold-issues/{issue_id}", response_model=MessageResponse)
async def delete_issue(issue_id: str, session: AsyncSession = Depends(get_session)):
    await threshold_issues.delete_issue(session, issue_id)
    return MessageResponse(message="Threshold issue deleted successfully")


@router.post("/startups/{startup_id}/generate-issues", response_model=GenerateIssuesResponse)
async def generate_issues(
    startup_id: str,
    session: AsyncSession = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    """Extract deal breakers from the startup's scorecard commentary via the LLM."""
    result = await threshold_issues.generate_issues(session, startup_id, llm)
    return GenerateIssuesResponse(**result)
