"""Generated outreach / rejection messages for a startup."""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import APIRouter, Depends

from dealtracker.llm_client import LLMClient, get_llm_client
from dealtracker.schemas import (
    OutreachRequest,
    OutreachResponse,
    RejectionRequest,
    RejectionResponse,
)
from dealtracker.services.messages import generate_outreach_messages, generate_rejection_messages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


@router.post("/generate-outreach", response_model=OutreachResponse)
async def generate_outreach(req: OutreachRequest, llm: LLMClient = Depends(get_llm_client)):
    logger.info("Generating outreach messages for %s (tone=%s)", req.startup.name, req.tone)
    messages = await generate_outreach_messages(llm, req.startup, req.tone)
    return OutreachResponse(messages=messages, generated_at=dt.datetime.now(dt.timezone.utc))


@router.post("/generate-rejection", response_model=RejectionResponse)
async def generate_rejection(req: RejectionRequest, llm: LLMClient = Depends(get_llm_client)):
    logger.info("Generating rejection messages for %s (tone=%s)", req.startup.name, req.tone)
    messages = await generate_rejection_messages(llm, req.startup, req.tone)
    return RejectionResponse(messages=messages, generated_at=dt.datetime.now(dt.timezone.utc))
