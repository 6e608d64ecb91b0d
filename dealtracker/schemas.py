"""Pydantic schemas for FastAPI request / response models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON bodies use camelCase; Python code uses snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


RiskRating = Literal["High", "Medium", "Low"]
IssueStatus = Literal["Open", "In Progress", "Resolved", "Accepted Risk"]
OutreachTone = Literal["formal", "friendly", "direct", "casual"]
RejectionTone = Literal["encouraging", "constructive", "transparent", "formal"]


# ---------------------------------------------------------------------------
# Threshold issues
# ---------------------------------------------------------------------------

class ThresholdIssueOut(CamelModel):
    id: str
    startup_id: str
    category: str
    issue: str
    risk_rating: str
    mitigation: str
    status: str = "Open"
    source: str = "Manual"
    identified_date: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ThresholdIssueUpdate(CamelModel):
    category: str = Field(min_length=1)
    issue: str = Field(min_length=1)
    risk_rating: RiskRating
    mitigation: str = Field(min_length=1)
    status: Optional[IssueStatus] = None


class ThresholdIssueCreate(ThresholdIssueUpdate):
    startup_id: str = Field(min_length=1)
    source: Optional[str] = None
    identified_date: Optional[str] = None


class GenerateIssuesResponse(CamelModel):
    message: str
    count: int = 0
    skipped: int = 0


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

class StartupDetails(CamelModel):
    """Free-form JSON sections of a startup record; null clears a section on update."""

    ai_scores: Optional[dict] = None
    rationale: Optional[Any] = None
    detailed_metrics: Optional[dict] = None
    feedback: Optional[list] = None
    initial_assessment: Optional[dict] = None
    company_info: Optional[dict] = None
    market_info: Optional[dict] = None
    product_info: Optional[dict] = None
    business_model_info: Optional[dict] = None
    sales_info: Optional[dict] = None
    team_info: Optional[dict] = None
    competitive_info: Optional[dict] = None
    risk_info: Optional[dict] = None
    opportunity_info: Optional[dict] = None
    investment_scorecard: Optional[list] = None
    investment_decision: Optional[dict] = None
    documents: Optional[Any] = None


class StartupBase(StartupDetails):
    name: str = Field(min_length=1)
    sector: str = ""
    stage: str = ""
    country: str = ""
    description: str = ""
    team: str = ""
    metrics: str = ""
    pipeline_stage: str = "Deal Flow"
    score: float = 0


class StartupCreate(StartupBase):
    # No rank field: unknown keys (rank included) are dropped on input
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)


class StartupUpdate(StartupDetails):
    name: Optional[str] = Field(default=None, min_length=1)
    sector: Optional[str] = None
    stage: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    team: Optional[str] = None
    metrics: Optional[str] = None
    pipeline_stage: Optional[str] = None
    score: Optional[float] = None


class StartupOut(StartupBase):
    id: str
    name: str
    rank: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    threshold_issues: list[ThresholdIssueOut] = []
    shortlisted: bool = False


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class StartupPage(CamelModel):
    startups: list[StartupOut]
    pagination: Pagination


class BulkCreateResponse(CamelModel):
    message: str
    count: int


class RecalculateResponse(CamelModel):
    success: bool = True
    message: str
    count: int
    duration_seconds: float


class MessageResponse(CamelModel):
    message: str


# ---------------------------------------------------------------------------
# CSV upload
# ---------------------------------------------------------------------------

class CsvUploadRequest(CamelModel):
    csv_text: str = Field(min_length=1)
    mapping: dict[str, str]


class CsvUploadResponse(CamelModel):
    message: str
    total: int
    inserted: int
    skipped: int


# ---------------------------------------------------------------------------
# Shortlist
# ---------------------------------------------------------------------------

class ShortlistToggle(CamelModel):
    startup_id: str = Field(min_length=1)
    shortlisted: bool


class ShortlistToggleResponse(CamelModel):
    success: bool = True
    shortlisted: bool


class Shortlister(CamelModel):
    user_id: str
    shortlisted_at: Optional[datetime] = None


class ShortlistersResponse(CamelModel):
    count: int
    shortlisted_by: list[Shortlister]


# ---------------------------------------------------------------------------
# Generated messages
# ---------------------------------------------------------------------------

class MessageStartup(CamelModel):
    """Startup record sent by the client for message generation."""

    id: str = Field(min_length=1)
    name: str = ""
    sector: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    score: Optional[float] = None
    rationale: Optional[Any] = None
    company_info: Optional[dict] = None
    product_info: Optional[dict] = None
    market_info: Optional[dict] = None
    business_model_info: Optional[dict] = None
    investment_decision: Optional[dict] = None
    threshold_issues: list[dict] = []


class OutreachRequest(CamelModel):
    startup: MessageStartup
    tone: OutreachTone


class RejectionRequest(CamelModel):
    startup: MessageStartup
    tone: RejectionTone


class EmailMessage(CamelModel):
    subject: str
    body: str


class LinkedInMessage(CamelModel):
    body: str


class OutreachMessages(CamelModel):
    cold_email: EmailMessage
    linkedin: LinkedInMessage
    follow_up: EmailMessage
    meeting_request: EmailMessage


class RejectionMessages(CamelModel):
    formal_rejection: EmailMessage
    constructive_feedback: EmailMessage
    future_opportunity: EmailMessage
    warm_introduction: EmailMessage


class OutreachResponse(CamelModel):
    messages: OutreachMessages
    generated_at: datetime


class RejectionResponse(CamelModel):
    messages: RejectionMessages
    generated_at: datetime
