"""Threshold issue CRUD + AI extraction of deal breakers from scorecard commentary."""

from __future__ import annotations

import datetime as dt
import json
import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealtracker.config import LLM_TOKEN_LIMITS
from dealtracker.errors import GenerationFailed, NotFound, ValidationError
from dealtracker.llm_client import LLMClient
from dealtracker.models import Startup, ThresholdIssue
from dealtracker.schemas import ThresholdIssueCreate, ThresholdIssueUpdate

logger = logging.getLogger(__name__)

ISSUE_CATEGORIES = [
    "Market Risk",
    "Team Risk",
    "Technology Risk",
    "Legal Risk",
    "Financial Risk",
    "Competitive Risk",
    "Execution Risk",
    "Other",
]
RISK_RATINGS = {"High", "Medium", "Low"}

ISSUES_SYSTEM_PROMPT = (
    "You are a venture capital analyst expert at identifying deal-breaking red flags "
    "and critical threshold issues that would prevent investment. Be highly selective - "
    "only flag serious issues that would genuinely cause you to pass on the deal. "
    "Return only valid JSON."
)


def _today() -> str:
    return dt.date.today().isoformat()


def _issue_key(text: str) -> str:
    return " ".join((text or "").lower().split())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

async def get_issue(session: AsyncSession, issue_id: str) -> ThresholdIssue:
    issue = await session.get(ThresholdIssue, issue_id, populate_existing=True)
    if issue is None:
        raise NotFound("Threshold issue not found")
    return issue


async def list_issues(session: AsyncSession, startup_id: str) -> list[ThresholdIssue]:
    rows = await session.execute(
        select(ThresholdIssue)
        .where(ThresholdIssue.startup_id == startup_id)
        .order_by(ThresholdIssue.created_at, ThresholdIssue.id)
    )
    return list(rows.scalars().all())


async def create_issue(session: AsyncSession, payload: ThresholdIssueCreate) -> ThresholdIssue:
    if await session.get(Startup, payload.startup_id) is None:
        raise NotFound("Startup not found")

    issue = ThresholdIssue(
        startup_id=payload.startup_id,
        category=payload.category,
        issue=payload.issue,
        risk_rating=payload.risk_rating,
        mitigation=payload.mitigation,
        status=payload.status or "Open",
        source=payload.source or "Manual",
        identified_date=payload.identified_date or _today(),
    )
    session.add(issue)
    await session.commit()
    logger.info("Created threshold issue %s for startup %s", issue.id, issue.startup_id)
    return issue


async def update_issue(
    session: AsyncSession, issue_id: str, payload: ThresholdIssueUpdate
) -> ThresholdIssue:
    issue = await get_issue(session, issue_id)
    issue.category = payload.category
    issue.issue = payload.issue
    issue.risk_rating = payload.risk_rating
    issue.mitigation = payload.mitigation
    issue.status = payload.status or "Open"
    await session.commit()
    return await get_issue(session, issue_id)


async def delete_issue(session: AsyncSession, issue_id: str) -> None:
    issue = await get_issue(session, issue_id)
    await session.delete(issue)
    await session.commit()
    logger.info("Deleted threshold issue %s", issue_id)


# ---------------------------------------------------------------------------
# AI extraction
# ---------------------------------------------------------------------------

def collect_commentary(scorecards) -> list[dict]:
    """Flatten non-empty scorecard comments into {section, criterion, comment, score}."""
    commentary = []
    for scorecard in scorecards or []:
        if not isinstance(scorecard, dict):
            continue
        scores = scorecard.get("scores") or {}
        for key, comment in (scorecard.get("comments") or {}).items():
            if not isinstance(comment, str) or not comment.strip():
                continue
            section, _, criterion = str(key).partition("-")
            commentary.append({
                "section": section,
                "criterion": criterion,
                "comment": comment.strip(),
                "score": scores.get(key, 0),
            })
    return commentary


def _build_issues_prompt(startup_name: str, commentary: list[dict]) -> str:
    lines = "\n\n".join(
        f"{i + 1}. [{c['section']} - {c['criterion']}] (Score: {c['score']}/10)\nComment: {c['comment']}"
        for i, c in enumerate(commentary)
    )
    return f"""Analyze the following investment scorecard commentary for "{startup_name}" and identify deal breakers and critical red flags.

For each issue provide:
1. category: one of {ISSUE_CATEGORIES}
2. issue: a clear description (2-3 sentences)
3. riskRating: High (deal breaker), Medium (major red flag), Low (yellow flag)
4. mitigation: specific recommendations (2-3 sentences)

Only flag issues that would genuinely prevent or severely impact the investment decision.
High scores with positive commentary are NOT risks. Consolidate duplicates.

Commentary Data:
{lines}

Return ONLY valid JSON in this exact format:
{{"issues": [{{"category": "Market Risk", "issue": "...", "riskRating": "High", "mitigation": "..."}}]}}

If no genuine risks are identified, return: {{"issues": []}}"""


def parse_issues_response(text: str) -> list[dict]:
    """Parse model output into issue dicts; tolerates markdown code fences."""
    cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", (text or "").strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationFailed("Invalid JSON response from AI model") from e

    issues = data.get("issues", []) if isinstance(data, dict) else []
    parsed = []
    for item in issues:
        if not isinstance(item, dict) or not item.get("issue"):
            continue
        rating = item.get("riskRating", "Medium")
        category = item.get("category", "Other")
        parsed.append({
            "category": category if category in ISSUE_CATEGORIES else "Other",
            "issue": str(item["issue"]).strip(),
            "risk_rating": rating if rating in RISK_RATINGS else "Medium",
            "mitigation": str(item.get("mitigation") or "").strip(),
        })
    return parsed


async def generate_issues(session: AsyncSession, startup_id: str, llm: LLMClient) -> dict:
    """
    Extract threshold issues from a startup's scorecard commentary.

    Issues whose text already exists for the startup are skipped.
    Returns {"message", "count", "skipped"}.
    """
    startup = await session.get(Startup, startup_id)
    if startup is None:
        raise NotFound("Startup not found")

    scorecards = startup.investment_scorecard or []
    if not isinstance(scorecards, list) or not scorecards:
        raise ValidationError("No scorecards found for this startup")

    commentary = collect_commentary(scorecards)
    if not commentary:
        raise ValidationError("No commentary found in scorecards")

    if not llm.is_ready:
        raise GenerationFailed("Text generation is not configured", status_code=503)

    logger.info("[Generate Issues] Analyzing %d comments for startup: %s", len(commentary), startup.name)
    try:
        text = await llm.complete(
            _build_issues_prompt(startup.name, commentary),
            system=ISSUES_SYSTEM_PROMPT,
            max_tokens=LLM_TOKEN_LIMITS["issues"],
            temperature=LLM_TOKEN_LIMITS["temperature_issues"],
        )
    except Exception as e:
        logger.error("[Generate Issues] LLM call failed: %s", e)
        raise GenerationFailed("Failed to generate threshold issues") from e

    if not text:
        raise GenerationFailed("Empty response from AI model")

    extracted = parse_issues_response(text)
    if not extracted:
        return {
            "message": "No threshold issues identified from the scorecard commentary",
            "count": 0,
            "skipped": 0,
        }

    existing = {_issue_key(i.issue) for i in await list_issues(session, startup_id)}
    to_create = []
    for item in extracted:
        key = _issue_key(item["issue"])
        if key in existing:
            continue
        existing.add(key)
        to_create.append(item)

    skipped = len(extracted) - len(to_create)
    if not to_create:
        return {"message": "All identified issues already exist", "count": 0, "skipped": skipped}

    today = _today()
    session.add_all([
        ThresholdIssue(
            startup_id=startup_id,
            status="Open",
            source="AI",
            identified_date=today,
            **item,
        )
        for item in to_create
    ])
    await session.commit()

    logger.info(
        "[Generate Issues] Created %d new issues (skipped %d duplicates)",
        len(to_create), skipped,
    )
    return {
        "message": f"Successfully generated {len(to_create)} threshold issues",
        "count": len(to_create),
        "skipped": skipped,
    }
