"""
Outreach and rejection message generation.

Each request produces four variants in parallel. A variant that fails is
replaced by a placeholder so one bad completion does not sink the others;
if every variant fails the whole request fails.
"""

from __future__ import annotations

import asyncio
import logging
import re

from dealtracker.config import LLM_TOKEN_LIMITS
from dealtracker.errors import GenerationFailed
from dealtracker.llm_client import LLMClient
from dealtracker.schemas import (
    EmailMessage,
    LinkedInMessage,
    MessageStartup,
    OutreachMessages,
    RejectionMessages,
)

logger = logging.getLogger(__name__)

FAILED_VARIANT = "SUBJECT: Unable to generate\nBODY:\nError generating this message. Please try again."

_SUBJECT_RE = re.compile(r"SUBJECT:\s*(.+?)(?:\n|$)", re.IGNORECASE)
_BODY_RE = re.compile(r"BODY:\s*([\s\S]+)", re.IGNORECASE)

FORMATTING_RULES = """IMPORTANT FORMATTING RULES:
- Write in plain text without any markdown formatting
- Do not use asterisks, bold, or italic formatting
- Do not use bullet points or numbered lists in the message body
- Write naturally flowing paragraphs
- Be genuine - avoid generic VC platitudes"""

OUTREACH_TONES = {
    "formal": "Use a formal, professional tone. Be respectful, polished, and business-appropriate. Use proper salutations and sign-offs.",
    "friendly": "Use a warm, approachable tone. Be personable and conversational while remaining professional. Show genuine interest and enthusiasm.",
    "direct": "Use a direct, concise tone. Get to the point quickly. Be clear about your intentions and value proposition without unnecessary pleasantries.",
    "casual": "Use a casual, relaxed tone. Be personable and natural, like reaching out to a colleague. Avoid overly formal language.",
}

REJECTION_TONES = {
    "encouraging": "Use a warm, encouraging tone. Emphasize the founder's strengths and potential while being clear about the pass decision.",
    "constructive": "Use a balanced, constructive tone. Provide actionable feedback where appropriate. Be honest but kind about concerns.",
    "transparent": "Use a direct, transparent tone. Be honest about the specific reasons for passing. Still be respectful and professional.",
    "formal": "Use a formal, professional tone. Keep the message polished and brief. Avoid going into too much detail about reasons.",
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_email_response(response: str, default_subject: str) -> EmailMessage:
    subject = _SUBJECT_RE.search(response)
    body = _BODY_RE.search(response)
    return EmailMessage(
        subject=subject.group(1).strip() if subject else default_subject,
        body=body.group(1).strip() if body else response.strip(),
    )


def parse_body_response(response: str) -> str:
    body = _BODY_RE.search(response)
    return body.group(1).strip() if body else response.strip()


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

def _join(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v)
    return str(value) if value else ""


def _startup_facts(startup: MessageStartup) -> dict:
    company = startup.company_info or {}
    product = startup.product_info or {}
    market = startup.market_info or {}
    return {
        "Company": startup.name,
        "Description": startup.description,
        "Sector": startup.sector,
        "Country": startup.country,
        "Website": company.get("website"),
        "Founders": company.get("founders"),
        "Founded": company.get("founded"),
        "Problem Solved": product.get("problemSolved"),
        "Industry": market.get("industry"),
    }


def _format_facts(facts: dict) -> str:
    return "\n".join(f"{label}: {value or 'N/A'}" for label, value in facts.items())


def _outreach_context(startup: MessageStartup) -> str:
    company = startup.company_info or {}
    market = startup.market_info or {}
    rationale = startup.rationale if isinstance(startup.rationale, dict) else {}
    facts = _startup_facts(startup)
    facts.update({
        "Employees": company.get("employeeCount"),
        "Funding Raised": company.get("fundingRaised"),
        "Market Size": market.get("marketSize"),
        "B2B/B2C": market.get("b2bOrB2c"),
        "Key Strengths": _join(rationale.get("keyStrengths") or rationale.get("whyInvest")),
        "Revenue Model": (startup.business_model_info or {}).get("revenueModel"),
    })
    return _format_facts(facts)


def _rejection_context(startup: MessageStartup) -> str:
    rationale = startup.rationale if isinstance(startup.rationale, dict) else {}
    decision = startup.investment_decision or {}
    high_risk = [
        i.get("issue", "")
        for i in startup.threshold_issues
        if i.get("riskRating") == "High" and i.get("issue")
    ]

    facts = _startup_facts(startup)
    facts["Founders"] = facts["Founders"] or "The founding team"
    lines = [_format_facts(facts), ""]
    lines.append(
        "Key Strengths We Identified: "
        + (_join(rationale.get("keyStrengths") or rationale.get("whyInvest")) or "Strong team and vision")
    )
    lines.append(
        "Areas of Concern: "
        + (_join(rationale.get("areasOfConcern") or rationale.get("whyNot"))
           or "Timing and fit with our current portfolio focus")
    )
    if high_risk:
        lines.append(f"Key Risk Issues: {', '.join(high_risk)}")
    if decision.get("reasonsNotToInvest"):
        lines.append(f"Specific Concerns: {_join(decision['reasonsNotToInvest'])}")
    if decision.get("reasonsToInvest"):
        lines.append(f"Positive Factors: {_join(decision['reasonsToInvest'])}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

async def _generate_variants(
    llm: LLMClient, system: str, prompts: dict[str, str], label: str
) -> dict[str, str]:
    if not llm.is_ready:
        raise GenerationFailed("Text generation is not configured", status_code=503)

    async def _one(kind: str, prompt: str) -> tuple[str, str, bool]:
        try:
            text = await llm.complete(
                prompt,
                system=system,
                max_tokens=LLM_TOKEN_LIMITS["messages"],
                temperature=LLM_TOKEN_LIMITS["temperature_messages"],
            )
            if not text:
                raise ValueError("empty completion")
            return kind, text, True
        except Exception as e:
            logger.error("[%s] Error generating %s: %s", label, kind, e)
            return kind, FAILED_VARIANT, False

    logger.info("[%s] Generating %d message variants", label, len(prompts))
    results = await asyncio.gather(*(_one(k, p) for k, p in prompts.items()))
    if not any(ok for _, _, ok in results):
        raise GenerationFailed(f"Failed to generate {label.lower()} messages")
    return {kind: text for kind, text, _ in results}


async def generate_outreach_messages(
    llm: LLMClient, startup: MessageStartup, tone: str
) -> OutreachMessages:
    context = _outreach_context(startup)
    name = startup.name or "the company"
    system = (
        "You are a venture capital investor reaching out to startup founders. "
        "You work at a reputable VC firm and are genuinely interested in learning "
        "more about promising companies.\n\n"
        f"{OUTREACH_TONES[tone]}\n\n{FORMATTING_RULES}\n"
        "- Keep messages concise and respectful of the founder's time\n"
        "- Reference specific aspects of their company to show you've done your research"
    )
    prompts = {
        "cold_email": f"""Write a cold outreach email to the founder(s) of {name}.

This is the FIRST contact. Introduce yourself, express genuine interest in their company, and open a conversation.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A compelling, non-generic subject line]
BODY:
[The email body - 3-4 short paragraphs max]""",
        "linkedin": f"""Write a LinkedIn connection request message to the founder(s) of {name}.

Keep it under 300 characters if possible, 500 at most.

{context}

RESPONSE FORMAT (exactly like this):
BODY:
[A brief LinkedIn message - 2-3 sentences max]""",
        "follow_up": f"""Write a follow-up email to the founder(s) of {name}.

You already sent an initial outreach and have not heard back. Add value and give them a reason to respond.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A follow-up subject line]
BODY:
[The follow-up email - 2-3 short paragraphs]""",
        "meeting_request": f"""Write an email requesting a 30-minute introductory call with the founder(s) of {name}.

Be specific about what you'd like to discuss and offer flexible timing.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A subject line focused on the meeting request]
BODY:
[The meeting request email]""",
    }

    raw = await _generate_variants(llm, system, prompts, "Outreach")
    return OutreachMessages(
        cold_email=parse_email_response(raw["cold_email"], "Introduction"),
        linkedin=LinkedInMessage(body=parse_body_response(raw["linkedin"])),
        follow_up=parse_email_response(raw["follow_up"], "Introduction"),
        meeting_request=parse_email_response(raw["meeting_request"], "Introduction"),
    )


async def generate_rejection_messages(
    llm: LLMClient, startup: MessageStartup, tone: str
) -> RejectionMessages:
    context = _rejection_context(startup)
    name = startup.name or "the company"
    system = (
        "You are a venture capital investor who needs to communicate a pass decision "
        "to a startup founder. Be respectful and appreciative of their time, highlight "
        "strengths before concerns, and keep the relationship open for the future.\n\n"
        f"{REJECTION_TONES[tone]}\n\n{FORMATTING_RULES}\n"
        "- Never be condescending or dismissive"
    )
    prompts = {
        "formal_rejection": f"""Write a brief, professional rejection email to the founder(s) of {name}.
Thank them, say we are passing at this time because it is not the right fit for our current focus, and leave the door open.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A respectful subject line]
BODY:
[The email body]""",
        "constructive_feedback": f"""Write a rejection email to the founder(s) of {name} that provides constructive feedback.
Acknowledge specific strengths, explain the concerns that led to our pass, and offer actionable suggestions.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A subject line that hints at feedback being included]
BODY:
[The email body]""",
        "future_opportunity": f"""Write an encouraging rejection email to the founder(s) of {name} focused on future potential.
Explain this is a "not now" rather than "never" and what would need to change for us to reconsider.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [An encouraging subject line about staying connected]
BODY:
[The email body]""",
        "warm_introduction": f"""Write a rejection email to the founder(s) of {name} offering introductions to other investors.
Be clear we are passing, explain why another investor might be a great fit, and ask which intros would help.

{context}

RESPONSE FORMAT (exactly like this):
SUBJECT: [A helpful subject line about introductions]
BODY:
[The email body]""",
    }

    default_subject = "Following up on our conversation"
    raw = await _generate_variants(llm, system, prompts, "Rejection")
    return RejectionMessages(
        formal_rejection=parse_email_response(raw["formal_rejection"], default_subject),
        constructive_feedback=parse_email_response(raw["constructive_feedback"], default_subject),
        future_opportunity=parse_email_response(raw["future_opportunity"], default_subject),
        warm_introduction=parse_email_response(raw["warm_introduction"], default_subject),
    )
