"""LLM-backed remediation proposals for a stored pattern."""

import json
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

import structlog
from pydantic import ValidationError

from incidentlens.errors import FatalServiceError
from incidentlens.incidents.models import Incident
from incidentlens.llm import client as llm
from incidentlens.models.base import ensure_utc, utcnow
from incidentlens.patterns.models import Pattern
from incidentlens.solutions.schemas import SolutionProposal
from incidentlens.solutions.service import DEFAULT_IMPLEMENTATION_WINDOW

logger = structlog.get_logger()

MAX_SAMPLE_INCIDENTS = 10

_SYSTEM_PROMPT = (
    "You are an operations consultant for a public transportation operator. "
    "Given a recurring incident pattern, propose 3 concrete remediation "
    "solutions. Return ONLY a JSON array; each element is an object with:\n"
    '- "name": short title\n'
    '- "description": 2-4 sentences on what to do and the expected effect\n'
    '- "cost_min" and "cost_max": estimated cost range in USD (numbers)\n'
    '- "feasibility": integer 1 (hard) to 10 (easy)\n'
    '- "implementation_days": estimated days to implement (integer)\n'
    "No prose, no markdown."
)

CompleteFn = Callable[..., Awaitable[str]]


def build_pattern_prompt(pattern: Pattern, incidents: list[Incident]) -> str:
    summary = {
        "title": pattern.title,
        "description": pattern.description,
        "priority": pattern.priority,
        "frequency": pattern.frequency,
        "filters": pattern.filters or {},
        "time_range_start": _iso(pattern.time_range_start),
        "time_range_end": _iso(pattern.time_range_end),
        "sample_incidents": [
            {
                "service": i.service,
                "category": i.category,
                "priority": i.priority,
                "summary": i.summary or i.original,
            }
            for i in incidents[:MAX_SAMPLE_INCIDENTS]
        ],
    }
    return "Incident pattern:\n" + json.dumps(summary, ensure_ascii=False, default=str)


def _iso(value) -> str | None:
    value = ensure_utc(value)
    return value.isoformat() if value else None


def _end_date(start: datetime, days) -> datetime:
    if isinstance(days, (int, float)) and not isinstance(days, bool) and days > 0:
        return start + timedelta(days=int(days))
    return start + DEFAULT_IMPLEMENTATION_WINDOW


async def propose_solutions(
    pattern: Pattern,
    incidents: list[Incident],
    complete: CompleteFn | None = None,
) -> list[SolutionProposal]:
    """Return validated proposals; raises ``FatalServiceError`` when none are usable."""
    complete = complete or llm.complete
    raw = await complete(
        _SYSTEM_PROMPT,
        build_pattern_prompt(pattern, incidents),
        temperature=0.4,
        max_tokens=2048,
        plain_text=False,
    )

    parsed = llm.parse_json(raw)
    if isinstance(parsed, dict):
        parsed = parsed.get("solutions", [parsed])
    if not isinstance(parsed, list):
        raise FatalServiceError("llm", "solution response is not a JSON array")

    now = utcnow()
    proposals: list[SolutionProposal] = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            logger.warning("solution_proposal_invalid", index=index, item_type=type(item).__name__)
            continue
        try:
            proposal = SolutionProposal.model_validate({
                **item,
                "pattern_id": pattern.id,
                "implementation_start_date": now,
                "implementation_end_date": _end_date(now, item.get("implementation_days")),
            })
        except ValidationError as exc:
            logger.warning("solution_proposal_invalid", index=index, error=str(exc))
            continue
        proposals.append(proposal)

    if not proposals:
        raise FatalServiceError("llm", "no usable solution proposals in response")

    logger.info("solutions_proposed", pattern_id=str(pattern.id), count=len(proposals))
    return proposals
