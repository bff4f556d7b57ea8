"""
Paid-channel and organic-channel specialist agents.

Each agent renders its skill prompt over the Researcher output for its
channel, makes one AI gateway call and post-processes the validated actions:

1. Drop actions matching the skill's excluded recommendation types.
2. Move prioritized types to the front and deprioritized types to the end.
3. Truncate to the skill's maximum.
4. Record constraint violations against the Director's must-exclude list.

An empty shortlist short-circuits with an empty output and no AI call. When
the gateway exhausts its retries the agent raises AIRetryExhaustedError,
which fails the report.

The two agents share no state and the orchestrator runs them concurrently.
"""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

from backend.models import (
    ClientContext,
    EnrichedKeyword,
    EnrichedPage,
    OrganicAction,
    OrganicAgentOutput,
    OrganicAgentResponse,
    PaidAgentOutput,
    PaidAgentResponse,
)
from backend.services.ai_gateway import AIGateway
from backend.services.constraint_validation import (
    paid_action_text,
    validate_organic_actions,
    validate_paid_actions,
)
from backend.services.errors import AIRetryExhaustedError
from backend.services.prompts import build_organic_prompt, build_paid_prompt
from backend.skills.types import DirectorSkill, OrganicSkill, PaidSkill, RecommendationTypes

logger = logging.getLogger(__name__)

PAID_AGENT_LABEL = "Paid agent"
ORGANIC_AGENT_LABEL = "Organic agent"

A = TypeVar("A")


# =============================================================================
# Output Filtering
# =============================================================================

def _type_matches(text: str, slug: str) -> bool:
    lowered = text.lower()
    slug = slug.lower()
    return slug in lowered or slug.replace("-", " ") in lowered


def filter_actions(
    actions: Sequence[A],
    types: RecommendationTypes,
    max_count: int,
    text_of: Callable[[A], str],
) -> List[A]:
    """
    Apply a skill's recommendation-type lists to agent actions.

    Prioritized actions keep the order of the prioritize list; everything
    else keeps the model's order.
    """
    kept = [
        action for action in actions
        if not any(_type_matches(text_of(action), slug) for slug in types.exclude)
    ]

    def _priority_index(action: A) -> int:
        for index, slug in enumerate(types.prioritize):
            if _type_matches(text_of(action), slug):
                return index
        return len(types.prioritize)

    def _deprioritized(action: A) -> bool:
        return any(_type_matches(text_of(action), slug) for slug in types.deprioritize)

    ranked = sorted(kept, key=lambda action: (_deprioritized(action), _priority_index(action)))
    return ranked[:max_count]


# =============================================================================
# Paid Agent
# =============================================================================

async def run_paid_agent(
    keywords: Sequence[EnrichedKeyword],
    skill: PaidSkill,
    gateway: AIGateway,
    *,
    director_skill: DirectorSkill,
    client: Optional[ClientContext] = None,
    max_keywords: int = 40,
) -> PaidAgentOutput:
    """
    Analyze shortlisted keywords and return paid-search actions.

    Raises:
        AIRetryExhaustedError: Every gateway attempt failed.
    """
    if not keywords:
        logger.warning(f"{PAID_AGENT_LABEL}: no keywords to analyze, skipping AI call")
        return PaidAgentOutput()

    prompt = build_paid_prompt(keywords, skill, client, max_keywords=max_keywords)
    logger.info(
        f"{PAID_AGENT_LABEL}: analyzing {prompt.included} keywords "
        f"({prompt.dropped} dropped from prompt, skill {skill.version})"
    )

    result = await gateway.generate(prompt.text, PaidAgentResponse, label=PAID_AGENT_LABEL)
    if not result.ok:
        raise AIRetryExhaustedError(PAID_AGENT_LABEL, result.attempts, result.error)

    received = result.value.paidActions
    actions = filter_actions(
        received,
        skill.recommendation_types,
        skill.max_recommendations,
        paid_action_text,
    )
    violations = validate_paid_actions(actions, director_skill)

    logger.info(
        f"{PAID_AGENT_LABEL}: {len(actions)} actions kept of {len(received)} "
        f"({len(violations)} constraint violations)"
    )

    return PaidAgentOutput(
        actions=actions,
        tokensUsed=result.tokens_used,
        attempts=result.attempts,
        filteredOut=len(received) - len(actions),
        droppedFromPrompt=prompt.dropped,
        violations=violations,
    )


# =============================================================================
# Organic Agent
# =============================================================================

def _organic_filter_text(action: OrganicAction) -> str:
    return f"{action.recommendation} {action.condition}"


async def run_organic_agent(
    pages: Sequence[EnrichedPage],
    skill: OrganicSkill,
    gateway: AIGateway,
    *,
    director_skill: DirectorSkill,
    client: Optional[ClientContext] = None,
    max_pages: int = 25,
) -> OrganicAgentOutput:
    """
    Analyze shortlisted pages and return organic-search actions.

    Raises:
        AIRetryExhaustedError: Every gateway attempt failed.
    """
    if not pages:
        logger.warning(f"{ORGANIC_AGENT_LABEL}: no pages to analyze, skipping AI call")
        return OrganicAgentOutput()

    prompt = build_organic_prompt(pages, skill, client, max_pages=max_pages)
    logger.info(
        f"{ORGANIC_AGENT_LABEL}: analyzing {prompt.included} pages "
        f"({prompt.dropped} dropped from prompt, skill {skill.version})"
    )

    result = await gateway.generate(prompt.text, OrganicAgentResponse, label=ORGANIC_AGENT_LABEL)
    if not result.ok:
        raise AIRetryExhaustedError(ORGANIC_AGENT_LABEL, result.attempts, result.error)

    received = result.value.organicActions
    actions = filter_actions(
        received,
        skill.recommendation_types,
        skill.max_recommendations,
        _organic_filter_text,
    )
    violations = validate_organic_actions(actions, director_skill)

    logger.info(
        f"{ORGANIC_AGENT_LABEL}: {len(actions)} actions kept of {len(received)} "
        f"({len(violations)} constraint violations)"
    )

    return OrganicAgentOutput(
        actions=actions,
        tokensUsed=result.tokens_used,
        attempts=result.attempts,
        filteredOut=len(received) - len(actions),
        droppedFromPrompt=prompt.dropped,
        violations=violations,
    )


__all__ = [
    "PAID_AGENT_LABEL",
    "ORGANIC_AGENT_LABEL",
    "filter_actions",
    "run_paid_agent",
    "run_organic_agent",
]
