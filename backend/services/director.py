"""
Director - synthesis of the two specialist outputs.

One AI gateway call turns the paid and organic actions into an executive
summary and a candidate list of unified recommendations. The candidate list
then goes through deterministic post-processing driven by the Director
skill's filtering block:

1. Must-include candidates: category or title contains a must-include
   pattern (case-insensitive).
2. Drop must-exclude matches over category, title and description.
3. Drop anything below the minimum impact tier.
4. Score = impact ordinal x revenue weight + inverted effort ordinal x
   effort weight; stable sort descending.
5. Must-include candidates are placed first, in their original order,
   including any removed by steps 2-3.
6. Truncate to the skill's maximum.

Two outcomes skip or replace the AI result:
- Both specialists returned nothing: a generic summary with no
  recommendations, and no AI call.
- The response fails validation only because unifiedRecommendations is
  empty: a generic summary, no recommendations and a warning. Any other
  validation failure is retried and, once retries are exhausted, fatal.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from backend.models import (
    ClientContext,
    DirectorOutput,
    DirectorResponse,
    ExecutiveSummary,
    FilteringStats,
    OrganicAgentOutput,
    PaidAgentOutput,
    UnifiedRecommendation,
)
from backend.services.ai_gateway import AIGateway
from backend.services.constraint_validation import build_exclusion_rules, matches_exclusion
from backend.services.errors import AIRetryExhaustedError, SchemaValidationError
from backend.services.prompts import build_director_prompt
from backend.skills.types import DirectorFiltering, DirectorSkill

logger = logging.getLogger(__name__)

DIRECTOR_LABEL = "Director"

NO_OPPORTUNITIES_SUMMARY = ExecutiveSummary(
    summary=(
        "No significant optimization opportunities were identified in the current data. "
        "This may indicate the account is well-optimized or that additional data is needed for analysis."
    ),
    keyHighlights=["No urgent issues detected", "Consider expanding data sources"],
)

EMPTY_RECOMMENDATIONS_SUMMARY = ExecutiveSummary(
    summary=(
        "Analysis completed but no specific recommendations were generated. "
        "The account may already be well-optimized or additional data may be needed."
    ),
    keyHighlights=["Analysis completed", "No urgent optimizations identified"],
)

EMPTY_RECOMMENDATIONS_WARNING = "Director returned an empty unifiedRecommendations list; fallback summary used"


# =============================================================================
# Empty-List Recovery
# =============================================================================

def is_empty_recommendations_error(error: SchemaValidationError) -> bool:
    """True when the only validation error is an empty recommendation list."""
    if len(error.errors) != 1:
        return False
    detail = error.errors[0]
    loc = detail.get("loc") or ()
    return detail.get("type") == "too_short" and len(loc) > 0 and loc[0] == "unifiedRecommendations"


def recover_empty_recommendations(error: SchemaValidationError) -> Optional[DirectorResponse]:
    """Gateway recover hook: fallback response for the empty-list case, else None."""
    if not is_empty_recommendations_error(error):
        return None
    # The schema requires at least one recommendation, so bypass validation
    return DirectorResponse.model_construct(
        executiveSummary=EMPTY_RECOMMENDATIONS_SUMMARY,
        unifiedRecommendations=[],
    )


# =============================================================================
# Post-Processing
# =============================================================================

def _contains(text: str, pattern: str) -> bool:
    return pattern.lower() in text.lower()


def is_must_include(recommendation: UnifiedRecommendation, patterns: Sequence[str]) -> bool:
    haystacks = (recommendation.category.value, recommendation.title)
    return any(_contains(text, pattern) for pattern in patterns for text in haystacks)


def exclusion_text(recommendation: UnifiedRecommendation) -> str:
    return f"{recommendation.category.value} {recommendation.title} {recommendation.description}"


def score_recommendation(recommendation: UnifiedRecommendation, filtering: DirectorFiltering) -> float:
    weights = filtering.impact_weights
    return (
        recommendation.impact.ordinal * weights.revenue
        + recommendation.effort.inverted_ordinal * weights.effort
    )


def filter_recommendations(
    recommendations: Sequence[UnifiedRecommendation],
    filtering: DirectorFiltering,
) -> Tuple[List[UnifiedRecommendation], FilteringStats]:
    """
    Apply the deterministic filtering steps to the model's candidate list.

    Returns:
        (final_list, stats). len(final_list) never exceeds
        filtering.max_recommendations.
    """
    stats = FilteringStats(received=len(recommendations))
    exclusion_rules = build_exclusion_rules(filtering.must_exclude)
    min_impact = filtering.min_impact_threshold.ordinal

    must_include = [rec for rec in recommendations if is_must_include(rec, filtering.must_include)]
    must_include_ids = {id(rec) for rec in must_include}

    remaining: List[UnifiedRecommendation] = []
    for rec in recommendations:
        text = exclusion_text(rec)
        if any(matches_exclusion(text, rule) for rule in exclusion_rules):
            stats.excluded += 1
            continue
        if rec.impact.ordinal < min_impact:
            stats.belowThreshold += 1
            continue
        remaining.append(rec)

    remaining_ids = {id(rec) for rec in remaining}
    stats.reinserted = sum(1 for rec in must_include if id(rec) not in remaining_ids)

    ranked = sorted(remaining, key=lambda rec: score_recommendation(rec, filtering), reverse=True)
    ordered = must_include + [rec for rec in ranked if id(rec) not in must_include_ids]

    final = ordered[:filtering.max_recommendations]
    stats.truncated = len(ordered) - len(final)
    return final, stats


# =============================================================================
# Entry Point
# =============================================================================

async def run_director(
    paid: PaidAgentOutput,
    organic: OrganicAgentOutput,
    skill: DirectorSkill,
    gateway: AIGateway,
    client: Optional[ClientContext] = None,
) -> DirectorOutput:
    """
    Synthesize specialist outputs into the final recommendation list.

    Raises:
        AIRetryExhaustedError: The AI call failed on every attempt for a
            reason other than an empty recommendation list.
    """
    logger.info(
        f"{DIRECTOR_LABEL}: synthesizing {len(paid.actions)} paid and "
        f"{len(organic.actions)} organic actions (skill {skill.version})"
    )

    if not paid.actions and not organic.actions:
        logger.warning(f"{DIRECTOR_LABEL}: no specialist actions to synthesize, skipping AI call")
        return DirectorOutput(
            executiveSummary=NO_OPPORTUNITIES_SUMMARY,
            unifiedRecommendations=[],
            skippedAiCall=True,
        )

    prompt = build_director_prompt(paid.actions, organic.actions, skill, client)
    result = await gateway.generate(
        prompt.text,
        DirectorResponse,
        label=DIRECTOR_LABEL,
        recover=recover_empty_recommendations,
    )
    if not result.ok:
        raise AIRetryExhaustedError(DIRECTOR_LABEL, result.attempts, result.error)

    response = result.value
    warnings: List[str] = []
    if result.recovered:
        warnings.append(EMPTY_RECOMMENDATIONS_WARNING)
        logger.warning(f"{DIRECTOR_LABEL}: {EMPTY_RECOMMENDATIONS_WARNING}")

    recommendations, stats = filter_recommendations(response.unifiedRecommendations, skill.filtering)

    logger.info(
        f"{DIRECTOR_LABEL}: {len(recommendations)} recommendations kept of {stats.received} "
        f"(excluded {stats.excluded}, below threshold {stats.belowThreshold}, "
        f"reinserted {stats.reinserted}, truncated {stats.truncated})"
    )

    return DirectorOutput(
        executiveSummary=response.executiveSummary,
        unifiedRecommendations=recommendations,
        warnings=warnings,
        usedFallback=result.recovered,
        tokensUsed=result.tokens_used,
        attempts=result.attempts,
        filtering=stats,
    )


__all__ = [
    "DIRECTOR_LABEL",
    "NO_OPPORTUNITIES_SUMMARY",
    "EMPTY_RECOMMENDATIONS_SUMMARY",
    "EMPTY_RECOMMENDATIONS_WARNING",
    "is_empty_recommendations_error",
    "recover_empty_recommendations",
    "is_must_include",
    "exclusion_text",
    "score_recommendation",
    "filter_recommendations",
    "run_director",
]
