"""
Constraint validation of specialist output.

Checks paid and organic actions against the Director skill's must-exclude
patterns and records a ConstraintViolation for each offending action. This
is a quality signal for prompt tuning: violations are logged and stored,
never raised, and the actions themselves are left alone (the Director's
must-exclude filter removes offending recommendations from the final list).

Pattern syntax:
    metric:roas              action mentions the ROAS metric
    schema:Product           action recommends implementing Product schema
    type:shopping-campaign   action text contains "shopping campaign"
    anything else            case-insensitive substring match
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Pattern, Sequence, Union

from backend.models import ConstraintViolation, OrganicAction, PaidAction, ViolationSource
from backend.skills.types import DirectorSkill

logger = logging.getLogger(__name__)

MATCHED_CONTENT_CHARS = 200


# =============================================================================
# Text Classification
# =============================================================================

ACTION_TYPE_PATTERNS: Dict[str, List[Pattern]] = {
    "bid-adjustment": [
        re.compile(r"\b(reduce|increase|adjust|lower|raise)\s+(bids?|bidding)", re.I),
        re.compile(r"\bbid\s+(strategy|adjustment|modifier)", re.I),
        re.compile(r"\btarget\s+(roas|cpa)", re.I),
        re.compile(r"\bsmart\s+bidding", re.I),
    ],
    "budget-change": [
        re.compile(r"\b(increase|decrease|reallocate|shift)\s+budget", re.I),
        re.compile(r"\bbudget\s+(allocation|reallocation)", re.I),
        re.compile(r"\bspend\s+(more|less)", re.I),
    ],
    "campaign-structure": [
        re.compile(r"\b(create|restructure|consolidate|split)\s+(campaign|ad\s*group)", re.I),
        re.compile(r"\bcampaign\s+structure", re.I),
        re.compile(r"\bshopping\s+campaign", re.I),
        re.compile(r"\bperformance\s+max|\bpmax", re.I),
    ],
    "keyword-targeting": [
        re.compile(r"\b(add|remove|pause)\s+(keyword|negative)", re.I),
        re.compile(r"\bmatch\s+type", re.I),
        re.compile(r"\bnegative\s+keyword", re.I),
    ],
    "schema-implementation": [
        re.compile(r"\b(add|implement|create|use)\s+\w*\s*schema", re.I),
        re.compile(r"\bschema\s+(markup|implementation)", re.I),
        re.compile(r"\bstructured\s+data", re.I),
        re.compile(r"\bjson-?ld", re.I),
    ],
    "schema-removal": [
        re.compile(r"\b(remove|delete|fix)\s+\w*\s*schema", re.I),
        re.compile(r"\b(incorrect|invalid)\s+schema", re.I),
    ],
    "content-change": [
        re.compile(r"\b(update|rewrite|improve|optimize)\s+(title|meta|h1|content|copy)", re.I),
        re.compile(r"\btitle\s+tag|\bmeta\s+description", re.I),
    ],
    "technical-fix": [
        re.compile(r"\b(fix|resolve|address)\s+(page\s*speed|mobile|ssl|redirect|404)", re.I),
        re.compile(r"\bcore\s+web\s+vitals|\bpage\s+speed", re.I),
    ],
}

METRIC_PATTERNS: Dict[str, Pattern] = {
    "roas": re.compile(r"\broas\b|return on ad spend", re.I),
    "revenue": re.compile(r"\brevenue\b", re.I),
    "aov": re.compile(r"\baov\b|average order value", re.I),
    "conversionvalue": re.compile(r"\bconversion\s*value\b", re.I),
    "cpl": re.compile(r"\bcpl\b|cost per lead", re.I),
    "cpc": re.compile(r"\bcpc\b|cost per click", re.I),
    "ctr": re.compile(r"\bctr\b|click.through rate", re.I),
    "cpa": re.compile(r"\bcpa\b|cost per acquisition", re.I),
    "ltv": re.compile(r"\bltv\b|lifetime value", re.I),
    "mrr": re.compile(r"\bmrr\b|monthly recurring revenue", re.I),
    "arr": re.compile(r"\barr\b|annual recurring revenue", re.I),
    "churn": re.compile(r"\bchurn\b", re.I),
}

SCHEMA_TYPES = (
    "Product",
    "Offer",
    "AggregateOffer",
    "Service",
    "ProfessionalService",
    "LocalBusiness",
    "Organization",
    "FAQPage",
    "Article",
    "BreadcrumbList",
    "HowTo",
    "Review",
    "AggregateRating",
    "Event",
    "SoftwareApplication",
    "WebApplication",
    "VideoObject",
)


def infer_action_types(text: str) -> List[str]:
    return [
        action_type
        for action_type, patterns in ACTION_TYPE_PATTERNS.items()
        if any(pattern.search(text) for pattern in patterns)
    ]


def mentioned_metrics(text: str) -> List[str]:
    return [metric for metric, pattern in METRIC_PATTERNS.items() if pattern.search(text)]


def mentioned_schemas(text: str) -> List[str]:
    return [schema for schema in SCHEMA_TYPES if re.search(rf"\b{schema}\b", text, re.I)]


@dataclass
class ActionText:
    """Lower-cased action text with the metrics, schemas and action types it mentions."""
    text: str
    metrics: List[str] = field(default_factory=list)
    schemas: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "ActionText":
        return cls(
            text=" ".join(text.lower().split()),
            metrics=mentioned_metrics(text),
            schemas=[schema.lower() for schema in mentioned_schemas(text)],
            types=infer_action_types(text),
        )


def paid_action_text(action: PaidAction) -> str:
    return f"{action.action} {action.reasoning}"


def organic_action_text(action: OrganicAction) -> str:
    return f"{action.recommendation} {' '.join(action.specificActions)}"


# =============================================================================
# Exclusion Rules
# =============================================================================

@dataclass(frozen=True)
class ExclusionRule:
    id: str
    description: str
    match: Callable[[ActionText], bool]


def build_exclusion_rule(pattern: str) -> ExclusionRule:
    """Turn one must-exclude pattern into a matcher."""
    prefix, _, value = pattern.partition(":")
    prefix = prefix.lower()

    if value and prefix == "metric":
        metric = value.lower()
        return ExclusionRule(
            id=pattern,
            description=f"Excludes actions mentioning {value}",
            match=lambda action: metric in action.metrics,
        )

    if value and prefix == "schema":
        schema = value.lower()
        return ExclusionRule(
            id=pattern,
            description=f"Excludes actions recommending {value} schema",
            match=lambda action: schema in action.schemas and "schema-implementation" in action.types,
        )

    if value and prefix == "type":
        phrase = value.replace("-", " ").lower()
        slug = value.lower()
        return ExclusionRule(
            id=pattern,
            description=f'Excludes actions containing "{phrase}"',
            match=lambda action: phrase in action.text or slug in action.text,
        )

    needle = pattern.lower()
    return ExclusionRule(
        id=pattern,
        description=f'Excludes actions containing "{pattern}"',
        match=lambda action: needle in action.text,
    )


def build_exclusion_rules(patterns: Sequence[str]) -> List[ExclusionRule]:
    return [build_exclusion_rule(pattern) for pattern in patterns]


def matches_exclusion(text: str, pattern: Union[str, ExclusionRule]) -> bool:
    """
    True when text matches a must-exclude pattern.

    The pattern also matches as a literal, case-insensitive substring, so a
    title containing "schema:LocalBusiness" verbatim is caught as well.
    """
    rule = pattern if isinstance(pattern, ExclusionRule) else build_exclusion_rule(pattern)
    if rule.id.lower() in text.lower():
        return True
    return rule.match(ActionText.from_text(text))


# =============================================================================
# Validation
# =============================================================================

def find_violations(
    texts: Sequence[str],
    source: ViolationSource,
    rules: Sequence[ExclusionRule],
) -> List[ConstraintViolation]:
    """One violation per offending text, naming the first rule it breaks."""
    violations: List[ConstraintViolation] = []
    for text in texts:
        normalized = ActionText.from_text(text)
        for rule in rules:
            if rule.match(normalized):
                violations.append(
                    ConstraintViolation(
                        source=source,
                        ruleId=rule.id,
                        matchedContent=normalized.text[:MATCHED_CONTENT_CHARS],
                    )
                )
                break
    return violations


def validate_paid_actions(actions: Sequence[PaidAction], skill: DirectorSkill) -> List[ConstraintViolation]:
    rules = build_exclusion_rules(skill.filtering.must_exclude)
    violations = find_violations([paid_action_text(a) for a in actions], ViolationSource.PAID, rules)
    _log_violations(violations, skill)
    return violations


def validate_organic_actions(actions: Sequence[OrganicAction], skill: DirectorSkill) -> List[ConstraintViolation]:
    rules = build_exclusion_rules(skill.filtering.must_exclude)
    violations = find_violations([organic_action_text(a) for a in actions], ViolationSource.ORGANIC, rules)
    _log_violations(violations, skill)
    return violations


def _log_violations(violations: List[ConstraintViolation], skill: DirectorSkill) -> None:
    for violation in violations:
        logger.warning(
            f"Constraint violation ({violation.source.value}, rule {violation.ruleId}, "
            f"skill {skill.version}): {violation.matchedContent[:100]}"
        )


__all__ = [
    "MATCHED_CONTENT_CHARS",
    "ACTION_TYPE_PATTERNS",
    "METRIC_PATTERNS",
    "SCHEMA_TYPES",
    "ActionText",
    "ExclusionRule",
    "infer_action_types",
    "mentioned_metrics",
    "mentioned_schemas",
    "paid_action_text",
    "organic_action_text",
    "build_exclusion_rule",
    "build_exclusion_rules",
    "matches_exclusion",
    "find_violations",
    "validate_paid_actions",
    "validate_organic_actions",
]
