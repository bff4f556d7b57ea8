"""
Prompt builders for the paid, organic and Director AI calls.

Each builder renders the skill's domain context (role, business model, KPIs,
benchmarks, pattern catalogues, worked examples, hard constraints) followed
by the data to analyze and the exact JSON output contract.

Data serialization is bounded: shortlisted items are ranked by priority
tier, then by Researcher boost score, and cut to the configured maximum. When
items are dropped a notice tells the model to focus on what it was given,
and the dropped count is returned for performance metrics.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from backend.models import (
    ClientContext,
    EnrichedKeyword,
    EnrichedPage,
    OrganicAction,
    PaidAction,
)
from backend.skills.types import (
    AnalysisPattern,
    DirectorSkill,
    KPIDefinition,
    KPISet,
    OrganicSkill,
    PaidSkill,
    ThresholdSet,
    WorkedExample,
)


@dataclass
class BuiltPrompt:
    """Prompt text plus how many data rows were cut to fit."""
    text: str
    included: int = 0
    dropped: int = 0


# =============================================================================
# Section Formatting
# =============================================================================

def _bullets(items: Iterable[str], empty: str = "None specified.") -> str:
    lines = [f"- {item}" for item in items]
    return "\n".join(lines) if lines else empty


def _numbered(items: Iterable[str], empty: str = "No constraints defined.") -> str:
    lines = [f"{i}. {item}" for i, item in enumerate(items, start=1)]
    return "\n".join(lines) if lines else empty


def format_kpi(kpi: KPIDefinition) -> str:
    line = f"- **{kpi.metric}** ({kpi.importance}): {kpi.description}\n  Target: {kpi.target_direction}"
    if kpi.benchmark is not None:
        line += f" | Benchmark: {kpi.benchmark}"
    if kpi.business_context:
        line += f"\n  Why it matters: {kpi.business_context}"
    return line


def format_kpis(kpis: KPISet) -> Dict[str, str]:
    return {
        "primary": "\n".join(format_kpi(kpi) for kpi in kpis.primary) or "None specified.",
        "secondary": "\n".join(format_kpi(kpi) for kpi in kpis.secondary) or "None specified.",
        "irrelevant": _bullets(kpis.irrelevant),
    }


def format_benchmarks(benchmarks: Dict[str, Optional[ThresholdSet]]) -> str:
    rows = [
        f"| {metric} | {t.excellent} | {t.good} | {t.average} | {t.poor} |"
        for metric, t in benchmarks.items()
        if t is not None
    ]
    if not rows:
        return "No benchmarks defined."
    header = "| Metric | Excellent | Good | Average | Poor |\n|--------|-----------|------|---------|------|"
    return header + "\n" + "\n".join(rows)


def format_patterns(patterns: Sequence[AnalysisPattern]) -> str:
    if not patterns:
        return "No patterns defined."
    return "\n\n".join(
        f"### {p.name}\n- **Indicators:** {', '.join(p.indicators)}\n- **Recommended Action:** {p.recommendation}"
        for p in patterns
    )


def format_examples(examples: Sequence[WorkedExample]) -> str:
    if not examples:
        return "No examples provided."
    return "\n\n".join(
        f"### Example {i}: {ex.scenario}\n**Data:** {ex.data}\n"
        f"**Recommendation:** {ex.recommendation}\n**Reasoning:** {ex.reasoning}"
        for i, ex in enumerate(examples, start=1)
    )


def _client_lines(client: Optional[ClientContext]) -> str:
    if client is None:
        return ""
    lines = [f"Client: {client.name}"]
    if client.industry:
        lines.append(f"Industry: {client.industry}")
    if client.targetMarket:
        lines.append(f"Target Market: {client.targetMarket}")
    for name, value in sorted(client.targets.items()):
        lines.append(f"Target {name}: {value}")
    return "\n".join(lines)


def _truncation_notice(dropped: int, noun: str) -> str:
    if not dropped:
        return ""
    return (
        f"\nNOTE: Data was truncated to fit the prompt. {dropped} lower-priority {noun} omitted. "
        f"Focus analysis on the provided high-priority items.\n"
    )


# =============================================================================
# Bounded Serialization
# =============================================================================

def prioritize_and_truncate(items: Sequence[Any], limit: int) -> Tuple[List[Any], int]:
    """
    Keep the `limit` most important shortlist items.

    Order: priority tier (critical first), then priorityScore descending when
    the item carries one; otherwise the incoming order is kept.
    """
    ranked = sorted(
        items,
        key=lambda item: (item.priority.rank, -float(getattr(item, "priorityScore", 1.0))),
    )
    if len(ranked) <= limit:
        return ranked, 0
    return ranked[:limit], len(ranked) - limit


def serialize_keyword(keyword: EnrichedKeyword) -> Dict[str, Any]:
    data = keyword.model_dump(mode="json", exclude_none=True, exclude={"ruleId"})
    competitive = data.get("competitiveMetrics")
    if competitive and competitive.get("dataLevel") == "none":
        data.pop("competitiveMetrics")
    if not data.get("boostReasons"):
        data.pop("boostReasons", None)
    return data


def serialize_page(page: EnrichedPage) -> Dict[str, Any]:
    data = page.model_dump(mode="json", exclude_none=True, exclude={"ruleId"})
    content = data.get("pageContent")
    if content:
        content["contentSignals"] = {
            signal["id"]: signal["present"] for signal in content.get("contentSignals", [])
        }
    return data


# =============================================================================
# Paid Agent
# =============================================================================

PAID_OUTPUT_FORMAT = """{
  "paidActions": [
    {
      "action": "string",
      "level": "campaign" | "ad_group" | "keyword",
      "expectedUplift": "string",
      "reasoning": "string",
      "impact": "high" | "medium" | "low",
      "keyword": "optional keyword this applies to"
    }
  ]
}"""


def build_paid_prompt(
    keywords: Sequence[EnrichedKeyword],
    skill: PaidSkill,
    client: Optional[ClientContext] = None,
    max_keywords: int = 40,
) -> BuiltPrompt:
    """Render the paid-channel prompt for the shortlisted keywords."""
    included, dropped = prioritize_and_truncate(keywords, max_keywords)
    kpis = format_kpis(skill.kpis)
    benchmarks = format_benchmarks({
        "CTR %": skill.benchmarks.ctr,
        "Conversion Rate %": skill.benchmarks.conversion_rate,
        "CPC": skill.benchmarks.cpc,
        "ROAS": skill.benchmarks.roas,
        "Cost per Conversion": skill.benchmarks.cost_per_conversion,
    })
    keywords_json = json.dumps([serialize_keyword(k) for k in included], indent=2)
    quantified = (
        "Quantify the expected impact of every action." if skill.require_quantified_impact else ""
    )

    text = f"""{skill.prompt.role_context}

## Business Context
{skill.business_model}

Conversion Definition: {skill.conversion_definition}
Customer Journey: {skill.customer_journey}
{_client_lines(client)}

## Key Performance Indicators

### Primary KPIs (Focus Here)
{kpis["primary"]}

### Secondary KPIs
{kpis["secondary"]}

### Metrics to IGNORE (Not Applicable)
{kpis["irrelevant"]}

## Benchmarks for This Business Type
{benchmarks}

## Analysis Guidance
{skill.prompt.analysis_instructions}

## Patterns to Look For
{format_patterns(skill.key_patterns)}

## Anti-Patterns (Problems to Flag)
{format_patterns(skill.anti_patterns)}
{_truncation_notice(dropped, "keywords")}
## Data to Analyze
```json
{keywords_json}
```

## Output Requirements
{skill.prompt.output_guidance}
{quantified}
Return at most {skill.max_recommendations} actions.

## Examples
{format_examples(skill.examples)}

## CRITICAL CONSTRAINTS
{_numbered(skill.prompt.constraints)}

## Output Format
IMPORTANT: Return ONLY valid JSON without markdown code blocks.

{PAID_OUTPUT_FORMAT}"""

    return BuiltPrompt(text=text, included=len(included), dropped=dropped)


# =============================================================================
# Organic Agent
# =============================================================================

ORGANIC_OUTPUT_FORMAT = """{
  "organicActions": [
    {
      "url": "page URL this applies to (optional for site-wide actions)",
      "condition": "the observed issue",
      "recommendation": "string",
      "specificActions": ["step 1", "step 2"],
      "level": "page" | "site_section" | "site",
      "expectedUplift": "optional string",
      "impact": "high" | "medium" | "low"
    }
  ]
}"""


def build_organic_prompt(
    pages: Sequence[EnrichedPage],
    skill: OrganicSkill,
    client: Optional[ClientContext] = None,
    max_pages: int = 25,
) -> BuiltPrompt:
    """Render the organic-channel prompt for the shortlisted pages."""
    included, dropped = prioritize_and_truncate(pages, max_pages)
    kpis = format_kpis(skill.kpis)
    benchmarks = format_benchmarks({
        "Organic CTR %": skill.benchmarks.organic_ctr,
        "Bounce Rate %": skill.benchmarks.bounce_rate,
        "Average Position": skill.benchmarks.avg_position,
    })
    pages_json = json.dumps([serialize_page(p) for p in included], indent=2)
    issues = [f"{issue.pattern} -> {issue.recommendation}" for issue in skill.critical_issues]

    text = f"""{skill.prompt.role_context}

## Site Context
Site Type: {skill.site_type}
Primary Goal: {skill.primary_goal}
Content Strategy: {skill.content_strategy}
{_client_lines(client)}

## Key Performance Indicators

### Primary KPIs (Focus Here)
{kpis["primary"]}

### Secondary KPIs
{kpis["secondary"]}

### Metrics to IGNORE (Not Applicable)
{kpis["irrelevant"]}

## Benchmarks for This Business Type
{benchmarks}

## Structured Data Rules
### Required Schema
{_bullets(skill.schema_rules.required)}

### Recommended Schema
{_bullets(skill.schema_rules.recommended)}

### INVALID Schema (Flag as Error)
{_bullets(skill.schema_rules.invalid)}

## Technical Checks
{_bullets(skill.technical_checks)}

## Critical Issues
{_bullets(issues)}

## Not Problems For This Business Type
{_bullets(skill.false_positives)}

## Analysis Guidance
{skill.prompt.analysis_instructions}
{_truncation_notice(dropped, "pages")}
## Data to Analyze
```json
{pages_json}
```

## Output Requirements
{skill.prompt.output_guidance}
Return at most {skill.max_recommendations} actions.

## Examples
{format_examples(skill.examples)}

## CRITICAL CONSTRAINTS
{_numbered(skill.prompt.constraints)}

## Output Format
IMPORTANT: Return ONLY valid JSON without markdown code blocks.

{ORGANIC_OUTPUT_FORMAT}"""

    return BuiltPrompt(text=text, included=len(included), dropped=dropped)


# =============================================================================
# Director
# =============================================================================

def format_conflict_rules(skill: DirectorSkill) -> str:
    if not skill.conflict_rules:
        return "No conflict resolution rules defined."
    return "\n".join(
        f'- **{r.id}**: When paid says "{r.paid_signal}" and organic says "{r.organic_signal}" '
        f"-> {r.resolution} (Result: {r.resulting_type})"
        for r in skill.conflict_rules
    )


def format_synergy_rules(skill: DirectorSkill) -> str:
    if not skill.synergy_rules:
        return "No synergy rules defined."
    return "\n".join(
        f'- **{r.id}**: When paid has "{r.paid_condition}" AND organic has "{r.organic_condition}" '
        f"-> {r.combined_recommendation}"
        for r in skill.synergy_rules
    )


def format_prioritization_rules(skill: DirectorSkill) -> str:
    if not skill.prioritization:
        return "No prioritization rules defined."
    return "\n".join(
        f"- {r.condition}: {r.adjustment} by {r.factor}x ({r.reason})" for r in skill.prioritization
    )


def build_director_prompt(
    paid_actions: Sequence[PaidAction],
    organic_actions: Sequence[OrganicAction],
    skill: DirectorSkill,
    client: Optional[ClientContext] = None,
) -> BuiltPrompt:
    """Render the Director synthesis prompt over both specialist outputs."""
    labels = skill.category_labels
    input_json = json.dumps(
        {
            "paidAnalysis": [a.model_dump(mode="json", exclude_none=True) for a in paid_actions],
            "organicAnalysis": [a.model_dump(mode="json", exclude_none=True) for a in organic_actions],
        },
        indent=2,
    )
    filtering = skill.filtering

    text = f"""{skill.role_context}

## Business Context
{skill.executive_framing}
{_client_lines(client)}

### Business Priorities (in order)
{_numbered(skill.business_priorities, empty="None specified.")}

### Success Metrics
{_bullets(skill.success_metrics)}

## Specialist Outputs
You have received tactical recommendations from your paid search and organic search specialists:

{input_json}

## Synthesis Rules

### Conflict Resolution
When paid and organic recommendations conflict, apply these rules:
{format_conflict_rules(skill)}

### Synergy Identification
Look for opportunities to combine recommendations:
{format_synergy_rules(skill)}

### Prioritization Adjustments
{format_prioritization_rules(skill)}

## Synthesis Instructions
{skill.synthesis_instructions}

## Filtering
- Maximum recommendations: {filtering.max_recommendations}
- Minimum impact: {filtering.min_impact_threshold.value}

**Must Include:**
{_bullets(filtering.must_include)}

**Must Exclude:**
{_bullets(filtering.must_exclude)}

## Executive Summary
Write a 3-5 sentence summary for leadership.

**Focus Areas to Address:**
{_bullets(skill.focus_areas)}

**Maximum Highlights:** {skill.max_highlights}

## CRITICAL CONSTRAINTS
{_numbered(skill.constraints)}

## Output Requirements
IMPORTANT: Return ONLY valid JSON without markdown code blocks.

{{
  "executiveSummary": {{
    "summary": "3-5 sentence executive overview",
    "keyHighlights": ["highlight 1", "highlight 2", "highlight 3"]
  }},
  "unifiedRecommendations": [
    {{
      "title": "Short actionable title (max 100 chars)",
      "description": "2-3 sentence explanation of the recommendation",
      "category": "{labels.get('paid', 'paid')}" | "{labels.get('organic', 'organic')}" | "{labels.get('hybrid', 'hybrid')}",
      "impact": "high" | "medium" | "low",
      "effort": "high" | "medium" | "low",
      "actionItems": ["specific action 1", "specific action 2"]
    }}
  ]
}}

Remember:
- Maximum {filtering.max_recommendations} recommendations
- Prioritize by business impact
- Be specific and actionable
- Combine related recommendations when possible"""

    return BuiltPrompt(text=text, included=len(paid_actions) + len(organic_actions))


__all__ = [
    "BuiltPrompt",
    "format_kpi",
    "format_kpis",
    "format_benchmarks",
    "format_patterns",
    "format_examples",
    "prioritize_and_truncate",
    "serialize_keyword",
    "serialize_page",
    "build_paid_prompt",
    "build_organic_prompt",
    "format_conflict_rules",
    "format_synergy_rules",
    "format_prioritization_rules",
    "build_director_prompt",
]
