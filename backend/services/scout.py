"""
Scout - deterministic triage of unified metrics.

Scout scans every query and landing page against the skill's named priority
rules and shortlists "battleground keywords" and "critical pages" for the
rest of the pipeline. No I/O and no AI: identical metrics, client context and
skill always produce identical findings.

Algorithm (per list):
1. Build a metric namespace for each row: raw metrics, derived ratios
   (cpl, cac, conversionRate, ...), skill thresholds, client targets and
   boolean signals (isBrandTerm, isCompetitorTerm, skill regex signals).
   Metrics the skill marks as excluded are blanked to None.
2. Rules are ordered by tier (critical > high > medium > low, declaration
   order within a tier). The first enabled rule whose condition holds
   claims the row.
3. Duplicates by identity (normalized query / URL) keep the best match.
4. Sort by tier, then the skill's primary metric descending (missing values
   last), then identity; truncate to the skill's maximum counts.

Rates in the namespace are percentages (ctr 1.5 means 1.5%).
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from backend.models import (
    BattlegroundKeyword,
    ClientContext,
    CriticalPage,
    PageMetrics,
    PriorityLevel,
    QueryMetrics,
    ScoutFindings,
    ScoutSummary,
    UnifiedMetrics,
)
from backend.services.conditions import evaluate_condition, safe_ratio
from backend.skills.types import PriorityRule, ScoutSkill, SignalPattern

logger = logging.getLogger(__name__)


# =============================================================================
# Namespace Construction
# =============================================================================

def normalize_query(query: str) -> str:
    return " ".join(query.lower().split())


def _contains_term(text: str, terms: Iterable[str]) -> bool:
    lowered = text.lower()
    for term in terms:
        term = term.strip().lower()
        if term and re.search(rf"(?<!\w){re.escape(term)}(?!\w)", lowered):
            return True
    return False


def signal_values(signals: Iterable[SignalPattern], target: str, text: str) -> Dict[str, bool]:
    """Evaluate the regex signals aimed at `target` ("query" or "url") against text."""
    return {
        signal.name: bool(re.search(signal.pattern, text, re.IGNORECASE))
        for signal in signals
        if signal.target == target
    }


def _base_namespace(skill: ScoutSkill, client: ClientContext) -> Dict[str, Any]:
    namespace: Dict[str, Any] = dict(skill.thresholds.as_namespace())
    namespace.update(client.targets)
    return namespace


def _apply_exclusions(namespace: Dict[str, Any], skill: ScoutSkill) -> Dict[str, Any]:
    for metric in skill.metrics.exclude:
        if metric in namespace:
            namespace[metric] = None
    return namespace


def keyword_namespace(row: QueryMetrics, skill: ScoutSkill, client: ClientContext) -> Dict[str, Any]:
    """
    Metric namespace for one query row.

    Paid metrics are None when the query has no paid block, so paid rules
    never match organic-only queries.
    """
    paid = row.paid
    organic = row.organic
    engagement = row.engagement

    spend = paid.spend if paid else None
    conversions = paid.conversions if paid else None
    clicks = paid.clicks if paid else None
    cost_per_conversion = safe_ratio(spend, conversions)

    namespace = _base_namespace(skill, client)
    namespace.update({
        "spend": spend,
        "clicks": clicks,
        "impressions": paid.impressions if paid else (organic.impressions if organic else None),
        "conversions": conversions,
        "conversionValue": paid.conversionValue if paid else None,
        "revenue": paid.conversionValue if paid else None,
        "cpc": paid.cpc if paid else None,
        "ctr": paid.ctr if paid else None,
        "roas": paid.roas if paid else None,
        "cpl": cost_per_conversion,
        "cac": cost_per_conversion,
        "conversionRate": safe_ratio(conversions, clicks, 100.0),
        "organicPosition": organic.position if organic else None,
        "organicClicks": organic.clicks if organic else None,
        "organicImpressions": organic.impressions if organic else None,
        "organicCtr": organic.ctr if organic else None,
        "bounceRate": engagement.bounceRate if engagement else None,
        "sessions": engagement.sessions if engagement else None,
        # Auction data is attached later by the Researcher
        "impressionShare": None,
        "hasPaid": paid is not None,
        "hasOrganic": organic is not None and organic.position is not None,
        "isBrandTerm": _contains_term(row.query, client.brandTerms),
        "isCompetitorTerm": _contains_term(row.query, client.competitorTerms),
    })
    namespace.update(signal_values(skill.signals, "query", row.query))
    return _apply_exclusions(namespace, skill)


def page_namespace(page: PageMetrics, skill: ScoutSkill, client: ClientContext) -> Dict[str, Any]:
    """Metric namespace for one landing page."""
    namespace = _base_namespace(skill, client)
    namespace.update({
        "url": page.url,
        "paidSpend": page.paidSpend,
        "organicPosition": page.organicPosition,
        "position": page.organicPosition,
        "impressions": page.impressions,
        "clicks": page.clicks,
        "ctr": page.ctr,
        "sessions": page.sessions,
        "bounceRate": page.bounceRate,
        "conversions": page.conversions,
        "conversionRate": page.conversionRate,
        "avgTimeOnPage": page.avgTimeOnPage,
        "revenue": page.revenue,
        "roas": safe_ratio(page.revenue, page.paidSpend),
    })
    namespace.update(signal_values(skill.signals, "url", page.url))
    return _apply_exclusions(namespace, skill)


# =============================================================================
# Rule Matching
# =============================================================================

def ordered_rules(rules: Sequence[PriorityRule]) -> List[PriorityRule]:
    """Enabled rules by tier; declaration order is kept within a tier."""
    return sorted((rule for rule in rules if rule.enabled), key=lambda rule: rule.priority.rank)


def first_matching_rule(rules: Sequence[PriorityRule], namespace: Dict[str, Any]) -> Optional[PriorityRule]:
    for rule in rules:
        if evaluate_condition(rule.condition, namespace):
            return rule
    return None


def _sort_key(priority: PriorityLevel, primary_value: Any, identity: str) -> Tuple[int, int, float, str]:
    if isinstance(primary_value, (int, float)) and not isinstance(primary_value, bool):
        return (priority.rank, 0, -float(primary_value), identity)
    return (priority.rank, 1, 0.0, identity)


def _select(
    matches: List[Tuple[Tuple, str, Any]],
    limit: int,
) -> List[Any]:
    """Deduplicate by identity keeping the best sort key, then sort and truncate."""
    best: Dict[str, Tuple[Tuple, Any]] = {}
    for key, identity, item in matches:
        current = best.get(identity)
        if current is None or key < current[0]:
            best[identity] = (key, item)
    ranked = sorted(best.values(), key=lambda entry: entry[0])
    return [item for _, item in ranked[:limit]]


# =============================================================================
# Entry Point
# =============================================================================

def run_scout(metrics: UnifiedMetrics, skill: ScoutSkill, client: ClientContext) -> ScoutFindings:
    """
    Shortlist battleground keywords and critical pages.

    Args:
        metrics: Unified query and page metrics for the report window.
        skill: Scout portion of the active skill bundle.
        client: Client context (brand/competitor terms, targets).

    Returns:
        ScoutFindings with both shortlists, summary counts and the thresholds
        that were applied.
    """
    primary_metric = skill.metrics.primary[0] if skill.metrics.primary else None
    min_impressions = skill.thresholds.min_impressions_for_analysis

    keyword_rules = ordered_rules(skill.keyword_rules)
    page_rules = ordered_rules(skill.page_rules)

    keyword_matches: List[Tuple[Tuple, str, Any]] = []
    keywords_analyzed = 0
    for row in metrics.queries:
        namespace = keyword_namespace(row, skill, client)
        impressions = namespace.get("impressions") or 0
        if impressions < min_impressions:
            continue
        keywords_analyzed += 1

        rule = first_matching_rule(keyword_rules, namespace)
        if rule is None:
            continue

        identity = normalize_query(row.query)
        paid = row.paid
        keyword = BattlegroundKeyword(
            query=row.query,
            priority=rule.priority,
            ruleId=rule.id,
            reason=f"{rule.name}: {rule.description}",
            spend=paid.spend if paid else 0.0,
            clicks=paid.clicks if paid else 0,
            impressions=int(impressions),
            conversions=paid.conversions if paid else 0.0,
            roas=namespace.get("roas"),
            cpl=namespace.get("cpl"),
            organicPosition=namespace.get("organicPosition"),
            impressionShare=namespace.get("impressionShare"),
        )
        key = _sort_key(rule.priority, namespace.get(primary_metric) if primary_metric else None, identity)
        keyword_matches.append((key, identity, keyword))

    page_matches: List[Tuple[Tuple, str, Any]] = []
    for page in metrics.pages:
        namespace = page_namespace(page, skill, client)
        rule = first_matching_rule(page_rules, namespace)
        if rule is None:
            continue

        critical_page = CriticalPage(
            url=page.url,
            priority=rule.priority,
            ruleId=rule.id,
            reason=f"{rule.name}: {rule.description}",
            paidSpend=page.paidSpend,
            organicPosition=page.organicPosition,
            bounceRate=page.bounceRate,
            impressions=page.impressions,
            ctr=page.ctr,
            sessions=page.sessions,
        )
        key = _sort_key(rule.priority, namespace.get(primary_metric) if primary_metric else None, page.url)
        page_matches.append((key, page.url, critical_page))

    battleground = _select(keyword_matches, skill.max_battleground_keywords)
    critical_pages = _select(page_matches, skill.max_critical_pages)

    shortlisted = [item.priority for item in battleground] + [item.priority for item in critical_pages]
    summary = ScoutSummary(
        totalKeywordsAnalyzed=keywords_analyzed,
        totalPagesAnalyzed=len(metrics.pages),
        criticalCount=shortlisted.count(PriorityLevel.CRITICAL),
        highPriorityCount=shortlisted.count(PriorityLevel.HIGH),
    )

    logger.info(
        f"Scout shortlisted {len(battleground)} keywords and {len(critical_pages)} pages "
        f"({summary.criticalCount} critical, {summary.highPriorityCount} high)"
    )

    return ScoutFindings(
        battlegroundKeywords=battleground,
        criticalPages=critical_pages,
        summary=summary,
        thresholdsApplied=skill.thresholds.as_namespace(),
        skillVersion=skill.version,
    )


__all__ = [
    "normalize_query",
    "signal_values",
    "keyword_namespace",
    "page_namespace",
    "ordered_rules",
    "first_matching_rule",
    "run_scout",
]
