"""
Skill bundle type definitions.

A skill bundle is immutable, versioned configuration for one business type. It
carries everything the pipeline needs to behave differently for an online
store, a lead-generation service business, a SaaS product or a local
business:

- ScoutSkill: thresholds, named priority rules, metric relevance, limits
- ResearcherSkill: competitive-metric requirements, priority boosts, page
  schema/content/classification rules, data-quality floors
- PaidSkill / OrganicSkill: domain context, KPIs, benchmarks, pattern
  catalogues, prompt fragments, worked examples, output allow/deny lists
- DirectorSkill: conflict/synergy/prioritization tables and the deterministic
  filtering block (max count, minimum impact, weights, must-include/exclude)

All models are frozen; bundles are built once at import time and never
mutated.

Rule conditions are expressions over metric names, thresholds, client
targets and boolean signals, e.g. "spend > highSpendThreshold AND roas <
lowRoasThreshold". See backend.services.conditions for the grammar.
"""

from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from backend.models.enums import BusinessType, ImpactLevel, PriorityLevel


Importance = Literal["critical", "high", "medium", "low"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Shared building blocks
# =============================================================================

class KPIDefinition(FrozenModel):
    metric: str
    importance: Importance
    description: str
    target_direction: Literal["higher", "lower", "target"]
    benchmark: Optional[float] = None
    business_context: str = ""


class ThresholdSet(FrozenModel):
    excellent: float
    good: float
    average: float
    poor: float


class KPISet(FrozenModel):
    primary: Tuple[KPIDefinition, ...]
    secondary: Tuple[KPIDefinition, ...] = ()
    irrelevant: Tuple[str, ...] = ()


class PromptFragments(FrozenModel):
    role_context: str
    analysis_instructions: str
    output_guidance: str
    constraints: Tuple[str, ...] = ()


class WorkedExample(FrozenModel):
    scenario: str
    data: str
    recommendation: str
    reasoning: str


class RecommendationTypes(FrozenModel):
    """Output allow/deny lists; entries are hyphenated action-type slugs."""
    prioritize: Tuple[str, ...] = ()
    deprioritize: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()


# =============================================================================
# Scout
# =============================================================================

class ScoutThresholds(FrozenModel):
    high_spend_threshold: float
    low_roas_threshold: float
    cannibalization_position: float
    high_bounce_rate_threshold: float
    low_ctr_threshold: float
    min_impressions_for_analysis: float = 0

    def as_namespace(self) -> Dict[str, float]:
        """Threshold names as they appear in rule conditions."""
        return {
            "highSpendThreshold": self.high_spend_threshold,
            "lowRoasThreshold": self.low_roas_threshold,
            "cannibalizationPosition": self.cannibalization_position,
            "highBounceRateThreshold": self.high_bounce_rate_threshold,
            "lowCtrThreshold": self.low_ctr_threshold,
            "minImpressionsForAnalysis": self.min_impressions_for_analysis,
        }


class PriorityRule(FrozenModel):
    id: str
    name: str
    description: str
    condition: str
    priority: PriorityLevel
    enabled: bool = True


class SignalPattern(FrozenModel):
    """Boolean signal derived by regex from a query or page URL (e.g. isProductPage)."""
    name: str
    target: Literal["query", "url"]
    pattern: str


class ScoutMetrics(FrozenModel):
    include: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()
    primary: Tuple[str, ...]


class ScoutSkill(FrozenModel):
    version: str
    thresholds: ScoutThresholds
    keyword_rules: Tuple[PriorityRule, ...]
    page_rules: Tuple[PriorityRule, ...]
    signals: Tuple[SignalPattern, ...] = ()
    metrics: ScoutMetrics
    max_battleground_keywords: int = Field(..., gt=0)
    max_critical_pages: int = Field(..., gt=0)


# =============================================================================
# Researcher
# =============================================================================

class PriorityBoost(FrozenModel):
    metric: str
    condition: str
    boost: float
    reason: str


class ContentSignal(FrozenModel):
    id: str
    name: str
    selector: str
    importance: Importance
    description: str = ""


class PagePattern(FrozenModel):
    pattern: str
    page_type: str
    confidence: float


class SchemaExtraction(FrozenModel):
    look_for: Tuple[str, ...] = ()
    flag_if_present: Tuple[str, ...] = ()
    flag_if_missing: Tuple[str, ...] = ()


class ResearcherSkill(FrozenModel):
    version: str
    required_competitive_metrics: Tuple[str, ...] = ()
    optional_competitive_metrics: Tuple[str, ...] = ()
    irrelevant_competitive_metrics: Tuple[str, ...] = ()
    priority_boosts: Tuple[PriorityBoost, ...] = ()
    schema_extraction: SchemaExtraction = SchemaExtraction()
    content_signals: Tuple[ContentSignal, ...] = ()
    page_patterns: Tuple[PagePattern, ...] = ()
    default_page_type: str = "landing"
    page_confidence_threshold: float = 0.7
    min_keywords_with_competitive_data: int = 0
    min_pages_with_content: int = 0
    max_fetch_timeout_seconds: float = 10.0
    max_concurrent_fetches: int = 3


# =============================================================================
# Specialists
# =============================================================================

class AnalysisPattern(FrozenModel):
    id: str
    name: str
    indicators: Tuple[str, ...]
    recommendation: str


class PaidBenchmarks(FrozenModel):
    ctr: ThresholdSet
    conversion_rate: ThresholdSet
    cpc: ThresholdSet
    roas: Optional[ThresholdSet] = None
    cost_per_conversion: Optional[ThresholdSet] = None


class PaidSkill(FrozenModel):
    version: str
    business_model: str
    conversion_definition: str
    customer_journey: str
    kpis: KPISet
    benchmarks: PaidBenchmarks
    key_patterns: Tuple[AnalysisPattern, ...] = ()
    anti_patterns: Tuple[AnalysisPattern, ...] = ()
    prompt: PromptFragments
    examples: Tuple[WorkedExample, ...] = ()
    recommendation_types: RecommendationTypes = RecommendationTypes()
    max_recommendations: int = Field(8, gt=0)
    require_quantified_impact: bool = True


class OrganicBenchmarks(FrozenModel):
    organic_ctr: ThresholdSet
    bounce_rate: ThresholdSet
    avg_position: ThresholdSet


class SchemaRules(FrozenModel):
    required: Tuple[str, ...] = ()
    recommended: Tuple[str, ...] = ()
    invalid: Tuple[str, ...] = ()


class IssueDefinition(FrozenModel):
    id: str
    pattern: str
    recommendation: str


class OrganicSkill(FrozenModel):
    version: str
    site_type: str
    primary_goal: str
    content_strategy: str
    schema_rules: SchemaRules
    kpis: KPISet
    benchmarks: OrganicBenchmarks
    technical_checks: Tuple[str, ...] = ()
    prompt: PromptFragments
    examples: Tuple[WorkedExample, ...] = ()
    critical_issues: Tuple[IssueDefinition, ...] = ()
    false_positives: Tuple[str, ...] = ()
    recommendation_types: RecommendationTypes = RecommendationTypes()
    max_recommendations: int = Field(8, gt=0)


# =============================================================================
# Director
# =============================================================================

class ConflictRule(FrozenModel):
    id: str
    paid_signal: str
    organic_signal: str
    resolution: str
    resulting_type: Literal["paid", "organic", "hybrid", "drop"]


class SynergyRule(FrozenModel):
    id: str
    paid_condition: str
    organic_condition: str
    combined_recommendation: str


class PrioritizationRule(FrozenModel):
    condition: str
    adjustment: Literal["boost", "reduce", "require", "exclude"]
    factor: float
    reason: str


class ImpactWeights(FrozenModel):
    revenue: float
    cost: float
    effort: float
    risk: float


class DirectorFiltering(FrozenModel):
    max_recommendations: int = Field(..., gt=0)
    min_impact_threshold: ImpactLevel
    impact_weights: ImpactWeights
    must_include: Tuple[str, ...] = ()
    must_exclude: Tuple[str, ...] = ()


class DirectorSkill(FrozenModel):
    version: str
    business_priorities: Tuple[str, ...]
    success_metrics: Tuple[str, ...]
    executive_framing: str
    conflict_rules: Tuple[ConflictRule, ...] = ()
    synergy_rules: Tuple[SynergyRule, ...] = ()
    prioritization: Tuple[PrioritizationRule, ...] = ()
    filtering: DirectorFiltering
    focus_areas: Tuple[str, ...] = ()
    max_highlights: int = 5
    role_context: str
    synthesis_instructions: str
    constraints: Tuple[str, ...] = ()
    category_labels: Dict[str, str] = Field(
        default_factory=lambda: {"paid": "Paid Search", "organic": "Organic Search", "hybrid": "Cross-Channel"}
    )


# =============================================================================
# Bundle
# =============================================================================

class SkillBundle(FrozenModel):
    """Complete skill configuration for one business type."""
    business_type: BusinessType
    version: str
    scout: ScoutSkill
    researcher: ResearcherSkill
    paid: PaidSkill
    organic: OrganicSkill
    director: DirectorSkill


__all__ = [
    "KPIDefinition",
    "ThresholdSet",
    "KPISet",
    "PromptFragments",
    "WorkedExample",
    "RecommendationTypes",
    "ScoutThresholds",
    "PriorityRule",
    "SignalPattern",
    "ScoutMetrics",
    "ScoutSkill",
    "PriorityBoost",
    "ContentSignal",
    "PagePattern",
    "SchemaExtraction",
    "ResearcherSkill",
    "AnalysisPattern",
    "PaidBenchmarks",
    "PaidSkill",
    "OrganicBenchmarks",
    "SchemaRules",
    "IssueDefinition",
    "OrganicSkill",
    "ConflictRule",
    "SynergyRule",
    "PrioritizationRule",
    "ImpactWeights",
    "DirectorFiltering",
    "DirectorSkill",
    "SkillBundle",
]
