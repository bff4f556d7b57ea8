"""
Pydantic models for the Search Interplay backend.

Field names are camelCase so that the same models double as the JSON contract
for LLM prompts/responses, persisted phase blobs and API payloads.

Sections:
- Metric ingress: PaidMetrics, OrganicMetrics, EngagementMetrics, QueryMetrics,
  PageMetrics, UnifiedMetrics
- Client context: ClientContext, DateRange
- Scout: BattlegroundKeyword, CriticalPage, ScoutFindings
- Researcher: CompetitiveMetrics, PageContent, EnrichedKeyword, EnrichedPage,
  ResearcherData
- Specialist agents: PaidAction, OrganicAction, *AgentResponse, *AgentOutput,
  ConstraintViolation
- Director: ExecutiveSummary, UnifiedRecommendation, DirectorResponse,
  DirectorOutput
- Report: Report, ReportSummary, ReportTrace and request/response models
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.models.enums import (
    BusinessType,
    CompetitiveDataLevel,
    EffortLevel,
    ImpactLevel,
    OrganicActionLevel,
    PaidActionLevel,
    PriorityLevel,
    RecommendationCategory,
    ReportStatus,
    ReportTrigger,
    ViolationSource,
)


# =============================================================================
# Metric Ingress
# =============================================================================

class PaidMetrics(BaseModel):
    """
    Aggregated paid-search metrics for one query over the report window.

    Rates are expressed in percent (0-100). Ratios that cannot be computed
    (e.g. ROAS with zero spend) are None rather than zero.
    """
    spend: float = 0.0
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    conversionValue: Optional[float] = None
    cpc: Optional[float] = None
    ctr: Optional[float] = None
    roas: Optional[float] = None


class OrganicMetrics(BaseModel):
    """Aggregated Search Console metrics for one query."""
    position: Optional[float] = None
    clicks: int = 0
    impressions: int = 0
    ctr: Optional[float] = None
    url: Optional[str] = Field(None, description="Landing page with the most impressions")


class EngagementMetrics(BaseModel):
    """GA4 landing-page engagement joined onto a query through its organic URL."""
    sessions: int = 0
    bounceRate: Optional[float] = None
    engagementRate: Optional[float] = None
    avgSessionDuration: Optional[float] = None
    conversions: float = 0.0
    revenue: Optional[float] = None


class QueryMetrics(BaseModel):
    """
    Unified per-query record produced by the metrics provider.

    Each block is optional; a query seen only in Search Console has no `paid`
    block, and absence is never coerced to zero.
    """
    query: str
    paid: Optional[PaidMetrics] = None
    organic: Optional[OrganicMetrics] = None
    engagement: Optional[EngagementMetrics] = None


class PageMetrics(BaseModel):
    """
    Unified per-landing-page record.

    Organic figures come from Search Console rows whose top page is this URL;
    paidSpend sums the ad spend of queries landing on it; engagement comes
    from GA4.
    """
    url: str
    paidSpend: float = 0.0
    organicPosition: Optional[float] = None
    impressions: int = 0
    clicks: int = 0
    ctr: Optional[float] = None
    sessions: Optional[int] = None
    bounceRate: Optional[float] = None
    conversions: Optional[float] = None
    conversionRate: Optional[float] = None
    avgTimeOnPage: Optional[float] = None
    revenue: Optional[float] = None


class UnifiedMetrics(BaseModel):
    """Everything the pipeline reads for one client and date window."""
    queries: List[QueryMetrics] = Field(default_factory=list)
    pages: List[PageMetrics] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.queries and not self.pages


# =============================================================================
# Client Context
# =============================================================================

class DateRange(BaseModel):
    """Historical window analyzed by one report; `days` is the span back from `end`."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


class ClientContext(BaseModel):
    """
    Client attributes the pipeline needs beyond raw metrics.

    Attributes:
        brandTerms: Lower-case brand tokens used for the isBrandTerm flag.
        competitorTerms: Lower-case competitor tokens for isCompetitorTerm.
        targets: Named numeric targets (e.g. targetCpl) usable in rule conditions.
    """
    clientId: str
    name: str
    businessType: BusinessType = BusinessType.ECOMMERCE
    industry: Optional[str] = None
    targetMarket: Optional[str] = None
    brandTerms: List[str] = Field(default_factory=list)
    competitorTerms: List[str] = Field(default_factory=list)
    targets: Dict[str, float] = Field(default_factory=dict)


# =============================================================================
# Scout
# =============================================================================

class BattlegroundKeyword(BaseModel):
    """Keyword shortlisted by a Scout rule for paid/organic interplay analysis."""
    query: str
    priority: PriorityLevel
    ruleId: str
    reason: str
    spend: float = 0.0
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    roas: Optional[float] = None
    cpl: Optional[float] = None
    organicPosition: Optional[float] = None
    impressionShare: Optional[float] = None


class CriticalPage(BaseModel):
    """Landing page shortlisted by a Scout rule."""
    url: str
    priority: PriorityLevel
    ruleId: str
    reason: str
    paidSpend: float = 0.0
    organicPosition: Optional[float] = None
    bounceRate: Optional[float] = None
    impressions: int = 0
    ctr: Optional[float] = None
    sessions: Optional[int] = None


class ScoutSummary(BaseModel):
    totalKeywordsAnalyzed: int = 0
    totalPagesAnalyzed: int = 0
    criticalCount: int = 0
    highPriorityCount: int = 0


class ScoutFindings(BaseModel):
    """Output of the deterministic triage phase."""
    battlegroundKeywords: List[BattlegroundKeyword] = Field(default_factory=list)
    criticalPages: List[CriticalPage] = Field(default_factory=list)
    summary: ScoutSummary = Field(default_factory=ScoutSummary)
    thresholdsApplied: Dict[str, float] = Field(default_factory=dict)
    skillVersion: Optional[str] = None


# =============================================================================
# Researcher
# =============================================================================

class CompetitiveMetrics(BaseModel):
    """Auction-insight metrics for a keyword (percent values)."""
    impressionShare: Optional[float] = None
    lostImpressionShareRank: Optional[float] = None
    lostImpressionShareBudget: Optional[float] = None
    outrankingShare: Optional[float] = None
    overlapRate: Optional[float] = None
    topOfPageRate: Optional[float] = None
    positionAboveRate: Optional[float] = None
    absTopOfPageRate: Optional[float] = None
    dataLevel: CompetitiveDataLevel = CompetitiveDataLevel.NONE


class ContentSignalResult(BaseModel):
    id: str
    name: str
    importance: str
    present: bool


class PageContent(BaseModel):
    """Structured facts extracted from a fetched landing page."""
    title: Optional[str] = None
    h1: Optional[str] = None
    metaDescription: Optional[str] = None
    canonicalUrl: Optional[str] = None
    wordCount: int = 0
    contentPreview: str = ""
    schemaTypes: List[str] = Field(default_factory=list)
    schemaErrors: List[str] = Field(default_factory=list)
    contentSignals: List[ContentSignalResult] = Field(default_factory=list)
    pageType: Optional[str] = None
    pageTypeConfidence: float = 0.0


class EnrichedKeyword(BattlegroundKeyword):
    competitiveMetrics: Optional[CompetitiveMetrics] = None
    priorityScore: float = 1.0
    boostReasons: List[str] = Field(default_factory=list)


class EnrichedPage(CriticalPage):
    pageContent: Optional[PageContent] = None


class ResearcherDataQuality(BaseModel):
    keywordsWithCompetitiveData: int = 0
    keywordsEnrichmentFailed: int = 0
    pagesWithContent: int = 0
    pagesEnrichmentFailed: int = 0


class ResearcherData(BaseModel):
    """Scout shortlists annotated with whatever enrichment succeeded."""
    enrichedKeywords: List[EnrichedKeyword] = Field(default_factory=list)
    enrichedPages: List[EnrichedPage] = Field(default_factory=list)
    dataQuality: ResearcherDataQuality = Field(default_factory=ResearcherDataQuality)
    warnings: List[str] = Field(default_factory=list)
    skillVersion: Optional[str] = None


# =============================================================================
# Specialist Agents
# =============================================================================

class PaidAction(BaseModel):
    """One paid-search action proposed by the paid-channel agent."""
    action: str = Field(..., min_length=5)
    level: PaidActionLevel
    expectedUplift: str = Field(..., min_length=5)
    reasoning: str = Field(..., min_length=10)
    impact: ImpactLevel
    keyword: Optional[str] = None


class PaidAgentResponse(BaseModel):
    """Schema the paid-channel model response must satisfy."""
    paidActions: List[PaidAction] = Field(..., min_length=1, max_length=15)


class OrganicAction(BaseModel):
    """One organic-search action proposed by the organic-channel agent."""
    url: Optional[str] = None
    condition: str = Field(..., min_length=5, description="Observed issue motivating the action")
    recommendation: str = Field(..., min_length=5)
    specificActions: List[str] = Field(..., min_length=1, max_length=5)
    level: OrganicActionLevel = OrganicActionLevel.PAGE
    expectedUplift: Optional[str] = None
    impact: ImpactLevel

    @field_validator("specificActions")
    @classmethod
    def _actions_are_descriptive(cls, value: List[str]) -> List[str]:
        for item in value:
            if len(item.strip()) < 5:
                raise ValueError("each specific action must be at least 5 characters")
        return value


class OrganicAgentResponse(BaseModel):
    """Schema the organic-channel model response must satisfy."""
    organicActions: List[OrganicAction] = Field(..., min_length=1, max_length=15)


class ConstraintViolation(BaseModel):
    """Specialist output that breached a business-type domain rule."""
    source: ViolationSource
    ruleId: str
    matchedContent: str = Field(..., max_length=200)


class PaidAgentOutput(BaseModel):
    actions: List[PaidAction] = Field(default_factory=list)
    tokensUsed: int = 0
    attempts: int = 0
    filteredOut: int = 0
    droppedFromPrompt: int = 0
    violations: List[ConstraintViolation] = Field(default_factory=list)


class OrganicAgentOutput(BaseModel):
    actions: List[OrganicAction] = Field(default_factory=list)
    tokensUsed: int = 0
    attempts: int = 0
    filteredOut: int = 0
    droppedFromPrompt: int = 0
    violations: List[ConstraintViolation] = Field(default_factory=list)


# =============================================================================
# Director
# =============================================================================

_CATEGORY_ALIASES = {
    "sem": RecommendationCategory.PAID,
    "ppc": RecommendationCategory.PAID,
    "paid search": RecommendationCategory.PAID,
    "seo": RecommendationCategory.ORGANIC,
    "organic search": RecommendationCategory.ORGANIC,
    "local seo": RecommendationCategory.ORGANIC,
    "cross-channel": RecommendationCategory.HYBRID,
    "both channels": RecommendationCategory.HYBRID,
}


class ExecutiveSummary(BaseModel):
    summary: str = Field(..., min_length=20, max_length=1000)
    keyHighlights: List[str] = Field(..., min_length=1, max_length=5)


class UnifiedRecommendation(BaseModel):
    """
    Final cross-channel recommendation produced by the Director.

    Category labels from skill prompts ("SEM", "Paid Search", "Local SEO", ...)
    are normalized onto paid/organic/hybrid.
    """
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    category: RecommendationCategory
    impact: ImpactLevel
    effort: EffortLevel
    actionItems: List[str] = Field(..., min_length=1, max_length=5)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _CATEGORY_ALIASES.get(lowered, lowered)
        return value

    @field_validator("impact", "effort", mode="before")
    @classmethod
    def _normalize_tier(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class DirectorResponse(BaseModel):
    """Schema the Director model response must satisfy."""
    executiveSummary: ExecutiveSummary
    unifiedRecommendations: List[UnifiedRecommendation] = Field(..., min_length=1)


class FilteringStats(BaseModel):
    received: int = 0
    excluded: int = 0
    belowThreshold: int = 0
    reinserted: int = 0
    truncated: int = 0


class DirectorOutput(BaseModel):
    """Executive summary plus the ranked, filtered recommendation list."""
    executiveSummary: ExecutiveSummary
    unifiedRecommendations: List[UnifiedRecommendation] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    usedFallback: bool = False
    skippedAiCall: bool = False
    tokensUsed: int = 0
    attempts: int = 0
    filtering: FilteringStats = Field(default_factory=FilteringStats)


# =============================================================================
# Report
# =============================================================================

class SkillMetadata(BaseModel):
    businessType: BusinessType
    skillVersion: str
    usingFallback: bool = False


class PerformanceMetrics(BaseModel):
    """Per-phase timings and quality counters for one report run."""
    scoutMs: Optional[int] = None
    researcherMs: Optional[int] = None
    paidAgentMs: Optional[int] = None
    organicAgentMs: Optional[int] = None
    directorMs: Optional[int] = None
    totalMs: Optional[int] = None
    keywordsDroppedFromPrompt: int = 0
    pagesDroppedFromPrompt: int = 0
    constraintViolations: int = 0


class Report(BaseModel):
    """
    Persisted state of one pipeline invocation.

    Each phase writes only its own field; fields stay None until their phase
    completes, so a failed report shows exactly how far it got.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    clientId: str
    trigger: ReportTrigger
    status: ReportStatus
    dateRangeStart: date
    dateRangeEnd: date
    dateRangeDays: int
    scoutFindings: Optional[ScoutFindings] = None
    researcherData: Optional[ResearcherData] = None
    paidAgentOutput: Optional[PaidAgentOutput] = None
    organicAgentOutput: Optional[OrganicAgentOutput] = None
    directorOutput: Optional[DirectorOutput] = None
    skillMetadata: Optional[SkillMetadata] = None
    performanceMetrics: Optional[PerformanceMetrics] = None
    warnings: List[str] = Field(default_factory=list)
    tokensUsed: Optional[int] = None
    processingTimeMs: Optional[int] = None
    errorMessage: Optional[str] = None
    createdAt: Optional[datetime] = None
    startedAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None


class ReportCreateRequest(BaseModel):
    """Request body for triggering a new report."""
    clientId: str = Field(..., description="Client account UUID")
    trigger: ReportTrigger = ReportTrigger.MANUAL
    days: Optional[int] = Field(None, ge=1, le=365)
    startDate: Optional[date] = None
    endDate: Optional[date] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "clientId": "6f1c2b1e-9a4d-4c55-8d0e-2f3a9b7c1d20",
                "trigger": "manual",
                "days": 30,
            }
        }
    )


class ReportCreateResponse(BaseModel):
    reportId: str
    status: ReportStatus


class ReportSummary(BaseModel):
    """Summary fields plus Director output, for dashboards."""
    id: str
    clientId: str
    trigger: ReportTrigger
    status: ReportStatus
    dateRangeStart: date
    dateRangeEnd: date
    dateRangeDays: int
    executiveSummary: Optional[ExecutiveSummary] = None
    unifiedRecommendations: List[UnifiedRecommendation] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    tokensUsed: Optional[int] = None
    processingTimeMs: Optional[int] = None
    errorMessage: Optional[str] = None
    createdAt: Optional[datetime] = None
    completedAt: Optional[datetime] = None

    @classmethod
    def from_report(cls, report: Report) -> "ReportSummary":
        director = report.directorOutput
        return cls(
            id=report.id,
            clientId=report.clientId,
            trigger=report.trigger,
            status=report.status,
            dateRangeStart=report.dateRangeStart,
            dateRangeEnd=report.dateRangeEnd,
            dateRangeDays=report.dateRangeDays,
            executiveSummary=director.executiveSummary if director else None,
            unifiedRecommendations=director.unifiedRecommendations if director else [],
            warnings=report.warnings,
            tokensUsed=report.tokensUsed,
            processingTimeMs=report.processingTimeMs,
            errorMessage=report.errorMessage,
            createdAt=report.createdAt,
            completedAt=report.completedAt,
        )


class ReportTrace(BaseModel):
    """Phase-by-phase debugging view of a report."""
    id: str
    clientId: str
    status: ReportStatus
    errorMessage: Optional[str] = None
    skillMetadata: Optional[SkillMetadata] = None
    performanceMetrics: Optional[PerformanceMetrics] = None
    warnings: List[str] = Field(default_factory=list)
    scoutFindings: Optional[ScoutFindings] = None
    researcherData: Optional[ResearcherData] = None
    paidAgentOutput: Optional[PaidAgentOutput] = None
    organicAgentOutput: Optional[OrganicAgentOutput] = None
    directorOutput: Optional[DirectorOutput] = None

    @classmethod
    def from_report(cls, report: Report) -> "ReportTrace":
        return cls(
            id=report.id,
            clientId=report.clientId,
            status=report.status,
            errorMessage=report.errorMessage,
            skillMetadata=report.skillMetadata,
            performanceMetrics=report.performanceMetrics,
            warnings=report.warnings,
            scoutFindings=report.scoutFindings,
            researcherData=report.researcherData,
            paidAgentOutput=report.paidAgentOutput,
            organicAgentOutput=report.organicAgentOutput,
            directorOutput=report.directorOutput,
        )


__all__ = [
    "PaidMetrics",
    "OrganicMetrics",
    "EngagementMetrics",
    "QueryMetrics",
    "PageMetrics",
    "UnifiedMetrics",
    "DateRange",
    "ClientContext",
    "BattlegroundKeyword",
    "CriticalPage",
    "ScoutSummary",
    "ScoutFindings",
    "CompetitiveMetrics",
    "ContentSignalResult",
    "PageContent",
    "EnrichedKeyword",
    "EnrichedPage",
    "ResearcherDataQuality",
    "ResearcherData",
    "PaidAction",
    "PaidAgentResponse",
    "OrganicAction",
    "OrganicAgentResponse",
    "ConstraintViolation",
    "PaidAgentOutput",
    "OrganicAgentOutput",
    "ExecutiveSummary",
    "UnifiedRecommendation",
    "DirectorResponse",
    "FilteringStats",
    "DirectorOutput",
    "SkillMetadata",
    "PerformanceMetrics",
    "Report",
    "ReportCreateRequest",
    "ReportCreateResponse",
    "ReportSummary",
    "ReportTrace",
]
