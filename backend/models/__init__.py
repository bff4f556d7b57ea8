"""
Package initialization file for backend models.

Re-exports all Pydantic schemas and enumerations from schemas.py and enums.py so
that other backend modules can import data models from backend.models directly.

Usage:
    from backend.models import (
        ReportStatus,
        BusinessType,
        QueryMetrics,
        ScoutFindings,
        UnifiedRecommendation,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from backend.models.enums import (
    # Report lifecycle
    ReportStatus,
    ReportTrigger,
    # Skill selection
    BusinessType,
    # Tiers
    PriorityLevel,
    ImpactLevel,
    EffortLevel,
    # Agent output shapes
    RecommendationCategory,
    PaidActionLevel,
    OrganicActionLevel,
    CompetitiveDataLevel,
    ViolationSource,
    # Downstream workflow
    ApprovalStatus,
    RecommendationSource,
)

# =============================================================================
# Schemas
# =============================================================================

from backend.models.schemas import (
    # Metric ingress
    PaidMetrics,
    OrganicMetrics,
    EngagementMetrics,
    QueryMetrics,
    PageMetrics,
    UnifiedMetrics,
    # Client context
    DateRange,
    ClientContext,
    # Scout
    BattlegroundKeyword,
    CriticalPage,
    ScoutSummary,
    ScoutFindings,
    # Researcher
    CompetitiveMetrics,
    ContentSignalResult,
    PageContent,
    EnrichedKeyword,
    EnrichedPage,
    ResearcherDataQuality,
    ResearcherData,
    # Specialist agents
    PaidAction,
    PaidAgentResponse,
    OrganicAction,
    OrganicAgentResponse,
    ConstraintViolation,
    PaidAgentOutput,
    OrganicAgentOutput,
    # Director
    ExecutiveSummary,
    UnifiedRecommendation,
    DirectorResponse,
    FilteringStats,
    DirectorOutput,
    # Report
    SkillMetadata,
    PerformanceMetrics,
    Report,
    ReportCreateRequest,
    ReportCreateResponse,
    ReportSummary,
    ReportTrace,
)


__all__ = [
    # Enums
    "ReportStatus",
    "ReportTrigger",
    "BusinessType",
    "PriorityLevel",
    "ImpactLevel",
    "EffortLevel",
    "RecommendationCategory",
    "PaidActionLevel",
    "OrganicActionLevel",
    "CompetitiveDataLevel",
    "ViolationSource",
    "ApprovalStatus",
    "RecommendationSource",
    # Schemas
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
