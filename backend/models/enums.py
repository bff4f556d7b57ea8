"""
Enumeration definitions for the Search Interplay backend.

All enums inherit from both `str` and `Enum` so they serialize cleanly through
Pydantic models, asyncpg parameters and JSON API responses.

Groups:
- Report lifecycle: ReportStatus, ReportTrigger
- Skill selection: BusinessType
- Triage and ranking tiers: PriorityLevel, ImpactLevel, EffortLevel
- Agent output shapes: RecommendationCategory, PaidActionLevel, OrganicActionLevel
- Enrichment: CompetitiveDataLevel
- Quality signals: ViolationSource
- Downstream workflow: ApprovalStatus, RecommendationSource
"""

from enum import Enum


class ReportStatus(str, Enum):
    """
    Status of an interplay report.

    State machine:
        pending -> researching -> analyzing -> completed
        any non-terminal state -> failed
    """
    PENDING = "pending"
    RESEARCHING = "researching"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReportStatus.COMPLETED, ReportStatus.FAILED)


class ReportTrigger(str, Enum):
    """Reason a report run was created."""
    CLIENT_CREATION = "client_creation"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class BusinessType(str, Enum):
    """
    Business model of a client account.

    Selects the skill bundle that drives triage thresholds, specialist prompts
    and Director filtering.
    """
    ECOMMERCE = "ecommerce"
    LEAD_GEN = "lead-gen"
    SAAS = "saas"
    LOCAL = "local"


class PriorityLevel(str, Enum):
    """Triage tier assigned by a Scout rule."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank, lower sorts first (critical=0)."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    PriorityLevel.CRITICAL: 0,
    PriorityLevel.HIGH: 1,
    PriorityLevel.MEDIUM: 2,
    PriorityLevel.LOW: 3,
}


class ImpactLevel(str, Enum):
    """Expected impact tier of an action or recommendation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def ordinal(self) -> int:
        """high=3, medium=2, low=1."""
        return _LEVEL_ORDINAL[self.value]


class EffortLevel(str, Enum):
    """Implementation effort tier of a recommendation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def ordinal(self) -> int:
        return _LEVEL_ORDINAL[self.value]

    @property
    def inverted_ordinal(self) -> int:
        """low=3, medium=2, high=1 (cheaper work scores higher)."""
        return 4 - _LEVEL_ORDINAL[self.value]


_LEVEL_ORDINAL = {"high": 3, "medium": 2, "low": 1}


class RecommendationCategory(str, Enum):
    """Channel a unified recommendation belongs to."""
    PAID = "paid"
    ORGANIC = "organic"
    HYBRID = "hybrid"


class PaidActionLevel(str, Enum):
    """Account scope a paid-search action applies to."""
    CAMPAIGN = "campaign"
    AD_GROUP = "ad_group"
    KEYWORD = "keyword"


class OrganicActionLevel(str, Enum):
    """Site scope an organic-search action applies to."""
    PAGE = "page"
    SITE_SECTION = "site_section"
    SITE = "site"


class CompetitiveDataLevel(str, Enum):
    """Granularity of the auction-insight data attached to a keyword."""
    KEYWORD = "keyword"
    ACCOUNT = "account"
    NONE = "none"


class ViolationSource(str, Enum):
    """Specialist phase that produced a constraint violation."""
    PAID = "paid"
    ORGANIC = "organic"


class ApprovalStatus(str, Enum):
    """
    Approval lifecycle of a persisted recommendation.

    Owned by the downstream approval workflow; the pipeline only ever
    creates rows in PENDING.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    APPLIED = "applied"


class RecommendationSource(str, Enum):
    """Origin of a recommendation row."""
    LEGACY = "legacy"
    INTERPLAY_REPORT = "interplay_report"


__all__ = [
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
]
