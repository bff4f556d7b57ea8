"""
Backend Services Module

Pipeline phases and their collaborators for the Search Interplay backend.

Services:
- ai_gateway: Structured LLM output with bounded retry (Anthropic / OpenAI)
- json_extraction: JSON payload extraction from free-form model text
- conditions: Safe evaluation of skill rule conditions
- metrics_provider: Unified per-query / per-page metrics (pandas merge)
- competitive_metrics: Auction-insight reads for the Researcher
- page_content: Landing page fetching and HTML analysis (httpx + BeautifulSoup)
- scout: Deterministic triage into battleground keywords and critical pages
- researcher: Best-effort enrichment of Scout's shortlists
- prompts: Skill-parameterized prompt construction
- specialists: Paid-channel and organic-channel agents
- constraint_validation: Must-exclude checks on specialist output
- director: Synthesis plus deterministic recommendation filtering
- report_store: Report, recommendation, violation and client persistence
- orchestrator: The report state machine

Phase functions take their collaborators as arguments; the orchestrator
receives them through a PipelineContext (backend.core.context).
"""

# =============================================================================
# AI Gateway
# =============================================================================

from backend.services.ai_gateway import (
    AIGateway,
    AIProvider,
    AnthropicProvider,
    OpenAIProvider,
    Completion,
    GatewayResult,
    build_provider,
)
from backend.services.json_extraction import extract_json

# =============================================================================
# Errors
# =============================================================================

from backend.services.errors import (
    GatewayError,
    TransportError,
    ExtractionError,
    ParseError,
    SchemaValidationError,
    PipelineError,
    AIRetryExhaustedError,
    NoDataError,
    ClientNotFoundError,
    ReportNotFoundError,
    ConfigurationError,
)

# =============================================================================
# Pipeline Phases
# =============================================================================

from backend.services.scout import run_scout
from backend.services.researcher import run_researcher
from backend.services.specialists import run_paid_agent, run_organic_agent
from backend.services.director import run_director, filter_recommendations

# =============================================================================
# Orchestration
# =============================================================================

from backend.services.orchestrator import (
    resolve_date_range,
    create_report,
    run_report,
    generate_report,
    trigger_report,
    get_report,
    get_latest_report,
    get_report_trace,
    has_existing_reports,
)

__all__ = [
    # ----- AI Gateway -----
    'AIGateway',
    'AIProvider',
    'AnthropicProvider',
    'OpenAIProvider',
    'Completion',
    'GatewayResult',
    'build_provider',
    'extract_json',
    # ----- Errors -----
    'GatewayError',
    'TransportError',
    'ExtractionError',
    'ParseError',
    'SchemaValidationError',
    'PipelineError',
    'AIRetryExhaustedError',
    'NoDataError',
    'ClientNotFoundError',
    'ReportNotFoundError',
    'ConfigurationError',
    # ----- Pipeline Phases -----
    'run_scout',
    'run_researcher',
    'run_paid_agent',
    'run_organic_agent',
    'run_director',
    'filter_recommendations',
    # ----- Orchestration -----
    'resolve_date_range',
    'create_report',
    'run_report',
    'generate_report',
    'trigger_report',
    'get_report',
    'get_latest_report',
    'get_report_trace',
    'has_existing_reports',
]
