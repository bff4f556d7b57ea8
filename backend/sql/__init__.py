"""
SQL Query Module for the Search Interplay backend.

Provides parameterized SQL for:
- Report lifecycle, recommendations, constraint violations and client
  lookup (report_queries)
- Raw metric reads for the unified metrics and competitive metrics
  providers (metrics_queries)

Example usage:
    from backend.sql import get_report_by_id_query

    async with pool.acquire() as conn:
        row = await conn.fetchrow(get_report_by_id_query(), report_id)
"""

from backend.sql.metrics_queries import (
    get_account_competitive_metrics_query,
    get_ga4_landing_page_metrics_query,
    get_google_ads_query_metrics_query,
    get_keyword_competitive_metrics_query,
    get_search_console_query_metrics_query,
)
from backend.sql.report_queries import (
    REPORT_COLUMNS,
    get_client_context_query,
    get_complete_report_query,
    get_fail_report_query,
    get_insert_constraint_violation_query,
    get_insert_recommendation_query,
    get_insert_report_query,
    get_latest_report_query,
    get_mark_report_started_query,
    get_report_by_id_query,
    get_report_exists_query,
    get_save_agent_outputs_query,
    get_save_researcher_data_query,
    get_save_scout_findings_query,
)


__all__ = [
    # metrics_queries
    "get_google_ads_query_metrics_query",
    "get_search_console_query_metrics_query",
    "get_ga4_landing_page_metrics_query",
    "get_keyword_competitive_metrics_query",
    "get_account_competitive_metrics_query",
    # report_queries
    "REPORT_COLUMNS",
    "get_insert_report_query",
    "get_mark_report_started_query",
    "get_save_scout_findings_query",
    "get_save_researcher_data_query",
    "get_save_agent_outputs_query",
    "get_complete_report_query",
    "get_fail_report_query",
    "get_report_by_id_query",
    "get_latest_report_query",
    "get_report_exists_query",
    "get_insert_recommendation_query",
    "get_insert_constraint_violation_query",
    "get_client_context_query",
]
