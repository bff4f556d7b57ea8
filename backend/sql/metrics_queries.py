"""
Metrics Queries Module for the Search Interplay backend.

Parameterized PostgreSQL reads over the raw tables populated by the sync
jobs. Every query is scoped to one client account and an inclusive date
window; parameters are passed positionally to asyncpg:

    $1 client_account_id, $2 start date, $3 end date

Tables:
- google_ads_queries + search_queries: paid search terms
- search_console_queries + search_queries: organic queries with landing page
- ga4_landing_page_metrics: landing-page engagement
- auction_insights: competitive metrics (stored as fractions, returned as percent)
"""


# =============================================================================
# UNIFIED METRICS SOURCES
# =============================================================================

def get_google_ads_query_metrics_query() -> str:
    """
    Daily paid search-term rows for a client and window.

    Returns:
        str: Query returning query_text, impressions, clicks, cost_micros,
            conversions, conversion_value per day and campaign.
    """
    return """
    -- Google Ads search terms
    -- Params: $1 client_account_id, $2 start date, $3 end date

    SELECT
        sq.query_text,
        gaq.date,
        gaq.campaign_name,
        gaq.impressions,
        gaq.clicks,
        gaq.cost_micros,
        gaq.conversions,
        gaq.conversion_value
    FROM google_ads_queries gaq
    JOIN search_queries sq ON sq.id = gaq.search_query_id
    WHERE gaq.client_account_id = $1
      AND gaq.date BETWEEN $2 AND $3
    ORDER BY sq.query_text, gaq.date
    """


def get_search_console_query_metrics_query() -> str:
    """
    Daily organic query rows with landing page for a client and window.

    Returns:
        str: Query returning query_text, page, impressions, clicks, position.
    """
    return """
    -- Search Console queries
    -- Params: $1 client_account_id, $2 start date, $3 end date

    SELECT
        sq.query_text,
        scq.date,
        scq.page,
        scq.impressions,
        scq.clicks,
        scq.position
    FROM search_console_queries scq
    JOIN search_queries sq ON sq.id = scq.search_query_id
    WHERE scq.client_account_id = $1
      AND scq.date BETWEEN $2 AND $3
    ORDER BY sq.query_text, scq.date
    """


def get_ga4_landing_page_metrics_query() -> str:
    """
    Daily GA4 landing-page rows for a client and window.

    bounce_rate and engagement_rate are stored as fractions (0-1).
    """
    return """
    -- GA4 landing pages
    -- Params: $1 client_account_id, $2 start date, $3 end date

    SELECT
        landing_page,
        date,
        sessions,
        engagement_rate,
        bounce_rate,
        average_session_duration,
        conversions,
        total_revenue
    FROM ga4_landing_page_metrics
    WHERE client_account_id = $1
      AND date BETWEEN $2 AND $3
    ORDER BY landing_page, date
    """


# =============================================================================
# COMPETITIVE METRICS (AUCTION INSIGHTS)
# =============================================================================

_COMPETITIVE_COLUMNS = """
        COUNT(*) AS row_count,
        AVG(impression_share) * 100 AS impression_share,
        AVG(lost_impression_share_rank) * 100 AS lost_impression_share_rank,
        AVG(lost_impression_share_budget) * 100 AS lost_impression_share_budget,
        AVG(outranking_share) * 100 AS outranking_share,
        AVG(overlap_rate) * 100 AS overlap_rate,
        AVG(top_of_page_rate) * 100 AS top_of_page_rate,
        AVG(position_above_rate) * 100 AS position_above_rate,
        AVG(abs_top_of_page_rate) * 100 AS abs_top_of_page_rate
"""


def get_keyword_competitive_metrics_query() -> str:
    """
    Own-account auction insights for one keyword, averaged over overlapping windows.

    Params: $1 client_account_id, $2 start date, $3 end date, $4 keyword.
    row_count is 0 when the keyword has no auction data.
    """
    return f"""
    -- Keyword-level auction insights

    SELECT
        {_COMPETITIVE_COLUMNS}
    FROM auction_insights
    WHERE client_account_id = $1
      AND is_own_account = TRUE
      AND date_range_start <= $3
      AND date_range_end >= $2
      AND LOWER(TRIM(keyword)) = LOWER(TRIM($4))
    """


def get_account_competitive_metrics_query() -> str:
    """
    Own-account auction insights across all keywords, used as a fallback.

    Params: $1 client_account_id, $2 start date, $3 end date.
    """
    return f"""
    -- Account-level auction insights

    SELECT
        {_COMPETITIVE_COLUMNS}
    FROM auction_insights
    WHERE client_account_id = $1
      AND is_own_account = TRUE
      AND date_range_start <= $3
      AND date_range_end >= $2
    """


__all__ = [
    "get_google_ads_query_metrics_query",
    "get_search_console_query_metrics_query",
    "get_ga4_landing_page_metrics_query",
    "get_keyword_competitive_metrics_query",
    "get_account_competitive_metrics_query",
]
