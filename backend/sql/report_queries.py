"""
Report Queries Module for the Search Interplay backend.

Parameterized PostgreSQL statements for the report lifecycle:
- interplay_reports: one row per pipeline run, phase outputs as JSONB
- recommendations: one row per unified recommendation, created pending
- constraint_violations: quality observations from specialist validation
- client_accounts: business type, brand/competitor terms and targets

Each phase writes only its own column(s). Status changes are passed as
parameters so the values always come from ReportStatus.
"""


# =============================================================================
# REPORT LIFECYCLE
# =============================================================================

REPORT_COLUMNS = """
        id::text AS id,
        client_account_id::text AS client_account_id,
        trigger_type,
        status,
        date_range_start,
        date_range_end,
        date_range_days,
        scout_findings,
        researcher_data,
        paid_agent_output,
        organic_agent_output,
        director_output,
        skill_metadata,
        performance_metrics,
        warnings,
        tokens_used,
        processing_time_ms,
        error_message,
        created_at,
        started_at,
        completed_at
"""


def get_insert_report_query() -> str:
    """
    Create a report row.

    Params: $1 client_account_id, $2 trigger_type, $3 status,
        $4 date_range_start, $5 date_range_end, $6 date_range_days.
    """
    return f"""
    INSERT INTO interplay_reports (
        client_account_id,
        trigger_type,
        status,
        date_range_start,
        date_range_end,
        date_range_days,
        created_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, NOW())
    RETURNING {REPORT_COLUMNS}
    """


def get_mark_report_started_query() -> str:
    """Params: $1 report id."""
    return """
    UPDATE interplay_reports
    SET started_at = NOW()
    WHERE id = $1
    """


def get_save_scout_findings_query() -> str:
    """Params: $1 report id, $2 scout_findings, $3 next status."""
    return """
    UPDATE interplay_reports
    SET scout_findings = $2,
        status = $3
    WHERE id = $1
    """


def get_save_researcher_data_query() -> str:
    """Params: $1 report id, $2 researcher_data, $3 next status."""
    return """
    UPDATE interplay_reports
    SET researcher_data = $2,
        status = $3
    WHERE id = $1
    """


def get_save_agent_outputs_query() -> str:
    """Params: $1 report id, $2 paid_agent_output, $3 organic_agent_output."""
    return """
    UPDATE interplay_reports
    SET paid_agent_output = $2,
        organic_agent_output = $3
    WHERE id = $1
    """


def get_complete_report_query() -> str:
    """
    Params: $1 report id, $2 director_output, $3 skill_metadata,
        $4 performance_metrics, $5 warnings, $6 tokens_used,
        $7 processing_time_ms, $8 completed status.
    """
    return """
    UPDATE interplay_reports
    SET director_output = $2,
        skill_metadata = $3,
        performance_metrics = $4,
        warnings = $5,
        tokens_used = $6,
        processing_time_ms = $7,
        status = $8,
        completed_at = NOW()
    WHERE id = $1
    """


def get_fail_report_query() -> str:
    """
    Move a non-terminal report to failed.

    Params: $1 report id, $2 error_message, $3 failed status,
        $4 completed status, $5 skill_metadata, $6 performance_metrics,
        $7 warnings.
    """
    return """
    UPDATE interplay_reports
    SET status = $3,
        error_message = $2,
        skill_metadata = COALESCE($5, skill_metadata),
        performance_metrics = COALESCE($6, performance_metrics),
        warnings = COALESCE($7, warnings),
        completed_at = NOW()
    WHERE id = $1
      AND status NOT IN ($3, $4)
    """


# =============================================================================
# REPORT READS
# =============================================================================

def get_report_by_id_query() -> str:
    """Params: $1 report id."""
    return f"""
    SELECT {REPORT_COLUMNS}
    FROM interplay_reports
    WHERE id = $1
    """


def get_latest_report_query() -> str:
    """Newest report for a client. Params: $1 client_account_id."""
    return f"""
    SELECT {REPORT_COLUMNS}
    FROM interplay_reports
    WHERE client_account_id = $1
    ORDER BY created_at DESC
    LIMIT 1
    """


def get_report_exists_query() -> str:
    """Params: $1 client_account_id."""
    return """
    SELECT EXISTS (
        SELECT 1 FROM interplay_reports WHERE client_account_id = $1
    )
    """


# =============================================================================
# RECOMMENDATIONS AND CONSTRAINT VIOLATIONS
# =============================================================================

def get_insert_recommendation_query() -> str:
    """
    Params: $1 client_account_id, $2 interplay_report_id, $3 source,
        $4 recommendation_category, $5 title, $6 description,
        $7 impact_level, $8 effort_level, $9 action_items, $10 status,
        $11 sort_order.
    """
    return """
    INSERT INTO recommendations (
        client_account_id,
        interplay_report_id,
        source,
        recommendation_category,
        title,
        description,
        impact_level,
        effort_level,
        action_items,
        status,
        sort_order,
        created_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, NOW())
    """


def get_insert_constraint_violation_query() -> str:
    """
    Params: $1 report_id, $2 source, $3 rule_id, $4 matched_content,
        $5 skill_version, $6 business_type.
    """
    return """
    INSERT INTO constraint_violations (
        report_id,
        source,
        rule_id,
        matched_content,
        skill_version,
        business_type,
        created_at
    )
    VALUES ($1, $2, $3, $4, $5, $6, NOW())
    """


# =============================================================================
# CLIENT CONTEXT
# =============================================================================

def get_client_context_query() -> str:
    """
    Client attributes used by the pipeline. Params: $1 client_account_id.

    brand_terms / competitor_terms are TEXT[]; targets is JSONB
    (e.g. {"targetCpl": 85}).
    """
    return """
    SELECT
        id::text AS id,
        name,
        business_type,
        industry,
        target_market,
        COALESCE(brand_terms, ARRAY[]::text[]) AS brand_terms,
        COALESCE(competitor_terms, ARRAY[]::text[]) AS competitor_terms,
        COALESCE(targets, '{}'::jsonb) AS targets
    FROM client_accounts
    WHERE id = $1
    """


__all__ = [
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
