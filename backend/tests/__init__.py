'''
Search Interplay Backend Test Suite

Test Modules:
-------------
- test_json_extraction.py: Fenced block, balanced brace and bracket scans
- test_conditions.py: Skill rule condition evaluation
- test_ai_gateway.py: Decoding, bounded retry with backoff, providers
- test_skills.py: Registry resolution and bundle integrity
- test_metrics_provider.py: Ads / Search Console / GA4 merge
- test_scout.py: Deterministic triage, ordering and truncation
- test_page_content.py: HTML analysis and page fetching
- test_researcher.py: Best-effort enrichment and priority boosts
- test_specialists.py: Paid and organic agents
- test_constraint_validation.py: Must-exclude patterns and violations
- test_director.py: Synthesis, empty-list fallback and filtering
- test_report_store.py: Report, violation and client persistence
- test_orchestrator.py: Report state machine
- test_reports_api.py: Reports router

Running Tests:
--------------
    pip install -e ".[test]"
    pytest

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# This file enables pytest discovery of the tests directory

__all__ = []
