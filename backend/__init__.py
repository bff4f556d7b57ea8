"""
Search Interplay Backend Package.

FastAPI service layer for multi-agent search performance analysis: a
deterministic Scout, a best-effort Researcher, concurrent paid and organic
specialist agents and a Director that produces the unified recommendation
list for each interplay report.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, pipeline context and dependencies
    - models: Pydantic schemas and enums
    - skills: Per-business-type skill bundles and the registry
    - services: Pipeline phases and their collaborators
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
