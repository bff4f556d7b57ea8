"""
FastAPI dependency injection module for the Search Interplay backend.

Endpoint handlers receive the pipeline context and settings through
dependencies instead of reaching for module globals, so tests can swap in
doubles with `app.dependency_overrides`.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_pipeline_context: Returns the PipelineContext built at startup
- SettingsDep / PipelineContextDep: Annotated aliases for endpoints

Usage Examples:
    @router.get("/{report_id}")
    async def get_report_endpoint(report_id: str, context: PipelineContextDep):
        return await get_report(context, report_id)

    # In tests
    app.dependency_overrides[get_pipeline_context] = lambda: mock_context
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from backend.core.config import Settings, get_settings
from backend.core.context import PipelineContext, build_pipeline_context
from backend.core.database import get_db_pool

logger = logging.getLogger(__name__)


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Pipeline Context Dependency
# =============================================================================

async def get_pipeline_context(request: Request) -> PipelineContext:
    """
    Return the PipelineContext stored on the application.

    The lifespan handler builds it at startup. When startup could not (for
    example the database was unreachable), it is built on first use.

    Raises:
        ConfigurationError: The selected AI provider has no API key.
        asyncpg.PostgresError: The database pool cannot be opened.
    """
    context = getattr(request.app.state, "pipeline", None)
    if context is None:
        pool = await get_db_pool()
        context = build_pipeline_context(get_settings(), pool)
        request.app.state.pipeline = context
        logger.info("Pipeline context built on first request")
    return context


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(context: PipelineContextDep)
PipelineContextDep = Annotated[PipelineContext, Depends(get_pipeline_context)]


__all__ = [
    "get_settings_dependency",
    "get_pipeline_context",
    "SettingsDep",
    "PipelineContextDep",
]
