"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL database connectivity via asyncpg

The pipeline context (backend.core.context) and FastAPI dependencies
(backend.core.dependencies) import the service layer, so they are imported
from their modules directly rather than re-exported here.

Usage Examples:
    # Configuration access
    from backend.core import get_settings
    settings = get_settings()
    print(settings.ai_provider)

    # Database pool lifecycle (in FastAPI lifespan)
    from backend.core import init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from backend.core.config
# =============================================================================
from backend.core.config import Settings, get_settings

# =============================================================================
# Re-exports from backend.core.database
# =============================================================================
from backend.core.database import init_db, close_db, get_db_pool

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
]
