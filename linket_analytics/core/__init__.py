"""
Core infrastructure package for the Linket analytics backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg
- The analytics exception hierarchy

Re-exports the most used pieces so callers can write:

    from linket_analytics.core import get_settings, init_db, QueryError

Dependency-injection helpers live in linket_analytics.core.dependencies and are
not re-exported here, because they import the service layer.
"""

# =============================================================================
# Re-exports from linket_analytics.core.config
# =============================================================================
from linket_analytics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from linket_analytics.core.database
# =============================================================================
from linket_analytics.core.database import (
    close_db,
    get_db_pool,
    init_db,
    is_database_configured,
)

# =============================================================================
# Re-exports from linket_analytics.core.exceptions
# =============================================================================
from linket_analytics.core.exceptions import (
    AnalyticsError,
    OptionalSourceMissingError,
    QueryError,
    StoreUnavailableError,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    'is_database_configured',
    # Errors (from exceptions.py)
    'AnalyticsError',
    'StoreUnavailableError',
    'QueryError',
    'OptionalSourceMissingError',
]
