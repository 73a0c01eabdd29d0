"""
FastAPI dependency injection module for the Linket analytics backend.

Provides reusable dependencies so endpoint handlers never construct
infrastructure themselves, and tests can swap any piece through
`app.dependency_overrides`.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_analytics_queries: Store collaborator over the shared asyncpg pool
- get_analytics_engine: AnalyticsEngine wired to the queries and settings
- SettingsDep / AnalyticsEngineDep: Annotated aliases for endpoint signatures

Usage Examples:
    @router.get("/analytics/{tenant_id}")
    async def read_analytics(tenant_id: str, engine: AnalyticsEngineDep):
        return await engine.get_analytics(tenant_id)

    # In tests
    app.dependency_overrides[get_analytics_queries] = lambda: FakeQueries()
"""

from typing import Annotated

from fastapi import Depends

from linket_analytics.core.config import Settings, get_settings
from linket_analytics.services.analytics_engine import AnalyticsEngine, EngineLimits
from linket_analytics.services.queries import AnalyticsQuerySource, PostgresAnalyticsQueries


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Analytics Dependencies
# =============================================================================

def get_analytics_queries() -> AnalyticsQuerySource:
    """Store collaborator backed by the shared pool (reports unavailable when unconfigured)."""
    return PostgresAnalyticsQueries()


def get_analytics_engine(
    settings: SettingsDep,
    queries: Annotated[AnalyticsQuerySource, Depends(get_analytics_queries)],
) -> AnalyticsEngine:
    """
    Build a request-scoped AnalyticsEngine.

    The engine is stateless, so building one per request costs only the
    object allocation.
    """
    return AnalyticsEngine(queries, limits=EngineLimits.from_settings(settings))


AnalyticsEngineDep = Annotated[AnalyticsEngine, Depends(get_analytics_engine)]
