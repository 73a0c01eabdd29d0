"""
Pytest Configuration and Shared Fixtures for Linket Analytics Tests.

Provides:
- A fixed clock so window and day-key assertions are deterministic
- Sample profiles, tag assignments and links for one tenant
- A ready-made in-memory query source (see factories.FakeQueries)
- A mock asyncpg pool for testing the Postgres query layer
- Test settings and a cleared settings cache

Async tests run under pytest-asyncio in auto mode (configured in
pyproject.toml), so test coroutines need no explicit marker.
"""

from datetime import datetime
from typing import Generator, List
from unittest.mock import AsyncMock, Mock

import pytest

from linket_analytics.core.config import Settings, get_settings
from linket_analytics.models.schemas import Profile, ProfileLink, TagAssignment
from linket_analytics.services.analytics_engine import EngineLimits
from linket_analytics.tests.factories import (
    FIXED_NOW,
    TENANT_ID,
    FakeQueries,
    make_assignment,
    make_link,
    make_profile,
)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        'markers',
        'integration: marks tests requiring a real Postgres database'
    )


# ============================================================
# CLOCK / TENANT
# ============================================================

@pytest.fixture
def fixed_now() -> datetime:
    """2026-03-10T15:00:00Z."""
    return FIXED_NOW


@pytest.fixture
def tenant_id() -> str:
    return TENANT_ID


# ============================================================
# SAMPLE ROWS
# ============================================================

@pytest.fixture
def sample_profiles() -> List[Profile]:
    """
    Two profiles: an active one with a custom handle and an inactive one
    still on its auto-generated handle.
    """
    return [
        make_profile("p1", handle="Acme", name="Acme Corp", is_active=True),
        make_profile("p2", handle="user-a1b2c3d4", name=None, is_active=False),
    ]


@pytest.fixture
def sample_assignments(sample_profiles: List[Profile]) -> List[TagAssignment]:
    """Tag t1 assigned to p1 with a nickname, tag t2 unassigned."""
    return [
        make_assignment("t1", profile=sample_profiles[0], nickname="Front desk"),
        make_assignment("t2", profile=None, nickname="Spare"),
    ]


@pytest.fixture
def sample_links() -> List[ProfileLink]:
    return [
        make_link("l1", "Website", 10),
        make_link("l2", "booking", 25),
        make_link("l3", "Instagram", 10),
        make_link("l4", "Old promo", 99, is_active=False),
    ]


@pytest.fixture
def fake_queries(
    sample_profiles: List[Profile],
    sample_assignments: List[TagAssignment],
    sample_links: List[ProfileLink],
) -> FakeQueries:
    """Available store with profiles, assignments and links but no events."""
    return FakeQueries(
        assignments=sample_assignments,
        profiles=sample_profiles,
        link_counts={"p1": 3},
        lead_form_published=True,
        links=sample_links,
    )


@pytest.fixture
def engine_limits() -> EngineLimits:
    return EngineLimits()


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Mock asyncpg pool whose acquire() yields a mock connection.

    Usage:
        conn = mock_db_pool.acquire.return_value.__aenter__.return_value
        conn.fetch.return_value = [{'id': 'p1', ...}]
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)
    return pool


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with no database configured."""
    return Settings(database_url=None, _env_file=None)


@pytest.fixture
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the cached Settings before and after a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
