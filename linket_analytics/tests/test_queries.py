"""
Tests for the asyncpg-backed query layer.

Uses a mock asyncpg pool; verifies row conversion, parameter passing and the
translation of driver errors into QueryError / OptionalSourceMissingError.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from linket_analytics.core.exceptions import OptionalSourceMissingError, QueryError
from linket_analytics.models.enums import AttributionKind
from linket_analytics.services.queries import PostgresAnalyticsQueries
from linket_analytics.sql.analytics_queries import (
    get_conversion_events_query,
    get_scan_events_by_owner_key_query,
)
from linket_analytics.tests.factories import TENANT_ID


START = datetime(2026, 3, 4, tzinfo=timezone.utc)
END = datetime(2026, 3, 10, 23, 59, tzinfo=timezone.utc)


def connection_of(pool: AsyncMock) -> AsyncMock:
    return pool.acquire.return_value.__aenter__.return_value


class TestAvailability:

    def test_available_with_explicit_pool(self, mock_db_pool: AsyncMock) -> None:
        assert PostgresAnalyticsQueries(mock_db_pool).is_available() is True

    def test_unavailable_without_configuration(self) -> None:
        with patch('linket_analytics.services.queries.is_database_configured', return_value=False):
            assert PostgresAnalyticsQueries().is_available() is False

    async def test_uses_shared_pool_when_none_given(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.return_value = []

        with patch(
            'linket_analytics.services.queries.get_db_pool',
            new=AsyncMock(return_value=mock_db_pool),
        ):
            profiles = await PostgresAnalyticsQueries().fetch_profiles(TENANT_ID)

        assert profiles == []
        mock_db_pool.acquire.assert_called_once()


class TestRowConversion:

    async def test_scan_events(self, mock_db_pool: AsyncMock) -> None:
        conn = connection_of(mock_db_pool)
        conn.fetch.return_value = [
            {
                'id': 's1',
                'tag_id': 't1',
                'occurred_at': datetime(2026, 3, 9, 12, 0, tzinfo=timezone.utc),
                'metadata': '{"owner_profile_id": "p1", "owner_user_id": "user-tenant-1"}',
            },
            {'id': 's2', 'tag_id': None, 'occurred_at': None, 'metadata': None},
        ]

        scans = await PostgresAnalyticsQueries(mock_db_pool).fetch_scan_events(
            TENANT_ID, START, END, "owner_user_id"
        )

        assert [scan.id for scan in scans] == ["s1"]
        assert scans[0].attribution.kind == AttributionKind.PROFILE_ID
        assert scans[0].attribution.profile_id == "p1"
        conn.fetch.assert_awaited_once_with(
            get_scan_events_by_owner_key_query(), TENANT_ID, START, END, "owner_user_id"
        )

    async def test_assignments_with_and_without_profile(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.return_value = [
            {
                'tag_id': 't1',
                'nickname': 'Desk',
                'profile_id': 'p1',
                'profile_name': 'Acme',
                'profile_handle': 'acme',
                'profile_is_active': True,
            },
            {
                'tag_id': 't2',
                'nickname': None,
                'profile_id': None,
                'profile_name': None,
                'profile_handle': None,
                'profile_is_active': False,
            },
        ]

        assignments = await PostgresAnalyticsQueries(mock_db_pool).fetch_assignments(TENANT_ID)

        assert assignments[0].profile.handle == "acme"
        assert assignments[0].nickname == "Desk"
        assert assignments[1].profile is None

    async def test_link_counts(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.return_value = [
            {'profile_id': 'p1', 'link_count': 4},
            {'profile_id': None, 'link_count': 2},
        ]

        counts = await PostgresAnalyticsQueries(mock_db_pool).fetch_active_link_counts(TENANT_ID)

        assert counts == {"p1": 4}

    async def test_lead_form_flag(self, mock_db_pool: AsyncMock) -> None:
        conn = connection_of(mock_db_pool)
        queries = PostgresAnalyticsQueries(mock_db_pool)

        conn.fetch.return_value = [{'has_published': True}]
        assert await queries.fetch_published_lead_form_exists(TENANT_ID) is True

        conn.fetch.return_value = []
        assert await queries.fetch_published_lead_form_exists(TENANT_ID) is False

    async def test_links_with_null_click_count(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.return_value = [
            {
                'id': 'l1',
                'profile_id': 'p1',
                'title': 'Site',
                'url': 'https://example.com',
                'click_count': None,
                'is_active': True,
            },
        ]

        links = await PostgresAnalyticsQueries(mock_db_pool).fetch_active_link_performance(TENANT_ID)

        assert links[0].click_count == 0

    async def test_leads_with_null_name(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.return_value = [
            {
                'id': 'l1',
                'name': None,
                'email': None,
                'phone': None,
                'company': 'Acme',
                'message': None,
                'source_url': None,
                'handle': 'acme',
                'created_at': datetime(2026, 3, 10, 9, 0),
            },
        ]

        leads = await PostgresAnalyticsQueries(mock_db_pool).fetch_leads(TENANT_ID, START, END)

        assert leads[0].name == ""
        assert leads[0].email == ""
        assert leads[0].created_at.tzinfo is not None


class TestErrorTranslation:

    async def test_missing_conversion_events_table(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.side_effect = asyncpg.UndefinedTableError(
            'relation "conversion_events" does not exist'
        )

        with pytest.raises(OptionalSourceMissingError) as exc_info:
            await PostgresAnalyticsQueries(mock_db_pool).fetch_conversion_events(
                TENANT_ID, ["signup_start"]
            )

        assert exc_info.value.source == "conversion_events"
        assert exc_info.value.code == "OPTIONAL_SOURCE_MISSING"

    async def test_other_conversion_events_error(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.side_effect = asyncpg.InsufficientPrivilegeError(
            "permission denied for table conversion_events"
        )

        with pytest.raises(QueryError) as exc_info:
            await PostgresAnalyticsQueries(mock_db_pool).fetch_conversion_events(
                TENANT_ID, ["signup_start"]
            )

        assert not isinstance(exc_info.value, OptionalSourceMissingError)

    async def test_missing_table_elsewhere_is_plain_query_error(self, mock_db_pool: AsyncMock) -> None:
        connection_of(mock_db_pool).fetch.side_effect = asyncpg.UndefinedTableError(
            'relation "leads" does not exist'
        )

        with pytest.raises(QueryError) as exc_info:
            await PostgresAnalyticsQueries(mock_db_pool).fetch_leads(TENANT_ID, START, END)

        assert not isinstance(exc_info.value, OptionalSourceMissingError)
        assert exc_info.value.source == "leads"
        assert "does not exist" in str(exc_info.value)

    @pytest.mark.parametrize("error", [OSError("connection refused"), asyncio.TimeoutError()])
    async def test_connection_errors(self, mock_db_pool: AsyncMock, error) -> None:
        connection_of(mock_db_pool).fetch.side_effect = error

        with pytest.raises(QueryError) as exc_info:
            await PostgresAnalyticsQueries(mock_db_pool).fetch_profiles(TENANT_ID)

        assert exc_info.value.source == "profiles"
        assert exc_info.value.__cause__ is error

    async def test_conversion_query_params(self, mock_db_pool: AsyncMock) -> None:
        conn = connection_of(mock_db_pool)
        conn.fetch.return_value = [
            {
                'event_id': 'signup_start',
                'created_at': datetime(2026, 3, 8, tzinfo=timezone.utc),
                'timestamp': None,
            },
        ]

        events = await PostgresAnalyticsQueries(mock_db_pool).fetch_conversion_events(
            TENANT_ID, ("signup_start", "signup_complete")
        )

        assert events[0].event_id == "signup_start"
        conn.fetch.assert_awaited_once_with(
            get_conversion_events_query(), TENANT_ID, ["signup_start", "signup_complete"]
        )
