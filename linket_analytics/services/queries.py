"""
Store access layer for the analytics read path.

Defines the query collaborator contract consumed by the analytics engine
(`AnalyticsQuerySource`) and its asyncpg implementation
(`PostgresAnalyticsQueries`). Each fetch is one independent read that returns
validated, immutable row models; none of them writes.

Error translation:
- asyncpg.UndefinedTableError on conversion_events -> OptionalSourceMissingError
  (older stores do not have the table yet; the funnel is optional)
- any other asyncpg.PostgresError, OSError or timeout -> QueryError naming
  the source that failed

Usage:
    queries = PostgresAnalyticsQueries()
    if queries.is_available():
        profiles = await queries.fetch_profiles(tenant_id)
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

import asyncpg
from asyncpg import Pool

from linket_analytics.core.database import get_db_pool, is_database_configured
from linket_analytics.core.exceptions import (
    OptionalSourceMissingError,
    QueryError,
)
from linket_analytics.models.schemas import (
    AssignedProfile,
    ConversionEvent,
    LeadRecord,
    Profile,
    ProfileLink,
    ScanEvent,
    TagAssignment,
)
from linket_analytics.sql.analytics_queries import (
    get_active_link_counts_query,
    get_active_link_performance_query,
    get_assignments_query,
    get_conversion_events_query,
    get_leads_query,
    get_profiles_query,
    get_published_lead_form_exists_query,
    get_scan_events_by_owner_key_query,
    get_scan_events_by_tag_ids_query,
)

logger = logging.getLogger(__name__)


CONVERSION_EVENTS_SOURCE = "conversion_events"


# =============================================================================
# Collaborator Contract
# =============================================================================


class AnalyticsQuerySource(Protocol):
    """Read operations the analytics engine needs from the store."""

    def is_available(self) -> bool:
        ...

    async def fetch_assignments(self, tenant_id: str) -> List[TagAssignment]:
        ...

    async def fetch_profiles(self, tenant_id: str) -> List[Profile]:
        ...

    async def fetch_active_link_counts(self, tenant_id: str) -> Dict[str, int]:
        ...

    async def fetch_published_lead_form_exists(self, tenant_id: str) -> bool:
        ...

    async def fetch_active_link_performance(self, tenant_id: str) -> List[ProfileLink]:
        ...

    async def fetch_conversion_events(
        self, tenant_id: str, event_ids: Sequence[str]
    ) -> List[ConversionEvent]:
        ...

    async def fetch_scan_events(
        self,
        tenant_id: str,
        start_utc: datetime,
        end_utc: datetime,
        attribution_key: str,
    ) -> List[ScanEvent]:
        ...

    async def fetch_scan_events_by_tag_ids(
        self,
        tenant_id: str,
        tag_ids: Sequence[str],
        start_utc: datetime,
        end_utc: datetime,
    ) -> List[ScanEvent]:
        ...

    async def fetch_leads(
        self, tenant_id: str, start_utc: datetime, end_utc: datetime
    ) -> List[LeadRecord]:
        ...


# =============================================================================
# Row Conversion
# =============================================================================


def _is_complete_scan(row: Any) -> bool:
    return row['id'] is not None and row['occurred_at'] is not None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def assignment_from_record(row: Any) -> TagAssignment:
    """Build a TagAssignment (with its joined profile, if any) from a row."""
    profile = None
    if row['profile_id'] is not None:
        profile = AssignedProfile(
            id=str(row['profile_id']),
            name=row['profile_name'],
            handle=row['profile_handle'],
            is_active=bool(row['profile_is_active']),
        )
    return TagAssignment(
        tag_id=str(row['tag_id']),
        nickname=row['nickname'],
        profile=profile,
    )


def profile_from_record(row: Any) -> Profile:
    return Profile(
        id=str(row['id']),
        name=row['name'],
        handle=row['handle'],
        is_active=bool(row['is_active']),
    )


def link_from_record(row: Any) -> ProfileLink:
    return ProfileLink(
        id=str(row['id']),
        profile_id=_optional_str(row['profile_id']),
        title=row['title'],
        url=row['url'],
        click_count=row['click_count'],
        is_active=bool(row['is_active']),
    )


def lead_from_record(row: Any) -> LeadRecord:
    return LeadRecord(
        id=str(row['id']),
        name=row['name'],
        email=row['email'],
        phone=row['phone'],
        company=row['company'],
        message=row['message'],
        source_url=row['source_url'],
        handle=row['handle'],
        created_at=row['created_at'],
    )


def conversion_event_from_record(row: Any) -> ConversionEvent:
    return ConversionEvent(
        event_id=row['event_id'],
        created_at=row['created_at'],
        timestamp=row['timestamp'],
    )


# =============================================================================
# asyncpg Implementation
# =============================================================================


class PostgresAnalyticsQueries:
    """
    AnalyticsQuerySource backed by the shared asyncpg pool.

    Each fetch acquires its own connection so the engine can run them
    concurrently.

    Args:
        pool: Explicit pool to use. When omitted the shared pool from
            linket_analytics.core.database is used.
    """

    def __init__(self, pool: Optional[Pool] = None):
        self._pool = pool

    def is_available(self) -> bool:
        return self._pool is not None or is_database_configured()

    async def _get_pool(self) -> Pool:
        if self._pool is not None:
            return self._pool
        return await get_db_pool()

    async def _fetch(self, source: str, query: str, *args: Any) -> List[Any]:
        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                return await conn.fetch(query, *args)
        except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
            logger.debug(f"Query for {source} failed: {e}")
            raise QueryError(source, str(e)) from e

    async def fetch_assignments(self, tenant_id: str) -> List[TagAssignment]:
        rows = await self._fetch("tag assignments", get_assignments_query(), tenant_id)
        return [assignment_from_record(row) for row in rows]

    async def fetch_profiles(self, tenant_id: str) -> List[Profile]:
        rows = await self._fetch("profiles", get_profiles_query(), tenant_id)
        return [profile_from_record(row) for row in rows]

    async def fetch_active_link_counts(self, tenant_id: str) -> Dict[str, int]:
        rows = await self._fetch(
            "profile link counts", get_active_link_counts_query(), tenant_id
        )
        return {
            str(row['profile_id']): int(row['link_count'])
            for row in rows
            if row['profile_id'] is not None
        }

    async def fetch_published_lead_form_exists(self, tenant_id: str) -> bool:
        rows = await self._fetch(
            "lead forms", get_published_lead_form_exists_query(), tenant_id
        )
        return bool(rows and rows[0]['has_published'])

    async def fetch_active_link_performance(self, tenant_id: str) -> List[ProfileLink]:
        rows = await self._fetch(
            "profile links", get_active_link_performance_query(), tenant_id
        )
        return [link_from_record(row) for row in rows]

    async def fetch_conversion_events(
        self, tenant_id: str, event_ids: Sequence[str]
    ) -> List[ConversionEvent]:
        """
        Conversion events restricted to `event_ids`.

        Raises:
            OptionalSourceMissingError: If the conversion_events table does not
                exist in this store.
            QueryError: For any other failure.
        """
        try:
            rows = await self._fetch(
                CONVERSION_EVENTS_SOURCE,
                get_conversion_events_query(),
                tenant_id,
                list(event_ids),
            )
        except QueryError as e:
            if isinstance(e.__cause__, asyncpg.UndefinedTableError):
                raise OptionalSourceMissingError(
                    CONVERSION_EVENTS_SOURCE, str(e.__cause__)
                ) from e.__cause__
            raise
        return [conversion_event_from_record(row) for row in rows]

    async def fetch_scan_events(
        self,
        tenant_id: str,
        start_utc: datetime,
        end_utc: datetime,
        attribution_key: str,
    ) -> List[ScanEvent]:
        rows = await self._fetch(
            f"scan events ({attribution_key})",
            get_scan_events_by_owner_key_query(),
            tenant_id,
            start_utc,
            end_utc,
            attribution_key,
        )
        return [ScanEvent.from_record(row) for row in rows if _is_complete_scan(row)]

    async def fetch_scan_events_by_tag_ids(
        self,
        tenant_id: str,
        tag_ids: Sequence[str],
        start_utc: datetime,
        end_utc: datetime,
    ) -> List[ScanEvent]:
        rows = await self._fetch(
            "scan events (tag ids)",
            get_scan_events_by_tag_ids_query(),
            tenant_id,
            list(tag_ids),
            start_utc,
            end_utc,
        )
        return [ScanEvent.from_record(row) for row in rows if _is_complete_scan(row)]

    async def fetch_leads(
        self, tenant_id: str, start_utc: datetime, end_utc: datetime
    ) -> List[LeadRecord]:
        rows = await self._fetch(
            "leads", get_leads_query(), tenant_id, start_utc, end_utc
        )
        return [lead_from_record(row) for row in rows]
