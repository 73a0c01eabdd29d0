"""
Per-tenant analytics report orchestration.

Resolves the reporting window, fans out every independent store read
concurrently, then runs the pure aggregation steps over the results:

    time window -> scan reconciliation -> attribution -> timeline
    -> profile/link leaderboards -> funnel -> onboarding checklist

Failure policy:
- store not configured (up front, or discovered when the pool is first
  needed): a zeroed report with meta.available = False is returned
- conversion_events table missing: treated as zero conversion events
- a failing metadata scan strategy: tolerated by the reconciler
- any other QueryError: logged and re-raised, the report is aborted and
  every read still in flight is cancelled

Usage:
    engine = AnalyticsEngine(PostgresAnalyticsQueries())
    result = await engine.get_analytics(tenant_id, days=7, timezone_offset_minutes=300)
    payload = result.to_payload()
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from linket_analytics.core.config import Settings, get_settings
from linket_analytics.core.exceptions import (
    OptionalSourceMissingError,
    QueryError,
    StoreUnavailableError,
)
from linket_analytics.models.schemas import (
    AnalyticsMeta,
    AnalyticsResult,
    AnalyticsTotals,
    ConversionEvent,
    LeadRecord,
    RecentLead,
    TagAssignment,
    ensure_utc,
)
from linket_analytics.services.attribution import build_attribution_index
from linket_analytics.services.funnel import FUNNEL_EVENT_IDS, build_funnel
from linket_analytics.services.onboarding import (
    SHARE_EVENT_IDS,
    OnboardingInputs,
    build_onboarding_checklist,
)
from linket_analytics.services.queries import AnalyticsQuerySource, PostgresAnalyticsQueries
from linket_analytics.services.ranking import ProfileLeaderboard, rank_links
from linket_analytics.services.scan_reconciler import ScanReconciler
from linket_analytics.services.time_window import TimeWindow, compute_time_window, finite_float
from linket_analytics.services.timeline import aggregate_timeline, empty_timeline


logger = logging.getLogger(__name__)


MAX_RECENT_LEADS = 100

# Conversion event ids read for the funnel and the share checklist item
CONVERSION_EVENT_IDS = tuple(sorted(FUNNEL_EVENT_IDS | SHARE_EVENT_IDS))


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class EngineLimits:
    """
    Report sizing knobs.

    Attributes:
        default_days: Window length used when the caller sends garbage.
        max_days: Upper clamp on the window length.
        recent_lead_count: Default number of recent leads.
        top_profiles: Size of the profile leaderboard.
        top_links: Optional cap on the link leaderboard (None keeps all).
    """
    default_days: int = 30
    max_days: int = 90
    recent_lead_count: int = 10
    top_profiles: int = 8
    top_links: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineLimits":
        return cls(
            default_days=settings.analytics_default_days,
            max_days=settings.analytics_max_days,
            recent_lead_count=settings.analytics_recent_lead_count,
            top_profiles=settings.analytics_top_profiles_limit,
            top_links=settings.analytics_top_links_limit,
        )


def normalize_recent_lead_count(value: Any, default: int = 10) -> int:
    """
    Clamp the number of recent leads into [0, 100].

    Example:
        >>> normalize_recent_lead_count(500)
        100
        >>> normalize_recent_lead_count(-3)
        0
        >>> normalize_recent_lead_count(None)
        10
    """
    number = finite_float(value)
    if number is None:
        number = float(default)
    return max(0, min(int(number), MAX_RECENT_LEADS))


async def _settle(tasks: Sequence["asyncio.Future[Any]"]) -> None:
    """Cancel unfinished reads and wait until every task has stopped."""
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def select_recent_leads(leads: Sequence[LeadRecord], count: int) -> List[RecentLead]:
    """Newest-first leads, truncated to `count`."""
    newest_first = sorted(leads, key=lambda lead: lead.created_at, reverse=True)
    return [RecentLead.from_lead(lead) for lead in newest_first[:count]]


# =============================================================================
# Engine
# =============================================================================


class AnalyticsEngine:
    """
    Builds AnalyticsResult reports for one tenant at a time.

    The engine holds no per-request state; every call recomputes the report
    from fresh reads.

    Args:
        queries: Store collaborator.
        limits: Report sizing. Defaults to the values from Settings.
        reconciler: Scan reconciler. Defaults to one over `queries`.
    """

    def __init__(
        self,
        queries: AnalyticsQuerySource,
        limits: Optional[EngineLimits] = None,
        reconciler: Optional[ScanReconciler] = None,
    ):
        self.queries = queries
        self.limits = limits if limits is not None else EngineLimits.from_settings(get_settings())
        self.reconciler = reconciler if reconciler is not None else ScanReconciler(queries)

    async def _fetch_conversion_events(self, tenant_id: str) -> List[ConversionEvent]:
        try:
            return await self.queries.fetch_conversion_events(tenant_id, CONVERSION_EVENT_IDS)
        except OptionalSourceMissingError as e:
            logger.warning(
                f"Conversion events unavailable for tenant={tenant_id}, "
                f"funnel and share checklist use no events: {e}"
            )
            return []

    def _degraded_result(self, window: TimeWindow, generated_at: datetime) -> AnalyticsResult:
        return AnalyticsResult(
            totals=AnalyticsTotals(),
            timeline=empty_timeline(window),
            topProfiles=[],
            topLinks=[],
            recentLeads=[],
            funnel=build_funnel([]),
            onboarding=build_onboarding_checklist(OnboardingInputs()),
            meta=AnalyticsMeta(
                days=window.days,
                generatedAt=generated_at,
                available=False,
                timezoneOffsetMinutes=window.offset_minutes,
            ),
        )

    async def get_analytics(
        self,
        tenant_id: str,
        days: Any = None,
        timezone_offset_minutes: Any = 0,
        recent_lead_count: Any = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsResult:
        """
        Build the analytics report for a tenant.

        Args:
            tenant_id: Tenant (user) identifier. Trusted as given.
            days: Window length; clamped into [1, max_days]. None uses the
                configured default (30).
            timezone_offset_minutes: Caller offset (UTC - local, in minutes);
                clamped into [-840, 840].
            recent_lead_count: Number of recent leads; clamped into [0, 100].
                None uses the configured default (10).
            now: Current instant, injectable for tests.

        Returns:
            AnalyticsResult for the window.

        Raises:
            QueryError: If a required store read fails.
        """
        generated_at = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        window = compute_time_window(
            days=days if days is not None else self.limits.default_days,
            timezone_offset_minutes=timezone_offset_minutes,
            now=generated_at,
            default_days=self.limits.default_days,
            max_days=self.limits.max_days,
        )
        lead_count = normalize_recent_lead_count(
            recent_lead_count, default=self.limits.recent_lead_count
        )

        if not self.queries.is_available():
            logger.warning(
                f"Analytics store unavailable, returning empty report for tenant={tenant_id}"
            )
            return self._degraded_result(window, generated_at)

        logger.info(
            f"Building analytics for tenant={tenant_id} days={window.days} "
            f"offset={window.offset_minutes}"
        )

        assignments_task = asyncio.ensure_future(self.queries.fetch_assignments(tenant_id))

        async def assigned_tag_ids() -> List[str]:
            assignments: List[TagAssignment] = await assignments_task
            return [assignment.tag_id for assignment in assignments]

        tasks = [
            assignments_task,
            asyncio.ensure_future(self.queries.fetch_profiles(tenant_id)),
            asyncio.ensure_future(self.queries.fetch_active_link_counts(tenant_id)),
            asyncio.ensure_future(self.queries.fetch_published_lead_form_exists(tenant_id)),
            asyncio.ensure_future(self.queries.fetch_active_link_performance(tenant_id)),
            asyncio.ensure_future(self._fetch_conversion_events(tenant_id)),
            asyncio.ensure_future(
                self.queries.fetch_leads(tenant_id, window.start_utc, window.end_utc)
            ),
            asyncio.ensure_future(
                self.reconciler.reconcile(tenant_id, window, assigned_tag_ids)
            ),
        ]

        try:
            (
                assignments,
                profiles,
                link_counts,
                lead_form_published,
                links,
                conversion_events,
                leads,
                scans,
            ) = await asyncio.gather(*tasks)
        except StoreUnavailableError as e:
            logger.warning(f"Analytics store unreachable for tenant={tenant_id}: {e}")
            return self._degraded_result(window, generated_at)
        except QueryError as e:
            logger.error(f"Analytics failed for tenant={tenant_id}: {e}")
            raise
        finally:
            await _settle(tasks)

        index = build_attribution_index(profiles, assignments)
        summary = aggregate_timeline(window, scans, leads)

        leaderboard = ProfileLeaderboard()
        for scan in scans:
            leaderboard.add_scan(scan, index.attribute_scan(scan))
        for lead in leads:
            leaderboard.add_lead(lead, index.attribute_lead(lead))

        onboarding_inputs = OnboardingInputs(
            profiles=profiles,
            link_counts=link_counts,
            lead_form_published=lead_form_published,
            conversion_events=conversion_events,
        )

        result = AnalyticsResult(
            totals=summary.totals(),
            timeline=summary.timeline,
            topProfiles=leaderboard.ranked(self.limits.top_profiles),
            topLinks=rank_links(links, self.limits.top_links),
            recentLeads=select_recent_leads(leads, lead_count),
            funnel=build_funnel(conversion_events),
            onboarding=build_onboarding_checklist(onboarding_inputs),
            meta=AnalyticsMeta(
                days=window.days,
                generatedAt=generated_at,
                available=True,
                timezoneOffsetMinutes=window.offset_minutes,
            ),
        )

        logger.info(
            f"Analytics for tenant={tenant_id}: {len(scans)} scans, {len(leads)} leads, "
            f"{len(conversion_events)} conversion events"
        )
        return result


async def get_analytics(
    tenant_id: str,
    days: Any = None,
    timezone_offset_minutes: Any = 0,
    recent_lead_count: Any = None,
    now: Optional[datetime] = None,
) -> AnalyticsResult:
    """
    Build a report on the shared asyncpg pool.

    Convenience wrapper around AnalyticsEngine(PostgresAnalyticsQueries()).
    """
    engine = AnalyticsEngine(PostgresAnalyticsQueries())
    return await engine.get_analytics(
        tenant_id,
        days=days,
        timezone_offset_minutes=timezone_offset_minutes,
        recent_lead_count=recent_lead_count,
        now=now,
    )
