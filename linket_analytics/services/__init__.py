"""
Linket Analytics Services Module

Business logic for building per-tenant analytics reports. Aggregation steps
are pure and stateless; only queries.py touches the store.

Services:
- time_window: Caller-local reporting window and day keys
- queries: Store collaborator contract and its asyncpg implementation
- scan_reconciler: Strategy-based scan fetching and deduplication
- attribution: Owner lookup tables for scans and leads
- timeline: Day-bucketed scan/lead counts and derived totals
- ranking: Profile and link leaderboards
- funnel: Fixed five-stage acquisition funnel
- onboarding: Fixed five-item onboarding checklist
- analytics_engine: Orchestrates the above into an AnalyticsResult
- export: CSV rendering of report sections

All services are consumed by the API layer (linket_analytics/api/).
"""

# =============================================================================
# Orchestration
# =============================================================================

from linket_analytics.services.analytics_engine import (
    AnalyticsEngine,
    EngineLimits,
    get_analytics,
    normalize_recent_lead_count,
)

# =============================================================================
# Store Access
# =============================================================================

from linket_analytics.services.queries import (
    AnalyticsQuerySource,
    PostgresAnalyticsQueries,
)

# =============================================================================
# Aggregation Steps
# =============================================================================

from linket_analytics.services.time_window import (
    TimeWindow,
    compute_time_window,
    day_key,
    normalize_days,
    normalize_offset,
)
from linket_analytics.services.scan_reconciler import (
    MetadataKeyStrategy,
    ScanReconciler,
    TagJoinStrategy,
    merge_scan_batches,
)
from linket_analytics.services.attribution import (
    AttributionIndex,
    build_attribution_index,
    normalize_handle,
)
from linket_analytics.services.timeline import (
    TimelineSummary,
    aggregate_timeline,
    empty_timeline,
)
from linket_analytics.services.ranking import (
    ProfileLeaderboard,
    rank_links,
    rank_profiles,
)
from linket_analytics.services.funnel import FUNNEL_STAGES, build_funnel
from linket_analytics.services.onboarding import (
    CHECKLIST_RULES,
    OnboardingInputs,
    build_onboarding_checklist,
)
from linket_analytics.services.export import export_section_csv

__all__ = [
    # Orchestration
    'AnalyticsEngine',
    'EngineLimits',
    'get_analytics',
    'normalize_recent_lead_count',
    # Store access
    'AnalyticsQuerySource',
    'PostgresAnalyticsQueries',
    # Time window
    'TimeWindow',
    'compute_time_window',
    'day_key',
    'normalize_days',
    'normalize_offset',
    # Scans
    'MetadataKeyStrategy',
    'ScanReconciler',
    'TagJoinStrategy',
    'merge_scan_batches',
    # Attribution
    'AttributionIndex',
    'build_attribution_index',
    'normalize_handle',
    # Timeline
    'TimelineSummary',
    'aggregate_timeline',
    'empty_timeline',
    # Ranking
    'ProfileLeaderboard',
    'rank_links',
    'rank_profiles',
    # Funnel / onboarding
    'FUNNEL_STAGES',
    'build_funnel',
    'CHECKLIST_RULES',
    'OnboardingInputs',
    'build_onboarding_checklist',
    # Export
    'export_section_csv',
]
