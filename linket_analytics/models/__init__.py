"""
Package initialization file for Linket analytics models.

Exports the Pydantic schemas and enumerations from schemas.py and enums.py so
callers can import them from linket_analytics.models directly:

    from linket_analytics.models import AnalyticsResult, ScanEvent, FunnelStepKey
"""

# =============================================================================
# Enums
# =============================================================================
from linket_analytics.models.enums import (
    AttributionKind,
    ExportSection,
    FunnelStepKey,
    OnboardingItemId,
    ScanOwnerKey,
)

# =============================================================================
# Store Rows
# =============================================================================
from linket_analytics.models.schemas import (
    AssignedProfile,
    Attribution,
    ConversionEvent,
    LeadRecord,
    Profile,
    ProfileLink,
    ScanEvent,
    TagAssignment,
    parse_attribution,
)

# =============================================================================
# Report Models
# =============================================================================
from linket_analytics.models.schemas import (
    AnalyticsMeta,
    AnalyticsResult,
    AnalyticsTotals,
    Funnel,
    FunnelStep,
    OnboardingChecklist,
    OnboardingItem,
    RecentLead,
    TimelinePoint,
    TopLink,
    TopProfile,
)

__all__ = [
    # Enums
    'AttributionKind',
    'ExportSection',
    'FunnelStepKey',
    'OnboardingItemId',
    'ScanOwnerKey',
    # Store rows
    'AssignedProfile',
    'Attribution',
    'ConversionEvent',
    'LeadRecord',
    'Profile',
    'ProfileLink',
    'ScanEvent',
    'TagAssignment',
    'parse_attribution',
    # Report models
    'AnalyticsMeta',
    'AnalyticsResult',
    'AnalyticsTotals',
    'Funnel',
    'FunnelStep',
    'OnboardingChecklist',
    'OnboardingItem',
    'RecentLead',
    'TimelinePoint',
    'TopLink',
    'TopProfile',
]
