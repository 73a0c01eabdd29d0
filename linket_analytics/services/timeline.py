"""
Day-bucketed timeline aggregation.

Buckets reconciled scans (by occurred_at) and leads (by created_at) into the
caller-local calendar days of the reporting window. Events whose local day
falls outside the precomputed buckets are dropped, which absorbs clock skew at
the window edges.

Derived totals:
- scansToday / leadsToday: events whose day key equals the window's today key
- scans7d / leads7d: sum of the last min(7, days) timeline points
- conversionRate7d = leads7d / scans7d, or 0.0 when there were no scans
- lastScanAt: latest occurred_at seen
- activeTags: distinct tag ids among the scans
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from linket_analytics.models.schemas import (
    AnalyticsTotals,
    LeadRecord,
    ScanEvent,
    TimelinePoint,
)
from linket_analytics.services.time_window import TimeWindow


ROLLING_WINDOW_DAYS = 7


@dataclass
class TimelineSummary:
    """Timeline points plus the counters tracked while building them."""
    timeline: List[TimelinePoint] = field(default_factory=list)
    scans_today: int = 0
    leads_today: int = 0
    last_scan_at: Optional[datetime] = None
    active_tags: int = 0

    @property
    def scans_7d(self) -> int:
        return sum_last_days(self.timeline, ROLLING_WINDOW_DAYS, lambda point: point.scans)

    @property
    def leads_7d(self) -> int:
        return sum_last_days(self.timeline, ROLLING_WINDOW_DAYS, lambda point: point.leads)

    @property
    def conversion_rate_7d(self) -> float:
        scans = self.scans_7d
        return self.leads_7d / scans if scans > 0 else 0.0

    def totals(self) -> AnalyticsTotals:
        return AnalyticsTotals(
            scansToday=self.scans_today,
            leadsToday=self.leads_today,
            scans7d=self.scans_7d,
            leads7d=self.leads_7d,
            conversionRate7d=self.conversion_rate_7d,
            activeTags=self.active_tags,
            lastScanAt=self.last_scan_at,
        )


def sum_last_days(
    points: Sequence[TimelinePoint],
    days: int,
    selector: Callable[[TimelinePoint], int],
) -> int:
    """Sum `selector` over the last `days` points (all of them if fewer)."""
    if days <= 0:
        return 0
    return sum(selector(point) for point in points[-days:])


def empty_timeline(window: TimeWindow) -> List[TimelinePoint]:
    """One zeroed point per day of the window, oldest first."""
    return [TimelinePoint(date=key, scans=0, leads=0) for key in window.day_keys]


def aggregate_timeline(
    window: TimeWindow,
    scans: Sequence[ScanEvent],
    leads: Sequence[LeadRecord],
) -> TimelineSummary:
    """
    Bucket scans and leads into the window's local days.

    Args:
        window: Resolved reporting window.
        scans: Reconciled scans (any order).
        leads: Leads in the window (any order).

    Returns:
        TimelineSummary whose timeline has exactly `window.days` points.
    """
    buckets = window.empty_buckets()
    summary = TimelineSummary()
    tag_ids = set()

    for scan in scans:
        key = window.day_key(scan.occurred_at)
        bucket = buckets.get(key)
        if bucket is not None:
            bucket['scans'] += 1
        if key == window.today_key:
            summary.scans_today += 1
        if summary.last_scan_at is None or scan.occurred_at > summary.last_scan_at:
            summary.last_scan_at = scan.occurred_at
        if scan.tag_id:
            tag_ids.add(scan.tag_id)

    for lead in leads:
        key = window.day_key(lead.created_at)
        bucket = buckets.get(key)
        if bucket is not None:
            bucket['leads'] += 1
        if key == window.today_key:
            summary.leads_today += 1

    summary.timeline = [
        TimelinePoint(date=key, scans=counts['scans'], leads=counts['leads'])
        for key, counts in buckets.items()
    ]
    summary.active_tags = len(tag_ids)
    return summary
