"""
Tests for day-bucketed timeline aggregation and the derived totals.
"""

from datetime import datetime, timedelta, timezone

import pytest

from linket_analytics.models.schemas import TimelinePoint
from linket_analytics.services.time_window import compute_time_window
from linket_analytics.services.timeline import (
    aggregate_timeline,
    empty_timeline,
    sum_last_days,
)
from linket_analytics.tests.factories import days_ago, make_lead, make_scan


class TestAggregateTimeline:

    def test_buckets_scans_and_leads(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=7, now=fixed_now)
        scans = [
            make_scan("s1", days_ago(1, hour=9), tag_id="t1"),
            make_scan("s2", days_ago(1, hour=10), tag_id="t1"),
            make_scan("s3", days_ago(0, hour=8), tag_id="t2"),
        ]
        leads = [make_lead("l1", days_ago(0, hour=11))]

        summary = aggregate_timeline(window, scans, leads)

        assert [point.date for point in summary.timeline] == list(window.day_keys)
        assert summary.timeline[-2] == TimelinePoint(date="2026-03-09", scans=2, leads=0)
        assert summary.timeline[-1] == TimelinePoint(date="2026-03-10", scans=1, leads=1)
        assert summary.scans_today == 1
        assert summary.leads_today == 1
        assert summary.active_tags == 2
        assert summary.last_scan_at == days_ago(0, hour=8)

    def test_offset_shifts_bucket(self, fixed_now: datetime) -> None:
        # 03:00 UTC on Mar 10 is still Mar 9 at UTC-5
        window = compute_time_window(days=3, timezone_offset_minutes=300, now=fixed_now)
        scan = make_scan("s1", datetime(2026, 3, 10, 3, 0, tzinfo=timezone.utc))

        summary = aggregate_timeline(window, [scan], [])

        by_date = {point.date: point.scans for point in summary.timeline}
        assert by_date["2026-03-09"] == 1
        assert by_date["2026-03-10"] == 0

    def test_events_outside_window_are_dropped(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=3, now=fixed_now)
        scans = [
            make_scan("old", days_ago(10)),
            make_scan("future", fixed_now + timedelta(days=2)),
            make_scan("in", days_ago(1)),
        ]

        summary = aggregate_timeline(window, scans, [make_lead("old", days_ago(30))])

        assert sum(point.scans for point in summary.timeline) == 1
        assert sum(point.leads for point in summary.timeline) == 0

    def test_conservation(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=30, timezone_offset_minutes=-330, now=fixed_now)
        scans = [make_scan(f"s{i}", days_ago(i % 29, hour=i % 24)) for i in range(120)]
        leads = [make_lead(f"l{i}", days_ago(i % 20, hour=(i * 7) % 24)) for i in range(45)]

        summary = aggregate_timeline(window, scans, leads)

        in_window_scans = [s for s in scans if window.day_key(s.occurred_at) in window.day_keys]
        in_window_leads = [l for l in leads if window.day_key(l.created_at) in window.day_keys]
        assert sum(point.scans for point in summary.timeline) == len(in_window_scans)
        assert sum(point.leads for point in summary.timeline) == len(in_window_leads)

    def test_empty_inputs(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=5, now=fixed_now)

        summary = aggregate_timeline(window, [], [])

        assert summary.timeline == empty_timeline(window)
        assert summary.last_scan_at is None
        assert summary.conversion_rate_7d == 0.0


class TestRollingTotals:

    def test_seven_day_totals_and_conversion(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=30, now=fixed_now)
        scans = [make_scan(f"s{i}", days_ago(i)) for i in range(10)]
        leads = [make_lead("l1", days_ago(2)), make_lead("l2", days_ago(8))]

        totals = aggregate_timeline(window, scans, leads).totals()

        assert totals.scans7d == 7
        assert totals.leads7d == 1
        assert totals.conversionRate7d == pytest.approx(1 / 7)

    def test_short_window_sums_every_point(self, fixed_now: datetime) -> None:
        window = compute_time_window(days=3, now=fixed_now)
        scans = [make_scan(f"s{i}", days_ago(i)) for i in range(3)]

        totals = aggregate_timeline(window, scans, []).totals()

        assert totals.scans7d == 3

    def test_sum_last_days(self) -> None:
        points = [TimelinePoint(date=f"2026-03-0{i}", scans=i, leads=0) for i in range(1, 6)]

        assert sum_last_days(points, 2, lambda point: point.scans) == 9
        assert sum_last_days(points, 0, lambda point: point.scans) == 0
        assert sum_last_days(points, 50, lambda point: point.scans) == 15
