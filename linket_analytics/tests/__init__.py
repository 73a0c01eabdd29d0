'''
Linket Analytics Backend Test Suite

Test Modules:
-------------
- test_time_window.py: window bounds, day keys, input normalization
- test_scan_reconciler.py: metadata strategies, union by id, tag fallback
- test_attribution.py: metadata parsing, profile/handle/tag lookups
- test_timeline.py: day buckets, conservation, rolling 7-day totals
- test_ranking.py: profile and link leaderboards
- test_funnel.py: five-stage funnel counts and ratios
- test_onboarding.py: five-item checklist predicates
- test_analytics_engine.py: end-to-end reports, degraded and failure modes
- test_queries.py: asyncpg query layer and error translation
- test_export.py: CSV export of report sections
- test_api.py: HTTP contract of the analytics endpoints

Shared fixtures live in conftest.py; builders and the in-memory query source
live in factories.py.
'''
