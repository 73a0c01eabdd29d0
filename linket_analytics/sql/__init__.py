"""
SQL Query Module for the Linket analytics backend.

Parameterized asyncpg queries ($n placeholders) for the analytics read path.
Every query is read-only and scoped to one tenant.

Example usage:
    from linket_analytics.sql import get_profiles_query

    rows = await conn.fetch(get_profiles_query(), tenant_id)
"""

from linket_analytics.sql.analytics_queries import (
    LEAD_COLUMNS,
    PUBLISHED_LEAD_FORM_STATUS,
    SCAN_COLUMNS,
    SCAN_EVENT_TYPE,
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

__all__ = [
    'LEAD_COLUMNS',
    'PUBLISHED_LEAD_FORM_STATUS',
    'SCAN_COLUMNS',
    'SCAN_EVENT_TYPE',
    'get_active_link_counts_query',
    'get_active_link_performance_query',
    'get_assignments_query',
    'get_conversion_events_query',
    'get_leads_query',
    'get_profiles_query',
    'get_published_lead_form_exists_query',
    'get_scan_events_by_owner_key_query',
    'get_scan_events_by_tag_ids_query',
]
