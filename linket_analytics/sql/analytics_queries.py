"""
Parameterized SQL for the analytics read path.

Every query is read-only and scoped to one tenant (`user_id`). Parameters use
asyncpg's positional `$n` placeholders; each getter documents its parameters in
order.

Tables:
    tag_assignments    tag -> profile bindings (tenant owned)
    user_profiles      public profiles
    profile_links      links on profiles, with click counters
    lead_forms         lead capture forms (status 'published' | 'draft')
    conversion_events  product lifecycle events (may not exist on older stores)
    tag_events         raw tag events; scans have event_type = 'scan'
    leads              captured contacts
"""

SCAN_EVENT_TYPE = "scan"
PUBLISHED_LEAD_FORM_STATUS = "published"

SCAN_COLUMNS = "id, tag_id, occurred_at, metadata"

LEAD_COLUMNS = (
    "id, name, email, phone, company, message, source_url, handle, created_at"
)


def get_assignments_query() -> str:
    """
    Tag assignments joined to their profile.

    Params: $1 tenant id
    """
    return """
        SELECT
            a.tag_id,
            a.nickname,
            p.id AS profile_id,
            p.name AS profile_name,
            p.handle AS profile_handle,
            COALESCE(p.is_active, false) AS profile_is_active
        FROM tag_assignments a
        LEFT JOIN user_profiles p ON p.id = a.profile_id
        WHERE a.user_id = $1
        ORDER BY a.created_at ASC
    """


def get_profiles_query() -> str:
    """
    Profiles owned by the tenant, oldest first.

    Params: $1 tenant id
    """
    return """
        SELECT id, name, handle, COALESCE(is_active, false) AS is_active
        FROM user_profiles
        WHERE user_id = $1
        ORDER BY created_at ASC
    """


def get_active_link_counts_query() -> str:
    """
    Number of active links per profile.

    Params: $1 tenant id
    """
    return """
        SELECT l.profile_id, COUNT(*)::int AS link_count
        FROM profile_links l
        JOIN user_profiles p ON p.id = l.profile_id
        WHERE p.user_id = $1
          AND l.is_active = true
        GROUP BY l.profile_id
    """


def get_published_lead_form_exists_query() -> str:
    """
    Whether the tenant has at least one published lead form.

    Params: $1 tenant id
    """
    return f"""
        SELECT EXISTS (
            SELECT 1
            FROM lead_forms
            WHERE user_id = $1
              AND status = '{PUBLISHED_LEAD_FORM_STATUS}'
        ) AS has_published
    """


def get_active_link_performance_query() -> str:
    """
    Every active link of the tenant with its click counter.

    Params: $1 tenant id
    """
    return """
        SELECT
            l.id,
            l.profile_id,
            l.title,
            l.url,
            COALESCE(l.click_count, 0)::int AS click_count,
            l.is_active
        FROM profile_links l
        JOIN user_profiles p ON p.id = l.profile_id
        WHERE p.user_id = $1
          AND l.is_active = true
        ORDER BY l.click_count DESC, l.title ASC
    """


def get_conversion_events_query() -> str:
    """
    Conversion events of the tenant restricted to a set of event ids.

    Params: $1 tenant id, $2 event ids (text[])
    """
    return """
        SELECT event_id, created_at, "timestamp"
        FROM conversion_events
        WHERE user_id = $1
          AND event_id = ANY($2::text[])
        ORDER BY created_at ASC
    """


def get_scan_events_by_owner_key_query() -> str:
    """
    Scans whose metadata names the tenant under a given owner key.

    Params: $1 tenant id, $2 window start (timestamptz), $3 window end
    (timestamptz), $4 metadata key
    """
    return f"""
        SELECT {SCAN_COLUMNS}
        FROM tag_events
        WHERE event_type = '{SCAN_EVENT_TYPE}'
          AND occurred_at >= $2
          AND occurred_at <= $3
          AND metadata ->> $4 = $1
        ORDER BY occurred_at ASC
    """


def get_scan_events_by_tag_ids_query() -> str:
    """
    Scans of tags assigned to the tenant, for events recorded without metadata.

    Params: $1 tenant id, $2 tag ids (text[]), $3 window start, $4 window end
    """
    return f"""
        SELECT {SCAN_COLUMNS}
        FROM tag_events
        WHERE event_type = '{SCAN_EVENT_TYPE}'
          AND tag_id::text = ANY($2::text[])
          AND tag_id IN (SELECT tag_id FROM tag_assignments WHERE user_id = $1)
          AND occurred_at >= $3
          AND occurred_at <= $4
        ORDER BY occurred_at ASC
    """


def get_leads_query() -> str:
    """
    Leads captured in the window, newest first.

    Params: $1 tenant id, $2 window start, $3 window end
    """
    return f"""
        SELECT {LEAD_COLUMNS}
        FROM leads
        WHERE user_id = $1
          AND created_at >= $2
          AND created_at <= $3
        ORDER BY created_at DESC
    """
