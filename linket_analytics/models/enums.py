"""
Enumeration definitions for the Linket analytics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models.
"""

from enum import Enum


class AttributionKind(str, Enum):
    """
    How a scan event declares its owner.

    Parsed once from the raw metadata bag when the event is read from the store:
    - PROFILE_ID: metadata carries an owning profile id
    - TAG_ID: no profile id, but the event was recorded against a tag
    - NONE: nothing to attribute by
    """
    NONE = "none"
    PROFILE_ID = "profile_id"
    TAG_ID = "tag_id"


class ScanOwnerKey(str, Enum):
    """
    Metadata keys on tag_events that identify the owning tenant.

    Order matters: scan reconciliation queries the keys in declaration order
    and the first row seen for an event id wins.
    """
    OWNER_USER_ID = "owner_user_id"
    USER_ID = "user_id"


class FunnelStepKey(str, Enum):
    """The five acquisition funnel stages, in funnel order."""
    LANDING_CTA_CLICK = "landing_cta_click"
    SIGNUP_START = "signup_start"
    SIGNUP_COMPLETE = "signup_complete"
    FIRST_PROFILE_PUBLISH = "first_profile_publish"
    FIRST_LEAD = "first_lead"


class OnboardingItemId(str, Enum):
    """The five onboarding checklist items, in display order."""
    SET_HANDLE = "set_handle"
    PUBLISH_PROFILE = "publish_profile"
    ADD_THREE_LINKS = "add_three_links"
    TEST_SHARE = "test_share"
    PUBLISH_LEAD_FORM = "publish_lead_form"


class ExportSection(str, Enum):
    """Report sections that can be exported as CSV."""
    TIMELINE = "timeline"
    PROFILES = "profiles"
    LINKS = "links"
