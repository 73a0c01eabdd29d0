"""
Owner attribution for scans and leads.

Builds request-scoped lookup tables from the tenant's profiles and tag
assignments, then answers "who owns this event?":

- profile_by_id: profile rows, plus assignment-joined profiles not already
  present; a profile row without a nickname borrows the assignment's nickname
- profile_by_handle: lower-cased, stripped handle -> profile (profile rows win)
- tag_meta: tag id -> the profile (or nickname) the tag is assigned to

Scan precedence: profile id declared in the scan metadata (when known), else
the tag assignment, else unassigned. Lead precedence: handle lookup, else the
public placeholder. Handles compare case-insensitively; blank handles never
match anything.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence

from linket_analytics.models.schemas import LeadRecord, Profile, ScanEvent, TagAssignment


UNASSIGNED_DISPLAY_NAME = "Unassigned Linket"
PUBLIC_DISPLAY_NAME = "Public Linket"


def normalize_handle(handle: Optional[str]) -> Optional[str]:
    """
    Canonical form of a handle for comparisons.

    Example:
        >>> normalize_handle("  Acme ")
        'acme'
        >>> normalize_handle("   ") is None
        True
    """
    if not handle:
        return None
    cleaned = handle.strip().lower()
    return cleaned or None


def _clean(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip() or None


@dataclass(frozen=True)
class ProfileInfo:
    """Human-readable owner information attached to scans and leads."""
    profile_id: Optional[str] = None
    handle: Optional[str] = None
    display_name: Optional[str] = None
    nickname: Optional[str] = None


@dataclass(frozen=True)
class ScanOwner:
    """
    Result of attributing one scan.

    Attributes:
        profile: Resolved owner, or None when the scan is unassigned.
        metadata_profile_id: Profile id declared by the scan metadata, even
            when that id is unknown to the tenant's profile table.
    """
    profile: Optional[ProfileInfo] = None
    metadata_profile_id: Optional[str] = None


def profile_info_from_row(profile: Profile) -> ProfileInfo:
    return ProfileInfo(
        profile_id=profile.id,
        handle=normalize_handle(profile.handle),
        display_name=_clean(profile.name),
        nickname=None,
    )


def profile_info_from_assignment(assignment: TagAssignment) -> ProfileInfo:
    """Owner info for a tag assignment; display name is profile name, else nickname."""
    joined = assignment.profile
    return ProfileInfo(
        profile_id=joined.id if joined else None,
        handle=normalize_handle(joined.handle) if joined else None,
        display_name=(_clean(joined.name) if joined else None) or _clean(assignment.nickname),
        nickname=assignment.nickname,
    )


@dataclass
class AttributionIndex:
    """Lookup tables for one request. Never shared across requests."""
    profile_by_id: Dict[str, ProfileInfo] = field(default_factory=dict)
    profile_by_handle: Dict[str, ProfileInfo] = field(default_factory=dict)
    tag_meta: Dict[str, ProfileInfo] = field(default_factory=dict)

    def attribute_scan(self, scan: ScanEvent) -> ScanOwner:
        metadata_profile_id = scan.attribution.profile_id
        declared = (
            self.profile_by_id.get(metadata_profile_id) if metadata_profile_id else None
        )
        if declared is not None:
            return ScanOwner(profile=declared, metadata_profile_id=metadata_profile_id)

        from_tag = self.tag_meta.get(scan.tag_id) if scan.tag_id else None
        return ScanOwner(profile=from_tag, metadata_profile_id=metadata_profile_id)

    def attribute_lead(self, lead: LeadRecord) -> Optional[ProfileInfo]:
        handle = normalize_handle(lead.handle)
        if handle is None:
            return None
        return self.profile_by_handle.get(handle)


def build_attribution_index(
    profiles: Sequence[Profile],
    assignments: Sequence[TagAssignment],
) -> AttributionIndex:
    """
    Build the attribution lookup tables.

    Args:
        profiles: The tenant's profile rows.
        assignments: The tenant's tag assignments with joined profiles.

    Returns:
        AttributionIndex scoped to the current request.
    """
    index = AttributionIndex()

    for profile in profiles:
        info = profile_info_from_row(profile)
        index.profile_by_id[profile.id] = info
        if info.handle:
            index.profile_by_handle[info.handle] = info

    for assignment in assignments:
        info = profile_info_from_assignment(assignment)
        index.tag_meta[assignment.tag_id] = info

        if info.profile_id:
            existing = index.profile_by_id.get(info.profile_id)
            if existing is None:
                index.profile_by_id[info.profile_id] = info
            elif not existing.nickname and info.nickname:
                index.profile_by_id[info.profile_id] = replace(existing, nickname=info.nickname)

        if info.handle and info.handle not in index.profile_by_handle:
            index.profile_by_handle[info.handle] = info

    return index
