"""
Leaderboards for profiles and links.

Profiles: every scan and lead is mapped to one canonical attribution key by a
pure resolver; a request-scoped accumulator counts scans and leads per key and
backfills display fields when better values arrive. Ranking sorts by scans
desc, then leads desc (stable, so equal rows keep first-seen order) and keeps
the top N.

Links: one row per active link, sorted by click count desc, then title
ascending (case-insensitive), then id.

Both rankings are recomputed from scratch on every call.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from linket_analytics.models.schemas import (
    LeadRecord,
    ProfileLink,
    ScanEvent,
    TopLink,
    TopProfile,
)
from linket_analytics.services.attribution import (
    PUBLIC_DISPLAY_NAME,
    UNASSIGNED_DISPLAY_NAME,
    ProfileInfo,
    ScanOwner,
    normalize_handle,
)


DEFAULT_TOP_PROFILES = 8


# =============================================================================
# Attribution Keys
# =============================================================================


def resolve_scan_key(scan: ScanEvent, owner: ScanOwner) -> str:
    """
    Canonical accumulator key for a scan.

    Precedence: owner profile id (metadata-declared owners resolve first in
    attribution), owner handle, tag id, event id.
    """
    profile = owner.profile
    if profile and profile.profile_id:
        return profile.profile_id
    if profile and profile.handle:
        return profile.handle
    if scan.tag_id:
        return scan.tag_id
    return scan.id


def resolve_lead_key(lead: LeadRecord, profile: Optional[ProfileInfo]) -> str:
    """
    Canonical accumulator key for a lead.

    Precedence: owner profile id, normalized handle, `lead-<id>`.
    """
    if profile and profile.profile_id:
        return profile.profile_id
    handle = normalize_handle(lead.handle)
    if handle:
        return handle
    return f"lead-{lead.id}"


# =============================================================================
# Profile Accumulator
# =============================================================================


@dataclass
class ProfileAggregate:
    """Mutable per-key counters; lives only for one request."""
    profile_id: Optional[str]
    handle: Optional[str]
    display_name: str
    nickname: Optional[str]
    scans: int = 0
    leads: int = 0

    def backfill(
        self,
        profile: Optional[ProfileInfo],
        profile_id: Optional[str] = None,
    ) -> None:
        if profile is not None:
            if profile.display_name:
                self.display_name = profile.display_name
            if profile.nickname:
                self.nickname = profile.nickname
            if not self.handle and profile.handle:
                self.handle = profile.handle
        if not self.profile_id and profile_id:
            self.profile_id = profile_id

    def to_model(self) -> TopProfile:
        return TopProfile(
            profileId=self.profile_id,
            handle=self.handle,
            displayName=self.display_name,
            nickname=self.nickname,
            scans=self.scans,
            leads=self.leads,
        )


class ProfileLeaderboard:
    """Accumulates scans and leads per attribution key."""

    def __init__(self):
        self._rows: "OrderedDict[str, ProfileAggregate]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._rows)

    def add_scan(self, scan: ScanEvent, owner: ScanOwner) -> None:
        key = resolve_scan_key(scan, owner)
        profile = owner.profile
        row = self._rows.get(key)
        if row is None:
            profile = profile or ProfileInfo()
            row = ProfileAggregate(
                profile_id=profile.profile_id or owner.metadata_profile_id,
                handle=profile.handle,
                display_name=profile.display_name or UNASSIGNED_DISPLAY_NAME,
                nickname=profile.nickname,
            )
            self._rows[key] = row
        row.scans += 1
        row.backfill(profile, owner.metadata_profile_id)

    def add_lead(self, lead: LeadRecord, profile: Optional[ProfileInfo]) -> None:
        key = resolve_lead_key(lead, profile)
        handle = normalize_handle(lead.handle)
        row = self._rows.get(key)
        if row is None:
            row = ProfileAggregate(
                profile_id=profile.profile_id if profile else None,
                handle=(profile.handle if profile else None) or handle,
                display_name=(
                    (profile.display_name if profile else None)
                    or handle
                    or PUBLIC_DISPLAY_NAME
                ),
                nickname=profile.nickname if profile else None,
            )
            self._rows[key] = row
        row.leads += 1
        row.backfill(profile)

    def ranked(self, limit: Optional[int] = DEFAULT_TOP_PROFILES) -> List[TopProfile]:
        return rank_profiles(self._rows.values(), limit)


def rank_profiles(
    rows: Iterable[ProfileAggregate],
    limit: Optional[int] = DEFAULT_TOP_PROFILES,
) -> List[TopProfile]:
    """Sort by scans desc, then leads desc, and keep the first `limit` rows."""
    ordered = sorted(rows, key=lambda row: (-row.scans, -row.leads))
    if limit is not None:
        ordered = ordered[:max(limit, 0)]
    return [row.to_model() for row in ordered]


# =============================================================================
# Links
# =============================================================================


def _link_sort_key(link: ProfileLink):
    return (-link.click_count, (link.title or "").casefold(), link.id)


def rank_links(links: Sequence[ProfileLink], limit: Optional[int] = None) -> List[TopLink]:
    """
    Active links by click count desc, then title A-Z.

    Args:
        links: Link rows; inactive ones are skipped.
        limit: Optional cap. None keeps every active link.
    """
    ordered = sorted((link for link in links if link.is_active), key=_link_sort_key)
    if limit is not None:
        ordered = ordered[:max(limit, 0)]
    return [
        TopLink(
            id=link.id,
            profileId=link.profile_id,
            title=link.title,
            url=link.url,
            clickCount=link.click_count,
        )
        for link in ordered
    ]
