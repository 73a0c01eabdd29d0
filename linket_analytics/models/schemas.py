"""
Pydantic models for the Linket analytics backend.

Two families of models live here:

- Store rows (snake_case, mirroring the table columns): ScanEvent, LeadRecord,
  ConversionEvent, TagAssignment, Profile, ProfileLink. These are validated at
  the store boundary by the query layer and are read-only snapshots.
- Report models (camelCase, mirroring the dashboard JSON contract):
  TimelinePoint, AnalyticsTotals, TopProfile, TopLink, RecentLead, FunnelStep,
  Funnel, OnboardingItem, OnboardingChecklist, AnalyticsMeta, AnalyticsResult.

Scan metadata is an untyped key/value bag in the store. It is parsed into an
explicit Attribution value by `parse_attribution` before a ScanEvent is built,
so nothing downstream probes raw dictionaries.

All models use Pydantic v2 syntax.
"""

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Mapping, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from linket_analytics.models.enums import AttributionKind


# Metadata keys that may declare the owning profile of a scan, in precedence order
PROFILE_METADATA_KEYS = ("owner_profile_id", "profile_id")


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Timestamp that is always timezone-aware UTC after validation
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


# =============================================================================
# Attribution
# =============================================================================


class Attribution(BaseModel):
    """
    Explicit owner declaration of a scan event.

    Exactly one of three shapes:
    - kind=none, value=None
    - kind=profile_id, value=<profile id from metadata>
    - kind=tag_id, value=<tag id the scan was recorded against>
    """
    model_config = ConfigDict(frozen=True)

    kind: AttributionKind = AttributionKind.NONE
    value: Optional[str] = None

    @property
    def profile_id(self) -> Optional[str]:
        return self.value if self.kind == AttributionKind.PROFILE_ID else None


def parse_attribution(metadata: Any, tag_id: Optional[str] = None) -> Attribution:
    """
    Parse a raw scan metadata bag into an Attribution.

    Args:
        metadata: The `metadata` column as read from the store. Accepts a
            mapping, a JSON string (asyncpg returns jsonb as text), or None.
        tag_id: The tag the scan was recorded against, if any.

    Returns:
        Attribution by profile id when a known metadata key carries a non-blank
        string, else by tag id when one exists, else none.

    Example:
        >>> parse_attribution({"owner_profile_id": " p1 "}, "t1").value
        'p1'
        >>> parse_attribution(None, "t1").kind
        <AttributionKind.TAG_ID: 'tag_id'>
    """
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            metadata = None

    if isinstance(metadata, Mapping):
        for key in PROFILE_METADATA_KEYS:
            profile_id = _clean_str(metadata.get(key))
            if profile_id:
                return Attribution(kind=AttributionKind.PROFILE_ID, value=profile_id)

    tag = _clean_str(tag_id)
    if tag:
        return Attribution(kind=AttributionKind.TAG_ID, value=tag)
    return Attribution()


# =============================================================================
# Store Rows
# =============================================================================


class ScanEvent(BaseModel):
    """
    One physical tap/scan of a tag.

    Source table: tag_events (event_type = 'scan')
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Event identifier")
    tag_id: Optional[str] = Field(default=None, description="Scanned tag")
    occurred_at: UtcDatetime = Field(..., description="When the scan happened")
    attribution: Attribution = Field(default_factory=Attribution)

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "ScanEvent":
        """Build a ScanEvent from a tag_events row, parsing its metadata bag."""
        tag_id = row.get('tag_id')
        return cls(
            id=str(row['id']),
            tag_id=str(tag_id) if tag_id is not None else None,
            occurred_at=row['occurred_at'],
            attribution=parse_attribution(row.get('metadata'), tag_id),
        )


class LeadRecord(BaseModel):
    """
    A contact captured through a lead form. Attributed by profile handle.

    Source table: leads
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    company: Optional[str] = None
    message: Optional[str] = None
    source_url: Optional[str] = None
    handle: Optional[str] = None
    created_at: UtcDatetime

    @field_validator('name', 'email', mode='before')
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class ConversionEvent(BaseModel):
    """
    A named product lifecycle event (signup start, profile published, ...).

    Source table: conversion_events
    """
    model_config = ConfigDict(frozen=True)

    event_id: str
    created_at: UtcDatetime
    timestamp: Optional[UtcDatetime] = Field(
        default=None,
        description="Client-reported time of the event; preferred over created_at"
    )

    @property
    def occurred_at(self) -> datetime:
        return self.timestamp or self.created_at


class AssignedProfile(BaseModel):
    """Profile joined onto a tag assignment."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    handle: Optional[str] = None
    is_active: bool = False


class TagAssignment(BaseModel):
    """
    Binding of a physical tag to an owning profile.

    Source table: tag_assignments joined to user_profiles
    """
    model_config = ConfigDict(frozen=True)

    tag_id: str
    nickname: Optional[str] = None
    profile: Optional[AssignedProfile] = None


class Profile(BaseModel):
    """
    A tenant-owned public profile page.

    Source table: user_profiles
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    handle: Optional[str] = None
    is_active: bool = False


class ProfileLink(BaseModel):
    """
    A link shown on a profile, with its click counter.

    Source table: profile_links
    """
    model_config = ConfigDict(frozen=True)

    id: str
    profile_id: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    click_count: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator('click_count', mode='before')
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


# =============================================================================
# Report Models
# =============================================================================


class TimelinePoint(BaseModel):
    """One caller-local calendar day with its scan and lead counts."""
    date: str = Field(..., description="Local calendar day, YYYY-MM-DD")
    scans: int = Field(default=0, ge=0)
    leads: int = Field(default=0, ge=0)


class AnalyticsTotals(BaseModel):
    """Headline counters for the dashboard stat cards."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "scansToday": 4,
                "leadsToday": 1,
                "scans7d": 31,
                "leads7d": 5,
                "conversionRate7d": 0.1613,
                "activeTags": 3,
                "lastScanAt": "2026-03-14T17:02:11Z"
            }
        }
    )

    scansToday: int = Field(default=0, ge=0)
    leadsToday: int = Field(default=0, ge=0)
    scans7d: int = Field(default=0, ge=0)
    leads7d: int = Field(default=0, ge=0)
    conversionRate7d: float = Field(default=0.0, ge=0.0)
    activeTags: int = Field(default=0, ge=0, description="Distinct tags scanned in the window")
    lastScanAt: Optional[datetime] = None


class TopProfile(BaseModel):
    """Leaderboard row for one attributed owner."""
    profileId: Optional[str] = None
    handle: Optional[str] = None
    displayName: str
    nickname: Optional[str] = None
    scans: int = Field(default=0, ge=0)
    leads: int = Field(default=0, ge=0)


class TopLink(BaseModel):
    """Leaderboard row for one active profile link."""
    id: str
    profileId: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    clickCount: int = Field(default=0, ge=0)


class RecentLead(BaseModel):
    """A lead as shown in the recent-leads table."""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    message: Optional[str] = None
    sourceUrl: Optional[str] = None
    handle: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_lead(cls, lead: LeadRecord) -> "RecentLead":
        return cls(
            id=lead.id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            company=lead.company,
            message=lead.message,
            sourceUrl=lead.source_url,
            handle=lead.handle,
            createdAt=lead.created_at,
        )


class FunnelStep(BaseModel):
    """
    One acquisition funnel stage.

    conversionFromPrevious is None for the first stage and whenever the
    previous stage has no events; otherwise it is capped to [0, 1].
    """
    key: str
    label: str
    eventCount: int = Field(default=0, ge=0)
    firstAt: Optional[datetime] = None
    completed: bool = False
    conversionFromPrevious: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class Funnel(BaseModel):
    """The fixed five-stage acquisition funnel."""
    steps: List[FunnelStep]
    completedSteps: int = Field(default=0, ge=0)
    totalSteps: int = Field(default=0, ge=0)
    completionRate: float = Field(default=0.0, ge=0.0, le=1.0)


class OnboardingItem(BaseModel):
    """One onboarding checklist item."""
    id: str
    label: str
    completed: bool = False
    detail: str = ""


class OnboardingChecklist(BaseModel):
    """The fixed five-item onboarding checklist."""
    items: List[OnboardingItem]
    completedCount: int = Field(default=0, ge=0)
    totalCount: int = Field(default=0, ge=0)
    progress: float = Field(default=0.0, ge=0.0, le=1.0)


class AnalyticsMeta(BaseModel):
    """Report metadata. available=False means nothing to show yet, not an error."""
    days: int = Field(..., ge=1)
    generatedAt: datetime
    available: bool = True
    timezoneOffsetMinutes: int = 0


class AnalyticsResult(BaseModel):
    """
    Aggregate root returned by the analytics engine.

    A fresh read-only snapshot computed per request.
    """
    totals: AnalyticsTotals
    timeline: List[TimelinePoint]
    topProfiles: List[TopProfile] = Field(default_factory=list)
    topLinks: List[TopLink] = Field(default_factory=list)
    recentLeads: List[RecentLead] = Field(default_factory=list)
    funnel: Funnel
    onboarding: OnboardingChecklist
    meta: AnalyticsMeta

    def to_payload(self) -> Dict[str, Any]:
        """Plain JSON-serializable dict of the report."""
        return self.model_dump(mode='json')
