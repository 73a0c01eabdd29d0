"""
Onboarding checklist.

Five fixed items evaluated from a declarative table over the tenant's
profiles, active link counts, lead-form state and share conversion events.
The table is the only place items are defined, so the checklist always has
the same ids in the same order whatever the inputs look like.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from linket_analytics.models.enums import OnboardingItemId
from linket_analytics.models.schemas import (
    ConversionEvent,
    OnboardingChecklist,
    OnboardingItem,
    Profile,
)


# Handles minted at signup look like user-1a2b3c4d and do not count as chosen
AUTO_HANDLE_PATTERN = re.compile(r"^user-[0-9a-f]{8}$", re.IGNORECASE)

SHARE_EVENT_IDS: FrozenSet[str] = frozenset(
    {"share_contact_completed", "vcard_download_completed"}
)

REQUIRED_LINKS = 3


@dataclass
class OnboardingInputs:
    """Everything the checklist predicates look at."""
    profiles: Sequence[Profile] = field(default_factory=list)
    link_counts: Dict[str, int] = field(default_factory=dict)
    lead_form_published: bool = False
    conversion_events: Sequence[ConversionEvent] = field(default_factory=list)

    @property
    def current_profile(self) -> Optional[Profile]:
        """First active profile, else the first profile."""
        for profile in self.profiles:
            if profile.is_active:
                return profile
        return self.profiles[0] if self.profiles else None

    @property
    def current_link_count(self) -> int:
        profile = self.current_profile
        if profile is None:
            return 0
        return self.link_counts.get(profile.id, 0)

    @property
    def share_count(self) -> int:
        return sum(1 for event in self.conversion_events if event.event_id in SHARE_EVENT_IDS)


def is_custom_handle(handle: Optional[str]) -> bool:
    """
    True for a non-blank handle that was not auto-generated.

    Example:
        >>> is_custom_handle("acme")
        True
        >>> is_custom_handle("user-a1b2c3d4")
        False
        >>> is_custom_handle("  ")
        False
    """
    if not handle:
        return False
    cleaned = handle.strip()
    return bool(cleaned) and AUTO_HANDLE_PATTERN.match(cleaned) is None


def _has_custom_handle(inputs: OnboardingInputs) -> bool:
    return any(is_custom_handle(profile.handle) for profile in inputs.profiles)


def _has_active_profile(inputs: OnboardingInputs) -> bool:
    return any(profile.is_active for profile in inputs.profiles)


def _has_three_links(inputs: OnboardingInputs) -> bool:
    return inputs.current_link_count >= REQUIRED_LINKS


def _has_shared(inputs: OnboardingInputs) -> bool:
    return inputs.share_count > 0


def _has_lead_form(inputs: OnboardingInputs) -> bool:
    return inputs.lead_form_published


def _links_detail(inputs: OnboardingInputs, completed: bool) -> str:
    return f"{min(inputs.current_link_count, REQUIRED_LINKS)}/{REQUIRED_LINKS} links published."


@dataclass(frozen=True)
class ChecklistRule:
    """
    One checklist item.

    Attributes:
        id: Stable item identifier.
        label: Short display label.
        predicate: Completion test over the inputs.
        detail: Either a fixed (done, todo) pair of strings or a callable
            receiving (inputs, completed).
    """
    id: OnboardingItemId
    label: str
    predicate: Callable[[OnboardingInputs], bool]
    detail: Union[Tuple[str, str], Callable[[OnboardingInputs, bool], str]]

    def evaluate(self, inputs: OnboardingInputs) -> OnboardingItem:
        completed = bool(self.predicate(inputs))
        if callable(self.detail):
            detail = self.detail(inputs, completed)
        else:
            done, todo = self.detail
            detail = done if completed else todo
        return OnboardingItem(
            id=self.id.value,
            label=self.label,
            completed=completed,
            detail=detail,
        )


CHECKLIST_RULES: Tuple[ChecklistRule, ...] = (
    ChecklistRule(
        OnboardingItemId.SET_HANDLE,
        "Set handle",
        _has_custom_handle,
        ("Custom public handle is set.", "Choose a custom public handle."),
    ),
    ChecklistRule(
        OnboardingItemId.PUBLISH_PROFILE,
        "Publish profile",
        _has_active_profile,
        ("A public profile is live.", "Activate one public profile."),
    ),
    ChecklistRule(
        OnboardingItemId.ADD_THREE_LINKS,
        "Add 3 links",
        _has_three_links,
        _links_detail,
    ),
    ChecklistRule(
        OnboardingItemId.TEST_SHARE,
        "Test share",
        _has_shared,
        ("Contact shared at least once.", "Use Share Contact or Save Contact once."),
    ),
    ChecklistRule(
        OnboardingItemId.PUBLISH_LEAD_FORM,
        "Publish lead form",
        _has_lead_form,
        ("Lead form is collecting contacts.", "Publish your lead form to collect contacts."),
    ),
)


def build_onboarding_checklist(inputs: Optional[OnboardingInputs] = None) -> OnboardingChecklist:
    """
    Evaluate every checklist rule in table order.

    Args:
        inputs: Tenant state. None evaluates the rules over empty inputs.

    Returns:
        OnboardingChecklist with exactly len(CHECKLIST_RULES) items.
    """
    inputs = inputs if inputs is not None else OnboardingInputs()
    items: List[OnboardingItem] = [rule.evaluate(inputs) for rule in CHECKLIST_RULES]
    completed = sum(1 for item in items if item.completed)
    total = len(items)
    return OnboardingChecklist(
        items=items,
        completedCount=completed,
        totalCount=total,
        progress=completed / total if total else 0.0,
    )
