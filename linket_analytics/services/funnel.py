"""
Acquisition funnel built from conversion events.

The funnel is a fixed table of five stages. Each stage counts one or more
conversion event ids; a single event increments every stage whose id set
contains it. Per stage we track the event count and the earliest occurrence
(event timestamp, falling back to the row's created_at).

Stage-over-stage conversion:
    conversionFromPrevious[0] = None
    conversionFromPrevious[i] = min(count[i] / count[i-1], 1) if count[i-1] > 0
                                else None
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from linket_analytics.models.enums import FunnelStepKey
from linket_analytics.models.schemas import ConversionEvent, Funnel, FunnelStep


@dataclass(frozen=True)
class FunnelStage:
    key: FunnelStepKey
    label: str
    event_ids: FrozenSet[str]


FUNNEL_STAGES: Tuple[FunnelStage, ...] = (
    FunnelStage(
        FunnelStepKey.LANDING_CTA_CLICK,
        "Landing CTA click",
        frozenset({"landing_cta_click", "landing_pricing", "landing_consult"}),
    ),
    FunnelStage(FunnelStepKey.SIGNUP_START, "Signup start", frozenset({"signup_start"})),
    FunnelStage(FunnelStepKey.SIGNUP_COMPLETE, "Signup complete", frozenset({"signup_complete"})),
    FunnelStage(
        FunnelStepKey.FIRST_PROFILE_PUBLISH,
        "First profile publish",
        frozenset({"profile_published"}),
    ),
    FunnelStage(FunnelStepKey.FIRST_LEAD, "First lead", frozenset({"lead_captured"})),
)

FUNNEL_EVENT_IDS: FrozenSet[str] = frozenset(
    event_id for stage in FUNNEL_STAGES for event_id in stage.event_ids
)


def conversion_from_previous(previous: Optional[int], current: int) -> Optional[float]:
    """
    Ratio of a stage's count to the previous stage's count, capped at 1.

    Example:
        >>> conversion_from_previous(None, 4) is None
        True
        >>> conversion_from_previous(0, 4) is None
        True
        >>> conversion_from_previous(4, 1)
        0.25
        >>> conversion_from_previous(2, 5)
        1.0
    """
    if previous is None or previous <= 0:
        return None
    return min(current / previous, 1.0)


def build_funnel(events: Sequence[ConversionEvent]) -> Funnel:
    """
    Reduce conversion events into the fixed five-step funnel.

    Args:
        events: Conversion events in any order. Unknown event ids are ignored.

    Returns:
        Funnel with exactly len(FUNNEL_STAGES) steps in table order.
    """
    counts: Dict[FunnelStepKey, int] = {stage.key: 0 for stage in FUNNEL_STAGES}
    first_at: Dict[FunnelStepKey, datetime] = {}

    for event in events:
        occurred_at = event.occurred_at
        for stage in FUNNEL_STAGES:
            if event.event_id not in stage.event_ids:
                continue
            counts[stage.key] += 1
            earliest = first_at.get(stage.key)
            if earliest is None or occurred_at < earliest:
                first_at[stage.key] = occurred_at

    steps: List[FunnelStep] = []
    previous: Optional[int] = None
    for stage in FUNNEL_STAGES:
        count = counts[stage.key]
        steps.append(
            FunnelStep(
                key=stage.key.value,
                label=stage.label,
                eventCount=count,
                firstAt=first_at.get(stage.key),
                completed=count > 0,
                conversionFromPrevious=conversion_from_previous(previous, count),
            )
        )
        previous = count

    completed = sum(1 for step in steps if step.completed)
    total = len(steps)
    return Funnel(
        steps=steps,
        completedSteps=completed,
        totalSteps=total,
        completionRate=completed / total if total else 0.0,
    )
