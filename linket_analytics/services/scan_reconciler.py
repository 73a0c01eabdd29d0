"""
Scan reconciliation across competing attribution strategies.

Scans can be tied to a tenant in more than one way. Newer events carry the
owning user id in their metadata under one of several keys; older events carry
no metadata at all and can only be found through the tags assigned to the
tenant. Reconciliation is modelled as:

- an ordered list of primary strategies (one per metadata key), all run
  concurrently; a failing primary strategy is logged and counts as zero rows
- a union by event id where the first row seen for an id wins
- one fallback strategy (tag-id join), run only when the primary union is
  empty and the tenant has at least one assigned tag; a failing fallback is
  fatal

Adding a new metadata key means adding a MetadataKeyStrategy to the list, not
touching the union logic.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from linket_analytics.core.exceptions import QueryError
from linket_analytics.models.enums import ScanOwnerKey
from linket_analytics.models.schemas import ScanEvent
from linket_analytics.services.queries import AnalyticsQuerySource
from linket_analytics.services.time_window import TimeWindow


logger = logging.getLogger(__name__)


# =============================================================================
# Strategies
# =============================================================================


@dataclass(frozen=True)
class MetadataKeyStrategy:
    """Find scans whose metadata names the tenant under `key`."""
    key: str

    @property
    def name(self) -> str:
        return f"metadata:{self.key}"

    async def fetch(
        self,
        queries: AnalyticsQuerySource,
        tenant_id: str,
        window: TimeWindow,
        tag_ids: Sequence[str] = (),
    ) -> List[ScanEvent]:
        return await queries.fetch_scan_events(
            tenant_id, window.start_utc, window.end_utc, self.key
        )


@dataclass(frozen=True)
class TagJoinStrategy:
    """Find scans recorded against the tenant's assigned tags."""

    @property
    def name(self) -> str:
        return "tag_join"

    async def fetch(
        self,
        queries: AnalyticsQuerySource,
        tenant_id: str,
        window: TimeWindow,
        tag_ids: Sequence[str] = (),
    ) -> List[ScanEvent]:
        if not tag_ids:
            return []
        return await queries.fetch_scan_events_by_tag_ids(
            tenant_id, list(tag_ids), window.start_utc, window.end_utc
        )


DEFAULT_PRIMARY_STRATEGIES = tuple(
    MetadataKeyStrategy(key.value) for key in ScanOwnerKey
)


# =============================================================================
# Merging
# =============================================================================


def merge_scan_batches(
    batches: Sequence[Sequence[ScanEvent]],
) -> "OrderedDict[str, ScanEvent]":
    """
    Union scan batches by event id; the first row seen for an id wins.

    Args:
        batches: Result sets in strategy order.

    Returns:
        Ordered map of event id to scan, in first-seen order.
    """
    merged: "OrderedDict[str, ScanEvent]" = OrderedDict()
    for batch in batches:
        for scan in batch:
            if scan.id not in merged:
                merged[scan.id] = scan
    return merged


def sort_scans(scans: Sequence[ScanEvent]) -> List[ScanEvent]:
    """Ascending by occurred_at, ties broken by id so output is deterministic."""
    return sorted(scans, key=lambda scan: (scan.occurred_at, scan.id))


# =============================================================================
# Reconciler
# =============================================================================


TagIdsProvider = Callable[[], Awaitable[Sequence[str]]]


class ScanReconciler:
    """
    Fetch scans through every attribution strategy and merge them.

    Args:
        queries: Store collaborator.
        primary: Ordered primary strategies. Defaults to one per ScanOwnerKey.
        fallback: Strategy used when the primary union is empty.
    """

    def __init__(
        self,
        queries: AnalyticsQuerySource,
        primary: Optional[Sequence[MetadataKeyStrategy]] = None,
        fallback: Optional[TagJoinStrategy] = None,
    ):
        self.queries = queries
        self.primary = tuple(primary) if primary is not None else DEFAULT_PRIMARY_STRATEGIES
        self.fallback = fallback if fallback is not None else TagJoinStrategy()

    async def _run_primary(
        self,
        strategy: MetadataKeyStrategy,
        tenant_id: str,
        window: TimeWindow,
    ) -> List[ScanEvent]:
        try:
            return await strategy.fetch(self.queries, tenant_id, window)
        except QueryError as e:
            logger.warning(
                f"Scan strategy {strategy.name} failed for tenant={tenant_id}, "
                f"treating as empty: {e}"
            )
            return []

    async def reconcile(
        self,
        tenant_id: str,
        window: TimeWindow,
        tag_ids: TagIdsProvider,
    ) -> List[ScanEvent]:
        """
        Return the deduplicated, time-ordered scans of the tenant in `window`.

        Args:
            tenant_id: Tenant whose scans are wanted.
            window: Resolved reporting window (UTC bounds are used).
            tag_ids: Awaitable factory for the tenant's assigned tag ids. Only
                awaited when the fallback might run, so the caller can pass a
                task that is still resolving concurrently.

        Raises:
            QueryError: If the fallback strategy fails.
        """
        batches = await asyncio.gather(
            *(self._run_primary(strategy, tenant_id, window) for strategy in self.primary)
        )
        merged = merge_scan_batches(batches)

        if not merged:
            known_tag_ids = [tag_id for tag_id in await tag_ids() if tag_id]
            if known_tag_ids:
                logger.info(
                    f"No metadata-attributed scans for tenant={tenant_id}; "
                    f"falling back to {self.fallback.name} over {len(known_tag_ids)} tags"
                )
                fallback_rows = await self.fallback.fetch(
                    self.queries, tenant_id, window, known_tag_ids
                )
                merged = merge_scan_batches([fallback_rows])

        return sort_scans(list(merged.values()))
