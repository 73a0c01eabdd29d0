"""
Caller-local time window computation for analytics reports.

Converts (day count, timezone offset, current instant) into the UTC range used
for store queries and the ordered set of caller-local calendar-day keys used
for timeline buckets.

Timezone offset convention (same as the browser's Date.getTimezoneOffset()):
    offset_minutes = UTC - local, so UTC-5 is 300 and UTC+2 is -120.
    local time = UTC time - offset

Window shape:
    start = local midnight of (today - (days - 1))
    end   = local 23:59:59.999999 of today
Both are shifted back by the offset and returned as aware UTC datetimes.

Everything here is pure; "now" is injected by the caller.
"""

import math
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from linket_analytics.models.schemas import ensure_utc


DEFAULT_DAYS = 30
MIN_DAYS = 1
MAX_DAYS = 90

# Real-world offsets span UTC-14:00 .. UTC+14:00
MAX_OFFSET_MINUTES = 840

# Integers beyond this are clamped before float conversion
_INT_CLAMP = 2 ** 53


def finite_float(value: Any) -> Optional[float]:
    """
    Coerce a caller-supplied number to a finite float, or None.

    Arbitrarily large ints are clamped first, so 10 ** 400 reads as a very
    large number instead of overflowing.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return float(max(-_INT_CLAMP, min(value, _INT_CLAMP)))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def normalize_days(
    value: Any,
    default: int = DEFAULT_DAYS,
    max_days: int = MAX_DAYS,
) -> int:
    """
    Clamp a caller-supplied day count into [1, max_days].

    Non-numeric and non-finite values fall back to `default` (itself clamped).
    `max_days` itself never exceeds MAX_DAYS.

    Example:
        >>> normalize_days(365)
        90
        >>> normalize_days(0)
        1
        >>> normalize_days(float('nan'))
        30
    """
    number = finite_float(value)
    if number is None:
        number = default
    return max(MIN_DAYS, min(int(number), min(max_days, MAX_DAYS)))


def normalize_offset(value: Any) -> int:
    """
    Clamp a timezone offset (minutes) into [-840, 840]; garbage becomes 0.

    Example:
        >>> normalize_offset(300)
        300
        >>> normalize_offset(10_000)
        840
        >>> normalize_offset(float('inf'))
        0
    """
    number = finite_float(value)
    if number is None:
        return 0
    return max(-MAX_OFFSET_MINUTES, min(int(round(number)), MAX_OFFSET_MINUTES))


def day_key(instant: datetime, offset_minutes: int = 0) -> str:
    """Format an instant as the caller-local calendar day, YYYY-MM-DD."""
    local = ensure_utc(instant) - timedelta(minutes=offset_minutes)
    return local.date().isoformat()


@dataclass(frozen=True)
class TimeWindow:
    """
    A resolved reporting window.

    Attributes:
        days: Number of calendar days in the window (already clamped).
        offset_minutes: Caller timezone offset (already clamped).
        start_utc: First instant of the window, aware UTC.
        end_utc: Last instant of the window, aware UTC.
        today_key: Caller-local calendar day of "now".
        day_keys: Every day key in the window, oldest first.
    """
    days: int
    offset_minutes: int
    start_utc: datetime
    end_utc: datetime
    today_key: str
    day_keys: Tuple[str, ...]

    def day_key(self, instant: datetime) -> str:
        return day_key(instant, self.offset_minutes)

    def empty_buckets(self) -> "OrderedDict[str, Dict[str, int]]":
        """Ordered map of every day key to a zeroed {scans, leads} counter."""
        return OrderedDict((key, {'scans': 0, 'leads': 0}) for key in self.day_keys)


def compute_time_window(
    days: Any = DEFAULT_DAYS,
    timezone_offset_minutes: Any = 0,
    now: Optional[datetime] = None,
    default_days: int = DEFAULT_DAYS,
    max_days: int = MAX_DAYS,
) -> TimeWindow:
    """
    Resolve the reporting window for a request.

    Args:
        days: Requested window length; clamped into [1, max_days].
        timezone_offset_minutes: Caller offset; clamped into [-840, 840].
        now: Current instant. Defaults to datetime.now(timezone.utc).
        default_days: Fallback when `days` is not a finite number.
        max_days: Upper clamp for `days`.

    Returns:
        TimeWindow with UTC bounds and the dense list of local day keys.

    Example:
        >>> window = compute_time_window(
        ...     days=3,
        ...     timezone_offset_minutes=300,
        ...     now=datetime(2026, 3, 10, 2, 0, tzinfo=timezone.utc),
        ... )
        >>> window.today_key
        '2026-03-09'
        >>> window.day_keys
        ('2026-03-07', '2026-03-08', '2026-03-09')
        >>> window.start_utc.isoformat()
        '2026-03-07T05:00:00+00:00'
    """
    resolved_days = normalize_days(days, default=default_days, max_days=max_days)
    offset = normalize_offset(timezone_offset_minutes)
    shift = timedelta(minutes=offset)

    now_utc = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
    local_now = now_utc - shift
    local_midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)

    local_start = local_midnight - timedelta(days=resolved_days - 1)
    local_end = local_midnight + timedelta(days=1) - timedelta(microseconds=1)

    day_keys = tuple(
        (local_start + timedelta(days=index)).date().isoformat()
        for index in range(resolved_days)
    )

    return TimeWindow(
        days=resolved_days,
        offset_minutes=offset,
        start_utc=local_start + shift,
        end_utc=local_end + shift,
        today_key=local_now.date().isoformat(),
        day_keys=day_keys,
    )
