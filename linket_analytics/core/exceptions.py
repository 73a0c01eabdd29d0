"""
Exception classes for the Linket analytics backend.

Hierarchy:
    AnalyticsError
    ├── StoreUnavailableError
    └── QueryError
        └── OptionalSourceMissingError

Propagation policy:
- StoreUnavailableError: the engine degrades to an empty report with
  meta.available = False instead of failing the call.
- OptionalSourceMissingError: only the inputs fed by that source are treated
  as empty (e.g. the conversion_events table not existing yet).
- QueryError: any other failed read aborts the report and reaches the caller.
"""

from typing import Any, Dict, Optional


class AnalyticsError(Exception):
    """Base exception for all analytics errors."""

    def __init__(
        self,
        message: str,
        code: str = "ANALYTICS_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class StoreUnavailableError(AnalyticsError):
    """The store cannot be configured or reached at all."""

    def __init__(self, message: str = "Analytics store is not configured"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class QueryError(AnalyticsError):
    """A read against the store failed."""

    def __init__(self, source: str, message: str, code: str = "QUERY_FAILED"):
        self.source = source
        super().__init__(
            f"Failed to load {source}: {message}",
            code=code,
            details={"source": source},
        )


class OptionalSourceMissingError(QueryError):
    """A named optional source (table) does not exist in the store."""

    def __init__(self, source: str, message: str = "relation does not exist"):
        super().__init__(source, message, code="OPTIONAL_SOURCE_MISSING")
