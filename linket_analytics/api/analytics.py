"""
FastAPI router for per-tenant analytics reports.

Endpoints:
- GET /analytics/{tenant_id}: Full report (totals, timeline, leaderboards,
  recent leads, funnel, onboarding checklist)
- GET /analytics/{tenant_id}/export: One report section as a CSV attachment

Query parameters are forwarded unclamped; the engine normalizes out-of-range
days, offsets and lead counts rather than rejecting them. Responses are never
cached by clients or proxies.

The tenant id is trusted as given; authentication happens upstream.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response

from linket_analytics.core.dependencies import AnalyticsEngineDep
from linket_analytics.core.exceptions import QueryError
from linket_analytics.models.enums import ExportSection
from linket_analytics.models.schemas import AnalyticsResult
from linket_analytics.services.analytics_engine import AnalyticsEngine
from linket_analytics.services.export import export_filename, export_section_csv

logger = logging.getLogger(__name__)

router = APIRouter()

NO_STORE = "no-store"


async def _load_report(
    engine: AnalyticsEngine,
    tenant_id: str,
    days: Optional[int],
    tz_offset: Optional[float],
    recent_leads: Optional[int],
) -> AnalyticsResult:
    try:
        return await engine.get_analytics(
            tenant_id,
            days=days,
            timezone_offset_minutes=tz_offset if tz_offset is not None else 0,
            recent_lead_count=recent_leads,
        )
    except QueryError as e:
        logger.error(f"Analytics request failed for tenant={tenant_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/{tenant_id}",
    response_model=AnalyticsResult,
    summary="Analytics report for a tenant",
)
async def read_analytics(
    tenant_id: str,
    response: Response,
    engine: AnalyticsEngineDep,
    days: Optional[int] = Query(default=None, description="Window length in days (1-90)"),
    tz_offset: Optional[float] = Query(
        default=None,
        description="Caller timezone offset in minutes, UTC minus local",
    ),
    recent_leads: Optional[int] = Query(
        default=None, description="Number of recent leads to include (0-100)"
    ),
) -> AnalyticsResult:
    """
    Build the analytics report for `tenant_id`.

    Raises:
        HTTPException 500: If a required store read fails.
    """
    result = await _load_report(engine, tenant_id, days, tz_offset, recent_leads)
    response.headers["Cache-Control"] = NO_STORE
    return result


@router.get(
    "/{tenant_id}/export",
    summary="Export one analytics section as CSV",
    response_class=Response,
)
async def export_analytics(
    tenant_id: str,
    engine: AnalyticsEngineDep,
    section: ExportSection = Query(default=ExportSection.TIMELINE),
    days: Optional[int] = Query(default=None),
    tz_offset: Optional[float] = Query(default=None),
) -> Response:
    """
    Render `section` of the tenant's report as a CSV attachment.

    Raises:
        HTTPException 500: If a required store read fails.
    """
    result = await _load_report(engine, tenant_id, days, tz_offset, None)
    logger.info(f"Exporting {section.value} for tenant={tenant_id}")
    return Response(
        content=export_section_csv(result, section),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(result, section)}"',
            "Cache-Control": NO_STORE,
        },
    )
