"""
CSV export of report sections.

Each exportable section of an AnalyticsResult is flattened into a pandas
DataFrame with a fixed column order and rendered with DataFrame.to_csv.
Empty sections still produce a header row.
"""

from typing import Any, Dict, List

import pandas as pd

from linket_analytics.models.enums import ExportSection
from linket_analytics.models.schemas import AnalyticsResult


SECTION_COLUMNS: Dict[ExportSection, List[str]] = {
    ExportSection.TIMELINE: ['date', 'scans', 'leads'],
    ExportSection.PROFILES: ['profileId', 'handle', 'displayName', 'nickname', 'scans', 'leads'],
    ExportSection.LINKS: ['id', 'profileId', 'title', 'url', 'clickCount'],
}


def _section_rows(result: AnalyticsResult, section: ExportSection) -> List[Dict[str, Any]]:
    if section == ExportSection.TIMELINE:
        items = result.timeline
    elif section == ExportSection.PROFILES:
        items = result.topProfiles
    else:
        items = result.topLinks
    return [item.model_dump(mode='json') for item in items]


def section_dataframe(result: AnalyticsResult, section: ExportSection) -> pd.DataFrame:
    """
    Flatten one report section into a DataFrame.

    Args:
        result: Report to export.
        section: Which section to flatten.

    Returns:
        DataFrame with SECTION_COLUMNS[section] as columns, one row per item.
    """
    columns = SECTION_COLUMNS[section]
    rows = _section_rows(result, section)
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def export_section_csv(result: AnalyticsResult, section: ExportSection) -> str:
    """Render a report section as CSV text with a header row."""
    return section_dataframe(result, section).to_csv(index=False)


def export_filename(result: AnalyticsResult, section: ExportSection) -> str:
    """
    Attachment filename for an export, e.g. linket-analytics_timeline_2026-03-09.csv.
    """
    generated = result.meta.generatedAt.date().isoformat()
    return f"linket-analytics_{section.value}_{generated}.csv"
