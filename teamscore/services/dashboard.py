"""
Sales Dashboard Service

Top sellers for the landing dashboard: activity log sale values summed per
team, per person and per department over the selected months of a year, each
list sorted by total descending and cut to the top ``limit``.

Unlike the scored reports this view applies no qualification threshold and no
alias merging; names are grouped exactly as stored. Records without a team or
department are left out of that grouping. Selecting every calendar month
disables the month filter, so rows with non-standard month names are included.
"""

import logging
from typing import List, Optional, Sequence

import pandas as pd

from teamscore.core.config import get_settings
from teamscore.core.store import RecordStore
from teamscore.models.enums import MONTH_NAMES
from teamscore.models.schemas import SalesDashboardResult, SalesTotal
from teamscore.services.formatting import format_number

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DASHBOARD_COLUMNS = ['person_name', 'team', 'department', 'month_name', 'sale_value']


# =============================================================================
# AGGREGATION
# =============================================================================

def top_sales(df: pd.DataFrame, column: str, limit: int) -> List[SalesTotal]:
    """
    Sum ``sale_value`` per non-empty ``column`` value and keep the top entries.

    Ties are broken by key so the order is stable.

    Example:
        >>> df = pd.DataFrame({'team': ['A', 'B', 'A'], 'sale_value': [1.0, 5.0, 2.0]})
        >>> [(t.key, t.total_sales) for t in top_sales(df, 'team', 10)]
        [('B', 5.0), ('A', 3.0)]
    """
    df = df[df[column] != '']
    if df.empty:
        return []

    grouped = (
        df.groupby(column, as_index=False)['sale_value']
        .sum()
        .sort_values(['sale_value', column], ascending=[False, True])
        .head(limit)
    )
    return [
        SalesTotal(key=row[column], total_sales=float(row['sale_value']), display=format_number(row['sale_value']))
        for row in grouped.to_dict(orient='records')
    ]


async def get_sales_dashboard(
    store: RecordStore,
    months: Sequence[str],
    year: int,
    limit: Optional[int] = None,
) -> SalesDashboardResult:
    """
    Build the top teams, individuals and departments by summed sales.

    Args:
        store: Record store to read activity logs from.
        months: Month names to include.
        year: Calendar year.
        limit: Entries per list; defaults to the TOP_RANKING_LIMIT setting.

    Returns:
        SalesDashboardResult, or success=False with a message on failure.
    """
    months = list(months)
    limit = max(limit if limit is not None else get_settings().top_ranking_limit, 1)

    try:
        records = await store.find_activity_records(year=year)
    except Exception as e:
        logger.exception(f"Error fetching activity logs for the {year} dashboard")
        return SalesDashboardResult(success=False, message=f"Failed to build sales dashboard: {str(e)}")

    df = pd.DataFrame([record.model_dump(include=set(DASHBOARD_COLUMNS)) for record in records],
                      columns=DASHBOARD_COLUMNS)
    if not set(MONTH_NAMES).issubset(months):
        df = df[df['month_name'].isin(months)]

    logger.info(f"Building sales dashboard from {len(df)} activity logs for {months} {year}")
    return SalesDashboardResult(
        success=True,
        months=months,
        year=year,
        top_teams=top_sales(df, 'team', limit),
        top_individuals=top_sales(df, 'person_name', limit),
        top_departments=top_sales(df, 'department', limit),
    )


__all__ = [
    'top_sales',
    'get_sales_dashboard',
]
