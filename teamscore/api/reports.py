"""
FastAPI router for scored reports.

Implements GET /reports/individuals, /reports/teams, /reports/departments,
/reports/company, /reports/top/{granularity} and /reports/dashboard.

Query parameters:
- months: repeatable month name (``?months=January&months=February``)
- year: calendar year, defaults to the current year
- threshold: optional qualification threshold override in call minutes

Report services never raise; a ``success=False`` result is turned into an
HTTP 500 with the service message as detail.
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from teamscore.core.dependencies import SettingsDep, StoreDep
from teamscore.models.enums import Granularity
from teamscore.models.schemas import ReportResult, SalesDashboardResult, TopRankingResult
from teamscore.services.dashboard import get_sales_dashboard
from teamscore.services.ranking import get_top_ranking
from teamscore.services.reports import REPORT_BUILDERS


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


def _year_or_current(year: Optional[int]) -> int:
    return year if year is not None else datetime.now().year


async def _report(
    store: StoreDep,
    granularity: Granularity,
    months: List[str],
    year: Optional[int],
    threshold: Optional[float],
) -> ReportResult:
    builder = REPORT_BUILDERS[granularity]
    result = await builder(store, months, _year_or_current(year), threshold)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("/individuals", response_model=ReportResult)
async def individuals_report(
    store: StoreDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    threshold: Optional[float] = Query(default=None, description="Call minute threshold override"),
) -> ReportResult:
    """Every person scored per month, without qualification filter."""
    return await _report(store, Granularity.INDIVIDUAL, months, year, threshold)


@router.get("/teams", response_model=ReportResult)
async def teams_report(
    store: StoreDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    threshold: Optional[float] = Query(default=None, description="Call minute threshold override"),
) -> ReportResult:
    """Team averages of qualifying members, with member sales detail."""
    return await _report(store, Granularity.TEAM, months, year, threshold)


@router.get("/departments", response_model=ReportResult)
async def departments_report(
    store: StoreDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    threshold: Optional[float] = Query(default=None, description="Call minute threshold override"),
) -> ReportResult:
    """Department averages of qualifying members, with the average level."""
    return await _report(store, Granularity.DEPARTMENT, months, year, threshold)


@router.get("/company", response_model=ReportResult)
async def company_report(
    store: StoreDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    threshold: Optional[float] = Query(default=None, description="Call minute threshold override"),
) -> ReportResult:
    """One company-wide row per month."""
    return await _report(store, Granularity.COMPANY, months, year, threshold)


@router.get("/top/{granularity}", response_model=TopRankingResult)
async def top_ranking(
    granularity: Granularity,
    store: StoreDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Number of entries"),
) -> TopRankingResult:
    """Rows of a report ranked by the configured metric weights."""
    result = await get_top_ranking(store, granularity, months, _year_or_current(year), limit)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.get("/dashboard", response_model=SalesDashboardResult)
async def sales_dashboard(
    store: StoreDep,
    settings: SettingsDep,
    months: List[str] = Query(default=[], description="Month names to include"),
    year: Optional[int] = Query(default=None, description="Calendar year"),
    limit: Optional[int] = Query(default=None, ge=1, le=100, description="Entries per list"),
) -> SalesDashboardResult:
    """Top teams, individuals and departments by summed sale value."""
    result = await get_sales_dashboard(
        store,
        months,
        _year_or_current(year),
        limit if limit is not None else settings.top_ranking_limit,
    )
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result
