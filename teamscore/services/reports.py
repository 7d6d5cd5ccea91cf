"""
Scored Report Service

Entry points that produce the four dashboard reports (individuals, teams,
departments, company) for a list of months in one year.

Per request:
1. The scoring configuration and the alias mappings are read once.
2. Every month is processed independently and concurrently; within a month the
   three record tables are fetched concurrently.
3. Each month is folded, filtered and scored by the aggregation engine and the
   resulting rows are concatenated in the order the months were requested.

Entry points never raise. Store failures and unexpected errors are logged and
returned as ``ReportResult(success=False, message=...)``.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from teamscore.core.config import get_settings
from teamscore.core.store import RecordStore
from teamscore.models.enums import Granularity, Metric
from teamscore.models.schemas import (
    NameAliasMapping,
    ReportMetadata,
    ReportResult,
    ScoreMatrix,
    ScoredReportRow,
    ScoringConfig,
)
from teamscore.services.aggregation import fold_month, score_groups, score_individuals
from teamscore.services.identity import NameIdentityResolver
from teamscore.services.score_matrix import build_score_matrices

logger = logging.getLogger(__name__)


def resolve_threshold(threshold: Optional[float], config: Optional[ScoringConfig]) -> float:
    """
    Pick the qualification threshold for a report.

    Precedence: explicit argument, then the configuration's call_mins_thr when
    non-zero, then the CALL_MINUTES_THRESHOLD setting.
    """
    if threshold is not None:
        return float(threshold)
    if config is not None and config.call_mins_thr:
        return config.call_mins_thr
    return get_settings().call_minutes_threshold


async def _score_month(
    store: RecordStore,
    granularity: Granularity,
    month: str,
    year: int,
    mappings: List[NameAliasMapping],
    matrices: Dict[Metric, Optional[ScoreMatrix]],
    threshold: float,
) -> List[ScoredReportRow]:
    activity, incoming, outgoing = await asyncio.gather(
        store.find_activity_records(month=month, year=year),
        store.find_incoming_calls(month=month, year=year),
        store.find_outgoing_calls(month=month, year=year),
    )

    resolver = NameIdentityResolver.from_records(mappings, activity)
    fold = fold_month(month, year, activity, incoming, outgoing, resolver)

    if granularity == Granularity.INDIVIDUAL:
        return score_individuals(fold, matrices, resolver)
    return score_groups(fold, granularity, matrices, threshold)


async def build_report(
    store: RecordStore,
    granularity: Granularity,
    months: Sequence[str],
    year: int,
    threshold: Optional[float] = None,
) -> ReportResult:
    """
    Build a scored report for one granularity.

    Args:
        store: Record store to read from.
        granularity: INDIVIDUAL, TEAM, DEPARTMENT or COMPANY.
        months: English month names, processed independently.
        year: Calendar year.
        threshold: Qualification threshold override in call minutes.

    Returns:
        ReportResult with rows for every requested month and the metadata
        envelope, or success=False with a message on failure.
    """
    months = list(months)
    try:
        config, mappings = await asyncio.gather(
            store.find_scoring_config(),
            store.find_name_mappings(),
        )
        matrices = build_score_matrices(config, granularity.scope)
        qualify_above = resolve_threshold(threshold, config)

        per_month = await asyncio.gather(
            *(
                _score_month(store, granularity, month, year, mappings, matrices, qualify_above)
                for month in months
            )
        )
        rows = [row for month_rows in per_month for row in month_rows]

        logger.info(
            f"Built {granularity.value} report: {len(rows)} rows for {len(months)} months of {year}"
        )
        return ReportResult(
            success=True,
            rows=rows,
            metadata=ReportMetadata(
                formatVersion=get_settings().report_format_version,
                timestamp=datetime.now(timezone.utc),
                totalRecords=len(rows),
                months=months,
                year=year,
            ),
        )
    except Exception as e:
        logger.exception(f"Error building {granularity.value} report for {months} {year}")
        return ReportResult(
            success=False,
            message=f"Failed to build {granularity.value} report: {str(e)}",
        )


async def get_individual_report(
    store: RecordStore, months: Sequence[str], year: int, threshold: Optional[float] = None
) -> ReportResult:
    """Score every person; no qualification filter is applied."""
    return await build_report(store, Granularity.INDIVIDUAL, months, year, threshold)


async def get_team_report(
    store: RecordStore, months: Sequence[str], year: int, threshold: Optional[float] = None
) -> ReportResult:
    """Average qualifying members per team and score the averages."""
    return await build_report(store, Granularity.TEAM, months, year, threshold)


async def get_department_report(
    store: RecordStore, months: Sequence[str], year: int, threshold: Optional[float] = None
) -> ReportResult:
    """Average qualifying members per department; rows carry avg_total_score."""
    return await build_report(store, Granularity.DEPARTMENT, months, year, threshold)


async def get_company_report(
    store: RecordStore, months: Sequence[str], year: int, threshold: Optional[float] = None
) -> ReportResult:
    """One row per month for the whole company; RBSL is liv / skade."""
    return await build_report(store, Granularity.COMPANY, months, year, threshold)


REPORT_BUILDERS = {
    Granularity.INDIVIDUAL: get_individual_report,
    Granularity.TEAM: get_team_report,
    Granularity.DEPARTMENT: get_department_report,
    Granularity.COMPANY: get_company_report,
}


__all__ = [
    "resolve_threshold",
    "build_report",
    "get_individual_report",
    "get_team_report",
    "get_department_report",
    "get_company_report",
    "REPORT_BUILDERS",
]
