"""
Weighted top ranking.

Combines the four metric levels of each scored row into one number using the
percentage weights of the scoring configuration:

    weighted_score = sum(level(metric) * weight(metric) / 100)

rounded to two decimals. Rows are sorted by that score, highest first, and the
first ``limit`` are kept. Ties keep report order (entity key within month).
"""

import logging
from typing import List, Optional, Sequence

from teamscore.core.config import get_settings
from teamscore.core.store import RecordStore
from teamscore.models.enums import Granularity, Metric
from teamscore.models.schemas import (
    ScoredReportRow,
    ScoreWeights,
    TopRankingEntry,
    TopRankingResult,
)
from teamscore.services.reports import build_report

logger = logging.getLogger(__name__)


def weighted_score(row: ScoredReportRow, weights: ScoreWeights) -> float:
    total = sum(row.level_for(metric) * weights.for_metric(metric) / 100 for metric in Metric)
    return round(total, 2)


def rank_top(
    rows: Sequence[ScoredReportRow],
    weights: ScoreWeights,
    limit: int = 10,
) -> List[TopRankingEntry]:
    """
    Rank rows by their weighted level score.

    Args:
        rows: Scored report rows of any granularity.
        weights: Percentage weights per metric.
        limit: Number of entries to keep.

    Returns:
        Up to ``limit`` TopRankingEntry items, best first.
    """
    entries = [
        TopRankingEntry(
            entity_key=row.entity_key,
            month=row.month,
            team=row.team,
            department=row.department,
            weighted_score=weighted_score(row, weights),
        )
        for row in rows
    ]
    entries.sort(key=lambda entry: entry.weighted_score, reverse=True)
    return entries[:max(limit, 0)]


async def get_top_ranking(
    store: RecordStore,
    granularity: Granularity,
    months: Sequence[str],
    year: int,
    limit: Optional[int] = None,
) -> TopRankingResult:
    """
    Build a report and rank its rows with the configured weights.

    Without a scoring configuration every weight is 0, so every entry scores 0.
    """
    limit = get_settings().top_ranking_limit if limit is None else limit
    report = await build_report(store, granularity, months, year)
    if not report.success:
        return TopRankingResult(success=False, message=report.message, granularity=granularity)

    try:
        config = await store.find_scoring_config()
    except Exception as e:
        logger.exception("Error loading score weights for ranking")
        return TopRankingResult(
            success=False,
            message=f"Failed to load score weights: {str(e)}",
            granularity=granularity,
        )

    weights = config.weights if config is not None else ScoreWeights()
    return TopRankingResult(
        success=True,
        granularity=granularity,
        weights=weights,
        entries=rank_top(report.rows, weights, limit),
    )


__all__ = [
    "weighted_score",
    "rank_top",
    "get_top_ranking",
]
