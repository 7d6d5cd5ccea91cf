"""
Score Matrix Service

Builds the ten-level threshold tables used to score every metric and resolves a
raw aggregate value to a discrete level (1-10).

Matrix families (level 5 always equals the benchmark):
- linear:   level L = benchmark + (L - 5) * interval, level 1 excluded ("-").
            Used for TCM and TS in every scope and for RBSL in the individual scope.
- inverted: level 10 = 0, L > 5 subtracts intervals, L < 5 adds them.
            Used for CE, where a lower value is better.
- rbsl:     level 10 = benchmark + 5 * interval, level 1 = 0, otherwise linear.
            Used for RBSL in the team scope (teams, departments, company).

Resolver modes:
- default (TCM/TS): highest threshold the value reaches (>=), fallback {1, "-"}.
- CE: near-zero values are level 10; otherwise the value is compared as a
  percent with a strict > against descending thresholds. The fallback literal
  depends on the scope: {1, "47"} for individuals, {1, "-"} elsewhere.
- RBSL: value compared as a percent with >=, fallback {1, "0"}.

The CE operator and the per-scope fallbacks differ on purpose; both are kept as
observed in the production dashboards. A missing scoring configuration yields
no matrix, and resolving against no matrix always returns {1, "-"}.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from teamscore.models.enums import Metric, ScoreFamily, Scope, SortDirection
from teamscore.models.schemas import ScoreLevel, ScoreMatrix, ScoringConfig, coerce_number

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

EXCLUDED_SCORE = "-"

# CE values below this are treated as zero and awarded the top level
CE_ZERO_EPSILON = 0.001

LEVELS = tuple(range(10, 0, -1))


@dataclass(frozen=True)
class ResolverProfile:
    """
    Per-scope resolver behaviour that differs between report variants.

    Attributes:
        ce_fallback: Score literal returned when a CE value clears no threshold.
        rbsl_family: Matrix family used for RBSL in this scope.
    """
    ce_fallback: str
    rbsl_family: ScoreFamily


RESOLVER_PROFILES: Dict[Scope, ResolverProfile] = {
    Scope.INDIVIDUAL: ResolverProfile(ce_fallback="47", rbsl_family=ScoreFamily.LINEAR),
    Scope.TEAM: ResolverProfile(ce_fallback=EXCLUDED_SCORE, rbsl_family=ScoreFamily.RBSL),
}

# Sort direction per metric, RBSL additionally resolves in percent mode
METRIC_DIRECTIONS: Dict[Metric, SortDirection] = {
    Metric.TCM: SortDirection.DESC,
    Metric.CE: SortDirection.ASC,
    Metric.TS: SortDirection.DESC,
    Metric.RBSL: SortDirection.DESC,
}


# =============================================================================
# Matrix Construction
# =============================================================================


def family_for(metric: Metric, scope: Scope) -> ScoreFamily:
    """Return the matrix family a metric uses in a scope."""
    if metric == Metric.CE:
        return ScoreFamily.INVERTED
    if metric == Metric.RBSL:
        return RESOLVER_PROFILES[scope].rbsl_family
    return ScoreFamily.LINEAR


def _level_score(family: ScoreFamily, level: int, benchmark: float, interval: float) -> Union[float, str]:
    if family == ScoreFamily.LINEAR:
        if level == 1:
            return EXCLUDED_SCORE
        return benchmark + (level - 5) * interval

    if family == ScoreFamily.INVERTED:
        if level == 10:
            return 0.0
        if level > 5:
            return benchmark - (level - 5) * interval
        if level == 5:
            return benchmark
        return benchmark + (5 - level) * interval

    # RBSL family
    if level == 10:
        return benchmark + 5 * interval
    if level > 5:
        return benchmark + (level - 5) * interval
    if level == 5:
        return benchmark
    if level == 1:
        return 0.0
    return benchmark - (5 - level) * interval


def build_score_matrix(
    metric: Metric,
    scope: Scope,
    benchmark: Union[float, str, None],
    interval: Union[float, str, None],
) -> ScoreMatrix:
    """
    Build the ten-level score matrix for one metric in one scope.

    Args:
        metric: Metric being scored; selects the family together with scope.
        scope: INDIVIDUAL or TEAM; only changes the RBSL family.
        benchmark: Level 5 threshold. Strings are parsed, malformed values become 0.
        interval: Distance between adjacent levels. Parsed like benchmark.

    Returns:
        ScoreMatrix with levels ordered from 10 down to 1.

    Example:
        >>> m = build_score_matrix(Metric.TCM, Scope.INDIVIDUAL, 1000, 100)
        >>> m.score_for(6), m.score_for(1)
        (1100.0, '-')
    """
    benchmark_value = coerce_number(benchmark)
    interval_value = coerce_number(interval)
    family = family_for(metric, scope)

    levels = [
        ScoreLevel(level=level, score=_level_score(family, level, benchmark_value, interval_value))
        for level in LEVELS
    ]

    return ScoreMatrix(
        metric=metric,
        scope=scope,
        family=family,
        benchmark=benchmark_value,
        interval=interval_value,
        levels=levels,
    )


def build_score_matrices(
    config: Optional[ScoringConfig],
    scope: Scope,
) -> Dict[Metric, Optional[ScoreMatrix]]:
    """
    Build the four matrices for a scope from the scoring configuration.

    When no configuration row exists every matrix is None, which makes the
    resolver degrade to {1, "-"} for all metrics.

    Args:
        config: Current scoring configuration, or None if absent.
        scope: Which benchmark/interval columns to read.

    Returns:
        Dict mapping each Metric to its ScoreMatrix (or None).
    """
    if config is None:
        logger.warning("No scoring configuration found; all %s scores degrade to level 1", scope.value)
        return {metric: None for metric in Metric}

    matrices: Dict[Metric, Optional[ScoreMatrix]] = {}
    for metric in Metric:
        benchmark, interval = config.benchmark_interval(metric, scope)
        matrices[metric] = build_score_matrix(metric, scope, benchmark, interval)
    return matrices


# =============================================================================
# Level Resolution
# =============================================================================


def _ranked_levels(matrix: ScoreMatrix, descending: bool = True) -> List[ScoreLevel]:
    candidates = [entry for entry in matrix.levels if entry.score != EXCLUDED_SCORE]
    return sorted(candidates, key=lambda entry: coerce_number(entry.score), reverse=descending)


def resolve_level(
    value: float,
    matrix: Optional[ScoreMatrix],
    direction: SortDirection = SortDirection.DESC,
    is_rbsl: bool = False,
    ce_fallback: str = EXCLUDED_SCORE,
) -> ScoreLevel:
    """
    Map a raw metric value to its level in a score matrix.

    Pure function: identical inputs always produce identical output.

    Args:
        value: Raw aggregate. CE and RBSL are fractions (0.3 means 30%).
        matrix: Score matrix for the metric, or None when unconfigured.
        direction: DESC for higher-is-better metrics, ASC selects CE mode.
        is_rbsl: Resolve in RBSL percent mode.
        ce_fallback: Score literal for CE values that clear no threshold.

    Returns:
        ScoreLevel with the matched level and threshold (or a sentinel).
    """
    if matrix is None:
        return ScoreLevel(level=1, score=EXCLUDED_SCORE)

    value = float(value) if value is not None else math.nan

    if is_rbsl:
        if math.isnan(value):
            return ScoreLevel(level=1, score="0")
        percent = value * 100
        for entry in _ranked_levels(matrix):
            if percent >= coerce_number(entry.score):
                return entry.model_copy()
        return ScoreLevel(level=1, score="0")

    if direction == SortDirection.ASC:
        if math.isnan(value):
            return ScoreLevel(level=1, score=ce_fallback)
        if value == 0 or value < CE_ZERO_EPSILON:
            return ScoreLevel(level=10, score="0")
        percent = value * 100
        for entry in _ranked_levels(matrix):
            if percent > coerce_number(entry.score):
                return entry.model_copy()
        return ScoreLevel(level=1, score=ce_fallback)

    if math.isnan(value):
        return ScoreLevel(level=1, score=EXCLUDED_SCORE)
    for entry in _ranked_levels(matrix):
        if value >= coerce_number(entry.score):
            return entry.model_copy()
    return ScoreLevel(level=1, score=EXCLUDED_SCORE)


def resolve_metric(
    metric: Metric,
    value: float,
    matrices: Dict[Metric, Optional[ScoreMatrix]],
    scope: Scope,
) -> ScoreLevel:
    """
    Resolve a metric value using the direction and fallbacks of its scope.

    Args:
        metric: Metric being scored.
        value: Raw aggregate value.
        matrices: Output of build_score_matrices for the same scope.
        scope: Scope of the report variant.

    Returns:
        ScoreLevel
    """
    profile = RESOLVER_PROFILES[scope]
    return resolve_level(
        value,
        matrices.get(metric),
        direction=METRIC_DIRECTIONS[metric],
        is_rbsl=metric == Metric.RBSL,
        ce_fallback=profile.ce_fallback,
    )


__all__ = [
    "EXCLUDED_SCORE",
    "CE_ZERO_EPSILON",
    "ResolverProfile",
    "RESOLVER_PROFILES",
    "METRIC_DIRECTIONS",
    "family_for",
    "build_score_matrix",
    "build_score_matrices",
    "resolve_level",
    "resolve_metric",
]
