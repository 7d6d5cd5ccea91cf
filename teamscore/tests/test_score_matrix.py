"""
Test Module for the Score Matrix Service.

Covers matrix construction for the three families and the level resolver in
its three modes:
- linear (TCM/TS, individual RBSL): level 5 = benchmark, level 1 excluded
- inverted (CE): level 10 fixed at 0, lower raw value scores higher
- rbsl (team RBSL): level 1 fixed at 0
- CE mode uses a strict > comparison and a per-scope fallback literal
- a missing scoring configuration degrades every metric to {1, "-"}

Dependency References:
- teamscore/services/score_matrix.py: builder and resolver
- teamscore/models/schemas.py: ScoreLevel, ScoreMatrix, ScoringConfig
"""

import pytest

from teamscore.models.enums import Metric, ScoreFamily, Scope, SortDirection
from teamscore.models.schemas import ScoringConfig
from teamscore.services.score_matrix import (
    CE_ZERO_EPSILON,
    EXCLUDED_SCORE,
    RESOLVER_PROFILES,
    build_score_matrices,
    build_score_matrix,
    family_for,
    resolve_level,
    resolve_metric,
)


# =============================================================================
# TEST CLASS: Matrix Families
# =============================================================================

class TestMatrixFamilies:
    """Which formula family each metric uses per scope."""

    @pytest.mark.parametrize('metric', [Metric.TCM, Metric.TS])
    @pytest.mark.parametrize('scope', [Scope.INDIVIDUAL, Scope.TEAM])
    def test_counts_are_linear_in_every_scope(self, metric, scope):
        assert family_for(metric, scope) == ScoreFamily.LINEAR

    @pytest.mark.parametrize('scope', [Scope.INDIVIDUAL, Scope.TEAM])
    def test_ce_is_inverted(self, scope):
        assert family_for(Metric.CE, scope) == ScoreFamily.INVERTED

    def test_rbsl_family_differs_between_scopes(self):
        assert family_for(Metric.RBSL, Scope.INDIVIDUAL) == ScoreFamily.LINEAR
        assert family_for(Metric.RBSL, Scope.TEAM) == ScoreFamily.RBSL


# =============================================================================
# TEST CLASS: Matrix Construction
# =============================================================================

class TestBuildScoreMatrix:
    """Threshold values produced for each family."""

    def test_tcm_linear_thresholds(self):
        matrix = build_score_matrix(Metric.TCM, Scope.INDIVIDUAL, 1000, 100)

        assert matrix.score_for(5) == 1000
        assert matrix.score_for(6) == 1100
        assert matrix.score_for(9) == 1400
        assert matrix.score_for(10) == 1500
        assert matrix.score_for(2) == 700
        assert matrix.score_for(1) == EXCLUDED_SCORE

    def test_linear_scores_strictly_increase_with_level(self):
        matrix = build_score_matrix(Metric.TS, Scope.TEAM, 50000, 5000)
        scores = [matrix.score_for(level) for level in range(2, 11)]

        assert scores == sorted(scores)
        assert len(set(scores)) == len(scores)

    def test_ce_inverted_thresholds(self):
        matrix = build_score_matrix(Metric.CE, Scope.INDIVIDUAL, 35, 3)

        assert matrix.score_for(10) == 0
        assert matrix.score_for(9) == 23
        assert matrix.score_for(6) == 32
        assert matrix.score_for(5) == 35
        assert matrix.score_for(4) == 38
        assert matrix.score_for(1) == 47

    def test_ce_scores_decrease_from_level_nine_to_one(self):
        matrix = build_score_matrix(Metric.CE, Scope.TEAM, 35, 3)
        scores = [matrix.score_for(level) for level in range(9, 0, -1)]

        assert scores == sorted(scores)
        assert scores[0] < scores[-1]

    def test_team_rbsl_family_thresholds(self):
        matrix = build_score_matrix(Metric.RBSL, Scope.TEAM, 30, 5)

        assert matrix.family == ScoreFamily.RBSL
        assert matrix.score_for(10) == 55
        assert matrix.score_for(7) == 40
        assert matrix.score_for(5) == 30
        assert matrix.score_for(2) == 15
        assert matrix.score_for(1) == 0

    @pytest.mark.parametrize('metric', list(Metric))
    @pytest.mark.parametrize('scope', list(Scope))
    def test_level_five_equals_benchmark(self, metric, scope):
        matrix = build_score_matrix(metric, scope, 42.5, 2.5)
        assert matrix.score_for(5) == 42.5

    def test_levels_are_ordered_ten_to_one(self):
        matrix = build_score_matrix(Metric.TCM, Scope.TEAM, 1000, 100)
        assert [entry.level for entry in matrix.levels] == list(range(10, 0, -1))

    def test_string_inputs_are_parsed(self):
        matrix = build_score_matrix(Metric.CE, Scope.TEAM, "35", "3%")
        assert matrix.benchmark == 35
        assert matrix.interval == 3

    def test_malformed_inputs_become_zero(self):
        matrix = build_score_matrix(Metric.TCM, Scope.TEAM, "n/a", None)
        assert matrix.benchmark == 0
        assert matrix.interval == 0
        assert matrix.score_for(5) == 0

    def test_unknown_level_raises_key_error(self):
        matrix = build_score_matrix(Metric.TCM, Scope.TEAM, 1000, 100)
        with pytest.raises(KeyError):
            matrix.score_for(11)


class TestBuildScoreMatrices:
    """Matrices built from the scoring configuration."""

    def test_reads_scope_columns(self, scoring_config):
        matrices = build_score_matrices(scoring_config, Scope.TEAM)

        assert set(matrices) == set(Metric)
        assert matrices[Metric.TCM].benchmark == 1000
        assert matrices[Metric.CE].interval == 3
        assert matrices[Metric.RBSL].family == ScoreFamily.RBSL

    def test_individual_scope_reads_individual_columns(self):
        config = ScoringConfig(
            individual_score_ts_benchmark=1234,
            team_score_ts_benchmark=9999,
        )
        matrices = build_score_matrices(config, Scope.INDIVIDUAL)
        assert matrices[Metric.TS].benchmark == 1234

    def test_missing_config_yields_no_matrices(self):
        matrices = build_score_matrices(None, Scope.INDIVIDUAL)
        assert all(matrix is None for matrix in matrices.values())


# =============================================================================
# TEST CLASS: Level Resolution
# =============================================================================

class TestResolveDefaultMode:
    """TCM/TS: highest threshold the value reaches (>=)."""

    @pytest.fixture
    def tcm_matrix(self):
        return build_score_matrix(Metric.TCM, Scope.INDIVIDUAL, 1000, 100)

    def test_value_on_threshold_reaches_level(self, tcm_matrix):
        result = resolve_level(1000, tcm_matrix)
        assert result.level == 5
        assert result.score == 1000

    def test_value_between_thresholds_takes_lower_level(self, tcm_matrix):
        assert resolve_level(1099, tcm_matrix).level == 5
        assert resolve_level(1100, tcm_matrix).level == 6

    def test_value_above_top_threshold_is_level_ten(self, tcm_matrix):
        assert resolve_level(10000, tcm_matrix).level == 10

    def test_value_below_level_two_falls_back(self, tcm_matrix):
        result = resolve_level(650, tcm_matrix)
        assert result.level == 1
        assert result.score == EXCLUDED_SCORE

    def test_resolution_is_idempotent(self, tcm_matrix):
        first = resolve_level(1234, tcm_matrix)
        second = resolve_level(1234, tcm_matrix)
        assert first == second


class TestResolveCeMode:
    """CE: near-zero is best, otherwise strict > against percent thresholds."""

    @pytest.fixture
    def ce_matrix(self):
        return build_score_matrix(Metric.CE, Scope.INDIVIDUAL, 35, 3)

    @pytest.mark.parametrize('value', [0, 0.0, CE_ZERO_EPSILON / 2])
    def test_near_zero_is_level_ten(self, ce_matrix, value):
        result = resolve_level(value, ce_matrix, direction=SortDirection.ASC)
        assert result.level == 10
        assert result.score == "0"

    def test_comparison_is_strict(self):
        matrix = build_score_matrix(Metric.CE, Scope.INDIVIDUAL, 50, 10)
        # 50% equals the level 5 threshold and therefore does not clear it
        result = resolve_level(0.5, matrix, direction=SortDirection.ASC)
        assert result.level == 6
        assert result.score == 40

    def test_value_above_threshold_matches_it(self, ce_matrix):
        result = resolve_level(0.36, ce_matrix, direction=SortDirection.ASC)
        assert result.level == 5

    def test_value_above_every_threshold_matches_level_one(self, ce_matrix):
        result = resolve_level(0.5, ce_matrix, direction=SortDirection.ASC)
        assert result.level == 1
        assert result.score == 47

    def test_fallback_literal_per_scope(self):
        matrix = build_score_matrix(Metric.CE, Scope.INDIVIDUAL, 35, 3)
        individual = resolve_metric(Metric.CE, float("nan"), {Metric.CE: matrix}, Scope.INDIVIDUAL)
        team = resolve_metric(Metric.CE, float("nan"), {Metric.CE: matrix}, Scope.TEAM)

        assert (individual.level, individual.score) == (1, "47")
        assert (team.level, team.score) == (1, EXCLUDED_SCORE)

    def test_fallback_is_returned_when_nothing_matches(self):
        matrix = build_score_matrix(Metric.CE, Scope.TEAM, 35, 3)
        result = resolve_level(
            float('nan'), matrix, direction=SortDirection.ASC, ce_fallback="47"
        )
        assert result.level == 1
        assert result.score == "47"


class TestResolveRbslMode:
    """RBSL: percent comparison with >=, fallback {1, "0"}."""

    def test_team_ratio_resolves_in_percent(self):
        matrix = build_score_matrix(Metric.RBSL, Scope.TEAM, 30, 5)

        assert resolve_level(0.30, matrix, is_rbsl=True).level == 5
        assert resolve_level(0.56, matrix, is_rbsl=True).level == 10
        assert resolve_level(0.0, matrix, is_rbsl=True).level == 1

    def test_individual_ratio_below_every_threshold_falls_back_to_zero(self):
        matrix = build_score_matrix(Metric.RBSL, Scope.INDIVIDUAL, 30, 5)
        result = resolve_metric(Metric.RBSL, 0.1, {Metric.RBSL: matrix}, Scope.INDIVIDUAL)

        assert result.level == 1
        assert result.score == "0"


class TestResolveWithoutConfiguration:
    """Absent configuration always yields {1, "-"}."""

    @pytest.mark.parametrize('metric', list(Metric))
    @pytest.mark.parametrize('value', [0, 0.25, 1500])
    def test_every_metric_falls_back(self, metric, value):
        matrices = build_score_matrices(None, Scope.TEAM)
        result = resolve_metric(metric, value, matrices, Scope.TEAM)

        assert result.level == 1
        assert result.score == EXCLUDED_SCORE
