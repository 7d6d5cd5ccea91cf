"""
Test Module for the report entry points and the weighted ranking.

End-to-end scenarios over the in-memory record store:
- alias-merged individuals
- team average over qualifying members
- threshold precedence (argument, configuration, settings default)
- multiple months in request order
- missing configuration and store failures
- weighted top ranking

Dependency References:
- teamscore/services/reports.py: build_report and the four wrappers
- teamscore/services/ranking.py: weighted_score, rank_top, get_top_ranking
"""

from unittest.mock import AsyncMock

import pytest

from teamscore.models.enums import Granularity, Metric
from teamscore.models.schemas import ScoringConfig, ScoreWeights
from teamscore.services.ranking import get_top_ranking, rank_top, weighted_score
from teamscore.services.reports import (
    REPORT_BUILDERS,
    get_company_report,
    get_department_report,
    get_individual_report,
    get_team_report,
    resolve_threshold,
)
from teamscore.tests.conftest import (
    MONTH,
    YEAR,
    activity,
    incoming,
    mapping,
    split_records,
)


def _store(make_store, records, **kwargs):
    activity_records, incoming_calls, outgoing_calls = split_records(records)
    return make_store(
        activity_records=activity_records,
        incoming_calls=incoming_calls,
        outgoing_calls=outgoing_calls,
        **kwargs,
    )


# =============================================================================
# TEST CLASS: Threshold Precedence
# =============================================================================

class TestResolveThreshold:

    def test_argument_wins(self, scoring_config):
        assert resolve_threshold(100, scoring_config) == 100

    def test_configuration_is_next(self):
        assert resolve_threshold(None, ScoringConfig(call_mins_thr='600')) == 600

    def test_settings_default_without_configuration(self):
        assert resolve_threshold(None, None) == 750
        assert resolve_threshold(None, ScoringConfig()) == 750


# =============================================================================
# TEST CLASS: Report Scenarios
# =============================================================================

@pytest.mark.scenario
class TestReportScenarios:

    @pytest.mark.asyncio
    async def test_aliases_merge_into_one_individual(self, make_store):
        store = _store(
            make_store,
            [incoming('Jon Doe', 540), incoming('Jon D.', 300)],
            name_mappings=[mapping('Jon Doe', 'Jon D.')],
        )
        result = await get_individual_report(store, [MONTH], YEAR)

        assert result.success is True
        assert len(result.rows) == 1
        assert result.rows[0].entity_key == 'Jon D.'
        assert result.rows[0].tcm.value == 840

    @pytest.mark.asyncio
    async def test_oversized_sale_value_does_not_fail_report(self, make_store):
        store = _store(make_store, [
            activity('Kari Nord', team='Team Nord', value=1e30),
            incoming('Kari Nord', 900),
        ])
        result = await get_individual_report(store, [MONTH], YEAR)

        assert result.success is True
        assert result.rows[0].ts.value == 1e30
        assert result.rows[0].ts.display == '1' + ',000' * 10

    @pytest.mark.asyncio
    async def test_team_average_ignores_non_qualifying_member(self, make_store):
        store = _store(make_store, [
            activity('Kari Nord', team='Team Nord', value=1000),
            activity('Ola Nord', team='Team Nord', value=1000),
            incoming('Kari Nord', 900),
            incoming('Ola Nord', 500),
        ])
        result = await get_team_report(store, [MONTH], YEAR, threshold=750)

        assert result.success is True
        assert result.rows[0].tcm.value == 900

    @pytest.mark.asyncio
    async def test_exact_threshold_is_excluded(self, make_store):
        store = _store(make_store, [
            activity('Kari Nord', team='Team Nord', value=1000),
            incoming('Kari Nord', 750),
        ])
        result = await get_team_report(store, [MONTH], YEAR)
        row = result.rows[0]

        assert row.qualified_count == 0
        assert row.tcm.value == 0
        assert row.ts.value == 0

    @pytest.mark.asyncio
    async def test_configuration_threshold_is_used(self, make_store, scoring_config):
        config = scoring_config.model_copy(update={'call_mins_thr': 400})
        store = _store(make_store, [
            activity('Kari Nord', team='Team Nord', value=1000),
            activity('Ola Nord', team='Team Nord', value=1000),
            incoming('Kari Nord', 900),
            incoming('Ola Nord', 500),
        ], scoring_config=config)
        result = await get_team_report(store, [MONTH], YEAR)

        assert result.rows[0].tcm.value == 700

    @pytest.mark.asyncio
    async def test_department_and_company_reports(self, make_store, team_month_records):
        store = _store(make_store, team_month_records)

        department = await get_department_report(store, [MONTH], YEAR)
        company = await get_company_report(store, [MONTH], YEAR)

        assert [row.entity_key for row in department.rows] == ['Sales Oslo']
        assert department.rows[0].avg_total_score == 6.0
        assert company.rows[0].rbsl.value == pytest.approx(3.5)

    @pytest.mark.asyncio
    async def test_months_are_reported_in_request_order(self, make_store):
        store = _store(make_store, [
            incoming('Kari Nord', 900, month='January'),
            incoming('Kari Nord', 1200, month='February'),
        ])
        result = await get_individual_report(store, ['February', 'January', 'March'], YEAR)

        assert [(row.month, row.tcm.value) for row in result.rows] == [
            ('February', 1200),
            ('January', 900),
        ]
        assert result.metadata.months == ['February', 'January', 'March']
        assert result.metadata.totalRecords == 2
        assert result.metadata.year == YEAR
        assert result.metadata.formatVersion == '1.0'

    @pytest.mark.asyncio
    async def test_other_years_are_ignored(self, make_store):
        store = _store(make_store, [incoming('Kari Nord', 900, year=YEAR - 1)])
        result = await get_individual_report(store, [MONTH], YEAR)

        assert result.success is True
        assert result.rows == []

    @pytest.mark.asyncio
    async def test_report_is_idempotent(self, make_store, team_month_records):
        store = _store(make_store, team_month_records)

        first = await get_team_report(store, [MONTH], YEAR)
        second = await get_team_report(store, [MONTH], YEAR)

        assert [row.model_dump() for row in first.rows] == [row.model_dump() for row in second.rows]

    @pytest.mark.asyncio
    async def test_missing_configuration_degrades_every_score(self, make_store, team_month_records):
        store = _store(make_store, team_month_records, scoring_config=None)

        for granularity, builder in REPORT_BUILDERS.items():
            result = await builder(store, [MONTH], YEAR)
            assert result.success is True, granularity
            for row in result.rows:
                for metric in Metric:
                    score = getattr(row, metric.value).score
                    assert (score.level, score.score) == (1, '-')

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self, make_store):
        store = make_store()
        store.find_incoming_calls = AsyncMock(side_effect=RuntimeError('connection reset'))

        result = await get_team_report(store, [MONTH], YEAR)

        assert result.success is False
        assert 'connection reset' in result.message
        assert result.rows == []


# =============================================================================
# TEST CLASS: Weighted Ranking
# =============================================================================

class TestRanking:

    @pytest.mark.asyncio
    async def test_weighted_score(self, make_store, team_month_records):
        store = _store(make_store, team_month_records)
        rows = (await get_team_report(store, [MONTH], YEAR)).rows
        weights = ScoreWeights(tcm=40, ce=20, ts=30, rbsl=10)

        # Team Nord levels: TCM 4, CE 6, TS 3, RBSL 10
        assert weighted_score(rows[0], weights) == 4.7

    @pytest.mark.asyncio
    async def test_rank_top_orders_and_limits(self, make_store, team_month_records):
        store = _store(make_store, team_month_records)
        rows = (await get_individual_report(store, [MONTH], YEAR)).rows
        weights = ScoreWeights(tcm=100)

        entries = rank_top(rows, weights, limit=2)

        assert [entry.entity_key for entry in entries] == ['Kari Nord', 'Per Sor']
        assert entries[0].weighted_score >= entries[1].weighted_score

    @pytest.mark.asyncio
    async def test_get_top_ranking_uses_configured_weights(self, make_store, team_month_records):
        store = _store(make_store, team_month_records)
        result = await get_top_ranking(store, Granularity.TEAM, [MONTH], YEAR)

        assert result.success is True
        assert result.weights == ScoreWeights(tcm=40, ce=20, ts=30, rbsl=10)
        assert [entry.entity_key for entry in result.entries] == ['Team Nord', 'Team Sor']

    @pytest.mark.asyncio
    async def test_get_top_ranking_without_configuration(self, make_store, team_month_records):
        store = _store(make_store, team_month_records, scoring_config=None)
        result = await get_top_ranking(store, Granularity.INDIVIDUAL, [MONTH], YEAR, limit=5)

        assert result.success is True
        assert all(entry.weighted_score == 0 for entry in result.entries)
