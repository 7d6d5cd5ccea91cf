"""
Test Module for the Aggregation Engine.

Validates the per-month fold and the group roll-ups:
- per-person totals after name canonicalization
- qualification filter (strictly above the threshold)
- averages over qualifying members only, 0 when nobody qualifies
- company RBSL as sum(liv) / sum(skade)
- row layout per granularity (members, avg_total_score, ordering)

Dependency References:
- teamscore/services/aggregation.py: fold, averaging and scoring
- teamscore/tests/conftest.py: record builders and team_month_records
"""

import pytest

from teamscore.models.enums import Granularity, Metric, Scope
from teamscore.services.aggregation import (
    COMPANY_KEY,
    IndividualTotals,
    average_group,
    average_level,
    collect_groups,
    fold_month,
    qualifies,
    score_groups,
    score_individuals,
)
from teamscore.services.identity import NameIdentityResolver
from teamscore.services.score_matrix import build_score_matrices
from teamscore.tests.conftest import (
    MONTH,
    YEAR,
    activity,
    incoming,
    mapping,
    outgoing,
    split_records,
)


def _fold(records, mappings=()):
    activity_records, incoming_calls, outgoing_calls = split_records(records)
    resolver = NameIdentityResolver.from_records(mappings, activity_records)
    return fold_month(MONTH, YEAR, activity_records, incoming_calls, outgoing_calls, resolver), resolver


# =============================================================================
# TEST CLASS: Fold
# =============================================================================

class TestFoldMonth:

    def test_totals_per_person(self, team_month_records):
        fold, _ = _fold(team_month_records)
        kari = fold.individuals['Kari Nord']

        assert kari.total_call_minutes == 900
        assert kari.outgoing_calls == 300
        assert kari.total_sales == 40000
        assert kari.liv_sales == 30000
        assert kari.skade_sales == 10000
        assert kari.call_efficiency == pytest.approx(1 / 3)
        assert kari.liv_ratio == pytest.approx(0.75)

    def test_outgoing_regular_minutes_count_towards_tcm(self, team_month_records):
        fold, _ = _fold(team_month_records)
        assert fold.individuals['Per Sor'].total_call_minutes == 800

    def test_aliases_are_merged_into_one_person(self):
        fold, _ = _fold(
            [incoming('Jon Doe', 540), incoming('Jon D.', 300)],
            [mapping('Jon Doe', 'Jon D.')],
        )

        assert list(fold.individuals) == ['Jon D.']
        assert fold.individuals['Jon D.'].total_call_minutes == 840

    def test_last_team_wins(self):
        fold, _ = _fold([
            activity('Kari Nord', team='Team Nord', value=100),
            activity('Kari Nord', team='Team Vest', value=100),
            activity('Kari Nord', team='', value=100),
        ])
        assert fold.individuals['Kari Nord'].team == 'Team Vest'

    def test_blank_names_are_skipped(self):
        fold, _ = _fold([incoming('   ', 100), outgoing('', calls=5)])
        assert fold.individuals == {}

    def test_other_activities_count_as_sales_only(self):
        fold, _ = _fold([activity('Kari Nord', activity_label='3. pensjon', value=500)])
        kari = fold.individuals['Kari Nord']

        assert kari.total_sales == 500
        assert kari.liv_sales == 0
        assert kari.skade_sales == 0

    def test_ratios_are_zero_without_denominator(self):
        totals = IndividualTotals(name='Nobody')
        assert totals.call_efficiency == 0
        assert totals.liv_ratio == 0


# =============================================================================
# TEST CLASS: Qualification and Averages
# =============================================================================

class TestQualification:

    @pytest.mark.parametrize('minutes,expected', [
        (751, True),
        (750, False),
        (749.9, False),
        (0, False),
    ])
    def test_threshold_is_strict(self, minutes, expected):
        assert qualifies(IndividualTotals(name='x', incoming_minutes=minutes), 750) is expected

    def test_average_uses_qualifying_members_only(self):
        members = [
            IndividualTotals(name='a', incoming_minutes=900, total_sales=1000),
            IndividualTotals(name='b', incoming_minutes=500, total_sales=9000),
        ]
        averages = average_group(members, 750)

        assert averages.tcm == 900
        assert averages.ts == 1000
        assert averages.member_count == 2
        assert averages.qualified_count == 1

    def test_no_qualifying_members_gives_zero(self):
        members = [IndividualTotals(name='a', incoming_minutes=750, total_sales=1000)]
        averages = average_group(members, 750)

        assert averages.as_dict() == {Metric.TCM: 0, Metric.CE: 0, Metric.TS: 0, Metric.RBSL: 0}
        assert averages.qualified_count == 0

    def test_company_ratio_is_liv_over_skade(self):
        members = [
            IndividualTotals(name='a', incoming_minutes=900, liv_sales=30000, skade_sales=10000, total_sales=40000),
            IndividualTotals(name='b', incoming_minutes=800, liv_sales=5000, total_sales=5000),
        ]

        assert average_group(members, 750, company_ratio=True).rbsl == pytest.approx(3.5)
        assert average_group(members, 750).rbsl == pytest.approx(0.875)

    def test_company_ratio_without_skade_is_zero(self):
        members = [IndividualTotals(name='a', incoming_minutes=900, liv_sales=100, total_sales=100)]
        assert average_group(members, 750, company_ratio=True).rbsl == 0


# =============================================================================
# TEST CLASS: Grouping
# =============================================================================

class TestCollectGroups:

    def test_team_membership_from_activity(self, team_month_records):
        fold, _ = _fold(team_month_records)
        groups = collect_groups(fold, Granularity.TEAM)

        assert set(groups) == {'Team Nord', 'Team Sor'}
        assert groups['Team Nord'].member_sales == {'Kari Nord': 40000, 'Ola Nord': 20000}
        assert groups['Team Nord'].department == 'Sales Oslo'

    def test_team_department_uses_last_record(self):
        fold, _ = _fold([
            activity('Kari Nord', team='Team Nord', department='Sales Oslo', value=10),
            activity('Ola Nord', team='Team Nord', department='Sales Bergen', value=10),
            activity('Ola Nord', team='Team Nord', department='', value=10),
        ])
        groups = collect_groups(fold, Granularity.TEAM)

        assert groups['Team Nord'].department == 'Sales Bergen'
        assert fold.individuals['Ola Nord'].department == 'Sales Bergen'

    def test_company_holds_everyone(self):
        fold, _ = _fold([incoming('Call Only', 1000), activity('Kari Nord', value=10)])
        groups = collect_groups(fold, Granularity.COMPANY)

        assert list(groups) == [COMPANY_KEY]
        assert set(groups[COMPANY_KEY].member_sales) == {'Call Only', 'Kari Nord'}


# =============================================================================
# TEST CLASS: Scored Rows
# =============================================================================

class TestScoreIndividuals:

    def test_rows_sorted_by_name_without_filter(self, team_month_records, scoring_config):
        fold, resolver = _fold(team_month_records)
        matrices = build_score_matrices(scoring_config, Scope.INDIVIDUAL)
        rows = score_individuals(fold, matrices, resolver)

        assert [row.entity_key for row in rows] == ['Kari Nord', 'Ola Nord', 'Per Sor']
        assert all(row.granularity == Granularity.INDIVIDUAL for row in rows)

    def test_individual_levels(self, team_month_records, scoring_config):
        fold, resolver = _fold(team_month_records)
        matrices = build_score_matrices(scoring_config, Scope.INDIVIDUAL)
        kari = score_individuals(fold, matrices, resolver)[0]

        assert kari.tcm.value == 900
        assert kari.tcm.display == '900'
        assert kari.level_for(Metric.TCM) == 4
        assert kari.ce.display == '33.3%'
        assert kari.level_for(Metric.CE) == 6
        assert kari.level_for(Metric.TS) == 3
        assert kari.rbsl.display == '75.0%'
        assert kari.level_for(Metric.RBSL) == 10
        assert kari.team == 'Team Nord'

    def test_individual_without_liv_gets_rbsl_fallback(self, team_month_records, scoring_config):
        fold, resolver = _fold(team_month_records)
        matrices = build_score_matrices(scoring_config, Scope.INDIVIDUAL)
        ola = score_individuals(fold, matrices, resolver)[1]

        assert ola.rbsl.display == '-'
        assert ola.rbsl.score.level == 1
        assert ola.rbsl.score.score == '0'
        assert ola.ce.score.level == 10

    def test_alternate_name_is_reported(self, scoring_config):
        fold, resolver = _fold(
            [incoming('Jon Doe', 540), incoming('Jon D.', 300)],
            [mapping('Jon Doe', 'Jon D.')],
        )
        rows = score_individuals(fold, build_score_matrices(scoring_config, Scope.INDIVIDUAL), resolver)

        assert len(rows) == 1
        assert rows[0].entity_key == 'Jon D.'
        assert rows[0].alternate_name == 'Jon Doe'
        assert rows[0].tcm.value == 840


class TestScoreGroups:

    @pytest.fixture
    def team_matrices(self, scoring_config):
        return build_score_matrices(scoring_config, Scope.TEAM)

    def test_team_rows(self, team_month_records, team_matrices):
        fold, _ = _fold(team_month_records)
        rows = score_groups(fold, Granularity.TEAM, team_matrices, 750)
        nord, sor = rows

        assert [row.entity_key for row in rows] == ['Team Nord', 'Team Sor']
        assert nord.tcm.value == 900
        assert nord.level_for(Metric.TCM) == 4
        assert nord.level_for(Metric.TS) == 3
        assert nord.level_for(Metric.RBSL) == 10
        assert nord.avg_total_score is None
        assert nord.group_total_sales == 60000
        assert (nord.member_count, nord.qualified_count) == (2, 1)
        assert sor.ts.score.score == '-'

    def test_team_members_sorted_by_sales(self, team_month_records, team_matrices):
        fold, _ = _fold(team_month_records)
        nord = score_groups(fold, Granularity.TEAM, team_matrices, 750)[0]

        assert [m.name for m in nord.members] == ['Kari Nord', 'Ola Nord']
        assert [m.qualified for m in nord.members] == [True, False]
        assert nord.members[0].display_total_sales == '40,000'

    def test_department_average_level(self, team_month_records, team_matrices):
        fold, _ = _fold(team_month_records)
        rows = score_groups(fold, Granularity.DEPARTMENT, team_matrices, 750)

        assert len(rows) == 1
        department = rows[0]
        assert department.department == 'Sales Oslo'
        assert department.tcm.value == 850
        assert department.rbsl.value == pytest.approx(0.875)
        assert department.avg_total_score == average_level({
            'tcm': department.tcm, 'ce': department.ce, 'ts': department.ts, 'rbsl': department.rbsl,
        })
        assert department.avg_total_score == 6.0

    def test_company_row(self, team_month_records, team_matrices):
        fold, _ = _fold(team_month_records)
        rows = score_groups(fold, Granularity.COMPANY, team_matrices, 750)

        assert len(rows) == 1
        company = rows[0]
        assert company.entity_key == COMPANY_KEY
        assert company.rbsl.value == pytest.approx(3.5)
        assert company.rbsl.display == '350.0%'
        assert company.members == []
        assert company.group_total_sales == 65000
        assert (company.member_count, company.qualified_count) == (3, 2)

    def test_lower_threshold_admits_more_members(self, team_month_records, team_matrices):
        fold, _ = _fold(team_month_records)
        nord = score_groups(fold, Granularity.TEAM, team_matrices, 400)[0]

        assert nord.tcm.value == 700
        assert nord.level_for(Metric.TCM) == 2

    def test_team_with_nobody_qualifying_scores_zero(self, team_matrices):
        fold, _ = _fold([activity('Exactly', value=1000), incoming('Exactly', 750)])
        row = score_groups(fold, Granularity.TEAM, team_matrices, 750)[0]

        assert row.tcm.value == 0
        assert row.tcm.display == '-'
        assert row.tcm.score.level == 1
        assert row.qualified_count == 0

    def test_individual_granularity_is_rejected(self, team_matrices):
        fold, _ = _fold([])
        with pytest.raises(ValueError):
            score_groups(fold, Granularity.INDIVIDUAL, team_matrices, 750)
