"""
Aggregation Engine Service

Folds one month of raw records into per-person totals, applies the call-minute
qualification filter and rolls the qualifying people up into team, department
and company averages. Every granularity goes through the same fold and the
same scoring path; only the grouping key and the RBSL formula differ.

Per-person totals (after name canonicalization):
- total_call_minutes = incoming minutes + outgoing regular call minutes
- outgoing_calls     = outgoing call count
- total_sales        = sum of sale values
- liv_sales / skade_sales = sale values per activity category

Derived ratios:
- call_efficiency = outgoing_calls / total_call_minutes (0 without minutes)
- liv_ratio       = liv_sales / total_sales (0 without sales)

Group averages use qualifying members only (total_call_minutes strictly above
the threshold) and are 0 when nobody qualifies. The company row replaces the
averaged liv ratio with sum(liv_sales) / sum(skade_sales) over qualifying people.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from teamscore.models.enums import ActivityCategory, Granularity, Metric, Scope
from teamscore.models.schemas import (
    ActivityRecord,
    IncomingCallRecord,
    MemberSales,
    MetricScore,
    OutgoingCallRecord,
    ScoreMatrix,
    ScoredReportRow,
)
from teamscore.services.formatting import display_metric, format_number
from teamscore.services.identity import NameIdentityResolver
from teamscore.services.score_matrix import resolve_metric

logger = logging.getLogger(__name__)


COMPANY_KEY = "all"


# =============================================================================
# Fold State
# =============================================================================


@dataclass
class IndividualTotals:
    """Per-person sums for one month, keyed by canonical name."""
    name: str
    team: str = ""
    department: str = ""
    incoming_minutes: float = 0.0
    outgoing_minutes: float = 0.0
    outgoing_calls: float = 0.0
    total_sales: float = 0.0
    liv_sales: float = 0.0
    skade_sales: float = 0.0

    @property
    def total_call_minutes(self) -> float:
        return self.incoming_minutes + self.outgoing_minutes

    @property
    def call_efficiency(self) -> float:
        minutes = self.total_call_minutes
        return self.outgoing_calls / minutes if minutes > 0 else 0.0

    @property
    def liv_ratio(self) -> float:
        return self.liv_sales / self.total_sales if self.total_sales > 0 else 0.0


@dataclass
class GroupMembership:
    """People seen in a team or department through their activity records."""
    key: str
    department: str = ""
    member_sales: Dict[str, float] = field(default_factory=dict)


@dataclass
class MonthFold:
    """Everything folded from one month of records."""
    month: str
    year: int
    individuals: Dict[str, IndividualTotals] = field(default_factory=dict)
    # (canonical name, team, department, sale value) per activity record
    affiliations: List[Tuple[str, str, str, float]] = field(default_factory=list)


@dataclass
class GroupAverages:
    """Averaged metric values of one group."""
    tcm: float = 0.0
    ce: float = 0.0
    ts: float = 0.0
    rbsl: float = 0.0
    member_count: int = 0
    qualified_count: int = 0

    def as_dict(self) -> Dict[Metric, float]:
        return {Metric.TCM: self.tcm, Metric.CE: self.ce, Metric.TS: self.ts, Metric.RBSL: self.rbsl}


# =============================================================================
# Fold
# =============================================================================


def fold_month(
    month: str,
    year: int,
    activity_records: Iterable[ActivityRecord],
    incoming_calls: Iterable[IncomingCallRecord],
    outgoing_calls: Iterable[OutgoingCallRecord],
    resolver: NameIdentityResolver,
) -> MonthFold:
    """
    Fold one month of raw records into per-person totals.

    Records with a blank name are skipped. Team and department come from the
    activity records; when a person appears under several, the last record wins.

    Args:
        month: Month name the records were fetched for.
        year: Year the records were fetched for.
        activity_records: Activity log lines of the month.
        incoming_calls: Incoming call rows of the month.
        outgoing_calls: Outgoing call rows of the month.
        resolver: Name identity snapshot used to canonicalize every name.

    Returns:
        MonthFold with individuals in first-seen order.
    """
    fold = MonthFold(month=month, year=year)

    def totals_for(raw_name: str) -> Optional[IndividualTotals]:
        name = resolver.canonicalize(raw_name)
        if not name:
            return None
        if name not in fold.individuals:
            fold.individuals[name] = IndividualTotals(name=name)
        return fold.individuals[name]

    for record in activity_records:
        totals = totals_for(record.person_name)
        if totals is None:
            continue
        if record.team:
            totals.team = record.team
        if record.department:
            totals.department = record.department

        totals.total_sales += record.sale_value
        category = record.activity_category
        if category == ActivityCategory.LIV:
            totals.liv_sales += record.sale_value
        elif category == ActivityCategory.SKADE:
            totals.skade_sales += record.sale_value

        fold.affiliations.append((totals.name, record.team, record.department, record.sale_value))

    for call in incoming_calls:
        totals = totals_for(call.person_name)
        if totals is not None:
            totals.incoming_minutes += call.minutes

    for call in outgoing_calls:
        totals = totals_for(call.person_name)
        if totals is not None:
            totals.outgoing_minutes += call.regular_call_minutes
            totals.outgoing_calls += call.outgoing_count

    return fold


def qualifies(totals: IndividualTotals, threshold: float) -> bool:
    """Strict comparison: exactly ``threshold`` minutes does not qualify."""
    return totals.total_call_minutes > threshold


def collect_groups(fold: MonthFold, granularity: Granularity) -> Dict[str, GroupMembership]:
    """
    Group people by team, department or company.

    Team and department membership comes from activity records with a
    non-empty team/department; a person can belong to several groups. A
    group's department is taken from its last record with a non-empty one. The
    company group holds everyone folded for the month.
    """
    if granularity == Granularity.COMPANY:
        company = GroupMembership(key=COMPANY_KEY)
        for totals in fold.individuals.values():
            company.member_sales[totals.name] = totals.total_sales
        return {COMPANY_KEY: company}

    groups: Dict[str, GroupMembership] = {}
    for name, team, department, sale_value in fold.affiliations:
        key = team if granularity == Granularity.TEAM else department
        if not key:
            continue
        if key not in groups:
            groups[key] = GroupMembership(key=key)
        if department:
            groups[key].department = department
        members = groups[key].member_sales
        members[name] = members.get(name, 0.0) + sale_value
    return groups


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_group(
    members: List[IndividualTotals],
    threshold: float,
    company_ratio: bool = False,
) -> GroupAverages:
    """
    Average metrics over the qualifying members of a group.

    Args:
        members: Per-person totals of everyone in the group.
        threshold: Qualification threshold in call minutes.
        company_ratio: Use sum(liv) / sum(skade) instead of the mean liv ratio.

    Returns:
        GroupAverages; every metric is 0 when no member qualifies.
    """
    qualified = [m for m in members if qualifies(m, threshold)]
    averages = GroupAverages(member_count=len(members), qualified_count=len(qualified))
    if not qualified:
        return averages

    averages.tcm = _mean([m.total_call_minutes for m in qualified])
    averages.ce = _mean([m.call_efficiency for m in qualified])
    averages.ts = _mean([m.total_sales for m in qualified])

    if company_ratio:
        liv = sum(m.liv_sales for m in qualified)
        skade = sum(m.skade_sales for m in qualified)
        averages.rbsl = liv / skade if skade > 0 else 0.0
    else:
        averages.rbsl = _mean([m.liv_ratio for m in qualified])
    return averages


# =============================================================================
# Scoring
# =============================================================================


def score_metrics(
    values: Dict[Metric, float],
    matrices: Dict[Metric, Optional[ScoreMatrix]],
    scope: Scope,
) -> Dict[str, MetricScore]:
    """Resolve and format the four metric values of one row."""
    return {
        metric.value: MetricScore(
            value=values[metric],
            display=display_metric(metric, values[metric]),
            score=resolve_metric(metric, values[metric], matrices, scope),
        )
        for metric in Metric
    }


def average_level(scores: Dict[str, MetricScore]) -> float:
    """Unweighted mean of the four levels."""
    return sum(score.score.level for score in scores.values()) / len(scores)


def score_individuals(
    fold: MonthFold,
    matrices: Dict[Metric, Optional[ScoreMatrix]],
    resolver: NameIdentityResolver,
) -> List[ScoredReportRow]:
    """
    Score every person of the month, without any qualification filter.

    Rows are ordered by canonical name.
    """
    rows = []
    for name in sorted(fold.individuals):
        totals = fold.individuals[name]
        values = {
            Metric.TCM: totals.total_call_minutes,
            Metric.CE: totals.call_efficiency,
            Metric.TS: totals.total_sales,
            Metric.RBSL: totals.liv_ratio,
        }
        rows.append(
            ScoredReportRow(
                granularity=Granularity.INDIVIDUAL,
                entity_key=name,
                month=fold.month,
                year=fold.year,
                team=totals.team or None,
                department=totals.department or None,
                alternate_name=resolver.alternate_name_for(name),
                **score_metrics(values, matrices, Scope.INDIVIDUAL),
            )
        )
    return rows


def score_groups(
    fold: MonthFold,
    granularity: Granularity,
    matrices: Dict[Metric, Optional[ScoreMatrix]],
    threshold: float,
) -> List[ScoredReportRow]:
    """
    Score every team, department or the company for the month.

    Args:
        fold: Folded month.
        granularity: TEAM, DEPARTMENT or COMPANY.
        matrices: Team-scope score matrices.
        threshold: Qualification threshold in call minutes.

    Returns:
        One row per group, ordered by group key.
    """
    if granularity == Granularity.INDIVIDUAL:
        raise ValueError("score_groups does not handle individual rows")

    is_company = granularity == Granularity.COMPANY
    groups = collect_groups(fold, granularity)
    rows = []

    for key in sorted(groups):
        group = groups[key]
        members = [fold.individuals[name] for name in group.member_sales]
        averages = average_group(members, threshold, company_ratio=is_company)
        scores = score_metrics(averages.as_dict(), matrices, granularity.scope)

        member_rows = []
        if not is_company:
            member_rows = sorted(
                (
                    MemberSales(
                        name=name,
                        total_sales=sales,
                        display_total_sales=format_number(sales),
                        qualified=qualifies(fold.individuals[name], threshold),
                    )
                    for name, sales in group.member_sales.items()
                ),
                key=lambda member: member.total_sales,
                reverse=True,
            )

        team, department = None, None
        if granularity == Granularity.TEAM:
            team, department = key, group.department or None
        elif granularity == Granularity.DEPARTMENT:
            department = key

        rows.append(
            ScoredReportRow(
                granularity=granularity,
                entity_key=key,
                month=fold.month,
                year=fold.year,
                team=team,
                department=department,
                avg_total_score=average_level(scores) if granularity != Granularity.TEAM else None,
                members=member_rows,
                member_count=averages.member_count,
                qualified_count=averages.qualified_count,
                group_total_sales=sum(group.member_sales.values()),
                **scores,
            )
        )

    logger.debug(
        "Scored %d %s rows for %s %s (threshold=%s)",
        len(rows),
        granularity.value,
        fold.month,
        fold.year,
        threshold,
    )
    return rows


__all__ = [
    "COMPANY_KEY",
    "IndividualTotals",
    "GroupMembership",
    "MonthFold",
    "GroupAverages",
    "fold_month",
    "qualifies",
    "collect_groups",
    "average_group",
    "score_metrics",
    "average_level",
    "score_individuals",
    "score_groups",
]
