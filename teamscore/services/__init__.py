"""
Scorecard Services Module

Business logic of the scorecard. Services are stateless: the record store is
passed in by the caller, so every service runs unchanged against PostgreSQL
or the in-memory store used in tests.

Services:
- score_matrix: ten-level threshold matrices and the level resolver
- identity: name normalization and alias unification
- aggregation: per-month fold, qualification filter, group averages, scoring
- formatting: display strings for metric values
- reports: individual / team / department / company report entry points
- ranking: weighted top-N ranking over scored rows
- dashboard: top teams, individuals and departments by summed sales
- ingestion: uploads, single entry, month maintenance, alias maintenance, config
"""

# =============================================================================
# Scoring Core
# =============================================================================

from teamscore.services.score_matrix import (
    build_score_matrix,
    build_score_matrices,
    resolve_level,
    resolve_metric,
)
from teamscore.services.identity import NameIdentityResolver, normalize_name
from teamscore.services.aggregation import (
    IndividualTotals,
    fold_month,
    qualifies,
    average_group,
    score_individuals,
    score_groups,
)
from teamscore.services.formatting import (
    format_number,
    format_decimal,
    format_percentage,
    format_ratio,
    abbreviate_month,
    display_metric,
)

# =============================================================================
# Report and Ranking Entry Points
# =============================================================================

from teamscore.services.reports import (
    build_report,
    get_individual_report,
    get_team_report,
    get_department_report,
    get_company_report,
)
from teamscore.services.ranking import rank_top, get_top_ranking
from teamscore.services.dashboard import top_sales, get_sales_dashboard

# =============================================================================
# Ingestion and Maintenance
# =============================================================================

from teamscore.services.ingestion import (
    upload_records,
    upload_activity_logs,
    upload_incoming_calls,
    upload_outgoing_calls,
    add_activity_log,
    list_records,
    list_alternative_names,
    delete_record,
    get_months_with_data,
    delete_month,
    set_alternative_names,
    rename_outgoing_calls,
    get_scoring_config,
    update_scoring_config,
    get_score_weights,
)


__all__ = [
    # Scoring core
    "build_score_matrix",
    "build_score_matrices",
    "resolve_level",
    "resolve_metric",
    "NameIdentityResolver",
    "normalize_name",
    "IndividualTotals",
    "fold_month",
    "qualifies",
    "average_group",
    "score_individuals",
    "score_groups",
    "format_number",
    "format_decimal",
    "format_percentage",
    "format_ratio",
    "abbreviate_month",
    "display_metric",
    # Reports and ranking
    "build_report",
    "get_individual_report",
    "get_team_report",
    "get_department_report",
    "get_company_report",
    "rank_top",
    "get_top_ranking",
    "top_sales",
    "get_sales_dashboard",
    # Ingestion and maintenance
    "upload_records",
    "upload_activity_logs",
    "upload_incoming_calls",
    "upload_outgoing_calls",
    "add_activity_log",
    "list_records",
    "list_alternative_names",
    "delete_record",
    "get_months_with_data",
    "delete_month",
    "set_alternative_names",
    "rename_outgoing_calls",
    "get_scoring_config",
    "update_scoring_config",
    "get_score_weights",
]
