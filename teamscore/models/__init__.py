"""
Package initialization file for scorecard models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import data models from teamscore.models directly.

Usage:
    from teamscore.models import (
        Metric,
        Granularity,
        ActivityRecord,
        ScoringConfig,
        ScoredReportRow,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from teamscore.models.enums import (
    MONTH_NAMES,
    ActivityCategory,
    Granularity,
    Metric,
    RecordKind,
    ScoreFamily,
    Scope,
    SortDirection,
)

# =============================================================================
# Schemas
# =============================================================================

from teamscore.models.schemas import (
    # Raw records
    ActivityRecord,
    IncomingCallRecord,
    OutgoingCallRecord,
    NameAliasMapping,
    # Configuration and matrices
    ScoringConfig,
    ScoreWeights,
    ScoreLevel,
    ScoreMatrix,
    # Reports
    MetricScore,
    MemberSales,
    ScoredReportRow,
    ReportMetadata,
    ReportResult,
    TopRankingEntry,
    TopRankingResult,
    # Ingestion / maintenance
    ValidationError,
    UploadResult,
    OperationResult,
    MonthData,
    MonthsResult,
    RecordListResult,
    # Sales dashboard
    SalesTotal,
    SalesDashboardResult,
    # Helpers
    coerce_number,
)


__all__ = [
    # Enums
    "MONTH_NAMES",
    "ActivityCategory",
    "Granularity",
    "Metric",
    "RecordKind",
    "ScoreFamily",
    "Scope",
    "SortDirection",
    # Raw records
    "ActivityRecord",
    "IncomingCallRecord",
    "OutgoingCallRecord",
    "NameAliasMapping",
    # Configuration and matrices
    "ScoringConfig",
    "ScoreWeights",
    "ScoreLevel",
    "ScoreMatrix",
    # Reports
    "MetricScore",
    "MemberSales",
    "ScoredReportRow",
    "ReportMetadata",
    "ReportResult",
    "TopRankingEntry",
    "TopRankingResult",
    # Ingestion / maintenance
    "ValidationError",
    "UploadResult",
    "OperationResult",
    "MonthData",
    "MonthsResult",
    "RecordListResult",
    # Sales dashboard
    "SalesTotal",
    "SalesDashboardResult",
    "coerce_number",
]
