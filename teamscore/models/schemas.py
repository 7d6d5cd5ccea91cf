"""
Pydantic request/response models for the scorecard backend.

This module provides type-safe data validation and serialization for the raw
record tables, the single scoring configuration row, derived score matrices and
the scored report payloads returned to the dashboard.

Raw records accept both the Python field names and the column names used by the
upload spreadsheets (``name``/``navn``, ``verdi``, ``min``, ``monthName`` ...).
Numeric columns tolerate values stored as strings: see ``coerce_number``.

All models use Pydantic v2 syntax.
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from teamscore.models.enums import (
    ActivityCategory,
    Granularity,
    Metric,
    ScoreFamily,
    Scope,
)


# Leading numeric prefix, mirroring how spreadsheet exports were parsed ("35%" -> 35)
_NUMERIC_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_number(value: Any) -> float:
    """
    Coerce a stored value to a float, falling back to 0 instead of raising.

    Strings are parsed by their leading numeric prefix, so "35", "35.5%" and
    " 12 min" all parse; anything without such a prefix becomes 0. None, NaN
    and infinities also become 0.

    Args:
        value: Raw value from the store or an upload row.

    Returns:
        float: The parsed number, or 0.0 when parsing fails.

    Example:
        >>> coerce_number("35%")
        35.0
        >>> coerce_number("abc")
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMERIC_PREFIX.match(str(value).replace(",", ""))
        if not match:
            return 0.0
        number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _coerce_year(value: Any) -> int:
    return int(coerce_number(value))


def _normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# =============================================================================
# Raw Record Models
# =============================================================================


class ActivityRecord(BaseModel):
    """
    One activity log line: a sale registered for a person in a month.

    ``activity`` keeps the raw label ("2. liv"); ``activity_category`` maps it
    onto liv / skade / other for RBSL computation.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Jon Doe",
                "team": "Team Nord",
                "department": "Sales Oslo",
                "activity": "2. liv",
                "verdi": 12000,
                "year": 2024,
                "monthName": "January",
            }
        }
    )

    id: Optional[str] = Field(default=None, description="Store identifier")
    person_name: str = Field(
        default="",
        validation_alias=AliasChoices("person_name", "name"),
        description="Person name as entered",
    )
    team: str = Field(default="", description="Team name")
    department: str = Field(default="", description="Department name")
    activity: str = Field(default="", description="Raw activity label")
    sale_value: float = Field(
        default=0.0,
        validation_alias=AliasChoices("sale_value", "verdi"),
        description="Sale value (verdi)",
    )
    year: int = Field(default=0, description="Calendar year")
    month_name: str = Field(
        default="",
        validation_alias=AliasChoices("month_name", "monthName"),
        description="English month name",
    )
    alternative_names: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("alternative_names", "alternativeNames"),
        description="Free-text alias for the person",
    )

    @field_validator("person_name", "team", "department", "activity", "month_name", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        return _normalize_text(value)

    @field_validator("sale_value", mode="before")
    @classmethod
    def parse_number(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("year", mode="before")
    @classmethod
    def parse_year(cls, value: Any) -> int:
        return _coerce_year(value)

    @property
    def activity_category(self) -> ActivityCategory:
        """Insurance category derived from the raw activity label."""
        return ActivityCategory.from_label(self.activity)


class IncomingCallRecord(BaseModel):
    """Incoming call minutes for a person in a month."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Store identifier")
    person_name: str = Field(
        default="",
        validation_alias=AliasChoices("person_name", "navn", "name"),
        description="Person name as exported by the phone system",
    )
    minutes: float = Field(
        default=0.0,
        validation_alias=AliasChoices("minutes", "min"),
        description="Incoming call minutes",
    )
    year: int = Field(default=0, description="Calendar year")
    month_name: str = Field(
        default="",
        validation_alias=AliasChoices("month_name", "monthName"),
        description="English month name",
    )

    @field_validator("person_name", "month_name", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        return _normalize_text(value)

    @field_validator("minutes", mode="before")
    @classmethod
    def parse_number(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("year", mode="before")
    @classmethod
    def parse_year(cls, value: Any) -> int:
        return _coerce_year(value)


class OutgoingCallRecord(BaseModel):
    """
    Outgoing call statistics for a person in a month.

    Only ``outgoing_count`` and ``regular_call_minutes`` feed scoring; the
    company-line counterparts are stored for reference.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Store identifier")
    person_name: str = Field(
        default="",
        validation_alias=AliasChoices("person_name", "navn", "name"),
        description="Person name as exported by the phone system",
    )
    outgoing_count: float = Field(
        default=0.0,
        validation_alias=AliasChoices("outgoing_count", "outgoing"),
        description="Number of outgoing calls",
    )
    regular_calls: float = Field(
        default=0.0,
        validation_alias=AliasChoices("regular_calls", "regular"),
        description="Outgoing calls on the regular line",
    )
    company_calls: float = Field(
        default=0.0,
        validation_alias=AliasChoices("company_calls", "company"),
        description="Outgoing calls on the company line",
    )
    regular_call_minutes: float = Field(
        default=0.0,
        validation_alias=AliasChoices("regular_call_minutes", "regular_call_time_min"),
        description="Minutes on regular outgoing calls",
    )
    company_call_minutes: float = Field(
        default=0.0,
        validation_alias=AliasChoices("company_call_minutes", "company_call_time_min"),
        description="Minutes on company-line outgoing calls",
    )
    year: int = Field(default=0, description="Calendar year")
    month_name: str = Field(
        default="",
        validation_alias=AliasChoices("month_name", "monthName"),
        description="English month name",
    )

    @field_validator("person_name", "month_name", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        return _normalize_text(value)

    @field_validator(
        "outgoing_count",
        "regular_calls",
        "company_calls",
        "regular_call_minutes",
        "company_call_minutes",
        mode="before",
    )
    @classmethod
    def parse_number(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("year", mode="before")
    @classmethod
    def parse_year(cls, value: Any) -> int:
        return _coerce_year(value)


class NameAliasMapping(BaseModel):
    """
    Undirected pairing of two spellings of the same person.

    Either member may be the canonical one; the resolver prefers the shorter.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Store identifier")
    name: str = Field(default="", description="One spelling")
    alternative_name: str = Field(
        default="",
        validation_alias=AliasChoices("alternative_name", "alternativeName"),
        description="The other spelling",
    )


# =============================================================================
# Scoring Configuration
# =============================================================================


class ScoreWeights(BaseModel):
    """Percentage weights of the four metrics in the combined score."""
    tcm: float = Field(default=0.0, description="TCM weight in percent")
    ce: float = Field(default=0.0, description="CE weight in percent")
    ts: float = Field(default=0.0, description="TS weight in percent")
    rbsl: float = Field(default=0.0, description="RBSL weight in percent")

    def for_metric(self, metric: Metric) -> float:
        return getattr(self, metric.value)


class ScoringConfig(BaseModel):
    """
    The single active scoring configuration row.

    Holds, per metric and per scope, a benchmark and an interval, plus the
    qualification threshold and the percentage weights. Columns were stored as
    a mix of integers and strings; every numeric column is coerced with
    ``coerce_number`` so malformed values degrade to 0.

    There is no versioning: reports always read the current row, so historical
    scores are not reproducible after an edit.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "call_mins_thr": 750,
                "score_tcm_weightage": "25",
                "individual_score_tcm_benchmark": 1000,
                "individual_score_tcm_interval": 100,
                "team_score_ce_benchmark": "35",
                "team_score_ce_interval": "3",
            }
        }
    )

    id: Optional[str] = Field(default=None, description="Store identifier")

    call_mins_thr: float = Field(default=0.0, description="Qualification threshold in minutes")
    team_members_thr: float = Field(default=0.0, description="Minimum team size (stored, not scored)")

    score_tcm_weightage: float = 0.0
    score_ce_weightage: float = 0.0
    score_ts_weightage: float = 0.0
    score_rbsl_weightage: float = 0.0

    individual_score_tcm_benchmark: float = 0.0
    individual_score_tcm_interval: float = 0.0
    individual_score_ce_benchmark: float = 0.0
    individual_score_ce_interval: float = 0.0
    individual_score_ts_benchmark: float = 0.0
    individual_score_ts_interval: float = 0.0
    individual_score_rbsl_benchmark: float = 0.0
    individual_score_rbsl_interval: float = 0.0

    team_score_tcm_benchmark: float = 0.0
    team_score_tcm_interval: float = 0.0
    team_score_ce_benchmark: float = 0.0
    team_score_ce_interval: float = 0.0
    team_score_ts_benchmark: float = 0.0
    team_score_ts_interval: float = 0.0
    team_score_rbsl_benchmark: float = 0.0
    team_score_rbsl_interval: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def coerce_numeric_columns(cls, value: Any, info) -> Any:
        if info.field_name == "id":
            return None if value is None else str(value)
        return coerce_number(value)

    def benchmark_interval(self, metric: Metric, scope: Scope) -> Tuple[float, float]:
        """
        Look up the benchmark and interval for a metric in a scope.

        Args:
            metric: The metric being scored.
            scope: INDIVIDUAL reads individual_score_*, TEAM reads team_score_*.

        Returns:
            Tuple of (benchmark, interval).
        """
        prefix = f"{scope.value}_score_{metric.value}"
        return getattr(self, f"{prefix}_benchmark"), getattr(self, f"{prefix}_interval")

    @property
    def weights(self) -> ScoreWeights:
        return ScoreWeights(
            tcm=self.score_tcm_weightage,
            ce=self.score_ce_weightage,
            ts=self.score_ts_weightage,
            rbsl=self.score_rbsl_weightage,
        )


# =============================================================================
# Score Matrix Models
# =============================================================================


class ScoreLevel(BaseModel):
    """
    A level (1-10) and the threshold that produced it.

    ``score`` is numeric for regular thresholds and a string for sentinels:
    "-" marks an excluded level or a missing score, "0"/"47" are the literal
    fallbacks returned by the resolver.
    """
    level: int = Field(..., ge=1, le=10, description="Discrete level")
    score: Union[float, str] = Field(..., description="Threshold value or sentinel")


class ScoreMatrix(BaseModel):
    """Ten threshold levels for one metric, ordered from level 10 down to 1."""
    metric: Metric
    scope: Scope
    family: ScoreFamily
    benchmark: float
    interval: float
    levels: List[ScoreLevel] = Field(default_factory=list)

    def score_for(self, level: int) -> Union[float, str]:
        for entry in self.levels:
            if entry.level == level:
                return entry.score
        raise KeyError(level)


# =============================================================================
# Report Models
# =============================================================================


class MetricScore(BaseModel):
    """Raw value, display string and resolved level of one metric."""
    value: float = Field(..., description="Raw metric value (ratios as fractions)")
    display: str = Field(..., description="Formatted value for the dashboard")
    score: ScoreLevel = Field(..., description="Resolved level")


class MemberSales(BaseModel):
    """A group member and their sales total for the month."""
    name: str
    total_sales: float
    display_total_sales: str
    qualified: bool = Field(..., description="Whether the member counts towards averages")


class ScoredReportRow(BaseModel):
    """
    One scored entity for one month.

    ``entity_key`` is the canonical person name, the team, the department, or
    "all" for the company row.
    """
    granularity: Granularity
    entity_key: str
    month: str
    year: int
    team: Optional[str] = None
    department: Optional[str] = None
    alternate_name: Optional[str] = None

    tcm: MetricScore
    ce: MetricScore
    ts: MetricScore
    rbsl: MetricScore

    avg_total_score: Optional[float] = Field(
        default=None,
        description="Unweighted mean of the four levels (department and company rows)",
    )
    members: List[MemberSales] = Field(default_factory=list)
    member_count: int = 0
    qualified_count: int = 0
    group_total_sales: Optional[float] = None

    def level_for(self, metric: Metric) -> int:
        return getattr(self, metric.value).score.level


class ReportMetadata(BaseModel):
    """Metadata envelope returned alongside every report."""
    formatVersion: str = Field(default="1.0")
    timestamp: datetime
    totalRecords: int = Field(..., ge=0)
    months: List[str] = Field(default_factory=list)
    year: int


class ReportResult(BaseModel):
    """
    Outcome of a report entry point.

    Entry points never raise: failures are reported with ``success=False`` and
    a message, and ``rows`` is empty.
    """
    success: bool
    message: Optional[str] = None
    rows: List[ScoredReportRow] = Field(default_factory=list)
    metadata: Optional[ReportMetadata] = None


class TopRankingEntry(BaseModel):
    """One row of the weighted top ranking."""
    entity_key: str
    month: str
    team: Optional[str] = None
    department: Optional[str] = None
    weighted_score: float


class TopRankingResult(BaseModel):
    success: bool
    message: Optional[str] = None
    granularity: Granularity
    weights: Optional[ScoreWeights] = None
    entries: List[TopRankingEntry] = Field(default_factory=list)


# =============================================================================
# Ingestion / Maintenance Models
# =============================================================================


class ValidationError(BaseModel):
    """A problem found in an uploaded row or request payload."""
    field: str
    message: str
    row_number: Optional[int] = None


class UploadResult(BaseModel):
    """
    Outcome of a batch upload.

    Individual record failures are counted in ``failed``; the upload as a
    whole still succeeds unless it could not start.
    """
    success: bool
    count: int = 0
    failed: int = 0
    message: str = ""
    errors: List[ValidationError] = Field(default_factory=list)


class OperationResult(BaseModel):
    """Outcome of a single write or maintenance operation."""
    success: bool
    message: str = ""
    count: int = 0
    data: Optional[Dict[str, Any]] = None


class MonthData(BaseModel):
    """A month that holds data in at least one record table."""
    id: int = Field(..., description="Calendar month number, 0 for unknown names")
    name: str
    hasData: bool = True


class MonthsResult(BaseModel):
    """Months with data for a year, in calendar order."""
    success: bool
    message: str = ""
    data: List[MonthData] = Field(default_factory=list)


class RecordListResult(BaseModel):
    """Stored rows of one table, newest first."""
    success: bool
    message: str = ""
    count: int = 0
    data: List[Dict[str, Any]] = Field(default_factory=list)


# =============================================================================
# Sales Dashboard Models
# =============================================================================


class SalesTotal(BaseModel):
    """Summed sale value of one team, person or department."""
    key: str
    total_sales: float
    display: str


class SalesDashboardResult(BaseModel):
    """Top sellers by team, individual and department for a set of months."""
    success: bool
    message: Optional[str] = None
    months: List[str] = Field(default_factory=list)
    year: Optional[int] = None
    top_teams: List[SalesTotal] = Field(default_factory=list)
    top_individuals: List[SalesTotal] = Field(default_factory=list)
    top_departments: List[SalesTotal] = Field(default_factory=list)
