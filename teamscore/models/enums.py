"""
Enumeration definitions for the scorecard backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

import re
from enum import Enum


class Metric(str, Enum):
    """
    The four scored performance metrics.

    - tcm: Total Call Minutes (incoming minutes + outgoing regular call minutes)
    - ce: Call Efficiency (outgoing call count / total call minutes)
    - ts: Total Sales (sum of sale values from the activity log)
    - rbsl: Ratio Between Skade and Liv (share of sales in the liv category)
    """
    TCM = "tcm"
    CE = "ce"
    TS = "ts"
    RBSL = "rbsl"


class Scope(str, Enum):
    """
    Which benchmark/interval columns of the scoring configuration apply.

    Individual reports use the individual_score_* columns; team, department
    and company reports all share the team_score_* columns.
    """
    INDIVIDUAL = "individual"
    TEAM = "team"


class Granularity(str, Enum):
    """
    Aggregation level of a scored report.
    """
    INDIVIDUAL = "individual"
    TEAM = "team"
    DEPARTMENT = "department"
    COMPANY = "company"

    @property
    def scope(self) -> Scope:
        """Configuration scope the granularity reads its benchmarks from."""
        if self == Granularity.INDIVIDUAL:
            return Scope.INDIVIDUAL
        return Scope.TEAM


class ScoreFamily(str, Enum):
    """
    Formula family used to derive the ten level thresholds of a score matrix.

    - linear: level 5 = benchmark, each level adds one interval, level 1 excluded
    - inverted: level 10 fixed at 0, levels above 5 subtract intervals (lower is better)
    - rbsl: like linear up to level 2, but level 1 is fixed at 0 instead of excluded
    """
    LINEAR = "linear"
    INVERTED = "inverted"
    RBSL = "rbsl"


class SortDirection(str, Enum):
    """
    Threshold matching direction for the level resolver.

    - desc: higher raw value is better (TCM, TS, RBSL)
    - asc: lower raw value is better (CE)
    """
    DESC = "desc"
    ASC = "asc"


class ActivityCategory(str, Enum):
    """
    Insurance category of an activity log entry.

    Raw activity labels are numbered in the source spreadsheets
    (e.g. "1. skade", "2. liv"); the numbering prefix is ignored.
    """
    LIV = "liv"
    SKADE = "skade"
    OTHER = "other"

    @classmethod
    def from_label(cls, label: object) -> "ActivityCategory":
        """
        Map a raw activity label to its category.

        Args:
            label: Raw activity label, e.g. "2. liv". None and unknown labels
                map to OTHER.

        Returns:
            ActivityCategory
        """
        if label is None:
            return cls.OTHER
        if isinstance(label, ActivityCategory):
            return label
        text = re.sub(r"^\s*\d+\.\s*", "", str(label)).strip().lower()
        if text == cls.LIV.value:
            return cls.LIV
        if text == cls.SKADE.value:
            return cls.SKADE
        return cls.OTHER


class RecordKind(str, Enum):
    """
    The three raw record tables fed by data entry and uploads.
    """
    ACTIVITY_LOG = "activity-logs"
    INCOMING_CALLS = "incoming-calls"
    OUTGOING_CALLS = "outgoing-calls"


# Calendar order used when listing months that hold data
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
