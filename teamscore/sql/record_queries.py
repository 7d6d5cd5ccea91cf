"""
Parameterized SQL for the PostgreSQL record store.

Tables keep the column names of the upload spreadsheets (``navn``, ``verdi``,
``min``, ``regular_call_time_min`` ...); SELECT statements alias them to the
field names of the pydantic record models so rows can be validated directly.

All statements use asyncpg ``$n`` placeholders. Functions that take optional
filters return a ``(query, params)`` tuple.
"""

from typing import Any, Dict, List, Optional, Tuple

from teamscore.models.enums import RecordKind


# =============================================================================
# Schema
# =============================================================================

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS activity_log (
    id TEXT PRIMARY KEY DEFAULT md5(random()::text || clock_timestamp()::text),
    seq BIGINT GENERATED ALWAYS AS IDENTITY,
    name TEXT NOT NULL,
    team TEXT NOT NULL DEFAULT '',
    department TEXT NOT NULL DEFAULT '',
    activity TEXT NOT NULL DEFAULT '',
    verdi DOUBLE PRECISION NOT NULL DEFAULT 0,
    year INTEGER NOT NULL,
    month_name TEXT NOT NULL,
    alternative_names TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS incoming_calls (
    id TEXT PRIMARY KEY DEFAULT md5(random()::text || clock_timestamp()::text),
    seq BIGINT GENERATED ALWAYS AS IDENTITY,
    navn TEXT NOT NULL,
    min DOUBLE PRECISION NOT NULL DEFAULT 0,
    year INTEGER NOT NULL,
    month_name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS outgoing_calls (
    id TEXT PRIMARY KEY DEFAULT md5(random()::text || clock_timestamp()::text),
    seq BIGINT GENERATED ALWAYS AS IDENTITY,
    navn TEXT NOT NULL,
    outgoing DOUBLE PRECISION NOT NULL DEFAULT 0,
    regular DOUBLE PRECISION NOT NULL DEFAULT 0,
    company DOUBLE PRECISION NOT NULL DEFAULT 0,
    regular_call_time_min DOUBLE PRECISION NOT NULL DEFAULT 0,
    company_call_time_min DOUBLE PRECISION NOT NULL DEFAULT 0,
    year INTEGER NOT NULL,
    month_name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS alternative_names (
    id TEXT PRIMARY KEY DEFAULT md5(random()::text || clock_timestamp()::text),
    name TEXT NOT NULL,
    alternative_name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS inputs (
    id TEXT PRIMARY KEY DEFAULT md5(random()::text || clock_timestamp()::text),
    call_mins_thr TEXT,
    team_members_thr TEXT,
    score_tcm_weightage TEXT,
    score_ce_weightage TEXT,
    score_ts_weightage TEXT,
    score_rbsl_weightage TEXT,
    individual_score_tcm_benchmark TEXT,
    individual_score_tcm_interval TEXT,
    individual_score_ce_benchmark TEXT,
    individual_score_ce_interval TEXT,
    individual_score_ts_benchmark TEXT,
    individual_score_ts_interval TEXT,
    individual_score_rbsl_benchmark TEXT,
    individual_score_rbsl_interval TEXT,
    team_score_tcm_benchmark TEXT,
    team_score_tcm_interval TEXT,
    team_score_ce_benchmark TEXT,
    team_score_ce_interval TEXT,
    team_score_ts_benchmark TEXT,
    team_score_ts_interval TEXT,
    team_score_rbsl_benchmark TEXT,
    team_score_rbsl_interval TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

-- Tables created before the insertion sequence existed
ALTER TABLE activity_log ADD COLUMN IF NOT EXISTS seq BIGINT GENERATED ALWAYS AS IDENTITY;
ALTER TABLE incoming_calls ADD COLUMN IF NOT EXISTS seq BIGINT GENERATED ALWAYS AS IDENTITY;
ALTER TABLE outgoing_calls ADD COLUMN IF NOT EXISTS seq BIGINT GENERATED ALWAYS AS IDENTITY;
"""


# =============================================================================
# Table Layout
# =============================================================================

RECORD_TABLES: Dict[RecordKind, str] = {
    RecordKind.ACTIVITY_LOG: "activity_log",
    RecordKind.INCOMING_CALLS: "incoming_calls",
    RecordKind.OUTGOING_CALLS: "outgoing_calls",
}

# (table column, model field) in insert order, id excluded
RECORD_COLUMNS: Dict[RecordKind, List[Tuple[str, str]]] = {
    RecordKind.ACTIVITY_LOG: [
        ("name", "person_name"),
        ("team", "team"),
        ("department", "department"),
        ("activity", "activity"),
        ("verdi", "sale_value"),
        ("year", "year"),
        ("month_name", "month_name"),
        ("alternative_names", "alternative_names"),
    ],
    RecordKind.INCOMING_CALLS: [
        ("navn", "person_name"),
        ("min", "minutes"),
        ("year", "year"),
        ("month_name", "month_name"),
    ],
    RecordKind.OUTGOING_CALLS: [
        ("navn", "person_name"),
        ("outgoing", "outgoing_count"),
        ("regular", "regular_calls"),
        ("company", "company_calls"),
        ("regular_call_time_min", "regular_call_minutes"),
        ("company_call_time_min", "company_call_minutes"),
        ("year", "year"),
        ("month_name", "month_name"),
    ],
}

SCORING_CONFIG_COLUMNS: List[str] = [
    "call_mins_thr",
    "team_members_thr",
    "score_tcm_weightage",
    "score_ce_weightage",
    "score_ts_weightage",
    "score_rbsl_weightage",
] + [
    f"{scope}_score_{metric}_{part}"
    for scope in ("individual", "team")
    for metric in ("tcm", "ce", "ts", "rbsl")
    for part in ("benchmark", "interval")
]


def _select_list(kind: RecordKind) -> str:
    columns = ["id"] + [
        column if column == field else f"{column} AS {field}"
        for column, field in RECORD_COLUMNS[kind]
    ]
    return ", ".join(columns)


# =============================================================================
# Record Queries
# =============================================================================


def get_find_records_query(
    kind: RecordKind,
    month: Optional[str] = None,
    year: Optional[int] = None,
) -> Tuple[str, List[Any]]:
    """
    SELECT for one record table with optional month/year filters.

    Rows come back in insertion order (the ``seq`` identity column, which
    also orders rows inserted by one ``executemany`` call) so the fold's
    last-write-wins team assignment is stable.

    Args:
        kind: Record table to read.
        month: Optional month name filter.
        year: Optional year filter.

    Returns:
        Tuple of (query, params).
    """
    conditions: List[str] = []
    params: List[Any] = []

    if month is not None:
        params.append(month)
        conditions.append(f"month_name = ${len(params)}")
    if year is not None:
        params.append(year)
        conditions.append(f"year = ${len(params)}")

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    query = f"""
        SELECT {_select_list(kind)}
        FROM {RECORD_TABLES[kind]}
        {where_clause}
        ORDER BY seq
    """
    return query, params


def get_insert_record_query(kind: RecordKind) -> str:
    """INSERT of one record returning its generated id."""
    columns = [column for column, _ in RECORD_COLUMNS[kind]]
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    return f"""
        INSERT INTO {RECORD_TABLES[kind]} ({", ".join(columns)})
        VALUES ({placeholders})
        RETURNING id
    """


def record_params(kind: RecordKind, record: Any) -> Tuple[Any, ...]:
    """Positional parameters for get_insert_record_query from a record model."""
    return tuple(getattr(record, field) for _, field in RECORD_COLUMNS[kind])


def get_months_with_data_query(year: Optional[int] = None) -> Tuple[str, List[Any]]:
    """Distinct month names across the three record tables."""
    where_clause = "WHERE year = $1" if year is not None else ""
    selects = [
        f"SELECT DISTINCT month_name FROM {table} {where_clause}"
        for table in RECORD_TABLES.values()
    ]
    query = "\nUNION\n".join(selects)
    return query, ([year] if year is not None else [])


def get_delete_record_query(kind: RecordKind) -> str:
    """DELETE of one record by id; $1 is the id."""
    return f"DELETE FROM {RECORD_TABLES[kind]} WHERE id = $1"


def get_delete_month_queries() -> Dict[str, str]:
    """DELETE per record table, keyed by the count name reported to callers."""
    return {
        "activity_logs": "DELETE FROM activity_log WHERE month_name = $1 AND year = $2",
        "incoming_calls": "DELETE FROM incoming_calls WHERE month_name = $1 AND year = $2",
        "outgoing_calls": "DELETE FROM outgoing_calls WHERE month_name = $1 AND year = $2",
    }


# =============================================================================
# Alias and Configuration Queries
# =============================================================================

FIND_NAME_MAPPINGS_QUERY = """
    SELECT id, name, alternative_name
    FROM alternative_names
    ORDER BY created_at DESC
"""

SET_ACTIVITY_ALTERNATIVE_NAME_QUERY = """
    UPDATE activity_log
    SET alternative_names = $2, updated_at = NOW()
    WHERE id = $1
"""

RENAME_OUTGOING_CALL_QUERY = """
    UPDATE outgoing_calls
    SET navn = $2, updated_at = NOW()
    WHERE id = $1
"""

FIND_SCORING_CONFIG_QUERY = f"""
    SELECT id, {", ".join(SCORING_CONFIG_COLUMNS)}
    FROM inputs
    ORDER BY created_at
    LIMIT 1
"""


def get_update_scoring_config_query() -> str:
    """UPDATE of the single configuration row by id; $1 is the id."""
    assignments = ", ".join(
        f"{column} = ${i}" for i, column in enumerate(SCORING_CONFIG_COLUMNS, start=2)
    )
    return f"""
        UPDATE inputs
        SET {assignments}, updated_at = NOW()
        WHERE id = $1
        RETURNING id
    """


def get_insert_scoring_config_query() -> str:
    placeholders = ", ".join(f"${i}" for i in range(1, len(SCORING_CONFIG_COLUMNS) + 1))
    return f"""
        INSERT INTO inputs ({", ".join(SCORING_CONFIG_COLUMNS)})
        VALUES ({placeholders})
        RETURNING id
    """


def scoring_config_params(config: Any) -> Tuple[str, ...]:
    """Configuration values as text, the way the inputs table stores them."""
    values = []
    for column in SCORING_CONFIG_COLUMNS:
        value = getattr(config, column)
        values.append(str(int(value)) if float(value).is_integer() else str(value))
    return tuple(values)
