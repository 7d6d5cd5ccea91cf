"""
SQL Query Module for the scorecard backend.

Parameterized PostgreSQL statements used by ``PostgresRecordStore``. Keeping
SQL here separates data access text from the store's connection handling.

Example usage:
    from teamscore.sql import get_find_records_query
    from teamscore.models import RecordKind

    query, params = get_find_records_query(RecordKind.ACTIVITY_LOG, "January", 2024)
"""

from teamscore.sql.record_queries import (
    SCHEMA_DDL,
    RECORD_TABLES,
    RECORD_COLUMNS,
    SCORING_CONFIG_COLUMNS,
    FIND_NAME_MAPPINGS_QUERY,
    FIND_SCORING_CONFIG_QUERY,
    SET_ACTIVITY_ALTERNATIVE_NAME_QUERY,
    RENAME_OUTGOING_CALL_QUERY,
    get_find_records_query,
    get_insert_record_query,
    record_params,
    get_months_with_data_query,
    get_delete_month_queries,
    get_update_scoring_config_query,
    get_insert_scoring_config_query,
    scoring_config_params,
)


__all__ = [
    'SCHEMA_DDL',
    'RECORD_TABLES',
    'RECORD_COLUMNS',
    'SCORING_CONFIG_COLUMNS',
    'FIND_NAME_MAPPINGS_QUERY',
    'FIND_SCORING_CONFIG_QUERY',
    'SET_ACTIVITY_ALTERNATIVE_NAME_QUERY',
    'RENAME_OUTGOING_CALL_QUERY',
    'get_find_records_query',
    'get_insert_record_query',
    'record_params',
    'get_months_with_data_query',
    'get_delete_month_queries',
    'get_update_scoring_config_query',
    'get_insert_scoring_config_query',
    'scoring_config_params',
]
