"""
Record Ingestion and Maintenance Service

Reads and writes the record store on behalf of the data-entry screens:

- Spreadsheet uploads for the three record tables. Rows are normalized with
  pandas (column names mapped, strings trimmed, numeric columns coerced),
  rows without a name are rejected, and the rest are inserted in batches of
  UPLOAD_BATCH_SIZE. When a batch insert fails the batch is retried record by
  record; individual failures are counted, not raised.
- Single activity log entry with field validation.
- Record listings (newest first) and single record deletion by id.
- Month listing and atomic month deletion across the three tables.
- Alias maintenance (activity alternative names, outgoing call renames).
- Scoring configuration read/update and the weight lookup used by rankings.

Every operation returns a result model (UploadResult, OperationResult,
MonthsResult, RecordListResult) instead of raising.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import pandas as pd
from pydantic import BaseModel

from teamscore.core.config import get_settings
from teamscore.core.store import RecordNotFoundError, RecordStore
from teamscore.models.enums import MONTH_NAMES, RecordKind
from teamscore.models.schemas import (
    ActivityRecord,
    IncomingCallRecord,
    MonthData,
    MonthsResult,
    OperationResult,
    OutgoingCallRecord,
    RecordListResult,
    ScoreWeights,
    ScoringConfig,
    UploadResult,
    ValidationError,
    coerce_number,
)

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS - Column mapping per record kind
# =============================================================================

# Spreadsheet header (lowercased, stripped) -> model field
COLUMN_ALIASES: Dict[RecordKind, Dict[str, str]] = {
    RecordKind.ACTIVITY_LOG: {
        'name': 'person_name',
        'navn': 'person_name',
        'person_name': 'person_name',
        'team': 'team',
        'department': 'department',
        'activity': 'activity',
        'verdi': 'sale_value',
        'sale_value': 'sale_value',
        'year': 'year',
        'monthname': 'month_name',
        'month_name': 'month_name',
        'alternativenames': 'alternative_names',
        'alternative_names': 'alternative_names',
    },
    RecordKind.INCOMING_CALLS: {
        'navn': 'person_name',
        'name': 'person_name',
        'person_name': 'person_name',
        'min': 'minutes',
        'minutes': 'minutes',
        'year': 'year',
        'monthname': 'month_name',
        'month_name': 'month_name',
    },
    RecordKind.OUTGOING_CALLS: {
        'navn': 'person_name',
        'name': 'person_name',
        'person_name': 'person_name',
        'outgoing': 'outgoing_count',
        'outgoing_count': 'outgoing_count',
        'regular': 'regular_calls',
        'company': 'company_calls',
        'regular_call_time_min': 'regular_call_minutes',
        'regular_call_minutes': 'regular_call_minutes',
        'company_call_time_min': 'company_call_minutes',
        'company_call_minutes': 'company_call_minutes',
        'year': 'year',
        'monthname': 'month_name',
        'month_name': 'month_name',
    },
}

NUMERIC_FIELDS: Dict[RecordKind, List[str]] = {
    RecordKind.ACTIVITY_LOG: ['sale_value', 'year'],
    RecordKind.INCOMING_CALLS: ['minutes', 'year'],
    RecordKind.OUTGOING_CALLS: [
        'outgoing_count',
        'regular_calls',
        'company_calls',
        'regular_call_minutes',
        'company_call_minutes',
        'year',
    ],
}

RECORD_MODELS: Dict[RecordKind, Type[BaseModel]] = {
    RecordKind.ACTIVITY_LOG: ActivityRecord,
    RecordKind.INCOMING_CALLS: IncomingCallRecord,
    RecordKind.OUTGOING_CALLS: OutgoingCallRecord,
}

# Store method names: (bulk insert, single insert)
STORE_WRITERS: Dict[RecordKind, Tuple[str, str]] = {
    RecordKind.ACTIVITY_LOG: ('create_many_activity_records', 'create_activity_record'),
    RecordKind.INCOMING_CALLS: ('create_many_incoming_calls', 'create_incoming_call'),
    RecordKind.OUTGOING_CALLS: ('create_many_outgoing_calls', 'create_outgoing_call'),
}

ACTIVITY_REQUIRED_FIELDS: List[str] = ['name', 'team', 'activity', 'department', 'monthName']

# Store method names per record kind
STORE_READERS: Dict[RecordKind, str] = {
    RecordKind.ACTIVITY_LOG: 'find_activity_records',
    RecordKind.INCOMING_CALLS: 'find_incoming_calls',
    RecordKind.OUTGOING_CALLS: 'find_outgoing_calls',
}

STORE_DELETERS: Dict[RecordKind, str] = {
    RecordKind.ACTIVITY_LOG: 'delete_activity_record',
    RecordKind.INCOMING_CALLS: 'delete_incoming_call',
    RecordKind.OUTGOING_CALLS: 'delete_outgoing_call',
}

CONFIG_NOT_FOUND_MESSAGE = "No scoring configuration found"
RECORD_NOT_FOUND_MESSAGE = "Record not found"

MONTH_NUMBERS: Dict[str, int] = {name: index for index, name in enumerate(MONTH_NAMES, start=1)}


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_upload_rows(
    rows: Sequence[Dict[str, Any]],
    kind: RecordKind,
) -> Tuple[pd.DataFrame, List[ValidationError]]:
    """
    Normalize raw upload rows into a DataFrame of model field columns.

    Steps:
    1. Map spreadsheet headers onto model fields (unknown columns are dropped).
    2. Trim string columns; missing strings become "".
    3. Coerce numeric columns with ``coerce_number``, the same parser the record
       models use: thousands separators are dropped, the leading number of a
       string is kept ("35%" -> 35) and unparseable values become 0.
    4. Reject rows without a person name.

    Args:
        rows: Raw row dicts as parsed from the uploaded spreadsheet.
        kind: Which record table the rows are for.

    Returns:
        Tuple of (DataFrame of accepted rows, list of validation errors).
        ``row_number`` in errors is 1-based over the uploaded rows.
    """
    errors: List[ValidationError] = []
    aliases = COLUMN_ALIASES[kind]

    df = pd.DataFrame(list(rows))
    if df.empty:
        return df, errors

    rename = {}
    for column in df.columns:
        key = str(column).strip().lower()
        if key in aliases and aliases[key] not in rename.values():
            rename[column] = aliases[key]
    df = df[list(rename)].rename(columns=rename)

    numeric = NUMERIC_FIELDS[kind]
    for column in df.columns:
        if column in numeric:
            df[column] = df[column].map(coerce_number).astype(float)
        else:
            df[column] = df[column].fillna('').astype(str).str.strip()

    if 'person_name' not in df.columns:
        errors.append(ValidationError(
            field='name',
            message='Upload has no name column',
            row_number=None
        ))
        return df.iloc[0:0], errors

    missing_name = df['person_name'] == ''
    for index in df.index[missing_name]:
        errors.append(ValidationError(
            field='name',
            message='Row has no name and was skipped',
            row_number=int(index) + 1
        ))

    return df[~missing_name], errors


def _to_records(df: pd.DataFrame, kind: RecordKind) -> List[BaseModel]:
    model = RECORD_MODELS[kind]
    records = []
    for row in df.to_dict(orient='records'):
        if 'year' in row:
            row['year'] = int(row['year'])
        records.append(model.model_validate(row))
    return records


# =============================================================================
# UPLOADS
# =============================================================================

async def _insert_batches(
    store: RecordStore,
    kind: RecordKind,
    records: List[BaseModel],
    batch_size: int,
) -> Tuple[int, List[ValidationError]]:
    bulk_name, single_name = STORE_WRITERS[kind]
    create_many = getattr(store, bulk_name)
    create_one = getattr(store, single_name)

    count = 0
    errors: List[ValidationError] = []

    for start in range(0, len(records), batch_size):
        batch = records[start:start + batch_size]
        try:
            await create_many(batch)
            count += len(batch)
            continue
        except Exception as e:
            logger.warning(f"Batch insert of {kind.value} failed, falling back to single inserts: {e}")

        for offset, record in enumerate(batch):
            try:
                await create_one(record)
                count += 1
            except Exception as e:
                logger.warning(f"Failed to insert {kind.value} record {start + offset + 1}: {e}")
                errors.append(ValidationError(
                    field='insert',
                    message=f"Insert failed: {str(e)}",
                    row_number=start + offset + 1
                ))

    return count, errors


async def upload_records(
    store: RecordStore,
    kind: RecordKind,
    rows: Sequence[Dict[str, Any]],
) -> UploadResult:
    """
    Normalize and insert uploaded rows for one record table.

    Args:
        store: Record store to write to.
        kind: Target record table.
        rows: Raw row dicts from the uploaded spreadsheet.

    Returns:
        UploadResult with the inserted ``count`` and ``failed`` rows (rejected
        during normalization plus failed inserts). ``success`` is False only
        when the upload could not start.
    """
    logger.info(f"Starting {kind.value} upload with {len(rows) if rows is not None else 0} rows")

    if not rows:
        return UploadResult(
            success=False,
            message=f"No {kind.value} rows provided",
            errors=[ValidationError(field='rows', message='Upload contains no rows', row_number=None)]
        )

    try:
        df, errors = normalize_upload_rows(rows, kind)
        records = _to_records(df, kind)
    except Exception as e:
        logger.exception(f"Error normalizing {kind.value} upload")
        return UploadResult(
            success=False,
            message=f"Failed to read {kind.value} upload: {str(e)}",
            failed=len(rows),
        )

    batch_size = max(get_settings().upload_batch_size, 1)
    count, insert_errors = await _insert_batches(store, kind, records, batch_size)
    errors.extend(insert_errors)
    failed = len(rows) - count

    logger.info(f"Upload complete: {count} of {len(rows)} {kind.value} rows added")
    return UploadResult(
        success=True,
        count=count,
        failed=failed,
        message=f"Successfully added {count} out of {len(rows)} {kind.value}",
        errors=errors,
    )


async def upload_activity_logs(store: RecordStore, rows: Sequence[Dict[str, Any]]) -> UploadResult:
    return await upload_records(store, RecordKind.ACTIVITY_LOG, rows)


async def upload_incoming_calls(store: RecordStore, rows: Sequence[Dict[str, Any]]) -> UploadResult:
    return await upload_records(store, RecordKind.INCOMING_CALLS, rows)


async def upload_outgoing_calls(store: RecordStore, rows: Sequence[Dict[str, Any]]) -> UploadResult:
    return await upload_records(store, RecordKind.OUTGOING_CALLS, rows)


# =============================================================================
# SINGLE ENTRY
# =============================================================================

def _parse_integer(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            return int(value)
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return None


def validate_activity_payload(payload: Dict[str, Any]) -> List[ValidationError]:
    """
    Check a manually entered activity log.

    Every text field must be a non-empty string and ``verdi``/``year`` must
    parse as numbers.
    """
    errors: List[ValidationError] = []
    if not isinstance(payload, dict):
        return [ValidationError(field='payload', message='Expected an object')]

    for field_name in ACTIVITY_REQUIRED_FIELDS:
        value = payload.get(field_name)
        if not isinstance(value, str) or not value.strip():
            errors.append(ValidationError(field=field_name, message=f"{field_name} is required"))

    for field_name in ('verdi', 'year'):
        if _parse_integer(payload.get(field_name, '')) is None:
            errors.append(ValidationError(field=field_name, message=f"{field_name} must be a valid number"))

    return errors


async def add_activity_log(store: RecordStore, payload: Dict[str, Any]) -> OperationResult:
    """
    Validate and insert one activity log entry.

    Returns:
        OperationResult; on invalid input ``success`` is False and ``data``
        carries the validation errors.
    """
    errors = validate_activity_payload(payload)
    if errors:
        return OperationResult(
            success=False,
            message="Invalid data format",
            data={'errors': [e.model_dump() for e in errors]},
        )

    record = ActivityRecord(
        person_name=payload['name'],
        team=payload['team'],
        department=payload['department'],
        activity=payload['activity'],
        sale_value=_parse_integer(payload['verdi']),
        year=_parse_integer(payload['year']),
        month_name=payload['monthName'],
        alternative_names=payload.get('alternativeNames'),
    )

    try:
        created = await store.create_activity_record(record)
    except Exception as e:
        logger.exception("Error adding activity log")
        return OperationResult(success=False, message=f"Failed to add activity log: {str(e)}")

    return OperationResult(
        success=True,
        message="Activity log added",
        count=1,
        data=created.model_dump(),
    )


# =============================================================================
# RECORD LISTING AND DELETION
# =============================================================================

async def list_records(
    store: RecordStore,
    kind: RecordKind,
    month: Optional[str] = None,
    year: Optional[int] = None,
    limit: Optional[int] = None,
) -> RecordListResult:
    """
    List the stored rows of one record table, newest first.

    Args:
        store: Record store to read from.
        kind: Record table to list.
        month: Optional month name filter.
        year: Optional year filter.
        limit: Keep only the newest ``limit`` rows.

    Returns:
        RecordListResult; an empty table is a successful, empty result.
    """
    try:
        records = await getattr(store, STORE_READERS[kind])(month=month, year=year)
    except Exception as e:
        logger.exception(f"Error listing {kind.value}")
        return RecordListResult(success=False, message=f"Failed to fetch {kind.value}: {str(e)}")

    newest_first = list(reversed(records))
    if limit is not None:
        newest_first = newest_first[:max(limit, 0)]

    return RecordListResult(
        success=True,
        message="" if newest_first else f"No {kind.value} found",
        count=len(newest_first),
        data=[record.model_dump() for record in newest_first],
    )


async def list_alternative_names(store: RecordStore) -> RecordListResult:
    """Name alias pairs, newest first."""
    try:
        mappings = await store.find_name_mappings()
    except Exception as e:
        logger.exception("Error fetching alternative names")
        return RecordListResult(success=False, message=f"Failed to fetch alternative names: {str(e)}")

    return RecordListResult(
        success=True,
        count=len(mappings),
        data=[mapping.model_dump() for mapping in mappings],
    )


async def delete_record(store: RecordStore, kind: RecordKind, record_id: str) -> OperationResult:
    """
    Delete one record by id.

    An unknown id yields ``success=False`` with RECORD_NOT_FOUND_MESSAGE so
    callers can tell it apart from a store failure.
    """
    if not record_id or not str(record_id).strip():
        return OperationResult(success=False, message="Record id is required")

    try:
        await getattr(store, STORE_DELETERS[kind])(str(record_id).strip())
    except RecordNotFoundError:
        logger.warning(f"Delete of unknown {kind.value} record {record_id}")
        return OperationResult(success=False, message=RECORD_NOT_FOUND_MESSAGE)
    except Exception as e:
        logger.exception(f"Error deleting {kind.value} record {record_id}")
        return OperationResult(success=False, message=f"Failed to delete record: {str(e)}")

    logger.info(f"Deleted {kind.value} record {record_id}")
    return OperationResult(success=True, message="Record deleted successfully", count=1)


# =============================================================================
# MONTHS
# =============================================================================

async def get_months_with_data(store: RecordStore, year: int) -> MonthsResult:
    """
    List the months of a year that hold data in any record table.

    Months are ordered January to December; unrecognized month names get id 0
    and sort first.
    """
    try:
        names = await store.find_months_with_data(year)
    except Exception as e:
        logger.exception(f"Error fetching months with data for {year}")
        return MonthsResult(success=False, message=f"Failed to fetch months data: {str(e)}")

    months = sorted(
        (MonthData(id=MONTH_NUMBERS.get(name, 0), name=name, hasData=True) for name in set(names)),
        key=lambda month: (month.id, month.name),
    )
    return MonthsResult(success=True, data=months)


async def delete_month(store: RecordStore, month: str, year: int) -> OperationResult:
    """
    Delete one month of data from all three record tables as one unit.

    Either every table loses the month's rows or none does; the store enforces
    the atomicity.
    """
    if not month or not str(month).strip():
        return OperationResult(success=False, message="Month name is required")

    try:
        counts = await store.delete_month_data(month.strip(), year)
    except Exception as e:
        logger.exception(f"Error deleting data for {month} {year}")
        return OperationResult(success=False, message=f"Failed to delete month data: {str(e)}")

    total = sum(counts.values())
    logger.info(f"Deleted {total} records for {month} {year}: {counts}")
    return OperationResult(
        success=True,
        message="Month data deleted successfully",
        count=total,
        data=counts,
    )


# =============================================================================
# ALIAS MAINTENANCE
# =============================================================================

async def set_alternative_names(
    store: RecordStore,
    ids: Sequence[str],
    alternative_name: str,
) -> OperationResult:
    """Set the alternative name of the given activity records; all or nothing is reported."""
    if not ids:
        return OperationResult(success=False, message="No valid IDs provided")

    try:
        await asyncio.gather(
            *(store.set_activity_alternative_name(str(record_id), alternative_name) for record_id in ids)
        )
    except Exception as e:
        logger.exception("Error updating alternative names")
        return OperationResult(success=False, message=f"Failed to update alternative names: {str(e)}")

    return OperationResult(
        success=True,
        message=f"Updated {len(ids)} activity logs",
        count=len(ids),
    )


async def rename_outgoing_calls(
    store: RecordStore,
    ids: Sequence[str],
    new_name: str,
) -> OperationResult:
    """
    Rename the person on outgoing call records, one record at a time.

    Failures on individual records are logged and skipped; the result carries
    the number of records actually updated.
    """
    if not ids:
        return OperationResult(success=False, message="Invalid or missing IDs")
    if not isinstance(new_name, str) or not new_name.strip():
        return OperationResult(success=False, message="Invalid or missing new name")

    updated = 0
    for record_id in ids:
        try:
            await store.rename_outgoing_call(str(record_id), new_name.strip())
            updated += 1
        except Exception as e:
            logger.warning(f"Error updating outgoing call {record_id}: {e}")

    return OperationResult(
        success=True,
        message="Names updated successfully",
        count=updated,
        data={'count': updated},
    )


# =============================================================================
# SCORING CONFIGURATION
# =============================================================================

async def get_scoring_config(store: RecordStore) -> OperationResult:
    try:
        config = await store.find_scoring_config()
    except Exception as e:
        logger.exception("Error fetching scoring configuration")
        return OperationResult(success=False, message=f"Failed to fetch scoring configuration: {str(e)}")

    if config is None:
        return OperationResult(success=False, message=CONFIG_NOT_FOUND_MESSAGE)
    return OperationResult(success=True, count=1, data=config.model_dump())


async def update_scoring_config(store: RecordStore, payload: Dict[str, Any]) -> OperationResult:
    """
    Replace the active scoring configuration.

    Values are coerced the same way stored values are, so "35" and 35 are
    equivalent and malformed numbers become 0.
    """
    try:
        config = ScoringConfig.model_validate(payload or {})
        saved = await store.update_scoring_config(config)
    except Exception as e:
        logger.exception("Error updating scoring configuration")
        return OperationResult(success=False, message=f"Failed to update scoring configuration: {str(e)}")

    logger.info("Scoring configuration updated")
    return OperationResult(success=True, message="Scoring configuration updated", count=1, data=saved.model_dump())


async def get_score_weights(store: RecordStore) -> ScoreWeights:
    """Percentage weights of the four metrics; all 0 without a configuration."""
    config = await store.find_scoring_config()
    if config is None:
        logger.warning("No scoring configuration found; using zero weights")
        return ScoreWeights()
    return config.weights


__all__ = [
    'normalize_upload_rows',
    'upload_records',
    'upload_activity_logs',
    'upload_incoming_calls',
    'upload_outgoing_calls',
    'validate_activity_payload',
    'add_activity_log',
    'list_records',
    'list_alternative_names',
    'delete_record',
    'get_months_with_data',
    'delete_month',
    'set_alternative_names',
    'rename_outgoing_calls',
    'get_scoring_config',
    'update_scoring_config',
    'get_score_weights',
    'CONFIG_NOT_FOUND_MESSAGE',
    'RECORD_NOT_FOUND_MESSAGE',
]
