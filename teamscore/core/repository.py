"""
PostgreSQL record store.

``RecordStore`` implementation on top of the asyncpg pool. Every method
acquires its own connection; the month delete and bulk inserts run inside a
transaction so they either fully apply or not at all.

Usage:
    pool = await init_db()
    store = PostgresRecordStore(pool)
    await store.create_schema()
    records = await store.find_activity_records(month="January", year=2024)
"""

import logging
from typing import Dict, List, Optional

from asyncpg import Pool

from teamscore.core.store import RecordNotFoundError
from teamscore.models.enums import RecordKind
from teamscore.models.schemas import (
    ActivityRecord,
    IncomingCallRecord,
    NameAliasMapping,
    OutgoingCallRecord,
    ScoringConfig,
)
from teamscore.sql.record_queries import (
    FIND_NAME_MAPPINGS_QUERY,
    FIND_SCORING_CONFIG_QUERY,
    RENAME_OUTGOING_CALL_QUERY,
    SCHEMA_DDL,
    SET_ACTIVITY_ALTERNATIVE_NAME_QUERY,
    get_delete_month_queries,
    get_delete_record_query,
    get_find_records_query,
    get_insert_record_query,
    get_insert_scoring_config_query,
    get_months_with_data_query,
    get_update_scoring_config_query,
    record_params,
    scoring_config_params,
)

logger = logging.getLogger(__name__)


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg status string such as 'DELETE 3' or 'UPDATE 1'."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class PostgresRecordStore:
    """Record store backed by the asyncpg connection pool."""

    def __init__(self, pool: Pool):
        self._pool = pool

    async def create_schema(self) -> None:
        """Create the record tables if they do not exist."""
        async with self._pool.acquire() as conn:
            await conn.execute(SCHEMA_DDL)

    # =========================================================================
    # Reads
    # =========================================================================

    async def _find(self, kind: RecordKind, month: Optional[str], year: Optional[int]) -> List[dict]:
        query, params = get_find_records_query(kind, month, year)
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
        return [dict(row) for row in rows]

    async def find_activity_records(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[ActivityRecord]:
        rows = await self._find(RecordKind.ACTIVITY_LOG, month, year)
        return [ActivityRecord.model_validate(row) for row in rows]

    async def find_incoming_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[IncomingCallRecord]:
        rows = await self._find(RecordKind.INCOMING_CALLS, month, year)
        return [IncomingCallRecord.model_validate(row) for row in rows]

    async def find_outgoing_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[OutgoingCallRecord]:
        rows = await self._find(RecordKind.OUTGOING_CALLS, month, year)
        return [OutgoingCallRecord.model_validate(row) for row in rows]

    async def find_name_mappings(self) -> List[NameAliasMapping]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(FIND_NAME_MAPPINGS_QUERY)
        return [NameAliasMapping.model_validate(dict(row)) for row in rows]

    async def find_scoring_config(self) -> Optional[ScoringConfig]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(FIND_SCORING_CONFIG_QUERY)
        if row is None:
            return None
        return ScoringConfig.model_validate(dict(row))

    async def find_months_with_data(self, year: Optional[int] = None) -> List[str]:
        query, params = get_months_with_data_query(year)
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
        return [row["month_name"] for row in rows]

    # =========================================================================
    # Writes
    # =========================================================================

    async def update_scoring_config(self, config: ScoringConfig) -> ScoringConfig:
        params = scoring_config_params(config)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                current_id = await conn.fetchval("SELECT id FROM inputs ORDER BY created_at LIMIT 1")
                if current_id is None:
                    new_id = await conn.fetchval(get_insert_scoring_config_query(), *params)
                else:
                    new_id = await conn.fetchval(get_update_scoring_config_query(), current_id, *params)
        return config.model_copy(update={"id": new_id})

    async def _create(self, kind: RecordKind, record):
        query = get_insert_record_query(kind)
        async with self._pool.acquire() as conn:
            new_id = await conn.fetchval(query, *record_params(kind, record))
        return record.model_copy(update={"id": new_id})

    async def _create_many(self, kind: RecordKind, records: list) -> int:
        if not records:
            return 0
        query = get_insert_record_query(kind)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany(query, [record_params(kind, r) for r in records])
        return len(records)

    async def create_activity_record(self, record: ActivityRecord) -> ActivityRecord:
        return await self._create(RecordKind.ACTIVITY_LOG, record)

    async def create_incoming_call(self, record: IncomingCallRecord) -> IncomingCallRecord:
        return await self._create(RecordKind.INCOMING_CALLS, record)

    async def create_outgoing_call(self, record: OutgoingCallRecord) -> OutgoingCallRecord:
        return await self._create(RecordKind.OUTGOING_CALLS, record)

    async def create_many_activity_records(self, records: List[ActivityRecord]) -> int:
        return await self._create_many(RecordKind.ACTIVITY_LOG, records)

    async def create_many_incoming_calls(self, records: List[IncomingCallRecord]) -> int:
        return await self._create_many(RecordKind.INCOMING_CALLS, records)

    async def create_many_outgoing_calls(self, records: List[OutgoingCallRecord]) -> int:
        return await self._create_many(RecordKind.OUTGOING_CALLS, records)

    async def set_activity_alternative_name(self, record_id: str, alternative_name: str) -> None:
        async with self._pool.acquire() as conn:
            status = await conn.execute(SET_ACTIVITY_ALTERNATIVE_NAME_QUERY, record_id, alternative_name)
        if _affected_rows(status) == 0:
            raise RecordNotFoundError(f"Activity record {record_id} not found")

    async def rename_outgoing_call(self, record_id: str, new_name: str) -> None:
        async with self._pool.acquire() as conn:
            status = await conn.execute(RENAME_OUTGOING_CALL_QUERY, record_id, new_name)
        if _affected_rows(status) == 0:
            raise RecordNotFoundError(f"Outgoing call {record_id} not found")

    async def _delete(self, kind: RecordKind, record_id: str, label: str) -> None:
        async with self._pool.acquire() as conn:
            status = await conn.execute(get_delete_record_query(kind), record_id)
        if _affected_rows(status) == 0:
            raise RecordNotFoundError(f"{label} {record_id} not found")

    async def delete_activity_record(self, record_id: str) -> None:
        await self._delete(RecordKind.ACTIVITY_LOG, record_id, "Activity record")

    async def delete_incoming_call(self, record_id: str) -> None:
        await self._delete(RecordKind.INCOMING_CALLS, record_id, "Incoming call")

    async def delete_outgoing_call(self, record_id: str) -> None:
        await self._delete(RecordKind.OUTGOING_CALLS, record_id, "Outgoing call")

    async def delete_month_data(self, month: str, year: int) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                for name, query in get_delete_month_queries().items():
                    status = await conn.execute(query, month, year)
                    counts[name] = _affected_rows(status)
        return counts


__all__ = [
    "PostgresRecordStore",
]
