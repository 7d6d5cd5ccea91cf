"""
Record store abstraction for the scorecard backend.

Scoring services never talk to PostgreSQL directly: they receive a
``RecordStore`` constructed once per process and passed in by the caller
(FastAPI dependency in the API layer, fixture in tests). Two implementations
exist:

- ``PostgresRecordStore`` (teamscore.core.repository): asyncpg pool backed.
- ``InMemoryRecordStore`` (this module): list backed, for tests and local runs.

All record reads accept optional ``month``/``year`` filters and return rows in
insertion order; name mappings come back newest first. Records can be removed
one at a time by id or a whole month at once. The scoring configuration
is a single slot: ``find_scoring_config`` returns the current row or None and
``update_scoring_config`` replaces it.
"""

import logging
import uuid
from typing import Dict, Iterable, List, Optional, Protocol, TypeVar

from pydantic import BaseModel

from teamscore.models.schemas import (
    ActivityRecord,
    IncomingCallRecord,
    NameAliasMapping,
    OutgoingCallRecord,
    ScoringConfig,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordNotFoundError(LookupError):
    """Raised when an update targets a record id that does not exist."""


class RecordStore(Protocol):
    """Async persistence operations consumed by the scoring and ingestion services."""

    # Reads

    async def find_activity_records(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[ActivityRecord]: ...

    async def find_incoming_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[IncomingCallRecord]: ...

    async def find_outgoing_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[OutgoingCallRecord]: ...

    async def find_name_mappings(self) -> List[NameAliasMapping]: ...

    async def find_scoring_config(self) -> Optional[ScoringConfig]: ...

    async def find_months_with_data(self, year: Optional[int] = None) -> List[str]: ...

    # Writes

    async def update_scoring_config(self, config: ScoringConfig) -> ScoringConfig: ...

    async def create_activity_record(self, record: ActivityRecord) -> ActivityRecord: ...

    async def create_incoming_call(self, record: IncomingCallRecord) -> IncomingCallRecord: ...

    async def create_outgoing_call(self, record: OutgoingCallRecord) -> OutgoingCallRecord: ...

    async def create_many_activity_records(self, records: List[ActivityRecord]) -> int: ...

    async def create_many_incoming_calls(self, records: List[IncomingCallRecord]) -> int: ...

    async def create_many_outgoing_calls(self, records: List[OutgoingCallRecord]) -> int: ...

    async def set_activity_alternative_name(self, record_id: str, alternative_name: str) -> None: ...

    async def rename_outgoing_call(self, record_id: str, new_name: str) -> None: ...

    async def delete_activity_record(self, record_id: str) -> None: ...

    async def delete_incoming_call(self, record_id: str) -> None: ...

    async def delete_outgoing_call(self, record_id: str) -> None: ...

    async def delete_month_data(self, month: str, year: int) -> Dict[str, int]: ...


def _matches(record: BaseModel, month: Optional[str], year: Optional[int]) -> bool:
    if month is not None and getattr(record, "month_name") != month:
        return False
    if year is not None and getattr(record, "year") != year:
        return False
    return True


class InMemoryRecordStore:
    """
    List-backed ``RecordStore``.

    Records are copied on the way in and on the way out so callers cannot
    mutate stored state through returned models. Query results preserve
    insertion order, like an unordered ``SELECT`` on a fresh table.
    """

    def __init__(
        self,
        activity_records: Iterable[ActivityRecord] = (),
        incoming_calls: Iterable[IncomingCallRecord] = (),
        outgoing_calls: Iterable[OutgoingCallRecord] = (),
        name_mappings: Iterable[NameAliasMapping] = (),
        scoring_config: Optional[ScoringConfig] = None,
    ):
        self._activity: List[ActivityRecord] = [self._with_id(r) for r in activity_records]
        self._incoming: List[IncomingCallRecord] = [self._with_id(r) for r in incoming_calls]
        self._outgoing: List[OutgoingCallRecord] = [self._with_id(r) for r in outgoing_calls]
        self._mappings: List[NameAliasMapping] = [self._with_id(m) for m in name_mappings]
        self._config: Optional[ScoringConfig] = (
            scoring_config.model_copy() if scoring_config is not None else None
        )

    @staticmethod
    def _with_id(record: RecordT) -> RecordT:
        if getattr(record, "id", None):
            return record.model_copy()
        return record.model_copy(update={"id": uuid.uuid4().hex})

    @staticmethod
    def _select(records: List[RecordT], month: Optional[str], year: Optional[int]) -> List[RecordT]:
        return [r.model_copy() for r in records if _matches(r, month, year)]

    # =========================================================================
    # Reads
    # =========================================================================

    async def find_activity_records(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[ActivityRecord]:
        return self._select(self._activity, month, year)

    async def find_incoming_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[IncomingCallRecord]:
        return self._select(self._incoming, month, year)

    async def find_outgoing_calls(
        self, month: Optional[str] = None, year: Optional[int] = None
    ) -> List[OutgoingCallRecord]:
        return self._select(self._outgoing, month, year)

    async def find_name_mappings(self) -> List[NameAliasMapping]:
        # Newest first, like the PostgreSQL store
        return [m.model_copy() for m in reversed(self._mappings)]

    async def find_scoring_config(self) -> Optional[ScoringConfig]:
        return self._config.model_copy() if self._config is not None else None

    async def find_months_with_data(self, year: Optional[int] = None) -> List[str]:
        months = set()
        for table in (self._activity, self._incoming, self._outgoing):
            months.update(r.month_name for r in table if _matches(r, None, year))
        return sorted(months)

    # =========================================================================
    # Writes
    # =========================================================================

    async def update_scoring_config(self, config: ScoringConfig) -> ScoringConfig:
        current_id = self._config.id if self._config is not None else None
        self._config = config.model_copy(update={"id": current_id or config.id or uuid.uuid4().hex})
        return self._config.model_copy()

    async def create_activity_record(self, record: ActivityRecord) -> ActivityRecord:
        stored = self._with_id(record)
        self._activity.append(stored)
        return stored.model_copy()

    async def create_incoming_call(self, record: IncomingCallRecord) -> IncomingCallRecord:
        stored = self._with_id(record)
        self._incoming.append(stored)
        return stored.model_copy()

    async def create_outgoing_call(self, record: OutgoingCallRecord) -> OutgoingCallRecord:
        stored = self._with_id(record)
        self._outgoing.append(stored)
        return stored.model_copy()

    async def create_many_activity_records(self, records: List[ActivityRecord]) -> int:
        self._activity.extend(self._with_id(r) for r in records)
        return len(records)

    async def create_many_incoming_calls(self, records: List[IncomingCallRecord]) -> int:
        self._incoming.extend(self._with_id(r) for r in records)
        return len(records)

    async def create_many_outgoing_calls(self, records: List[OutgoingCallRecord]) -> int:
        self._outgoing.extend(self._with_id(r) for r in records)
        return len(records)

    async def set_activity_alternative_name(self, record_id: str, alternative_name: str) -> None:
        for index, record in enumerate(self._activity):
            if record.id == record_id:
                self._activity[index] = record.model_copy(
                    update={"alternative_names": alternative_name}
                )
                return
        raise RecordNotFoundError(f"Activity record {record_id} not found")

    async def rename_outgoing_call(self, record_id: str, new_name: str) -> None:
        for index, record in enumerate(self._outgoing):
            if record.id == record_id:
                self._outgoing[index] = record.model_copy(update={"person_name": new_name})
                return
        raise RecordNotFoundError(f"Outgoing call {record_id} not found")

    @staticmethod
    def _remove(records: List[RecordT], record_id: str, label: str) -> None:
        for index, record in enumerate(records):
            if record.id == record_id:
                del records[index]
                return
        raise RecordNotFoundError(f"{label} {record_id} not found")

    async def delete_activity_record(self, record_id: str) -> None:
        self._remove(self._activity, record_id, "Activity record")

    async def delete_incoming_call(self, record_id: str) -> None:
        self._remove(self._incoming, record_id, "Incoming call")

    async def delete_outgoing_call(self, record_id: str) -> None:
        self._remove(self._outgoing, record_id, "Outgoing call")

    async def delete_month_data(self, month: str, year: int) -> Dict[str, int]:
        # Build all three replacement tables before swapping any of them in
        activity = [r for r in self._activity if not _matches(r, month, year)]
        incoming = [r for r in self._incoming if not _matches(r, month, year)]
        outgoing = [r for r in self._outgoing if not _matches(r, month, year)]

        counts = {
            "activity_logs": len(self._activity) - len(activity),
            "incoming_calls": len(self._incoming) - len(incoming),
            "outgoing_calls": len(self._outgoing) - len(outgoing),
        }
        self._activity, self._incoming, self._outgoing = activity, incoming, outgoing
        return counts


__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "RecordNotFoundError",
]
