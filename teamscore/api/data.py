"""
FastAPI router for record data maintenance.

Implements:
- GET    /data/months                     months of a year that hold data
- DELETE /data/months/{month}             delete a month from all record tables
- POST   /data/uploads/{kind}             spreadsheet upload for one record table
- POST   /data/activity-logs              single activity log entry
- POST   /data/alternative-names          set alternative names on activity logs
- PUT    /data/outgoing-calls/names       rename outgoing call records
- GET    /data/records/{kind}             stored rows of one record table, newest first
- DELETE /data/records/{kind}/{id}        delete one record
- GET    /data/alternative-names          name alias pairs

Invalid requests are rejected with 400, unknown record ids with 404; store
failures surface as 500.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel, Field

from teamscore.core.dependencies import StoreDep
from teamscore.models.enums import RecordKind
from teamscore.models.schemas import MonthsResult, OperationResult, RecordListResult, UploadResult
from teamscore.services.ingestion import (
    RECORD_NOT_FOUND_MESSAGE,
    add_activity_log,
    delete_month,
    delete_record,
    get_months_with_data,
    list_alternative_names,
    list_records,
    rename_outgoing_calls,
    set_alternative_names,
    upload_records,
)


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Requests
# =============================================================================

class UploadRequest(BaseModel):
    """Rows parsed from an uploaded spreadsheet."""
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Raw spreadsheet rows")


class AlternativeNameRequest(BaseModel):
    ids: List[str] = Field(default_factory=list, description="Activity log ids")
    alternativeName: str = Field(default="", description="Alternative name to set")


class RenameRequest(BaseModel):
    ids: List[str] = Field(default_factory=list, description="Outgoing call ids")
    newName: str = Field(default="", description="New person name")


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


@router.get("/months", response_model=MonthsResult)
async def list_months(
    store: StoreDep,
    year: Optional[int] = Query(default=None, description="Calendar year"),
) -> MonthsResult:
    result = await get_months_with_data(store, year if year is not None else datetime.now().year)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.delete("/months/{month}", response_model=OperationResult)
async def remove_month(
    month: str,
    store: StoreDep,
    year: int = Query(..., description="Calendar year"),
) -> OperationResult:
    """Delete a month of data from activity logs, incoming and outgoing calls at once."""
    if not month.strip():
        raise HTTPException(status_code=400, detail="Month name is required")
    result = await delete_month(store, month, year)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.post("/uploads/{kind}", response_model=UploadResult)
async def upload(
    kind: RecordKind,
    store: StoreDep,
    request: UploadRequest = Body(...),
) -> UploadResult:
    """
    Insert uploaded rows in batches.

    Rows without a name and rows whose insert failed are counted in
    ``failed``; the request still succeeds.
    """
    result = await upload_records(store, kind, request.rows)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return result


@router.post("/activity-logs", response_model=OperationResult)
async def create_activity_log(
    store: StoreDep,
    payload: Dict[str, Any] = Body(...),
) -> OperationResult:
    result = await add_activity_log(store, payload)
    if not result.success:
        status_code = 400 if result.data and "errors" in result.data else 500
        raise HTTPException(status_code=status_code, detail=result.message)
    return result


@router.post("/alternative-names", response_model=OperationResult)
async def update_alternative_names(
    store: StoreDep,
    request: AlternativeNameRequest = Body(...),
) -> OperationResult:
    if not request.ids:
        raise HTTPException(status_code=400, detail="No valid IDs provided")
    result = await set_alternative_names(store, request.ids, request.alternativeName)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.put("/outgoing-calls/names", response_model=OperationResult)
async def rename_outgoing(
    store: StoreDep,
    request: RenameRequest = Body(...),
) -> OperationResult:
    if not request.ids:
        raise HTTPException(status_code=400, detail="Invalid or missing IDs")
    if not request.newName.strip():
        raise HTTPException(status_code=400, detail="Invalid or missing new name")
    return await rename_outgoing_calls(store, request.ids, request.newName)


@router.get("/records/{kind}", response_model=RecordListResult)
async def list_stored_records(
    kind: RecordKind,
    store: StoreDep,
    month: Optional[str] = Query(default=None, description="Month name filter"),
    year: Optional[int] = Query(default=None, description="Calendar year filter"),
    limit: Optional[int] = Query(default=None, ge=1, description="Newest rows to return"),
) -> RecordListResult:
    result = await list_records(store, kind, month, year, limit)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.delete("/records/{kind}/{record_id}", response_model=OperationResult)
async def remove_record(
    kind: RecordKind,
    record_id: str,
    store: StoreDep,
) -> OperationResult:
    """Delete one activity log, incoming call or outgoing call row."""
    if not record_id.strip():
        raise HTTPException(status_code=400, detail="Record id is required")
    result = await delete_record(store, kind, record_id)
    if not result.success:
        status_code = 404 if result.message == RECORD_NOT_FOUND_MESSAGE else 500
        raise HTTPException(status_code=status_code, detail=result.message)
    return result


@router.get("/alternative-names", response_model=RecordListResult)
async def alternative_names(store: StoreDep) -> RecordListResult:
    result = await list_alternative_names(store)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result
