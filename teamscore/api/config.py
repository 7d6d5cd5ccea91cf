"""
FastAPI router for the scoring configuration.

Implements GET/PUT /config, GET /config/weights and GET /config/matrices.
The configuration is a single row; PUT replaces it.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Query

from teamscore.core.dependencies import StoreDep
from teamscore.models.enums import Scope
from teamscore.models.schemas import OperationResult, ScoreMatrix, ScoreWeights
from teamscore.services.ingestion import (
    CONFIG_NOT_FOUND_MESSAGE,
    get_score_weights,
    get_scoring_config,
    update_scoring_config,
)
from teamscore.services.score_matrix import build_score_matrices


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("", response_model=OperationResult)
async def read_config(store: StoreDep) -> OperationResult:
    result = await get_scoring_config(store)
    if not result.success:
        status_code = 404 if result.message == CONFIG_NOT_FOUND_MESSAGE else 500
        raise HTTPException(status_code=status_code, detail=result.message)
    return result


@router.put("", response_model=OperationResult)
async def write_config(
    store: StoreDep,
    payload: Dict[str, Any] = Body(...),
) -> OperationResult:
    result = await update_scoring_config(store, payload)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result


@router.get("/weights", response_model=ScoreWeights)
async def read_weights(store: StoreDep) -> ScoreWeights:
    try:
        return await get_score_weights(store)
    except Exception as e:
        logger.exception("Error fetching score weights")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/matrices", response_model=Dict[str, Optional[ScoreMatrix]])
async def read_matrices(
    store: StoreDep,
    scope: Scope = Query(default=Scope.INDIVIDUAL, description="individual or team"),
) -> Dict[str, Optional[ScoreMatrix]]:
    """The four score matrices of a scope, as shown on the configuration screen."""
    try:
        config = await store.find_scoring_config()
    except Exception as e:
        logger.exception("Error fetching scoring configuration for matrices")
        raise HTTPException(status_code=500, detail=str(e))

    matrices = build_score_matrices(config, scope)
    return {metric.value: matrix for metric, matrix in matrices.items()}
