"""
Routes de synchronisation : import d'un lot de seances externes, retraitement.
Routes = validation + delegation au service. Pas de logique metier ici.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from loadbook.domain.entities import ExternalSession
from loadbook.domain.errors import ReconciliationError
from loadbook.domain.services.reconciliation_service import (
    ImportSummary,
    ReconciliationService,
    ReprocessSummary,
)
from loadbook.api.routers._shared import (
    get_reconciliation_service,
    reconciliation_http_error,
    run_blocking,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class ImportRequest(BaseModel):
    """Lot de seances livre par l'agregateur."""
    sessions: List[ExternalSession] = Field(default_factory=list)
    replace_existing: bool = False


@router.post("/sync/import", response_model=ImportSummary)
async def import_sessions(
    payload: ImportRequest,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Importe un lot de seances externes (idempotent sur external_id)"""
    try:
        return await run_blocking(
            service.import_batch, payload.sessions, replace_existing=payload.replace_existing
        )
    except ReconciliationError as e:
        raise reconciliation_http_error(e)


@router.post("/sync/reprocess", response_model=ReprocessSummary)
async def reprocess_workouts(
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Recalcule toutes les seances depuis les captures brutes avec le profil courant"""
    try:
        return await run_blocking(service.reprocess_all)
    except ReconciliationError as e:
        raise reconciliation_http_error(e)
