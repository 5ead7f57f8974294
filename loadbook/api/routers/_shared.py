"""
Utilitaires partages entre les routers API.
"""
import asyncio
import functools
import logging
from typing import Any, Callable, Dict

from fastapi import HTTPException, Request, status

from loadbook.core.database import get_database
from loadbook.core.settings import get_settings
from loadbook.domain.errors import ReconciliationInProgressError, ReconciliationWriteError
from loadbook.domain.services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


def load_model_options() -> Dict[str, Any]:
    """Parametres du modele de charge lus depuis la configuration."""
    settings = get_settings()
    return {
        "lookback_days": settings.LOAD_LOOKBACK_DAYS,
        "chronic_tc": settings.CHRONIC_TIME_CONSTANT,
        "acute_tc": settings.ACUTE_TIME_CONSTANT,
    }


def get_reconciliation_service(request: Request) -> ReconciliationService:
    """Dependance FastAPI : service de reconciliation sur le store de l'application."""
    return ReconciliationService(get_database(request))


async def run_blocking(func: Callable, *args, **kwargs):
    """Execute un appel bloquant (reconciliation, base) hors de la boucle d'evenements."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def reconciliation_http_error(exc: Exception) -> HTTPException:
    """Traduit une erreur de reconciliation en reponse HTTP."""
    if isinstance(exc, ReconciliationInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ReconciliationWriteError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": str(exc), "summary": exc.summary.model_dump()},
        )
    logger.error(f"Erreur de reconciliation inattendue: {exc}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
