"""
Application FastAPI principale pour loadbook
Point d'entree de l'API : charge d'entrainement et reconciliation des seances
"""
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from loadbook.api.routers import router
from loadbook.core.database import Database
from loadbook.core.log_config import configure_logging
from loadbook.core.redis import check_redis_health
from loadbook.core.settings import get_settings
from loadbook.domain.errors import LoadbookError, ReconciliationInProgressError

settings = get_settings()

# Initialiser Sentry (uniquement si SENTRY_DSN est configure)
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )

configure_logging(settings)

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestionnaire de cycle de vie : ouvre le store au demarrage, le ferme a l'arret"""
    logger.info(f"Demarrage de loadbook API v{APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    # Un handle deja attache (tests) est reutilise et n'est pas ferme ici
    owned = getattr(app.state, "database", None) is None
    if owned:
        app.state.database = Database(settings.DATABASE_URL, echo=settings.DEBUG).open()
    logger.info("Base de donnees initialisee")

    if settings.REDIS_URL:
        if check_redis_health():
            logger.info("Redis connecte (verrou de reconciliation partage)")
        else:
            logger.warning("Redis non disponible, verrou de reconciliation local au process")

    yield

    if owned:
        app.state.database.close()
        app.state.database = None
    logger.info("Arret de loadbook API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="loadbook API",
        description="Charge d'entrainement (CTL/ATL/TSB) et reconciliation des seances importees",
        version=APP_VERSION,
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Point de sante de l'API"""
        database = getattr(app.state, "database", None)
        db_ok = database is not None and database.is_open
        redis_configured = bool(settings.REDIS_URL)
        redis_ok = check_redis_health() if redis_configured else False
        status = "healthy" if db_ok and (redis_ok or not redis_configured) else "degraded"
        return JSONResponse(
            content={
                "status": status,
                "version": APP_VERSION,
                "environment": settings.ENVIRONMENT,
                "services": {
                    "database": "open" if db_ok else "closed",
                    "redis": ("connected" if redis_ok else "disconnected") if redis_configured else "disabled",
                },
            }
        )

    @app.exception_handler(ReconciliationInProgressError)
    async def reconciliation_in_progress_handler(request: Request, exc: ReconciliationInProgressError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(LoadbookError)
    async def domain_exception_handler(request: Request, exc: LoadbookError):
        logger.error(f"Erreur du domaine: {type(exc).__name__}: {str(exc)}")
        return JSONResponse(status_code=500, content={"detail": str(exc), "type": type(exc).__name__})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc):
        """Gestionnaire global des exceptions"""
        logger.error(f"Erreur non geree: {type(exc).__name__}: {str(exc)}", exc_info=True)
        if settings.DEBUG:
            content = {
                "detail": "Erreur interne du serveur",
                "type": type(exc).__name__,
                "message": str(exc),
            }
        else:
            content = {
                "detail": "Erreur interne du serveur",
                "message": "Une erreur s'est produite",
            }
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()


def main() -> None:
    import uvicorn
    logger.info("Lancement de l'application sur le port 8000")
    uvicorn.run(
        "loadbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
