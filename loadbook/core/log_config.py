"""
Configuration du logging conditionnee par ENVIRONMENT.
JSON (python-json-logger) en production, texte + fichier tournant sinon.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional, TextIO

from pythonjsonlogger import jsonlogger

from loadbook.core.settings import Settings, get_settings

LOG_FILE = "loadbook.log"


def configure_logging(
    settings: Optional[Settings] = None,
    log_file: Optional[str] = LOG_FILE,
    stream: Optional[TextIO] = None,
) -> None:
    """Installe les handlers racine. Appele une fois par point d'entree (API, CLI)."""
    settings = settings or get_settings()
    is_prod = settings.ENVIRONMENT == "production"
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    if is_prod:
        handler.setFormatter(jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    handlers: List[logging.Handler] = [handler]
    if not is_prod and log_file:
        handlers.append(RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=3))

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # En production, reduire le bruit des modules tiers
    if is_prod:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
