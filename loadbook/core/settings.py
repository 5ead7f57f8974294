"""
Configuration centralisee pour loadbook
Utilise pydantic-settings pour la gestion des variables d'environnement
"""
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration de l'application"""

    # Database
    DATABASE_URL: str = Field(
        default="sqlite:///./loadbook.db",
        description="URL de la base de donnees (SQLite en local, PostgreSQL en production)"
    )

    # Redis (verrou de reconciliation partage entre process)
    REDIS_URL: str = Field(
        default="",
        description="URL Redis pour le verrou de sync (vide = verrou local au process)"
    )
    SYNC_LOCK_TIMEOUT_S: int = Field(
        default=600,
        description="Duree max d'un verrou de reconciliation avant expiration (secondes)"
    )
    SYNC_DAYS_BACK: int = Field(
        default=30,
        description="Fenetre par defaut de recuperation des seances externes (jours)"
    )
    LARGE_CAPTURE_WARNING_BYTES: int = Field(
        default=100_000,
        description="Taille JSON au-dela de laquelle une capture brute est signalee dans les logs"
    )

    # Modele de charge (Banister)
    CHRONIC_TIME_CONSTANT: float = Field(default=42.0)
    ACUTE_TIME_CONSTANT: float = Field(default=7.0)
    FORM_FRESH_THRESHOLD: float = Field(default=5.0)
    FORM_OVERREACHING_THRESHOLD: float = Field(default=-30.0)
    LOAD_LOOKBACK_DAYS: Optional[int] = Field(
        default=None,
        description="Horizon max de remontee pour le calcul de charge (None = tout l'historique)"
    )

    # Monitoring (Sentry)
    SENTRY_DSN: str = Field(
        default="",
        description="DSN Sentry pour le error tracking (vide = Sentry desactive)"
    )

    # Application
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(
        default="",
        description="Niveau de logging (auto-configure selon ENVIRONMENT si vide)"
    )

    @model_validator(mode="after")
    def _configure_environment(self) -> "Settings":
        """Configure DEBUG et LOG_LEVEL selon ENVIRONMENT."""
        is_prod = self.ENVIRONMENT == "production"
        # En production, forcer DEBUG=False
        if is_prod:
            self.DEBUG = False
        if not self.LOG_LEVEL:
            self.LOG_LEVEL = "WARNING" if is_prod else "INFO"
        return self

    @model_validator(mode="after")
    def _check_load_model(self) -> "Settings":
        """Refuse des constantes de temps ou des seuils de forme incoherents."""
        if self.CHRONIC_TIME_CONSTANT < 1 or self.ACUTE_TIME_CONSTANT < 1:
            raise ValueError("Les constantes de temps doivent etre >= 1 jour")
        if self.FORM_OVERREACHING_THRESHOLD >= self.FORM_FRESH_THRESHOLD:
            raise ValueError("FORM_OVERREACHING_THRESHOLD doit etre < FORM_FRESH_THRESHOLD")
        return self

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def get_settings() -> Settings:
    """Recupere la configuration"""
    return Settings()
