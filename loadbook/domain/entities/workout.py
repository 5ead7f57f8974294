"""
Entite Workout - Domain Layer
Represente une seance realisee, importee depuis l'agregateur externe (vs PlannedActivity qui est planifiee)
"""
from datetime import date as date_type, datetime
from enum import Enum
from typing import Dict, Optional

from sqlmodel import JSON, Column, Field, SQLModel

from loadbook.core.time_utils import utc_now


class Modality(str, Enum):
    """Modalites d'entrainement supportees"""
    RUN = "run"
    BIKE = "bike"
    SWIM = "swim"
    STRENGTH = "strength"
    OTHER = "other"


class WorkoutBase(SQLModel):
    """Modele de base pour Workout"""
    date: date_type = Field(index=True)
    modality: Modality
    duration_minutes: int
    avg_heart_rate: Optional[int] = None
    calories: Optional[int] = None
    distance_meters: Optional[float] = None
    avg_speed_kmh: Optional[float] = None
    avg_power_watts: Optional[int] = None
    steps: Optional[int] = None
    stress_score: Optional[float] = None


class Workout(WorkoutBase, table=True):
    """Entite Workout complete pour la base de donnees.

    external_id est la seule cle d'identite : un second import du meme id remplace, ne duplique jamais.
    """
    external_id: str = Field(primary_key=True, max_length=255)

    # Distributions temps-en-zone (label de zone -> secondes)
    hr_zone_distribution: Optional[Dict[str, int]] = Field(default=None, sa_column=Column(JSON))
    power_zone_distribution: Optional[Dict[str, int]] = Field(default=None, sa_column=Column(JSON))

    updated_at: datetime = Field(default_factory=utc_now)


class WorkoutRead(WorkoutBase):
    """Schema pour lire une seance (reponse API)"""
    external_id: str
    hr_zone_distribution: Optional[Dict[str, int]] = None
    power_zone_distribution: Optional[Dict[str, int]] = None
    updated_at: datetime
