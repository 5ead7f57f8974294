"""
Entite AthleteProfile - Domain Layer
Seuils physiologiques utilises exclusivement par le scoring de stress.
Table a une seule ligne : un seul profil existe a la fois.
"""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from loadbook.core.time_utils import utc_now

PROFILE_ROW_ID = 1


class AthleteProfileBase(SQLModel):
    """Seuils par modalite. Un seuil absent desactive le scoring qui en depend."""
    # Functional Threshold Power velo (watts)
    ftp_watts: Optional[int] = Field(default=None, gt=0)
    # FC max (bpm)
    max_heart_rate: Optional[int] = Field(default=None, gt=0)
    # FC au seuil lactique course (bpm)
    lthr: Optional[int] = Field(default=None, gt=0)
    # Critical Swim Speed (secondes / 100 m)
    css_seconds_per_100m: Optional[int] = Field(default=None, gt=0)

    # Table de stress par defaut (par heure) pour les modalites sans modele d'intensite
    default_swim_stress_per_hour: Optional[float] = Field(default=60.0, ge=0)
    default_strength_heavy_stress_per_hour: Optional[float] = Field(default=60.0, ge=0)
    default_strength_light_stress_per_hour: Optional[float] = Field(default=40.0, ge=0)
    default_other_stress_per_hour: Optional[float] = Field(default=20.0, ge=0)


class AthleteProfile(AthleteProfileBase, table=True):
    """Entite AthleteProfile complete pour la base de donnees"""
    id: int = Field(default=PROFILE_ROW_ID, primary_key=True)
    updated_at: datetime = Field(default_factory=utc_now)


class AthleteProfileRead(AthleteProfileBase):
    """Schema pour lire le profil (reponse API)"""
    updated_at: Optional[datetime] = None


class AthleteProfileUpdate(AthleteProfileBase):
    """Schema pour remplacer le profil. Les champs omis reprennent leur valeur par defaut."""
    pass
