"""
Entite PlannedActivity - Domain Layer
Represente une seance planifiee (prevision) a comparer avec les Workout reels
"""
from datetime import date as date_type, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlmodel import Column, Field, SQLModel, String

from loadbook.core.time_utils import utc_now

from .workout import Modality


class StrengthFocus(str, Enum):
    """Groupe musculaire cible (seances de renforcement uniquement)"""
    FULL_BODY = "full_body"
    UPPER = "upper"
    LOWER = "lower"
    HEAVY = "heavy"
    STABILITY = "stability"


class Intensity(str, Enum):
    """Niveau d'intensite d'une seance de renforcement"""
    LIGHT = "light"
    HEAVY = "heavy"


class PlannedActivityBase(SQLModel):
    """Modele de base pour PlannedActivity"""
    date: date_type = Field(index=True)
    modality: Modality
    sub_type: Optional[str] = None  # ex. "Tempo Run", "Hill Repeats"
    planned_duration_minutes: int = Field(gt=0)
    planned_stress: float = Field(ge=0)
    strength_focus: Optional[StrengthFocus] = None
    intensity: Optional[Intensity] = None


class PlannedActivity(PlannedActivityBase, table=True):
    """Entite PlannedActivity complete pour la base de donnees"""
    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)

    # Colonnes TEXT pour eviter les problemes d'enum SQLAlchemy
    modality: Modality = Field(sa_column=Column("modality", String, nullable=False))
    strength_focus: Optional[StrengthFocus] = Field(
        default=None,
        sa_column=Column("strength_focus", String)
    )
    intensity: Optional[Intensity] = Field(default=None, sa_column=Column("intensity", String))

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class PlannedActivityCreate(PlannedActivityBase):
    """Schema pour creer une seance planifiee"""
    pass


class PlannedActivityRead(PlannedActivityBase):
    """Schema pour lire une seance planifiee (reponse API)"""
    id: UUID
    created_at: datetime


class PlannedActivityUpdate(SQLModel):
    """Schema pour mettre a jour une seance planifiee"""
    date: Optional[date_type] = None
    modality: Optional[Modality] = None
    sub_type: Optional[str] = None
    planned_duration_minutes: Optional[int] = Field(default=None, gt=0)
    planned_stress: Optional[float] = Field(default=None, ge=0)
    strength_focus: Optional[StrengthFocus] = None
    intensity: Optional[Intensity] = None

    @field_validator("date", "modality", "planned_duration_minutes", "planned_stress")
    @classmethod
    def _reject_null(cls, value):
        # Colonnes NOT NULL : absent = inchange, null explicite = refuse
        if value is None:
            raise ValueError("ce champ ne peut pas etre null")
        return value
