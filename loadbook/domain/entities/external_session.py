"""
Schemas d'entree depuis l'agregateur externe - Domain Layer
Forme des donnees produites par la source (son API reste une boite noire).
Tous les instants sont ramenes en UTC naif a la validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from loadbook.core.time_utils import to_naive_utc


class HeartRateSample(BaseModel):
    """Echantillon de frequence cardiaque."""
    timestamp: datetime
    bpm: int = Field(ge=0)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class PowerSample(BaseModel):
    """Echantillon de puissance."""
    timestamp: datetime
    watts: int = Field(ge=0)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class RoutePoint(BaseModel):
    """Point GPS d'un parcours."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    altitude: Optional[float] = None
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class ExternalSession(BaseModel):
    """Seance telle que livree par l'agregateur externe."""
    external_id: str = Field(min_length=1)
    modality_code: str
    start_time: datetime
    end_time: datetime
    hr_samples: List[HeartRateSample] = Field(default_factory=list)
    power_samples: List[PowerSample] = Field(default_factory=list)
    calories: Optional[int] = None
    distance_meters: Optional[float] = None
    steps: Optional[int] = None
    route: List[RoutePoint] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_times(cls, value: datetime) -> datetime:
        # Une seance peut melanger instants avec et sans fuseau
        return to_naive_utc(value)

    @model_validator(mode="after")
    def _check_times(self) -> "ExternalSession":
        if self.end_time < self.start_time:
            raise ValueError("end_time anterieur a start_time")
        return self

    @property
    def has_route(self) -> bool:
        return bool(self.route)
