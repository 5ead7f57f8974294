"""
Entite RawCapture - Domain Layer
Snapshot brut et immuable d'un import. Permet de recalculer stress et zones
meme apres que l'agregateur a purge son propre historique.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import JSON, Column, Field, SQLModel

from loadbook.core.time_utils import utc_now


class RawCapture(SQLModel, table=True):
    """Capture brute par external_id (1:1 avec Workout).

    Remplacee uniquement en bloc par un nouvel import du meme id ; seul le champ route
    peut etre complete (backfill) sans remplacer le reste.
    """
    external_id: str = Field(primary_key=True, max_length=255)
    raw_modality_code: str
    start_time: datetime = Field(index=True)
    end_time: datetime

    # Series brutes serialisees : [{"timestamp": "...", "bpm": 145}, ...]
    hr_samples: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))
    # [{"timestamp": "...", "watts": 220}, ...]
    power_samples: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))

    raw_calories: Optional[int] = None
    raw_distance_meters: Optional[float] = None
    raw_steps: Optional[int] = None

    # [{"latitude": 55.1, "longitude": 12.4, "altitude": 10.5, "timestamp": "..."}, ...]
    route: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON))

    imported_at: datetime = Field(default_factory=utc_now)

    @property
    def has_route(self) -> bool:
        return bool(self.route)


class RawCaptureRead(SQLModel):
    """Schema pour lire une capture brute (reponse API, sans les series)"""
    external_id: str
    raw_modality_code: str
    start_time: datetime
    end_time: datetime
    raw_calories: Optional[int]
    raw_distance_meters: Optional[float]
    raw_steps: Optional[int]
    has_route: bool
    imported_at: datetime
