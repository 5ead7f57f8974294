"""
Store des seances importees et des captures brutes.
Tests d'existence, upserts a politique de fusion explicite, requetes par plage de dates.
"""
import logging
from contextlib import contextmanager
from datetime import date as date_type
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import delete, func
from sqlmodel import Session, select

from loadbook.core.time_utils import utc_now
from loadbook.domain.entities.athlete_profile import PROFILE_ROW_ID, AthleteProfile
from loadbook.domain.entities.raw_capture import RawCapture
from loadbook.domain.entities.workout import Modality, Workout

logger = logging.getLogger(__name__)


class MergePolicy(str, Enum):
    """Politique de fusion d'un enregistrement deja stocke."""
    # L'enregistrement entrant remplace integralement l'existant
    REPLACE_WHOLE_RECORD = "replace_whole_record"
    # Seul le parcours GPS de la capture brute est complete, le reste est intouche
    BACKFILL_ROUTE = "backfill_route"


class WorkoutStore:
    """Acces au stockage pour une session de base de donnees donnee."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator["WorkoutStore"]:
        """Transaction scopee : commit en sortie, rollback si exception.

        Workout et RawCapture ecrits dans le meme bloc deviennent visibles ensemble.
        """
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    # ---- RawCapture ----

    def get_raw_capture(self, external_id: str) -> Optional[RawCapture]:
        return self.session.get(RawCapture, external_id)

    def raw_capture_exists(self, external_id: str) -> bool:
        return self.get_raw_capture(external_id) is not None

    def list_raw_captures(self) -> List[RawCapture]:
        """Toutes les captures brutes, plus recentes d'abord."""
        return list(self.session.exec(
            select(RawCapture).order_by(RawCapture.start_time.desc())
        ).all())

    # ---- Workout ----

    def get_workout(self, external_id: str) -> Optional[Workout]:
        return self.session.get(Workout, external_id)

    def list_workouts(
        self,
        start: Optional[date_type] = None,
        end: Optional[date_type] = None,
        modality: Optional[Modality] = None,
    ) -> List[Workout]:
        """Seances triees par date croissante, bornes incluses."""
        query = select(Workout)
        if start is not None:
            query = query.where(Workout.date >= start)
        if end is not None:
            query = query.where(Workout.date <= end)
        if modality is not None:
            query = query.where(Workout.modality == modality)
        return list(self.session.exec(
            query.order_by(Workout.date, Workout.external_id)
        ).all())

    def count_workouts(self) -> int:
        return self.session.exec(select(func.count()).select_from(Workout)).one()

    # ---- Ecritures ----

    def upsert_raw_capture(
        self,
        capture: RawCapture,
        policy: MergePolicy = MergePolicy.REPLACE_WHOLE_RECORD,
    ) -> RawCapture:
        """Ecrit une capture brute selon la politique de fusion (sans commit)."""
        if policy == MergePolicy.BACKFILL_ROUTE:
            return self.backfill_route(capture.external_id, capture.route)
        return self.session.merge(capture)

    def upsert_workout(self, workout: Workout) -> Workout:
        """Remplace integralement la seance de meme external_id (sans commit)."""
        workout.updated_at = utc_now()
        return self.session.merge(workout)

    def backfill_route(
        self, external_id: str, route: Optional[List[Dict[str, Any]]]
    ) -> RawCapture:
        """Complete le parcours d'une capture qui n'en a pas. Ne touche a aucun autre champ."""
        existing = self.get_raw_capture(external_id)
        if existing is None:
            raise ValueError(f"Aucune capture brute pour {external_id}")
        if existing.has_route:
            raise ValueError(f"La capture {external_id} a deja un parcours")
        existing.route = route
        self.session.add(existing)
        return existing

    # ---- Profil athlete ----

    def load_profile(self) -> AthleteProfile:
        """Profil courant, ou profil par defaut (aucun seuil) s'il n'a jamais ete saisi."""
        profile = self.session.get(AthleteProfile, PROFILE_ROW_ID)
        return profile if profile is not None else AthleteProfile()

    def save_profile(self, data: Dict[str, Any]) -> AthleteProfile:
        profile = AthleteProfile(id=PROFILE_ROW_ID, updated_at=utc_now(), **data)
        with self.transaction():
            profile = self.session.merge(profile)
        self.session.refresh(profile)
        return profile

    # ---- Suppression (action utilisateur explicite) ----

    def clear_all(self) -> Dict[str, int]:
        """Supprime toutes les seances et captures brutes. Hors du chemin de reconciliation."""
        with self.transaction():
            workouts = self.session.exec(delete(Workout)).rowcount
            captures = self.session.exec(delete(RawCapture)).rowcount
        logger.warning(f"Suppression totale: {workouts} seances, {captures} captures brutes")
        return {"deleted_workouts": workouts, "deleted_raw_captures": captures}
