"""
Routes des seances realisees : lecture par plage de dates.
Routes = validation + delegation au store. Pas de logique metier ici.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from loadbook.core.database import get_session
from loadbook.domain.entities import Modality, RawCaptureRead, WorkoutRead
from loadbook.domain.services.workout_store import WorkoutStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/workouts", response_model=List[WorkoutRead])
async def list_workouts(
    start: Optional[date] = None,
    end: Optional[date] = None,
    modality: Optional[Modality] = None,
    session: Session = Depends(get_session),
):
    """Liste les seances importees, triees par date"""
    return WorkoutStore(session).list_workouts(start, end, modality)


@router.get("/workouts/{external_id}", response_model=WorkoutRead)
async def get_workout(
    external_id: str,
    session: Session = Depends(get_session),
):
    """Recupere une seance par son identifiant externe"""
    workout = WorkoutStore(session).get_workout(external_id)
    if not workout:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Workout not found")
    return workout


@router.get("/workouts/{external_id}/raw", response_model=RawCaptureRead)
async def get_raw_capture(
    external_id: str,
    session: Session = Depends(get_session),
):
    """Metadonnees de la capture brute d'une seance"""
    capture = WorkoutStore(session).get_raw_capture(external_id)
    if not capture:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Raw capture not found")
    return RawCaptureRead(
        external_id=capture.external_id,
        raw_modality_code=capture.raw_modality_code,
        start_time=capture.start_time,
        end_time=capture.end_time,
        raw_calories=capture.raw_calories,
        raw_distance_meters=capture.raw_distance_meters,
        raw_steps=capture.raw_steps,
        has_route=capture.has_route,
        imported_at=capture.imported_at,
    )
