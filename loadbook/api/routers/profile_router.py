"""
Routes du profil athlete (seuils utilises par le scoring).
"""
import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from loadbook.core.database import get_session
from loadbook.domain.entities import AthleteProfileRead, AthleteProfileUpdate
from loadbook.domain.services.workout_store import WorkoutStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile", response_model=AthleteProfileRead)
async def get_profile(session: Session = Depends(get_session)):
    """Profil courant (valeurs par defaut s'il n'a jamais ete saisi)"""
    return WorkoutStore(session).load_profile()


@router.put("/profile", response_model=AthleteProfileRead)
async def update_profile(
    payload: AthleteProfileUpdate,
    session: Session = Depends(get_session),
):
    """Remplace le profil. Les seances existantes gardent leur score jusqu'au retraitement."""
    profile = WorkoutStore(session).save_profile(payload.model_dump())
    logger.info("Profil athlete mis a jour")
    return profile
