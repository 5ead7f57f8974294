"""
Routes donnees : suppression totale des seances importees.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from loadbook.core.database import get_session
from loadbook.domain.services.workout_store import WorkoutStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete("/data")
async def delete_all_data(session: Session = Depends(get_session)):
    """Supprime toutes les seances et captures brutes (les plans et le profil sont conserves)"""
    try:
        return WorkoutStore(session).clear_all()
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Erreur lors de la suppression des donnees: {str(e)}"
        )
