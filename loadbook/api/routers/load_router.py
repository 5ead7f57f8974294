"""
Routes de charge d'entrainement : point du jour, timeline, etat de forme.
Routes = validation + delegation au moteur. Pas de logique metier ici.
"""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from loadbook.core.database import get_session
from loadbook.core.settings import get_settings
from loadbook.domain.entities import FormReading, MetricPoint
from loadbook.domain.services.training_load_service import (
    classify_form,
    compute_load,
    compute_timeline_async,
)
from loadbook.domain.services.workout_store import WorkoutStore
from loadbook.api.routers._shared import load_model_options

logger = logging.getLogger(__name__)

router = APIRouter()

# Au-dela, la timeline est refusee (une reponse par jour)
MAX_TIMELINE_DAYS = 3660


def _current_reading(session: Session, target: date) -> FormReading:
    settings = get_settings()
    workouts = WorkoutStore(session).list_workouts(end=target)
    point = compute_load(workouts, target, **load_model_options())
    return FormReading(
        point=point,
        status=classify_form(
            point.balance,
            fresh_threshold=settings.FORM_FRESH_THRESHOLD,
            overreaching_threshold=settings.FORM_OVERREACHING_THRESHOLD,
        ),
    )


@router.get("/load", response_model=MetricPoint)
async def get_load(
    target_date: Optional[date] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
):
    """CTL/ATL/TSB a une date (aujourd'hui par defaut)"""
    return _current_reading(session, target_date or date.today()).point


@router.get("/load/timeline", response_model=List[MetricPoint])
async def get_load_timeline(
    start: date,
    end: date,
    session: Session = Depends(get_session),
):
    """Un point par jour de start a end inclus"""
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end doit etre >= start")
    if (end - start).days + 1 > MAX_TIMELINE_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plage trop longue")
    workouts = WorkoutStore(session).list_workouts(end=end)
    return await compute_timeline_async(workouts, start, end, **load_model_options())


@router.get("/load/form", response_model=FormReading)
async def get_form(
    target_date: Optional[date] = Query(default=None, alias="date"),
    session: Session = Depends(get_session),
):
    """Etat de forme (fresh / optimal / overreaching) a une date"""
    return _current_reading(session, target_date or date.today())