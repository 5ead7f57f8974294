"""
Routes des seances planifiees : CRUD, comparaison planifie/realise, conseil d'intensite.
Routes = validation + delegation au service. Pas de logique metier ici.
"""
import logging
from dataclasses import asdict
from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from loadbook.core.database import get_session
from loadbook.domain.entities import (
    DailyComparison,
    PlannedActivityCreate,
    PlannedActivityRead,
    PlannedActivityUpdate,
)
from loadbook.domain.services.planning_service import intensity_advice, planning_service
from loadbook.domain.services.training_load_service import compare_planned_vs_actual
from loadbook.domain.services.workout_store import WorkoutStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/plans", response_model=List[PlannedActivityRead])
async def list_plans(
    start: date,
    end: date,
    session: Session = Depends(get_session),
):
    """Seances planifiees sur une plage de dates"""
    return planning_service.list_plans(session, start, end)


@router.post("/plans", response_model=PlannedActivityRead, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_data: PlannedActivityCreate,
    session: Session = Depends(get_session),
):
    """Cree une seance planifiee"""
    return planning_service.create_plan(session, plan_data)


@router.get("/plans/comparison", response_model=List[DailyComparison])
async def compare_plans(
    start: date,
    end: date,
    session: Session = Depends(get_session),
):
    """Stress et minutes planifies vs realises, jour par jour"""
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end doit etre >= start")
    workouts = WorkoutStore(session).list_workouts(start, end)
    plans = planning_service.list_plans(session, start, end)
    return compare_planned_vs_actual(workouts, plans, start, end)


@router.put("/plans/{plan_id}", response_model=PlannedActivityRead)
async def update_plan(
    plan_id: UUID,
    plan_updates: PlannedActivityUpdate,
    session: Session = Depends(get_session),
):
    """Met a jour une seance planifiee"""
    try:
        return planning_service.update_plan(session, plan_id, plan_updates)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planned activity not found")


@router.delete("/plans/{plan_id}")
async def delete_plan(
    plan_id: UUID,
    session: Session = Depends(get_session),
):
    """Supprime une seance planifiee"""
    try:
        planning_service.delete_plan(session, plan_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planned activity not found")
    return {"message": "Seance planifiee supprimee"}


@router.get("/plans/{plan_id}/intensity")
async def get_plan_intensity(
    plan_id: UUID,
    session: Session = Depends(get_session),
):
    """IF implicite de la seance planifiee et zone cible"""
    try:
        plan = planning_service.get_plan(session, plan_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Planned activity not found")
    return asdict(intensity_advice(plan.planned_stress, plan.planned_duration_minutes))
