"""
Service des seances planifiees : CRUD et conseil d'intensite.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date as date_type
from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, select

from loadbook.core.time_utils import utc_now
from loadbook.domain.entities.planned_activity import (
    PlannedActivity,
    PlannedActivityCreate,
    PlannedActivityUpdate,
)

logger = logging.getLogger(__name__)

# Au-dela, l'intensite demandee n'est pas tenable sur la duree prevue
MAX_REALISTIC_IF = 1.15
ENDURANCE_IF_CEILING = 0.75
TEMPO_IF_CEILING = 0.85


@dataclass(frozen=True)
class IntensityAdvice:
    intensity_factor: float
    zone_label: str
    is_realistic: bool
    warning: Optional[str] = None


def intensity_advice(planned_stress: float, duration_minutes: int) -> IntensityAdvice:
    """IF implicite d'une seance planifiee : sqrt(stress * 60 / (minutes * 100))."""
    if duration_minutes <= 0:
        return IntensityAdvice(0.0, "N/A", True, "Duree invalide")

    intensity_factor = math.sqrt((planned_stress * 60.0) / (duration_minutes * 100.0))
    is_realistic = intensity_factor <= MAX_REALISTIC_IF

    if intensity_factor < ENDURANCE_IF_CEILING:
        zone_label = "Steady / Endurance"
    elif intensity_factor <= TEMPO_IF_CEILING:
        zone_label = "Tempo / Sweet Spot"
    else:
        zone_label = "Interval Focus"

    return IntensityAdvice(
        intensity_factor=round(intensity_factor, 3),
        zone_label=zone_label,
        is_realistic=is_realistic,
        warning=None if is_realistic else "Intensite trop elevee pour la duree",
    )


class PlanningService:

    def list_plans(
        self, session: Session, start: date_type, end: date_type
    ) -> List[PlannedActivity]:
        return list(session.exec(
            select(PlannedActivity)
            .where(PlannedActivity.date >= start, PlannedActivity.date <= end)
            .order_by(PlannedActivity.date)
        ).all())

    def get_plan(self, session: Session, plan_id: UUID) -> PlannedActivity:
        plan = session.get(PlannedActivity, plan_id)
        if not plan:
            raise ValueError("Seance planifiee non trouvee")
        return plan

    def create_plan(self, session: Session, data: PlannedActivityCreate) -> PlannedActivity:
        plan = PlannedActivity(**data.model_dump())
        session.add(plan)
        session.commit()
        session.refresh(plan)
        logger.info(f"Seance planifiee creee: {plan.id} ({plan.modality} le {plan.date})")
        return plan

    def update_plan(
        self, session: Session, plan_id: UUID, data: PlannedActivityUpdate
    ) -> PlannedActivity:
        plan = self.get_plan(session, plan_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(plan, key, value)
        plan.updated_at = utc_now()
        session.add(plan)
        session.commit()
        session.refresh(plan)
        return plan

    def delete_plan(self, session: Session, plan_id: UUID) -> None:
        plan = self.get_plan(session, plan_id)
        session.delete(plan)
        session.commit()


planning_service = PlanningService()
