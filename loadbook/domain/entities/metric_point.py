"""
Valeurs derivees du modele de charge - Domain Layer
Recalculees a la demande, jamais persistees.
"""
from datetime import date as date_type
from enum import Enum

from sqlmodel import SQLModel


class FormStatus(str, Enum):
    """Etat de forme derive du balance (TSB)"""
    FRESH = "fresh"
    OPTIMAL = "optimal"
    OVERREACHING = "overreaching"


class MetricPoint(SQLModel):
    """Charge chronique (CTL), aigue (ATL) et balance (TSB = CTL - ATL) pour une date."""
    date: date_type
    chronic_load: float = 0.0
    acute_load: float = 0.0
    balance: float = 0.0


class FormReading(SQLModel):
    """Point de charge accompagne de son etat de forme."""
    point: MetricPoint
    status: FormStatus


class DailyComparison(SQLModel):
    """Stress et volume planifies vs realises pour une journee."""
    date: date_type
    planned_stress: float = 0.0
    actual_stress: float = 0.0
    planned_minutes: int = 0
    actual_minutes: int = 0

    @property
    def stress_delta(self) -> float:
        return self.actual_stress - self.planned_stress
