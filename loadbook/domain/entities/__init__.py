"""
Initialisation des entites du domaine
Importe les modeles pour enregistrer les tables dans la metadata SQLModel
"""

from .workout import Modality, Workout, WorkoutRead
from .raw_capture import RawCapture, RawCaptureRead
from .external_session import ExternalSession, HeartRateSample, PowerSample, RoutePoint
from .planned_activity import (
    Intensity,
    PlannedActivity,
    PlannedActivityCreate,
    PlannedActivityRead,
    PlannedActivityUpdate,
    StrengthFocus,
)
from .athlete_profile import AthleteProfile, AthleteProfileRead, AthleteProfileUpdate
from .metric_point import DailyComparison, FormReading, FormStatus, MetricPoint

__all__ = [
    "Modality", "Workout", "WorkoutRead",
    "RawCapture", "RawCaptureRead",
    "ExternalSession", "HeartRateSample", "PowerSample", "RoutePoint",
    "Intensity", "PlannedActivity", "PlannedActivityCreate", "PlannedActivityRead",
    "PlannedActivityUpdate", "StrengthFocus",
    "AthleteProfile", "AthleteProfileRead", "AthleteProfileUpdate",
    "DailyComparison", "FormReading", "FormStatus", "MetricPoint",
]
