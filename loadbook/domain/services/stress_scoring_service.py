"""
Scoring du stress d'entrainement (TSS-like) par modalite.

Chaque modalite a sa strategie, enregistree dans STRESS_SCORERS et remplacable.
Une strategie retourne un score >= 0, ou None quand la seance n'est pas scorable
(seuil du profil absent). Le calcul est deterministe : memes entrees, meme score,
ce qui garantit l'idempotence du retraitement depuis les captures brutes.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loadbook.domain.entities.athlete_profile import AthleteProfile
from loadbook.domain.entities.planned_activity import Intensity
from loadbook.domain.entities.workout import Modality

logger = logging.getLogger(__name__)

SCORE_PRECISION = 1


@dataclass(frozen=True)
class ScoringInput:
    """Lectures physiologiques d'une seance, independantes de la source."""
    modality: Modality
    duration_minutes: int
    avg_heart_rate: Optional[int] = None
    avg_power_watts: Optional[int] = None
    distance_meters: Optional[float] = None
    intensity: Optional[Intensity] = None

    @property
    def hours(self) -> float:
        return max(self.duration_minutes, 0) / 60.0


StressScorer = Callable[[ScoringInput, AthleteProfile], Optional[float]]


def hr_stress(hours: float, avg_hr: int, reference_hr: int) -> float:
    """hrTSS simplifie : heures * (FC moy / FC de reference)^2 * 100."""
    ratio = avg_hr / reference_hr
    return hours * ratio ** 2 * 100.0


def power_stress(hours: float, avg_power: int, ftp: int) -> float:
    """TSS puissance : heures * IF^2 * 100 avec IF = puissance moy / FTP."""
    intensity_factor = avg_power / ftp
    return hours * intensity_factor ** 2 * 100.0


def _hr_path(data: ScoringInput, profile: AthleteProfile, prefer_lthr: bool = False) -> Optional[float]:
    if not data.avg_heart_rate:
        return None
    if prefer_lthr and profile.lthr:
        return hr_stress(data.hours, data.avg_heart_rate, profile.lthr)
    if profile.max_heart_rate:
        return hr_stress(data.hours, data.avg_heart_rate, profile.max_heart_rate)
    return None


def score_bike(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Velo : puissance si FTP connue, sinon FC. Puissance seule sans FTP -> None."""
    if data.avg_power_watts and profile.ftp_watts:
        return power_stress(data.hours, data.avg_power_watts, profile.ftp_watts)
    return _hr_path(data, profile)


def score_run(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Course : FC rapportee au seuil lactique, sinon a la FC max."""
    return _hr_path(data, profile, prefer_lthr=True)


def score_swim(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Natation : sTSS (IF^3) si CSS et distance connues, sinon taux horaire par defaut."""
    if profile.css_seconds_per_100m and data.distance_meters and data.duration_minutes > 0:
        pace_per_100m = (data.duration_minutes * 60.0) / (data.distance_meters / 100.0)
        intensity_factor = profile.css_seconds_per_100m / pace_per_100m
        return data.hours * intensity_factor ** 3 * 100.0
    if profile.default_swim_stress_per_hour is not None:
        return data.hours * profile.default_swim_stress_per_hour
    return None


def score_strength(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Renforcement : pas de modele d'intensite, taux horaire configure par intensite."""
    if data.intensity == Intensity.LIGHT:
        rate = profile.default_strength_light_stress_per_hour
    else:
        rate = profile.default_strength_heavy_stress_per_hour
    if rate is None:
        return None
    return data.hours * rate


def score_other(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Autres activites (marche, rando...) : FC si dispo, sinon taux horaire bas."""
    hr_score = _hr_path(data, profile)
    if hr_score is not None:
        return hr_score
    if profile.default_other_stress_per_hour is not None:
        return data.hours * profile.default_other_stress_per_hour
    return None


STRESS_SCORERS: Dict[Modality, StressScorer] = {
    Modality.BIKE: score_bike,
    Modality.RUN: score_run,
    Modality.SWIM: score_swim,
    Modality.STRENGTH: score_strength,
    Modality.OTHER: score_other,
}


def register_scorer(modality: Modality, scorer: StressScorer) -> Optional[StressScorer]:
    """Remplace la strategie d'une modalite. Retourne l'ancienne."""
    previous = STRESS_SCORERS.get(modality)
    STRESS_SCORERS[modality] = scorer
    return previous


def score_workout(data: ScoringInput, profile: AthleteProfile) -> Optional[float]:
    """Score de stress d'une seance, ou None si non scorable.

    Une duree nulle donne 0.0 seulement si la strategie sait scorer la seance.
    """
    scorer = STRESS_SCORERS.get(data.modality)
    if scorer is None:
        logger.warning(f"Aucune strategie de scoring pour la modalite {data.modality}")
        return None
    score = scorer(data, profile)
    if score is None:
        logger.debug(f"Seance {data.modality.value} non scorable avec le profil courant")
        return None
    return round(max(score, 0.0), SCORE_PRECISION)
