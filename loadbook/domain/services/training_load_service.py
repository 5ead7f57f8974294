"""
Moteur de charge d'entrainement (modele de Banister).
CTL (EWMA 42j), ATL (EWMA 7j), TSB = CTL - ATL, et etat de forme derive du TSB.

Fonctions pures : aucune I/O, aucun etat mutable. Le calcul marche jour par jour,
les jours sans seance avancent la recurrence avec un stress nul.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import date as date_type, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from loadbook.domain.entities.metric_point import DailyComparison, FormStatus, MetricPoint
from loadbook.domain.entities.planned_activity import PlannedActivity
from loadbook.domain.entities.workout import Workout

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------
CHRONIC_TIME_CONSTANT = 42.0
ACUTE_TIME_CONSTANT = 7.0

# Seuils de forme sur le TSB
FRESH_THRESHOLD = 5.0
OVERREACHING_THRESHOLD = -30.0
# Bande optimale "classique" [-30, -10] ; ]-10, +5] reste OPTIMAL (pas de 4e etat)
OPTIMAL_BAND_UPPER = -10.0


def aggregate_daily_stress(workouts: Iterable[Workout]) -> Dict[date_type, float]:
    """Somme les scores de stress par date. Un score absent compte pour 0."""
    daily: Dict[date_type, float] = defaultdict(float)
    for workout in workouts:
        daily[workout.date] += workout.stress_score or 0.0
    return dict(daily)


def _walk_start(
    daily: Dict[date_type, float], target_date: date_type, lookback_days: Optional[int]
) -> Optional[date_type]:
    """Premier jour de la marche : plus ancienne seance, bornee par l'horizon."""
    relevant = [d for d in daily if d <= target_date]
    if not relevant:
        return None
    start = min(relevant)
    if lookback_days is not None:
        start = max(start, target_date - timedelta(days=lookback_days))
    return start


def _walk(
    daily: Dict[date_type, float],
    start: date_type,
    end: date_type,
    chronic_tc: float,
    acute_tc: float,
) -> List[MetricPoint]:
    """Recurrence EWMA de start a end inclus, amorcee a 0."""
    chronic = 0.0
    acute = 0.0
    points: List[MetricPoint] = []
    current = start
    while current <= end:
        stress = daily.get(current, 0.0)
        chronic = chronic + (stress - chronic) / chronic_tc
        acute = acute + (stress - acute) / acute_tc
        points.append(MetricPoint(
            date=current,
            chronic_load=chronic,
            acute_load=acute,
            balance=chronic - acute,
        ))
        current += timedelta(days=1)
    return points


def compute_load(
    workouts: Sequence[Workout],
    target_date: date_type,
    lookback_days: Optional[int] = None,
    chronic_tc: float = CHRONIC_TIME_CONSTANT,
    acute_tc: float = ACUTE_TIME_CONSTANT,
) -> MetricPoint:
    """Calcule CTL/ATL/TSB pour une date cible.

    Utilise la methode EWMA incrementale :
      CTL_today = CTL_yesterday + (stress_today - CTL_yesterday) / 42
      ATL_today = ATL_yesterday + (stress_today - ATL_yesterday) / 7
      TSB = CTL - ATL

    Les seances posterieures a target_date sont ignorees. Sans historique, tout vaut 0.
    """
    daily = aggregate_daily_stress(workouts)
    start = _walk_start(daily, target_date, lookback_days)
    if start is None:
        return MetricPoint(date=target_date)
    return _walk(daily, start, target_date, chronic_tc, acute_tc)[-1]


def compute_timeline(
    workouts: Sequence[Workout],
    start_date: date_type,
    end_date: date_type,
    lookback_days: Optional[int] = None,
    chronic_tc: float = CHRONIC_TIME_CONSTANT,
    acute_tc: float = ACUTE_TIME_CONSTANT,
) -> List[MetricPoint]:
    """Un MetricPoint par jour de start_date a end_date inclus.

    Chaque point est identique a compute_load(workouts, point.date) : sans horizon,
    une seule marche depuis la plus ancienne seance suffit ; avec horizon, la graine
    depend de la date cible et chaque point est recalcule.
    """
    if end_date < start_date:
        raise ValueError("end_date doit etre >= start_date")

    daily = aggregate_daily_stress(workouts)
    day_count = (end_date - start_date).days + 1

    if lookback_days is not None:
        return [
            compute_load(workouts, start_date + timedelta(days=i), lookback_days, chronic_tc, acute_tc)
            for i in range(day_count)
        ]

    walk_start = _walk_start(daily, end_date, None)
    if walk_start is None:
        return [MetricPoint(date=start_date + timedelta(days=i)) for i in range(day_count)]

    walked = {p.date: p for p in _walk(daily, walk_start, end_date, chronic_tc, acute_tc)}
    return [
        walked.get(d, MetricPoint(date=d))
        for d in (start_date + timedelta(days=i) for i in range(day_count))
    ]


async def compute_timeline_async(
    workouts: Sequence[Workout],
    start_date: date_type,
    end_date: date_type,
    **kwargs,
) -> List[MetricPoint]:
    """compute_timeline dans un thread : pas d'effet de bord, une annulation jette juste le resultat."""
    snapshot = list(workouts)
    return await asyncio.to_thread(compute_timeline, snapshot, start_date, end_date, **kwargs)


def classify_form(
    balance: float,
    fresh_threshold: float = FRESH_THRESHOLD,
    overreaching_threshold: float = OVERREACHING_THRESHOLD,
) -> FormStatus:
    """Etat de forme a partir du TSB.

    > fresh_threshold -> FRESH ; < overreaching_threshold -> OVERREACHING ;
    tout le reste (y compris la bande entre OPTIMAL_BAND_UPPER et fresh_threshold) -> OPTIMAL.
    """
    if balance > fresh_threshold:
        return FormStatus.FRESH
    if balance < overreaching_threshold:
        return FormStatus.OVERREACHING
    return FormStatus.OPTIMAL


def compare_planned_vs_actual(
    workouts: Iterable[Workout],
    plans: Iterable[PlannedActivity],
    start_date: date_type,
    end_date: date_type,
) -> List[DailyComparison]:
    """Stress et minutes planifies vs realises, jour par jour sur la plage."""
    if end_date < start_date:
        raise ValueError("end_date doit etre >= start_date")

    days: Dict[date_type, DailyComparison] = {}
    current = start_date
    while current <= end_date:
        days[current] = DailyComparison(date=current)
        current += timedelta(days=1)

    for plan in plans:
        day = days.get(plan.date)
        if day is not None:
            day.planned_stress += plan.planned_stress
            day.planned_minutes += plan.planned_duration_minutes

    for workout in workouts:
        day = days.get(workout.date)
        if day is not None:
            day.actual_stress += workout.stress_score or 0.0
            day.actual_minutes += workout.duration_minutes

    return list(days.values())
