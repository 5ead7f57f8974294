"""
Distribution du temps passe par zone (FC et puissance) a partir des echantillons bruts.
Regle "sample hold" : l'intensite est supposee constante d'un echantillon au suivant.
"""
from typing import Dict, List, Optional, Sequence

from loadbook.domain.entities.external_session import HeartRateSample, PowerSample

# Au-dela, on considere que le capteur a decroche et on ignore le segment
GAP_THRESHOLD_S = 30

ZONE_LABELS = ("Z1", "Z2", "Z3", "Z4", "Z5")

# Bornes basses Z1..Z5 en fraction de FC max : [50%, 60%), [60%, 70%), ... [90%, 100%]
HR_ZONE_FLOORS = (0.50, 0.60, 0.70, 0.80, 0.90)

# Bornes basses Z2..Z5 en fraction de FTP (Coggan simplifie). Z1 = 0-55%
POWER_ZONE_FLOORS = (0.55, 0.75, 0.90, 1.05)


def _get_hr_zone(bpm: int, max_hr: int) -> Optional[str]:
    """Zone FC d'un echantillon, None sous 50% FC max."""
    zone = None
    for label, floor in zip(ZONE_LABELS, HR_ZONE_FLOORS):
        if bpm >= int(max_hr * floor):
            zone = label
    return zone


def _get_power_zone(watts: int, ftp: int) -> str:
    """Zone de puissance d'un echantillon (Z1 couvre la recuperation active)."""
    zone = "Z1"
    for label, floor in zip(ZONE_LABELS[1:], POWER_ZONE_FLOORS):
        if watts >= int(ftp * floor):
            zone = label
    return zone


def _held_durations(timestamps: Sequence) -> List[int]:
    """Duree (s) tenue par chaque echantillon jusqu'au suivant, 0 si trou capteur."""
    durations = []
    for current, following in zip(timestamps, timestamps[1:]):
        seconds = int((following - current).total_seconds())
        durations.append(seconds if 0 < seconds <= GAP_THRESHOLD_S else 0)
    return durations


def compute_hr_zone_distribution(
    samples: List[HeartRateSample], max_hr: Optional[int]
) -> Dict[str, int]:
    """Secondes passees dans chaque zone FC (modele 5 zones sur % FC max).

    Retourne un dict vide si moins de 2 echantillons ou FC max absente.
    """
    if len(samples) < 2 or not max_hr or max_hr <= 0:
        return {}

    distribution = {label: 0 for label in ZONE_LABELS}
    durations = _held_durations([s.timestamp for s in samples])
    for sample, seconds in zip(samples, durations):
        zone = _get_hr_zone(sample.bpm, max_hr)
        if zone and seconds:
            distribution[zone] += seconds

    return {label: secs for label, secs in distribution.items() if secs > 0}


def compute_power_zone_distribution(
    samples: List[PowerSample], ftp: Optional[int]
) -> Dict[str, int]:
    """Secondes passees dans chaque zone de puissance (5 zones sur % FTP)."""
    if len(samples) < 2 or not ftp or ftp <= 0:
        return {}

    distribution = {label: 0 for label in ZONE_LABELS}
    durations = _held_durations([s.timestamp for s in samples])
    for sample, seconds in zip(samples, durations):
        if seconds:
            distribution[_get_power_zone(sample.watts, ftp)] += seconds

    return {label: secs for label, secs in distribution.items() if secs > 0}
