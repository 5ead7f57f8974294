"""
Source de seances a partir de fichiers FIT locaux (montre, compteur velo).
Convertit les messages FIT en ExternalSession pour passer par la reconciliation.
"""
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from loadbook.core.time_utils import to_naive_utc
from loadbook.domain.entities.external_session import (
    ExternalSession,
    HeartRateSample,
    PowerSample,
    RoutePoint,
)
from loadbook.domain.services.reconciliation_service import map_modality_code

logger = logging.getLogger(__name__)

# Conversion semicircles -> degrees (FIT GPS encoding)
SEMICIRCLE_TO_DEG = 180.0 / (2 ** 31)

# Sports FIT dont la cadence est comptee en demi-cycles (1 stride = 2 pas)
STRIDE_SPORTS = ("running", "walking", "hiking")


def _first_message(fitfile, msg_type: str):
    for message in fitfile.get_messages(msg_type):
        return message
    return None


def _fit_external_id(fitfile, fit_bytes: bytes) -> str:
    """Identifiant stable : numero de serie + date de creation, sinon hash du contenu."""
    file_id = _first_message(fitfile, "file_id")
    if file_id is not None:
        serial = file_id.get_value("serial_number")
        created = file_id.get_value("time_created")
        if serial is not None and created is not None:
            # fitparse donne des instants UTC naifs
            epoch = to_naive_utc(created).replace(tzinfo=timezone.utc).timestamp()
            return f"fit-{serial}-{int(epoch)}"
    return f"fit-{hashlib.sha1(fit_bytes).hexdigest()[:16]}"


def _modality_code(sport: Optional[str], sub_sport: Optional[str]) -> str:
    # sub_sport est plus precis quand il est connu (strength_training sous "training")
    if sub_sport and map_modality_code(str(sub_sport)) is not None:
        return str(sub_sport)
    return str(sport or "generic")


def parse_fit_session(fit_bytes: bytes, external_id: Optional[str] = None) -> ExternalSession:
    """
    Parse un fichier FIT en ExternalSession.

    Extrait les series par seconde (FC, puissance, GPS en degres) depuis les messages
    "record", et les totaux (calories, distance, pas) depuis le message "session".
    Leve ValueError si le fichier ne contient aucun horodatage exploitable.
    """
    import fitparse

    fitfile = fitparse.FitFile(BytesIO(fit_bytes))

    hr_samples: List[HeartRateSample] = []
    power_samples: List[PowerSample] = []
    route: List[RoutePoint] = []
    timestamps: List[datetime] = []

    for record in fitfile.get_messages("record"):
        ts = record.get_value("timestamp")
        if ts is None:
            continue
        timestamps.append(ts)

        hr = record.get_value("heart_rate")
        if hr is not None:
            hr_samples.append(HeartRateSample(timestamp=ts, bpm=int(hr)))

        pwr = record.get_value("power")
        if pwr is not None:
            power_samples.append(PowerSample(timestamp=ts, watts=int(pwr)))

        # GPS : position_lat/position_long en semicircles
        lat_raw = record.get_value("position_lat")
        lng_raw = record.get_value("position_long")
        if lat_raw is not None and lng_raw is not None:
            alt = record.get_value("enhanced_altitude") or record.get_value("altitude")
            route.append(RoutePoint(
                latitude=lat_raw * SEMICIRCLE_TO_DEG,
                longitude=lng_raw * SEMICIRCLE_TO_DEG,
                altitude=float(alt) if alt is not None else None,
                timestamp=ts,
            ))

    session_msg = _first_message(fitfile, "session")
    values: Dict[str, Any] = {}
    if session_msg is not None:
        for key in ("sport", "sub_sport", "start_time", "total_elapsed_time",
                    "total_calories", "total_distance", "total_strides"):
            values[key] = session_msg.get_value(key)

    start_time = values.get("start_time") or (timestamps[0] if timestamps else None)
    if start_time is None:
        raise ValueError("Fichier FIT sans horodatage")

    if values.get("total_elapsed_time") is not None:
        end_time = start_time + timedelta(seconds=float(values["total_elapsed_time"]))
    else:
        end_time = timestamps[-1] if timestamps else start_time

    steps = None
    if values.get("total_strides") is not None and values.get("sport") in STRIDE_SPORTS:
        steps = int(values["total_strides"]) * 2

    distance = values.get("total_distance")
    calories = values.get("total_calories")

    return ExternalSession(
        external_id=external_id or _fit_external_id(fitfile, fit_bytes),
        modality_code=_modality_code(values.get("sport"), values.get("sub_sport")),
        start_time=start_time,
        end_time=max(end_time, start_time),
        hr_samples=hr_samples,
        power_samples=power_samples,
        calories=int(calories) if calories is not None else None,
        distance_meters=float(distance) if distance is not None else None,
        steps=steps,
        route=route,
    )


class FitFileSource:
    """Source de seances lisant des fichiers .fit (un fichier = une seance)."""

    def __init__(self, paths: Sequence[Union[str, Path]]):
        self.paths = [Path(p) for p in paths]

    def iter_sessions(self) -> Iterable[ExternalSession]:
        for path in self.paths:
            try:
                yield parse_fit_session(path.read_bytes())
            except (OSError, ValueError) as e:
                logger.warning(f"Fichier FIT ignore {path}: {e}")

    def fetch_sessions(self, start: datetime, end: datetime) -> List[ExternalSession]:
        """Seances dont le debut tombe dans [start, end]."""
        start, end = to_naive_utc(start), to_naive_utc(end)
        return [s for s in self.iter_sessions() if start <= s.start_time <= end]
