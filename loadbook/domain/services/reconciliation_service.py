"""
Moteur de reconciliation des seances importees depuis l'agregateur externe.

- Import idempotent, dedoublonne sur external_id uniquement
- Capture brute conservee a chaque import (seule entree du retraitement)
- Backfill du parcours GPS quand il arrive apres coup
- Retraitement complet depuis les captures brutes avec le profil courant
"""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from loadbook.core.database import Database
from loadbook.core.settings import get_settings
from loadbook.core.time_utils import to_naive_utc, utc_now
from loadbook.domain.entities.athlete_profile import AthleteProfile
from loadbook.domain.entities.external_session import (
    ExternalSession,
    HeartRateSample,
    PowerSample,
)
from loadbook.domain.entities.raw_capture import RawCapture
from loadbook.domain.entities.workout import Modality, Workout
from loadbook.domain.errors import MalformedRawCaptureError, ReconciliationWriteError
from loadbook.domain.services.stress_scoring_service import ScoringInput, score_workout
from loadbook.domain.services.sync_lock import ReconciliationLock
from loadbook.domain.services.workout_store import MergePolicy, WorkoutStore
from loadbook.domain.services.zone_service import (
    compute_hr_zone_distribution,
    compute_power_zone_distribution,
)

logger = logging.getLogger(__name__)

# Codes de type d'exercice de l'agregateur -> modalite. Un code absent n'est pas importe.
MODALITY_CODE_MAP: Dict[str, Modality] = {
    "running": Modality.RUN,
    "running_treadmill": Modality.RUN,
    "treadmill_running": Modality.RUN,
    "trail_running": Modality.RUN,
    "biking": Modality.BIKE,
    "biking_stationary": Modality.BIKE,
    "cycling": Modality.BIKE,
    "indoor_cycling": Modality.BIKE,
    "swimming": Modality.SWIM,
    "swimming_pool": Modality.SWIM,
    "swimming_open_water": Modality.SWIM,
    "lap_swimming": Modality.SWIM,
    "open_water_swimming": Modality.SWIM,
    "strength_training": Modality.STRENGTH,
    "weightlifting": Modality.STRENGTH,
    "calisthenics": Modality.STRENGTH,
    "high_intensity_interval_training": Modality.STRENGTH,
    "boot_camp": Modality.STRENGTH,
    "walking": Modality.OTHER,
    "hiking": Modality.OTHER,
    "rowing": Modality.OTHER,
    "skating": Modality.OTHER,
}

_hr_samples_adapter = TypeAdapter(List[HeartRateSample])
_power_samples_adapter = TypeAdapter(List[PowerSample])


class ImportSummary(BaseModel):
    """Compteurs d'une passe d'import."""
    found: int = 0
    newly_imported: int = 0
    already_existing: int = 0
    routes_backfilled: int = 0
    skipped_unsupported: int = 0
    errors: int = 0


class ReprocessSummary(BaseModel):
    """Compteurs d'une passe de retraitement."""
    found_in_store: int = 0
    processed: int = 0
    errors: int = 0


class ExternalSessionSource(Protocol):
    """Source de seances (transport de l'agregateur, boite noire)."""

    def fetch_sessions(self, start: datetime, end: datetime) -> Iterable[ExternalSession]:
        ...


def map_modality_code(code: Optional[str]) -> Optional[Modality]:
    """Modalite d'un code brut, None si non supporte. Accepte aussi les valeurs de Modality."""
    if not code:
        return None
    normalized = code.strip().lower().replace("-", "_").replace(" ", "_")
    if normalized in MODALITY_CODE_MAP:
        return MODALITY_CODE_MAP[normalized]
    try:
        return Modality(normalized)
    except ValueError:
        return None


def _dump_list(items: List[BaseModel]) -> Optional[List[Dict[str, Any]]]:
    if not items:
        return None
    return [item.model_dump(mode="json") for item in items]


def build_raw_capture(external: ExternalSession) -> RawCapture:
    """Snapshot brut d'une seance externe, tel que recu."""
    return RawCapture(
        external_id=external.external_id,
        raw_modality_code=external.modality_code,
        start_time=external.start_time,
        end_time=external.end_time,
        hr_samples=_dump_list(external.hr_samples),
        power_samples=_dump_list(external.power_samples),
        raw_calories=external.calories,
        raw_distance_meters=external.distance_meters,
        raw_steps=external.steps,
        route=_dump_list(external.route),
        imported_at=utc_now(),
    )


def parse_capture_samples(capture: RawCapture):
    """Relit les series d'une capture. Leve MalformedRawCaptureError si illisibles."""
    try:
        hr_samples = _hr_samples_adapter.validate_python(capture.hr_samples or [])
        power_samples = _power_samples_adapter.validate_python(capture.power_samples or [])
    except ValidationError as exc:
        raise MalformedRawCaptureError(capture.external_id, str(exc)) from exc
    return hr_samples, power_samples


def derive_workout(capture: RawCapture, profile: AthleteProfile) -> Workout:
    """Calcule la seance derivee d'une capture brute avec le profil donne.

    Deterministe : meme capture et meme profil donnent la meme seance.
    """
    hr_samples, power_samples = parse_capture_samples(capture)
    modality = map_modality_code(capture.raw_modality_code) or Modality.OTHER

    start_time, end_time = to_naive_utc(capture.start_time), to_naive_utc(capture.end_time)
    duration_minutes = int((end_time - start_time).total_seconds() // 60)
    if duration_minutes < 0:
        raise MalformedRawCaptureError(capture.external_id, "fin anterieure au debut")

    avg_heart_rate = int(sum(s.bpm for s in hr_samples) / len(hr_samples)) if hr_samples else None
    avg_power = int(sum(s.watts for s in power_samples) / len(power_samples)) if power_samples else None

    avg_speed_kmh = None
    if capture.raw_distance_meters is not None and duration_minutes > 0:
        avg_speed_kmh = round((capture.raw_distance_meters / 1000.0) / (duration_minutes / 60.0), 2)

    stress_score = score_workout(
        ScoringInput(
            modality=modality,
            duration_minutes=duration_minutes,
            avg_heart_rate=avg_heart_rate,
            avg_power_watts=avg_power,
            distance_meters=capture.raw_distance_meters,
        ),
        profile,
    )

    return Workout(
        external_id=capture.external_id,
        date=start_time.date(),
        modality=modality,
        duration_minutes=duration_minutes,
        avg_heart_rate=avg_heart_rate,
        calories=capture.raw_calories,
        distance_meters=capture.raw_distance_meters,
        avg_speed_kmh=avg_speed_kmh,
        avg_power_watts=avg_power,
        steps=capture.raw_steps,
        stress_score=stress_score,
        hr_zone_distribution=compute_hr_zone_distribution(hr_samples, profile.max_heart_rate) or None,
        power_zone_distribution=compute_power_zone_distribution(power_samples, profile.ftp_watts) or None,
    )


class ReconciliationService:
    """Import, dedoublonnage, backfill et retraitement sur un store donne."""

    def __init__(
        self,
        database: Database,
        lock: Optional[ReconciliationLock] = None,
        large_capture_warning_bytes: Optional[int] = None,
    ):
        settings = get_settings()
        self.database = database
        self.lock = lock or ReconciliationLock(
            database.url,
            redis_url=settings.REDIS_URL,
            timeout_s=settings.SYNC_LOCK_TIMEOUT_S,
        )
        self.large_capture_warning_bytes = (
            large_capture_warning_bytes
            if large_capture_warning_bytes is not None
            else settings.LARGE_CAPTURE_WARNING_BYTES
        )

    def _warn_if_large(self, capture: RawCapture) -> None:
        payload = {
            "hr_samples": capture.hr_samples,
            "power_samples": capture.power_samples,
            "route": capture.route,
        }
        size = len(json.dumps(payload))
        if size > self.large_capture_warning_bytes:
            logger.warning(f"Capture brute volumineuse pour {capture.external_id}: {size} octets")

    def import_batch(
        self,
        external_sessions: Iterable[Union[ExternalSession, Dict[str, Any]]],
        replace_existing: bool = False,
    ) -> ImportSummary:
        """Importe un lot de seances externes.

        Une transaction par item : un echec de stockage interrompt le lot avec
        ReconciliationWriteError, les items deja commites restent en place.
        """
        items = list(external_sessions)
        summary = ImportSummary(found=len(items))

        with self.lock.hold(), self.database.session() as session:
            store = WorkoutStore(session)
            profile = store.load_profile()

            for item in items:
                try:
                    external = (
                        item if isinstance(item, ExternalSession)
                        else ExternalSession.model_validate(item)
                    )
                    self._import_one(store, external, profile, replace_existing, summary)
                except SQLAlchemyError as exc:
                    logger.error(f"Echec d'ecriture pendant l'import: {exc}")
                    raise ReconciliationWriteError(summary, exc) from exc
                except Exception as exc:
                    # Payload invalide ou capture inexploitable : compte, le lot continue
                    external_id = getattr(item, "external_id", None) or (
                        item.get("external_id") if isinstance(item, dict) else None
                    )
                    logger.warning(f"Seance externe {external_id} ignoree: {exc}")
                    summary.errors += 1

        logger.info(
            f"Import termine: {summary.found} trouvees, {summary.newly_imported} nouvelles, "
            f"{summary.already_existing} existantes, {summary.routes_backfilled} parcours completes, "
            f"{summary.skipped_unsupported} non supportees, {summary.errors} erreurs"
        )
        return summary

    def _import_one(
        self,
        store: WorkoutStore,
        external: ExternalSession,
        profile: AthleteProfile,
        replace_existing: bool,
        summary: ImportSummary,
    ) -> None:
        if map_modality_code(external.modality_code) is None:
            logger.debug(f"Type d'exercice non supporte ({external.modality_code}) pour {external.external_id}")
            summary.skipped_unsupported += 1
            return

        existing = store.get_raw_capture(external.external_id)

        if existing is None or replace_existing:
            capture = build_raw_capture(external)
            workout = derive_workout(capture, profile)
            self._warn_if_large(capture)
            with store.transaction():
                store.upsert_raw_capture(capture, MergePolicy.REPLACE_WHOLE_RECORD)
                store.upsert_workout(workout)
            if existing is None:
                summary.newly_imported += 1
            else:
                summary.already_existing += 1
            return

        if not existing.has_route and external.has_route:
            with store.transaction():
                store.upsert_raw_capture(build_raw_capture(external), MergePolicy.BACKFILL_ROUTE)
            summary.routes_backfilled += 1
            return

        summary.already_existing += 1

    def reprocess_all(self) -> ReprocessSummary:
        """Recalcule toutes les seances depuis les captures brutes avec le profil courant.

        Ne contacte jamais l'agregateur. Une capture illisible est journalisee, comptee et sautee.
        """
        summary = ReprocessSummary()

        with self.lock.hold(), self.database.session() as session:
            store = WorkoutStore(session)
            profile = store.load_profile()
            captures = store.list_raw_captures()
            summary.found_in_store = len(captures)

            for capture in captures:
                try:
                    workout = derive_workout(capture, profile)
                    with store.transaction():
                        store.upsert_workout(workout)
                    summary.processed += 1
                except MalformedRawCaptureError as exc:
                    logger.error(f"Retraitement impossible: {exc}")
                    summary.errors += 1
                except SQLAlchemyError as exc:
                    logger.error(f"Echec d'ecriture au retraitement de {capture.external_id}: {exc}")
                    summary.errors += 1
                except Exception as exc:
                    logger.error(f"Retraitement de {capture.external_id} en echec: {exc}", exc_info=True)
                    summary.errors += 1

        logger.info(
            f"Retraitement termine: {summary.processed}/{summary.found_in_store} seances, "
            f"{summary.errors} erreurs"
        )
        return summary

    def sync_from_source(
        self,
        source: ExternalSessionSource,
        days_back: Optional[int] = None,
        replace_existing: bool = False,
    ) -> ImportSummary:
        """Recupere les seances des days_back derniers jours aupres de la source et les importe."""
        if days_back is None:
            days_back = get_settings().SYNC_DAYS_BACK
        end = utc_now()
        start = end - timedelta(days=days_back)
        logger.info(f"Sync depuis la source sur {days_back} jours ({start.date()} -> {end.date()})")
        sessions = list(source.fetch_sessions(start, end))
        return self.import_batch(sessions, replace_existing=replace_existing)
