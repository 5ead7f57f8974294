"""
Tests pour la reconciliation : import idempotent, backfill de parcours, retraitement,
erreurs d'ecriture et verrou de passe unique.
"""
import logging
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from loadbook.domain.entities import AthleteProfile, Modality, RawCapture
from loadbook.domain.errors import (
    MalformedRawCaptureError,
    ReconciliationInProgressError,
    ReconciliationWriteError,
)
from loadbook.domain.services.reconciliation_service import (
    ReconciliationService,
    build_raw_capture,
    derive_workout,
    map_modality_code,
    parse_capture_samples,
)
from loadbook.domain.services.sync_lock import ReconciliationLock
from loadbook.domain.services.workout_store import WorkoutStore

from tests.conftest import make_external_session


@pytest.fixture
def service(database):
    return ReconciliationService(database, lock=ReconciliationLock(f"test-{id(database)}"))


def _store_snapshot(database, external_id):
    with database.session() as s:
        store = WorkoutStore(s)
        return store.get_workout(external_id), store.get_raw_capture(external_id)


class TestMapModalityCode:

    def test_known_codes(self):
        assert map_modality_code("running_treadmill") == Modality.RUN
        assert map_modality_code("biking_stationary") == Modality.BIKE
        assert map_modality_code("swimming_open_water") == Modality.SWIM
        assert map_modality_code("boot_camp") == Modality.STRENGTH
        assert map_modality_code("hiking") == Modality.OTHER

    def test_normalization(self):
        assert map_modality_code("Strength Training") == Modality.STRENGTH
        assert map_modality_code("bike") == Modality.BIKE

    def test_unsupported(self):
        assert map_modality_code("sleep") is None
        assert map_modality_code("") is None
        assert map_modality_code(None) is None


class TestImportBatch:

    def test_new_session_is_imported(self, service, database):
        summary = service.import_batch([make_external_session()])

        assert summary.found == 1
        assert summary.newly_imported == 1
        assert summary.already_existing == 0

        workout, capture = _store_snapshot(database, "hc-001")
        assert workout.date == datetime(2026, 3, 2).date()
        assert workout.modality == Modality.RUN
        assert workout.duration_minutes == 60
        assert workout.avg_heart_rate == 150
        assert workout.avg_speed_kmh == 10.0
        assert workout.steps == 9000
        assert capture.raw_modality_code == "running"
        assert len(capture.hr_samples) == 3

    def test_unscoreable_session_stored_with_null_score(self, service, database):
        service.import_batch([make_external_session()])
        workout, _ = _store_snapshot(database, "hc-001")
        assert workout.stress_score is None

    def test_reimport_is_idempotent(self, service, database):
        service.import_batch([make_external_session()])
        summary = service.import_batch([make_external_session(minutes=90)])

        assert summary.newly_imported == 0
        assert summary.already_existing == 1
        workout, _ = _store_snapshot(database, "hc-001")
        assert workout.duration_minutes == 60
        with database.session() as s:
            assert WorkoutStore(s).count_workouts() == 1

    def test_duplicate_ids_in_same_batch(self, service):
        summary = service.import_batch([make_external_session(), make_external_session()])
        assert summary.found == 2
        assert summary.newly_imported == 1
        assert summary.already_existing == 1

    def test_route_backfill_only_touches_route(self, service, database):
        service.import_batch([make_external_session()])
        workout_before, capture_before = _store_snapshot(database, "hc-001")

        summary = service.import_batch([make_external_session(minutes=90, bpms=[100, 100], with_route=True)])

        assert summary.routes_backfilled == 1
        assert summary.already_existing == 0
        workout_after, capture_after = _store_snapshot(database, "hc-001")
        assert len(capture_after.route) == 3
        assert capture_after.hr_samples == capture_before.hr_samples
        assert capture_after.end_time == capture_before.end_time
        assert workout_after.updated_at == workout_before.updated_at
        assert workout_after.duration_minutes == 60

    def test_route_never_backfilled_twice(self, service):
        service.import_batch([make_external_session(with_route=True)])
        summary = service.import_batch([make_external_session(with_route=True)])
        assert summary.routes_backfilled == 0
        assert summary.already_existing == 1

    def test_replace_existing(self, service, database):
        service.import_batch([make_external_session()])
        summary = service.import_batch([make_external_session(minutes=90)], replace_existing=True)

        assert summary.already_existing == 1
        workout, capture = _store_snapshot(database, "hc-001")
        assert workout.duration_minutes == 90
        assert capture.end_time == datetime(2026, 3, 2, 8, 30)

    def test_unsupported_modality_skipped(self, service, database):
        summary = service.import_batch([make_external_session(modality_code="sleep")])
        assert summary.skipped_unsupported == 1
        assert summary.newly_imported == 0
        workout, capture = _store_snapshot(database, "hc-001")
        assert workout is None and capture is None

    def test_invalid_payload_counted_as_error(self, service):
        bad = {
            "external_id": "bad-1",
            "modality_code": "running",
            "start_time": "2026-03-02T08:00:00",
            "end_time": "2026-03-02T07:00:00",
        }
        summary = service.import_batch([bad, make_external_session()])
        assert summary.errors == 1
        assert summary.newly_imported == 1

    def test_mixed_timezone_instants_are_normalized(self, service, database):
        mixed = {
            "external_id": "mixed-1",
            "modality_code": "running",
            "start_time": "2026-03-02T08:00:00+01:00",
            "end_time": "2026-03-02T08:00:00",
            "hr_samples": [
                {"timestamp": "2026-03-02T07:00:00Z", "bpm": 140},
                {"timestamp": "2026-03-02T07:00:10", "bpm": 150},
            ],
        }
        summary = service.import_batch([mixed, make_external_session()])

        assert summary.errors == 0
        assert summary.newly_imported == 2
        workout, capture = _store_snapshot(database, "mixed-1")
        assert capture.start_time == datetime(2026, 3, 2, 7, 0)
        assert workout.duration_minutes == 60

    def test_unexpected_item_failure_counted(self, service, database):
        with patch(
            "loadbook.domain.services.reconciliation_service.derive_workout",
            side_effect=[TypeError("bad sample"), derive_workout(
                build_raw_capture(make_external_session(external_id="hc-ok")), AthleteProfile()
            )],
        ):
            summary = service.import_batch([
                make_external_session(external_id="hc-bad"),
                make_external_session(external_id="hc-ok"),
            ])

        assert summary.errors == 1
        assert summary.newly_imported == 1
        workout, capture = _store_snapshot(database, "hc-bad")
        assert workout is None and capture is None

    def test_dict_payload_accepted(self, service):
        payload = make_external_session().model_dump(mode="json")
        assert service.import_batch([payload]).newly_imported == 1

    def test_large_capture_logged(self, database, caplog):
        service = ReconciliationService(
            database, lock=ReconciliationLock("large"), large_capture_warning_bytes=10
        )
        with caplog.at_level(logging.WARNING):
            service.import_batch([make_external_session()])
        assert "volumineuse" in caplog.text


class TestWriteFailure:

    def test_storage_failure_aborts_batch_with_partial_summary(self, service, database):
        original = WorkoutStore.upsert_workout
        calls = {"n": 0}

        def flaky(self, workout):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OperationalError("INSERT INTO workout", {}, Exception("disk I/O error"))
            return original(self, workout)

        batch = [make_external_session(external_id=f"hc-{i}") for i in range(3)]
        with patch.object(WorkoutStore, "upsert_workout", flaky):
            with pytest.raises(ReconciliationWriteError) as exc_info:
                service.import_batch(batch)

        assert exc_info.value.summary.newly_imported == 1
        assert isinstance(exc_info.value.original_error, OperationalError)

        # Le premier item reste commite, le second est annule en bloc (capture + seance)
        workout0, capture0 = _store_snapshot(database, "hc-0")
        workout1, capture1 = _store_snapshot(database, "hc-1")
        assert workout0 is not None and capture0 is not None
        assert workout1 is None and capture1 is None


class TestReprocessAll:

    def test_reprocess_applies_current_profile(self, service, database):
        service.import_batch([make_external_session()])
        with database.session() as s:
            WorkoutStore(s).save_profile({"lthr": 150, "max_heart_rate": 190})

        summary = service.reprocess_all()

        assert summary.found_in_store == 1
        assert summary.processed == 1
        assert summary.errors == 0
        workout, _ = _store_snapshot(database, "hc-001")
        assert workout.stress_score == 100.0
        assert workout.hr_zone_distribution

    def test_reprocess_is_deterministic(self, service, database):
        service.import_batch([make_external_session(external_id=f"hc-{i}") for i in range(3)])
        with database.session() as s:
            WorkoutStore(s).save_profile({"max_heart_rate": 190})

        service.reprocess_all()
        first = {w.external_id: (w.stress_score, w.hr_zone_distribution) for w in _all_workouts(database)}
        service.reprocess_all()
        second = {w.external_id: (w.stress_score, w.hr_zone_distribution) for w in _all_workouts(database)}
        assert first == second

    def test_malformed_capture_counted_and_skipped(self, service, database):
        service.import_batch([make_external_session(external_id=f"hc-{i}") for i in range(2)])
        with database.session() as s:
            s.add(RawCapture(
                external_id="broken",
                raw_modality_code="running",
                start_time=datetime(2026, 3, 3, 7, 0),
                end_time=datetime(2026, 3, 3, 8, 0),
                hr_samples=[{"timestamp": "not-a-date", "bpm": "abc"}],
            ))
            s.commit()

        summary = service.reprocess_all()

        assert summary.found_in_store == 3
        assert summary.processed == 2
        assert summary.errors == 1

    def test_stored_samples_mixing_timezones(self, service, database):
        service.import_batch([make_external_session(external_id=f"hc-{i}") for i in range(2)])
        with database.session() as s:
            s.add(RawCapture(
                external_id="mixed",
                raw_modality_code="running",
                start_time=datetime(2026, 3, 3, 7, 0),
                end_time=datetime(2026, 3, 3, 8, 0),
                hr_samples=[
                    {"timestamp": "2026-03-03T07:00:00", "bpm": 150},
                    {"timestamp": "2026-03-03T07:00:05+00:00", "bpm": 160},
                    {"timestamp": "2026-03-03T08:00:10+01:00", "bpm": 160},
                ],
            ))
            s.commit()
            WorkoutStore(s).save_profile({"max_heart_rate": 190})

        summary = service.reprocess_all()

        assert summary.found_in_store == 3
        assert summary.processed == 3
        assert summary.errors == 0
        workout, _ = _store_snapshot(database, "mixed")
        assert workout.hr_zone_distribution == {"Z3": 5, "Z4": 5}

    def test_unexpected_failure_counted_and_skipped(self, service, database):
        service.import_batch([make_external_session(external_id=f"hc-{i}") for i in range(3)])

        with patch(
            "loadbook.domain.services.reconciliation_service.score_workout",
            side_effect=[TypeError("boom"), 10.0, 10.0],
        ):
            summary = service.reprocess_all()

        assert summary.found_in_store == 3
        assert summary.processed == 2
        assert summary.errors == 1

    def test_reprocess_empty_store(self, service):
        summary = service.reprocess_all()
        assert summary.found_in_store == 0
        assert summary.processed == 0


def _all_workouts(database):
    with database.session() as s:
        return WorkoutStore(s).list_workouts()


class TestDeriveWorkout:

    def _capture(self, **kwargs):
        values = dict(
            external_id="c-1",
            raw_modality_code="biking",
            start_time=datetime(2026, 3, 2, 18, 0),
            end_time=datetime(2026, 3, 2, 19, 0),
            power_samples=[
                {"timestamp": "2026-03-02T18:00:00", "watts": 180},
                {"timestamp": "2026-03-02T18:00:05", "watts": 220},
            ],
        )
        values.update(kwargs)
        return RawCapture(**values)

    def test_power_scoring_and_zones(self):
        workout = derive_workout(self._capture(), AthleteProfile(ftp_watts=250))
        assert workout.avg_power_watts == 200
        assert workout.stress_score == 64.0
        assert workout.power_zone_distribution == {"Z2": 5}

    def test_missing_ftp_gives_null_score(self):
        workout = derive_workout(self._capture(), AthleteProfile())
        assert workout.stress_score is None
        assert workout.power_zone_distribution is None

    def test_end_before_start_is_malformed(self):
        capture = self._capture(end_time=datetime(2026, 3, 2, 17, 0))
        with pytest.raises(MalformedRawCaptureError):
            derive_workout(capture, AthleteProfile())

    def test_parse_rejects_bad_samples(self):
        capture = self._capture(power_samples=[{"watts": 100}])
        with pytest.raises(MalformedRawCaptureError):
            parse_capture_samples(capture)


class TestReconciliationLock:

    def test_second_pass_rejected_while_held(self, service):
        with service.lock.hold():
            with pytest.raises(ReconciliationInProgressError):
                service.import_batch([make_external_session()])
            with pytest.raises(ReconciliationInProgressError):
                service.reprocess_all()

    def test_lock_released_after_pass(self, service):
        service.import_batch([make_external_session()])
        assert service.reprocess_all().processed == 1

    def test_lock_released_after_write_failure(self, service):
        with patch.object(WorkoutStore, "upsert_workout",
                          side_effect=OperationalError("INSERT", {}, Exception("locked"))):
            with pytest.raises(ReconciliationWriteError):
                service.import_batch([make_external_session()])
        assert service.import_batch([make_external_session()]).newly_imported == 1

    def test_redis_lock_used_when_available(self):
        client = MagicMock()
        client.lock.return_value.acquire.return_value = False
        lock = ReconciliationLock("shared", redis_url="redis://localhost:6379/0")

        with patch("loadbook.domain.services.sync_lock.check_redis_health", return_value=True), \
             patch("loadbook.domain.services.sync_lock.get_redis_client", return_value=client):
            with pytest.raises(ReconciliationInProgressError):
                with lock.hold():
                    pass

        client.lock.assert_called_once_with(
            "loadbook:reconciliation:shared", timeout=lock.timeout_s, blocking=False
        )

    def test_falls_back_to_local_lock_when_redis_down(self):
        lock = ReconciliationLock("fallback", redis_url="redis://localhost:6379/0")
        with patch("loadbook.domain.services.sync_lock.check_redis_health", return_value=False):
            with lock.hold():
                with pytest.raises(ReconciliationInProgressError):
                    with lock.hold():
                        pass


class TestSyncFromSource:

    def test_fetches_window_and_imports(self, service):
        source = MagicMock()
        source.fetch_sessions.return_value = [make_external_session(external_id=f"hc-{i}") for i in range(2)]

        summary = service.sync_from_source(source, days_back=7)

        assert summary.newly_imported == 2
        start, end = source.fetch_sessions.call_args.args
        assert end - start == timedelta(days=7)
