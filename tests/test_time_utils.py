"""
Tests pour la convention horaire (UTC naif).
"""
from datetime import datetime, timedelta, timezone

from loadbook.core.time_utils import to_naive_utc, utc_now
from loadbook.domain.entities import Modality, RawCapture, Workout


class TestTimeUtils:

    def test_utc_now_is_naive(self):
        assert utc_now().tzinfo is None

    def test_offset_converted_to_utc(self):
        paris = timezone(timedelta(hours=1))
        assert to_naive_utc(datetime(2026, 3, 2, 8, 0, tzinfo=paris)) == datetime(2026, 3, 2, 7, 0)

    def test_naive_left_untouched(self):
        assert to_naive_utc(datetime(2026, 3, 2, 7, 0)) == datetime(2026, 3, 2, 7, 0)

    def test_entity_defaults_are_naive(self):
        capture = RawCapture(
            external_id="c-1",
            raw_modality_code="running",
            start_time=datetime(2026, 3, 2, 7, 0),
            end_time=datetime(2026, 3, 2, 8, 0),
        )
        assert capture.imported_at.tzinfo is None
        assert Workout(external_id="w-1", date=datetime(2026, 3, 2).date(), modality=Modality.RUN,
                       duration_minutes=60).updated_at.tzinfo is None
