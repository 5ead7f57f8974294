"""
Fixtures partagees : base SQLite en memoire (une connexion unique, StaticPool).
"""
from datetime import datetime, timedelta
from typing import List, Optional

import pytest

from loadbook.core.database import Database
from loadbook.domain.entities import ExternalSession, HeartRateSample, RoutePoint


@pytest.fixture
def database():
    db = Database("sqlite://").open()
    yield db
    db.close()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


def make_external_session(
    external_id: str = "hc-001",
    modality_code: str = "running",
    start: datetime = datetime(2026, 3, 2, 7, 0, 0),
    minutes: int = 60,
    bpms: Optional[List[int]] = None,
    with_route: bool = False,
    distance_meters: Optional[float] = 10000.0,
) -> ExternalSession:
    """Seance externe de test, echantillons FC toutes les 10 s."""
    bpms = bpms if bpms is not None else [140, 150, 160]
    hr_samples = [
        HeartRateSample(timestamp=start + timedelta(seconds=10 * i), bpm=bpm)
        for i, bpm in enumerate(bpms)
    ]
    route = []
    if with_route:
        route = [
            RoutePoint(latitude=48.85 + i * 0.001, longitude=2.35, altitude=35.0,
                       timestamp=start + timedelta(seconds=10 * i))
            for i in range(3)
        ]
    return ExternalSession(
        external_id=external_id,
        modality_code=modality_code,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        hr_samples=hr_samples,
        calories=600,
        distance_meters=distance_meters,
        steps=9000,
        route=route,
    )
