"""
Ligne de commande loadbook : import de fichiers FIT, retraitement, charge du jour, timeline.
"""
import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import List, Optional

from loadbook.core.database import Database
from loadbook.core.log_config import configure_logging
from loadbook.core.settings import get_settings
from loadbook.domain.errors import ReconciliationError, ReconciliationWriteError
from loadbook.domain.services.fit_import_service import FitFileSource
from loadbook.domain.services.reconciliation_service import ReconciliationService
from loadbook.domain.services.training_load_service import (
    classify_form,
    compute_load,
    compute_timeline,
)
from loadbook.domain.services.workout_store import WorkoutStore

logger = logging.getLogger(__name__)


def _fit_paths(inputs: List[str]) -> List[Path]:
    """Fichiers .fit donnes directement ou contenus dans les repertoires donnes."""
    paths: List[Path] = []
    for raw in inputs:
        path = Path(raw)
        if path.is_dir():
            paths.extend(sorted(p for p in path.iterdir() if p.suffix.lower() == ".fit"))
        else:
            paths.append(path)
    return paths


def _load_options(settings) -> dict:
    return {
        "lookback_days": settings.LOAD_LOOKBACK_DAYS,
        "chronic_tc": settings.CHRONIC_TIME_CONSTANT,
        "acute_tc": settings.ACUTE_TIME_CONSTANT,
    }


def cmd_import_fit(args, database: Database) -> int:
    source = FitFileSource(_fit_paths(args.paths))
    service = ReconciliationService(database)
    try:
        summary = service.import_batch(source.iter_sessions(), replace_existing=args.replace)
    except ReconciliationWriteError as e:
        print(f"Import interrompu: {e}", file=sys.stderr)
        print(json.dumps(e.summary.model_dump(), indent=2))
        return 2
    print(json.dumps(summary.model_dump(), indent=2))
    return 0


def cmd_reprocess(args, database: Database) -> int:
    summary = ReconciliationService(database).reprocess_all()
    print(json.dumps(summary.model_dump(), indent=2))
    return 0 if summary.errors == 0 else 1


def cmd_load(args, database: Database) -> int:
    settings = get_settings()
    target = args.date or date.today()
    with database.session() as session:
        workouts = WorkoutStore(session).list_workouts(end=target)
        point = compute_load(workouts, target, **_load_options(settings))
    status = classify_form(
        point.balance,
        fresh_threshold=settings.FORM_FRESH_THRESHOLD,
        overreaching_threshold=settings.FORM_OVERREACHING_THRESHOLD,
    )
    print(f"{point.date}  CTL {point.chronic_load:6.1f}  ATL {point.acute_load:6.1f}  "
          f"TSB {point.balance:6.1f}  {status.value}")
    return 0


def cmd_timeline(args, database: Database) -> int:
    settings = get_settings()
    end = args.end or date.today()
    start = args.start or end - timedelta(days=args.days - 1)
    if end < start:
        print("--end doit etre >= --start", file=sys.stderr)
        return 1
    with database.session() as session:
        workouts = WorkoutStore(session).list_workouts(end=end)
        points = compute_timeline(workouts, start, end, **_load_options(settings))
    if args.json:
        print(json.dumps([p.model_dump(mode="json") for p in points], indent=2))
    else:
        for p in points:
            print(f"{p.date}  CTL {p.chronic_load:6.1f}  ATL {p.acute_load:6.1f}  TSB {p.balance:6.1f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loadbook", description="Charge d'entrainement et import de seances")
    parser.add_argument("--database-url", default=None, help="URL de la base (defaut: DATABASE_URL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_import = subparsers.add_parser("import-fit", help="Importe des fichiers .fit (ou des repertoires)")
    p_import.add_argument("paths", nargs="+")
    p_import.add_argument("--replace", action="store_true", help="Remplace les seances deja importees")
    p_import.set_defaults(func=cmd_import_fit)

    p_reprocess = subparsers.add_parser("reprocess", help="Recalcule les seances depuis les captures brutes")
    p_reprocess.set_defaults(func=cmd_reprocess)

    p_load = subparsers.add_parser("load", help="CTL/ATL/TSB et etat de forme a une date")
    p_load.add_argument("--date", type=date.fromisoformat, default=None)
    p_load.set_defaults(func=cmd_load)

    p_timeline = subparsers.add_parser("timeline", help="Un point de charge par jour")
    p_timeline.add_argument("--start", type=date.fromisoformat, default=None)
    p_timeline.add_argument("--end", type=date.fromisoformat, default=None)
    p_timeline.add_argument("--days", type=int, default=42, help="Longueur si --start est omis")
    p_timeline.add_argument("--json", action="store_true")
    p_timeline.set_defaults(func=cmd_timeline)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    # stdout reste reserve aux resultats (JSON)
    configure_logging(settings, log_file=None, stream=sys.stderr)

    try:
        with Database(args.database_url or settings.DATABASE_URL) as database:
            return args.func(args, database)
    except ReconciliationError as e:
        print(f"Erreur: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
