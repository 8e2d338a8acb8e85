import argparse
import asyncio
import datetime
import logging
import uuid
from typing import List

from auth import SessionAuthProvider
from config import YamlConfig
from db import KeyValueStore
from local_storage import LocalStorage
from models import WorkoutLog, WorkoutSet
from remote_storage import RemoteStorage
from rest_api import FitLogAPI
from tools import WorkoutAnalyzer
import uvicorn


def demo_data(local_db_path: str) -> None:
    """Populate local storage with demo workouts if empty."""
    local = LocalStorage(KeyValueStore(local_db_path))
    if not local.get_profiles():
        local.create_profile("Demo")
    if local.get_workouts():
        print("Local storage already contains workouts")
        return
    today = datetime.date.today()
    sessions = [
        ("bench-press", 2, [(8, 60.0), (8, 62.5), (6, 65.0)]),
        ("bench-press", 0, [(5, 70.0), (5, 70.0), (4, 72.5)]),
        ("squat", 1, [(5, 100.0), (5, 105.0), (3, 110.0)]),
    ]
    for exercise_id, days_ago, sets in sessions:
        local.save_workout(
            WorkoutLog(
                id=uuid.uuid4().hex,
                date=today - datetime.timedelta(days=days_ago),
                exercise_id=exercise_id,
                sets=[WorkoutSet(reps=r, weight=w) for r, w in sets],
            )
        )
    print("Demo data inserted")


def print_metrics(reps: List[int], weights: List[float]) -> None:
    if len(reps) != len(weights):
        raise ValueError("--reps and --weight must be given the same number of times")
    workout = WorkoutLog(
        id="adhoc",
        date=datetime.date.today(),
        exercise_id="adhoc",
        sets=[WorkoutSet(reps=r, weight=w) for r, w in zip(reps, weights)],
    )
    metrics = WorkoutAnalyzer.calculate_metrics(workout)
    for name, value in metrics.to_json_dict().items():
        print(f"{name}: {value:g}")


def migrate(local_db_path: str, remote_db_path: str, user_id: str) -> None:
    """Copy the current local profile's data into ``user_id``'s account."""
    store = KeyValueStore(local_db_path)
    remote = RemoteStorage(remote_db_path, SessionAuthProvider(user_id), local_store=store)
    result = asyncio.run(remote.migrate_local_storage_data())
    print(f"Migrated {result.workouts} workouts and {result.exercises} custom exercises")


def serve(yaml_path: str) -> None:
    api = FitLogAPI(yaml_path=yaml_path)
    uvicorn.run(api.app, host=api.settings.api_host, port=api.settings.api_port)


def main() -> None:
    parser = argparse.ArgumentParser(description="FitLog utility commands")
    parser.add_argument("--yaml", default="settings.yaml")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("serve")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default=None)

    met = sub.add_parser("metrics")
    met.add_argument("--reps", type=int, action="append", required=True)
    met.add_argument("--weight", type=float, action="append", required=True)

    mig = sub.add_parser("migrate")
    mig.add_argument("--user", required=True)
    mig.add_argument("--db", default=None)
    mig.add_argument("--remote-db", dest="remote_db", default=None)

    args = parser.parse_args()
    settings = YamlConfig(args.yaml).settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.cmd == "serve":
        serve(args.yaml)
    elif args.cmd == "demo":
        demo_data(args.db or settings.local_db_path)
    elif args.cmd == "metrics":
        print_metrics(args.reps, args.weight)
    elif args.cmd == "migrate":
        migrate(
            args.db or settings.local_db_path,
            args.remote_db or settings.remote_db_path,
            args.user,
        )


if __name__ == "__main__":
    main()
