import datetime
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from auth import SessionAuthProvider
from db import KeyValueStore
from local_storage import LocalStorage
from models import WorkoutLog, WorkoutSet
from remote_storage import RemoteStorage
from stats_service import StatisticsService
from storage import StorageFacade


def workout(wid, date, exercise_id, sets):
    return WorkoutLog(
        id=wid,
        date=date,
        exercise_id=exercise_id,
        sets=[WorkoutSet(reps=r, weight=w) for r, w in sets],
    )


@pytest.fixture
def service(tmp_path):
    auth = SessionAuthProvider()
    store = KeyValueStore(str(tmp_path / "local.db"))
    facade = StorageFacade(
        LocalStorage(store), RemoteStorage(str(tmp_path / "remote.db"), auth), auth
    )
    return StatisticsService(facade)


@pytest.mark.asyncio
async def test_daily_summary_and_overview(service):
    storage = service.storage
    await storage.save_workout(workout("a", "2024-01-01", "bench-press", [(10, 50.0)]))
    await storage.save_workout(workout("b", "2024-01-01", "squat", [(5, 100.0)]))
    await storage.save_workout(workout("c", "2024-01-02", "bench-press", [(5, 60.0)]))

    days = await service.daily_summary()
    assert [d["date"] for d in days] == [datetime.date(2024, 1, 2), datetime.date(2024, 1, 1)]
    assert days[1]["exercise_ids"] == ["bench-press", "squat"]
    assert days[1]["total_volume"] == 1000.0

    overview = await service.overview()
    assert overview == {
        "total_days": 2,
        "total_workouts": 3,
        "total_volume": 1300.0,
        "unique_exercises": 2,
    }


@pytest.mark.asyncio
async def test_empty_overview(service):
    assert await service.daily_summary() == []
    overview = await service.overview()
    assert overview["total_workouts"] == 0
    assert overview["total_volume"] == 0


@pytest.mark.asyncio
async def test_exercise_dashboard(service):
    storage = service.storage
    await storage.save_workout(workout("a", "2024-01-01", "bench-press", [(10, 50.0)]))
    await storage.save_workout(workout("b", "2024-01-02", "bench-press", [(3, 100.0)]))

    dashboard = await service.exercise_dashboard("bench-press", "weight")
    assert dashboard["max_stats"].max_weight == 100.0
    assert dashboard["last_workout"].id == "b"
    assert dashboard["last_metrics"].total_volume == 300.0
    assert dashboard["best_workout"].workout.id == "b"

    # exclude the session being edited
    dashboard = await service.exercise_dashboard("bench-press", "weight", exclude_id="b")
    assert dashboard["last_workout"].id == "a"
    assert dashboard["best_workout"].workout.id == "a"

    empty = await service.exercise_dashboard("deadlift")
    assert empty["last_workout"] is None
    assert empty["last_metrics"] is None
    assert empty["best_workout"] is None
