import datetime
import json
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from auth import SessionAuthProvider
from db import KeyValueStore
from errors import (
    AuthenticationRequiredError,
    DuplicateIdError,
    NotFoundError,
    StorageError,
    UnsupportedOperationError,
)
from exercises import PREDEFINED_EXERCISES
from local_storage import LocalStorage
from models import Exercise, WorkoutLog, WorkoutSet
from remote_storage import RemoteStorage


def workout(wid: str, date: str = "2024-01-01", exercise_id: str = "bench-press", sets=None):
    return WorkoutLog(
        id=wid,
        date=date,
        exercise_id=exercise_id,
        sets=[WorkoutSet(reps=r, weight=w) for r, w in (sets or [(5, 100.0)])],
    )


@pytest.fixture
def auth():
    return SessionAuthProvider("user-1")


@pytest.fixture
def remote(tmp_path, auth):
    return RemoteStorage(str(tmp_path / "remote.db"), auth)


@pytest.mark.asyncio
async def test_reads_without_user_are_empty(tmp_path):
    remote = RemoteStorage(str(tmp_path / "remote.db"), SessionAuthProvider())
    assert await remote.get_workouts() == []
    assert await remote.get_workout_by_id("w1") is None
    assert await remote.get_profiles() == []
    assert await remote.get_current_profile_id() is None
    assert await remote.get_custom_exercises() == []
    assert await remote.get_best_workout("bench-press") is None


@pytest.mark.asyncio
async def test_writes_without_user_raise(tmp_path):
    remote = RemoteStorage(str(tmp_path / "remote.db"), SessionAuthProvider())
    with pytest.raises(AuthenticationRequiredError):
        await remote.save_workout(workout("w1"))
    with pytest.raises(AuthenticationRequiredError):
        await remote.create_profile("Alice")
    with pytest.raises(AuthenticationRequiredError):
        await remote.delete_custom_exercise("x")
    with pytest.raises(AuthenticationRequiredError):
        await remote.migrate_local_storage_data()


@pytest.mark.asyncio
async def test_workout_roundtrip_and_order(remote):
    await remote.save_workout(workout("w1", date="2024-01-01"))
    await remote.save_workout(workout("w2", date="2024-01-03", sets=[(8, 60.0), (6, 70.0)]))
    await remote.save_workout(workout("w3", date="2024-01-03", exercise_id="squat"))
    assert [w.id for w in await remote.get_workouts()] == ["w2", "w3", "w1"]
    assert [w.id for w in await remote.get_workouts(exercise_id="squat")] == ["w3"]
    assert [w.id for w in await remote.get_workouts(date=datetime.date(2024, 1, 1))] == ["w1"]
    fetched = await remote.get_workout_by_id("w2")
    assert [(s.reps, s.weight) for s in fetched.sets] == [(8, 60.0), (6, 70.0)]


@pytest.mark.asyncio
async def test_workouts_are_scoped_to_user(remote, auth):
    await remote.save_workout(workout("w1"))
    auth.sign_in("user-2")
    assert await remote.get_workouts() == []
    assert await remote.get_workout_by_id("w1") is None
    with pytest.raises(NotFoundError):
        await remote.update_workout("w1", workout("w1"))


@pytest.mark.asyncio
async def test_update_and_delete_workout(remote):
    await remote.save_workout(workout("w1"))
    await remote.update_workout("w1", workout("w1", date="2024-05-05", sets=[(2, 150.0)]))
    updated = await remote.get_workout_by_id("w1")
    assert updated.date == datetime.date(2024, 5, 5)
    assert updated.sets[0].weight == 150.0
    with pytest.raises(NotFoundError):
        await remote.update_workout("missing", workout("missing"))
    await remote.delete_workout("w1")
    assert await remote.get_workouts() == []


@pytest.mark.asyncio
async def test_duplicate_workout_id_is_storage_error(remote):
    await remote.save_workout(workout("w1"))
    with pytest.raises(StorageError):
        await remote.save_workout(workout("w1"))


@pytest.mark.asyncio
async def test_derived_reads(remote):
    await remote.save_workout(workout("w1", date="2024-01-01", sets=[(10, 50.0)]))
    await remote.save_workout(workout("w2", date="2024-01-02", sets=[(3, 100.0)]))
    stats = await remote.get_max_stats("bench-press")
    assert (stats.max_reps, stats.max_weight) == (10, 100.0)
    assert (await remote.get_last_workout("bench-press")).id == "w2"
    assert (await remote.get_best_workout("bench-press", "1rm")).workout.id == "w2"
    assert (await remote.get_best_workout("bench-press", exclude_id="w1")).workout.id == "w2"
    assert (await remote.get_max_workout("bench-press")).workout.id == "w2"


@pytest.mark.asyncio
async def test_single_account_profile(remote):
    assert await remote.get_profiles() == []
    with pytest.raises(NotFoundError):
        await remote.update_profile("user-1", "Alice")
    profile = await remote.create_profile(" Alice ")
    assert (profile.id, profile.name) == ("user-1", "Alice")
    again = await remote.create_profile("Alicia")
    assert again.name == "Alicia"
    assert [p.id for p in await remote.get_profiles()] == ["user-1"]
    await remote.update_profile("ignored", "Ali")
    assert (await remote.get_profile()).updated_at is not None
    assert await remote.get_current_profile_id() == "user-1"
    await remote.set_current_profile("other")
    assert await remote.get_current_profile_id() == "user-1"
    with pytest.raises(UnsupportedOperationError):
        await remote.delete_profile("user-1")
    assert remote.supports_multiple_profiles is False


@pytest.mark.asyncio
async def test_exercise_catalog_is_seeded(remote):
    exercises = await remote.get_exercises()
    assert len(exercises) == len(PREDEFINED_EXERCISES)
    assert {e.id for e in exercises} == {e.id for e in PREDEFINED_EXERCISES}


@pytest.mark.asyncio
async def test_custom_exercise_upsert(remote):
    ex = Exercise(id="zercher", name="Zercher", category="Legs", muscle_group="Lower Body")
    await remote.save_custom_exercise(ex)
    await remote.save_custom_exercise(ex.model_copy(update={"name": "Zercher Squat"}))
    assert [e.name for e in await remote.get_custom_exercises()] == ["Zercher Squat"]
    with pytest.raises(DuplicateIdError):
        await remote.save_custom_exercise(ex, on_conflict="error")
    with pytest.raises(ValueError):
        await remote.save_custom_exercise(ex, on_conflict="skip")
    await remote.delete_custom_exercise("zercher")
    assert await remote.get_custom_exercises() == []


@pytest.mark.asyncio
async def test_unprovisioned_datastore_degrades(tmp_path, auth):
    remote = RemoteStorage(str(tmp_path / "empty.db"), auth, provision=False)
    assert await remote.get_workouts() == []
    assert await remote.get_exercises() == []
    assert await remote.get_custom_exercises() == []
    assert await remote.get_profiles() == []
    with pytest.raises(StorageError):
        await remote.save_workout(workout("w1"))


@pytest.mark.asyncio
async def test_migration_is_idempotent(tmp_path, auth):
    store = KeyValueStore(str(tmp_path / "local.db"))
    local = LocalStorage(store)
    local.create_profile("Alice")
    local.save_workout(workout("w1"))
    local.save_workout(workout("w2", date="2024-01-02"))
    local.save_custom_exercise(
        Exercise(id="zercher", name="Zercher", category="Legs", muscle_group="Lower Body")
    )
    remote = RemoteStorage(str(tmp_path / "remote.db"), auth, local_store=store)

    result = await remote.migrate_local_storage_data()
    assert (result.workouts, result.exercises) == (2, 1)
    assert {w.id for w in await remote.get_workouts()} == {"w1", "w2"}
    assert [e.id for e in await remote.get_custom_exercises()] == ["zercher"]

    result = await remote.migrate_local_storage_data()
    assert (result.workouts, result.exercises) == (0, 0)
    assert len(await remote.get_workouts()) == 2

    local.save_workout(workout("w3", date="2024-01-03"))
    result = await remote.migrate_local_storage_data()
    assert (result.workouts, result.exercises) == (1, 0)
    assert len(await remote.get_workouts()) == 3
    # local data is left in place
    assert len(local.get_workouts()) == 3


@pytest.mark.asyncio
async def test_migration_without_local_data(tmp_path, auth):
    store = KeyValueStore(str(tmp_path / "local.db"))
    remote = RemoteStorage(str(tmp_path / "remote.db"), auth, local_store=store)
    result = await remote.migrate_local_storage_data()
    assert (result.workouts, result.exercises) == (0, 0)
    store.set_item("fitlog-current-profile", "profile-x")
    store.set_item("fitlog-workouts-profile-x", json.dumps({"broken": True}))
    result = await remote.migrate_local_storage_data()
    assert result.workouts == 0
    no_store = RemoteStorage(str(tmp_path / "remote.db"), auth)
    assert (await no_store.migrate_local_storage_data()).workouts == 0
