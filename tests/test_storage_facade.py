import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from auth import AuthProvider, SessionAuthProvider
from db import KeyValueStore
from errors import DuplicateIdError, UnsupportedOperationError
from exercises import ExerciseCatalog, PREDEFINED_EXERCISES, generate_exercise_id
from local_storage import LocalStorage
from models import Exercise, WorkoutLog, WorkoutSet
from remote_storage import RemoteStorage
from storage import StorageFacade
from storage_backend import LocalBackend


class BrokenAuth(AuthProvider):
    async def get_current_user_identity(self):
        raise RuntimeError("identity service unavailable")


def workout(wid: str, date: str = "2024-01-01", sets=None):
    return WorkoutLog(
        id=wid,
        date=date,
        exercise_id="bench-press",
        sets=[WorkoutSet(reps=r, weight=w) for r, w in (sets or [(5, 100.0)])],
    )


@pytest.fixture
def auth():
    return SessionAuthProvider()


@pytest.fixture
def facade(tmp_path, auth):
    store = KeyValueStore(str(tmp_path / "local.db"))
    local = LocalStorage(store)
    remote = RemoteStorage(str(tmp_path / "remote.db"), auth, local_store=store)
    return StorageFacade(local, remote, auth)


@pytest.mark.asyncio
async def test_backend_follows_auth_state(facade, auth):
    assert isinstance(await facade.resolve_backend(), LocalBackend)
    await facade.save_workout(workout("local-1"))

    auth.sign_in("user-1")
    assert await facade.resolve_backend() is facade.remote
    assert await facade.get_workouts() == []
    await facade.save_workout(workout("remote-1"))
    assert [w.id for w in await facade.get_workouts()] == ["remote-1"]

    auth.sign_out()
    assert [w.id for w in await facade.get_workouts()] == ["local-1"]


@pytest.mark.asyncio
async def test_failing_auth_falls_back_to_local(tmp_path):
    store = KeyValueStore(str(tmp_path / "local.db"))
    auth = BrokenAuth()
    facade = StorageFacade(
        LocalStorage(store), RemoteStorage(str(tmp_path / "remote.db"), auth), auth
    )
    assert await facade.is_authenticated() is False
    await facade.save_workout(workout("w1"))
    assert [w.id for w in await facade.get_workouts()] == ["w1"]


@pytest.mark.asyncio
async def test_profile_operations_dispatch(facade, auth):
    alice = await facade.create_profile("Alice")
    bob = await facade.create_profile("Bob")
    assert await facade.get_current_profile_id() == alice.id
    await facade.set_current_profile(bob.id)
    assert await facade.get_current_profile_id() == bob.id
    await facade.update_profile(bob.id, "Robert")
    await facade.delete_profile(alice.id)
    assert [p.name for p in await facade.get_profiles()] == ["Robert"]

    auth.sign_in("user-1")
    account = await facade.create_profile("Account")
    assert account.id == "user-1"
    assert [p.id for p in await facade.get_profiles()] == ["user-1"]
    with pytest.raises(UnsupportedOperationError):
        await facade.delete_profile("user-1")


@pytest.mark.asyncio
async def test_workout_reads_dispatch(facade):
    await facade.save_workout(workout("w1", date="2024-01-01", sets=[(10, 50.0)]))
    await facade.save_workout(workout("w2", date="2024-01-02", sets=[(3, 100.0)]))
    await facade.update_workout("w1", workout("w1", date="2024-01-01", sets=[(12, 50.0)]))
    assert (await facade.get_workout_by_id("w1")).sets[0].reps == 12
    assert (await facade.get_max_stats("bench-press")).max_reps == 12
    assert (await facade.get_last_workout("bench-press")).id == "w2"
    best = await facade.get_best_workout("bench-press", "volume")
    assert (best.workout.id, best.value) == ("w1", 600.0)
    assert (await facade.get_max_workout("bench-press")).workout.id == "w2"
    await facade.delete_workout("w2")
    assert [w.id for w in await facade.get_workouts()] == ["w1"]
    metrics = facade.calculate_workout_metrics(workout("x", sets=[(2, 10.0)]))
    assert metrics.total_volume == 20.0


@pytest.mark.asyncio
async def test_custom_exercise_default_policy_per_backend(facade, auth):
    ex = Exercise(id="zercher", name="Zercher", category="Legs", muscle_group="Lower Body")
    await facade.save_custom_exercise(ex)
    with pytest.raises(DuplicateIdError):
        await facade.save_custom_exercise(ex)
    await facade.save_custom_exercise(ex, on_conflict="update")

    auth.sign_in("user-1")
    await facade.save_custom_exercise(ex)
    await facade.save_custom_exercise(ex)
    assert len(await facade.get_custom_exercises()) == 1
    await facade.delete_custom_exercise("zercher")
    assert await facade.get_custom_exercises() == []


@pytest.mark.asyncio
async def test_migration_through_facade(facade, auth):
    await facade.create_profile("Alice")
    await facade.save_workout(workout("w1"))
    auth.sign_in("user-1")
    result = await facade.migrate_local_storage_data()
    assert result.workouts == 1
    assert [w.id for w in await facade.get_workouts()] == ["w1"]


@pytest.mark.asyncio
async def test_catalog_merges_custom_exercises(facade):
    catalog = ExerciseCatalog(facade)
    assert len(await catalog.get_exercise_list()) == len(PREDEFINED_EXERCISES)

    custom = await catalog.add_custom_exercise(" Zercher Squat ", "Legs", "Lower Body")
    assert custom.id == "zercher-squat"
    assert custom.name == "Zercher Squat"
    assert (await catalog.get_exercise_by_id("zercher-squat")).name == "Zercher Squat"
    assert len(await catalog.get_exercise_list()) == len(PREDEFINED_EXERCISES) + 1

    override = Exercise(id="squat", name="Safety Bar Squat", category="Legs", muscle_group="Lower Body")
    await facade.save_custom_exercise(override)
    assert (await catalog.get_exercise_by_id("squat")).name == "Safety Bar Squat"
    assert await catalog.get_exercise_by_id("nope") is None

    categories = await catalog.get_categories()
    assert categories == ["Chest", "Back", "Shoulders", "Arms", "Legs", "Core"]
    assert await catalog.get_muscle_groups() == ["Upper Body", "Lower Body", "Core"]

    with pytest.raises(ValueError):
        await catalog.add_custom_exercise("  !!! ", "Legs", "Lower Body")


def test_generate_exercise_id():
    assert generate_exercise_id("Bench Press") == "bench-press"
    assert generate_exercise_id("  Close-Grip  Bench (Paused) ") == "close-grip-bench-paused"
    assert generate_exercise_id("***") == ""
