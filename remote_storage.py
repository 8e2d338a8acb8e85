import datetime
import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import List, Optional, Tuple

from auth import AuthProvider
from db import (
    AsyncCustomExerciseRepository,
    AsyncExerciseRepository,
    AsyncProfileRepository,
    AsyncWorkoutRepository,
)
from errors import (
    AuthenticationRequiredError,
    DuplicateIdError,
    NotFoundError,
    StorageError,
    UnsupportedOperationError,
)
from local_storage import (
    CONFLICT_POLICIES,
    CURRENT_PROFILE_KEY,
    CUSTOM_EXERCISES_KEY_PREFIX,
    STORAGE_KEY_PREFIX,
    load_models,
)
from models import (
    BestWorkoutMetric,
    BestWorkoutResult,
    Exercise,
    MaxStats,
    MaxWorkoutResult,
    MigrationResult,
    Profile,
    WorkoutLog,
)
from storage_backend import StorageBackend
from tools import WorkoutAnalyzer

logger = logging.getLogger(__name__)


def _log_read_error(what: str, error: sqlite3.Error) -> None:
    if "no such table" in str(error):
        logger.warning("%s table does not exist, returning no results", what)
    else:
        logger.error("Error retrieving %s: %s", what, error)


@contextmanager
def _write_errors(action: str):
    try:
        yield
    except sqlite3.Error as e:
        logger.error("Error trying to %s: %s", action, e)
        raise StorageError(f"failed to {action}") from e


class RemoteStorage(StorageBackend):
    """Hosted datastore backend scoped to the signed-in user.

    Reads without an identity return empty results, writes raise
    ``AuthenticationRequiredError``. The account has exactly one profile
    whose id is the user id.
    """

    supports_multiple_profiles = False

    def __init__(
        self,
        db_path: str,
        auth: AuthProvider,
        local_store=None,
        provision: bool = True,
    ) -> None:
        self.auth = auth
        self.local_store = local_store
        self.profiles = AsyncProfileRepository(db_path, provision)
        self.exercises = AsyncExerciseRepository(db_path, provision)
        self.custom_exercises = AsyncCustomExerciseRepository(db_path, provision)
        self.workouts = AsyncWorkoutRepository(db_path, provision)

    async def _user_id(self) -> Optional[str]:
        return await self.auth.get_current_user_identity()

    async def _require_user(self) -> str:
        user_id = await self._user_id()
        if not user_id:
            raise AuthenticationRequiredError()
        return user_id

    @staticmethod
    def _workout_from_row(row: Tuple[str, str, str, str]) -> WorkoutLog:
        workout_id, date, exercise_id, sets = row
        return WorkoutLog(
            id=workout_id, date=date, exercise_id=exercise_id, sets=json.loads(sets)
        )

    @staticmethod
    def _exercise_from_row(row: Tuple[str, str, str, str]) -> Exercise:
        exercise_id, name, category, muscle_group = row
        return Exercise(
            id=exercise_id, name=name, category=category, muscle_group=muscle_group
        )

    @staticmethod
    def _sets_json(workout: WorkoutLog) -> str:
        return json.dumps([s.to_json_dict() for s in workout.sets])

    # profiles

    async def get_profile(self) -> Optional[Profile]:
        user_id = await self._user_id()
        if not user_id:
            return None
        try:
            row = await self.profiles.fetch_detail(user_id)
        except sqlite3.Error as e:
            _log_read_error("profiles", e)
            return None
        if row is None:
            return None
        pid, name, created_at, updated_at = row
        return Profile(id=pid, name=name, created_at=created_at, updated_at=updated_at)

    async def get_current_profile_id(self) -> Optional[str]:
        profile = await self.get_profile()
        return profile.id if profile else None

    async def set_current_profile(self, profile_id: str) -> None:
        # the account profile is always current
        return None

    async def get_profiles(self) -> List[Profile]:
        profile = await self.get_profile()
        return [profile] if profile else []

    async def create_profile(self, name: str) -> Profile:
        """Set the account display name, creating the profile row if needed."""
        user_id = await self._require_user()
        timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
        with _write_errors("create profile"):
            await self.profiles.upsert_name(user_id, name.strip(), timestamp)
        profile = await self.get_profile()
        if profile is None:
            raise StorageError("failed to create profile")
        return profile

    async def update_profile(self, profile_id: str, name: str) -> None:
        user_id = await self._require_user()
        timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
        with _write_errors("update profile"):
            count = await self.profiles.update_name(user_id, name.strip(), timestamp)
        if count == 0:
            raise NotFoundError("profile not found")

    async def delete_profile(self, profile_id: str) -> None:
        raise UnsupportedOperationError(
            "cannot delete the profile of a signed-in account, delete the account instead"
        )

    # workouts

    async def save_workout(self, workout: WorkoutLog) -> None:
        user_id = await self._require_user()
        with _write_errors("save workout"):
            await self.workouts.create(
                workout.id,
                user_id,
                workout.date.isoformat(),
                workout.exercise_id,
                self._sets_json(workout),
            )

    async def get_workouts(
        self, exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
    ) -> List[WorkoutLog]:
        user_id = await self._user_id()
        if not user_id:
            return []
        try:
            rows = await self.workouts.fetch_all_workouts(
                user_id, exercise_id, date.isoformat() if date else None
            )
        except sqlite3.Error as e:
            _log_read_error("workouts", e)
            return []
        return [self._workout_from_row(r) for r in rows]

    async def get_workout_by_id(self, workout_id: str) -> Optional[WorkoutLog]:
        user_id = await self._user_id()
        if not user_id:
            return None
        try:
            row = await self.workouts.fetch_detail(workout_id, user_id)
        except sqlite3.Error as e:
            _log_read_error("workouts", e)
            return None
        return self._workout_from_row(row) if row else None

    async def update_workout(self, workout_id: str, workout: WorkoutLog) -> None:
        user_id = await self._require_user()
        with _write_errors("update workout"):
            count = await self.workouts.update(
                workout_id,
                user_id,
                workout.date.isoformat(),
                workout.exercise_id,
                self._sets_json(workout),
            )
        if count == 0:
            raise NotFoundError("workout not found")

    async def delete_workout(self, workout_id: str) -> None:
        user_id = await self._require_user()
        with _write_errors("delete workout"):
            await self.workouts.delete(workout_id, user_id)

    async def get_max_stats(self, exercise_id: str) -> MaxStats:
        return WorkoutAnalyzer.max_stats(await self.get_workouts(exercise_id))

    async def get_last_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        return WorkoutAnalyzer.select_last(await self.get_workouts(exercise_id), exclude_id)

    async def get_best_workout(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        return WorkoutAnalyzer.select_best(
            await self.get_workouts(exercise_id), metric, exclude_id
        )

    async def get_max_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        return WorkoutAnalyzer.select_max_workout(
            await self.get_workouts(exercise_id), exclude_id
        )

    # exercises

    async def get_exercises(self) -> List[Exercise]:
        try:
            rows = await self.exercises.fetch_catalog()
        except sqlite3.Error as e:
            _log_read_error("exercises", e)
            return []
        return [self._exercise_from_row(r) for r in rows]

    async def save_custom_exercise(
        self, exercise: Exercise, on_conflict: Optional[str] = None
    ) -> None:
        """Insert a custom exercise; on an id conflict update it by default."""
        policy = on_conflict or "update"
        if policy not in CONFLICT_POLICIES:
            raise ValueError(f"unknown conflict policy: {policy}")
        user_id = await self._require_user()
        fields = (user_id, exercise.id, exercise.name, exercise.category, exercise.muscle_group)
        with _write_errors("save custom exercise"):
            try:
                await self.custom_exercises.add(*fields)
            except sqlite3.IntegrityError:
                if policy == "error":
                    raise DuplicateIdError() from None
                await self.custom_exercises.update(*fields)

    async def get_custom_exercises(self) -> List[Exercise]:
        user_id = await self._user_id()
        if not user_id:
            return []
        try:
            rows = await self.custom_exercises.fetch_for_user(user_id)
        except sqlite3.Error as e:
            _log_read_error("custom_exercises", e)
            return []
        return [self._exercise_from_row(r) for r in rows]

    async def delete_custom_exercise(self, exercise_id: str) -> None:
        user_id = await self._require_user()
        with _write_errors("delete custom exercise"):
            await self.custom_exercises.delete(user_id, exercise_id)

    # migration

    async def migrate_local_storage_data(self) -> MigrationResult:
        """Copy the current local profile's data into the signed-in account.

        Reads the raw local blobs and inserts every workout and custom
        exercise that does not exist remotely yet, so running it again
        after a partial failure only picks up what is still missing.
        """
        user_id = await self._require_user()
        if self.local_store is None:
            return MigrationResult()
        profile_id = self.local_store.get_item(CURRENT_PROFILE_KEY)
        if not profile_id:
            return MigrationResult()

        workouts_key = f"{STORAGE_KEY_PREFIX}{profile_id}"
        exercises_key = f"{CUSTOM_EXERCISES_KEY_PREFIX}{profile_id}"
        workouts = load_models(self.local_store.get_item(workouts_key), WorkoutLog, workouts_key)
        exercises = load_models(self.local_store.get_item(exercises_key), Exercise, exercises_key)

        migrated_workouts = 0
        migrated_exercises = 0
        with _write_errors("migrate local data"):
            for workout in workouts:
                if await self.workouts.exists(workout.id, user_id):
                    continue
                await self.workouts.create(
                    workout.id,
                    user_id,
                    workout.date.isoformat(),
                    workout.exercise_id,
                    self._sets_json(workout),
                )
                migrated_workouts += 1
            for exercise in exercises:
                if await self.custom_exercises.exists(user_id, exercise.id):
                    continue
                await self.custom_exercises.add(
                    user_id,
                    exercise.id,
                    exercise.name,
                    exercise.category,
                    exercise.muscle_group,
                )
                migrated_exercises += 1

        logger.info(
            "Migrated %d workouts and %d custom exercises from local profile %s",
            migrated_workouts,
            migrated_exercises,
            profile_id,
        )
        return MigrationResult(workouts=migrated_workouts, exercises=migrated_exercises)
