import datetime
import logging
from typing import List, Optional

from auth import AuthProvider
from local_storage import LocalStorage
from models import (
    BestWorkoutMetric,
    BestWorkoutResult,
    Exercise,
    MaxStats,
    MaxWorkoutResult,
    MigrationResult,
    Profile,
    WorkoutLog,
    WorkoutMetrics,
)
from remote_storage import RemoteStorage
from storage_backend import LocalBackend, StorageBackend
from tools import WorkoutAnalyzer

logger = logging.getLogger(__name__)


class StorageFacade:
    """Single coroutine API routing each call to the local or remote backend.

    The backend is resolved again on every call, so signing in or out takes
    effect on the next operation without any explicit mode switch.
    """

    def __init__(
        self, local: LocalStorage, remote: RemoteStorage, auth: AuthProvider
    ) -> None:
        self.local = LocalBackend(local)
        self.remote = remote
        self.auth = auth

    async def is_authenticated(self) -> bool:
        try:
            return bool(await self.auth.get_current_user_identity())
        except Exception as e:
            logger.warning("Auth lookup failed, using local storage: %s", e)
            return False

    async def resolve_backend(self) -> StorageBackend:
        if await self.is_authenticated():
            return self.remote
        return self.local

    @staticmethod
    def calculate_workout_metrics(workout: WorkoutLog) -> WorkoutMetrics:
        return WorkoutAnalyzer.calculate_metrics(workout)

    async def get_current_profile_id(self) -> Optional[str]:
        return await (await self.resolve_backend()).get_current_profile_id()

    async def set_current_profile(self, profile_id: str) -> None:
        await (await self.resolve_backend()).set_current_profile(profile_id)

    async def get_profiles(self) -> List[Profile]:
        return await (await self.resolve_backend()).get_profiles()

    async def create_profile(self, name: str) -> Profile:
        return await (await self.resolve_backend()).create_profile(name)

    async def update_profile(self, profile_id: str, name: str) -> None:
        await (await self.resolve_backend()).update_profile(profile_id, name)

    async def delete_profile(self, profile_id: str) -> None:
        await (await self.resolve_backend()).delete_profile(profile_id)

    async def save_workout(self, workout: WorkoutLog) -> None:
        await (await self.resolve_backend()).save_workout(workout)

    async def get_workouts(
        self, exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
    ) -> List[WorkoutLog]:
        return await (await self.resolve_backend()).get_workouts(exercise_id, date)

    async def get_workout_by_id(self, workout_id: str) -> Optional[WorkoutLog]:
        return await (await self.resolve_backend()).get_workout_by_id(workout_id)

    async def update_workout(self, workout_id: str, workout: WorkoutLog) -> None:
        await (await self.resolve_backend()).update_workout(workout_id, workout)

    async def delete_workout(self, workout_id: str) -> None:
        await (await self.resolve_backend()).delete_workout(workout_id)

    async def get_max_stats(self, exercise_id: str) -> MaxStats:
        return await (await self.resolve_backend()).get_max_stats(exercise_id)

    async def get_last_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        backend = await self.resolve_backend()
        return await backend.get_last_workout(exercise_id, exclude_id)

    async def get_best_workout(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        backend = await self.resolve_backend()
        return await backend.get_best_workout(exercise_id, metric, exclude_id)

    async def get_max_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        backend = await self.resolve_backend()
        return await backend.get_max_workout(exercise_id, exclude_id)

    async def get_exercises(self) -> List[Exercise]:
        return await (await self.resolve_backend()).get_exercises()

    async def save_custom_exercise(
        self, exercise: Exercise, on_conflict: Optional[str] = None
    ) -> None:
        backend = await self.resolve_backend()
        await backend.save_custom_exercise(exercise, on_conflict)

    async def get_custom_exercises(self) -> List[Exercise]:
        return await (await self.resolve_backend()).get_custom_exercises()

    async def delete_custom_exercise(self, exercise_id: str) -> None:
        await (await self.resolve_backend()).delete_custom_exercise(exercise_id)

    async def migrate_local_storage_data(self) -> MigrationResult:
        return await self.remote.migrate_local_storage_data()
