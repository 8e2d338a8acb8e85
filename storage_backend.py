import datetime
from typing import List, Optional

from local_storage import LocalStorage
from models import (
    BestWorkoutMetric,
    BestWorkoutResult,
    Exercise,
    MaxStats,
    MaxWorkoutResult,
    Profile,
    WorkoutLog,
)


class StorageBackend:
    """Capability interface shared by the local and remote storage backends.

    ``supports_multiple_profiles`` tells callers whether profiles can be
    created and deleted independently or are a projection of one account.
    """

    supports_multiple_profiles: bool = False

    async def get_current_profile_id(self) -> Optional[str]:
        raise NotImplementedError()

    async def set_current_profile(self, profile_id: str) -> None:
        raise NotImplementedError()

    async def get_profiles(self) -> List[Profile]:
        raise NotImplementedError()

    async def create_profile(self, name: str) -> Profile:
        raise NotImplementedError()

    async def update_profile(self, profile_id: str, name: str) -> None:
        raise NotImplementedError()

    async def delete_profile(self, profile_id: str) -> None:
        raise NotImplementedError()

    async def save_workout(self, workout: WorkoutLog) -> None:
        raise NotImplementedError()

    async def get_workouts(
        self, exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
    ) -> List[WorkoutLog]:
        raise NotImplementedError()

    async def get_workout_by_id(self, workout_id: str) -> Optional[WorkoutLog]:
        raise NotImplementedError()

    async def update_workout(self, workout_id: str, workout: WorkoutLog) -> None:
        raise NotImplementedError()

    async def delete_workout(self, workout_id: str) -> None:
        raise NotImplementedError()

    async def get_max_stats(self, exercise_id: str) -> MaxStats:
        raise NotImplementedError()

    async def get_last_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        raise NotImplementedError()

    async def get_best_workout(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        raise NotImplementedError()

    async def get_max_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        raise NotImplementedError()

    async def get_exercises(self) -> List[Exercise]:
        raise NotImplementedError()

    async def save_custom_exercise(
        self, exercise: Exercise, on_conflict: Optional[str] = None
    ) -> None:
        raise NotImplementedError()

    async def get_custom_exercises(self) -> List[Exercise]:
        raise NotImplementedError()

    async def delete_custom_exercise(self, exercise_id: str) -> None:
        raise NotImplementedError()


class LocalBackend(StorageBackend):
    """Coroutine wrapper around the synchronous ``LocalStorage`` adapter."""

    supports_multiple_profiles = True

    def __init__(self, local: LocalStorage) -> None:
        self.local = local

    async def get_current_profile_id(self) -> Optional[str]:
        return self.local.get_current_profile_id()

    async def set_current_profile(self, profile_id: str) -> None:
        self.local.set_current_profile(profile_id)

    async def get_profiles(self) -> List[Profile]:
        return self.local.get_profiles()

    async def create_profile(self, name: str) -> Profile:
        return self.local.create_profile(name)

    async def update_profile(self, profile_id: str, name: str) -> None:
        self.local.update_profile(profile_id, name)

    async def delete_profile(self, profile_id: str) -> None:
        self.local.delete_profile(profile_id)

    async def save_workout(self, workout: WorkoutLog) -> None:
        self.local.save_workout(workout)

    async def get_workouts(
        self, exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
    ) -> List[WorkoutLog]:
        return self.local.get_workouts(exercise_id, date)

    async def get_workout_by_id(self, workout_id: str) -> Optional[WorkoutLog]:
        return self.local.get_workout_by_id(workout_id)

    async def update_workout(self, workout_id: str, workout: WorkoutLog) -> None:
        self.local.update_workout(workout_id, workout)

    async def delete_workout(self, workout_id: str) -> None:
        self.local.delete_workout(workout_id)

    async def get_max_stats(self, exercise_id: str) -> MaxStats:
        return self.local.get_max_stats(exercise_id)

    async def get_last_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        return self.local.get_last_workout(exercise_id, exclude_id)

    async def get_best_workout(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        return self.local.get_best_workout(exercise_id, metric, exclude_id)

    async def get_max_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        return self.local.get_max_workout(exercise_id, exclude_id)

    async def get_exercises(self) -> List[Exercise]:
        return self.local.get_exercises()

    async def save_custom_exercise(
        self, exercise: Exercise, on_conflict: Optional[str] = None
    ) -> None:
        self.local.save_custom_exercise(exercise, on_conflict or "error")

    async def get_custom_exercises(self) -> List[Exercise]:
        return self.local.get_custom_exercises()

    async def delete_custom_exercise(self, exercise_id: str) -> None:
        self.local.delete_custom_exercise(exercise_id)
