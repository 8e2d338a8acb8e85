"""Profile-scoped workout storage on top of a local key-value store.

All data of a profile lives in two JSON blobs keyed by
``prefix + profile_id``; switching profiles only moves the current-profile
pointer. Every write is a read-modify-write of a whole blob and is not
atomic across processes sharing the same store. Reads skip malformed
entries; a write refuses to rewrite a blob that holds any.
"""

import datetime
import json
import logging
import uuid
from typing import List, Optional, Tuple, Type, TypeVar

from errors import (
    DuplicateIdError,
    DuplicateNameError,
    LastProfileError,
    NotFoundError,
    StorageError,
    UnsupportedOperationError,
)
from exercises import PREDEFINED_EXERCISES
from models import (
    BestWorkoutMetric,
    BestWorkoutResult,
    CamelModel,
    Exercise,
    MaxStats,
    MaxWorkoutResult,
    Profile,
    WorkoutLog,
)
from tools import WorkoutAnalyzer

PROFILES_KEY = "fitlog-profiles"
CURRENT_PROFILE_KEY = "fitlog-current-profile"
STORAGE_KEY_PREFIX = "fitlog-workouts-"
CUSTOM_EXERCISES_KEY_PREFIX = "fitlog-custom-exercises-"
DEFAULT_NAMESPACE = "default"

CONFLICT_POLICIES = ("error", "update")

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=CamelModel)


def parse_models(raw: Optional[str], model: Type[T], key: str) -> Tuple[List[T], int]:
    """Return the valid models in a JSON list blob and how many entries were rejected.

    Each entry is validated on its own, so one malformed record does not hide
    the rest. A blob that is not a JSON list counts as one rejected entry.
    """
    if not raw:
        return [], 0
    try:
        items = json.loads(raw)
    except ValueError as e:
        logger.error("Error reading %s: %s", key, e)
        return [], 1
    if not isinstance(items, list):
        logger.error("Error reading %s: expected a list", key)
        return [], 1

    valid: List[T] = []
    rejected = 0
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except (ValueError, TypeError) as e:
            rejected += 1
            logger.warning("Skipping malformed entry in %s: %s", key, e)
    return valid, rejected


def load_models(raw: Optional[str], model: Type[T], key: str) -> List[T]:
    """Parse a JSON list blob into models, skipping malformed entries."""
    return parse_models(raw, model, key)[0]


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class LocalStorage:
    """Synchronous CRUD of profiles, workouts and custom exercises.

    ``store`` must provide ``get_item``, ``set_item`` and ``remove_item``.
    Without a store every read returns its empty default and every write
    is a no-op.
    """

    supports_multiple_profiles = True

    def __init__(self, store=None) -> None:
        self.store = store

    def _read(self, key: str, model: Type[T]) -> List[T]:
        if self.store is None:
            return []
        return load_models(self.store.get_item(key), model, key)

    def _read_for_update(self, key: str, model: Type[T]) -> List[T]:
        """Read a blob that is about to be rewritten, refusing to drop bad entries."""
        items, rejected = parse_models(self.store.get_item(key), model, key)
        if rejected:
            raise StorageError(f"stored data for {key} is unreadable, not overwriting it")
        return items

    def _write(self, key: str, items: List[CamelModel]) -> None:
        self.store.set_item(key, json.dumps([i.to_json_dict() for i in items]))

    def _namespace(self) -> str:
        return self.get_current_profile_id() or DEFAULT_NAMESPACE

    def _workouts_key(self) -> str:
        return f"{STORAGE_KEY_PREFIX}{self._namespace()}"

    def _custom_exercises_key(self) -> str:
        return f"{CUSTOM_EXERCISES_KEY_PREFIX}{self._namespace()}"

    # profiles

    def get_current_profile_id(self) -> Optional[str]:
        if self.store is None:
            return None
        return self.store.get_item(CURRENT_PROFILE_KEY)

    def set_current_profile(self, profile_id: str) -> None:
        if self.store is None:
            return
        self.store.set_item(CURRENT_PROFILE_KEY, profile_id)

    def get_profiles(self) -> List[Profile]:
        return self._read(PROFILES_KEY, Profile)

    @staticmethod
    def _name_taken(profiles: List[Profile], name: str, skip_id: Optional[str] = None) -> bool:
        wanted = name.strip().lower()
        return any(p.id != skip_id and p.name.lower() == wanted for p in profiles)

    def create_profile(self, name: str) -> Profile:
        if self.store is None:
            raise UnsupportedOperationError("cannot create profile without local storage")
        profiles = self._read_for_update(PROFILES_KEY, Profile)
        if self._name_taken(profiles, name):
            raise DuplicateNameError()
        profile = Profile(
            id=f"profile-{uuid.uuid4().hex}",
            name=name.strip(),
            created_at=_now(),
        )
        profiles.append(profile)
        self._write(PROFILES_KEY, profiles)
        if len(profiles) == 1:
            self.set_current_profile(profile.id)
        return profile

    def update_profile(self, profile_id: str, name: str) -> None:
        if self.store is None:
            return
        profiles = self._read_for_update(PROFILES_KEY, Profile)
        index = next((i for i, p in enumerate(profiles) if p.id == profile_id), None)
        if index is None:
            raise NotFoundError("profile not found")
        if self._name_taken(profiles, name, skip_id=profile_id):
            raise DuplicateNameError()
        profiles[index] = profiles[index].model_copy(
            update={"name": name.strip(), "updated_at": _now()}
        )
        self._write(PROFILES_KEY, profiles)

    def delete_profile(self, profile_id: str) -> None:
        """Remove a profile together with its workouts and custom exercises."""
        if self.store is None:
            return
        profiles = self._read_for_update(PROFILES_KEY, Profile)
        remaining = [p for p in profiles if p.id != profile_id]
        if not remaining:
            raise LastProfileError()
        self.store.remove_item(f"{STORAGE_KEY_PREFIX}{profile_id}")
        self.store.remove_item(f"{CUSTOM_EXERCISES_KEY_PREFIX}{profile_id}")
        self._write(PROFILES_KEY, remaining)
        if self.get_current_profile_id() == profile_id:
            self.set_current_profile(remaining[0].id)

    # workouts

    def save_workout(self, workout: WorkoutLog) -> None:
        if self.store is None:
            return
        workouts = self._read_for_update(self._workouts_key(), WorkoutLog)
        workouts.append(workout)
        self._write(self._workouts_key(), workouts)

    def get_workouts(
        self, exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
    ) -> List[WorkoutLog]:
        workouts = self._read(self._workouts_key(), WorkoutLog)
        if exercise_id:
            workouts = [w for w in workouts if w.exercise_id == exercise_id]
        if date:
            workouts = [w for w in workouts if w.date == date]
        return workouts

    def get_workout_by_id(self, workout_id: str) -> Optional[WorkoutLog]:
        return next((w for w in self.get_workouts() if w.id == workout_id), None)

    def update_workout(self, workout_id: str, workout: WorkoutLog) -> None:
        if self.store is None:
            return
        workouts = self._read_for_update(self._workouts_key(), WorkoutLog)
        index = next((i for i, w in enumerate(workouts) if w.id == workout_id), None)
        if index is None:
            raise NotFoundError("workout not found")
        workouts[index] = workout.model_copy(update={"id": workout_id})
        self._write(self._workouts_key(), workouts)

    def delete_workout(self, workout_id: str) -> None:
        if self.store is None:
            return
        workouts = self._read_for_update(self._workouts_key(), WorkoutLog)
        workouts = [w for w in workouts if w.id != workout_id]
        self._write(self._workouts_key(), workouts)

    def get_max_stats(self, exercise_id: str) -> MaxStats:
        return WorkoutAnalyzer.max_stats(self.get_workouts(exercise_id))

    def get_last_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        return WorkoutAnalyzer.select_last(self.get_workouts(exercise_id), exclude_id)

    def get_best_workout(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        return WorkoutAnalyzer.select_best(
            self.get_workouts(exercise_id), metric, exclude_id
        )

    def get_max_workout(
        self, exercise_id: str, exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        return WorkoutAnalyzer.select_max_workout(
            self.get_workouts(exercise_id), exclude_id
        )

    # exercises

    def get_exercises(self) -> List[Exercise]:
        return list(PREDEFINED_EXERCISES)

    def save_custom_exercise(self, exercise: Exercise, on_conflict: str = "error") -> None:
        if on_conflict not in CONFLICT_POLICIES:
            raise ValueError(f"unknown conflict policy: {on_conflict}")
        if self.store is None:
            return
        exercises = self._read_for_update(self._custom_exercises_key(), Exercise)
        index = next((i for i, e in enumerate(exercises) if e.id == exercise.id), None)
        if index is None:
            exercises.append(exercise)
        elif on_conflict == "update":
            exercises[index] = exercise
        else:
            raise DuplicateIdError()
        self._write(self._custom_exercises_key(), exercises)

    def get_custom_exercises(self) -> List[Exercise]:
        return self._read(self._custom_exercises_key(), Exercise)

    def delete_custom_exercise(self, exercise_id: str) -> None:
        if self.store is None:
            return
        exercises = self._read_for_update(self._custom_exercises_key(), Exercise)
        exercises = [e for e in exercises if e.id != exercise_id]
        self._write(self._custom_exercises_key(), exercises)
