from typing import Iterable, List, Optional

from models import (
    BestWorkoutMetric,
    BestWorkoutResult,
    MaxStats,
    MaxWorkoutResult,
    WorkoutLog,
    WorkoutMetrics,
)


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPLEY_DIVISOR: float = 30.0

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Epley formula."""
        return weight * (1 + reps / cls.EPLEY_DIVISOR)

    @staticmethod
    def set_volume(reps: int, weight: float) -> float:
        """Return the volume of a single set."""
        return reps * weight


class WorkoutAnalyzer:
    """Derive metrics from workouts and pick best or latest sessions."""

    METRICS: dict[BestWorkoutMetric, tuple[str, str]] = {
        BestWorkoutMetric.VOLUME: ("total_volume", "Total Volume"),
        BestWorkoutMetric.WEIGHT: ("max_weight", "Max Weight"),
        BestWorkoutMetric.REPS: ("max_reps", "Max Reps"),
        BestWorkoutMetric.ONE_RM: ("estimated_1rm", "Estimated 1RM"),
        BestWorkoutMetric.BEST_SET: ("best_set_volume", "Best Set Volume"),
    }

    @staticmethod
    def calculate_metrics(workout: WorkoutLog) -> WorkoutMetrics:
        """Return aggregate statistics for the sets of ``workout``.

        Every field is computed in a single pass and is ``0`` when the
        workout has no sets. ``estimated_1rm`` is the largest per-set
        Epley estimate and ``average_weight`` is the plain mean of the
        set weights.
        """
        total_volume = 0.0
        max_weight = 0.0
        max_reps = 0
        best_set_volume = 0.0
        total_reps = 0
        total_weight = 0.0
        set_count = 0
        estimated_1rm = 0.0

        for s in workout.sets:
            set_volume = MathTools.set_volume(s.reps, s.weight)
            total_volume += set_volume
            max_weight = max(max_weight, s.weight)
            max_reps = max(max_reps, s.reps)
            best_set_volume = max(best_set_volume, set_volume)
            total_reps += s.reps
            total_weight += s.weight
            set_count += 1
            estimated_1rm = max(estimated_1rm, MathTools.epley_1rm(s.weight, s.reps))

        return WorkoutMetrics(
            total_volume=total_volume,
            max_weight=max_weight,
            max_reps=max_reps,
            estimated_1rm=estimated_1rm,
            average_weight=total_weight / set_count if set_count > 0 else 0,
            best_set_volume=best_set_volume,
            total_reps=total_reps,
        )

    @staticmethod
    def _without(
        workouts: Iterable[WorkoutLog], exclude_id: Optional[str]
    ) -> List[WorkoutLog]:
        if exclude_id:
            return [w for w in workouts if w.id != exclude_id]
        return list(workouts)

    @classmethod
    def select_best(
        cls,
        workouts: Iterable[WorkoutLog],
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Optional[BestWorkoutResult]:
        """Return the workout with the strictly greatest ``metric`` value.

        The running best starts at ``0`` and only a strictly larger value
        replaces it, so ties keep the earliest workout in input order and a
        collection whose values are all ``0`` yields ``None``.
        """
        metric = BestWorkoutMetric(metric)
        field, label = cls.METRICS[metric]
        candidates = cls._without(workouts, exclude_id)
        if not candidates:
            return None

        best_workout: Optional[WorkoutLog] = None
        best_value = 0.0
        for workout in candidates:
            value = getattr(cls.calculate_metrics(workout), field)
            if value > best_value:
                best_value = value
                best_workout = workout

        if best_workout is None:
            return None
        return BestWorkoutResult(
            workout=best_workout,
            metric=metric,
            metric_name=label,
            value=best_value,
        )

    @classmethod
    def select_last(
        cls, workouts: Iterable[WorkoutLog], exclude_id: Optional[str] = None
    ) -> Optional[WorkoutLog]:
        """Return the most recent workout by date; equal dates keep input order."""
        candidates = cls._without(workouts, exclude_id)
        if not candidates:
            return None
        candidates.sort(key=lambda w: w.date, reverse=True)
        return candidates[0]

    @staticmethod
    def max_stats(workouts: Iterable[WorkoutLog]) -> MaxStats:
        max_reps = 0
        max_weight = 0.0
        for workout in workouts:
            for s in workout.sets:
                if s.reps > max_reps:
                    max_reps = s.reps
                if s.weight > max_weight:
                    max_weight = s.weight
        return MaxStats(max_reps=max_reps, max_weight=max_weight)

    @classmethod
    def select_max_workout(
        cls, workouts: Iterable[WorkoutLog], exclude_id: Optional[str] = None
    ) -> Optional[MaxWorkoutResult]:
        """Legacy helper preferring the heaviest workout, then the most reps."""
        workouts = list(workouts)
        by_weight = cls.select_best(workouts, BestWorkoutMetric.WEIGHT, exclude_id)
        if by_weight is not None:
            return MaxWorkoutResult(workout=by_weight.workout, type="weight")
        by_reps = cls.select_best(workouts, BestWorkoutMetric.REPS, exclude_id)
        if by_reps is not None:
            return MaxWorkoutResult(workout=by_reps.workout, type="reps")
        return None


calculate_workout_metrics = WorkoutAnalyzer.calculate_metrics
