from __future__ import annotations

from typing import Dict, List, Optional

from models import BestWorkoutMetric
from storage import StorageFacade


class StatisticsService:
    """Compute dashboard statistics from the active storage backend."""

    def __init__(self, storage: StorageFacade) -> None:
        self.storage = storage

    async def daily_summary(self) -> List[Dict]:
        """Return workouts grouped by date, newest day first."""
        workouts = await self.storage.get_workouts()
        days: Dict[str, Dict] = {}
        for workout in workouts:
            day = days.setdefault(
                workout.date,
                {"date": workout.date, "workouts": [], "exercise_ids": [], "total_volume": 0.0},
            )
            day["workouts"].append(workout)
            if workout.exercise_id not in day["exercise_ids"]:
                day["exercise_ids"].append(workout.exercise_id)
            metrics = self.storage.calculate_workout_metrics(workout)
            day["total_volume"] += metrics.total_volume
        return sorted(days.values(), key=lambda d: d["date"], reverse=True)

    async def overview(self) -> Dict[str, float]:
        days = await self.daily_summary()
        exercise_ids = {eid for day in days for eid in day["exercise_ids"]}
        return {
            "total_days": len(days),
            "total_workouts": sum(len(day["workouts"]) for day in days),
            "total_volume": sum(day["total_volume"] for day in days),
            "unique_exercises": len(exercise_ids),
        }

    async def exercise_dashboard(
        self,
        exercise_id: str,
        metric: BestWorkoutMetric | str = BestWorkoutMetric.VOLUME,
        exclude_id: Optional[str] = None,
    ) -> Dict:
        """Return personal bests and the latest session for one exercise."""
        max_stats = await self.storage.get_max_stats(exercise_id)
        last = await self.storage.get_last_workout(exercise_id, exclude_id)
        best = await self.storage.get_best_workout(exercise_id, metric, exclude_id)
        return {
            "exercise_id": exercise_id,
            "max_stats": max_stats,
            "last_workout": last,
            "last_metrics": self.storage.calculate_workout_metrics(last) if last else None,
            "best_workout": best,
        }
