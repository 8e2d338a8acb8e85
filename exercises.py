import re
from typing import Dict, List, Optional

from models import Exercise


def _ex(exercise_id: str, name: str, category: str, muscle_group: str) -> Exercise:
    return Exercise(id=exercise_id, name=name, category=category, muscle_group=muscle_group)


PREDEFINED_EXERCISES: List[Exercise] = [
    _ex("bench-press", "Bench Press", "Chest", "Upper Body"),
    _ex("incline-bench-press", "Incline Bench Press", "Chest", "Upper Body"),
    _ex("decline-bench-press", "Decline Bench Press", "Chest", "Upper Body"),
    _ex("dumbbell-press", "Dumbbell Press", "Chest", "Upper Body"),
    _ex("chest-fly", "Chest Fly", "Chest", "Upper Body"),
    _ex("push-ups", "Push-ups", "Chest", "Upper Body"),
    _ex("deadlift", "Deadlift", "Back", "Upper Body"),
    _ex("barbell-row", "Barbell Row", "Back", "Upper Body"),
    _ex("pull-ups", "Pull-ups", "Back", "Upper Body"),
    _ex("lat-pulldown", "Lat Pulldown", "Back", "Upper Body"),
    _ex("t-bar-row", "T-Bar Row", "Back", "Upper Body"),
    _ex("cable-row", "Cable Row", "Back", "Upper Body"),
    _ex("one-arm-dumbbell-row", "One-Arm Dumbbell Row", "Back", "Upper Body"),
    _ex("overhead-press", "Overhead Press", "Shoulders", "Upper Body"),
    _ex("dumbbell-shoulder-press", "Dumbbell Shoulder Press", "Shoulders", "Upper Body"),
    _ex("lateral-raise", "Lateral Raise", "Shoulders", "Upper Body"),
    _ex("front-raise", "Front Raise", "Shoulders", "Upper Body"),
    _ex("rear-delt-fly", "Rear Delt Fly", "Shoulders", "Upper Body"),
    _ex("upright-row", "Upright Row", "Shoulders", "Upper Body"),
    _ex("barbell-curl", "Barbell Curl", "Arms", "Upper Body"),
    _ex("dumbbell-curl", "Dumbbell Curl", "Arms", "Upper Body"),
    _ex("hammer-curl", "Hammer Curl", "Arms", "Upper Body"),
    _ex("tricep-dips", "Tricep Dips", "Arms", "Upper Body"),
    _ex("tricep-pushdown", "Tricep Pushdown", "Arms", "Upper Body"),
    _ex("close-grip-bench-press", "Close-Grip Bench Press", "Arms", "Upper Body"),
    _ex("squat", "Squat", "Legs", "Lower Body"),
    _ex("leg-press", "Leg Press", "Legs", "Lower Body"),
    _ex("leg-extension", "Leg Extension", "Legs", "Lower Body"),
    _ex("leg-curl", "Leg Curl", "Legs", "Lower Body"),
    _ex("lunges", "Lunges", "Legs", "Lower Body"),
    _ex("romanian-deadlift", "Romanian Deadlift", "Legs", "Lower Body"),
    _ex("calf-raise", "Calf Raise", "Legs", "Lower Body"),
    _ex("bulgarian-split-squat", "Bulgarian Split Squat", "Legs", "Lower Body"),
    _ex("plank", "Plank", "Core", "Core"),
    _ex("crunches", "Crunches", "Core", "Core"),
    _ex("sit-ups", "Sit-ups", "Core", "Core"),
    _ex("russian-twist", "Russian Twist", "Core", "Core"),
    _ex("leg-raises", "Leg Raises", "Core", "Core"),
    _ex("mountain-climbers", "Mountain Climbers", "Core", "Core"),
]


def generate_exercise_id(name: str) -> str:
    """Return a slug id such as ``bench-press`` for ``name``."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


class ExerciseCatalog:
    """Merged view of predefined and custom exercises for the active backend."""

    def __init__(self, storage) -> None:
        self.storage = storage

    async def get_exercise_map(self) -> Dict[str, Exercise]:
        merged: Dict[str, Exercise] = {}
        for ex in await self.storage.get_exercises():
            merged[ex.id] = ex
        # custom entries are inserted last and replace predefined ones
        for ex in await self.storage.get_custom_exercises():
            merged[ex.id] = ex
        return merged

    async def get_exercise_list(self) -> List[Exercise]:
        return list((await self.get_exercise_map()).values())

    async def get_exercise_by_id(self, exercise_id: str) -> Optional[Exercise]:
        return (await self.get_exercise_map()).get(exercise_id)

    async def get_categories(self) -> List[str]:
        exercises = await self.get_exercise_list()
        return list(dict.fromkeys(ex.category for ex in exercises))

    async def get_muscle_groups(self) -> List[str]:
        exercises = await self.get_exercise_list()
        return list(dict.fromkeys(ex.muscle_group for ex in exercises))

    async def add_custom_exercise(
        self, name: str, category: str, muscle_group: str
    ) -> Exercise:
        """Create a custom exercise whose id is derived from ``name``."""
        name = name.strip()
        exercise_id = generate_exercise_id(name)
        if not exercise_id:
            raise ValueError("exercise name required")
        exercise = Exercise(
            id=exercise_id,
            name=name,
            category=category,
            muscle_group=muscle_group,
        )
        await self.storage.save_custom_exercise(exercise)
        return exercise
