from __future__ import annotations

import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising to the camelCase JSON shape used in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Exercise(CamelModel):
    id: str
    name: str
    category: str
    muscle_group: str


class WorkoutSet(CamelModel):
    reps: int = Field(ge=0)
    weight: float = Field(ge=0)


class WorkoutLog(CamelModel):
    id: str
    date: datetime.date
    exercise_id: str
    sets: list[WorkoutSet] = Field(default_factory=list)


class Profile(CamelModel):
    id: str
    name: str
    created_at: str
    updated_at: Optional[str] = None


class MaxStats(CamelModel):
    max_reps: int = 0
    max_weight: float = 0


class WorkoutMetrics(CamelModel):
    total_volume: float = 0
    max_weight: float = 0
    max_reps: int = 0
    estimated_1rm: float = Field(default=0, alias="estimated1RM")
    average_weight: float = 0
    best_set_volume: float = 0
    total_reps: int = 0


class BestWorkoutMetric(str, Enum):
    VOLUME = "volume"
    WEIGHT = "weight"
    REPS = "reps"
    ONE_RM = "1rm"
    BEST_SET = "bestSet"


class BestWorkoutResult(CamelModel):
    workout: WorkoutLog
    metric: BestWorkoutMetric
    metric_name: str
    value: float


class MaxWorkoutResult(CamelModel):
    workout: WorkoutLog
    type: Literal["weight", "reps"]


class MigrationResult(CamelModel):
    workouts: int = 0
    exercises: int = 0
