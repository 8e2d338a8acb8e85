import datetime
import logging
import uuid
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Header, Depends, Request, Body
from fastapi.responses import JSONResponse

from auth import SessionAuthProvider
from config import APP_VERSION, YamlConfig
from db import KeyValueStore
from errors import AuthenticationRequiredError, NotFoundError, StorageError
from exercises import ExerciseCatalog
from local_storage import LocalStorage
from models import BestWorkoutMetric, CamelModel, WorkoutLog, WorkoutSet
from remote_storage import RemoteStorage
from stats_service import StatisticsService
from storage import StorageFacade

logger = logging.getLogger(__name__)


class WorkoutPayload(CamelModel):
    id: Optional[str] = None
    date: datetime.date
    exercise_id: str
    sets: List[WorkoutSet] = []

    def to_workout(self, workout_id: Optional[str] = None) -> WorkoutLog:
        return WorkoutLog(
            id=workout_id or self.id or uuid.uuid4().hex,
            date=self.date,
            exercise_id=self.exercise_id,
            sets=self.sets,
        )


def _status_for(error: StorageError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, AuthenticationRequiredError):
        return 401
    return 400


class FitLogAPI:
    """Provides REST endpoints for workout logging."""

    def __init__(
        self,
        local_db_path: Optional[str] = None,
        remote_db_path: Optional[str] = None,
        yaml_path: str = "settings.yaml",
        *,
        auth: Optional[SessionAuthProvider] = None,
    ) -> None:
        self.settings = YamlConfig(yaml_path).settings()
        self.local_db_path = local_db_path or self.settings.local_db_path
        self.remote_db_path = remote_db_path or self.settings.remote_db_path
        self.auth = auth or SessionAuthProvider()
        self.store = KeyValueStore(self.local_db_path)
        self.local = LocalStorage(self.store)
        self.remote = RemoteStorage(
            self.remote_db_path,
            self.auth,
            local_store=self.store,
            provision=self.settings.provision_remote,
        )
        self.storage = StorageFacade(self.local, self.remote, self.auth)
        self.catalog = ExerciseCatalog(self.storage)
        self.statistics = StatisticsService(self.storage)
        self.app = FastAPI(
            title="FitLog API",
            description="REST API for workout logging and personal bests",
            version=APP_VERSION,
            dependencies=[Depends(self._verify_token)],
        )
        self.app.add_exception_handler(StorageError, self._storage_error_handler)
        self._setup_routes()

    async def _verify_token(self, x_api_token: Optional[str] = Header(None)) -> None:
        expected = self.settings.api_token
        if expected and x_api_token != expected:
            raise HTTPException(status_code=401, detail="invalid api token")

    @staticmethod
    async def _storage_error_handler(request: Request, exc: StorageError):
        return JSONResponse(status_code=_status_for(exc), content={"detail": str(exc)})

    def _setup_routes(self) -> None:
        @self.app.get("/health")
        async def health():
            return {"status": "ok", "version": APP_VERSION}

        @self.app.post("/auth/login")
        async def login(user_id: str, name: Optional[str] = None):
            try:
                self.auth.sign_in(user_id)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            logger.info("Signed in as %s", user_id)
            if name:
                await self.remote.create_profile(name)
            return {"user_id": user_id}

        @self.app.post("/auth/logout")
        async def logout():
            self.auth.sign_out()
            logger.info("Signed out, using local storage")
            return {"status": "signed out"}

        @self.app.get("/auth/session")
        async def session():
            authenticated = await self.storage.is_authenticated()
            return {
                "authenticated": authenticated,
                "user_id": self.auth.user_id if authenticated else None,
                "backend": "remote" if authenticated else "local",
            }

        @self.app.get("/profiles")
        async def list_profiles():
            return await self.storage.get_profiles()

        @self.app.post("/profiles")
        async def create_profile(name: str):
            return await self.storage.create_profile(name)

        @self.app.get("/profiles/current")
        async def current_profile():
            return {"id": await self.storage.get_current_profile_id()}

        @self.app.put("/profiles/current")
        async def set_current_profile(profile_id: str):
            await self.storage.set_current_profile(profile_id)
            return {"status": "updated"}

        @self.app.put("/profiles/{profile_id}")
        async def rename_profile(profile_id: str, name: str):
            await self.storage.update_profile(profile_id, name)
            return {"status": "updated"}

        @self.app.delete("/profiles/{profile_id}")
        async def delete_profile(profile_id: str):
            await self.storage.delete_profile(profile_id)
            return {"status": "deleted"}

        @self.app.get("/workouts")
        async def list_workouts(
            exercise_id: Optional[str] = None, date: Optional[datetime.date] = None
        ):
            return await self.storage.get_workouts(exercise_id, date)

        @self.app.post("/workouts")
        async def create_workout(payload: WorkoutPayload):
            workout = payload.to_workout()
            await self.storage.save_workout(workout)
            return {"id": workout.id}

        @self.app.get("/workouts/{workout_id}")
        async def get_workout(workout_id: str):
            workout = await self.storage.get_workout_by_id(workout_id)
            if workout is None:
                raise HTTPException(status_code=404, detail="workout not found")
            return workout

        @self.app.put("/workouts/{workout_id}")
        async def update_workout(workout_id: str, payload: WorkoutPayload):
            await self.storage.update_workout(workout_id, payload.to_workout(workout_id))
            return {"status": "updated"}

        @self.app.delete("/workouts/{workout_id}")
        async def delete_workout(workout_id: str):
            await self.storage.delete_workout(workout_id)
            return {"status": "deleted"}

        @self.app.get("/workouts/{workout_id}/metrics")
        async def workout_metrics(workout_id: str):
            workout = await self.storage.get_workout_by_id(workout_id)
            if workout is None:
                raise HTTPException(status_code=404, detail="workout not found")
            return self.storage.calculate_workout_metrics(workout)

        @self.app.get("/exercises")
        async def list_exercises():
            return await self.catalog.get_exercise_list()

        @self.app.get("/exercises/categories")
        async def list_categories():
            return await self.catalog.get_categories()

        @self.app.get("/exercises/muscle_groups")
        async def list_muscle_groups():
            return await self.catalog.get_muscle_groups()

        @self.app.get("/exercises/{exercise_id}")
        async def get_exercise(exercise_id: str):
            exercise = await self.catalog.get_exercise_by_id(exercise_id)
            if exercise is None:
                raise HTTPException(status_code=404, detail="exercise not found")
            return exercise

        @self.app.get("/exercises/{exercise_id}/stats")
        async def exercise_max_stats(exercise_id: str):
            return await self.storage.get_max_stats(exercise_id)

        @self.app.get("/exercises/{exercise_id}/last")
        async def exercise_last_workout(exercise_id: str, exclude_id: Optional[str] = None):
            return await self.storage.get_last_workout(exercise_id, exclude_id)

        @self.app.get("/exercises/{exercise_id}/best")
        async def exercise_best_workout(
            exercise_id: str,
            metric: Optional[BestWorkoutMetric] = None,
            exclude_id: Optional[str] = None,
        ):
            return await self.storage.get_best_workout(
                exercise_id, metric or self.settings.default_metric, exclude_id
            )

        @self.app.get("/exercises/{exercise_id}/max")
        async def exercise_max_workout(exercise_id: str, exclude_id: Optional[str] = None):
            return await self.storage.get_max_workout(exercise_id, exclude_id)

        @self.app.get("/exercises/{exercise_id}/dashboard")
        async def exercise_dashboard(
            exercise_id: str,
            metric: Optional[BestWorkoutMetric] = None,
            exclude_id: Optional[str] = None,
        ):
            return await self.statistics.exercise_dashboard(
                exercise_id, metric or self.settings.default_metric, exclude_id
            )

        @self.app.get("/custom_exercises")
        async def list_custom_exercises():
            return await self.storage.get_custom_exercises()

        @self.app.post("/custom_exercises")
        async def add_custom_exercise(
            name: str = Body(...),
            category: str = Body(...),
            muscle_group: str = Body(..., alias="muscleGroup"),
        ):
            try:
                exercise = await self.catalog.add_custom_exercise(name, category, muscle_group)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return exercise

        @self.app.delete("/custom_exercises/{exercise_id}")
        async def delete_custom_exercise(exercise_id: str):
            await self.storage.delete_custom_exercise(exercise_id)
            return {"status": "deleted"}

        @self.app.post("/migrate")
        async def migrate_local_data():
            return await self.storage.migrate_local_storage_data()

        @self.app.get("/dashboard")
        async def dashboard():
            return {
                "overview": await self.statistics.overview(),
                "days": await self.statistics.daily_summary(),
            }
