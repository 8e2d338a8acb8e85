import requests
from typing import Optional


class FitLogClient:
    """Simple REST client for the FitLog API."""

    def __init__(
        self, base_url: str = "http://localhost:8000", api_token: Optional[str] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = {"X-API-Token": api_token} if api_token else {}

    def _get(self, path: str, **params):
        resp = requests.get(f"{self.base_url}{path}", params=params, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def login(self, user_id: str, name: Optional[str] = None) -> dict:
        params = {"user_id": user_id}
        if name:
            params["name"] = name
        resp = requests.post(f"{self.base_url}/auth/login", params=params, headers=self.headers)
        resp.raise_for_status()
        return resp.json()

    def logout(self) -> None:
        resp = requests.post(f"{self.base_url}/auth/logout", headers=self.headers)
        resp.raise_for_status()

    def list_profiles(self) -> list:
        return self._get("/profiles")

    def create_profile(self, name: str) -> dict:
        resp = requests.post(
            f"{self.base_url}/profiles", params={"name": name}, headers=self.headers
        )
        resp.raise_for_status()
        return resp.json()

    def create_workout(self, date: str, exercise_id: str, sets: list) -> str:
        resp = requests.post(
            f"{self.base_url}/workouts",
            json={"date": date, "exerciseId": exercise_id, "sets": sets},
            headers=self.headers,
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def list_workouts(self, **params: str) -> list:
        return self._get("/workouts", **params)

    def delete_workout(self, workout_id: str) -> None:
        resp = requests.delete(f"{self.base_url}/workouts/{workout_id}", headers=self.headers)
        resp.raise_for_status()

    def workout_metrics(self, workout_id: str) -> dict:
        return self._get(f"/workouts/{workout_id}/metrics")

    def list_exercises(self) -> list:
        return self._get("/exercises")

    def best_workout(
        self, exercise_id: str, metric: str = "volume", exclude_id: Optional[str] = None
    ) -> Optional[dict]:
        params = {"metric": metric}
        if exclude_id:
            params["exclude_id"] = exclude_id
        return self._get(f"/exercises/{exercise_id}/best", **params)

    def max_stats(self, exercise_id: str) -> dict:
        return self._get(f"/exercises/{exercise_id}/stats")

    def migrate(self) -> dict:
        resp = requests.post(f"{self.base_url}/migrate", headers=self.headers)
        resp.raise_for_status()
        return resp.json()
