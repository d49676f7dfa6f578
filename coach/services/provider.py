from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class WorkoutProviderError(Exception):
    """Raised when the workout generation provider fails or returns an unexpected response."""


class WorkoutProviderClient:
    """Thin client for the HTTP workout generation provider."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.base_url = (base_url if base_url is not None else settings.AI_WORKOUT_API_URL).rstrip("/")
        self.timeout = timeout or settings.AI_PROVIDER_REQUEST_TIMEOUT
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )
        key = api_key if api_key is not None else settings.AI_WORKOUT_API_KEY
        if key:
            self.session.headers["Authorization"] = f"Bearer {key}"

    def generate_workout(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Request a workout for ``payload`` and return the provider's JSON body."""
        if not self.base_url:
            raise WorkoutProviderError("Workout provider URL is not configured")
        try:
            response = self.session.post(f"{self.base_url}/workouts", json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise WorkoutProviderError(f"Workout provider unreachable: {exc}") from exc
        data = self._raise_for_status(response)
        workout = data.get("workout", data) if isinstance(data, dict) else None
        if not isinstance(workout, dict) or not workout.get("exercises"):
            raise WorkoutProviderError("Workout provider returned no exercises")
        return workout

    @staticmethod
    def _raise_for_status(response: requests.Response) -> Any:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise WorkoutProviderError(WorkoutProviderClient._build_error_message(response)) from exc
        try:
            return response.json()
        except ValueError as exc:  # unexpected non-json response
            raise WorkoutProviderError("Workout provider returned non-JSON response") from exc

    @staticmethod
    def _build_error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and (payload.get("error") or payload.get("message")):
            return f"Workout provider error {response.status_code}: {payload.get('error') or payload.get('message')}"
        return f"Workout provider error {response.status_code}: {response.text[:200]}"
