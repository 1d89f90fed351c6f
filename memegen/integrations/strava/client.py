from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from memegen.errors import ActivityFetchError
from memegen.models.activity import ActivityRecord

STRAVA_BASE_URL = "https://www.strava.com/api/v3"


class StravaClient:
    """Thin async Strava API client bound to one access token.

    - No pagination loops
    - No token refresh
    - No retries (callers decide)
    """

    def __init__(
        self,
        access_token: str,
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
        base_url: str = STRAVA_BASE_URL,
    ) -> None:
        self._access_token = access_token
        self._timeout = timeout
        self._transport = transport
        self._base_url = base_url

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def fetch_activity(self, activity_id: int | str) -> ActivityRecord:
        """Fetch one activity's telemetry.

        Raises:
            ActivityFetchError: On error responses, network failures or an unreadable payload
        """
        async with self._client() as client:
            try:
                resp = await client.get(f"/activities/{activity_id}")
            except httpx.HTTPError as e:
                raise ActivityFetchError(activity_id, f"network error: {e}") from e

        if not resp.is_success:
            raise ActivityFetchError(activity_id, f"status {resp.status_code}", status_code=resp.status_code)

        try:
            record = ActivityRecord.from_raw(resp.json())
        except (TypeError, ValueError, ValidationError) as e:
            raise ActivityFetchError(activity_id, f"invalid payload: {e}", status_code=resp.status_code) from e

        logger.debug("Fetched Strava activity", activity_id=activity_id)
        return record

    async def list_activities(self, *, page: int = 1, per_page: int = 30) -> list[ActivityRecord]:
        """Fetch ONE page of the athlete's activities, newest first."""
        async with self._client() as client:
            resp = await client.get(
                "/athlete/activities",
                params={"page": page, "per_page": per_page},
            )
        resp.raise_for_status()

        payload = resp.json()
        if not payload:
            return []

        return [ActivityRecord.from_raw(raw) for raw in payload]

    async def upload_photo(
        self,
        image_bytes: bytes,
        activity_id: int | str,
        *,
        filename: str = "duck_meme.jpg",
        media_type: str = "image/jpeg",
    ) -> dict[str, Any]:
        """Publish an image to an activity.

        Raises:
            httpx.HTTPStatusError: On error responses
            httpx.TransportError: On network failures
        """
        async with self._client() as client:
            resp = await client.post(
                "/uploads",
                files={"file": (filename, image_bytes, media_type)},
                data={"activity_id": str(activity_id)},
            )
        resp.raise_for_status()

        try:
            return resp.json()
        except ValueError:
            return {"status_code": resp.status_code}
