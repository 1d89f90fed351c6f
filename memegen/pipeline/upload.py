"""Upload of a finished meme back to its Strava activity.

Preconditions are checked strictly in order and short-circuit on the first
failure, before any transport call:
1. an access credential is present
2. the credential's granted scopes include activity:write
3. the target activity exists and is readable with the credential

Upload failures never invalidate the artifact. They come back as an
UploadOutcome carrying a typed error.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
from loguru import logger

from memegen.errors import (
    ActivityFetchError,
    ActivityUnreachableError,
    InsufficientScopeError,
    NoCredentialError,
    UploadPreconditionError,
    UploadTransportError,
)
from memegen.integrations.strava.client import StravaClient
from memegen.integrations.strava.credentials import WRITE_SCOPE, CredentialProvider
from memegen.models.meme import MemeArtifact, UploadOutcome

ClientFactory = Callable[[str], StravaClient]


def _error_body(response: httpx.Response) -> dict | str:
    try:
        return response.json()
    except ValueError:
        return response.text


class UploadAdapter:
    def __init__(
        self,
        credentials: CredentialProvider,
        client_factory: ClientFactory,
        *,
        retry_once: bool = False,
    ) -> None:
        self._credentials = credentials
        self._client_factory = client_factory
        self._retry_once = retry_once

    async def _granted_scopes(self, access_token: str) -> set[str]:
        try:
            return await self._credentials.get_granted_scopes(access_token)
        except Exception as e:
            logger.warning(f"Scope introspection failed, treating credential as read-only: {e}")
            return set()

    async def _check_preconditions(self, activity_id: int | str) -> StravaClient:
        access_token = await self._credentials.get_access_token()
        if not access_token:
            raise NoCredentialError("No Strava access token available")

        granted = await self._granted_scopes(access_token)
        if WRITE_SCOPE not in granted:
            raise InsufficientScopeError(WRITE_SCOPE, granted)

        client = self._client_factory(access_token)
        try:
            await client.fetch_activity(activity_id)
        except ActivityFetchError as e:
            raise ActivityUnreachableError(activity_id, e.status_code) from e
        return client

    async def upload(self, artifact: MemeArtifact, activity_id: int | str | None = None) -> UploadOutcome:
        """Publish the artifact to its activity (or to activity_id when given)."""
        target = activity_id if activity_id is not None else artifact.activity_id

        try:
            client = await self._check_preconditions(target)
        except UploadPreconditionError as e:
            logger.bind(activity_id=target, reason=e.kind).warning(f"Upload skipped: {e}")
            return UploadOutcome.failure(e)

        return await self._publish(client, artifact, target)

    async def _publish(self, client: StravaClient, artifact: MemeArtifact, activity_id: int | str) -> UploadOutcome:
        max_attempts = 2 if self._retry_once else 1
        error: UploadTransportError | None = None
        attempt = 0

        for attempt in range(1, max_attempts + 1):
            try:
                confirmation = await client.upload_photo(
                    artifact.image_bytes,
                    activity_id,
                    media_type=artifact.media_type,
                )
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                error = UploadTransportError(
                    f"Strava rejected the upload (status={status})",
                    status_code=status,
                    detail=_error_body(e.response),
                )
                retryable = status >= 500
            except httpx.TransportError as e:
                error = UploadTransportError(f"Network error during upload: {e}")
                retryable = True
            else:
                logger.info("Upload successful", activity_id=activity_id, attempts=attempt)
                return UploadOutcome.success(confirmation, attempts=attempt)

            if not retryable or attempt >= max_attempts:
                break
            logger.bind(activity_id=activity_id).warning(f"Upload failed, retrying once: {error}")

        logger.bind(activity_id=activity_id, status_code=error.status_code if error else None).warning(f"Upload failed: {error}")
        return UploadOutcome.failure(error, attempts=attempt)
