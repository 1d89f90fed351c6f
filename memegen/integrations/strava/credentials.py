"""Credential providers.

The pipeline never reads tokens from global state. Callers inject a provider
that hands out the current access token and answers scope introspection.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from memegen.config.settings import Settings

WRITE_SCOPE = "activity:write"


class CredentialProvider(Protocol):
    async def get_access_token(self) -> str | None: ...

    async def get_granted_scopes(self, access_token: str) -> set[str]: ...


class StaticCredentialProvider:
    """Token and scopes captured at OAuth time (e.g. from the environment)."""

    def __init__(self, access_token: str | None, scopes: Iterable[str] = ()) -> None:
        self._access_token = access_token or None
        self._scopes = set(scopes)

    @classmethod
    def from_settings(cls, config: Settings) -> StaticCredentialProvider:
        return cls(config.strava_access_token, config.granted_scopes)

    async def get_access_token(self) -> str | None:
        return self._access_token

    async def get_granted_scopes(self, access_token: str) -> set[str]:
        if access_token != self._access_token:
            return set()
        return set(self._scopes)
